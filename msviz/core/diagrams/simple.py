"""Graph-based diagram of a system: microservices as vertices, contracts as edges.

The graph is built with networkx, exported to DOT with the graphviz package
and rendered by a ``Renderer`` (Graphviz ``dot`` by default).

Usage:
    diagram = (
        SimpleDiagram.Builder()
        .system(my_system)
        .output_format(OutputFormat.SVG)
        .build()
    )
    diagram.visualize("out/MySystem_simpleDiagram.svg")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import graphviz
import networkx as nx

from ..model.models import Microservice, System
from .alias import to_alias
from .config import SimpleDiagramConfig
from .errors import ValidationError
from .formats import OutputFormat
from .renderer import GraphvizRenderer, Renderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimpleDiagram:
    """Immutable, configured graph diagram. Create it through ``Builder``."""

    config: SimpleDiagramConfig
    renderer: Renderer = field(default_factory=GraphvizRenderer, compare=False)

    class Builder:
        """Collects configuration; nothing is validated before ``visualize``."""

        def __init__(self):
            self._system: Optional[System] = None
            self._format: Optional[OutputFormat] = None
            self._renderer: Optional[Renderer] = None

        def system(self, system: System) -> "SimpleDiagram.Builder":
            self._system = system
            return self

        def output_format(self, fmt: OutputFormat) -> "SimpleDiagram.Builder":
            self._format = fmt
            return self

        def renderer(self, renderer: Renderer) -> "SimpleDiagram.Builder":
            self._renderer = renderer
            return self

        def build(self) -> "SimpleDiagram":
            return SimpleDiagram(
                SimpleDiagramConfig(self._system, self._format),
                self._renderer or GraphvizRenderer(),
            )

    @property
    def system(self) -> Optional[System]:
        return self.config.system

    @property
    def format(self) -> Optional[OutputFormat]:
        return self.config.format

    def build_graph(self) -> nx.DiGraph:
        """Build the directed microservice graph.

        Every microservice becomes a vertex. Each contract becomes an edge from
        its consumer to the microservice providing the contract's interface;
        interfaces themselves never appear. The graph is simple, so several
        contracts between the same pair yield a single edge.

        Contract endpoints are not checked against the system's microservices.

        Raises:
            ConfigurationError: If format or system is missing or unsupported
            ValidationError: If a contract's interface has no provider
        """
        self.config.check().raise_for_error()
        system = self.config.system

        logger.debug("Populating graph for system '%s'...", system.name)
        g = nx.DiGraph()
        for ms in system.microservices:
            logger.debug("Adding microservice %s as vertex...", ms.name)
            g.add_node(ms)

        logger.debug("Drawing edges...")
        for contract in system.contracts:
            provider = contract.owner.provider
            if provider is None:
                raise ValidationError(
                    f"Interface '{contract.owner.name}' of a contract has no providing microservice"
                )
            logger.debug("Drawing edge between %s and %s...", contract.consumer.name, provider.name)
            g.add_edge(contract.consumer, provider)

        logger.debug("Graph built: %d vertices, %d edges", g.number_of_nodes(), g.number_of_edges())
        return g

    def to_dot(self) -> str:
        """Export the graph as DOT text.

        Vertex ids are name aliases; each vertex is labelled with the raw name.
        Backslashes in names are escaped so Graphviz shows them as written.
        """
        g = self.build_graph()

        dot = graphviz.Digraph("G", strict=True)
        for ms in g.nodes:
            dot.node(_vertex_id(ms), label=graphviz.escape(ms.name))
        for consumer, provider in g.edges:
            dot.edge(_vertex_id(consumer), _vertex_id(provider))

        logger.debug("DOT representation:\n%s", dot.source)
        return dot.source

    def visualize(self, output_file: Union[str, Path]) -> Path:
        """Render the diagram into ``output_file``.

        Raises:
            ConfigurationError: Missing or unsupported configuration
            ValidationError: A contract interface without provider
            RenderError: The renderer failed
        """
        logger.debug(
            "It is heavily recommended to have the 'dot' command from Graphviz installed."
        )
        source = self.to_dot()
        return self.renderer.render(source, self.config.format, output_file)


def _vertex_id(ms: Microservice) -> str:
    # Backslashes are DOT escape sequences; keep them literal
    return graphviz.escape(to_alias(ms.name))
