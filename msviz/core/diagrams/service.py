"""DiagramService — batch export of the diagrams of one system.

Each diagram kind is exported independently: a failure in one (bad
configuration, invalid contract, renderer error) is recorded on its
``ExportResult`` and the remaining kinds are still attempted.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..constants import SIMPLE_DIAGRAM_SUFFIX, UML_DIAGRAM_SUFFIX
from ..model.models import System
from ..settings import RendererSettings
from .alias import to_alias
from .errors import DiagramError, RenderError
from .formats import OutputFormat, UmlDiagramType
from .renderer import GraphvizRenderer, PlantUmlRenderer, Renderer
from .simple import SimpleDiagram
from .uml import UmlDiagram

logger = logging.getLogger(__name__)

SIMPLE = "simple"
UML = "uml"
ALL_DIAGRAM_KINDS = (SIMPLE, UML)

_SOURCE_SUFFIX = {SIMPLE: ".dot", UML: ".puml"}


@dataclass
class ExportResult:
    """Outcome of exporting one diagram."""
    kind: str
    output_file: Path
    source: Optional[str] = None
    source_file: Optional[Path] = None
    error: Optional[DiagramError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DiagramService:
    """Exports graph and UML component diagrams for a system."""

    def __init__(
        self,
        settings: Optional[RendererSettings] = None,
        graph_renderer: Optional[Renderer] = None,
        uml_renderer: Optional[Renderer] = None,
    ):
        """Initialize DiagramService.

        Args:
            settings: Renderer settings for the default PlantUML renderer
            graph_renderer: Renderer for DOT text (default: Graphviz)
            uml_renderer: Renderer for PlantUML text (default: PlantUML JAR/HTTP)
        """
        self._graph_renderer = graph_renderer or GraphvizRenderer()
        self._uml_renderer = uml_renderer or PlantUmlRenderer(settings)

    def export(
        self,
        system: System,
        output_dir: Union[str, Path],
        kinds: Union[str, Iterable[str]] = ALL_DIAGRAM_KINDS,
        write_source: bool = False,
    ) -> List[ExportResult]:
        """Export the requested diagram kinds of ``system`` into ``output_dir``.

        Files are named ``<system alias>_simpleDiagram.svg`` and
        ``<system alias>_umlDiagram.svg``. With ``write_source`` the DOT or
        PlantUML text is also written next to the image.

        Returns:
            One ExportResult per requested kind, in request order
        """
        kinds = [kinds] if isinstance(kinds, str) else list(kinds)
        unknown = [k for k in kinds if k not in ALL_DIAGRAM_KINDS]
        if unknown:
            raise ValueError(
                f"Unknown diagram kind(s) {unknown}. "
                f"Must be one of: {', '.join(ALL_DIAGRAM_KINDS)}"
            )

        output_dir = Path(output_dir)
        results = []
        for kind in kinds:
            result = self._export_one(kind, system, output_dir, write_source)
            if result.ok:
                logger.info("Exported %s diagram of '%s' to %s", kind, system.name, result.output_file)
            else:
                logger.warning("%s diagram of '%s' failed: %s", kind, system.name, result.error)
            results.append(result)
        return results

    def _export_one(
        self,
        kind: str,
        system: System,
        output_dir: Path,
        write_source: bool,
    ) -> ExportResult:
        suffix = SIMPLE_DIAGRAM_SUFFIX if kind == SIMPLE else UML_DIAGRAM_SUFFIX
        stem = f"{to_alias(system.name)}{suffix}"
        result = ExportResult(kind=kind, output_file=output_dir / f"{stem}.svg")

        try:
            if kind == SIMPLE:
                diagram = self._simple_diagram(system)
                result.source = diagram.to_dot()
            else:
                diagram = self._uml_diagram(system)
                result.source = diagram.to_plantuml()

            if write_source:
                result.source_file = output_dir / f"{stem}{_SOURCE_SUFFIX[kind]}"
                _write_source(result.source_file, result.source)

            diagram.renderer.render(result.source, diagram.format, result.output_file)
        except DiagramError as e:
            result.error = e

        return result

    def _simple_diagram(self, system: System) -> SimpleDiagram:
        return (
            SimpleDiagram.Builder()
            .system(system)
            .output_format(OutputFormat.SVG)
            .renderer(self._graph_renderer)
            .build()
        )

    def _uml_diagram(self, system: System) -> UmlDiagram:
        return (
            UmlDiagram.Builder()
            .system(system)
            .type(UmlDiagramType.COMPONENT)
            .output_format(OutputFormat.SVG)
            .renderer(self._uml_renderer)
            .build()
        )


def _write_source(path: Path, source: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
    except OSError as e:
        raise RenderError(f"Cannot write diagram source to {path}: {e}") from e
