"""UML component diagram of a system in PlantUML notation.

For each microservice the PlantUML text is generated additively: a
``<< Microservice >>`` component, one interface block per provided interface
(endpoint, communication type, operation signatures) and a realization arrow
to each interface. Contracts follow as usage arrows from consumer to
interface once every microservice has been declared.

PlantUML requires Graphviz on the rendering host (or falls back to its
Smetana layout engine, see ``PlantUmlRenderer``).

Usage:
    diagram = (
        UmlDiagram.Builder()
        .system(my_system)
        .output_format(OutputFormat.SVG)
        .type(UmlDiagramType.COMPONENT)
        .build()
    )
    diagram.visualize("out/MySystem_umlDiagram.svg")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from ..model.models import Contract, Interface, Microservice, Operation, Parameter, System
from .alias import to_alias
from .config import UmlDiagramConfig
from .errors import ValidationError
from .formats import OutputFormat, UmlDiagramType
from .renderer import PlantUmlRenderer, Renderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UmlDiagram:
    """Immutable, configured UML diagram. Create it through ``Builder``."""

    config: UmlDiagramConfig
    renderer: Renderer = field(default_factory=PlantUmlRenderer, compare=False)

    class Builder:
        """Collects configuration; nothing is validated before ``visualize``."""

        def __init__(self):
            self._system: Optional[System] = None
            self._type: Optional[UmlDiagramType] = None
            self._format: Optional[OutputFormat] = None
            self._renderer: Optional[Renderer] = None

        def system(self, system: System) -> "UmlDiagram.Builder":
            self._system = system
            return self

        def type(self, diagram_type: UmlDiagramType) -> "UmlDiagram.Builder":
            self._type = diagram_type
            return self

        def output_format(self, fmt: OutputFormat) -> "UmlDiagram.Builder":
            self._format = fmt
            return self

        def renderer(self, renderer: Renderer) -> "UmlDiagram.Builder":
            self._renderer = renderer
            return self

        def build(self) -> "UmlDiagram":
            return UmlDiagram(
                UmlDiagramConfig(self._system, self._type, self._format),
                self._renderer or PlantUmlRenderer(),
            )

    @property
    def system(self) -> Optional[System]:
        return self.config.system

    @property
    def type(self) -> Optional[UmlDiagramType]:
        return self.config.type

    @property
    def format(self) -> Optional[OutputFormat]:
        return self.config.format

    def to_plantuml(self) -> str:
        """Assemble the PlantUML text for the configured system.

        Raises:
            ConfigurationError: Missing or unsupported type, format or system
            ValidationError: A contract's owner interface is not provided by any
                             microservice of the system, or its consumer is not
                             one of the system's microservices
        """
        self.config.check().raise_for_error()
        system = self.config.system

        logger.debug("Starting to assemble PlantUML string...")
        lines = ["@startuml", "allow_mixing"]

        logger.debug("Populating with microservices...")
        for ms in system.microservices:
            lines.extend(_microservice_lines(ms))

        logger.debug("Populating with contracts...")
        for contract in system.contracts:
            if not _is_defined(contract, system):
                raise ValidationError("Owner or consumer of a contract were not previously defined.")
            lines.append(_contract_line(contract))

        lines.append("@enduml")
        puml = "\n".join(lines) + "\n"
        logger.debug("PlantUML source:\n%s", puml)
        return puml

    def visualize(self, output_file: Union[str, Path]) -> Path:
        """Render the diagram into ``output_file``.

        Nothing is written when configuration or contract validation fails.

        Raises:
            ConfigurationError, ValidationError, RenderError
        """
        puml = self.to_plantuml()
        logger.debug("Writing PlantUML diagram to %s...", output_file)
        return self.renderer.render(puml, self.config.format, output_file)


# ── PlantUML fragments ────────────────────────────────────────────


def _is_defined(contract: Contract, system: System) -> bool:
    valid_owner = any(contract.owner in ms.interfaces for ms in system.microservices)
    valid_consumer = contract.consumer in system.microservices
    return valid_owner and valid_consumer


def _microservice_lines(ms: Microservice) -> List[str]:
    alias = to_alias(ms.name)
    lines = [f"component [{ms.name}] << Microservice >> as {alias}"]
    for interface in ms.interfaces:
        lines.extend(_interface_lines(interface))
    for interface in ms.interfaces:
        lines.append(f"{alias} ..|>  {to_alias(interface.name)}")
    return lines


def _interface_lines(interface: Interface) -> List[str]:
    lines = [f"interface {to_alias(interface.name)} {{"]
    if interface.endpoint:
        lines.append(f"endpoint = {interface.endpoint}")
    if interface.communication_type:
        lines.append(f"communicationType = {interface.communication_type}")
    # An interface without operations still gets its (empty) operations line
    lines.append("\n".join(_operation_signature(op) for op in interface.operations))
    lines.append("}")
    return lines


def _operation_signature(op: Operation) -> str:
    params = ", ".join(_parameter(p) for p in op.parameters)
    return_value = op.return_value if op.return_value is not None else "void"
    return f"{return_value} {op.name}({params})"


def _parameter(p: Parameter) -> str:
    # Untyped parameters keep their trailing space: "p2 "
    return f"{p.name} : {p.type}" if p.type else f"{p.name} "


def _contract_line(contract: Contract) -> str:
    return f"{to_alias(contract.consumer.name)} ..> {to_alias(contract.owner.name)} : uses >"
