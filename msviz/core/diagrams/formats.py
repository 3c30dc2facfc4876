"""Supported output formats and UML diagram types."""

from enum import Enum


class OutputFormat(Enum):
    """Image formats a diagram can be rendered to. Only SVG is supported."""
    SVG = "svg"


class UmlDiagramType(Enum):
    """UML diagram kinds. Only component diagrams are supported."""
    COMPONENT = "component"
