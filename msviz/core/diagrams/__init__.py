"""Diagram generation for microservice landscapes.

Two diagram kinds:
  SimpleDiagram — directed graph of microservices, exported as DOT
  UmlDiagram    — PlantUML component diagram

Public API:
  DiagramService — batch export of both kinds for one system
"""

from .alias import to_alias
from .errors import ConfigurationError, DiagramError, RenderError, ValidationError
from .formats import OutputFormat, UmlDiagramType
from .renderer import GraphvizRenderer, MemoryRenderer, PlantUmlRenderer, Renderer
from .service import DiagramService, ExportResult
from .simple import SimpleDiagram
from .uml import UmlDiagram

__all__ = [
    "to_alias",
    "ConfigurationError",
    "DiagramError",
    "RenderError",
    "ValidationError",
    "OutputFormat",
    "UmlDiagramType",
    "GraphvizRenderer",
    "MemoryRenderer",
    "PlantUmlRenderer",
    "Renderer",
    "DiagramService",
    "ExportResult",
    "SimpleDiagram",
    "UmlDiagram",
]
