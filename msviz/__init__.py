"""msviz — graph and UML component diagrams for microservice landscapes."""

__version__ = "0.1.0"

__all__ = [
    "System",
    "SystemFragment",
    "Team",
    "Microservice",
    "Interface",
    "Operation",
    "Parameter",
    "Contract",
    "SimpleDiagram",
    "UmlDiagram",
    "UmlDiagramType",
    "OutputFormat",
    "to_alias",
]

_IMPORT_MAP = {
    "System": ".core.model",
    "SystemFragment": ".core.model",
    "Team": ".core.model",
    "Microservice": ".core.model",
    "Interface": ".core.model",
    "Operation": ".core.model",
    "Parameter": ".core.model",
    "Contract": ".core.model",
    "SimpleDiagram": ".core.diagrams",
    "UmlDiagram": ".core.diagrams",
    "UmlDiagramType": ".core.diagrams",
    "OutputFormat": ".core.diagrams",
    "to_alias": ".core.diagrams",
}


def __getattr__(name):
    if name in _IMPORT_MAP:
        import importlib
        module = importlib.import_module(_IMPORT_MAP[name], __package__)
        return getattr(module, name)
    raise AttributeError(f"module 'msviz' has no attribute {name}")
