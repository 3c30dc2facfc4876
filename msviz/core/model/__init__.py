"""Domain model and loader for microservice landscapes."""

from .models import (
    Contract,
    Interface,
    Microservice,
    Operation,
    Parameter,
    System,
    SystemFragment,
    Team,
)
from .loader import ModelLoadError, load_system, system_from_dict

__all__ = [
    "Contract",
    "Interface",
    "Microservice",
    "Operation",
    "Parameter",
    "System",
    "SystemFragment",
    "Team",
    "ModelLoadError",
    "load_system",
    "system_from_dict",
]
