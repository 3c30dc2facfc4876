"""Configuration structs for diagram builders with deferred validation.

Builders accept fields in any order and never validate eagerly. The config
is checked once, at the start of ``visualize``, and the outcome is a
``ConfigCheck``: either ok or carrying the ``ConfigurationError`` to raise.
"""

from dataclasses import dataclass
from typing import Optional

from ..model.models import System
from .errors import ConfigurationError
from .formats import OutputFormat, UmlDiagramType


@dataclass(frozen=True)
class ConfigCheck:
    """Outcome of a configuration check."""
    error: Optional[ConfigurationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> "ConfigCheck":
        return cls()

    @classmethod
    def failure(cls, message: str) -> "ConfigCheck":
        return cls(ConfigurationError(message))

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass(frozen=True)
class SimpleDiagramConfig:
    system: Optional[System] = None
    format: Optional[OutputFormat] = None

    def check(self) -> ConfigCheck:
        if self.format is None:
            return ConfigCheck.failure("Need to set output format!")
        if self.format is not OutputFormat.SVG:
            return ConfigCheck.failure("Unsupported output format for simple diagrams!")
        if self.system is None:
            return ConfigCheck.failure("No system declared for visualization!")
        return ConfigCheck.success()


@dataclass(frozen=True)
class UmlDiagramConfig:
    system: Optional[System] = None
    type: Optional[UmlDiagramType] = None
    format: Optional[OutputFormat] = None

    def check(self) -> ConfigCheck:
        if self.type is None or self.format is None:
            return ConfigCheck.failure("Need to set type and output format!")
        if self.type is not UmlDiagramType.COMPONENT:
            return ConfigCheck.failure(f"Unsupported UML diagram type: {self.type!r}")
        if self.format is not OutputFormat.SVG:
            return ConfigCheck.failure("Unsupported output format for UML diagrams!")
        if self.system is None:
            return ConfigCheck.failure("No system found to visualize.")
        return ConfigCheck.success()
