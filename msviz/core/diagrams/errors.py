"""Error taxonomy for diagram generation.

Every failure of ``visualize`` is a ``DiagramError`` so batch callers can
catch one type and decide whether to continue with the next diagram.
"""


class DiagramError(Exception):
    """Base class for diagram generation failures."""


class ConfigurationError(DiagramError, ValueError):
    """A required builder field is unset or holds an unsupported value."""


class ValidationError(DiagramError, ValueError):
    """The domain model violates a rule the diagram depends on."""


class RenderError(DiagramError, RuntimeError):
    """The external renderer failed to produce the output file."""
