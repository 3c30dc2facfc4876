"""Shared constants for msviz.

This module contains constants that are used across multiple modules
to avoid duplication and ensure consistency.
"""

from pathlib import Path

# =============================================================================
# Paths
# =============================================================================

# Repository root (msviz/core/constants.py -> repo)
PROJECT_ROOT = Path(__file__).parents[2]

DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "msviz.yaml"

# =============================================================================
# PlantUML Rendering
# =============================================================================

DEFAULT_PLANTUML_JAR = PROJECT_ROOT / "tools" / "plantuml" / "plantuml.jar"

DEFAULT_PLANTUML_SERVER = "https://www.plantuml.com/plantuml"

# Seconds before a JAR or HTTP render is abandoned
DEFAULT_RENDER_TIMEOUT = 60

# =============================================================================
# Output File Naming
# =============================================================================

SIMPLE_DIAGRAM_SUFFIX = "_simpleDiagram"
UML_DIAGRAM_SUFFIX = "_umlDiagram"
