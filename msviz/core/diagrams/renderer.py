"""Renderer adapters: diagram text -> image file.

The builders only produce text. A ``Renderer`` turns that text into an image
at a caller-supplied path and reports any failure as ``RenderError``:

  GraphvizRenderer   DOT source via the Graphviz ``dot`` executable
  PlantUmlRenderer   PlantUML source via a local JAR, falling back to a
                     PlantUML HTTP server (deflate + custom base64 URL encoding)
  MemoryRenderer     records what it was asked to render (tests, dry runs)

Output files are only written after rendering succeeded, so a failed render
never leaves a partial image behind.
"""

import logging
import shutil
import subprocess
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import graphviz
import httpx

from ..settings import RendererSettings, SettingsError, load_settings
from .errors import RenderError
from .formats import OutputFormat

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Renderer(ABC):
    """Capability to render diagram source text into an image file."""

    @abstractmethod
    def render(self, source: str, fmt: OutputFormat, output_file: PathLike) -> Path:
        """Render ``source`` as ``fmt`` into ``output_file``.

        Returns:
            The path of the written file

        Raises:
            RenderError: If the image could not be produced or written
        """
        ...


def _write_output(output_file: PathLike, data: bytes) -> Path:
    path = Path(output_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise RenderError(f"Cannot write diagram to {path}: {e}") from e
    logger.info("Diagram written to %s", path.absolute())
    return path


def _require_svg(fmt: OutputFormat) -> None:
    if fmt is not OutputFormat.SVG:
        raise RenderError(f"Renderer only supports SVG output, got {fmt!r}")


def _looks_like_svg(text: str) -> bool:
    return text.strip().startswith("<") and "<svg" in text[:500]


# ---------------------------------------------------------------------------
# Graphviz
# ---------------------------------------------------------------------------


class GraphvizRenderer(Renderer):
    """Renders DOT text with the Graphviz ``dot`` executable.

    *A working Graphviz installation is required.*
    """

    def __init__(self, engine: str = "dot"):
        self.engine = engine

    def render(self, source: str, fmt: OutputFormat, output_file: PathLike) -> Path:
        _require_svg(fmt)
        try:
            data = graphviz.Source(source, engine=self.engine).pipe(format=fmt.value)
        except graphviz.ExecutableNotFound as e:
            raise RenderError(
                f"Graphviz '{self.engine}' executable not found; install Graphviz to render graph diagrams"
            ) from e
        except graphviz.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip()
            raise RenderError(f"Graphviz failed to render DOT source: {stderr or e}") from e
        return _write_output(output_file, data)


# ---------------------------------------------------------------------------
# PlantUML
# ---------------------------------------------------------------------------

_PLANTUML_ALPHABET = (
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"
)


def plantuml_encode(text: str) -> str:
    """Encode PlantUML text for a server URL: raw deflate, then PlantUML's base64."""
    data = zlib.compress(text.encode("utf-8"))[2:-4]  # strip zlib header/checksum

    chars: List[str] = []
    for i in range(0, len(data), 3):
        chunk = data[i:i + 3].ljust(3, b"\0")
        b1, b2, b3 = chunk[0], chunk[1], chunk[2]
        for sextet in (
            b1 >> 2,
            ((b1 & 0x3) << 4) | (b2 >> 4),
            ((b2 & 0xF) << 2) | (b3 >> 6),
            b3 & 0x3F,
        ):
            chars.append(_PLANTUML_ALPHABET[sextet & 0x3F])
    return "".join(chars)


class PlantUmlRenderer(Renderer):
    """Renders PlantUML text to SVG.

    Tries the local JAR first (``java -jar plantuml.jar -tsvg -pipe``), which
    has no source size limit. Falls back to the HTTP server when the JAR is
    missing or fails and ``settings.http_fallback`` is enabled.

    Without explicit ``settings`` the default settings are loaded on first
    use. JAR and Graphviz availability are probed once per renderer instance.
    """

    def __init__(self, settings: Optional[RendererSettings] = None):
        self._settings = settings
        self._jar_available: Optional[bool] = None
        self._graphviz_available: Optional[bool] = None

    @property
    def settings(self) -> RendererSettings:
        if self._settings is None:
            try:
                self._settings = load_settings()
            except SettingsError as e:
                raise RenderError(f"Cannot load PlantUML renderer settings: {e}") from e
        return self._settings

    def render(self, source: str, fmt: OutputFormat, output_file: PathLike) -> Path:
        _require_svg(fmt)
        svg = self.render_svg(source)
        return _write_output(output_file, svg.encode("utf-8"))

    def render_svg(self, puml: str) -> str:
        """Render PlantUML text to an SVG string.

        Raises:
            RenderError: If neither the JAR nor the HTTP server produced SVG.
        """
        if self._check_jar_available():
            svg = self._render_via_jar(puml)
            if svg is not None:
                logger.debug("Rendered via local JAR (%d chars SVG)", len(svg))
                return svg
            if not self.settings.http_fallback:
                raise RenderError("PlantUML JAR failed to render and HTTP fallback is disabled")
        elif not self.settings.http_fallback:
            raise RenderError(
                f"PlantUML JAR not available at {self.settings.plantuml_jar} "
                "and HTTP fallback is disabled"
            )

        return self._render_via_http(puml)

    # ── Availability ──────────────────────────────────────────────

    def _check_jar_available(self) -> bool:
        if self._jar_available is not None:
            return self._jar_available

        jar = self.settings.plantuml_jar
        if not jar.is_file():
            logger.info("PlantUML JAR not found at %s", jar)
            self._jar_available = False
        elif shutil.which("java") is None:
            logger.info("Java not in PATH — PlantUML JAR present but unusable")
            self._jar_available = False
        else:
            logger.info("PlantUML local JAR available at %s", jar)
            self._jar_available = True
        return self._jar_available

    def _has_graphviz(self) -> bool:
        if self._graphviz_available is None:
            self._graphviz_available = shutil.which("dot") is not None
            if not self._graphviz_available:
                logger.info(
                    "Graphviz (dot) not found — PlantUML will use built-in Smetana layout engine"
                )
        return self._graphviz_available

    def _ensure_smetana(self, puml: str) -> str:
        """Inject '!pragma layout smetana' after @startuml when dot is missing."""
        pragma = "!pragma layout smetana"
        if self._has_graphviz() or pragma in puml:
            return puml
        return puml.replace("@startuml", f"@startuml\n{pragma}", 1)

    # ── Rendering modes ───────────────────────────────────────────

    def _render_via_jar(self, puml: str) -> Optional[str]:
        """Pipe ``puml`` through the local JAR. None means "try something else"."""
        puml = self._ensure_smetana(puml)
        cmd = [
            "java",
            "-Djava.awt.headless=true",
            "-jar",
            str(self.settings.plantuml_jar),
            "-tsvg",
            "-pipe",
        ]

        try:
            result = subprocess.run(
                cmd,
                input=puml.encode("utf-8"),
                capture_output=True,
                timeout=self.settings.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("PlantUML JAR timed out after %ss", self.settings.timeout)
            return None
        except OSError as e:
            logger.warning("PlantUML JAR execution failed: %s", e)
            return None

        stdout = result.stdout.decode("utf-8", errors="replace")
        if result.returncode == 0 and _looks_like_svg(stdout):
            return stdout

        # Non-zero exit still yields an SVG describing the syntax error; treat as failure
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        logger.warning(
            "PlantUML JAR failed (exit=%d, stderr=%s)",
            result.returncode,
            stderr[:300] if stderr else "(empty)",
        )
        return None

    def _render_via_http(self, puml: str) -> str:
        server = self.settings.plantuml_server_url.rstrip("/")
        encoded = plantuml_encode(puml)
        url = f"{server}/svg/{encoded}"

        logger.debug("Rendering PlantUML via HTTP %s (encoded len=%d)", server, len(encoded))

        try:
            response = httpx.get(url, timeout=self.settings.timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            raise RenderError(f"PlantUML server request failed: {e}") from e

        if response.status_code != 200:
            raise RenderError(f"PlantUML server returned {response.status_code}")

        body = response.text
        if not _looks_like_svg(body):
            raise RenderError(f"PlantUML server returned unexpected content: {body[:200]}")
        return body


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderCall:
    source: str
    format: OutputFormat
    output_file: Path


class MemoryRenderer(Renderer):
    """Records every render request instead of producing an image.

    With ``write_source=True`` the source text is written to the target so
    callers relying on the file's existence keep working.
    """

    def __init__(self, write_source: bool = False):
        self.write_source = write_source
        self.calls: List[RenderCall] = []

    @property
    def last_source(self) -> Optional[str]:
        return self.calls[-1].source if self.calls else None

    def render(self, source: str, fmt: OutputFormat, output_file: PathLike) -> Path:
        path = Path(output_file)
        self.calls.append(RenderCall(source, fmt, path))
        if self.write_source:
            return _write_output(path, source.encode("utf-8"))
        return path
