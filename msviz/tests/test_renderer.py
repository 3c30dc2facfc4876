"""Unit tests for renderer adapters — Graphviz, PlantUML JAR/HTTP, in-memory.

External tools are never invoked: graphviz.Source, subprocess.run,
shutil.which and httpx.get are patched.
"""

import subprocess
import zlib
from unittest.mock import MagicMock, patch

import graphviz
import httpx
import pytest

from msviz.core.diagrams.errors import RenderError
from msviz.core.diagrams.formats import OutputFormat
from msviz.core.diagrams.renderer import (
    GraphvizRenderer,
    MemoryRenderer,
    PlantUmlRenderer,
    plantuml_encode,
)
from msviz.core.settings import RendererSettings

SVG = '<?xml version="1.0"?><svg xmlns="http://www.w3.org/2000/svg"></svg>'
PUML = "@startuml\nallow_mixing\n@enduml\n"
MODULE = "msviz.core.diagrams.renderer"


def _jar(tmp_path):
    jar = tmp_path / "plantuml.jar"
    jar.write_bytes(b"")
    return jar


def _completed(stdout: str = SVG, returncode: int = 0, stderr: str = ""):
    return subprocess.CompletedProcess(
        args=[], returncode=returncode,
        stdout=stdout.encode("utf-8"), stderr=stderr.encode("utf-8"),
    )


def _response(status: int = 200, text: str = SVG) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.text = text
    return response


# ── Tests: Graphviz ──────────────────────────────────────────────────────


class TestGraphvizRenderer:

    def test_writes_piped_svg(self, tmp_path):
        target = tmp_path / "nested" / "graph.svg"
        with patch(f"{MODULE}.graphviz.Source") as source:
            source.return_value.pipe.return_value = SVG.encode("utf-8")
            result = GraphvizRenderer().render("digraph G {}", OutputFormat.SVG, target)

        source.assert_called_once_with("digraph G {}", engine="dot")
        source.return_value.pipe.assert_called_once_with(format="svg")
        assert result == target
        assert target.read_text(encoding="utf-8") == SVG

    def test_missing_executable(self, tmp_path):
        target = tmp_path / "graph.svg"
        with patch(f"{MODULE}.graphviz.Source") as source:
            source.return_value.pipe.side_effect = graphviz.ExecutableNotFound(["dot"])
            with pytest.raises(RenderError, match="not found"):
                GraphvizRenderer().render("digraph G {}", OutputFormat.SVG, target)
        assert not target.exists()

    def test_malformed_source(self, tmp_path):
        error = graphviz.CalledProcessError(1, ["dot"], stderr=b"syntax error in line 1")
        with patch(f"{MODULE}.graphviz.Source") as source:
            source.return_value.pipe.side_effect = error
            with pytest.raises(RenderError, match="syntax error"):
                GraphvizRenderer().render("digraph {", OutputFormat.SVG, tmp_path / "g.svg")

    def test_rejects_other_formats(self, tmp_path):
        with pytest.raises(RenderError):
            GraphvizRenderer().render("digraph G {}", "png", tmp_path / "g.png")


# ── Tests: PlantUML ──────────────────────────────────────────────────────


class TestPlantUmlEncode:

    def test_round_trips_through_deflate(self):
        alphabet = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_"
        encoded = plantuml_encode(PUML)

        bits = "".join(format(alphabet.index(c), "06b") for c in encoded)
        data = bytes(int(bits[i:i + 8], 2) for i in range(0, len(bits) - 7, 8))
        decompressor = zlib.decompressobj(-15)

        assert set(encoded) <= set(alphabet)
        assert len(encoded) % 4 == 0
        assert decompressor.decompress(data).decode("utf-8") == PUML


class TestPlantUmlRenderer:

    def test_renders_via_jar(self, tmp_path):
        settings = RendererSettings(plantuml_jar=_jar(tmp_path), timeout=5)
        target = tmp_path / "uml.svg"

        with patch(f"{MODULE}.shutil.which", return_value="/usr/bin/x"), \
                patch(f"{MODULE}.subprocess.run", return_value=_completed()) as run, \
                patch(f"{MODULE}.httpx.get") as get:
            PlantUmlRenderer(settings).render(PUML, OutputFormat.SVG, target)

        cmd = run.call_args.args[0]
        assert cmd[:2] == ["java", "-Djava.awt.headless=true"]
        assert cmd[-2:] == ["-tsvg", "-pipe"]
        assert run.call_args.kwargs["input"] == PUML.encode("utf-8")
        assert run.call_args.kwargs["timeout"] == 5
        get.assert_not_called()
        assert target.read_text(encoding="utf-8") == SVG

    def test_injects_smetana_without_graphviz(self, tmp_path):
        settings = RendererSettings(plantuml_jar=_jar(tmp_path))

        def which(name):
            return None if name == "dot" else "/usr/bin/java"

        with patch(f"{MODULE}.shutil.which", side_effect=which), \
                patch(f"{MODULE}.subprocess.run", return_value=_completed()) as run:
            PlantUmlRenderer(settings).render_svg(PUML)

        sent = run.call_args.kwargs["input"].decode("utf-8")
        assert sent.startswith("@startuml\n!pragma layout smetana\n")

    def test_falls_back_to_http_when_jar_fails(self, tmp_path):
        settings = RendererSettings(
            plantuml_jar=_jar(tmp_path), plantuml_server_url="http://puml.local/plantuml/",
        )
        with patch(f"{MODULE}.shutil.which", return_value="/usr/bin/x"), \
                patch(f"{MODULE}.subprocess.run", return_value=_completed("", 1, "boom")), \
                patch(f"{MODULE}.httpx.get", return_value=_response()) as get:
            svg = PlantUmlRenderer(settings).render_svg(PUML)

        assert svg == SVG
        url = get.call_args.args[0]
        assert url == f"http://puml.local/plantuml/svg/{plantuml_encode(PUML)}"

    def test_jar_timeout_falls_back(self, tmp_path):
        settings = RendererSettings(plantuml_jar=_jar(tmp_path))
        with patch(f"{MODULE}.shutil.which", return_value="/usr/bin/x"), \
                patch(f"{MODULE}.subprocess.run", side_effect=subprocess.TimeoutExpired("java", 60)), \
                patch(f"{MODULE}.httpx.get", return_value=_response()) as get:
            PlantUmlRenderer(settings).render_svg(PUML)
        get.assert_called_once()

    def test_missing_jar_uses_http(self, tmp_path):
        settings = RendererSettings(plantuml_jar=tmp_path / "missing.jar")
        with patch(f"{MODULE}.subprocess.run") as run, \
                patch(f"{MODULE}.httpx.get", return_value=_response()):
            PlantUmlRenderer(settings).render_svg(PUML)
        run.assert_not_called()

    def test_missing_jar_without_fallback(self, tmp_path):
        settings = RendererSettings(plantuml_jar=tmp_path / "missing.jar", http_fallback=False)
        with patch(f"{MODULE}.httpx.get") as get:
            with pytest.raises(RenderError, match="fallback is disabled"):
                PlantUmlRenderer(settings).render_svg(PUML)
        get.assert_not_called()

    def test_failing_jar_without_fallback(self, tmp_path):
        settings = RendererSettings(plantuml_jar=_jar(tmp_path), http_fallback=False)
        with patch(f"{MODULE}.shutil.which", return_value="/usr/bin/x"), \
                patch(f"{MODULE}.subprocess.run", side_effect=OSError("no java")):
            with pytest.raises(RenderError):
                PlantUmlRenderer(settings).render_svg(PUML)

    @pytest.mark.parametrize("response", [
        _response(status=500, text="oops"),
        _response(status=200, text="not svg at all"),
    ])
    def test_bad_http_response(self, tmp_path, response):
        settings = RendererSettings(plantuml_jar=tmp_path / "missing.jar")
        target = tmp_path / "uml.svg"
        with patch(f"{MODULE}.httpx.get", return_value=response):
            with pytest.raises(RenderError):
                PlantUmlRenderer(settings).render(PUML, OutputFormat.SVG, target)
        assert not target.exists()

    def test_http_transport_error(self, tmp_path):
        settings = RendererSettings(plantuml_jar=tmp_path / "missing.jar")
        with patch(f"{MODULE}.httpx.get", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(RenderError, match="request failed") as exc_info:
                PlantUmlRenderer(settings).render_svg(PUML)
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_availability_probed_once(self, tmp_path):
        settings = RendererSettings(plantuml_jar=_jar(tmp_path))
        renderer = PlantUmlRenderer(settings)
        with patch(f"{MODULE}.shutil.which", return_value="/usr/bin/x") as which, \
                patch(f"{MODULE}.subprocess.run", return_value=_completed()):
            renderer.render_svg(PUML)
            renderer.render_svg(PUML)
        # one probe for java, one for dot
        assert which.call_count == 2


# ── Tests: In-memory ─────────────────────────────────────────────────────


class TestMemoryRenderer:

    def test_records_calls_without_writing(self, tmp_path):
        renderer = MemoryRenderer()
        target = tmp_path / "x.svg"

        renderer.render("text", OutputFormat.SVG, target)

        assert renderer.last_source == "text"
        assert renderer.calls[0].output_file == target
        assert not target.exists()

    def test_optionally_writes_source(self, tmp_path):
        renderer = MemoryRenderer(write_source=True)
        target = tmp_path / "x.svg"

        renderer.render("text", OutputFormat.SVG, str(target))

        assert target.read_text(encoding="utf-8") == "text"
