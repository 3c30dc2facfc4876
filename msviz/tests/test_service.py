"""Unit tests for DiagramService — batch export of both diagram kinds."""

from unittest.mock import MagicMock

import pytest

from msviz.core.diagrams import DiagramService, MemoryRenderer, RenderError, ValidationError
from msviz.core.model import Contract, Interface, Microservice, System


def _make_system() -> System:
    system = System("My System")
    orders = Microservice("Orders")
    billing = Microservice("Billing")
    api = orders.provide(Interface("Order Api"))
    system.microservices.extend([orders, billing])
    system.contracts.append(Contract(api, billing))
    return system


def _service(graph_renderer=None, uml_renderer=None):
    return DiagramService(
        graph_renderer=graph_renderer or MemoryRenderer(write_source=True),
        uml_renderer=uml_renderer or MemoryRenderer(write_source=True),
    )


class TestExport:

    def test_exports_both_kinds(self, tmp_path):
        graph, uml = MemoryRenderer(), MemoryRenderer()

        results = _service(graph, uml).export(_make_system(), tmp_path)

        assert [r.kind for r in results] == ["simple", "uml"]
        assert all(r.ok for r in results)
        assert results[0].output_file == tmp_path / "MySystem_simpleDiagram.svg"
        assert results[1].output_file == tmp_path / "MySystem_umlDiagram.svg"
        assert graph.last_source.startswith("strict digraph G")
        assert uml.last_source.startswith("@startuml\n")

    def test_single_kind(self, tmp_path):
        uml = MemoryRenderer()
        results = _service(uml_renderer=uml).export(_make_system(), tmp_path, kinds=["uml"])
        assert [r.kind for r in results] == ["uml"]
        assert len(uml.calls) == 1

    def test_single_kind_as_string(self, tmp_path):
        uml = MemoryRenderer()
        results = _service(uml_renderer=uml).export(_make_system(), tmp_path, kinds="uml")
        assert [r.kind for r in results] == ["uml"]
        assert len(uml.calls) == 1

    def test_unknown_kind(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown diagram kind"):
            _service().export(_make_system(), tmp_path, kinds=["sequence"])

    def test_writes_source_files(self, tmp_path):
        results = _service().export(_make_system(), tmp_path, write_source=True)

        dot_file = tmp_path / "MySystem_simpleDiagram.dot"
        puml_file = tmp_path / "MySystem_umlDiagram.puml"
        assert [r.source_file for r in results] == [dot_file, puml_file]
        assert dot_file.read_text(encoding="utf-8") == results[0].source
        assert puml_file.read_text(encoding="utf-8") == results[1].source

    def test_invalid_contract_only_fails_uml(self, tmp_path):
        system = _make_system()
        system.contracts.append(Contract(system.microservices[0].interfaces[0], Microservice("Ghost")))

        simple, uml = _service().export(system, tmp_path)

        assert simple.ok
        assert simple.output_file.exists()
        assert isinstance(uml.error, ValidationError)
        assert not uml.output_file.exists()

    def test_render_failure_does_not_stop_batch(self, tmp_path):
        failing = MagicMock()
        failing.render.side_effect = RenderError("dot missing")
        uml = MemoryRenderer()

        simple, uml_result = _service(failing, uml).export(_make_system(), tmp_path)

        assert isinstance(simple.error, RenderError)
        assert simple.source is not None
        assert uml_result.ok
        assert len(uml.calls) == 1
