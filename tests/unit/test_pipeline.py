"""
Tests for src.core.ingestion.pipeline — assembly and engine loading.
"""

import textwrap

import pytest

from src.core.ingestion.pipeline import build_pipeline, create_status_store, load_engine
from src.core.ingestion.status_store import InMemoryPipelineStatusStore
from src.utils.config import AppSettings, PipelineSettings

ENGINE_MODULE = textwrap.dedent(
    """
    from src.core.ingestion.interfaces import DocumentParsingEngine
    from src.data.models import StructuredResume


    class EchoEngine(DocumentParsingEngine):
        def extract_text(self, file_location, mime_type):
            return file_location

        def structure_text(self, text):
            return StructuredResume(raw_text=text)


    engine = EchoEngine()
    not_an_engine = object
    """
)


@pytest.fixture
def engine_module(tmp_path, monkeypatch):
    (tmp_path / "sample_engines.py").write_text(ENGINE_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    return "sample_engines"


class TestLoadEngine:
    def test_instance(self, engine_module):
        engine = load_engine(f"{engine_module}:engine")
        assert engine.extract_text("/tmp/a.pdf", "application/pdf") == "/tmp/a.pdf"

    def test_class_is_instantiated(self, engine_module):
        engine = load_engine(f"{engine_module}:EchoEngine")
        assert type(engine).__name__ == "EchoEngine"

    @pytest.mark.parametrize("reference", ["no_colon", ":engine", "module:"])
    def test_malformed_reference(self, reference):
        with pytest.raises(ValueError):
            load_engine(reference)

    def test_missing_attribute(self, engine_module):
        with pytest.raises(ValueError, match="has no attribute"):
            load_engine(f"{engine_module}:missing")

    def test_wrong_type(self, engine_module):
        with pytest.raises(ValueError, match="did not produce"):
            load_engine(f"{engine_module}:not_an_engine")

    def test_missing_module(self):
        with pytest.raises(ImportError):
            load_engine("no_such_module_anywhere:engine")


class TestAssembly:
    def test_memory_backend_by_default(self):
        settings = AppSettings(pipeline=PipelineSettings(status_backend="memory"))
        assert isinstance(create_status_store(settings), InMemoryPipelineStatusStore)

    def test_build_pipeline_wires_components(self, engine, persistence, status_store):
        pipeline = build_pipeline(engine, persistence, status_store=status_store, stage_timeout=1)
        try:
            assert pipeline.status_store is status_store
            assert pipeline.coordinator.status_store is status_store
            assert pipeline.processor.cancellations is not None
            assert not pipeline.watchdog.running
        finally:
            pipeline.shutdown()
