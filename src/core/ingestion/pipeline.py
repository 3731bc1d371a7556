"""
Assembly of the ingestion pipeline.

Wires the event bus, stage runner, coordinator and watchdog around a
parsing engine and a persistence implementation.
"""

import importlib
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from src.core.ingestion.cancellation import CancellationRegistry
from src.core.ingestion.coordinator import PipelineCoordinator
from src.core.ingestion.events import PipelineEventBus
from src.core.ingestion.interfaces import DocumentParsingEngine, ResumePersistence
from src.core.ingestion.processor import ResumeProcessingService
from src.core.ingestion.status_store import InMemoryPipelineStatusStore, PipelineStatusStore
from src.core.ingestion.watchdog import PipelineWatchdog
from src.services.parsed_resume_service import ParsedResumeDataService
from src.utils.config import AppSettings, get_settings
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class IngestionPipeline:
    """A fully wired pipeline."""

    event_bus: PipelineEventBus
    status_store: PipelineStatusStore
    parsed_data_service: ParsedResumeDataService
    processor: ResumeProcessingService
    coordinator: PipelineCoordinator
    watchdog: PipelineWatchdog

    def shutdown(self) -> None:
        self.watchdog.stop()
        self.coordinator.close()
        self.processor.shutdown()


def create_status_store(settings: Optional[AppSettings] = None) -> PipelineStatusStore:
    """Create the status store selected by ``PIPELINE_STATUS_BACKEND``."""
    settings = settings or get_settings()
    if settings.pipeline.status_backend == "mongodb":
        from src.data.repositories.pipeline_status_repository import MongoPipelineStatusStore

        logger.info("Using MongoDB pipeline status store")
        return MongoPipelineStatusStore()
    return InMemoryPipelineStatusStore()


def build_pipeline(
    engine: DocumentParsingEngine,
    persistence: ResumePersistence,
    status_store: Optional[PipelineStatusStore] = None,
    clock: Callable[[], datetime] = datetime.utcnow,
    stage_timeout: Optional[float] = None,
) -> IngestionPipeline:
    event_bus = PipelineEventBus()
    store = status_store or create_status_store()
    parsed_data_service = ParsedResumeDataService(persistence)
    processor = ResumeProcessingService(
        engine,
        parsed_data_service,
        event_bus,
        cancellations=CancellationRegistry(),
        stage_timeout=stage_timeout,
    )
    coordinator = PipelineCoordinator(store, processor, event_bus, clock=clock)
    watchdog = PipelineWatchdog(coordinator, clock=clock)
    return IngestionPipeline(
        event_bus=event_bus,
        status_store=store,
        parsed_data_service=parsed_data_service,
        processor=processor,
        coordinator=coordinator,
        watchdog=watchdog,
    )


def load_engine(target: str) -> DocumentParsingEngine:
    """
    Load a parsing engine from a ``module:attribute`` reference.

    The attribute may be an engine instance, or a class or factory that
    builds one when called without arguments.

    Raises:
        ValueError: If the reference is malformed or does not yield an engine
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Engine reference must look like 'module:factory', got {target!r}")

    module = importlib.import_module(module_name)
    try:
        obj = getattr(module, attribute)
    except AttributeError:
        raise ValueError(f"Module {module_name!r} has no attribute {attribute!r}") from None

    engine = obj if isinstance(obj, DocumentParsingEngine) else obj()
    if not isinstance(engine, DocumentParsingEngine):
        raise ValueError(f"{target} did not produce a DocumentParsingEngine")
    return engine
