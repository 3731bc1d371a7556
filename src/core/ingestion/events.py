"""
In-process publish/subscribe for pipeline events.

The stage runner publishes progress events; the coordinator subscribes to
them. Neither holds a reference to the other.
"""

import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineEvent:
    """Base class for pipeline events."""

    job_id: str
    occurred_at: datetime = field(default_factory=datetime.utcnow, compare=False)


@dataclass(frozen=True)
class ProgressEvent(PipelineEvent):
    """A job reached a new progress percentage."""

    percent: int = 0
    message: Optional[str] = None


EventHandler = Callable[[Any], None]


class PipelineEventBus:
    """
    Synchronous event bus.

    Handlers run on the publishing thread, in subscription order. A handler
    exception propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: type[PipelineEvent], handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for an event type and its subclasses.

        Returns:
            A callable that removes the subscription
        """
        with self._lock:
            self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers[event_type]:
                    self._handlers[event_type].remove(handler)

        return unsubscribe

    def publish(self, event: PipelineEvent) -> None:
        with self._lock:
            handlers = [
                handler
                for event_type, registered in self._handlers.items()
                if isinstance(event, event_type)
                for handler in registered
            ]

        if not handlers:
            logger.debug(f"No subscribers for {type(event).__name__} on job {event.job_id}")
        for handler in handlers:
            handler(event)
