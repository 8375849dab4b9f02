"""Publish/subscribe hub that lets presentation code observe repository state.

Updates:
  v0.2.0 - 2026-09-12 - Publish purchase state changes through the same hub.
  v0.1.1 - 2026-09-05 - Add sync-state events for per-record write progress.
  v0.1.0 - 2026-08-28 - Introduce repository event hub with bounded history.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import uuid
    from collections.abc import Callable

    from models.records import RecordType

logger = logging.getLogger("prompt_playground.events")


class RepositoryEventKind(str, Enum):
    """Observable state changes emitted by the façades and managers."""
    RECORDS_CHANGED = "records_changed"
    LOADING_CHANGED = "loading_changed"
    ERROR_CHANGED = "error_changed"
    SYNC_STATE_CHANGED = "sync_state_changed"
    ACCOUNT_STATUS_CHANGED = "account_status_changed"
    PURCHASES_CHANGED = "purchases_changed"


@dataclass(slots=True, frozen=True)
class RepositoryEvent:
    """Immutable payload describing a single state change."""
    kind: RepositoryEventKind
    record_type: RecordType | None = None
    record_id: uuid.UUID | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class EventSubscription:
    """Disposable handle that removes its callback when closed."""
    def __init__(
        self,
        hub: RepositoryEventHub,
        callback: Callable[[RepositoryEvent], None],
    ) -> None:
        self._hub = hub
        self._callback = callback
        self._closed = False

    def close(self) -> None:
        """Detach the stored callback if it is still active."""
        if self._closed:
            return
        self._closed = True
        self._hub.unsubscribe(self._callback)

    def __enter__(self) -> EventSubscription:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class RepositoryEventHub:
    """Thread-safe publish/subscribe hub for delivering events to UI bindings."""
    def __init__(self, history_limit: int = 200) -> None:
        self._subscribers: list[Callable[[RepositoryEvent], None]] = []
        self._lock = threading.RLock()
        self._history: deque[RepositoryEvent] = deque(maxlen=history_limit)

    def subscribe(self, callback: Callable[[RepositoryEvent], None]) -> EventSubscription:
        """Register *callback* to receive future events."""
        with self._lock:
            self._subscribers.append(callback)
        return EventSubscription(self, callback)

    def unsubscribe(self, callback: Callable[[RepositoryEvent], None]) -> None:
        """Remove a previously subscribed callback if present."""
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

    def publish(self, event: RepositoryEvent) -> None:
        """Deliver *event* to all registered subscribers."""
        with self._lock:
            self._history.append(event)
            subscribers = list(self._subscribers)

        logger.debug(
            "Repository event",
            extra={
                "kind": event.kind.value,
                "record_type": event.record_type.value if event.record_type else None,
                "record_id": str(event.record_id) if event.record_id else None,
            },
        )

        for callback in subscribers:
            try:
                callback(event)
            except Exception:  # pragma: no cover - a broken listener must not break writes
                logger.exception("Repository event subscriber raised an exception")

    def emit(
        self,
        kind: RepositoryEventKind,
        *,
        record_type: RecordType | None = None,
        record_id: uuid.UUID | None = None,
        **payload: Any,
    ) -> None:
        """Build and publish an event in one call."""
        self.publish(
            RepositoryEvent(
                kind=kind,
                record_type=record_type,
                record_id=record_id,
                payload=dict(payload),
            )
        )

    def history(self) -> tuple[RepositoryEvent, ...]:
        """Return a snapshot of stored events."""
        with self._lock:
            return tuple(self._history)


__all__ = [
    "EventSubscription",
    "RepositoryEvent",
    "RepositoryEventHub",
    "RepositoryEventKind",
]
