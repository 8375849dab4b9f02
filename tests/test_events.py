"""Tests for the repository event hub."""

from __future__ import annotations

import uuid

from core.events import RepositoryEvent, RepositoryEventHub, RepositoryEventKind
from models import RecordType


def test_emit_delivers_event_to_subscribers() -> None:
    hub = RepositoryEventHub()
    received: list[RepositoryEvent] = []
    hub.subscribe(received.append)
    record_id = uuid.uuid4()

    hub.emit(
        RepositoryEventKind.SYNC_STATE_CHANGED,
        record_type=RecordType.PROMPT,
        record_id=record_id,
        state="synced",
    )

    assert len(received) == 1
    assert received[0].kind is RepositoryEventKind.SYNC_STATE_CHANGED
    assert received[0].record_id == record_id
    assert received[0].payload == {"state": "synced"}


def test_closed_subscription_stops_delivery() -> None:
    hub = RepositoryEventHub()
    received: list[RepositoryEvent] = []

    with hub.subscribe(received.append):
        hub.emit(RepositoryEventKind.LOADING_CHANGED, is_loading=True)
    hub.emit(RepositoryEventKind.LOADING_CHANGED, is_loading=False)

    assert len(received) == 1


def test_history_is_bounded() -> None:
    hub = RepositoryEventHub(history_limit=2)
    for _ in range(5):
        hub.emit(RepositoryEventKind.RECORDS_CHANGED)

    assert len(hub.history()) == 2
