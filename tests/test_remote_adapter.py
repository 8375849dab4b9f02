"""Tests for the remote store adapter over the in-memory record database."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from core.exceptions import (
    RemoteAuthenticationError,
    RemoteUnavailable,
    RemoteWriteError,
)
from core.remote import (
    AccountStatus,
    InMemoryRecordDatabase,
    RemoteRecord,
    RemoteStoreAdapter,
    encode_record,
)
from models import Project, Prompt, RecordType

BASE = datetime(2026, 9, 1, tzinfo=UTC)


@pytest.mark.asyncio()
async def test_fetch_all_drops_malformed_records(database: InMemoryRecordDatabase) -> None:
    adapter = RemoteStoreAdapter(database)
    for offset in range(5):
        stamp = BASE + timedelta(minutes=offset)
        database.insert_raw(
            encode_record(Prompt(title=f"p{offset}", created_at=stamp, modified_at=stamp))
        )
    database.insert_raw(RemoteRecord(record_type="PromptModel", fields={"title": "broken"}))

    prompts = await adapter.fetch_all(RecordType.PROMPT)

    assert [prompt.title for prompt in prompts] == ["p4", "p3", "p2", "p1", "p0"]
    assert all(prompt.remote_ref for prompt in prompts)


@pytest.mark.asyncio()
async def test_fetch_all_sorts_projects_by_name(database: InMemoryRecordDatabase) -> None:
    adapter = RemoteStoreAdapter(database)
    for name in ("Zeta", "Alpha", "Mid"):
        await adapter.save(Project(name=name))

    projects = await adapter.fetch_all(RecordType.PROJECT)

    assert [project.name for project in projects] == ["Alpha", "Mid", "Zeta"]


@pytest.mark.asyncio()
async def test_fetch_all_maps_database_failures(database: InMemoryRecordDatabase) -> None:
    adapter = RemoteStoreAdapter(database)
    database.fail_queries.add("ProjectModel")

    with pytest.raises(RemoteUnavailable):
        await adapter.fetch_all(RecordType.PROJECT)
    assert await adapter.fetch_all(RecordType.PROMPT) == []


@pytest.mark.asyncio()
async def test_fetch_all_without_account_is_unavailable() -> None:
    adapter = RemoteStoreAdapter(InMemoryRecordDatabase(status=AccountStatus.NO_ACCOUNT))

    with pytest.raises(RemoteUnavailable) as excinfo:
        await adapter.fetch_all(RecordType.PROMPT)

    assert isinstance(excinfo.value.__cause__, RemoteAuthenticationError)


@pytest.mark.asyncio()
async def test_save_assigns_handle_then_updates_in_place(
    database: InMemoryRecordDatabase,
) -> None:
    adapter = RemoteStoreAdapter(database)

    created = await adapter.save(Prompt(title="first"))
    created.title = "renamed"
    updated = await adapter.save(created)

    assert created.remote_ref is not None
    assert updated.remote_ref == created.remote_ref
    stored = database.records("PromptModel")
    assert len(stored) == 1
    assert stored[0].fields["title"] == "renamed"


@pytest.mark.asyncio()
async def test_save_failure_raises_write_error(database: InMemoryRecordDatabase) -> None:
    adapter = RemoteStoreAdapter(database)
    database.fail_writes = True

    with pytest.raises(RemoteWriteError):
        await adapter.save(Prompt())


@pytest.mark.asyncio()
async def test_delete_requires_existing_handle(database: InMemoryRecordDatabase) -> None:
    adapter = RemoteStoreAdapter(database)
    saved = await adapter.save(Prompt())

    await adapter.delete(RecordType.PROMPT, saved.remote_ref)

    assert database.records("PromptModel") == []
    with pytest.raises(RemoteWriteError):
        await adapter.delete(RecordType.PROMPT, saved.remote_ref)
    with pytest.raises(RemoteWriteError):
        await adapter.delete(RecordType.PROMPT, None)


@pytest.mark.asyncio()
async def test_register_subscriptions_covers_every_record_type(
    database: InMemoryRecordDatabase,
) -> None:
    adapter = RemoteStoreAdapter(database)

    registered = await adapter.register_subscriptions()

    assert set(registered) == set(RecordType)
    assert database.subscriptions["PromptModel"] == "PromptModel-changes"


@pytest.mark.asyncio()
async def test_register_subscriptions_logs_failures() -> None:
    adapter = RemoteStoreAdapter(InMemoryRecordDatabase(status=AccountStatus.RESTRICTED))

    assert await adapter.register_subscriptions() == {}
    assert await adapter.account_status() is AccountStatus.RESTRICTED
