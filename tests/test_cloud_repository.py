"""Tests for the cloud-synced repository façade."""

from __future__ import annotations

import asyncio
import dataclasses
from typing import TYPE_CHECKING

import pytest

from core.events import RepositoryEventKind
from core.remote import AccountStatus, InMemoryRecordDatabase, RemoteStoreAdapter
from core.repository import CloudPromptRepository, sample_prompts
from models import Project, RecordType, SavedOutput, SyncState

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.events import RepositoryEvent, RepositoryEventHub
    from core.remote import RemoteRecord
    from models import Prompt


@pytest.mark.asyncio()
async def test_add_prompt_goes_first_and_syncs(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    await cloud_repository.add_prompt(make_prompt("older"))

    saved = await cloud_repository.add_prompt(make_prompt("newest"))

    assert [prompt.title for prompt in cloud_repository.prompts] == ["newest", "older"]
    assert saved.remote_ref is not None
    assert cloud_repository.prompts[0].remote_ref == saved.remote_ref
    assert cloud_repository.sync_state(saved.id) is SyncState.SYNCED
    assert len(database.records("PromptModel")) == 2
    assert cloud_repository.last_error is None


@pytest.mark.asyncio()
async def test_add_publishes_syncing_before_synced(
    cloud_repository: CloudPromptRepository,
    events: RepositoryEventHub,
    make_prompt: Callable[..., Prompt],
) -> None:
    received: list[RepositoryEvent] = []
    events.subscribe(received.append)

    await cloud_repository.add_prompt(make_prompt())

    states = [
        event.payload["state"]
        for event in received
        if event.kind is RepositoryEventKind.SYNC_STATE_CHANGED
    ]
    assert states == ["syncing", "synced"]


@pytest.mark.asyncio()
async def test_update_moves_prompt_to_top(
    cloud_repository: CloudPromptRepository,
    make_prompt: Callable[..., Prompt],
) -> None:
    first = await cloud_repository.add_prompt(make_prompt("A", minutes=0))
    await cloud_repository.add_prompt(make_prompt("B", minutes=5))
    assert [prompt.title for prompt in cloud_repository.prompts] == ["B", "A"]

    updated = await cloud_repository.update_prompt(dataclasses.replace(first, user_text="edit"))

    assert [prompt.title for prompt in cloud_repository.prompts] == ["A", "B"]
    assert updated.modified_at > first.modified_at
    assert updated.remote_ref == first.remote_ref


@pytest.mark.asyncio()
async def test_update_with_stale_copy_keeps_remote_handle(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    draft = make_prompt("draft")
    await cloud_repository.add_prompt(draft)

    await cloud_repository.update_prompt(dataclasses.replace(draft, title="final"))

    stored = database.records("PromptModel")
    assert [record.fields["title"] for record in stored] == ["final"]


@pytest.mark.asyncio()
async def test_delete_prompt_cascades_to_saved_outputs(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = await cloud_repository.add_prompt(make_prompt("with outputs"))
    other = await cloud_repository.add_prompt(make_prompt("other"))
    await cloud_repository.add_output(SavedOutput.from_prompt(prompt, "one"))
    await cloud_repository.add_output(SavedOutput.from_prompt(prompt, "two"))
    kept = await cloud_repository.add_output(SavedOutput.from_prompt(other, "kept"))

    assert await cloud_repository.delete_prompt(prompt) is True

    assert cloud_repository.find_prompt(prompt.id) is None
    assert cloud_repository.saved_outputs_for_prompt(prompt.id) == []
    assert [output.id for output in cloud_repository.saved_outputs] == [kept.id]
    assert [record.fields["output"] for record in database.records("SavedOutputModel")] == [
        "kept"
    ]
    assert cloud_repository.sync_state(prompt.id) is None


@pytest.mark.asyncio()
async def test_delete_project_detaches_prompts(
    cloud_repository: CloudPromptRepository,
    make_prompt: Callable[..., Prompt],
) -> None:
    project = await cloud_repository.add_project(Project(name="Research"))
    assert project is not None
    member = await cloud_repository.add_prompt(make_prompt("member", project_id=project.id))

    assert await cloud_repository.delete_project(project) is True

    assert cloud_repository.projects == []
    detached = cloud_repository.find_prompt(member.id)
    assert detached is not None
    assert detached.project_id is None
    assert cloud_repository.prompts_without_project() == [detached]


@pytest.mark.asyncio()
async def test_projects_stay_in_name_order(cloud_repository: CloudPromptRepository) -> None:
    for name in ("Zeta", "Alpha", "Mid"):
        await cloud_repository.add_project(Project(name=name))

    assert [project.name for project in cloud_repository.projects] == ["Alpha", "Mid", "Zeta"]


@pytest.mark.asyncio()
async def test_add_project_without_name_is_refused(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
) -> None:
    assert await cloud_repository.add_project(Project(name="  ")) is None

    assert cloud_repository.projects == []
    assert cloud_repository.last_error == "Project name is required"
    assert database.records("ProjectModel") == []


@pytest.mark.asyncio()
async def test_write_failure_keeps_optimistic_record(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    database.fail_writes = True

    result = await cloud_repository.add_prompt(make_prompt("offline"))

    assert [prompt.title for prompt in cloud_repository.prompts] == ["offline"]
    assert result.remote_ref is None
    assert cloud_repository.sync_state(result.id) is SyncState.SYNC_FAILED
    assert cloud_repository.last_error is not None
    assert cloud_repository.last_error.startswith("Failed to save prompt:")

    cloud_repository.acknowledge_error()
    assert cloud_repository.last_error is None


@pytest.mark.asyncio()
async def test_failed_delete_keeps_record(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = await cloud_repository.add_prompt(make_prompt("sticky"))
    output = await cloud_repository.add_output(SavedOutput.from_prompt(prompt, "kept output"))
    database.fail_writes = True

    assert await cloud_repository.delete_prompt(prompt) is False

    assert cloud_repository.find_prompt(prompt.id) is not None
    assert [item.id for item in cloud_repository.saved_outputs_for_prompt(prompt.id)] == [
        output.id
    ]
    assert len(database.records("SavedOutputModel")) == 1
    assert cloud_repository.last_error is not None
    assert cloud_repository.last_error.startswith("Failed to delete prompt:")


@pytest.mark.asyncio()
async def test_delete_without_remote_handle_is_refused(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    database.fail_writes = True
    unsynced = await cloud_repository.add_prompt(make_prompt("never synced"))
    database.fail_writes = False

    assert await cloud_repository.delete_prompt(unsynced) is False
    assert cloud_repository.find_prompt(unsynced.id) is not None


@pytest.mark.asyncio()
async def test_search_prompts(cloud_repository: CloudPromptRepository) -> None:
    for prompt in sample_prompts():
        await cloud_repository.add_prompt(prompt)

    titles = [prompt.title for prompt in cloud_repository.search_prompts("review")]

    assert titles == ["Code Review Assistant"]
    assert cloud_repository.search_prompts("zzz") == []
    assert len(cloud_repository.search_prompts("  ")) == 4


@pytest.mark.asyncio()
async def test_initialize_loads_every_type_and_registers_subscriptions(
    database: InMemoryRecordDatabase,
    events: RepositoryEventHub,
    make_prompt: Callable[..., Prompt],
) -> None:
    seeding = RemoteStoreAdapter(database)
    await seeding.save(make_prompt("A", minutes=1))
    await seeding.save(make_prompt("B", minutes=2))
    await seeding.save(Project(name="Research"))
    repository = CloudPromptRepository(RemoteStoreAdapter(database), events)

    await repository.initialize()

    assert [prompt.title for prompt in repository.prompts] == ["B", "A"]
    assert [project.name for project in repository.projects] == ["Research"]
    assert repository.account_status is AccountStatus.AVAILABLE
    assert set(repository.subscriptions) == set(RecordType)
    assert repository.is_loading is False
    assert repository.fetch_errors == {}


@pytest.mark.asyncio()
async def test_fetch_failure_does_not_block_other_types(
    database: InMemoryRecordDatabase,
    events: RepositoryEventHub,
    make_prompt: Callable[..., Prompt],
) -> None:
    await RemoteStoreAdapter(database).save(make_prompt("survivor"))
    database.fail_queries.add("ProjectModel")
    repository = CloudPromptRepository(RemoteStoreAdapter(database), events)

    await repository.initialize()

    assert [prompt.title for prompt in repository.prompts] == ["survivor"]
    assert set(repository.fetch_errors) == {RecordType.PROJECT}
    assert repository.last_error is not None
    assert repository.last_error.startswith("Failed to fetch projects:")

    database.fail_queries.clear()
    assert await repository.refresh(RecordType.PROJECT) is True
    assert repository.fetch_errors == {}


@pytest.mark.asyncio()
async def test_unavailable_account_skips_subscriptions(events: RepositoryEventHub) -> None:
    database = InMemoryRecordDatabase(status=AccountStatus.NO_ACCOUNT)
    repository = CloudPromptRepository(RemoteStoreAdapter(database), events)
    received: list[RepositoryEvent] = []
    events.subscribe(received.append)

    await repository.initialize()

    assert repository.account_status is AccountStatus.NO_ACCOUNT
    assert repository.subscriptions == {}
    assert database.subscriptions == {}
    assert set(repository.fetch_errors) == set(RecordType)
    assert any(event.kind is RepositoryEventKind.ACCOUNT_STATUS_CHANGED for event in received)


@pytest.mark.asyncio()
async def test_toggle_output_favourite_persists(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = await cloud_repository.add_prompt(make_prompt())
    output = await cloud_repository.add_output(SavedOutput.from_prompt(prompt, "text"))

    await cloud_repository.update_output(dataclasses.replace(output, is_favorite=True))

    assert cloud_repository.saved_outputs[0].is_favorite is True
    assert database.records("SavedOutputModel")[0].fields["isFavorite"] == 1


class _GatedDatabase(InMemoryRecordDatabase):
    """Holds every save until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def save(self, record: RemoteRecord) -> RemoteRecord:
        await self.release.wait()
        return await super().save(record)


class _LoadingObserverDatabase(InMemoryRecordDatabase):
    def __init__(self) -> None:
        super().__init__()
        self.repository: CloudPromptRepository | None = None
        self.loading_during_query: list[bool] = []

    async def query(
        self,
        record_type: str,
        *,
        sort_field: str,
        ascending: bool,
    ) -> list[RemoteRecord]:
        assert self.repository is not None
        self.loading_during_query.append(self.repository.is_loading)
        return await super().query(record_type, sort_field=sort_field, ascending=ascending)


@pytest.mark.asyncio()
async def test_is_loading_is_set_while_fetching(events: RepositoryEventHub) -> None:
    database = _LoadingObserverDatabase()
    repository = CloudPromptRepository(RemoteStoreAdapter(database), events)
    database.repository = repository
    received: list[RepositoryEvent] = []
    events.subscribe(received.append)

    await repository.initialize()

    assert database.loading_during_query == [True, True, True]
    assert [
        event.payload["is_loading"]
        for event in received
        if event.kind is RepositoryEventKind.LOADING_CHANGED
    ] == [True, False]
    assert repository.is_loading is False


@pytest.mark.asyncio()
async def test_latest_error_replaces_previous_one(
    cloud_repository: CloudPromptRepository,
    database: InMemoryRecordDatabase,
    events: RepositoryEventHub,
    make_prompt: Callable[..., Prompt],
) -> None:
    received: list[RepositoryEvent] = []
    events.subscribe(received.append)
    database.fail_writes = True

    await cloud_repository.add_prompt(make_prompt("offline"))
    first_error = cloud_repository.last_error
    assert first_error is not None
    assert first_error.startswith("Failed to save prompt:")

    assert await cloud_repository.add_project(Project(name="  ")) is None
    assert cloud_repository.last_error == "Project name is required"

    cloud_repository.acknowledge_error()
    assert cloud_repository.last_error is None
    assert [
        event.payload["message"]
        for event in received
        if event.kind is RepositoryEventKind.ERROR_CHANGED
    ] == [first_error, "Project name is required", None]


@pytest.mark.asyncio()
async def test_search_matches_query_as_typed(
    cloud_repository: CloudPromptRepository,
    make_prompt: Callable[..., Prompt],
) -> None:
    await cloud_repository.add_prompt(make_prompt("Review notes"))

    assert [prompt.title for prompt in cloud_repository.search_prompts("REVIEW")] == [
        "Review notes"
    ]
    assert cloud_repository.search_prompts(" review") == []


@pytest.mark.asyncio()
async def test_update_during_pending_create_reuses_remote_record(
    events: RepositoryEventHub,
    make_prompt: Callable[..., Prompt],
) -> None:
    database = _GatedDatabase()
    repository = CloudPromptRepository(RemoteStoreAdapter(database), events)
    prompt = make_prompt("draft")

    adding = asyncio.create_task(repository.add_prompt(prompt))
    await asyncio.sleep(0)
    editing = asyncio.create_task(
        repository.update_prompt(dataclasses.replace(prompt, user_text="edited"))
    )
    await asyncio.sleep(0)
    assert repository.sync_state(prompt.id) is SyncState.SYNCING
    database.release.set()
    await asyncio.gather(adding, editing)

    stored = database.records("PromptModel")
    assert len(stored) == 1
    assert stored[0].fields["userText"] == "edited"
    assert repository.prompts[0].user_text == "edited"
    assert repository.prompts[0].remote_ref == stored[0].record_name
    assert repository.sync_state(prompt.id) is SyncState.SYNCED


@pytest.mark.asyncio()
async def test_delete_during_pending_create_waits_for_remote_handle(
    events: RepositoryEventHub,
    make_prompt: Callable[..., Prompt],
) -> None:
    database = _GatedDatabase()
    repository = CloudPromptRepository(RemoteStoreAdapter(database), events)
    prompt = make_prompt("short lived")

    adding = asyncio.create_task(repository.add_prompt(prompt))
    await asyncio.sleep(0)
    deleting = asyncio.create_task(repository.delete_prompt(prompt))
    await asyncio.sleep(0)
    database.release.set()
    _, deleted = await asyncio.gather(adding, deleting)

    assert deleted is True
    assert repository.prompts == []
    assert database.records("PromptModel") == []
