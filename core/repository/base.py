"""Shared repository façade state, queries, and optimistic mutation flows.

Updates:
  v0.4.0 - 2026-10-17 - Chain persistence calls per record; match non-blank search queries as typed.
  v0.3.0 - 2026-09-10 - Track per-type fetch errors separately from the error slot.
  v0.2.0 - 2026-09-05 - Publish per-record sync states through the event hub.
  v0.1.0 - 2026-08-27 - Extract façade contract shared by cloud and local repositories.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from models.project_model import Project
from models.prompt_model import Prompt
from models.records import RecordType, SyncState, record_type_of
from models.saved_output_model import SavedOutput

from ..cache import LocalCacheStore
from ..events import RepositoryEventHub, RepositoryEventKind
from ..exceptions import PromptPlaygroundError

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from models.records import Record

logger = logging.getLogger("prompt_playground.repository")

RECORD_LABELS: dict[RecordType, tuple[str, str]] = {
    RecordType.PROMPT: ("prompt", "prompts"),
    RecordType.PROJECT: ("project", "projects"),
    RecordType.SAVED_OUTPUT: ("output", "saved outputs"),
}

# (attribute, descending) defining each slice's canonical order
CANONICAL_ORDER: dict[RecordType, tuple[str, bool]] = {
    RecordType.PROMPT: ("modified_at", True),
    RecordType.PROJECT: ("name", False),
    RecordType.SAVED_OUTPUT: ("created_at", True),
}


def sort_canonical(record_type: RecordType, records: Iterable[Any]) -> list[Any]:
    """Return *records* in the canonical order for *record_type* (stable)."""
    attribute, descending = CANONICAL_ORDER[record_type]
    return sorted(records, key=lambda record: getattr(record, attribute), reverse=descending)


class PromptRepositoryBase:
    """Façade contract shared by the cloud-synced and local-only repositories.

    The façade is the only writer of its cache. All mutation entry points run
    on one asyncio event loop, so cache updates never interleave mid-operation.
    Failures are caught here and land in the single ``last_error`` slot.

    Subclasses provide the persistence hooks: ``_load_all``,
    ``_persist_save``, ``_remove_persisted``, ``_after_local_change`` and
    ``_cascade_deleted_outputs``.
    """

    persisted_state: SyncState = SyncState.SYNCED

    def __init__(self, events: RepositoryEventHub | None = None) -> None:
        self._events = events or RepositoryEventHub()
        self._cache = LocalCacheStore()
        self._sync_states: dict[uuid.UUID, SyncState] = {}
        self._fetch_errors: dict[RecordType, str] = {}
        self._last_error: str | None = None
        self._is_loading = False
        self._write_locks: dict[uuid.UUID, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def events(self) -> RepositoryEventHub:
        return self._events

    @property
    def prompts(self) -> list[Prompt]:
        return self._cache.get(RecordType.PROMPT)

    @property
    def projects(self) -> list[Project]:
        return self._cache.get(RecordType.PROJECT)

    @property
    def saved_outputs(self) -> list[SavedOutput]:
        return self._cache.get(RecordType.SAVED_OUTPUT)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def fetch_errors(self) -> dict[RecordType, str]:
        return dict(self._fetch_errors)

    def sync_state(self, record_id: uuid.UUID) -> SyncState | None:
        """Return the sync state of a cached record, or None when it is not cached."""
        state = self._sync_states.get(record_id)
        if state is not None:
            return state
        for record_type in RecordType:
            if self._cache.find_by_id(record_type, record_id) is not None:
                return SyncState.LOCAL_ONLY
        return None

    def acknowledge_error(self) -> None:
        """Clear the error slot after the user has seen it."""
        self._clear_error()

    def report_error(self, message: str) -> None:
        """Overwrite the error slot; used by collaborators layered above the façade."""
        self._set_error(message)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_prompt(self, prompt_id: uuid.UUID) -> Prompt | None:
        return self._cache.find_by_id(RecordType.PROMPT, prompt_id)

    def find_project(self, project_id: uuid.UUID) -> Project | None:
        return self._cache.find_by_id(RecordType.PROJECT, project_id)

    def search_prompts(self, query: str) -> list[Prompt]:
        """Case-insensitive substring search over title, texts, and tags, in cache order.

        A blank query returns every prompt; otherwise *query* is matched as given.
        """
        if not query.strip():
            return self.prompts
        return self._cache.filter(RecordType.PROMPT, lambda prompt: prompt.matches(query))

    def prompts_for_project(self, project: Project) -> list[Prompt]:
        return self._cache.filter(
            RecordType.PROMPT, lambda prompt: prompt.project_id == project.id
        )

    def prompts_without_project(self) -> list[Prompt]:
        return self._cache.filter(RecordType.PROMPT, lambda prompt: prompt.project_id is None)

    def saved_outputs_for_prompt(self, prompt_id: uuid.UUID) -> list[SavedOutput]:
        return self._cache.filter(
            RecordType.SAVED_OUTPUT, lambda output: output.prompt_id == prompt_id
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Refetch every record type concurrently; one failing fetch does not stop the others."""
        self._set_loading(True)
        try:
            await self._prepare()
            await asyncio.gather(*(self.refresh(record_type) for record_type in RecordType))
        finally:
            self._set_loading(False)

    async def refresh(self, record_type: RecordType) -> bool:
        """Replace the cache slice for *record_type* with freshly loaded records."""
        try:
            records = await self._load_all(record_type)
        except PromptPlaygroundError as exc:
            message = f"Failed to fetch {RECORD_LABELS[record_type][1]}: {exc}"
            logger.warning(message)
            self._fetch_errors[record_type] = message
            self._set_error(message)
            fallback = self._fallback_records(record_type)
            if fallback is not None:
                self._apply_fetched(record_type, fallback)
            return False
        self._fetch_errors.pop(record_type, None)
        self._apply_fetched(record_type, records)
        return True

    def _apply_fetched(self, record_type: RecordType, records: list[Any]) -> None:
        stale_ids = {record.id for record in self._cache.get(record_type)}
        self._cache.replace_all(record_type, records)
        for record in self._cache.get(record_type):
            stale_ids.discard(record.id)
            self._sync_states[record.id] = self.persisted_state
        for record_id in stale_ids:
            self._sync_states.pop(record_id, None)
        self._notify_records(record_type)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_prompt(self, prompt: Prompt) -> Prompt:
        """Insert *prompt* at the front of the cache, then persist it."""
        record = dataclasses.replace(prompt)
        self._cache.insert(record, 0)
        return await self._commit(record)

    async def add_project(self, project: Project) -> Project | None:
        """Insert *project* in name order, then persist it; drafts without a name are refused."""
        if not project.is_valid:
            self._set_error("Project name is required")
            return None
        record = dataclasses.replace(project)
        self._cache.insert(record, self._project_insert_index(record))
        return await self._commit(record)

    async def add_output(self, output: SavedOutput) -> SavedOutput:
        """Insert *output* at the front of the cache, then persist it."""
        record = dataclasses.replace(output)
        self._cache.insert(record, 0)
        return await self._commit(record)

    async def update_prompt(self, prompt: Prompt) -> Prompt:
        """Stamp ``modified_at``, move the prompt to the top of the cache, then persist it."""
        record = self._revision(RecordType.PROMPT, prompt)
        previous = self.find_prompt(record.id)
        if previous is not None and previous.modified_at > record.modified_at:
            record.modified_at = previous.modified_at
        record.touch()
        self._place_updated_prompt(record)
        return await self._commit(record)

    async def update_project(self, project: Project) -> Project | None:
        """Stamp ``modified_at``, replace the cached project, then persist it."""
        if not project.is_valid:
            self._set_error("Project name is required")
            return None
        record = self._revision(RecordType.PROJECT, project)
        record.touch()
        self._cache.upsert(record)
        self._cache.sort(RecordType.PROJECT, key=lambda item: item.name)
        return await self._commit(record)

    async def update_output(self, output: SavedOutput) -> SavedOutput:
        """Replace the cached output (favourite flag, notes), then persist it."""
        record = self._revision(RecordType.SAVED_OUTPUT, output)
        self._cache.upsert(record)
        return await self._commit(record)

    async def delete_prompt(self, prompt: Prompt) -> bool:
        """Delete *prompt* and cascade to its saved outputs once the deletion is persisted."""
        if not await self._remove_after_pending_writes(RecordType.PROMPT, prompt):
            return False
        self._clear_error()
        self._forget(RecordType.PROMPT, prompt.id)
        orphans = self._cache.remove_where(
            RecordType.SAVED_OUTPUT, lambda output: output.prompt_id == prompt.id
        )
        for output in orphans:
            self._sync_states.pop(output.id, None)
        if orphans:
            self._notify_records(RecordType.SAVED_OUTPUT)
        await self._after_local_change(RecordType.PROMPT, RecordType.SAVED_OUTPUT)
        await self._cascade_deleted_outputs(orphans)
        return True

    async def delete_project(self, project: Project) -> bool:
        """Delete *project*, then detach every prompt that referenced it (one write each)."""
        if not await self._remove_after_pending_writes(RecordType.PROJECT, project):
            return False
        self._clear_error()
        self._forget(RecordType.PROJECT, project.id)
        await self._after_local_change(RecordType.PROJECT)
        for prompt in self.prompts_for_project(project):
            await self.update_prompt(dataclasses.replace(prompt, project_id=None))
        return True

    async def delete_output(self, output: SavedOutput) -> bool:
        """Delete a single saved output once the deletion is persisted."""
        if not await self._remove_after_pending_writes(RecordType.SAVED_OUTPUT, output):
            return False
        self._clear_error()
        self._forget(RecordType.SAVED_OUTPUT, output.id)
        await self._after_local_change(RecordType.SAVED_OUTPUT)
        return True

    async def _commit(self, record: Any) -> Any:
        """Persist an optimistic cache entry and reconcile it with the confirmed copy.

        Writes for one identifier run one after another, so a revision queued
        behind a pending create inherits the handle that create was assigned.
        """
        record_type = record_type_of(record)
        label = RECORD_LABELS[record_type][0]
        self._set_sync_state(record_type, record.id, SyncState.SYNCING)
        self._notify_records(record_type)
        async with self._write_lock(record.id):
            if record.remote_ref is None:
                cached = self._cache.find_by_id(record_type, record.id)
                if cached is not None and cached.remote_ref:
                    record.remote_ref = cached.remote_ref
            try:
                confirmed = await self._persist_save(record)
            except PromptPlaygroundError as exc:
                logger.warning(
                    "Persisting %s failed; keeping optimistic copy",
                    label,
                    extra={"record_id": str(record.id), "reason": str(exc)},
                )
                self._set_sync_state(record_type, record.id, SyncState.SYNC_FAILED)
                self._set_error(f"Failed to save {label}: {exc}")
                return self._cache.find_by_id(record_type, record.id) or record
            cached = self._cache.find_by_id(record_type, confirmed.id)
            if cached is not None and cached is not record:
                # a newer revision is queued; keep it and hand it the handle
                cached.remote_ref = confirmed.remote_ref
                return confirmed
            self._cache.upsert(confirmed)
            self._set_sync_state(record_type, confirmed.id, self.persisted_state)
            self._clear_error()
            self._notify_records(record_type)
            return confirmed

    def _write_lock(self, record_id: uuid.UUID) -> asyncio.Lock:
        lock = self._write_locks.get(record_id)
        if lock is None:
            lock = self._write_locks[record_id] = asyncio.Lock()
        return lock

    async def _remove_after_pending_writes(self, record_type: RecordType, record: Any) -> bool:
        """Remove the persisted copy once queued writes for the record have settled."""
        async with self._write_lock(record.id):
            removed = await self._remove_persisted(record_type, self._current(record_type, record))
        if removed:
            self._write_locks.pop(record.id, None)
        return removed

    # ------------------------------------------------------------------
    # Cache placement helpers
    # ------------------------------------------------------------------

    def _place_updated_prompt(self, prompt: Prompt) -> None:
        """Re-sort prompts newest first with *prompt* ahead of equal-or-older entries."""
        others = [item for item in self.prompts if item.id != prompt.id]
        others = sort_canonical(RecordType.PROMPT, others)
        position = next(
            (index for index, item in enumerate(others) if item.modified_at <= prompt.modified_at),
            len(others),
        )
        others.insert(position, prompt)
        self._cache.replace_all(RecordType.PROMPT, others)

    def _project_insert_index(self, project: Project) -> int:
        for index, existing in enumerate(self._cache.get(RecordType.PROJECT)):
            if existing.name > project.name:
                return index
        return len(self._cache.get(RecordType.PROJECT))

    def _revision(self, record_type: RecordType, record: Any) -> Any:
        """Copy *record*, inheriting the cached remote handle when the copy lacks one."""
        revision = dataclasses.replace(record)
        cached = self._cache.find_by_id(record_type, record.id)
        if revision.remote_ref is None and cached is not None:
            revision.remote_ref = cached.remote_ref
        return revision

    def _current(self, record_type: RecordType, record: Any) -> Any:
        """Prefer the cached copy, which carries the latest remote handle."""
        return self._cache.find_by_id(record_type, record.id) or record

    def _forget(self, record_type: RecordType, record_id: uuid.UUID) -> None:
        self._cache.remove(record_type, record_id)
        self._sync_states.pop(record_id, None)
        self._notify_records(record_type)

    # ------------------------------------------------------------------
    # State publication
    # ------------------------------------------------------------------

    def _set_error(self, message: str) -> None:
        self._last_error = message
        self._events.emit(RepositoryEventKind.ERROR_CHANGED, message=message)

    def _clear_error(self) -> None:
        if self._last_error is None:
            return
        self._last_error = None
        self._events.emit(RepositoryEventKind.ERROR_CHANGED, message=None)

    def _set_loading(self, value: bool) -> None:
        if self._is_loading == value:
            return
        self._is_loading = value
        self._events.emit(RepositoryEventKind.LOADING_CHANGED, is_loading=value)

    def _set_sync_state(
        self,
        record_type: RecordType,
        record_id: uuid.UUID,
        state: SyncState,
    ) -> None:
        self._sync_states[record_id] = state
        self._events.emit(
            RepositoryEventKind.SYNC_STATE_CHANGED,
            record_type=record_type,
            record_id=record_id,
            state=state.value,
        )

    def _notify_records(self, record_type: RecordType) -> None:
        self._events.emit(RepositoryEventKind.RECORDS_CHANGED, record_type=record_type)

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    async def _prepare(self) -> None:
        """Run before the initial fetch fan-out."""

    async def _load_all(self, record_type: RecordType) -> list[Any]:
        raise NotImplementedError

    def _fallback_records(self, record_type: RecordType) -> list[Any] | None:
        """Records to show when loading fails; None keeps the current cache slice."""
        return None

    async def _persist_save(self, record: Record) -> Any:
        raise NotImplementedError

    async def _remove_persisted(self, record_type: RecordType, record: Record) -> bool:
        raise NotImplementedError

    async def _after_local_change(self, *record_types: RecordType) -> None:
        """Run after the cache changed outside of ``_commit``."""

    async def _cascade_deleted_outputs(self, outputs: list[SavedOutput]) -> None:
        """Propagate the removal of outputs orphaned by a prompt deletion."""


__all__ = [
    "CANONICAL_ORDER",
    "PromptRepositoryBase",
    "RECORD_LABELS",
    "logger",
    "sort_canonical",
]
