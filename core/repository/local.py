"""Local-only repository façade persisting record lists as SQLite blobs.

Updates:
  v0.2.0 - 2026-09-11 - Seed sample prompts on first launch and fall back to them on read failure.
  v0.1.0 - 2026-08-26 - Introduce blob-backed repository for the local-only mode.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from models.project_model import Project
from models.prompt_model import Prompt
from models.records import RecordType, SyncState, record_type_of
from models.saved_output_model import SavedOutput

from ..exceptions import PersistenceError
from ..local_storage import OUTPUTS_KEY, PROJECTS_KEY, PROMPTS_KEY
from .base import RECORD_LABELS, PromptRepositoryBase, logger, sort_canonical

if TYPE_CHECKING:
    from models.records import Record

    from ..events import RepositoryEventHub
    from ..local_storage import KeyValueBlobStore

_BLOB_KEYS: dict[RecordType, str] = {
    RecordType.PROMPT: PROMPTS_KEY,
    RecordType.PROJECT: PROJECTS_KEY,
    RecordType.SAVED_OUTPUT: OUTPUTS_KEY,
}

_RECORD_CLASSES: dict[RecordType, Any] = {
    RecordType.PROMPT: Prompt,
    RecordType.PROJECT: Project,
    RecordType.SAVED_OUTPUT: SavedOutput,
}


def sample_prompts() -> list[Prompt]:
    """Return the starter prompts shown on a fresh install."""
    return [
        Prompt(
            title="Code Review Assistant",
            system_text=(
                "You are an experienced software engineer who provides constructive code "
                "reviews. Focus on code quality, best practices, potential bugs, and "
                "suggestions for improvement."
            ),
            user_text="Please review this code and provide feedback:",
            temperature=0.3,
            max_tokens=1500,
        ),
        Prompt(
            title="Creative Writing Helper",
            system_text=(
                "You are a creative writing assistant who helps with storytelling, character "
                "development, and narrative structure. You provide imaginative and engaging "
                "suggestions."
            ),
            user_text="Help me develop this story idea:",
            temperature=0.8,
            max_tokens=2000,
        ),
        Prompt(
            title="Technical Explanation",
            system_text=(
                "You are a technical educator who explains complex concepts in simple, "
                "understandable terms. Use analogies and examples when helpful."
            ),
            user_text="Explain this technical concept:",
            temperature=0.4,
            max_tokens=1200,
        ),
        Prompt(
            title="Data Analysis Assistant",
            system_text=(
                "You are a data analyst who helps interpret data, identify trends, and suggest "
                "actionable insights. Be precise and data-driven in your responses."
            ),
            user_text="Analyze this data and provide insights:",
            temperature=0.2,
            max_tokens=1800,
        ),
    ]


class LocalPromptRepository(PromptRepositoryBase):
    """Repository whose durable copy is one JSON blob per record type.

    Every mutation rewrites the whole blob for the affected type. Deletes
    apply to the cache immediately because there is no remote step to wait on.
    """

    persisted_state = SyncState.LOCAL_ONLY

    def __init__(
        self,
        store: KeyValueBlobStore,
        events: RepositoryEventHub | None = None,
        *,
        seed_samples: bool = True,
    ) -> None:
        super().__init__(events)
        self._store = store
        self._seed_samples = seed_samples

    @property
    def store(self) -> KeyValueBlobStore:
        return self._store

    def _defaults(self, record_type: RecordType) -> list[Any]:
        if record_type is RecordType.PROMPT and self._seed_samples:
            return sample_prompts()
        return []

    async def _load_all(self, record_type: RecordType) -> list[Any]:
        key = _BLOB_KEYS[record_type]
        payload = await asyncio.to_thread(self._store.read_json, key)
        if payload is None:
            defaults = self._defaults(record_type)
            if defaults:
                await asyncio.to_thread(
                    self._store.write_json, key, [record.to_record() for record in defaults]
                )
                logger.info(
                    "Seeded local store",
                    extra={"record_type": record_type.value, "count": len(defaults)},
                )
            return sort_canonical(record_type, defaults)
        if not isinstance(payload, list):
            raise PersistenceError(f"Blob '{key}' does not hold a record list")
        record_class = _RECORD_CLASSES[record_type]
        records: list[Any] = []
        for entry in payload:
            try:
                records.append(record_class.from_record(entry))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning(
                    "Dropping malformed local record",
                    extra={"record_type": record_type.value, "reason": str(exc)},
                )
        return sort_canonical(record_type, records)

    def _fallback_records(self, record_type: RecordType) -> list[Any] | None:
        return self._defaults(record_type)

    async def _write_slice(self, record_type: RecordType) -> None:
        payload = [record.to_record() for record in self._cache.get(record_type)]
        await asyncio.to_thread(self._store.write_json, _BLOB_KEYS[record_type], payload)

    async def _persist_save(self, record: Record) -> Any:
        await self._write_slice(record_type_of(record))
        return record

    async def _remove_persisted(self, record_type: RecordType, record: Record) -> bool:
        return True

    async def _after_local_change(self, *record_types: RecordType) -> None:
        for record_type in record_types:
            try:
                await self._write_slice(record_type)
            except PersistenceError as exc:
                self._set_error(f"Failed to save {RECORD_LABELS[record_type][1]}: {exc}")


__all__ = ["LocalPromptRepository", "sample_prompts"]
