"""Record type registry and per-record sync lifecycle states.

Updates:
  v0.1.1 - 2026-09-05 - Add SyncState to expose optimistic write progress.
  v0.1.0 - 2026-08-22 - Introduce RecordType and the Record union alias.
"""
from __future__ import annotations

from enum import Enum

from .project_model import Project
from .prompt_model import Prompt
from .saved_output_model import SavedOutput

type Record = Prompt | Project | SavedOutput


class RecordType(str, Enum):
    """Record kinds; values double as the remote record type names."""
    PROMPT = "PromptModel"
    PROJECT = "ProjectModel"
    SAVED_OUTPUT = "SavedOutputModel"


class SyncState(str, Enum):
    """Where a cached record stands relative to its persisted copy."""
    LOCAL_ONLY = "local_only"
    SYNCING = "syncing"
    SYNCED = "synced"
    SYNC_FAILED = "sync_failed"


_RECORD_CLASSES: dict[type, RecordType] = {
    Prompt: RecordType.PROMPT,
    Project: RecordType.PROJECT,
    SavedOutput: RecordType.SAVED_OUTPUT,
}


def record_type_of(record: Record) -> RecordType:
    """Return the RecordType for *record*, raising TypeError for foreign objects."""
    try:
        return _RECORD_CLASSES[type(record)]
    except KeyError as exc:
        raise TypeError(f"Unsupported record object: {type(record).__name__}") from exc


__all__ = ["Record", "RecordType", "SyncState", "record_type_of"]
