"""Data models for Prompt Playground.

Updates: v0.3.0 - 2026-09-05 - Export RecordType and SyncState helpers.
Updates: v0.2.0 - 2026-08-22 - Export Project and SavedOutput dataclasses.
Updates: v0.1.0 - 2026-08-14 - Export Prompt dataclass.
"""

from .project_model import Project
from .prompt_model import Prompt
from .records import Record, RecordType, SyncState, record_type_of
from .saved_output_model import SavedOutput

__all__ = [
    "Project",
    "Prompt",
    "Record",
    "RecordType",
    "SavedOutput",
    "SyncState",
    "record_type_of",
]
