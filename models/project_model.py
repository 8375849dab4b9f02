"""Project data model grouping related prompts.

Updates:
  v0.1.1 - 2026-09-02 - Carry the remote handle assigned by the record store.
  v0.1.0 - 2026-08-21 - Add Project dataclass with draft validation.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .prompt_model import ensure_datetime, ensure_uuid

DEFAULT_PROJECT_NAME = "New Project"
DEFAULT_PROJECT_COLOR = "#007AFF"


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


@dataclass(slots=True)
class Project:
    """Named folder of prompts with an opaque display colour token."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = DEFAULT_PROJECT_NAME
    description: str = ""
    color_tag: str = DEFAULT_PROJECT_COLOR
    created_at: datetime = field(default_factory=_utc_now)
    modified_at: datetime = field(default_factory=_utc_now)
    remote_ref: str | None = None

    def __post_init__(self) -> None:
        if self.modified_at < self.created_at:
            self.modified_at = self.created_at

    @property
    def is_valid(self) -> bool:
        """Drafts may carry a blank name; persisted projects may not."""
        return bool(self.name.strip())

    def touch(self) -> None:
        """Advance ``modified_at`` to now without ever moving it backwards."""
        self.modified_at = max(_utc_now(), self.modified_at)

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping for local blob storage."""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "color_tag": self.color_tag,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
            "remote_ref": self.remote_ref,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Project:
        """Hydrate a Project from a stored mapping."""
        created_at = ensure_datetime(data.get("created_at"))
        modified_raw = data.get("modified_at")
        return cls(
            id=ensure_uuid(data["id"]),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            color_tag=str(data.get("color_tag") or DEFAULT_PROJECT_COLOR),
            created_at=created_at,
            modified_at=ensure_datetime(modified_raw) if modified_raw else created_at,
            remote_ref=data.get("remote_ref") or None,
        )


__all__ = ["DEFAULT_PROJECT_COLOR", "DEFAULT_PROJECT_NAME", "Project"]
