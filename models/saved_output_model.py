"""Saved generation output data model.

Updates:
  v0.2.0 - 2026-09-03 - Snapshot generation parameters from a Prompt when saving output.
  v0.1.0 - 2026-08-22 - Add SavedOutput dataclass with record serialization helpers.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .prompt_model import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ensure_datetime,
    ensure_uuid,
    validate_generation_parameters,
)

if TYPE_CHECKING:
    from .prompt_model import Prompt


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


@dataclass(slots=True)
class SavedOutput:
    """Generated text kept alongside the parameters that produced it.

    ``prompt_id`` is a reference, not ownership: the snapshot fields keep the
    output meaningful after the source prompt is edited.
    """
    prompt_id: uuid.UUID
    output_text: str
    system_text: str = ""
    user_text: str = ""
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    actual_tokens_used: int | None = None
    is_favorite: bool = False
    notes: str = ""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    remote_ref: str | None = None

    def __post_init__(self) -> None:
        validate_generation_parameters(self.temperature, self.max_tokens)
        self.temperature = float(self.temperature)
        self.max_tokens = int(self.max_tokens)
        if self.actual_tokens_used is not None and self.actual_tokens_used <= 0:
            self.actual_tokens_used = None

    @classmethod
    def from_prompt(
        cls,
        prompt: Prompt,
        output_text: str,
        *,
        actual_tokens_used: int | None = None,
        notes: str = "",
    ) -> SavedOutput:
        """Capture *prompt*'s current parameters alongside *output_text*."""
        return cls(
            prompt_id=prompt.id,
            output_text=output_text,
            system_text=prompt.system_text,
            user_text=prompt.user_text,
            temperature=prompt.temperature,
            max_tokens=prompt.max_tokens,
            actual_tokens_used=actual_tokens_used,
            notes=notes,
        )

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping for local blob storage."""
        return {
            "id": str(self.id),
            "prompt_id": str(self.prompt_id),
            "output_text": self.output_text,
            "system_text": self.system_text,
            "user_text": self.user_text,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "actual_tokens_used": self.actual_tokens_used,
            "is_favorite": self.is_favorite,
            "notes": self.notes,
            "created_at": self.created_at.isoformat(),
            "remote_ref": self.remote_ref,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> SavedOutput:
        """Hydrate a SavedOutput from a stored mapping."""
        tokens_raw = data.get("actual_tokens_used")
        return cls(
            id=ensure_uuid(data["id"]),
            prompt_id=ensure_uuid(data["prompt_id"]),
            output_text=str(data.get("output_text") or ""),
            system_text=str(data.get("system_text") or ""),
            user_text=str(data.get("user_text") or ""),
            temperature=float(data.get("temperature", DEFAULT_TEMPERATURE)),
            max_tokens=int(data.get("max_tokens", DEFAULT_MAX_TOKENS)),
            actual_tokens_used=int(tokens_raw) if tokens_raw is not None else None,
            is_favorite=bool(data.get("is_favorite", False)),
            notes=str(data.get("notes") or ""),
            created_at=ensure_datetime(data.get("created_at")),
            remote_ref=data.get("remote_ref") or None,
        )


__all__ = ["SavedOutput"]
