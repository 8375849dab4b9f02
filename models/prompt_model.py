"""Prompt data model definitions.

Updates:
  v0.3.1 - 2026-10-17 - Keep stored blank titles when hydrating records.
  v0.3.0 - 2026-09-02 - Track optional project membership, favourites, and remote handles.
  v0.2.0 - 2026-08-21 - Add tag normalisation and token-based output size estimates.
  v0.1.0 - 2026-08-14 - Initial Prompt schema with serialization helpers.
"""
from __future__ import annotations

import math
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_PROMPT_TITLE = "New Prompt"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000

# Rough output-size heuristics: 1 token ~ 4 characters ~ 0.75 words.
CHARACTERS_PER_TOKEN = 4
WORDS_PER_TOKEN = 0.75


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def ensure_uuid(value: Any) -> uuid.UUID:
    """Parse arbitrary UUID representations into a uuid.UUID instance."""
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def ensure_optional_uuid(value: Any) -> uuid.UUID | None:
    """Return a UUID for populated values and ``None`` for empty ones."""
    if value is None or value == "":
        return None
    return ensure_uuid(value)


def ensure_datetime(value: Any) -> datetime:
    """Parse incoming datetime values (isoformat strings or datetime)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return _utc_now()
    parsed = datetime.fromisoformat(str(value))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def normalize_tags(items: Iterable[Any] | str | None) -> list[str]:
    """Return trimmed tags de-duplicated case-insensitively, keeping first-seen order."""
    if items is None:
        return []
    if isinstance(items, str):
        items = [items]
    tags: list[str] = []
    seen: set[str] = set()
    for raw in items:
        text = str(raw).strip()
        if not text:
            continue
        key = text.casefold()
        if key in seen:
            continue
        seen.add(key)
        tags.append(text)
    return tags


def validate_generation_parameters(temperature: float, max_tokens: int) -> None:
    """Raise ``ValueError`` when generation parameters fall outside their ranges."""
    if isinstance(temperature, bool) or not 0.0 <= float(temperature) <= 1.0:
        raise ValueError(f"temperature must be within [0, 1], got {temperature!r}")
    if isinstance(max_tokens, bool) or int(max_tokens) != max_tokens or max_tokens <= 0:
        raise ValueError(f"max_tokens must be a positive integer, got {max_tokens!r}")


@dataclass(slots=True)
class Prompt:
    """Reusable prompt template plus the parameters used to run it."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    title: str = DEFAULT_PROMPT_TITLE
    system_text: str = ""
    user_text: str = ""
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    tags: list[str] = field(default_factory=list)
    project_id: uuid.UUID | None = None
    is_favorite: bool = False
    created_at: datetime = field(default_factory=_utc_now)
    modified_at: datetime = field(default_factory=_utc_now)
    remote_ref: str | None = None

    def __post_init__(self) -> None:
        """Validate parameters and keep timestamps ordered."""
        validate_generation_parameters(self.temperature, self.max_tokens)
        self.temperature = float(self.temperature)
        self.max_tokens = int(self.max_tokens)
        self.tags = normalize_tags(self.tags)
        if self.modified_at < self.created_at:
            self.modified_at = self.created_at

    @property
    def estimated_characters(self) -> int:
        """Approximate output length in characters implied by ``max_tokens``."""
        return self.max_tokens * CHARACTERS_PER_TOKEN

    @property
    def estimated_words(self) -> int:
        """Approximate output length in words implied by ``max_tokens``."""
        return math.floor(self.max_tokens * WORDS_PER_TOKEN)

    def touch(self) -> None:
        """Advance ``modified_at`` to now without ever moving it backwards."""
        self.modified_at = max(_utc_now(), self.modified_at)

    def matches(self, query: str) -> bool:
        """Return True when *query* occurs in the title, texts, or any tag."""
        needle = query.casefold()
        if not needle:
            return True
        haystacks = (self.title, self.system_text, self.user_text, *self.tags)
        return any(needle in value.casefold() for value in haystacks)

    def to_record(self) -> dict[str, Any]:
        """Return a JSON-serialisable mapping for local blob storage."""
        return {
            "id": str(self.id),
            "title": self.title,
            "system_text": self.system_text,
            "user_text": self.user_text,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "tags": list(self.tags),
            "project_id": str(self.project_id) if self.project_id else None,
            "is_favorite": self.is_favorite,
            "created_at": self.created_at.isoformat(),
            "modified_at": self.modified_at.isoformat(),
            "remote_ref": self.remote_ref,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Prompt:
        """Hydrate a Prompt from a stored mapping."""
        created_at = ensure_datetime(data.get("created_at"))
        modified_raw = data.get("modified_at")
        return cls(
            id=ensure_uuid(data["id"]),
            title=str(data.get("title", DEFAULT_PROMPT_TITLE)),
            system_text=str(data.get("system_text") or ""),
            user_text=str(data.get("user_text") or ""),
            temperature=float(data.get("temperature", DEFAULT_TEMPERATURE)),
            max_tokens=int(data.get("max_tokens", DEFAULT_MAX_TOKENS)),
            tags=normalize_tags(data.get("tags")),
            project_id=ensure_optional_uuid(data.get("project_id")),
            is_favorite=bool(data.get("is_favorite", False)),
            created_at=created_at,
            modified_at=ensure_datetime(modified_raw) if modified_raw else created_at,
            remote_ref=data.get("remote_ref") or None,
        )


__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_PROMPT_TITLE",
    "DEFAULT_TEMPERATURE",
    "Prompt",
    "ensure_datetime",
    "ensure_optional_uuid",
    "ensure_uuid",
    "normalize_tags",
    "validate_generation_parameters",
]
