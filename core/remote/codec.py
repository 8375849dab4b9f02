"""Translate records to and from the remote database's flat field mappings.

Every field round-trips through a string/number/timestamp encoding: booleans
are stored as 0/1, optional references as their string form or left absent,
and prompt tags as a JSON array string.

Updates:
  v0.3.0 - 2026-10-17 - Use promptID/systemPrompt/userPrompt for saved outputs.
  v0.2.0 - 2026-09-07 - Accept ISO-8601 strings and integral floats from JSON transports.
  v0.1.0 - 2026-08-30 - Initial encoders/decoders for prompts, projects, and outputs.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from models.project_model import DEFAULT_PROJECT_COLOR, Project
from models.prompt_model import Prompt
from models.records import Record, RecordType, record_type_of
from models.saved_output_model import SavedOutput

from ..exceptions import DecodeError
from .database import FieldValue, RemoteRecord

_MISSING = object()


def _field(fields: Mapping[str, Any], name: str, default: Any = _MISSING) -> Any:
    value = fields.get(name)
    if value is None:
        if default is _MISSING:
            raise DecodeError(f"Remote record is missing required field '{name}'")
        return default
    return value


def _read_str(fields: Mapping[str, Any], name: str, default: Any = _MISSING) -> str:
    value = _field(fields, name, default)
    if not isinstance(value, str):
        raise DecodeError(f"Field '{name}' must be a string, got {type(value).__name__}")
    return value


def _read_float(fields: Mapping[str, Any], name: str) -> float:
    value = _field(fields, name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Field '{name}' must be numeric, got {type(value).__name__}")
    return float(value)


def _read_int(fields: Mapping[str, Any], name: str, default: Any = _MISSING) -> int:
    value = _field(fields, name, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Field '{name}' must be an integer, got {type(value).__name__}")
    if isinstance(value, float) and not value.is_integer():
        raise DecodeError(f"Field '{name}' must be an integer, got {value!r}")
    return int(value)


def _read_bool(fields: Mapping[str, Any], name: str) -> bool:
    value = fields.get(name)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return value == 1
    raise DecodeError(f"Field '{name}' must be encoded as 0 or 1, got {value!r}")


def _read_datetime(fields: Mapping[str, Any], name: str) -> datetime:
    value = _field(fields, name)
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise DecodeError(f"Field '{name}' is not an ISO-8601 timestamp") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise DecodeError(f"Field '{name}' must be a timestamp, got {type(value).__name__}")


def _read_uuid(fields: Mapping[str, Any], name: str) -> uuid.UUID:
    text = _read_str(fields, name)
    try:
        return uuid.UUID(text)
    except ValueError as exc:
        raise DecodeError(f"Field '{name}' is not a valid identifier") from exc


def _read_optional_uuid(fields: Mapping[str, Any], name: str) -> uuid.UUID | None:
    if not fields.get(name):
        return None
    return _read_uuid(fields, name)


def _read_tags(fields: Mapping[str, Any]) -> list[str]:
    raw = fields.get("tags")
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DecodeError("Field 'tags' is not a JSON array") from exc
    else:
        parsed = raw
    if not isinstance(parsed, list):
        raise DecodeError("Field 'tags' is not a JSON array")
    return [str(item) for item in parsed]


# ---------------------------------------------------------------------------
# Encoders
# ---------------------------------------------------------------------------


def encode_prompt(prompt: Prompt) -> dict[str, FieldValue]:
    fields: dict[str, FieldValue] = {
        "id": str(prompt.id),
        "title": prompt.title,
        "systemText": prompt.system_text,
        "userText": prompt.user_text,
        "temperature": prompt.temperature,
        "maxTokens": prompt.max_tokens,
        "tags": json.dumps(prompt.tags, ensure_ascii=False),
        "isFavorite": 1 if prompt.is_favorite else 0,
        "createdAt": prompt.created_at,
        "modifiedAt": prompt.modified_at,
    }
    if prompt.project_id is not None:
        fields["projectId"] = str(prompt.project_id)
    return fields


def encode_project(project: Project) -> dict[str, FieldValue]:
    return {
        "id": str(project.id),
        "name": project.name,
        "description": project.description,
        "color": project.color_tag,
        "createdAt": project.created_at,
        "modifiedAt": project.modified_at,
    }


def encode_saved_output(output: SavedOutput) -> dict[str, FieldValue]:
    fields: dict[str, FieldValue] = {
        "id": str(output.id),
        "promptID": str(output.prompt_id),
        "output": output.output_text,
        "systemPrompt": output.system_text,
        "userPrompt": output.user_text,
        "temperature": output.temperature,
        "maxTokens": output.max_tokens,
        "isFavorite": 1 if output.is_favorite else 0,
        "createdAt": output.created_at,
        "notes": output.notes,
    }
    if output.actual_tokens_used is not None:
        fields["actualTokensUsed"] = output.actual_tokens_used
    return fields


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


def decode_prompt(remote: RemoteRecord) -> Prompt:
    fields = remote.fields
    try:
        return Prompt(
            id=_read_uuid(fields, "id"),
            title=_read_str(fields, "title"),
            system_text=_read_str(fields, "systemText"),
            user_text=_read_str(fields, "userText"),
            temperature=_read_float(fields, "temperature"),
            max_tokens=_read_int(fields, "maxTokens"),
            tags=_read_tags(fields),
            project_id=_read_optional_uuid(fields, "projectId"),
            is_favorite=_read_bool(fields, "isFavorite"),
            created_at=_read_datetime(fields, "createdAt"),
            modified_at=_read_datetime(fields, "modifiedAt"),
            remote_ref=remote.record_name,
        )
    except ValueError as exc:
        raise DecodeError(f"Prompt record {remote.record_name} is invalid: {exc}") from exc


def decode_project(remote: RemoteRecord) -> Project:
    fields = remote.fields
    return Project(
        id=_read_uuid(fields, "id"),
        name=_read_str(fields, "name"),
        description=_read_str(fields, "description", ""),
        color_tag=_read_str(fields, "color", DEFAULT_PROJECT_COLOR),
        created_at=_read_datetime(fields, "createdAt"),
        modified_at=_read_datetime(fields, "modifiedAt"),
        remote_ref=remote.record_name,
    )


def decode_saved_output(remote: RemoteRecord) -> SavedOutput:
    fields = remote.fields
    try:
        return SavedOutput(
            id=_read_uuid(fields, "id"),
            prompt_id=_read_uuid(fields, "promptID"),
            output_text=_read_str(fields, "output"),
            system_text=_read_str(fields, "systemPrompt"),
            user_text=_read_str(fields, "userPrompt"),
            temperature=_read_float(fields, "temperature"),
            max_tokens=_read_int(fields, "maxTokens"),
            actual_tokens_used=_read_int(fields, "actualTokensUsed", 0) or None,
            is_favorite=_read_bool(fields, "isFavorite"),
            notes=_read_str(fields, "notes", ""),
            created_at=_read_datetime(fields, "createdAt"),
            remote_ref=remote.record_name,
        )
    except ValueError as exc:
        raise DecodeError(f"SavedOutput record {remote.record_name} is invalid: {exc}") from exc


_ENCODERS = {
    RecordType.PROMPT: encode_prompt,
    RecordType.PROJECT: encode_project,
    RecordType.SAVED_OUTPUT: encode_saved_output,
}

_DECODERS = {
    RecordType.PROMPT: decode_prompt,
    RecordType.PROJECT: decode_project,
    RecordType.SAVED_OUTPUT: decode_saved_output,
}


def encode_record(record: Record) -> RemoteRecord:
    """Return the remote representation of *record*, carrying its remote handle."""
    record_type = record_type_of(record)
    encoder: Any = _ENCODERS[record_type]
    return RemoteRecord(
        record_type=record_type.value,
        fields=encoder(record),
        record_name=record.remote_ref,
    )


def decode_record(record_type: RecordType, remote: RemoteRecord) -> Any:
    """Decode *remote* into the model for *record_type*, raising DecodeError when malformed."""
    if remote.record_type != record_type.value:
        raise DecodeError(
            f"Expected a {record_type.value} record, got {remote.record_type!r}"
        )
    return _DECODERS[record_type](remote)


__all__ = [
    "decode_project",
    "decode_prompt",
    "decode_record",
    "decode_saved_output",
    "encode_project",
    "encode_prompt",
    "encode_record",
    "encode_saved_output",
]
