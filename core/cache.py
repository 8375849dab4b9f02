"""In-memory record cache owned by the repository façades.

Updates:
  v0.1.1 - 2026-09-04 - Add positional insert and keyed sort helpers for ordered slices.
  v0.1.0 - 2026-08-24 - Introduce LocalCacheStore with per-type ordered slices.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from models.records import RecordType, record_type_of

if TYPE_CHECKING:
    import uuid
    from collections.abc import Callable, Iterable

    from models.records import Record


class LocalCacheStore:
    """Three ordered record sequences keyed by identifier, unique per type.

    Lookups are linear scans; prompt libraries are user-authored and small.
    """

    def __init__(self) -> None:
        self._slices: dict[RecordType, list[Any]] = {kind: [] for kind in RecordType}

    def get(self, record_type: RecordType) -> list[Any]:
        """Return a shallow copy of the ordered slice for *record_type*."""
        return list(self._slices[record_type])

    def replace_all(self, record_type: RecordType, records: Iterable[Record]) -> None:
        """Swap the whole slice, keeping the first occurrence of duplicate identifiers."""
        seen: set[uuid.UUID] = set()
        ordered: list[Any] = []
        for record in records:
            if record.id in seen:
                continue
            seen.add(record.id)
            ordered.append(record)
        self._slices[record_type] = ordered

    def index_of(self, record_type: RecordType, record_id: uuid.UUID) -> int | None:
        """Return the position of *record_id* in its slice, or None."""
        for index, record in enumerate(self._slices[record_type]):
            if record.id == record_id:
                return index
        return None

    def find_by_id(self, record_type: RecordType, record_id: uuid.UUID) -> Any | None:
        """Return the cached record with *record_id*, if any."""
        index = self.index_of(record_type, record_id)
        if index is None:
            return None
        return self._slices[record_type][index]

    def upsert(self, record: Record) -> None:
        """Replace the record with the same identifier in place, else insert it first."""
        record_type = record_type_of(record)
        index = self.index_of(record_type, record.id)
        if index is None:
            self._slices[record_type].insert(0, record)
        else:
            self._slices[record_type][index] = record

    def insert(self, record: Record, index: int = 0) -> None:
        """Insert *record* at *index*, dropping any stale copy with the same identifier."""
        record_type = record_type_of(record)
        self.remove(record_type, record.id)
        self._slices[record_type].insert(index, record)

    def remove(self, record_type: RecordType, record_id: uuid.UUID) -> bool:
        """Remove *record_id* from its slice; return True when something was removed."""
        index = self.index_of(record_type, record_id)
        if index is None:
            return False
        del self._slices[record_type][index]
        return True

    def remove_where(self, record_type: RecordType, predicate: Callable[[Any], bool]) -> list[Any]:
        """Remove and return every record matching *predicate*."""
        kept: list[Any] = []
        removed: list[Any] = []
        for record in self._slices[record_type]:
            (removed if predicate(record) else kept).append(record)
        self._slices[record_type] = kept
        return removed

    def filter(self, record_type: RecordType, predicate: Callable[[Any], bool]) -> list[Any]:
        """Return records of *record_type* matching *predicate*, in cache order."""
        return [record for record in self._slices[record_type] if predicate(record)]

    def sort(
        self,
        record_type: RecordType,
        key: Callable[[Any], Any],
        *,
        reverse: bool = False,
    ) -> None:
        """Stable in-place sort of one slice."""
        self._slices[record_type].sort(key=key, reverse=reverse)

    def clear(self) -> None:
        """Drop every cached record."""
        for record_type in RecordType:
            self._slices[record_type] = []


__all__ = ["LocalCacheStore"]
