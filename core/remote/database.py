"""Remote record database protocol and the in-process implementation.

The managed remote database is an external collaborator: a keyed, queryable
object store with last-write-wins semantics. This module fixes the narrow
client contract the remote store adapter relies on.

Updates:
  v0.2.0 - 2026-09-08 - Record change subscriptions and simulated failures in memory.
  v0.1.0 - 2026-08-30 - Introduce RemoteRecord, AccountStatus, and database protocol.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol, runtime_checkable

from ..exceptions import RemoteAuthenticationError, RemoteDatabaseError, RemoteRecordNotFound

type FieldValue = str | int | float | datetime


class AccountStatus(str, Enum):
    """Authorization state of the remote database session."""
    AVAILABLE = "available"
    NO_ACCOUNT = "no_account"
    RESTRICTED = "restricted"
    TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"
    COULD_NOT_DETERMINE = "could_not_determine"


@dataclass(slots=True)
class RemoteRecord:
    """Schema-less remote record: a flat mapping of field names to primitives."""
    record_type: str
    fields: dict[str, FieldValue] = field(default_factory=dict)
    record_name: str | None = None
    modified_at: datetime | None = None


@runtime_checkable
class RemoteRecordDatabase(Protocol):
    """Client contract for the managed remote record database."""

    async def account_status(self) -> AccountStatus:
        """Return the authorization state of the current session."""
        ...

    async def query(
        self,
        record_type: str,
        *,
        sort_field: str,
        ascending: bool,
    ) -> list[RemoteRecord]:
        """Return every record of *record_type* sorted by *sort_field*."""
        ...

    async def save(self, record: RemoteRecord) -> RemoteRecord:
        """Create or replace *record* and return the server copy."""
        ...

    async def delete(self, record_type: str, record_name: str) -> None:
        """Delete the record named *record_name*."""
        ...

    async def save_subscription(self, record_type: str) -> str:
        """Register a create/update/delete change subscription for *record_type*."""
        ...


def sort_remote_records(
    records: list[RemoteRecord],
    sort_field: str,
    *,
    ascending: bool,
) -> list[RemoteRecord]:
    """Sort by *sort_field*, placing records that lack the field last."""
    present = [record for record in records if record.fields.get(sort_field) is not None]
    missing = [record for record in records if record.fields.get(sort_field) is None]
    present.sort(key=lambda record: record.fields[sort_field], reverse=not ascending)
    return present + missing


class InMemoryRecordDatabase:
    """Dict-backed record database used for demo mode and tests.

    Assigns record names on create and stamps a server modification time on
    every write, mirroring what a managed record service does.
    """

    def __init__(self, status: AccountStatus = AccountStatus.AVAILABLE) -> None:
        self.status = status
        self.fail_writes = False
        self.fail_queries: set[str] = set()
        self.subscriptions: dict[str, str] = {}
        self._records: dict[str, dict[str, RemoteRecord]] = {}

    def _require_account(self) -> None:
        if self.status is not AccountStatus.AVAILABLE:
            raise RemoteAuthenticationError(f"Remote account status is {self.status.value}")

    def records(self, record_type: str) -> list[RemoteRecord]:
        """Return copies of the stored records of *record_type* (test helper)."""
        return [copy.deepcopy(record) for record in self._records.get(record_type, {}).values()]

    def insert_raw(self, record: RemoteRecord) -> RemoteRecord:
        """Store *record* verbatim, bypassing validation (test helper)."""
        stored = copy.deepcopy(record)
        if stored.record_name is None:
            stored.record_name = uuid.uuid4().hex
        self._records.setdefault(stored.record_type, {})[stored.record_name] = stored
        return copy.deepcopy(stored)

    async def account_status(self) -> AccountStatus:
        return self.status

    async def query(
        self,
        record_type: str,
        *,
        sort_field: str,
        ascending: bool,
    ) -> list[RemoteRecord]:
        self._require_account()
        if record_type in self.fail_queries:
            raise RemoteDatabaseError(f"Query for {record_type} failed")
        return sort_remote_records(self.records(record_type), sort_field, ascending=ascending)

    async def save(self, record: RemoteRecord) -> RemoteRecord:
        self._require_account()
        if self.fail_writes:
            raise RemoteDatabaseError(f"Write for {record.record_type} failed")
        stored = copy.deepcopy(record)
        if stored.record_name is None:
            stored.record_name = uuid.uuid4().hex
        stored.modified_at = datetime.now(UTC)
        self._records.setdefault(stored.record_type, {})[stored.record_name] = stored
        return copy.deepcopy(stored)

    async def delete(self, record_type: str, record_name: str) -> None:
        self._require_account()
        if self.fail_writes:
            raise RemoteDatabaseError(f"Delete for {record_type} failed")
        bucket = self._records.get(record_type, {})
        if record_name not in bucket:
            raise RemoteRecordNotFound(f"{record_type} record {record_name} does not exist")
        del bucket[record_name]

    async def save_subscription(self, record_type: str) -> str:
        self._require_account()
        subscription_id = self.subscriptions.get(record_type) or f"{record_type}-changes"
        self.subscriptions[record_type] = subscription_id
        return subscription_id


__all__ = [
    "AccountStatus",
    "FieldValue",
    "InMemoryRecordDatabase",
    "RemoteRecord",
    "RemoteRecordDatabase",
    "sort_remote_records",
]
