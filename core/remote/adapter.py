"""Remote store adapter: record CRUD and sorted queries against the remote database.

Updates:
  v0.2.0 - 2026-09-08 - Register change subscriptions and expose account status.
  v0.1.1 - 2026-09-04 - Drop undecodable records from fetches instead of failing them.
  v0.1.0 - 2026-08-31 - Introduce RemoteStoreAdapter over the database protocol.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from models.records import RecordType, record_type_of

from ..exceptions import (
    DecodeError,
    RemoteAuthenticationError,
    RemoteDatabaseError,
    RemoteRecordNotFound,
    RemoteUnavailable,
    RemoteWriteError,
)
from .codec import decode_record, encode_record
from .database import AccountStatus

if TYPE_CHECKING:
    from models.records import Record

    from .database import RemoteRecordDatabase

logger = logging.getLogger("prompt_playground.remote")

# (remote sort field, ascending, local sort key)
_FETCH_ORDER: dict[RecordType, tuple[str, bool, str]] = {
    RecordType.PROMPT: ("modifiedAt", False, "modified_at"),
    RecordType.PROJECT: ("name", True, "name"),
    RecordType.SAVED_OUTPUT: ("createdAt", False, "created_at"),
}


class RemoteStoreAdapter:
    """Translate records to the remote schema and map client failures to app errors.

    No retry policy lives here: callers decide whether a failed write is
    re-issued.
    """

    def __init__(self, database: RemoteRecordDatabase) -> None:
        self._database = database

    @property
    def database(self) -> RemoteRecordDatabase:
        return self._database

    async def account_status(self) -> AccountStatus:
        """Return the remote session status, degrading errors to ``COULD_NOT_DETERMINE``."""
        try:
            return await self._database.account_status()
        except RemoteDatabaseError:
            logger.warning("Unable to determine remote account status", exc_info=True)
            return AccountStatus.COULD_NOT_DETERMINE

    async def fetch_all(self, record_type: RecordType) -> list[Any]:
        """Return every decodable record of *record_type* in its canonical order."""
        sort_field, ascending, local_key = _FETCH_ORDER[record_type]
        try:
            remote_records = await self._database.query(
                record_type.value,
                sort_field=sort_field,
                ascending=ascending,
            )
        except RemoteAuthenticationError as exc:
            raise RemoteUnavailable(
                f"Remote session is not authorized to read {record_type.value} records"
            ) from exc
        except RemoteDatabaseError as exc:
            raise RemoteUnavailable(f"Failed to fetch {record_type.value} records: {exc}") from exc

        decoded: list[Any] = []
        dropped = 0
        for remote in remote_records:
            try:
                decoded.append(decode_record(record_type, remote))
            except DecodeError as exc:
                dropped += 1
                logger.warning(
                    "Dropping malformed remote record",
                    extra={
                        "record_type": record_type.value,
                        "record_name": remote.record_name,
                        "reason": str(exc),
                    },
                )
        decoded.sort(key=lambda record: getattr(record, local_key), reverse=not ascending)
        logger.debug(
            "Fetched remote records",
            extra={
                "record_type": record_type.value,
                "count": len(decoded),
                "dropped": dropped,
            },
        )
        return decoded

    async def save(self, record: Record) -> Any:
        """Create (no remote handle) or update *record*; return the server-confirmed copy."""
        record_type = record_type_of(record)
        remote = encode_record(record)
        operation = "update" if remote.record_name else "create"
        try:
            saved = await self._database.save(remote)
        except RemoteDatabaseError as exc:
            raise RemoteWriteError(
                f"Failed to {operation} {record_type.value} {record.id}: {exc}"
            ) from exc
        try:
            confirmed = decode_record(record_type, saved)
        except DecodeError as exc:
            raise RemoteWriteError(
                f"Remote store returned an unreadable {record_type.value} record"
            ) from exc
        logger.debug(
            "Saved remote record",
            extra={
                "record_type": record_type.value,
                "record_id": str(record.id),
                "record_name": saved.record_name,
                "operation": operation,
            },
        )
        return confirmed

    async def delete(self, record_type: RecordType, remote_ref: str | None) -> None:
        """Delete the remote record named *remote_ref*."""
        if not remote_ref:
            raise RemoteWriteError(
                f"Cannot delete a {record_type.value} record that has no remote handle"
            )
        try:
            await self._database.delete(record_type.value, remote_ref)
        except RemoteRecordNotFound as exc:
            raise RemoteWriteError(
                f"{record_type.value} record {remote_ref} was already deleted"
            ) from exc
        except RemoteDatabaseError as exc:
            raise RemoteWriteError(
                f"Failed to delete {record_type.value} record {remote_ref}: {exc}"
            ) from exc

    async def register_subscriptions(self) -> dict[RecordType, str]:
        """Subscribe to remote changes for every record type; failures are only logged."""
        registered: dict[RecordType, str] = {}
        for record_type in RecordType:
            try:
                registered[record_type] = await self._database.save_subscription(
                    record_type.value
                )
            except RemoteDatabaseError:
                logger.warning(
                    "Failed to register change subscription",
                    extra={"record_type": record_type.value},
                    exc_info=True,
                )
        return registered


__all__ = ["RemoteStoreAdapter"]
