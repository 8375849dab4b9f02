"""Cloud-synced repository façade over the remote store adapter.

Updates:
  v0.2.1 - 2026-09-12 - Delete remote copies of outputs cascaded by prompt deletion.
  v0.2.0 - 2026-09-08 - Check account status and register subscriptions before the first fetch.
  v0.1.0 - 2026-08-31 - Introduce optimistic cloud repository.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from models.records import RecordType, SyncState

from ..events import RepositoryEventKind
from ..exceptions import RemoteWriteError
from ..remote.database import AccountStatus
from .base import RECORD_LABELS, PromptRepositoryBase, logger

if TYPE_CHECKING:
    from models.records import Record
    from models.saved_output_model import SavedOutput

    from ..events import RepositoryEventHub
    from ..remote.adapter import RemoteStoreAdapter


class CloudPromptRepository(PromptRepositoryBase):
    """Repository whose durable copy lives in the remote record database.

    Creates and updates are applied to the cache first and reconciled with
    the server-confirmed record. Deletes wait for the remote store so a
    failed delete leaves the cache untouched.
    """

    persisted_state = SyncState.SYNCED

    def __init__(
        self,
        adapter: RemoteStoreAdapter,
        events: RepositoryEventHub | None = None,
        *,
        register_subscriptions: bool = True,
    ) -> None:
        super().__init__(events)
        self._adapter = adapter
        self._register_subscriptions = register_subscriptions
        self._account_status = AccountStatus.COULD_NOT_DETERMINE
        self._subscriptions: dict[RecordType, str] = {}

    @property
    def account_status(self) -> AccountStatus:
        return self._account_status

    @property
    def subscriptions(self) -> dict[RecordType, str]:
        return dict(self._subscriptions)

    async def _prepare(self) -> None:
        status = await self._adapter.account_status()
        if status != self._account_status:
            self._account_status = status
            self._events.emit(RepositoryEventKind.ACCOUNT_STATUS_CHANGED, status=status.value)
        if status is not AccountStatus.AVAILABLE:
            logger.warning("Remote account unavailable", extra={"status": status.value})
            return
        if self._register_subscriptions:
            self._subscriptions = await self._adapter.register_subscriptions()

    async def _load_all(self, record_type: RecordType) -> list[Any]:
        return await self._adapter.fetch_all(record_type)

    async def _persist_save(self, record: Record) -> Any:
        return await self._adapter.save(record)

    async def _remove_persisted(self, record_type: RecordType, record: Record) -> bool:
        try:
            await self._adapter.delete(record_type, record.remote_ref)
        except RemoteWriteError as exc:
            self._set_error(f"Failed to delete {RECORD_LABELS[record_type][0]}: {exc}")
            return False
        return True

    async def _cascade_deleted_outputs(self, outputs: list[SavedOutput]) -> None:
        for output in outputs:
            if not output.remote_ref:
                continue
            try:
                await self._adapter.delete(RecordType.SAVED_OUTPUT, output.remote_ref)
            except RemoteWriteError as exc:
                logger.warning(
                    "Failed to delete remote copy of cascaded output",
                    extra={"record_id": str(output.id)},
                )
                self._set_error(f"Failed to delete output: {exc}")


__all__ = ["CloudPromptRepository"]
