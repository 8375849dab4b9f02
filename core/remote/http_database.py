"""HTTPX client for a CloudKit-web-services-style remote record database.

Updates:
  v0.2.0 - 2026-09-09 - Follow query continuation markers and register subscriptions.
  v0.1.1 - 2026-09-07 - Retry transient query failures with exponential backoff.
  v0.1.0 - 2026-09-01 - Introduce JSON record service client with typed field wrappers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from ..exceptions import RemoteAuthenticationError, RemoteDatabaseError, RemoteRecordNotFound
from ..retry import ReadRetryPolicy
from .database import AccountStatus, RemoteRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from .database import FieldValue

logger = logging.getLogger("prompt_playground.remote.http")

_AUTH_STATUS_CODES = {401, 421}
_SUBSCRIPTION_EVENTS = ["create", "update", "delete"]


def _to_millis(value: datetime) -> int:
    aware = value if value.tzinfo else value.replace(tzinfo=UTC)
    return int(aware.timestamp() * 1000)


def _from_millis(value: Any) -> datetime:
    return datetime.fromtimestamp(int(value) / 1000, tz=UTC)


def encode_field(value: FieldValue) -> dict[str, Any]:
    """Wrap a primitive field value with its wire type."""
    if isinstance(value, datetime):
        return {"value": _to_millis(value), "type": "TIMESTAMP"}
    if isinstance(value, bool):
        return {"value": int(value), "type": "INT64"}
    if isinstance(value, int):
        return {"value": value, "type": "INT64"}
    if isinstance(value, float):
        return {"value": value, "type": "DOUBLE"}
    return {"value": str(value), "type": "STRING"}


def decode_field(payload: Any) -> Any:
    """Unwrap a typed field payload; unknown shapes pass through unchanged."""
    if not isinstance(payload, dict) or "value" not in payload:
        return payload
    value = payload["value"]
    field_type = str(payload.get("type") or "").upper()
    if value is None:
        return None
    try:
        if field_type == "TIMESTAMP":
            return _from_millis(value)
        if field_type == "INT64":
            return int(value)
        if field_type == "DOUBLE":
            return float(value)
    except (TypeError, ValueError):
        return value
    return value


def record_to_payload(record: RemoteRecord) -> dict[str, Any]:
    """Serialise a RemoteRecord into the service's JSON shape."""
    payload: dict[str, Any] = {
        "recordType": record.record_type,
        "fields": {name: encode_field(value) for name, value in record.fields.items()},
    }
    if record.record_name:
        payload["recordName"] = record.record_name
    return payload


def payload_to_record(payload: Mapping[str, Any]) -> RemoteRecord:
    """Hydrate a RemoteRecord from the service's JSON shape."""
    raw_fields = payload.get("fields") or {}
    fields = {str(name): decode_field(value) for name, value in raw_fields.items()}
    modified = payload.get("modified")
    modified_at = None
    if isinstance(modified, dict) and modified.get("timestamp") is not None:
        modified_at = _from_millis(modified["timestamp"])
    return RemoteRecord(
        record_type=str(payload.get("recordType") or ""),
        fields={name: value for name, value in fields.items() if value is not None},
        record_name=payload.get("recordName"),
        modified_at=modified_at,
    )


@dataclass(slots=True)
class HttpRecordDatabase:
    """HTTPX-backed remote record database client.

    ``base_url`` points at the database root, e.g.
    ``https://records.example.com/database/1/<container>/<environment>/private``.
    """

    base_url: str
    api_token: str | None = None
    timeout: float = 15.0
    read_attempts: int = 3
    client_factory: Callable[[], httpx.AsyncClient] | None = None
    retry_delay_seconds: float = 0.5

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            raise ValueError("Remote database base URL is required")
        self.base_url = self.base_url.strip().rstrip("/")
        if self.api_token is not None:
            self.api_token = self.api_token.strip() or None

    def _build_client(self) -> tuple[httpx.AsyncClient, bool]:
        if self.client_factory is not None:
            return self.client_factory(), False
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        client = httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=self.timeout)
        return client, True

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: Mapping[str, Any] | None = None,
        attempts: int = 1,
    ) -> dict[str, Any]:
        client, manage_client = self._build_client()
        try:

            async def _send_request() -> httpx.Response:
                response = await client.request(method, path, json=payload)
                response.raise_for_status()
                return response

            policy = ReadRetryPolicy(
                max_attempts=attempts,
                base_delay_seconds=self.retry_delay_seconds,
            )
            response = await policy.run(_send_request)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            if status_code in _AUTH_STATUS_CODES:
                raise RemoteAuthenticationError(
                    f"Record service rejected the session ({status_code})"
                ) from exc
            raise RemoteDatabaseError(
                f"Record service request {method} {path} failed ({status_code})"
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteDatabaseError(f"Record service request {method} {path} failed") from exc
        finally:
            if manage_client:
                await client.aclose()
        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteDatabaseError("Record service returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise RemoteDatabaseError("Record service returned an unexpected payload")
        return data

    async def account_status(self) -> AccountStatus:
        try:
            await self._request("GET", "/users/current", attempts=self.read_attempts)
        except RemoteAuthenticationError:
            return AccountStatus.NO_ACCOUNT
        except RemoteDatabaseError as exc:
            cause = exc.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 503:
                return AccountStatus.TEMPORARILY_UNAVAILABLE
            return AccountStatus.COULD_NOT_DETERMINE
        return AccountStatus.AVAILABLE

    async def query(
        self,
        record_type: str,
        *,
        sort_field: str,
        ascending: bool,
    ) -> list[RemoteRecord]:
        body: dict[str, Any] = {
            "query": {
                "recordType": record_type,
                "sortBy": [{"fieldName": sort_field, "ascending": ascending}],
            }
        }
        records: list[RemoteRecord] = []
        while True:
            data = await self._request(
                "POST",
                "/records/query",
                payload=body,
                attempts=self.read_attempts,
            )
            for entry in data.get("records") or []:
                if isinstance(entry, dict) and not entry.get("serverErrorCode"):
                    records.append(payload_to_record(entry))
            marker = data.get("continuationMarker")
            if not marker:
                break
            body = {**body, "continuationMarker": marker}
        logger.debug(
            "Record service query completed",
            extra={"record_type": record_type, "count": len(records)},
        )
        return records

    async def _modify(self, operation: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", "/records/modify", payload={"operations": [operation]})
        results = data.get("records") or []
        if not results or not isinstance(results[0], dict):
            raise RemoteDatabaseError("Record service returned no result for the operation")
        result = results[0]
        error_code = result.get("serverErrorCode")
        if error_code == "NOT_FOUND":
            raise RemoteRecordNotFound(str(result.get("reason") or "Record not found"))
        if error_code in {"AUTHENTICATION_FAILED", "AUTHENTICATION_REQUIRED"}:
            raise RemoteAuthenticationError(str(result.get("reason") or error_code))
        if error_code:
            raise RemoteDatabaseError(f"{error_code}: {result.get('reason') or 'write rejected'}")
        return result

    async def save(self, record: RemoteRecord) -> RemoteRecord:
        operation_type = "forceUpdate" if record.record_name else "create"
        result = await self._modify(
            {"operationType": operation_type, "record": record_to_payload(record)}
        )
        return payload_to_record(result)

    async def delete(self, record_type: str, record_name: str) -> None:
        await self._modify(
            {
                "operationType": "forceDelete",
                "record": {"recordType": record_type, "recordName": record_name},
            }
        )

    async def save_subscription(self, record_type: str) -> str:
        subscription_id = f"{record_type}-changes"
        data = await self._request(
            "POST",
            "/subscriptions/modify",
            payload={
                "operations": [
                    {
                        "operationType": "create",
                        "subscription": {
                            "subscriptionID": subscription_id,
                            "subscriptionType": "query",
                            "query": {"recordType": record_type},
                            "firesOn": _SUBSCRIPTION_EVENTS,
                        },
                    }
                ]
            },
        )
        results = data.get("subscriptions") or []
        if results and isinstance(results[0], dict):
            if results[0].get("serverErrorCode"):
                raise RemoteDatabaseError(
                    f"Subscription for {record_type} rejected: {results[0]['serverErrorCode']}"
                )
            return str(results[0].get("subscriptionID") or subscription_id)
        return subscription_id


__all__ = [
    "HttpRecordDatabase",
    "decode_field",
    "encode_field",
    "payload_to_record",
    "record_to_payload",
]
