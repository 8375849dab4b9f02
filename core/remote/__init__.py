"""Remote record database clients and the store adapter.

Updates:
  v0.2.0 - 2026-09-09 - Export the HTTPX record service client.
  v0.1.0 - 2026-08-31 - Introduce database protocol, codec, and adapter exports.
"""

from .adapter import RemoteStoreAdapter
from .codec import decode_record, encode_record
from .database import (
    AccountStatus,
    InMemoryRecordDatabase,
    RemoteRecord,
    RemoteRecordDatabase,
)
from .http_database import HttpRecordDatabase

__all__ = [
    "AccountStatus",
    "HttpRecordDatabase",
    "InMemoryRecordDatabase",
    "RemoteRecord",
    "RemoteRecordDatabase",
    "RemoteStoreAdapter",
    "decode_record",
    "encode_record",
]
