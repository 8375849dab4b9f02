"""Core service layer for Prompt Playground.

Updates:
  v0.3.0 - 2026-09-17 - Export support purchases, the prompt runner, and app service factory.
  v0.2.0 - 2026-09-11 - Export the local-only repository alongside the cloud façade.
  v0.1.0 - 2026-08-31 - Surface repositories, the remote adapter, and generation helpers.
"""

from .cache import LocalCacheStore
from .events import (
    EventSubscription,
    RepositoryEvent,
    RepositoryEventHub,
    RepositoryEventKind,
)
from .exceptions import (
    DecodeError,
    GenerationError,
    GenerationUnavailable,
    PersistenceError,
    PromptPlaygroundError,
    PurchaseError,
    RemoteAuthenticationError,
    RemoteDatabaseError,
    RemoteRecordNotFound,
    RemoteUnavailable,
    RemoteWriteError,
)
from .factory import (
    AppServices,
    build_app_services,
    build_generator,
    build_purchase_manager,
    build_repository,
)
from .generation import GenerationResult, LiteLLMTextGenerator, TextGenerator
from .local_storage import KeyValueBlobStore
from .purchases import (
    CommerceBackend,
    InMemoryCommerceBackend,
    Product,
    PurchaseOutcome,
    SupportPurchaseManager,
    TransactionUpdate,
)
from .remote import (
    AccountStatus,
    HttpRecordDatabase,
    InMemoryRecordDatabase,
    RemoteRecord,
    RemoteRecordDatabase,
    RemoteStoreAdapter,
)
from .repository import CloudPromptRepository, LocalPromptRepository, PromptRepositoryBase
from .runner import PromptRun, PromptRunner

__all__ = [
    "AccountStatus",
    "AppServices",
    "CloudPromptRepository",
    "CommerceBackend",
    "DecodeError",
    "EventSubscription",
    "GenerationError",
    "GenerationResult",
    "GenerationUnavailable",
    "HttpRecordDatabase",
    "InMemoryCommerceBackend",
    "InMemoryRecordDatabase",
    "KeyValueBlobStore",
    "LiteLLMTextGenerator",
    "LocalCacheStore",
    "LocalPromptRepository",
    "PersistenceError",
    "Product",
    "PromptPlaygroundError",
    "PromptRepositoryBase",
    "PromptRun",
    "PromptRunner",
    "PurchaseError",
    "PurchaseOutcome",
    "RemoteAuthenticationError",
    "RemoteDatabaseError",
    "RemoteRecord",
    "RemoteRecordDatabase",
    "RemoteRecordNotFound",
    "RemoteStoreAdapter",
    "RemoteUnavailable",
    "RemoteWriteError",
    "RepositoryEvent",
    "RepositoryEventHub",
    "RepositoryEventKind",
    "SupportPurchaseManager",
    "TextGenerator",
    "TransactionUpdate",
    "build_app_services",
    "build_generator",
    "build_purchase_manager",
    "build_repository",
]
