"""Factories for constructing Prompt Playground services from validated settings.

Updates:
  v0.2.0 - 2026-09-17 - Wire support purchases and the prompt runner into AppServices.
  v0.1.1 - 2026-09-11 - Select the local-only or cloud repository from storage_mode.
  v0.1.0 - 2026-09-01 - Build repositories and the LiteLLM generator from settings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .events import RepositoryEventHub
from .generation import LiteLLMTextGenerator
from .local_storage import KeyValueBlobStore
from .purchases import InMemoryCommerceBackend, SupportPurchaseManager
from .remote import HttpRecordDatabase, RemoteStoreAdapter
from .repository import CloudPromptRepository, LocalPromptRepository
from .runner import PromptRunner

if TYPE_CHECKING:  # pragma: no cover - typing only
    from config import PlaygroundSettings

    from .generation import TextGenerator
    from .purchases import CommerceBackend
    from .remote import RemoteRecordDatabase
    from .repository import PromptRepositoryBase

factory_logger = logging.getLogger("prompt_playground.factory")


def _format_missing_requirements(values: Sequence[str]) -> str:
    """Return a human-friendly list of missing configuration values."""
    entries = [value for value in values if value]
    if not entries:
        return ""
    if len(entries) == 1:
        return entries[0]
    if len(entries) == 2:
        return " and ".join(entries)
    return ", ".join(entries[:-1]) + f", and {entries[-1]}"


def determine_llm_status(settings: PlaygroundSettings) -> tuple[bool, str | None]:
    """Return whether generation is configured and, if not, why."""
    missing: list[str] = []
    if not settings.litellm_model:
        missing.append("PROMPT_PLAYGROUND_LITELLM_MODEL")
    model = (settings.litellm_model or "").lower()
    if model.startswith("azure/"):
        if not settings.litellm_api_base:
            missing.append("PROMPT_PLAYGROUND_LITELLM_API_BASE")
        if not settings.litellm_api_version:
            missing.append("PROMPT_PLAYGROUND_LITELLM_API_VERSION")
    if not missing:
        return True, None
    return False, f"Generation disabled: set {_format_missing_requirements(missing)}."


@dataclass(slots=True)
class AppServices:
    """Objects a UI or the CLI needs to drive one session."""

    settings: PlaygroundSettings
    events: RepositoryEventHub
    repository: PromptRepositoryBase
    generator: TextGenerator
    runner: PromptRunner
    purchases: SupportPurchaseManager


def build_repository(
    settings: PlaygroundSettings,
    *,
    events: RepositoryEventHub | None = None,
    database: RemoteRecordDatabase | None = None,
    store: KeyValueBlobStore | None = None,
) -> PromptRepositoryBase:
    """Return the repository façade selected by ``settings.storage_mode``."""
    if settings.storage_mode == "cloud":
        resolved_database = database
        if resolved_database is None:
            database_url = settings.remote_database_url
            if database_url is None:  # pragma: no cover - guarded by settings validation
                raise ValueError("Cloud storage mode requires remote_base_url and remote_container")
            resolved_database = HttpRecordDatabase(
                base_url=database_url,
                api_token=settings.remote_api_token,
                timeout=settings.remote_timeout_seconds,
                read_attempts=settings.remote_read_attempts,
            )
        factory_logger.debug("Using cloud repository", extra={"mode": "cloud"})
        return CloudPromptRepository(RemoteStoreAdapter(resolved_database), events)
    resolved_store = store or KeyValueBlobStore(settings.local_store_path)
    factory_logger.debug(
        "Using local repository",
        extra={"mode": "local", "path": str(resolved_store.path)},
    )
    return LocalPromptRepository(
        resolved_store,
        events,
        seed_samples=settings.seed_sample_prompts,
    )


def build_generator(settings: PlaygroundSettings) -> LiteLLMTextGenerator:
    llm_ready, llm_reason = determine_llm_status(settings)
    if not llm_ready and llm_reason:
        factory_logger.warning(llm_reason)
    return LiteLLMTextGenerator(
        model=settings.litellm_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
        api_version=settings.litellm_api_version,
        timeout_seconds=settings.generation_timeout_seconds,
        drop_params=settings.litellm_drop_params,
    )


def build_purchase_manager(
    settings: PlaygroundSettings,
    *,
    backend: CommerceBackend | None = None,
    events: RepositoryEventHub | None = None,
) -> SupportPurchaseManager:
    return SupportPurchaseManager(
        backend or InMemoryCommerceBackend(),
        settings.support_product_ids,
        events,
    )


def build_app_services(
    settings: PlaygroundSettings,
    *,
    events: RepositoryEventHub | None = None,
    database: RemoteRecordDatabase | None = None,
    store: KeyValueBlobStore | None = None,
    generator: TextGenerator | None = None,
    commerce_backend: CommerceBackend | None = None,
) -> AppServices:
    """Return every session service configured from validated settings."""
    hub = events or RepositoryEventHub()
    repository = build_repository(settings, events=hub, database=database, store=store)
    resolved_generator = generator or build_generator(settings)
    return AppServices(
        settings=settings,
        events=hub,
        repository=repository,
        generator=resolved_generator,
        runner=PromptRunner(repository, resolved_generator),
        purchases=build_purchase_manager(settings, backend=commerce_backend, events=hub),
    )


__all__ = [
    "AppServices",
    "build_app_services",
    "build_generator",
    "build_purchase_manager",
    "build_repository",
    "determine_llm_status",
]
