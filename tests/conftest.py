"""Pytest configuration for shared fixtures.

Updates:
  v0.2.0 - 2026-09-18 - Add repository fixtures over the in-memory database and blob store.
  v0.1.0 - 2026-08-24 - Isolate settings from the developer's environment and config files.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from core.events import RepositoryEventHub
from core.local_storage import KeyValueBlobStore
from core.remote import InMemoryRecordDatabase, RemoteStoreAdapter
from core.repository import CloudPromptRepository, LocalPromptRepository
from models.prompt_model import Prompt

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
_ISOLATED_PREFIXES = ("PROMPT_PLAYGROUND_", "LITELLM_", "AZURE_OPENAI_")
_ISOLATED_KEYS = {"DB_PATH", "LOCAL_STORE_PATH"}


@pytest.fixture(autouse=True)
def _isolate_settings_environment(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    """Keep tests independent of local .env files, config.json, and exported variables."""
    for key in list(os.environ):
        if key.startswith(_ISOLATED_PREFIXES) or key in _ISOLATED_KEYS:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROMPT_PLAYGROUND_ENV_FILE", "")
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def make_prompt() -> Callable[..., Prompt]:
    """Return a factory for prompts with deterministic timestamps."""

    def _factory(title: str = "Prompt", *, minutes: int = 0, **overrides: Any) -> Prompt:
        stamp = BASE_TIME + timedelta(minutes=minutes)
        overrides.setdefault("created_at", stamp)
        overrides.setdefault("modified_at", stamp)
        return Prompt(title=title, **overrides)

    return _factory


@pytest.fixture()
def events() -> RepositoryEventHub:
    return RepositoryEventHub()


@pytest.fixture()
def database() -> InMemoryRecordDatabase:
    return InMemoryRecordDatabase()


@pytest.fixture()
def cloud_repository(
    database: InMemoryRecordDatabase,
    events: RepositoryEventHub,
) -> CloudPromptRepository:
    return CloudPromptRepository(RemoteStoreAdapter(database), events)


@pytest.fixture()
def blob_store(tmp_path: Path) -> KeyValueBlobStore:
    return KeyValueBlobStore(tmp_path / "store" / "playground.db")


@pytest.fixture()
def local_repository(
    blob_store: KeyValueBlobStore,
    events: RepositoryEventHub,
) -> LocalPromptRepository:
    return LocalPromptRepository(blob_store, events, seed_samples=False)
