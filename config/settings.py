"""Settings management utilities for Prompt Playground configuration.

Updates:
  v0.3.0 - 2026-09-17 - Add support product identifiers and generation timeout settings.
  v0.2.1 - 2026-09-09 - Require remote base URL and container in cloud mode.
  v0.2.0 - 2026-09-01 - Add remote record service settings with secret token handling.
  v0.1.1 - 2026-08-27 - Load .env entries through python-dotenv without mutating os.environ.
  v0.1.0 - 2026-08-20 - Introduce PlaygroundSettings with JSON config file source.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"

DEFAULT_LOCAL_STORE_PATH = Path("data") / "prompt_playground.db"
DEFAULT_REMOTE_ENVIRONMENT = "development"
DEFAULT_GENERATION_TIMEOUT_SECONDS = 120.0
DEFAULT_SUPPORT_PRODUCT_IDS = ("support_developer_tip",)

_SECRET_KEYS = {"litellm_api_key", "remote_api_token", "LITELLM_API_KEY", "REMOTE_API_TOKEN"}

# Extra environment names accepted for a field besides PROMPT_PLAYGROUND_<FIELD>.
_ENV_ALIASES: dict[str, list[str]] = {
    "local_store_path": ["DB_PATH", "LOCAL_STORE_PATH"],
    "litellm_model": ["LITELLM_MODEL"],
    "litellm_api_key": ["LITELLM_API_KEY", "AZURE_OPENAI_API_KEY"],
    "litellm_api_base": ["LITELLM_API_BASE", "AZURE_OPENAI_ENDPOINT"],
    "litellm_api_version": ["LITELLM_API_VERSION", "AZURE_OPENAI_API_VERSION"],
}


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPT_PLAYGROUND_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


def _split_list(value: object, field_name: str) -> list[str] | None:
    """Accept a list, a JSON array string, or a comma-separated string."""
    if value in (None, "", [], ()):
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            items = [item.strip() for item in stripped.split(",") if item.strip()]
        else:
            if isinstance(parsed, Sequence) and not isinstance(parsed, (str, bytes, bytearray)):
                items = [str(item).strip() for item in parsed if str(item).strip()]
            else:
                items = [str(parsed).strip()]
        return items or None
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        sequence_value = cast("Sequence[object]", value)
        items = [str(item).strip() for item in sequence_value if str(item).strip()]
        return items or None
    raise ValueError(f"{field_name} must be a list, comma-separated string, or JSON array")


class SettingsError(Exception):
    """Raised when Prompt Playground configuration cannot be loaded or validated."""


class PlaygroundSettings(BaseSettings):
    """Application configuration sourced from keyword overrides, JSON files, or the environment."""

    storage_mode: Literal["local", "cloud"] = Field(
        default="local",
        description="Where records persist: 'local' SQLite blobs or the 'cloud' record service.",
    )
    local_store_path: Path = Field(default=DEFAULT_LOCAL_STORE_PATH)
    seed_sample_prompts: bool = Field(
        default=True,
        description="Seed the starter prompts when the local store is empty.",
    )
    remote_base_url: str | None = Field(
        default=None,
        description="Root URL of the remote record service, e.g. https://records.example.com.",
    )
    remote_container: str | None = Field(
        default=None,
        description="Container identifier that scopes the user's private database.",
    )
    remote_environment: Literal["development", "production"] = Field(
        default=DEFAULT_REMOTE_ENVIRONMENT,
    )
    remote_api_token: str | None = Field(
        default=None,
        description="Session token sent as a bearer credential to the record service.",
        repr=False,
    )
    remote_timeout_seconds: float = Field(default=15.0)
    remote_read_attempts: int = Field(
        default=3,
        description="Total attempts for idempotent remote queries; writes are never retried.",
    )
    litellm_model: str | None = Field(
        default=None,
        description="LiteLLM model used to generate prompt output.",
    )
    litellm_api_key: str | None = Field(
        default=None,
        description="LiteLLM API key.",
        repr=False,
    )
    litellm_api_base: str | None = Field(
        default=None,
        description="Optional LiteLLM API base URL override.",
    )
    litellm_api_version: str | None = Field(
        default=None,
        description="Optional LiteLLM API version (useful for Azure OpenAI).",
    )
    litellm_drop_params: list[str] | None = Field(
        default=None,
        description=(
            "Optional LiteLLM parameters to drop before forwarding requests (see "
            "https://docs.litellm.ai/docs/completion/drop_params)."
        ),
    )
    litellm_logging_enabled: bool = Field(
        default=False,
        description="Let LiteLLM's own loggers emit below WARNING.",
    )
    generation_timeout_seconds: float | None = Field(
        default=DEFAULT_GENERATION_TIMEOUT_SECONDS,
        description="Upper bound for one generation call; empty disables the limit.",
    )
    support_product_ids: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORT_PRODUCT_IDS),
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPT_PLAYGROUND_",
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("storage_mode", "remote_environment", mode="before")
    def _normalise_choice(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("local_store_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_LOCAL_STORE_PATH
        return Path(str(value)).expanduser()

    @field_validator(
        "remote_base_url",
        "remote_container",
        "remote_api_token",
        "litellm_model",
        "litellm_api_key",
        "litellm_api_base",
        "litellm_api_version",
        mode="before",
    )
    def _strip_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("remote_base_url")
    def _trim_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.startswith(("http://", "https://")):
            raise ValueError("remote_base_url must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("remote_timeout_seconds")
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("remote_timeout_seconds must be greater than zero")
        return value

    @field_validator("remote_read_attempts")
    def _validate_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("remote_read_attempts must be at least 1")
        return value

    @field_validator("generation_timeout_seconds", mode="before")
    def _normalise_generation_timeout(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and value.strip().lower() in {"", "none"}):
            return None
        return value

    @field_validator("generation_timeout_seconds")
    def _validate_generation_timeout(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("generation_timeout_seconds must be greater than zero")
        return value

    @field_validator("litellm_drop_params", mode="before")
    def _normalise_drop_params(cls, value: object) -> list[str] | None:
        return _split_list(value, "litellm_drop_params")

    @field_validator("support_product_ids", mode="before")
    def _normalise_product_ids(cls, value: object) -> list[str]:
        return _split_list(value, "support_product_ids") or list(DEFAULT_SUPPORT_PRODUCT_IDS)

    @model_validator(mode="after")
    def _validate_cloud_configuration(self) -> PlaygroundSettings:
        if self.storage_mode == "cloud":
            missing = [
                name
                for name in ("remote_base_url", "remote_container")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(f"Cloud storage mode requires {', '.join(missing)}")
        return self

    @property
    def remote_database_url(self) -> str | None:
        """Database root for the user's private records, or None when not configured."""
        if not self.remote_base_url or not self.remote_container:
            return None
        return (
            f"{self.remote_base_url}/database/1/{self.remote_container}/"
            f"{self.remote_environment}/private"
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(litellm_model="...")).
            2. JSON configuration file (application settings).
            3. Environment variables and ``.env`` entries, including aliases.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            config_dict = cast("dict[str, Any]", cls.model_config)
            prefix = str(config_dict.get("env_prefix", ""))
            dotenv_entries = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_entries.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field in cls.model_fields:
                candidates = [f"{prefix}{field.upper()}", f"{prefix}{field}"]
                candidates.extend(f"{prefix}{alias}" for alias in _ENV_ALIASES.get(field, []))
                candidates.extend(_ENV_ALIASES.get(field, []))
                for candidate in candidates:
                    val = _lookup(candidate)
                    if val is not None:
                        data[field] = val
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPT_PLAYGROUND_CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append(Path("config") / "config.json")

            for path in candidates:
                if not path.exists():
                    if explicit_path and path == candidates[0]:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    raise SettingsError(f"Configuration file {path} must contain a JSON object")
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
                removed_secrets = sorted(
                    key for key in _SECRET_KEYS if data_dict.pop(key, None) is not None
                )
                if removed_secrets:
                    logger.warning(
                        "Ignoring secret key(s) %s in configuration file %s; "
                        "set credentials via environment variables instead.",
                        ", ".join(removed_secrets),
                        path,
                    )
                if "database_path" in data_dict and "local_store_path" not in data_dict:
                    data_dict["local_store_path"] = data_dict["database_path"]
                return {
                    key: value for key, value in data_dict.items() if key in cls.model_fields
                }
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PlaygroundSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PlaygroundSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError(f"Invalid Prompt Playground configuration: {exc}") from exc


logger = logging.getLogger("prompt_playground.settings")
