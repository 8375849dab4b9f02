"""Printable summaries for Prompt Playground configuration.

Updates:
  v0.1.1 - 2026-09-17 - Show generation timeout and support product identifiers.
  v0.1.0 - 2026-09-04 - Render storage, remote service, and LiteLLM configuration.
"""

from __future__ import annotations

from config import PlaygroundSettings
from core.factory import determine_llm_status

from .utils import describe_path, mask_secret


def print_settings_summary(settings: PlaygroundSettings) -> None:
    """Emit a readable summary of core configuration and health checks."""
    llm_ready, llm_reason = determine_llm_status(settings)
    timeout = settings.generation_timeout_seconds
    drop_params = ", ".join(settings.litellm_drop_params or []) or "none"

    lines = [
        "Prompt Playground configuration summary",
        "---------------------------------------",
        f"Storage mode: {settings.storage_mode}",
    ]
    if settings.storage_mode == "local":
        lines.extend(
            [
                "Local store: "
                + describe_path(settings.local_store_path, allow_missing_file=True),
                f"Seed sample prompts: {'yes' if settings.seed_sample_prompts else 'no'}",
            ]
        )
    lines.extend(
        [
            "",
            "Remote record service",
            "---------------------",
            f"Database URL: {settings.remote_database_url or 'not set'}",
            f"API token: {mask_secret(settings.remote_api_token)}",
            f"Timeout (seconds): {settings.remote_timeout_seconds:g}",
            f"Read attempts: {settings.remote_read_attempts}",
            "",
            "LiteLLM configuration",
            "---------------------",
            f"Model: {settings.litellm_model or 'not set'}",
            f"LiteLLM API key: {mask_secret(settings.litellm_api_key)}",
            f"LiteLLM API base: {settings.litellm_api_base or 'not set'}",
            f"LiteLLM API version: {settings.litellm_api_version or 'not set'}",
            f"Dropped parameters: {drop_params}",
            f"Generation timeout: {f'{timeout:g} s' if timeout is not None else 'disabled'}",
            f"LiteLLM logging: {'enabled' if settings.litellm_logging_enabled else 'disabled'}",
            f"Generation ready: {'yes' if llm_ready else 'no'}",
        ]
    )
    if llm_reason:
        lines.append(llm_reason)
    lines.extend(
        [
            "",
            "Support purchases",
            "-----------------",
            f"Product IDs: {', '.join(settings.support_product_ids)}",
        ]
    )
    print("\n".join(lines))
