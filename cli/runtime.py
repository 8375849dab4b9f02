"""Runtime boot helpers for Prompt Playground CLI.

Updates:
  v0.1.1 - 2026-09-17 - Default to the bundled logging configuration under config/.
  v0.1.0 - 2026-09-04 - Add logging configuration and LiteLLM logging toggle helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path("config/logging.conf")
_LITELLM_LOGGER_NAMES = ("LiteLLM", "litellm", "LiteLLM Router", "LiteLLM Proxy")


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (KeyError, ValueError, OSError) as exc:  # pragma: no cover - configuration fallback
            logging.basicConfig(level=logging.INFO)
            logging.getLogger("prompt_playground.main").warning(
                "Ignoring invalid logging configuration %s: %s", path, exc
            )
            return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def configure_litellm_logging(enabled: bool) -> None:
    """Enable or disable upstream LiteLLM library logs."""
    for name in _LITELLM_LOGGER_NAMES:
        litellm_logger = logging.getLogger(name)
        litellm_logger.propagate = True
        if enabled:
            litellm_logger.disabled = False
            litellm_logger.setLevel(logging.NOTSET)
        else:
            litellm_logger.disabled = True
            litellm_logger.setLevel(logging.CRITICAL)
