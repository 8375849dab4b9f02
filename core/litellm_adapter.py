"""LiteLLM completion helpers for Prompt Playground.

Updates:
  v0.2.0 - 2026-09-13 - Limit helpers to chat completion used by prompt generation.
  v0.1.1 - 2026-09-02 - Retry completion calls without parameters the model rejects.
  v0.1.0 - 2026-08-28 - Import LiteLLM lazily and raise an actionable error when missing.
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

logger = logging.getLogger("prompt_playground.litellm")

_DEFAULT_DROP_CANDIDATES = frozenset({"max_tokens", "max_output_tokens", "temperature", "timeout"})
_UNSUPPORTED_INDICATORS = (
    "not support",
    "unsupported",
    "not allowed",
    "additional property",
    "additional properties",
    "unexpected",
    "unknown",
)


class LiteLLMNotInstalledError(RuntimeError):
    """Raised when LiteLLM is not available in the current environment."""


_completion: Callable[..., object] | None = None
_LiteLLMException: type[Exception] = Exception


def _ensure_loaded() -> None:
    """Import LiteLLM lazily so the CLI starts without it."""
    global _completion, _LiteLLMException
    if _completion is not None:
        return
    try:  # pragma: no cover - runtime import path
        litellm = importlib.import_module("litellm")
    except ImportError as exc:
        raise LiteLLMNotInstalledError(
            "Prompt generation requires 'litellm'. Install it with `pip install litellm`."
        ) from exc

    completion = getattr(litellm, "completion", None)
    if completion is None:
        raise LiteLLMNotInstalledError(
            "litellm completion API is unavailable in the installed version."
        )
    try:
        exceptions_module = importlib.import_module("litellm.exceptions")
        lite_llm_exception = getattr(exceptions_module, "LiteLLMException", Exception)
    except ImportError:
        lite_llm_exception = Exception

    _completion = completion
    _LiteLLMException = lite_llm_exception


def get_completion() -> tuple[Callable[..., object], type[Exception]]:
    """Return the LiteLLM completion callable and its exception type."""
    _ensure_loaded()
    assert _completion is not None  # pragma: no cover
    return _completion, _LiteLLMException


def call_completion_with_fallback(
    request: dict[str, object],
    completion: Callable[..., object],
    lite_llm_exception: type[Exception],
    *,
    drop_candidates: Iterable[str] | None = None,
) -> object:
    """Invoke *completion* and retry once without parameters the model rejected."""
    try:
        return completion(**request)
    except lite_llm_exception as exc:
        unsupported = _detect_unsupported_parameters(str(exc), request.keys(), drop_candidates)
        if not unsupported:
            raise
        trimmed_request = {key: value for key, value in request.items() if key not in unsupported}
        logger.info(
            "LiteLLM model rejected parameters %s; retrying request without them.",
            ", ".join(sorted(unsupported)),
        )
        return completion(**trimmed_request)


def apply_configured_drop_params(
    request: dict[str, object],
    drop_params: Sequence[str] | None,
) -> tuple[str, ...]:
    """Remove configured parameters from *request* and return the keys dropped."""
    if not drop_params:
        return ()
    dropped: list[str] = []
    for raw_key in drop_params:
        key = str(raw_key).strip()
        if key and key in request and key not in dropped:
            request.pop(key)
            dropped.append(key)
    return tuple(dropped)


def _detect_unsupported_parameters(
    message: str,
    parameters: Iterable[str],
    drop_candidates: Iterable[str] | None = None,
) -> set[str]:
    lowered = message.lower()
    if not any(token in lowered for token in _UNSUPPORTED_INDICATORS):
        return set()
    candidates = set(drop_candidates or _DEFAULT_DROP_CANDIDATES)
    unsupported: set[str] = set()
    for key in parameters:
        if key not in candidates:
            continue
        key_forms = (key, key.replace("_", " "), key.replace("_", "-"))
        if any(form in lowered for form in key_forms):
            unsupported.add(key)
    return unsupported


__all__ = [
    "LiteLLMNotInstalledError",
    "apply_configured_drop_params",
    "call_completion_with_fallback",
    "get_completion",
]
