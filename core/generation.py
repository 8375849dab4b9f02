"""LiteLLM-backed text generation for prompt runs.

Updates:
  v0.2.0 - 2026-09-14 - Bound completion calls with a configurable timeout.
  v0.1.1 - 2026-09-03 - Run the blocking completion call in a worker thread.
  v0.1.0 - 2026-08-28 - Introduce TextGenerator protocol and LiteLLM implementation.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from .exceptions import GenerationError, GenerationUnavailable
from .litellm_adapter import (
    LiteLLMNotInstalledError,
    apply_configured_drop_params,
    call_completion_with_fallback,
    get_completion,
)

logger = logging.getLogger("prompt_playground.generation")

DEFAULT_GENERATION_TIMEOUT_SECONDS = 120.0


@dataclass(slots=True, frozen=True)
class GenerationResult:
    """Text returned by a completion call plus its usage metadata."""

    output_text: str
    tokens_used: int | None = None
    duration_ms: int = 0
    model: str | None = None


@runtime_checkable
class TextGenerator(Protocol):
    """Produce model output for a system/user prompt pair."""

    async def generate(
        self,
        system_text: str,
        user_text: str,
        temperature: float,
        max_tokens: int,
    ) -> GenerationResult: ...


def build_messages(system_text: str, user_text: str) -> list[dict[str, str]]:
    """Return the chat payload; the system turn is omitted when blank."""
    messages: list[dict[str, str]] = []
    if system_text.strip():
        messages.append({"role": "system", "content": system_text})
    messages.append({"role": "user", "content": user_text})
    return messages


@dataclass(slots=True)
class LiteLLMTextGenerator:
    """Generate text through ``litellm.completion`` off the event loop."""

    model: str | None
    api_key: str | None = None
    api_base: str | None = None
    api_version: str | None = None
    timeout_seconds: float | None = DEFAULT_GENERATION_TIMEOUT_SECONDS
    drop_params: Sequence[str] | None = None

    async def generate(
        self,
        system_text: str,
        user_text: str,
        temperature: float,
        max_tokens: int,
    ) -> GenerationResult:
        if not self.model:
            raise GenerationUnavailable("No LiteLLM model is configured for generation.")
        try:
            completion, lite_llm_exception = get_completion()
        except LiteLLMNotInstalledError as exc:
            raise GenerationUnavailable(str(exc)) from exc

        request: dict[str, Any] = {
            "model": self.model,
            "messages": build_messages(system_text, user_text),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self.api_key:
            request["api_key"] = self.api_key
        if self.api_base:
            request["api_base"] = self.api_base
        if self.api_version:
            request["api_version"] = self.api_version
        dropped = apply_configured_drop_params(request, self.drop_params)
        if dropped:
            logger.debug(
                "Dropping LiteLLM parameters before generation",
                extra={"dropped_params": list(dropped)},
            )

        logger.debug(
            "Generating via LiteLLM",
            extra={"model": self.model, "temperature": temperature, "max_tokens": max_tokens},
        )
        started = time.perf_counter()
        call = asyncio.to_thread(
            call_completion_with_fallback,
            request,
            completion,
            lite_llm_exception,
        )
        try:
            if self.timeout_seconds is None:
                response = await call
            else:
                response = await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except TimeoutError as exc:
            raise GenerationError(
                f"Generation timed out after {self.timeout_seconds:g} seconds"
            ) from exc
        except lite_llm_exception as exc:
            raise GenerationError(f"LiteLLM generation failed: {exc}") from exc
        except Exception as exc:
            raise GenerationError("Unexpected error while calling LiteLLM") from exc
        duration_ms = int((time.perf_counter() - started) * 1000)

        payload = _as_mapping(response)
        text = _extract_completion_text(payload).strip()
        if not text:
            raise GenerationError("LiteLLM returned an empty response.")
        tokens_used = _extract_total_tokens(payload.get("usage"))
        logger.debug(
            "Generation completed",
            extra={"model": self.model, "duration_ms": duration_ms, "tokens_used": tokens_used},
        )
        return GenerationResult(
            output_text=text,
            tokens_used=tokens_used,
            duration_ms=duration_ms,
            model=str(payload.get("model") or self.model),
        )


def _as_mapping(response: Any) -> dict[str, Any]:
    """Best-effort conversion of a LiteLLM response object into a dict."""
    if isinstance(response, Mapping):
        return {str(key): value for key, value in cast("Mapping[str, Any]", response).items()}
    model_dump = getattr(response, "model_dump", None)
    if callable(model_dump):
        dumped = model_dump()
        if isinstance(dumped, Mapping):
            return {str(key): value for key, value in dumped.items()}
    raise GenerationError("LiteLLM returned an unexpected payload")


def _extract_completion_text(payload: Mapping[str, Any]) -> str:
    """Extract assistant content from a LiteLLM completion payload."""
    choices_value = payload.get("choices")
    if not isinstance(choices_value, Sequence) or not choices_value:
        raise GenerationError("LiteLLM returned an unexpected payload")
    first = cast("Sequence[Any]", choices_value)[0]
    if not isinstance(first, Mapping):
        raise GenerationError("LiteLLM returned an unexpected payload")
    first_mapping = cast("Mapping[str, Any]", first)
    message_value = first_mapping.get("message")
    if isinstance(message_value, Mapping):
        content = cast("Mapping[str, Any]", message_value).get("content")
        if content is not None:
            return str(content)
    text = first_mapping.get("text")
    if text is not None:
        return str(text)
    return ""


def _extract_total_tokens(usage: Any) -> int | None:
    if not isinstance(usage, Mapping):
        return None
    usage_mapping = cast("Mapping[str, Any]", usage)
    total = usage_mapping.get("total_tokens")
    if total is None:
        prompt_tokens = usage_mapping.get("prompt_tokens")
        completion_tokens = usage_mapping.get("completion_tokens")
        if prompt_tokens is None and completion_tokens is None:
            return None
        total = int(prompt_tokens or 0) + int(completion_tokens or 0)
    try:
        tokens = int(total)
    except (TypeError, ValueError):
        return None
    return tokens if tokens > 0 else None


__all__ = [
    "DEFAULT_GENERATION_TIMEOUT_SECONDS",
    "GenerationResult",
    "LiteLLMTextGenerator",
    "TextGenerator",
    "build_messages",
]
