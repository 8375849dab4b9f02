"""Tests for PromptRunner generation and saved output flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from core.exceptions import GenerationError, GenerationUnavailable
from core.generation import GenerationResult
from core.runner import PromptRunner

if TYPE_CHECKING:
    from collections.abc import Callable

    from core.repository import CloudPromptRepository
    from models import Prompt


@dataclass
class _StubGenerator:
    text: str = "Generated"
    tokens: int | None = 30
    error: Exception | None = None
    calls: list[tuple[str, str, float, int]] = field(default_factory=list)

    async def generate(
        self,
        system_text: str,
        user_text: str,
        temperature: float,
        max_tokens: int,
    ) -> GenerationResult:
        self.calls.append((system_text, user_text, temperature, max_tokens))
        if self.error is not None:
            raise self.error
        return GenerationResult(self.text, tokens_used=self.tokens, duration_ms=5, model="stub")


@pytest.mark.asyncio()
async def test_run_and_save_output_snapshot(
    cloud_repository: CloudPromptRepository,
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = await cloud_repository.add_prompt(
        make_prompt("Runner", system_text="sys", user_text="usr", temperature=0.4, max_tokens=99)
    )
    generator = _StubGenerator()
    runner = PromptRunner(cloud_repository, generator)

    run = await runner.run(prompt)
    assert run is not None
    prompt.user_text = "edited after the run"
    saved = await runner.save_output(run, notes="first try")

    assert generator.calls == [("sys", "usr", 0.4, 99)]
    assert runner.last_run is run
    assert saved.user_text == "usr"
    assert saved.actual_tokens_used == 30
    assert saved.notes == "first try"
    assert saved.remote_ref is not None
    assert cloud_repository.saved_outputs_for_prompt(prompt.id) == [saved]


@pytest.mark.asyncio()
async def test_toggle_favorite_flips_flag(
    cloud_repository: CloudPromptRepository,
    make_prompt: Callable[..., Prompt],
) -> None:
    prompt = await cloud_repository.add_prompt(make_prompt())
    runner = PromptRunner(cloud_repository, _StubGenerator())
    run = await runner.run(prompt)
    assert run is not None
    saved = await runner.save_output(run)

    toggled = await runner.toggle_favorite(saved)
    restored = await runner.toggle_favorite(toggled)

    assert toggled.is_favorite is True
    assert restored.is_favorite is False


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    ("error", "prefix"),
    [
        (GenerationUnavailable("no model"), "Generation unavailable: no model"),
        (GenerationError("boom"), "Generation failed: boom"),
    ],
)
async def test_run_failures_land_in_error_slot(
    cloud_repository: CloudPromptRepository,
    make_prompt: Callable[..., Prompt],
    error: Exception,
    prefix: str,
) -> None:
    runner = PromptRunner(cloud_repository, _StubGenerator(error=error))

    assert await runner.run(make_prompt()) is None

    assert cloud_repository.last_error == prefix
    assert runner.last_run is None
