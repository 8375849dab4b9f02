"""Run prompts through a text generator and keep the outputs worth saving.

Updates:
  v0.1.1 - 2026-09-15 - Save outputs from the parameter snapshot taken at run time.
  v0.1.0 - 2026-09-03 - Introduce PromptRunner on top of the repository façade.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from models.saved_output_model import SavedOutput

from .exceptions import GenerationError, GenerationUnavailable

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .generation import GenerationResult, TextGenerator
    from .repository.base import PromptRepositoryBase

logger = logging.getLogger("prompt_playground.runner")


@dataclass(slots=True, frozen=True)
class PromptRun:
    """Parameter snapshot of one generation plus its result."""

    prompt: Prompt
    result: GenerationResult


class PromptRunner:
    """Coordinate generation calls and saved outputs for a repository."""

    def __init__(self, repository: PromptRepositoryBase, generator: TextGenerator) -> None:
        self._repository = repository
        self._generator = generator
        self._last_run: PromptRun | None = None

    @property
    def last_run(self) -> PromptRun | None:
        return self._last_run

    async def run(self, prompt: Prompt) -> PromptRun | None:
        """Generate output for *prompt*; failures land in the repository error slot."""
        snapshot = dataclasses.replace(prompt, tags=list(prompt.tags))
        try:
            result = await self._generator.generate(
                snapshot.system_text,
                snapshot.user_text,
                snapshot.temperature,
                snapshot.max_tokens,
            )
        except GenerationUnavailable as exc:
            self._repository.report_error(f"Generation unavailable: {exc}")
            return None
        except GenerationError as exc:
            logger.warning("Generation failed", extra={"prompt_id": str(prompt.id)})
            self._repository.report_error(f"Generation failed: {exc}")
            return None
        self._last_run = PromptRun(prompt=snapshot, result=result)
        return self._last_run

    async def save_output(self, run: PromptRun, notes: str = "") -> SavedOutput:
        """Persist the output of *run* as a SavedOutput linked to its prompt."""
        output = SavedOutput.from_prompt(
            run.prompt,
            run.result.output_text,
            actual_tokens_used=run.result.tokens_used,
            notes=notes,
        )
        return await self._repository.add_output(output)

    async def toggle_favorite(self, output: SavedOutput) -> SavedOutput:
        """Flip the favourite flag of a saved output."""
        return await self._repository.update_output(
            dataclasses.replace(output, is_favorite=not output.is_favorite)
        )


__all__ = ["PromptRun", "PromptRunner"]
