"""CLI command handlers for Prompt Playground.

Updates:
  v0.2.0 - 2026-09-18 - Add run and outputs handlers backed by PromptRunner.
  v0.1.0 - 2026-09-04 - Add list, search, and projects handlers.
"""

from __future__ import annotations

import argparse
import logging
import textwrap
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .utils import format_timestamp, print_and_log, shorten

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.factory import AppServices
    from core.repository import PromptRepositoryBase
    from models.prompt_model import Prompt

CommandHandler = Callable[["AppServices", argparse.Namespace, logging.Logger], Awaitable[int]]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_generator: bool = False


def _resolve_prompt(repository: PromptRepositoryBase, reference: str) -> Prompt | None:
    """Return the prompt whose UUID or exact (case-insensitive) title matches *reference*."""
    try:
        prompt_id = uuid.UUID(reference.strip())
    except ValueError:
        needle = reference.strip().casefold()
        return next(
            (prompt for prompt in repository.prompts if prompt.title.casefold() == needle),
            None,
        )
    return repository.find_prompt(prompt_id)


def _print_prompts(prompts: list[Prompt]) -> None:
    if not prompts:
        print("No prompts found.")
        return
    for index, prompt in enumerate(prompts, start=1):
        tags = ", ".join(prompt.tags) if prompt.tags else "-"
        favourite = " *" if prompt.is_favorite else ""
        print(
            textwrap.dedent(
                f"""\
                {index}. {prompt.title}{favourite}
                   ID: {prompt.id}
                   Temperature: {prompt.temperature:.1f}  Max tokens: {prompt.max_tokens}
                   Tags: {tags}
                   Modified: {format_timestamp(prompt.modified_at)}
                """
            )
        )


async def run_list(
    services: AppServices,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    repository = services.repository
    project_name = getattr(args, "project", None)
    if project_name:
        needle = project_name.casefold()
        project = next(
            (item for item in repository.projects if item.name.casefold() == needle),
            None,
        )
        if project is None:
            print_and_log(logger, logging.ERROR, f"Project not found: {project_name}")
            return 4
        prompts = repository.prompts_for_project(project)
    elif getattr(args, "unassigned", False):
        prompts = repository.prompts_without_project()
    else:
        prompts = repository.prompts
    _print_prompts(prompts)
    return 0


async def run_search(
    services: AppServices,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    query = getattr(args, "query", "") or ""
    results = services.repository.search_prompts(query)
    logger.debug("Search completed", extra={"query": query, "count": len(results)})
    print(f"\n{len(results)} prompt(s) matching {query!r}\n")
    _print_prompts(results)
    return 0


async def run_projects(
    services: AppServices,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    repository = services.repository
    projects = repository.projects
    if not projects:
        print("No projects found.")
    for project in projects:
        count = len(repository.prompts_for_project(project))
        description = f" - {shorten(project.description, 60)}" if project.description else ""
        print(f"{project.name} ({count} prompt(s)){description}")
    print(f"Unassigned prompts: {len(repository.prompts_without_project())}")
    return 0


async def run_prompt(
    services: AppServices,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    repository = services.repository
    prompt = _resolve_prompt(repository, args.prompt)
    if prompt is None:
        print_and_log(logger, logging.ERROR, f"Prompt not found: {args.prompt}")
        return 4
    run = await services.runner.run(prompt)
    if run is None:
        print_and_log(logger, logging.ERROR, repository.last_error or "Generation failed.")
        return 6
    print(run.result.output_text)
    tokens = run.result.tokens_used if run.result.tokens_used is not None else "n/a"
    print(f"\n[{run.result.model or 'model'}] {run.result.duration_ms} ms, tokens: {tokens}")
    if not getattr(args, "save", False):
        return 0
    saved = await services.runner.save_output(run, notes=getattr(args, "notes", "") or "")
    if repository.last_error:
        print_and_log(logger, logging.ERROR, repository.last_error)
        return 7
    print_and_log(logger, logging.INFO, f"Saved output {saved.id}")
    return 0


async def run_outputs(
    services: AppServices,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    repository = services.repository
    prompt = _resolve_prompt(repository, args.prompt)
    if prompt is None:
        print_and_log(logger, logging.ERROR, f"Prompt not found: {args.prompt}")
        return 4
    outputs = repository.saved_outputs_for_prompt(prompt.id)
    if not outputs:
        print(f"No saved outputs for {prompt.title}.")
        return 0
    for index, output in enumerate(outputs, start=1):
        favourite = " *" if output.is_favorite else ""
        tokens = output.actual_tokens_used if output.actual_tokens_used is not None else "n/a"
        print(f"{index}. {format_timestamp(output.created_at)}{favourite}  tokens: {tokens}")
        print(textwrap.indent(shorten(output.output_text, 400), "   "))
        if output.notes:
            print(f"   Notes: {output.notes}")
    return 0


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    None: CommandSpec(run_list),
    "list": CommandSpec(run_list),
    "search": CommandSpec(run_search),
    "projects": CommandSpec(run_projects),
    "run": CommandSpec(run_prompt, requires_generator=True),
    "outputs": CommandSpec(run_outputs),
}


__all__ = ["CommandSpec", "COMMAND_SPECS"]
