"""Application entry point for Prompt Playground.

Updates:
  v0.2.0 - 2026-09-18 - Dispatch async command handlers after the repository loads.
  v0.1.1 - 2026-09-17 - Apply LiteLLM logging toggle from settings.
  v0.1.0 - 2026-09-04 - Wire settings, logging, and services for the CLI.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from cli.commands import COMMAND_SPECS
from cli.parser import parse_args
from cli.runtime import configure_litellm_logging, setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core import PromptPlaygroundError, build_app_services
from core.factory import determine_llm_status

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    import argparse
    from collections.abc import Sequence

    from cli.commands import CommandSpec
    from core import AppServices


async def _run_command(
    spec: CommandSpec,
    services: AppServices,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    repository = services.repository
    await repository.initialize()
    for message in repository.fetch_errors.values():
        logger.warning(message)
    return await spec.handler(services, args, logger)


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("prompt_playground.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Failed to load settings: %s", exc)
        return 2

    configure_litellm_logging(settings.litellm_logging_enabled)
    if args.print_settings:
        print_settings_summary(settings)
        return 0

    spec = COMMAND_SPECS[getattr(args, "command", None)]
    if spec.requires_generator:
        llm_ready, llm_reason = determine_llm_status(settings)
        if not llm_ready:
            logger.error(llm_reason)
            return 5

    try:
        services = build_app_services(settings)
    except (PromptPlaygroundError, ValueError) as exc:
        logger.error("Failed to initialise services: %s", exc)
        return 3
    return asyncio.run(_run_command(spec, services, args, logger))


if __name__ == "__main__":
    raise SystemExit(main())
