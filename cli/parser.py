"""Argument parser for Prompt Playground CLI.

Updates:
  v0.2.0 - 2026-09-18 - Add run and outputs subcommands for generation from the terminal.
  v0.1.0 - 2026-09-04 - Add list, search, and projects subcommands.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Prompt Playground")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="List prompts, newest first.")
    list_group = list_parser.add_mutually_exclusive_group()
    list_group.add_argument(
        "--project",
        type=str,
        default=None,
        help="Only show prompts assigned to the project with this name.",
    )
    list_group.add_argument(
        "--unassigned",
        action="store_true",
        help="Only show prompts that belong to no project.",
    )

    search_parser = subparsers.add_parser(
        "search",
        help="Case-insensitive search over titles, prompt texts, and tags.",
    )
    search_parser.add_argument("query", type=str, help="Text to look for.")

    subparsers.add_parser("projects", help="List projects with their prompt counts.")

    run_parser = subparsers.add_parser(
        "run",
        help="Generate output for a prompt with the configured LiteLLM model.",
    )
    run_parser.add_argument("prompt", type=str, help="Prompt UUID or exact title.")
    run_parser.add_argument(
        "--save",
        action="store_true",
        help="Keep the generated output as a saved output of the prompt.",
    )
    run_parser.add_argument(
        "--notes",
        type=str,
        default="",
        help="Notes stored with the saved output (requires --save).",
    )

    outputs_parser = subparsers.add_parser("outputs", help="Show saved outputs for a prompt.")
    outputs_parser.add_argument("prompt", type=str, help="Prompt UUID or exact title.")

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments."""
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args"]
