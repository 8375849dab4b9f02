"""noxfile.py - Nox sessions for Prompt Playground.

Updates:
  v0.2.0 - 2026-09-18 - Point quality gates at the playground packages and cover models and cli.
  v0.1.0 - 2026-08-20 - Add ruff, pyright, and pytest sessions run from `.venv`.

Install the project with `pip install -e .[dev]` inside `.venv` before running these sessions:
- format: format code with ruff
- lint: run ruff lint checks
- typecheck: run pyright over the application packages
- test: run pytest in parallel with coverage
- all: fix, format, lint, typecheck, and test in one go

Sessions run in the host interpreter (venv_backend="none") and call tools from `.venv`.
"""

from __future__ import annotations

import sys
from pathlib import Path

import nox

CODE_LOCATIONS: tuple[str, ...] = (
    "main.py",
    "config",
    "core",
    "cli",
    "models",
    "tests",
)
COVERAGE_PACKAGES: tuple[str, ...] = ("core", "models", "cli", "config")
COVERAGE_FLOOR = 80


def _venv_executable(command: str) -> Path:
    """Return the path to *command* inside the project virtual environment."""
    venv_dir = Path(".venv")
    if sys.platform == "win32":
        return venv_dir / "Scripts" / f"{command}.exe"
    return venv_dir / "bin" / command


def _require_venv_tool(session: nox.Session, command: str) -> str:
    """Return the `.venv` tool path, failing with guidance when missing."""
    candidate = _venv_executable(command)
    if candidate.exists():
        return str(candidate)
    session.error(
        f"Missing {candidate}. Create `.venv` and run `pip install -e .[dev]` inside it."
    )
    raise RuntimeError("unreachable")  # pragma: no cover


def _run_pytest(session: nox.Session) -> None:
    pytest = _require_venv_tool(session, "pytest")
    coverage_args = [f"--cov={package}" for package in COVERAGE_PACKAGES]
    session.run(
        pytest,
        "-n",
        "auto",
        *coverage_args,
        "--cov-report=term-missing",
        f"--cov-fail-under={COVERAGE_FLOOR}",
        *session.posargs,
        external=True,
    )


@nox.session(venv_backend="none")
def format(session: nox.Session) -> None:
    """Format code using ruff (`nox -s format`)."""
    ruff = _require_venv_tool(session, "ruff")
    session.run(ruff, "format", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def lint(session: nox.Session) -> None:
    """Lint code using ruff (`nox -s lint`)."""
    ruff = _require_venv_tool(session, "ruff")
    session.run(ruff, "check", *CODE_LOCATIONS, external=True)


@nox.session(venv_backend="none")
def typecheck(session: nox.Session) -> None:
    """Run pyright with the settings from pyproject.toml (`nox -s typecheck`)."""
    pyright = _require_venv_tool(session, "pyright")
    session.run(pyright, external=True)


@nox.session(venv_backend="none")
def test(session: nox.Session) -> None:
    """Run the test suite; extra arguments go to pytest (`nox -s test -- -k cloud`)."""
    _run_pytest(session)


@nox.session(venv_backend="none")
def all(session: nox.Session) -> None:
    """Run the full Ruff/Pyright/Pytest quality gate suite (`nox -s all`)."""
    ruff = _require_venv_tool(session, "ruff")
    pyright = _require_venv_tool(session, "pyright")

    session.run(ruff, "check", "--fix", *CODE_LOCATIONS, external=True)
    session.run(ruff, "format", *CODE_LOCATIONS, external=True)
    session.run(ruff, "format", "--check", *CODE_LOCATIONS, external=True)
    session.run(pyright, external=True)
    _run_pytest(session)
