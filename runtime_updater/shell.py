"""Subprocess and terminal output utilities.

Provides a thin wrapper around subprocess calls to version managers, plus
helpers for the informational echoes written to stdout. Log lines (failures
and completed steps) go through the logging module to stderr instead.
"""

from __future__ import annotations

import os
import subprocess


class ToolNotFound(OSError):
    """Raised when an external executable cannot be started at all."""


def run(
    *args: str,
    check: bool = True,
    capture: bool = False,
    env: dict[str, str] | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run an external command.

    By default output streams directly to the terminal so users can follow
    long-running builds (e.g. compiling a new Perl). With capture=True the
    stdout is collected as text for parsing instead.

    Args:
        *args: Command and arguments (e.g., "rbenv", "install", "3.3.0").
        check: If True (default), raise on non-zero exit.
        capture: If True, capture stdout/stderr as text.
        env: Extra environment variables layered over the current environment.

    Returns:
        CompletedProcess with returncode (and stdout when captured).

    Raises:
        ToolNotFound: If the executable is missing or cannot be executed.
    """
    full_env = {**os.environ, **env} if env else None
    try:
        return subprocess.run(
            args,
            check=check,
            capture_output=capture,
            text=True,
            env=full_env,
        )
    except OSError as exc:
        raise ToolNotFound(f"cannot execute {args[0]}: {exc.strerror or exc}") from exc


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of an upgrade run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def echo(msg: str) -> None:
    """Print an indented informational line to stdout."""
    print(f"  {msg}")
