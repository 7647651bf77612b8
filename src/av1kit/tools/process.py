"""Helpers for executing external tools and formatting their commands."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path

from av1kit.models.result import NOT_FOUND_EXIT_CODE, TIMEOUT_EXIT_CODE, ProcessOutput

logger = logging.getLogger(__name__)


def _as_text(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def run(
    argv: Sequence[str | Path],
    *,
    cwd: str | Path | None = None,
    timeout: float | None = None,
) -> ProcessOutput:
    """Run ``argv`` and capture its exit code, stdout and stderr.

    The command is executed directly, never through a shell. A process that
    outlives ``timeout`` is killed and reported with exit code 124; an
    executable that cannot be started is reported with exit code 127.
    """
    cmd = [str(a) for a in argv]
    creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0)
    logger.debug("Executing: %s", join_command(cmd[0], cmd[1:]) if cmd else "")
    try:
        proc = subprocess.run(  # noqa: S603
            cmd,
            cwd=None if cwd is None else str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            creationflags=creationflags,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        message = f"Command timed out after {timeout} seconds"
        stderr = _as_text(e.stderr)
        return ProcessOutput(
            exit_code=TIMEOUT_EXIT_CODE,
            stdout=_as_text(e.stdout),
            stderr=f"{stderr}\n{message}" if stderr else message,
        )
    except OSError as e:
        return ProcessOutput(exit_code=NOT_FOUND_EXIT_CODE, stderr=str(e))
    return ProcessOutput(exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


def quote_arg(arg: str) -> str:
    """Quote argument if needed."""
    if os.name == "nt":
        return subprocess.list2cmdline([arg])
    return shlex.quote(arg)


def join_command(exe: str | Path, args: Sequence[str | Path]) -> str:
    """Format a command for display only; never execute the result."""
    parts = [str(exe), *[str(a) for a in args]]
    return " ".join(quote_arg(part) for part in parts)


__all__ = ["join_command", "quote_arg", "run"]
