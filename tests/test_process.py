"""Tests for process execution helpers."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from av1kit.models.result import NOT_FOUND_EXIT_CODE, TIMEOUT_EXIT_CODE
from av1kit.tools.process import join_command, run

if TYPE_CHECKING:
    from pathlib import Path


def test_run_captures_output(tmp_path: Path) -> None:
    """Capture exit code, stdout and stderr, running in the given directory."""
    code = "import os, sys; print(os.getcwd()); print('warn', file=sys.stderr); sys.exit(3)"
    result = run([sys.executable, "-c", code], cwd=tmp_path)
    assert result.exit_code == 3
    assert not result.successful
    assert result.stdout.strip() == str(tmp_path.resolve())
    assert result.stderr.strip() == "warn"


def test_run_timeout() -> None:
    """Kill processes that exceed the timeout and report exit code 124."""
    result = run([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.5)
    assert result.exit_code == TIMEOUT_EXIT_CODE
    assert "timed out after 0.5 seconds" in result.stderr


def test_run_missing_binary(tmp_path: Path) -> None:
    """Report binaries that cannot be started with exit code 127."""
    result = run([str(tmp_path / "no-such-tool"), "--version"])
    assert result.exit_code == NOT_FOUND_EXIT_CODE
    assert result.stderr


def test_join_command_quotes() -> None:
    """Quote arguments containing spaces for display."""
    assert join_command("ab-av1", ["encode", "-i", "my clip.mp4"]) == "ab-av1 encode -i 'my clip.mp4'"
