"""Status emission helpers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

from av1kit.models.verbosity import Verbosity

logger = logging.getLogger(__name__)


def emit_status(message: str, *, status_callback: Callable[[str], None] | None) -> None:
    """Send ``message`` to the CLI, logger, or a custom callback.

    * ``print`` - used by the CLI for direct terminal updates.
    * ``None`` - route messages through ``logger.info``.
    * Any other ``Callable[[str], None]`` - for tests that capture status output.
    """
    if status_callback is None:
        logger.info(message)
        return
    if status_callback is print:
        print(message, flush=True)  # noqa: T201
        return
    status_callback(message)


def format_action_label(*, dry_run: bool) -> str:
    """Return a short action label for command banners."""
    if dry_run:
        return "Command"
    return "Running"


def maybe_log_command(
    *,
    verbosity: Verbosity,
    dry_run: bool,
    status_callback: Callable[[str], None] | None,
    banner: str,
) -> None:
    """Emit a command banner at ``Verbosity.COMMANDS`` or in dry-run mode."""
    if verbosity >= Verbosity.COMMANDS or dry_run:
        emit_status(banner, status_callback=status_callback)


def maybe_log_output(
    *,
    verbosity: Verbosity,
    status_callback: Callable[[str], None] | None,
    output: str,
) -> None:
    """Relay captured tool output line by line at ``Verbosity.OUTPUT``."""
    if verbosity < Verbosity.OUTPUT:
        return
    for line in output.splitlines():
        if line.strip():
            emit_status(line, status_callback=status_callback)


__all__ = ["emit_status", "format_action_label", "maybe_log_command", "maybe_log_output"]
