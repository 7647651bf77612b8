"""Backend running the ab-av1 command-line tool."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .base import Backend

if TYPE_CHECKING:
    from .builder import CommandBuilder


class AbAV1Backend(Backend):
    """Run builder commands through ``ab-av1``.

    The builder's rendering is already in ab-av1's dialect, so arguments pass
    through unchanged. ab-av1 searches quality levels itself during
    ``auto-encode``, so no separate search step is needed.
    """

    name = "ab-av1"
    program = "ab-av1"
    version_args = ("--version",)
    version_patterns = (re.compile(r"ab-av1 ([\d.]+)"),)
    supports_quality_search = False

    @property
    def binary(self) -> str:
        """Configured ab-av1 executable."""
        return self.config.abav1_binary

    @property
    def timeout(self) -> float | None:
        """Execution timeout in seconds."""
        return self.config.abav1_timeout

    def arguments(self, builder: CommandBuilder) -> tuple[str, ...]:
        """Return the builder's own rendering."""
        return builder.render()


__all__ = ["AbAV1Backend"]
