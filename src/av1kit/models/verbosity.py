"""Verbosity levels for status output."""

from __future__ import annotations

import logging
from enum import IntEnum


class Verbosity(IntEnum):
    """How much of each external command is echoed to the caller.

    ``COMMANDS`` shows every command before it runs; ``OUTPUT`` also relays
    the captured tool output once the process exits.
    """

    QUIET = 0
    COMMANDS = 1
    OUTPUT = 2

    @classmethod
    def parse(cls, value: object) -> Verbosity:
        """Accept numeric values or case-insensitive member names."""
        if isinstance(value, Verbosity):
            return value
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            token = value.strip()
            try:
                return cls[token.upper()]
            except KeyError:
                try:
                    return cls(int(token))
                except ValueError:
                    pass
        raise ValueError("verbosity must be one of quiet, commands, output, or 0/1/2")

    @property
    def log_level(self) -> int:
        """Logging level matching this verbosity."""
        return {
            Verbosity.QUIET: logging.WARNING,
            Verbosity.COMMANDS: logging.INFO,
            Verbosity.OUTPUT: logging.DEBUG,
        }[self]


__all__ = ["Verbosity"]
