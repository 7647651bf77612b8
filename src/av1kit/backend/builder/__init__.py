"""Command construction for ab-av1 operations."""

from .command_builder import REQUIRED_FIELDS, CommandBuilder, OptionValue

__all__ = ["REQUIRED_FIELDS", "CommandBuilder", "OptionValue"]
