"""Exception types raised by av1kit."""

from __future__ import annotations


class Av1KitError(Exception):
    """Base class for all av1kit errors."""


class InvalidOperation(Av1KitError, ValueError):  # noqa: N818
    """Raised when an operation is unknown or unsupported by a backend."""


class MissingRequiredField(Av1KitError, ValueError):  # noqa: N818
    """Raised when rendering a command that lacks a required field."""

    def __init__(self, field: str, operation: str | None = None) -> None:
        self.field = field
        self.operation = operation
        suffix = f" for '{operation}'" if operation else ""
        super().__init__(f"Missing required field '{field}'{suffix}")


class EmptyCollection(Av1KitError, ValueError):  # noqa: N818
    """Raised when opening a session with no media."""


class VersionParseError(Av1KitError, RuntimeError):
    """Raised when a tool's version probe exits unsuccessfully."""


class EncodingFailed(Av1KitError, RuntimeError):  # noqa: N818
    """Raised when exporting the result of a failed run."""

    def __init__(self, exit_code: int, error_output: str) -> None:
        self.exit_code = exit_code
        self.error_output = error_output
        detail = error_output.strip() or "no error output"
        super().__init__(f"Encoding failed ({exit_code}): {detail}")


class TransferFailed(Av1KitError, OSError):  # noqa: N818
    """Raised when an artifact cannot be copied to its destination."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class RemoteStorageError(Av1KitError, OSError):
    """Raised when a local path is requested from non-local storage."""


__all__ = [
    "Av1KitError",
    "EmptyCollection",
    "EncodingFailed",
    "InvalidOperation",
    "MissingRequiredField",
    "RemoteStorageError",
    "TransferFailed",
    "VersionParseError",
]
