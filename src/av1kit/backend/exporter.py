"""Move a session's artifact to its final destination."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Self, TypeAlias

from av1kit.errors import EncodingFailed, InvalidOperation, TransferFailed
from av1kit.models.result import ExportResult
from av1kit.models.types import Visibility

if TYPE_CHECKING:
    from collections.abc import Callable

    from av1kit.filesystem.disk import Disk
    from av1kit.models.result import EncoderResult

    from .session import EncoderSession

logger = logging.getLogger(__name__)

SaveCallback: TypeAlias = "Callable[[EncoderResult, str], None]"


def resolve_destination(to_path: str | None, name: str | None, temp_path: str) -> str:
    """Return the destination path of an export.

    A ``to_path`` with a file extension is the destination itself; otherwise
    the file keeps ``name`` or the temporary file's basename inside it.
    """
    basename = name or PurePosixPath(Path(temp_path).as_posix()).name
    if not to_path:
        return basename
    target = PurePosixPath(to_path)
    if target.suffix:
        return str(target)
    return str(target / basename)


class MediaExporter:
    """Configure and perform the export of one session's artifact."""

    def __init__(self, session: EncoderSession) -> None:
        self.session = session
        self._disk: Disk | None = None
        self._to_path: str | None = None
        self._visibility: Visibility | None = None
        self._callbacks: list[SaveCallback] = []

    def to_disk(self, disk: Disk) -> Self:
        """Save to ``disk`` instead of the first media's disk."""
        self._disk = disk
        return self

    def to_path(self, path: str | Path) -> Self:
        """Save under ``path``, a directory or a full file path."""
        self._to_path = Path(path).as_posix()
        return self

    def with_visibility(self, visibility: Visibility | str) -> Self:
        """Apply ``visibility`` to the saved file."""
        self._visibility = Visibility(visibility)
        return self

    def after_saving(self, callback: SaveCallback) -> Self:
        """Register ``callback(result, path)`` to run after a successful save."""
        self._callbacks.append(callback)
        return self

    def get_command(self) -> str:
        """Return the session command as a display string."""
        return self.session.get_command()

    def save(self, name: str | None = None) -> ExportResult:
        """Run the session if needed and copy its artifact to the destination.

        The temporary artifact and the session's temporary directory are
        deleted only after the copy succeeds.

        Raises:
            EncodingFailed: If the run failed; nothing is transferred.
            InvalidOperation: If the operation produced no artifact.
            TransferFailed: If the copy fails; the temporary artifact is kept.

        """
        result = self.session.result or self.session.run()
        if result.failed:
            raise EncodingFailed(result.exit_code, result.error_output)
        if result.output_path is None:
            raise InvalidOperation("The operation produced no artifact to export")
        disk = self._disk or self.session.default_disk()
        destination = resolve_destination(self._to_path, name, result.output_path)
        temp = Path(result.output_path)
        logger.info("Saving %s to %s on disk '%s'", temp, destination, disk.name)
        try:
            with temp.open("rb") as stream:
                disk.write(destination, stream, visibility=self._visibility)
        except OSError as e:
            raise TransferFailed(f"Could not save {temp} to {destination}: {e}", path=destination) from e
        temp.unlink(missing_ok=True)
        self.session.remove_temporary_directory()
        for callback in self._callbacks:
            callback(result, destination)
        return ExportResult(result=result, disk=disk, path=destination)


__all__ = ["MediaExporter", "SaveCallback", "resolve_destination"]
