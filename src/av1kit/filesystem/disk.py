"""Storage abstraction used for sources and export destinations."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

from av1kit.errors import RemoteStorageError

if TYPE_CHECKING:
    from av1kit.models.types import Visibility

logger = logging.getLogger(__name__)

_DEFAULT_FILE_MODE = 0o644


@runtime_checkable
class Disk(Protocol):
    """Minimal storage interface.

    Paths are relative to the disk. Only local disks can hand out a
    filesystem path; every other disk is read through :meth:`read_stream`.
    """

    name: str

    @property
    def is_local(self) -> bool:
        """Whether paths on this disk are local files."""

    def exists(self, path: str) -> bool:
        """Whether ``path`` exists."""

    def read(self, path: str) -> bytes:
        """Return the contents of ``path``."""

    def read_stream(self, path: str) -> BinaryIO:
        """Open ``path`` for binary reading."""

    def write(self, path: str, data: bytes | BinaryIO, visibility: Visibility | None = None) -> None:
        """Store ``data`` at ``path``."""

    def delete(self, path: str) -> None:
        """Remove ``path`` if it exists."""

    def local_path(self, path: str) -> Path:
        """Return a filesystem path for ``path``."""


class LocalDisk:
    """A directory on the local filesystem."""

    def __init__(self, root: str | Path = ".", name: str = "local") -> None:
        self.root = Path(root).expanduser().absolute()
        self.name = name

    def __repr__(self) -> str:
        return f"LocalDisk({str(self.root)!r})"

    @property
    def is_local(self) -> bool:
        """Always true."""
        return True

    def local_path(self, path: str) -> Path:
        """Return the absolute filesystem path for ``path``."""
        return self.root / path

    def exists(self, path: str) -> bool:
        """Whether ``path`` exists below the root."""
        return self.local_path(path).exists()

    def read(self, path: str) -> bytes:
        """Return the contents of ``path``."""
        return self.local_path(path).read_bytes()

    def read_stream(self, path: str) -> BinaryIO:
        """Open ``path`` for binary reading; the caller closes the stream."""
        return self.local_path(path).open("rb")

    def write(self, path: str, data: bytes | BinaryIO, visibility: Visibility | None = None) -> None:
        """Write ``data`` to ``path``, creating parent directories.

        The data goes to a sibling temporary file that replaces ``path`` only
        once it is complete, so a failed write never leaves a partial file.
        ``visibility`` sets the file mode; without one the file is public.
        """
        target = self.local_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        mode = _DEFAULT_FILE_MODE if visibility is None else visibility.file_mode
        with tempfile.NamedTemporaryFile(dir=target.parent, prefix=f".{target.name}.", delete=False) as fh:
            partial = Path(fh.name)
            try:
                if isinstance(data, bytes):
                    fh.write(data)
                else:
                    shutil.copyfileobj(data, fh)
            except BaseException:
                fh.close()
                partial.unlink(missing_ok=True)
                raise
        try:
            partial.chmod(mode)
            os.replace(partial, target)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        logger.debug("Wrote %s", target)

    def delete(self, path: str) -> None:
        """Remove ``path``; a missing file is ignored."""
        self.local_path(path).unlink(missing_ok=True)


def require_local_path(disk: Disk, path: str) -> Path:
    """Return the local path of ``path`` on ``disk``.

    Raises:
        RemoteStorageError: If ``disk`` is not local.

    """
    if not disk.is_local:
        raise RemoteStorageError(f"Disk '{disk.name}' has no local paths")
    return disk.local_path(path)


__all__ = ["Disk", "LocalDisk", "require_local_path"]
