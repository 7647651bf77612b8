"""Temporary working directories owned by sessions and backends."""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

PREFIX = "av1_"  #: Name prefix of every directory created here.
STALE_AFTER_SECONDS = 86400  #: Default age after which :meth:`cleanup` removes leftovers.


class TemporaryDirectories:
    """Create and remove uniquely named directories under ``root``.

    Every directory created through an instance is tracked so the owner can
    remove all of them at once with :meth:`delete_all`.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(tempfile.gettempdir()) if root is None else Path(root)
        self._created: list[Path] = []

    @property
    def created(self) -> tuple[Path, ...]:
        """Directories created by this instance that still exist."""
        return tuple(self._created)

    def create(self) -> Path:
        """Create a fresh directory and return its path."""
        self.root.mkdir(parents=True, exist_ok=True)
        path = Path(tempfile.mkdtemp(prefix=PREFIX, dir=self.root))
        self._created.append(path)
        logger.debug("Created temporary directory %s", path)
        return path

    def owns(self, path: str | Path) -> bool:
        """Whether ``path`` was created by this instance."""
        return Path(path) in self._created

    def remove(self, path: str | Path) -> None:
        """Delete ``path`` and everything below it."""
        path = Path(path)
        shutil.rmtree(path, ignore_errors=True)
        if path in self._created:
            self._created.remove(path)
        logger.debug("Removed temporary directory %s", path)

    def delete_all(self) -> None:
        """Delete every directory created by this instance."""
        for path in list(self._created):
            self.remove(path)

    def cleanup(self, older_than: float = STALE_AFTER_SECONDS) -> int:
        """Remove leftover ``av1_*`` directories older than ``older_than`` seconds.

        Returns the number of directories removed.
        """
        if not self.root.is_dir():
            return 0
        cutoff = time.time() - older_than
        removed = 0
        for path in self.root.glob(f"{PREFIX}*"):
            if not path.is_dir():
                continue
            if path.stat().st_mtime < cutoff:
                self.remove(path)
                removed += 1
        if removed:
            logger.info("Removed %d stale temporary directories from %s", removed, self.root)
        return removed


__all__ = ["PREFIX", "STALE_AFTER_SECONDS", "TemporaryDirectories"]
