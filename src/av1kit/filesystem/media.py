"""Media handles and ordered collections of them."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Self

from .disk import Disk, LocalDisk, require_local_path

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .temporary import TemporaryDirectories

logger = logging.getLogger(__name__)


class Media:
    """A file on a :class:`Disk`."""

    def __init__(self, disk: Disk, path: str) -> None:
        self.disk = disk
        self.path = path
        self._local: Path | None = None

    def __repr__(self) -> str:
        return f"Media({self.disk.name!r}, {self.path!r})"

    @classmethod
    def from_local_file(cls, path: str | Path) -> Media:
        """Open a local file on a disk rooted at its directory."""
        file = Path(path).expanduser().absolute()
        return cls(LocalDisk(file.parent), file.name)

    @property
    def filename(self) -> str:
        """Base name of the media path."""
        return PurePosixPath(self.path).name

    @property
    def is_local(self) -> bool:
        """Whether the media's disk is local."""
        return self.disk.is_local

    def materialize_local(self, temporary: TemporaryDirectories) -> Path:
        """Return a local path for this media, downloading it if needed.

        Local media resolve directly. Other media are streamed into a new
        directory from ``temporary``; later calls with the same ``temporary``
        reuse that copy for as long as its directory exists. This may block
        on I/O and raises whatever the disk raises.
        """
        if self.disk.is_local:
            return require_local_path(self.disk, self.path)
        if self._local is not None and temporary.owns(self._local.parent) and self._local.is_file():
            return self._local
        target = temporary.create() / self.filename
        logger.info("Copying %s from %s to %s", self.path, self.disk.name, target)
        with self.disk.read_stream(self.path) as src, target.open("wb") as dst:
            shutil.copyfileobj(src, dst)
        self._local = target
        return target


class MediaCollection:
    """Ordered group of media opened together."""

    def __init__(self, items: Iterable[Media] = ()) -> None:
        self._items: list[Media] = list(items)

    @classmethod
    def from_paths(cls, paths: Iterable[str | Path], disk: Disk | None = None) -> MediaCollection:
        """Build a collection from paths on ``disk``, or local files when no disk is given."""
        if disk is None:
            return cls(Media.from_local_file(p) for p in paths)
        return cls(Media(disk, str(p)) for p in paths)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Media]:
        return iter(self._items)

    def push(self, media: Media) -> Self:
        """Append ``media``."""
        self._items.append(media)
        return self

    def first(self) -> Media | None:
        """Return the first media, if any."""
        return self._items[0] if self._items else None

    def last(self) -> Media | None:
        """Return the last media, if any."""
        return self._items[-1] if self._items else None

    def find_by_path(self, path: str | Path) -> Media | None:
        """Return the media whose disk path or local path equals ``path``."""
        wanted = str(path)
        for media in self._items:
            if media.path == wanted:
                return media
            if media.is_local and str(media.disk.local_path(media.path)) == wanted:
                return media
        return None

    def local_paths(self, temporary: TemporaryDirectories) -> list[Path]:
        """Materialize every media and return their local paths in order."""
        return [media.materialize_local(temporary) for media in self._items]


__all__ = ["Media", "MediaCollection"]
