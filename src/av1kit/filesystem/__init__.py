"""Storage, media handles and temporary directories."""

from .disk import Disk, LocalDisk, require_local_path
from .media import Media, MediaCollection
from .temporary import TemporaryDirectories

__all__ = [
    "Disk",
    "LocalDisk",
    "Media",
    "MediaCollection",
    "TemporaryDirectories",
    "require_local_path",
]
