"""Orchestrate AV1 encodes with ab-av1 and ffmpeg."""

__version__ = "0.1.0"

from .backend import (  # noqa: E402
    AbAV1Backend,
    CommandBuilder,
    EncoderSession,
    FFmpegBackend,
    MediaExporter,
)
from .filesystem import LocalDisk, Media, MediaCollection  # noqa: E402
from .models import EncoderConfig, Operation, RuntimeContext  # noqa: E402

__all__ = [
    "AbAV1Backend",
    "CommandBuilder",
    "EncoderConfig",
    "EncoderSession",
    "FFmpegBackend",
    "LocalDisk",
    "Media",
    "MediaCollection",
    "MediaExporter",
    "Operation",
    "RuntimeContext",
    "__version__",
]
