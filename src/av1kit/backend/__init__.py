"""Command building, backends and the encoding session."""

from .abav1 import AbAV1Backend
from .base import Backend
from .builder import CommandBuilder
from .exporter import MediaExporter
from .ffmpeg import FFmpegBackend, flag_names_for
from .search import parse_quality_level, parse_quality_score, search_quality_level
from .session import EncoderSession, SessionState

__all__ = [
    "AbAV1Backend",
    "Backend",
    "CommandBuilder",
    "EncoderSession",
    "FFmpegBackend",
    "MediaExporter",
    "SessionState",
    "flag_names_for",
    "parse_quality_level",
    "parse_quality_score",
    "search_quality_level",
]
