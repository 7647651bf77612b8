"""Process, probing and status helpers."""

from .hardware import HardwareDetector, rank_by_priority
from .helpers import emit_status
from .process import join_command, quote_arg, run

__all__ = [
    "HardwareDetector",
    "emit_status",
    "join_command",
    "quote_arg",
    "rank_by_priority",
    "run",
]
