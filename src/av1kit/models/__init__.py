"""Expose models and type definitions."""

from .config import EncoderConfig
from .context import RuntimeContext
from .result import EncoderResult, ExportResult, ProcessOutput
from .types import (
    BackendChoice,
    HardwareAccelMethod,
    HardwareEncoder,
    Operation,
    SoftwareEncoder,
    Visibility,
)
from .verbosity import Verbosity

__all__ = [
    "BackendChoice",
    "EncoderConfig",
    "EncoderResult",
    "ExportResult",
    "HardwareAccelMethod",
    "HardwareEncoder",
    "Operation",
    "ProcessOutput",
    "RuntimeContext",
    "SoftwareEncoder",
    "Verbosity",
    "Visibility",
]
