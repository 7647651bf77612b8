"""Configuration model for sessions, backends and probes."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import HardwareAccelMethod, HardwareEncoder, SoftwareEncoder

ENV_PREFIX = "AV1KIT_"

DEFAULT_ENCODER_PRIORITY: tuple[str, ...] = (
    HardwareEncoder.QSV.value,
    HardwareEncoder.NVENC.value,
    HardwareEncoder.AMF.value,
    SoftwareEncoder.SVT_AV1.value,
    SoftwareEncoder.AOM_AV1.value,
    SoftwareEncoder.RAV1E.value,
)
DEFAULT_HWACCEL_PRIORITY: tuple[str, ...] = (
    HardwareAccelMethod.QSV.value,
    HardwareAccelMethod.CUDA.value,
    HardwareAccelMethod.VAAPI.value,
    HardwareAccelMethod.VULKAN.value,
)
DEFAULT_TEMPORARY_ROOT = Path(tempfile.gettempdir()) / "av1kit"

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _parse_bool(raw: str) -> bool:
    token = raw.strip().lower()
    if token in _TRUE_STRINGS:
        return True
    if token in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean value: {raw!r}")


def _parse_optional(raw: str) -> str | None:
    return raw.strip() or None


# field name -> (environment variable suffix, parser)
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "abav1_binary": ("ABAV1_BINARY", str),
    "ffmpeg_binary": ("FFMPEG_BINARY", str),
    "abav1_timeout": ("ABAV1_TIMEOUT", float),
    "ffmpeg_timeout": ("FFMPEG_TIMEOUT", float),
    "probe_timeout": ("PROBE_TIMEOUT", float),
    "default_preset": ("DEFAULT_PRESET", str),
    "default_min_quality_target": ("MIN_VMAF", float),
    "default_quality_level": ("DEFAULT_CRF", int),
    "min_crf": ("MIN_CRF", int),
    "max_crf": ("MAX_CRF", int),
    "max_encoded_percent": ("MAX_PERCENT", int),
    "encoder": ("ENCODER", _parse_optional),
    "hardware_acceleration": ("HARDWARE_ACCEL", _parse_bool),
    "hwaccel_device": ("HWACCEL_DEVICE", _parse_optional),
    "threads": ("THREADS", int),
    "audio_codec": ("AUDIO_CODEC", str),
    "pixel_format": ("PIXEL_FORMAT", _parse_optional),
    "auto_crf": ("AUTO_CRF", _parse_bool),
    "temporary_files_root": ("TEMPORARY_FILES_ROOT", Path),
    "cache_ttl": ("CACHE_TTL", float),
}


class EncoderConfig(BaseModel):
    """Every tunable used by sessions, backends and the hardware detector.

    Built once and passed in at construction; nothing downstream reads the
    environment on its own.
    """

    abav1_binary: str = Field("ab-av1", description="Path to the ab-av1 binary.")
    ffmpeg_binary: str = Field("ffmpeg", description="Path to the ffmpeg binary.")
    abav1_timeout: float | None = Field(14400, gt=0, description="ab-av1 timeout in seconds.")
    ffmpeg_timeout: float | None = Field(7200, gt=0, description="ffmpeg timeout in seconds.")
    probe_timeout: float = Field(10, gt=0, description="Timeout for version and capability probes.")
    default_preset: str = Field("6", description="Preset used when none is set.")
    default_min_quality_target: float = Field(80, ge=0, le=100, description="VMAF target for quality searches.")
    default_quality_level: int = Field(30, ge=0, description="Quality level used when no search result exists.")
    min_crf: int = Field(20, ge=0, description="Lower bound for quality searches.")
    max_crf: int = Field(45, ge=0, description="Upper bound for quality searches.")
    max_encoded_percent: int = Field(300, gt=0, description="Maximum encoded size as a percent of the source.")
    encoder: str | None = Field(None, description="Force an ffmpeg encoder; auto-detect when unset.")
    hardware_acceleration: bool = Field(True, description="Prefer hardware encoders and decode transports.")
    hwaccel_device: str | None = Field(None, description="Device passed as -hwaccel_device.")
    hwaccel_priority: tuple[str, ...] = DEFAULT_HWACCEL_PRIORITY
    encoder_priority: tuple[str, ...] = DEFAULT_ENCODER_PRIORITY
    threads: int = Field(0, ge=0, description="ffmpeg thread count, 0 for auto.")
    audio_codec: str = Field("libopus", description="Audio codec for ffmpeg encodes.")
    pixel_format: str | None = Field("yuv420p", description="Default ffmpeg pixel format.")
    auto_crf: bool = Field(False, description="Always search a quality level before ffmpeg encodes.")
    temporary_files_root: Path = Field(DEFAULT_TEMPORARY_ROOT, description="Root for temporary directories.")
    cache_ttl: float = Field(3600, ge=0, description="Seconds to keep capability probe results.")

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("default_preset", mode="before")
    @classmethod
    def _stringify_preset(cls, v: object) -> object:
        """Presets are passed on the command line, so keep them as text."""
        return str(v) if isinstance(v, int) else v

    @field_validator("temporary_files_root")
    @classmethod
    def _expand_root(cls, v: Path) -> Path:
        return v.expanduser()

    @model_validator(mode="after")
    def _validate_crf_bounds(self) -> EncoderConfig:
        if self.min_crf > self.max_crf:
            raise ValueError("min_crf must not exceed max_crf")
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> EncoderConfig:
        """Build a configuration from ``AV1KIT_*`` variables plus explicit overrides."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, (suffix, parse) in _ENV_FIELDS.items():
            raw = env.get(f"{ENV_PREFIX}{suffix}")
            if raw is None:
                continue
            try:
                values[name] = parse(raw)
            except ValueError as e:
                raise ValueError(f"{ENV_PREFIX}{suffix}: {e}") from e
        values.update(overrides)
        return cls(**values)


__all__ = [
    "DEFAULT_ENCODER_PRIORITY",
    "DEFAULT_HWACCEL_PRIORITY",
    "DEFAULT_TEMPORARY_ROOT",
    "ENV_PREFIX",
    "EncoderConfig",
]
