"""Backend encoding directly with ffmpeg."""

from __future__ import annotations

import logging
import re
from functools import cached_property
from typing import TYPE_CHECKING

from av1kit.errors import InvalidOperation, MissingRequiredField
from av1kit.models.types import (
    FALLBACK_ENCODER,
    HARDWARE_ENCODER_IDS,
    KNOWN_ENCODER_IDS,
    HardwareEncoder,
    Operation,
)
from av1kit.tools.hardware import HardwareDetector

from .base import Backend
from .builder import command_args as ca

if TYPE_CHECKING:
    from .builder import CommandBuilder

logger = logging.getLogger(__name__)

SUPPORTED_OPERATIONS = frozenset({Operation.ENCODE, Operation.AUTO_ENCODE})

_DEFAULT_FLAGS = ("-crf", "-preset")


def flag_names_for(encoder_id: str) -> tuple[str, str]:
    """Return the ``(quality_flag, speed_flag)`` pair for an encoder.

    Hardware encoders take their quality level through ``-q:v``; AMF calls
    its speed setting ``-quality``.
    """
    if encoder_id not in KNOWN_ENCODER_IDS:
        return _DEFAULT_FLAGS
    quality_flag = "-q:v" if encoder_id in HARDWARE_ENCODER_IDS else "-crf"
    speed_flag = "-quality" if encoder_id == HardwareEncoder.AMF.value else "-preset"
    return quality_flag, speed_flag


class FFmpegBackend(Backend):
    """Encode to AV1 with ffmpeg, picking the best available encoder.

    Only single-pass encodes are supported. For ``auto-encode`` the session
    searches a quality level with ab-av1 first and this backend encodes with
    the result.
    """

    name = "ffmpeg"
    program = "ffmpeg"
    version_args = ("-version",)
    version_patterns = (
        re.compile(r"ffmpeg version ([\d.]+)"),
        re.compile(r"ffmpeg version (\S+)"),
    )
    supports_quality_search = True

    @property
    def binary(self) -> str:
        """Configured ffmpeg executable."""
        return self.config.ffmpeg_binary

    @property
    def timeout(self) -> float | None:
        """Encode timeout in seconds."""
        return self.config.ffmpeg_timeout

    @cached_property
    def detector(self) -> HardwareDetector:
        """Hardware detector sharing this backend's cache."""
        return HardwareDetector.from_config(self.config, self.ctx)

    def parse_version(self, output: str) -> str:
        """Return the version number, or the first line of ``-version`` output."""
        version = super().parse_version(output)
        if version == output.strip():
            lines = output.strip().splitlines()
            return lines[0] if lines else ""
        return version

    def select_encoder(self, builder: CommandBuilder) -> str:
        """Return the encoder id used for ``builder``."""
        choice = builder.option(ca.ENCODER)
        if isinstance(choice, str) and choice in KNOWN_ENCODER_IDS:
            return choice
        if self.config.encoder:
            return self.config.encoder
        if self.config.hardware_acceleration:
            hardware = self.detector.best_hardware_only()
            if hardware:
                return hardware
        return self.detector.best_overall() or FALLBACK_ENCODER

    def _hwaccel_args(self) -> list[str]:
        if not self.config.hardware_acceleration:
            return []
        method = self.detector.hardware_transport_method()
        if method is None:
            return []
        args = ["-hwaccel", method]
        if self.config.hwaccel_device:
            args += ["-hwaccel_device", self.config.hwaccel_device]
        return args

    def arguments(self, builder: CommandBuilder) -> tuple[str, ...]:
        """Translate ``builder`` into ffmpeg arguments.

        With an operation set, its required fields are enforced first. A
        builder without an operation is a plain ``encode`` whose missing
        quality level and preset come from the configuration.
        """
        op = builder.operation or Operation.ENCODE
        if op not in SUPPORTED_OPERATIONS:
            raise InvalidOperation(f"ffmpeg backend does not support '{op.value}'")
        if builder.operation is not None:
            builder.validate()
        if builder.input is None:
            raise MissingRequiredField("input", op.token)
        if builder.output is None:
            raise MissingRequiredField("output", op.token)
        encoder = self.select_encoder(builder)
        quality_flag, speed_flag = flag_names_for(encoder)
        quality = builder.quality_level
        if quality is None:
            quality = self.config.default_quality_level
        preset = builder.preset or self.config.default_preset
        audio_codec = builder.option(ca.AUDIO_CODEC) or self.config.audio_codec
        logger.debug("Using encoder %s with quality %s and preset %s", encoder, quality, preset)
        args = [
            *self._hwaccel_args(),
            *ca.INPUT_FLAG,
            builder.input,
            "-c:v",
            encoder,
            "-c:a",
            str(audio_codec),
            quality_flag,
            str(quality),
            speed_flag,
            preset,
            "-threads",
            str(self.config.threads),
        ]
        video_filter = builder.option(ca.VIDEO_FILTER)
        if video_filter:
            args += ["-vf", str(video_filter)]
        pix_fmt = builder.option(ca.PIX_FMT) or self.config.pixel_format
        if pix_fmt:
            args += ["-pix_fmt", str(pix_fmt)]
        args += [*builder.extra_args, *ca.OVERWRITE_OUTPUT, builder.output]
        return tuple(args)


__all__ = ["SUPPORTED_OPERATIONS", "FFmpegBackend", "flag_names_for"]
