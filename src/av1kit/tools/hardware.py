"""Hardware and software AV1 encoder detection."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from av1kit.models.types import (
    HARDWARE_ENCODER_IDS,
    KNOWN_ENCODER_IDS,
    SOFTWARE_ENCODER_IDS,
    HardwareAccelMethod,
)

from . import process

if TYPE_CHECKING:
    from av1kit.models.config import EncoderConfig
    from av1kit.models.context import RuntimeContext

logger = logging.getLogger(__name__)

ENCODERS_ARGS: tuple[str, ...] = ("-hide_banner", "-encoders")
HWACCELS_ARGS: tuple[str, ...] = ("-hide_banner", "-hwaccels")

# " V....D libsvtav1            SVT-AV1(Scalable Video Technology for AV1) encoder (codec av1)"
_ENCODER_LINE = re.compile(r"^\s*V[A-Z.]{5}\s+(\S+)")
_KNOWN_TRANSPORTS = frozenset(m.value for m in HardwareAccelMethod)

_ENCODERS_KEY = "__av1kit_encoders__"
_HWACCELS_KEY = "__av1kit_hwaccels__"


def parse_encoder_listing(output: str) -> tuple[str, ...]:
    """Return known AV1 encoder ids from ``ffmpeg -encoders`` output, in listing order."""
    found: list[str] = []
    for line in output.splitlines():
        match = _ENCODER_LINE.match(line)
        if match is None:
            continue
        name = match.group(1)
        if name in KNOWN_ENCODER_IDS and name not in found:
            found.append(name)
    return tuple(found)


def parse_hwaccel_listing(output: str) -> tuple[str, ...]:
    """Return known transports from ``ffmpeg -hwaccels`` output, in listing order."""
    found: list[str] = []
    for line in output.splitlines():
        token = line.strip()
        if token in _KNOWN_TRANSPORTS and token not in found:
            found.append(token)
    return tuple(found)


def rank_by_priority(ids: Iterable[str], priority: Sequence[str]) -> list[str]:
    """Order ``ids`` by their index in ``priority``.

    Ids missing from ``priority`` sort after every configured id. Ties keep
    their original order and duplicates are dropped.
    """
    index = {name: i for i, name in enumerate(priority)}
    unranked = len(priority)
    unique = list(dict.fromkeys(ids))
    return [
        name
        for _, name in sorted(
            enumerate(unique),
            key=lambda pair: (index.get(pair[1], unranked), pair[0]),
        )
    ]


class HardwareDetector:
    """Probe ffmpeg for AV1 encoders and decode transports.

    Detection is advisory: a missing binary, a non-zero exit or a timeout all
    produce empty results. Probe results are cached in the runtime context's
    cache for ``ttl`` seconds; :meth:`invalidate` drops them immediately.
    """

    def __init__(
        self,
        ctx: RuntimeContext,
        *,
        ffmpeg_path: str | Path = "ffmpeg",
        priority: Sequence[str] = (),
        hwaccel_priority: Sequence[str] = (),
        ttl: float | None = 3600,
        timeout: float = 10,
    ) -> None:
        self.ctx = ctx
        self.ffmpeg_path = str(ffmpeg_path)
        self.priority = tuple(priority)
        self.hwaccel_priority = tuple(hwaccel_priority)
        self.ttl = ttl
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: EncoderConfig, ctx: RuntimeContext) -> HardwareDetector:
        """Create a detector from ``config``."""
        return cls(
            ctx,
            ffmpeg_path=config.ffmpeg_binary,
            priority=config.encoder_priority,
            hwaccel_priority=config.hwaccel_priority,
            ttl=config.cache_ttl,
            timeout=config.probe_timeout,
        )

    def _key(self, name: str) -> str:
        return f"{name}:{self.ffmpeg_path}"

    def _probe(self, name: str, args: Sequence[str], parse: Callable[[str], tuple[str, ...]]) -> tuple[str, ...]:
        def run_query() -> tuple[str, ...]:
            result = process.run([self.ffmpeg_path, *args], timeout=self.timeout)
            if result.successful:
                return parse(result.stdout)
            logger.warning(
                "ffmpeg probe failed (%s): %s",
                result.exit_code,
                process.join_command(self.ffmpeg_path, args),
            )
            return ()

        return self.ctx.cached_lookup(self._key(name), run_query, ttl=self.ttl)

    def available_encoders(self) -> tuple[str, ...]:
        """Return usable AV1 encoder ids in discovery order."""
        return self._probe(_ENCODERS_KEY, ENCODERS_ARGS, parse_encoder_listing)

    def rank(self, ids: Iterable[str]) -> list[str]:
        """Order ``ids`` by the configured encoder priority."""
        return rank_by_priority(ids, self.priority)

    def ranked_encoders(self) -> list[str]:
        """Return available encoders, best first."""
        return self.rank(self.available_encoders())

    def best_overall(self) -> str | None:
        """Return the highest priority available encoder."""
        ranked = self.ranked_encoders()
        return ranked[0] if ranked else None

    def best_hardware_only(self) -> str | None:
        """Return the highest priority available hardware encoder."""
        return next((e for e in self.ranked_encoders() if e in HARDWARE_ENCODER_IDS), None)

    def has_encoder(self, encoder: str) -> bool:
        """Whether ``encoder`` is available."""
        return encoder in self.available_encoders()

    def has_hardware_acceleration(self) -> bool:
        """Whether any hardware encoder is available."""
        return self.best_hardware_only() is not None

    def encoder_type(self, encoder: str) -> str | None:
        """Return ``"hardware"`` or ``"software"`` for an available encoder."""
        if not self.has_encoder(encoder):
            return None
        if encoder in HARDWARE_ENCODER_IDS:
            return "hardware"
        if encoder in SOFTWARE_ENCODER_IDS:
            return "software"
        return None  # pragma: no cover - parse keeps known ids only

    def available_transports(self) -> tuple[str, ...]:
        """Return decode-side acceleration transports in discovery order."""
        return self._probe(_HWACCELS_KEY, HWACCELS_ARGS, parse_hwaccel_listing)

    def hardware_transport_method(self) -> str | None:
        """Return the preferred decode transport, if any."""
        ranked = rank_by_priority(self.available_transports(), self.hwaccel_priority)
        return ranked[0] if ranked else None

    def invalidate(self) -> None:
        """Forget cached probe results."""
        self.ctx.forget(*(self._key(name) for name in (_ENCODERS_KEY, _HWACCELS_KEY)))

    def summary(self) -> dict[str, Any]:
        """Return detection results for display."""
        return {
            "encoders": self.ranked_encoders(),
            "best_encoder": self.best_overall(),
            "best_hardware": self.best_hardware_only(),
            "has_hardware": self.has_hardware_acceleration(),
            "hwaccel_method": self.hardware_transport_method(),
        }


__all__ = [
    "HardwareDetector",
    "parse_encoder_listing",
    "parse_hwaccel_listing",
    "rank_by_priority",
]
