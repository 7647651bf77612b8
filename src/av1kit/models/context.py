"""Status routing and the probe cache handed to detectors and backends."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Self

from diskcache import Cache

from av1kit.models.verbosity import Verbosity

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

CACHE_ENV = "AV1KIT_CACHE"  #: Directory holding the probe cache.


def cache_directory() -> Path:
    """Return the probe cache directory, ``$AV1KIT_CACHE`` or the system temp dir."""
    return Path(os.getenv(CACHE_ENV) or tempfile.gettempdir()) / "av1kit-cache"


def _default_cache() -> Cache:
    return Cache(str(cache_directory()))


@dataclass(slots=True)
class RuntimeContext:
    """Verbosity, status callback and probe cache of one CLI call or host.

    The cache is injected, so independent sessions and tests can each hold
    their own. Probe results are stored as tuples under keys that include
    the probed binary.
    """

    verbosity: Verbosity = Verbosity.QUIET
    status_callback: Callable[[str], None] | None = None
    cache: Cache = field(default_factory=_default_cache)

    def cached_lookup(
        self,
        key: str,
        compute: Callable[[], tuple[str, ...]],
        *,
        ttl: float | None,
    ) -> tuple[str, ...]:
        """Return the cached result for ``key``, running ``compute`` on a miss.

        ``ttl`` of ``None`` keeps the result until :meth:`forget`.
        """
        cached = self.cache.get(key)
        if isinstance(cached, tuple):
            return cached
        found = compute()
        self.cache.set(key, found, expire=ttl)
        return found

    def forget(self, *keys: str) -> None:
        """Drop cached probe results."""
        for key in keys:
            self.cache.delete(key)

    def close(self) -> None:
        """Close the cache."""
        self.cache.close()

    def __enter__(self) -> Self:
        """Return ``self`` when entering a context."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the cache when exiting a context."""
        self.close()

    def __del__(self) -> None:  # pragma: no cover - cleanup
        """Close the cache on garbage collection."""
        with suppress(Exception):
            self.cache.close()


__all__ = ["CACHE_ENV", "RuntimeContext", "cache_directory"]
