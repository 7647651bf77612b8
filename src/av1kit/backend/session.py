"""Encoding session: one configure, run and export request."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Self

from av1kit.errors import EmptyCollection
from av1kit.filesystem.media import Media, MediaCollection
from av1kit.filesystem.temporary import TemporaryDirectories
from av1kit.models.config import EncoderConfig
from av1kit.models.context import RuntimeContext
from av1kit.models.result import EncoderResult

from .abav1 import AbAV1Backend
from .builder import CommandBuilder
from .exporter import MediaExporter
from .search import search_quality_level

if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType

    from av1kit.filesystem.disk import Disk

    from .base import Backend

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_NAME = "output.mp4"


class SessionState(str, Enum):
    """Lifecycle of an :class:`EncoderSession`."""

    CONFIGURING = "configuring"
    READY = "ready"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _absolute(path: str) -> str:
    """Absolutize local paths; URLs and other schemes pass through."""
    if "://" in path:
        return path
    return str(Path(path).expanduser().absolute())


class EncoderSession:
    """Own a builder, a backend and the temporary files of one request.

    Configuration goes through :meth:`builder`; :meth:`run` executes the
    builder against the active backend with the output redirected into the
    session's temporary directory, and :meth:`export` moves the artifact to
    its destination.
    """

    def __init__(
        self,
        config: EncoderConfig | None = None,
        ctx: RuntimeContext | None = None,
        *,
        backend: Backend | None = None,
        search_backend: AbAV1Backend | None = None,
        temporary: TemporaryDirectories | None = None,
    ) -> None:
        self.config = config or EncoderConfig()
        self.ctx = ctx or RuntimeContext()
        self.temporary = temporary or TemporaryDirectories(self.config.temporary_files_root)
        self._backend = backend or AbAV1Backend(self.config, self.ctx, self.temporary)
        self._search_backend = search_backend
        self._builder: CommandBuilder | None = None
        self._media: MediaCollection | None = None
        self._temp_dir: Path | None = None
        self.state = SessionState.CONFIGURING
        self.result: EncoderResult | None = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    # -- configuration -------------------------------------------------------

    def open(self, media: MediaCollection | Iterable[Media]) -> Self:
        """Bind the media to encode and start a fresh configuration.

        Raises:
            EmptyCollection: If ``media`` holds no entries.

        """
        collection = media if isinstance(media, MediaCollection) else MediaCollection(media)
        if len(collection) == 0:
            raise EmptyCollection("Cannot open an empty media collection")
        self._media = collection
        self.builder().reset()
        self.result = None
        self.state = SessionState.CONFIGURING
        return self

    @property
    def media(self) -> MediaCollection | None:
        """Media bound by :meth:`open`."""
        return self._media

    def builder(self) -> CommandBuilder:
        """Return the session's builder, creating it on first use."""
        if self._builder is None:
            self._builder = CommandBuilder()
        return self._builder

    @property
    def backend(self) -> Backend:
        """Backend that executes the main operation."""
        return self._backend

    def use_backend(self, backend: Backend) -> Self:
        """Replace the active backend."""
        self._backend = backend
        return self

    def search_backend(self) -> AbAV1Backend:
        """Backend used for quality-level searches."""
        if self._search_backend is None:
            self._search_backend = AbAV1Backend(self.config, self.ctx, self.temporary)
        return self._search_backend

    def default_disk(self) -> Disk:
        """Return the disk of the first opened media.

        Raises:
            ValueError: If no media has been opened.

        """
        first = self._media.first() if self._media is not None else None
        if first is None:
            raise ValueError("No media opened; set a destination disk explicitly")
        return first.disk

    # -- temporary files -----------------------------------------------------

    def temporary_directory(self) -> Path:
        """Return the session's temporary directory, creating it on first use."""
        if self._temp_dir is None:
            self._temp_dir = self.temporary.create()
        return self._temp_dir

    def remove_temporary_directory(self) -> None:
        """Delete the session's temporary directory if it exists."""
        if self._temp_dir is not None:
            self.temporary.remove(self._temp_dir)
            self._temp_dir = None

    def cleanup(self) -> None:
        """Delete every temporary directory the session created."""
        self.temporary.delete_all()
        self._temp_dir = None

    # -- execution -----------------------------------------------------------

    def _resolve_input(self, builder: CommandBuilder) -> str | None:
        if self._media is None:
            return None if builder.input is None else _absolute(builder.input)
        if builder.input is None:
            first = self._media.first()
            return None if first is None else str(first.materialize_local(self.temporary))
        media = self._media.find_by_path(builder.input)
        if media is not None:
            return str(media.materialize_local(self.temporary))
        return _absolute(builder.input)

    def _needs_quality_search(self, builder: CommandBuilder) -> bool:
        if not self._backend.supports_quality_search or builder.quality_level is not None:
            return False
        return builder.min_quality_target is not None or self.config.auto_crf

    def _prepare(self) -> tuple[CommandBuilder, str | None]:
        """Return the builder to execute and the artifact path it writes."""
        builder = self.builder()
        name = PurePath(builder.output).name if builder.output else DEFAULT_OUTPUT_NAME
        temp_output = str(self.temporary_directory() / name)
        op = builder.operation
        if op is not None and op.is_quality_analysis:
            run_builder = builder.copy()
            if run_builder.reference is not None:
                run_builder.set_reference(_absolute(run_builder.reference))
            if run_builder.distorted is not None:
                run_builder.set_distorted(_absolute(run_builder.distorted))
            return run_builder, None
        input_path = self._resolve_input(builder)
        if input_path is not None and self._needs_quality_search(builder):
            level = search_quality_level(self.search_backend(), builder, input_path, temp_output, self.config)
            builder.set_quality_level(level)
        run_builder = builder.copy().set_input(input_path).set_output(temp_output)
        produces_artifact = op is None or op.produces_artifact
        return run_builder, temp_output if produces_artifact else None

    def get_command(self) -> str:
        """Return the backend command for the builder as currently configured."""
        return self._backend.get_command(self.builder())

    def run(self) -> EncoderResult:
        """Execute the configured operation and record its result."""
        run_builder, output_path = self._prepare()
        self.state = SessionState.READY
        logger.debug("Session ready: %r", run_builder)
        self.state = SessionState.EXECUTING
        try:
            process = self._backend.execute(run_builder)
        except Exception:
            self.state = SessionState.FAILED
            raise
        self.result = EncoderResult.from_process(process, output_path)
        self.state = SessionState.SUCCEEDED if self.result.successful else SessionState.FAILED
        return self.result

    def export(self) -> MediaExporter:
        """Return an exporter for this session's artifact."""
        return MediaExporter(self)


__all__ = ["DEFAULT_OUTPUT_NAME", "EncoderSession", "SessionState"]
