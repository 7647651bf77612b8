"""Shared execution logic for encoding backends."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from av1kit.errors import VersionParseError
from av1kit.filesystem.temporary import TemporaryDirectories
from av1kit.models.config import EncoderConfig
from av1kit.models.context import RuntimeContext
from av1kit.tools import process
from av1kit.tools.helpers import format_action_label, maybe_log_command, maybe_log_output

if TYPE_CHECKING:
    from collections.abc import Sequence

    from av1kit.backend.builder import CommandBuilder
    from av1kit.models.result import ProcessOutput

logger = logging.getLogger(__name__)


class Backend(ABC):
    """One external binary plus its argument dialect.

    Subclasses translate a :class:`CommandBuilder` into arguments; this class
    runs them. Every execution gets a fresh working directory that is removed
    once the process exits.
    """

    name: ClassVar[str]
    program: ClassVar[str]  #: Default executable name, stripped from leading argv.
    version_args: ClassVar[tuple[str, ...]]
    version_patterns: ClassVar[tuple[re.Pattern[str], ...]] = ()
    supports_quality_search: ClassVar[bool] = False

    def __init__(
        self,
        config: EncoderConfig | None = None,
        ctx: RuntimeContext | None = None,
        temporary: TemporaryDirectories | None = None,
    ) -> None:
        self.config = config or EncoderConfig()
        self.ctx = ctx or RuntimeContext()
        self.temporary = temporary or TemporaryDirectories(self.config.temporary_files_root)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(binary={self.binary!r})"

    @property
    @abstractmethod
    def binary(self) -> str:
        """Configured path of the executable."""

    @property
    @abstractmethod
    def timeout(self) -> float | None:
        """Execution timeout in seconds."""

    @abstractmethod
    def arguments(self, builder: CommandBuilder) -> tuple[str, ...]:
        """Translate ``builder`` into this backend's arguments."""

    def _strip_binary(self, args: Sequence[str]) -> list[str]:
        """Drop a leading executable token; the configured binary is prepended instead."""
        if args and Path(args[0]).name in {self.program, Path(self.binary).name}:
            return list(args[1:])
        return list(args)

    def command(self, builder: CommandBuilder) -> list[str]:
        """Return the full argv for ``builder``."""
        return [self.binary, *self._strip_binary(self.arguments(builder))]

    def get_command(self, builder: CommandBuilder) -> str:
        """Return the command for ``builder`` as a display string."""
        argv = self.command(builder)
        return process.join_command(argv[0], argv[1:])

    def execute(self, builder: CommandBuilder) -> ProcessOutput:
        """Run the command for ``builder`` and return its captured outcome."""
        argv = self.command(builder)
        display = process.join_command(argv[0], argv[1:])
        logger.info("Executing %s: %s", self.name, display)
        maybe_log_command(
            verbosity=self.ctx.verbosity,
            dry_run=False,
            status_callback=self.ctx.status_callback,
            banner=f"{format_action_label(dry_run=False)}: {display}",
        )
        workdir = self.temporary.create()
        try:
            result = process.run(argv, cwd=workdir, timeout=self.timeout)
        finally:
            self.temporary.remove(workdir)
        if result.successful:
            logger.info("%s finished successfully", self.name)
        else:
            logger.warning("%s exited with code %s", self.name, result.exit_code)
        maybe_log_output(
            verbosity=self.ctx.verbosity,
            status_callback=self.ctx.status_callback,
            output="\n".join(part for part in (result.stdout, result.stderr) if part),
        )
        return result

    def is_available(self) -> bool:
        """Whether the binary answers a version probe. Never raises."""
        result = process.run([self.binary, *self.version_args], timeout=self.config.probe_timeout)
        if not result.successful:
            logger.debug("%s unavailable (%s): %s", self.name, result.exit_code, result.stderr.strip())
        return result.successful

    def parse_version(self, output: str) -> str:
        """Extract a version string from probe output, or return the output trimmed."""
        for pattern in self.version_patterns:
            match = pattern.search(output)
            if match:
                return match.group(1)
        return output.strip()

    def version(self) -> str:
        """Return the tool version.

        Raises:
            VersionParseError: If the version probe exits unsuccessfully.

        """
        result = process.run([self.binary, *self.version_args], timeout=self.config.probe_timeout)
        if not result.successful:
            detail = result.stderr.strip() or result.stdout.strip()
            raise VersionParseError(f"{self.binary} version probe failed ({result.exit_code}): {detail}")
        return self.parse_version(result.stdout or result.stderr)


__all__ = ["Backend"]
