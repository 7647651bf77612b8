"""Immutable records describing process runs and exports."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from av1kit.filesystem.disk import Disk

TIMEOUT_EXIT_CODE = 124  #: Exit code reported when a process exceeds its timeout.
NOT_FOUND_EXIT_CODE = 127  #: Exit code reported when the executable cannot be started.

# "VMAF: 95.12", "VMAF 95.12" or "95.12 VMAF", then a bare score line as printed by `ab-av1 vmaf`.
_SCORE_PATTERNS = (
    re.compile(r"VMAF\s*[:\-]?\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d+)?)\s*VMAF", re.IGNORECASE),
    re.compile(r"^\s*(\d+(?:\.\d+)?)\s*$", re.MULTILINE),
)


def parse_quality_score(output: str) -> float | None:
    """Return the quality score reported in ``output``, or ``None`` when there is none."""
    for pattern in _SCORE_PATTERNS:
        match = pattern.search(output)
        if match:
            return float(match.group(1))
    return None


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Captured outcome of one external process."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def successful(self) -> bool:
        """Whether the process exited with status 0."""
        return self.exit_code == 0


@dataclass(frozen=True, slots=True)
class EncoderResult:
    """Outcome of one session run.

    ``output_path`` points into the session's temporary directory until the
    result is exported.
    """

    exit_code: int
    output: str
    error_output: str
    output_path: str | None = None

    @classmethod
    def from_process(cls, process: ProcessOutput, output_path: str | None) -> EncoderResult:
        """Wrap a process outcome."""
        return cls(
            exit_code=process.exit_code,
            output=process.stdout,
            error_output=process.stderr,
            output_path=output_path,
        )

    @property
    def successful(self) -> bool:
        """Whether the run exited with status 0."""
        return self.exit_code == 0

    @property
    def failed(self) -> bool:
        """Whether the run exited with a non-zero status."""
        return not self.successful

    @property
    def quality_score(self) -> float | None:
        """Score printed by a quality comparison or sample encode, if any."""
        return parse_quality_score(self.output)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """A saved artifact and where it ended up."""

    result: EncoderResult
    disk: Disk
    path: str


__all__ = [
    "NOT_FOUND_EXIT_CODE",
    "TIMEOUT_EXIT_CODE",
    "EncoderResult",
    "ExportResult",
    "ProcessOutput",
    "parse_quality_score",
]
