"""Shared pytest fixtures.

External tools are never executed: ``av1kit.tools.process.run`` is replaced
with a recorder that answers from a configurable handler.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

import pytest
from diskcache import Cache

from av1kit.errors import RemoteStorageError
from av1kit.models import EncoderConfig, ProcessOutput, RuntimeContext
from av1kit.tools import process

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from av1kit.models.types import Visibility

ENCODERS_LISTING = """\
Encoders:
 V..... = Video
 ------
 V....D libaom-av1           libaom AV1 (codec av1)
 V....D librav1e             librav1e AV1 (codec av1)
 V....D libsvtav1            SVT-AV1(Scalable Video Technology for AV1) encoder (codec av1)
 V....D av1_nvenc            NVIDIA NVENC av1 encoder (codec av1)
 V....D av1_qsv              AV1 (Intel Quick Sync Video acceleration) (codec av1)
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC / MPEG-4 part 10 (codec h264)
 A....D libopus              libopus Opus (codec opus)
"""

HWACCELS_LISTING = """\
Hardware acceleration methods:
vdpau
cuda
vaapi
qsv
"""


def _default_handler(_argv: list[str]) -> ProcessOutput:
    return ProcessOutput(exit_code=0)


@dataclass
class FakeRun:
    """Stand-in for :func:`av1kit.tools.process.run` recording every call."""

    handler: Callable[[list[str]], ProcessOutput] = _default_handler
    calls: list[list[str]] = field(default_factory=list)
    cwds: list[Path | None] = field(default_factory=list)
    timeouts: list[float | None] = field(default_factory=list)

    def __call__(
        self,
        argv: Sequence[str | Path],
        *,
        cwd: str | Path | None = None,
        timeout: float | None = None,
    ) -> ProcessOutput:
        cmd = [str(a) for a in argv]
        self.calls.append(cmd)
        self.cwds.append(None if cwd is None else Path(cwd))
        self.timeouts.append(timeout)
        return self.handler(cmd)


def write_output(argv: list[str]) -> None:
    """Create the artifact an encode command would write."""
    target = argv[argv.index("-o") + 1] if "-o" in argv else argv[-1]
    Path(target).write_bytes(b"encoded")


def ffmpeg_listing_handler(argv: list[str]) -> ProcessOutput | None:
    """Answer ffmpeg capability queries, or return ``None`` for other commands."""
    if "-encoders" in argv:
        return ProcessOutput(exit_code=0, stdout=ENCODERS_LISTING)
    if "-hwaccels" in argv:
        return ProcessOutput(exit_code=0, stdout=HWACCELS_LISTING)
    return None


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    """Replace process execution with a recorder."""
    fake = FakeRun()
    monkeypatch.setattr(process, "run", fake)
    return fake


@pytest.fixture
def ctx(tmp_path: Path) -> Iterator[RuntimeContext]:
    """Runtime context with a cache isolated to the test."""
    with RuntimeContext(cache=Cache(str(tmp_path / "cache"))) as runtime:
        yield runtime


@pytest.fixture
def config(tmp_path: Path) -> EncoderConfig:
    """Configuration keeping temporary files inside ``tmp_path``."""
    return EncoderConfig(temporary_files_root=tmp_path / "tmp")


class MemoryDisk:
    """Non-local disk keeping files in a dict."""

    name = "memory"
    is_local = False

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.modes: dict[str, Visibility | None] = {}

    def exists(self, path: str) -> bool:
        return path in self.files

    def read(self, path: str) -> bytes:
        return self.files[path]

    def read_stream(self, path: str) -> BinaryIO:
        return io.BytesIO(self.files[path])

    def write(self, path: str, data: bytes | BinaryIO, visibility: Visibility | None = None) -> None:
        self.files[path] = data if isinstance(data, bytes) else data.read()
        self.modes[path] = visibility

    def delete(self, path: str) -> None:
        self.files.pop(path, None)

    def local_path(self, path: str) -> Path:
        raise RemoteStorageError(f"{path} is not stored locally")


@pytest.fixture
def memory_disk() -> MemoryDisk:
    """In-memory remote disk holding one video."""
    disk = MemoryDisk()
    disk.files["videos/remote.mp4"] = b"remote-bytes"
    return disk


@pytest.fixture
def source(tmp_path: Path) -> Path:
    """A placeholder source video."""
    path = tmp_path / "media" / "in.mp4"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"source")
    return path
