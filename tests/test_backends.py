"""Tests for the ab-av1 and ffmpeg backends."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from diskcache import Cache

from av1kit.backend import AbAV1Backend, CommandBuilder, FFmpegBackend, flag_names_for
from av1kit.errors import InvalidOperation, MissingRequiredField, VersionParseError
from av1kit.models import ProcessOutput, RuntimeContext, Verbosity
from av1kit.models.types import Operation

from conftest import ffmpeg_listing_handler

if TYPE_CHECKING:
    from pathlib import Path

    from av1kit.models import EncoderConfig

    from conftest import FakeRun


def _encode_builder() -> CommandBuilder:
    return (
        CommandBuilder()
        .set_operation(Operation.ENCODE)
        .set_input("in.mp4")
        .set_output("out.mp4")
        .set_quality_level(30)
        .set_preset("6")
    )


def _ffmpeg(config: EncoderConfig, ctx: RuntimeContext, **update: object) -> FFmpegBackend:
    return FFmpegBackend(config.model_copy(update=update), ctx)


@pytest.mark.parametrize(
    ("encoder", "expected"),
    [
        ("av1_qsv", ("-q:v", "-preset")),
        ("av1_nvenc", ("-q:v", "-preset")),
        ("av1_amf", ("-q:v", "-quality")),
        ("libsvtav1", ("-crf", "-preset")),
        ("libaom-av1", ("-crf", "-preset")),
        ("librav1e", ("-crf", "-preset")),
        ("libx264", ("-crf", "-preset")),
    ],
)
def test_flag_names_for(encoder: str, expected: tuple[str, str]) -> None:
    """Map each encoder to its quality and speed flags."""
    assert flag_names_for(encoder) == expected


def test_abav1_arguments_pass_through(config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Use the builder's rendering unchanged."""
    backend = AbAV1Backend(config, ctx)
    builder = _encode_builder()
    assert backend.arguments(builder) == builder.render()
    assert backend.command(builder)[0] == "ab-av1"
    assert not backend.supports_quality_search


def test_abav1_execute(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Run in a fresh working directory with the configured timeout and remove it afterwards."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="done")
    backend = AbAV1Backend(config.model_copy(update={"abav1_binary": "/opt/ab-av1"}), ctx)
    result = backend.execute(_encode_builder())
    assert result.successful
    assert fake_run.calls == [["/opt/ab-av1", *_encode_builder().render()]]
    assert fake_run.timeouts == [config.abav1_timeout]
    workdir = fake_run.cwds[0]
    assert workdir is not None
    assert workdir.parent == config.temporary_files_root
    assert workdir.name.startswith("av1_")
    assert not workdir.exists()


def test_execute_failure_returns_result(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Return failed runs instead of raising."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=2, stderr="boom")
    result = AbAV1Backend(config, ctx).execute(_encode_builder())
    assert result.exit_code == 2
    assert result.stderr == "boom"


def test_execute_validates_before_running(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Raise on an incomplete builder without starting a process."""
    with pytest.raises(MissingRequiredField):
        AbAV1Backend(config, ctx).execute(CommandBuilder().set_operation("encode"))
    assert fake_run.calls == []
    assert not config.temporary_files_root.exists() or not any(config.temporary_files_root.iterdir())


@pytest.mark.parametrize(
    ("verbosity", "expect_banner", "expect_output"),
    [
        (Verbosity.QUIET, False, False),
        (Verbosity.COMMANDS, True, False),
        (Verbosity.OUTPUT, True, True),
    ],
)
def test_execute_verbosity(
    fake_run: FakeRun,
    config: EncoderConfig,
    tmp_path: Path,
    verbosity: Verbosity,
    expect_banner: bool,
    expect_output: bool,
) -> None:
    """Emit the command banner and tool output according to verbosity."""
    messages: list[str] = []
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="crf 30 VMAF 95.1")
    with RuntimeContext(verbosity=verbosity, status_callback=messages.append, cache=Cache(str(tmp_path))) as ctx:
        AbAV1Backend(config, ctx).execute(_encode_builder())
    assert any(m.startswith("Running: ab-av1 encode") for m in messages) is expect_banner
    assert ("crf 30 VMAF 95.1" in messages) is expect_output


def test_strips_leading_binary_token(config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Drop a binary name at the start of the arguments."""
    backend = AbAV1Backend(config, ctx)
    assert backend._strip_binary(["ab-av1", "encode"]) == ["encode"]
    assert backend._strip_binary(["/usr/bin/ab-av1", "encode"]) == ["encode"]
    assert backend._strip_binary(["encode", "-i", "ab-av1"]) == ["encode", "-i", "ab-av1"]


def test_abav1_version(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Parse the version number from the version output."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="ab-av1 0.9.4\n")
    backend = AbAV1Backend(config, ctx)
    assert backend.version() == "0.9.4"
    assert fake_run.calls[0] == ["ab-av1", "--version"]
    assert fake_run.timeouts[0] == config.probe_timeout


def test_abav1_version_unparsed(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Return the trimmed output when no version number is found."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="  dev build \n")
    assert AbAV1Backend(config, ctx).version() == "dev build"


def test_version_failure_raises(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Raise only when the version query exits unsuccessfully."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=127, stderr="No such file")
    backend = AbAV1Backend(config, ctx)
    with pytest.raises(VersionParseError):
        backend.version()
    assert backend.is_available() is False


def test_ffmpeg_version(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Parse numeric, then free-form, then first-line ffmpeg versions."""
    backend = FFmpegBackend(config, ctx)
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="ffmpeg version 7.1 Copyright (c)\n")
    assert backend.version() == "7.1"
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="ffmpeg version n7.1-2-gabc Copyright\n")
    assert backend.version() == "n7.1-2-gabc"
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="custom build\nlibavutil 59\n")
    assert backend.version() == "custom build"
    assert fake_run.calls[-1] == ["ffmpeg", "-version"]


def test_is_available(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Report availability from a successful version query."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=0, stdout="ffmpeg version 7.1")
    assert FFmpegBackend(config, ctx).is_available()


def test_ffmpeg_arguments_hardware(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Prefer the best hardware encoder and decode transport."""
    fake_run.handler = lambda argv: ffmpeg_listing_handler(argv) or ProcessOutput(exit_code=0)
    backend = _ffmpeg(config, ctx, hwaccel_device="/dev/dri/renderD128")
    args = backend.arguments(_encode_builder())
    assert args == (
        "-hwaccel",
        "qsv",
        "-hwaccel_device",
        "/dev/dri/renderD128",
        "-i",
        "in.mp4",
        "-c:v",
        "av1_qsv",
        "-c:a",
        "libopus",
        "-q:v",
        "30",
        "-preset",
        "6",
        "-threads",
        "0",
        "-pix_fmt",
        "yuv420p",
        "-y",
        "out.mp4",
    )


def test_ffmpeg_arguments_software(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Fall back to the best available encoder without hardware acceleration."""
    fake_run.handler = lambda argv: ffmpeg_listing_handler(argv) or ProcessOutput(exit_code=0)
    backend = _ffmpeg(config, ctx, hardware_acceleration=False, pixel_format=None, threads=8)
    args = backend.arguments(_encode_builder())
    assert args[:2] == ("-i", "in.mp4")
    assert args[args.index("-c:v") + 1] == "av1_qsv"
    assert "-pix_fmt" not in args
    assert args[args.index("-threads") + 1] == "8"
    assert all("-hwaccels" not in call for call in fake_run.calls)


def test_ffmpeg_encoder_priority_order(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Prefer the builder's choice, then the configured encoder."""
    fake_run.handler = lambda argv: ffmpeg_listing_handler(argv) or ProcessOutput(exit_code=0)
    builder = _encode_builder().set_encoder_choice("libaom-av1")
    assert _ffmpeg(config, ctx).select_encoder(builder) == "libaom-av1"
    assert _ffmpeg(config, ctx, encoder="librav1e").select_encoder(_encode_builder()) == "librav1e"
    unknown = _encode_builder().set_encoder_choice("x264")
    assert _ffmpeg(config, ctx, encoder="librav1e").select_encoder(unknown) == "librav1e"


def test_ffmpeg_fallback_encoder(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Use libsvtav1 when detection finds nothing."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=1)
    backend = FFmpegBackend(config, ctx)
    args = backend.arguments(_encode_builder())
    assert args[0] == "-i"
    assert args[args.index("-c:v") + 1] == "libsvtav1"
    assert args[args.index("-crf") + 1] == "30"


def test_ffmpeg_defaults(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Use configured defaults for a missing quality level and preset, and encode when no operation is set."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=1)
    backend = _ffmpeg(config, ctx, default_quality_level=35, default_preset="8")
    args = backend.arguments(CommandBuilder().set_input("in.mp4").set_output("out.mp4"))
    assert args[args.index("-crf") + 1] == "35"
    assert args[args.index("-preset") + 1] == "8"
    assert args[-2:] == ("-y", "out.mp4")


def test_ffmpeg_pixel_format_from_builder(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Use the builder's pixel format over the configured one."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=1)
    args = FFmpegBackend(config, ctx).arguments(_encode_builder().set_pixel_format("yuv420p10le"))
    assert args[args.index("-pix_fmt") + 1] == "yuv420p10le"


@pytest.mark.parametrize("op", [Operation.CRF_SEARCH, Operation.SAMPLE_ENCODE, Operation.QUALITY_VMAF])
def test_ffmpeg_rejects_operations(config: EncoderConfig, ctx: RuntimeContext, op: Operation) -> None:
    """Reject operations ffmpeg cannot perform."""
    builder = _encode_builder().set_operation(op)
    with pytest.raises(InvalidOperation):
        FFmpegBackend(config, ctx).arguments(builder)


def test_ffmpeg_requires_paths(config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Require input and output paths."""
    backend = FFmpegBackend(config, ctx)
    with pytest.raises(MissingRequiredField) as exc:
        backend.arguments(CommandBuilder().set_output("out.mp4"))
    assert exc.value.field == "input"
    with pytest.raises(MissingRequiredField) as exc:
        backend.arguments(CommandBuilder().set_input("in.mp4"))
    assert exc.value.field == "output"


def test_ffmpeg_execute_uses_binary(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Prepend the configured ffmpeg path and timeout."""
    backend = _ffmpeg(config, ctx, ffmpeg_binary="/opt/ffmpeg")
    fake_run.handler = lambda argv: ProcessOutput(exit_code=0) if "-i" in argv else ProcessOutput(exit_code=1)
    backend.execute(_encode_builder())
    encode_call = fake_run.calls[-1]
    assert encode_call[0] == "/opt/ffmpeg"
    assert encode_call[1:3] == ["-i", "in.mp4"]
    assert fake_run.timeouts[-1] == config.ffmpeg_timeout
    assert backend.get_command(_encode_builder()).startswith("/opt/ffmpeg -i in.mp4")


def test_ffmpeg_enforces_required_fields(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Raise for missing required fields of the selected operation instead of filling defaults."""
    auto = CommandBuilder().set_operation(Operation.AUTO_ENCODE).set_input("in.mp4").set_output("out.mp4")
    with pytest.raises(MissingRequiredField) as exc:
        FFmpegBackend(config, ctx).arguments(auto)
    assert exc.value.field == "preset"
    with pytest.raises(MissingRequiredField) as exc:
        FFmpegBackend(config, ctx).arguments(auto.set_preset("6"))
    assert exc.value.field == "min-quality-target"
    encode = _encode_builder().set_quality_level(None)
    with pytest.raises(MissingRequiredField) as exc:
        FFmpegBackend(config, ctx).arguments(encode)
    assert exc.value.field == "quality-level"
    assert fake_run.calls == []


def test_ffmpeg_filter_audio_and_extra_args(fake_run: FakeRun, config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Pass the video filter, audio codec and raw arguments through to ffmpeg."""
    fake_run.handler = lambda _argv: ProcessOutput(exit_code=1)
    builder = (
        _encode_builder()
        .set_video_filter("scale=1280:-2")
        .set_audio_codec("aac")
        .add_args("-movflags", "+faststart")
    )
    args = FFmpegBackend(config, ctx).arguments(builder)
    assert args[args.index("-vf") + 1] == "scale=1280:-2"
    assert args[args.index("-c:a") + 1] == "aac"
    assert args[-4:] == ("-movflags", "+faststart", "-y", "out.mp4")


def test_abav1_renders_filter_and_audio_codec(config: EncoderConfig, ctx: RuntimeContext) -> None:
    """Use ab-av1's own flags for the video filter and audio codec."""
    builder = _encode_builder().set_video_filter("crop=1920:800").set_audio_codec("libopus").add_args("--keyint", "10s")
    args = AbAV1Backend(config, ctx).arguments(builder)
    assert args[args.index("--vfilter") + 1] == "crop=1920:800"
    assert args[args.index("--acodec") + 1] == "libopus"
    assert args[-4:] == ("--keyint", "10s", "-o", "out.mp4")
