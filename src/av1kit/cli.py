"""Command-line interface entry point."""

import logging
import sys
from collections.abc import Callable
from functools import partial
from typing import Annotated

from cyclopts import App, Parameter

from . import __version__
from .backend import AbAV1Backend, EncoderSession, FFmpegBackend
from .backend.builder import CommandBuilder
from .errors import Av1KitError, VersionParseError
from .filesystem import MediaCollection, TemporaryDirectories, require_local_path
from .models import BackendChoice, EncoderConfig, Operation, RuntimeContext, Verbosity
from .models.options import EncodeOptions
from .models.types import HARDWARE_ENCODER_IDS, HardwareEncoder, SoftwareEncoder
from .tools import HardwareDetector
from .tools.helpers import emit_status, format_action_label

app = App(name="av1kit", help="Encode video to AV1 with ab-av1 or ffmpeg.", version=__version__)

StatusCallback = Annotated[Callable[[str], None] | None, Parameter(show=False)]  # type: ignore[call-arg]


def _configure_logging(verbosity: Verbosity) -> None:
    logging.basicConfig(
        level=verbosity.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _encoder_label(encoder: str) -> str:
    kind = HardwareEncoder if encoder in HARDWARE_ENCODER_IDS else SoftwareEncoder
    return f"{encoder} ({kind(encoder).label})"


@app.command
def info(status_callback: StatusCallback = None) -> int:
    """Show tool versions and the resolved configuration."""
    status = print if status_callback is None else status_callback
    config = EncoderConfig.from_env()
    emit_status(f"av1kit: {__version__}", status_callback=status)
    with RuntimeContext() as ctx:
        for backend in (AbAV1Backend(config, ctx), FFmpegBackend(config, ctx)):
            try:
                version = backend.version()
            except VersionParseError as e:
                version = f"unavailable ({e})"
            emit_status(f"{backend.name}: {version}", status_callback=status)
    emit_status("Configuration:", status_callback=status)
    for name, value in config.model_dump().items():
        emit_status(f"  {name}: {value}", status_callback=status)
    return 0


@app.command
def verify(status_callback: StatusCallback = None) -> int:
    """Check that ab-av1, ffmpeg and the temporary directory are usable."""
    status = print if status_callback is None else status_callback
    config = EncoderConfig.from_env()
    ok = True
    with RuntimeContext() as ctx:
        for backend in (AbAV1Backend(config, ctx), FFmpegBackend(config, ctx)):
            if backend.is_available():
                emit_status(f"[ok] {backend.name} ({backend.binary})", status_callback=status)
            else:
                emit_status(f"[missing] {backend.name} ({backend.binary})", status_callback=status)
                ok = False
    temporary = TemporaryDirectories(config.temporary_files_root)
    try:
        temporary.remove(temporary.create())
    except OSError as e:
        emit_status(f"[error] temporary directory {temporary.root}: {e}", status_callback=status)
        ok = False
    else:
        emit_status(f"[ok] temporary directory {temporary.root}", status_callback=status)
    return 0 if ok else 1


@app.command
def encoders(*, refresh: bool = False, status_callback: StatusCallback = None) -> int:
    """List available AV1 encoders, best first.

    Parameters
    ----------
    refresh
        Ignore cached detection results.

    """
    status = print if status_callback is None else status_callback
    config = EncoderConfig.from_env()
    with RuntimeContext() as ctx:
        detector = HardwareDetector.from_config(config, ctx)
        if refresh:
            detector.invalidate()
        summary = detector.summary()
    if not summary["encoders"]:
        emit_status("No AV1 encoders found", status_callback=status)
        return 1
    for encoder in summary["encoders"]:
        emit_status(_encoder_label(encoder), status_callback=status)
    emit_status(f"Best encoder: {summary['best_encoder']}", status_callback=status)
    emit_status(f"Best hardware encoder: {summary['best_hardware'] or 'none'}", status_callback=status)
    emit_status(f"Decode acceleration: {summary['hwaccel_method'] or 'none'}", status_callback=status)
    return 0


def configure_builder(builder: CommandBuilder, opts: EncodeOptions, config: EncoderConfig) -> CommandBuilder:
    """Apply command-line options to a session builder."""
    builder.set_operation(opts.operation).set_input(str(opts.source)).set_output(opts.output_name)
    builder.set_preset(opts.preset or config.default_preset)
    builder.set_encoder_choice(opts.encoder)
    if opts.operation is Operation.AUTO_ENCODE:
        target = opts.min_quality_target
        builder.set_min_quality_target(config.default_min_quality_target if target is None else target)
        if opts.backend is BackendChoice.FFMPEG:
            builder.set_quality_level(opts.quality_level)
    else:
        level = opts.quality_level
        builder.set_quality_level(config.default_quality_level if level is None else level)
    return builder


@app.command
def encode(opts: EncodeOptions, status_callback: StatusCallback = None) -> int:
    """Encode a source video and save the result next to it."""
    _configure_logging(opts.verbosity)
    status = print if status_callback is None else status_callback
    err_func = partial(print, file=sys.stderr, flush=True) if status_callback is None else status_callback
    config = EncoderConfig.from_env()
    with (
        RuntimeContext(verbosity=opts.verbosity, status_callback=status) as ctx,
        EncoderSession(config, ctx) as session,
    ):
        if opts.backend is BackendChoice.FFMPEG:
            session.use_backend(FFmpegBackend(config, ctx, session.temporary))
        session.open(MediaCollection.from_paths([opts.source]))
        configure_builder(session.builder(), opts, config)
        try:
            if opts.dry_run:
                emit_status(f"{format_action_label(dry_run=True)}: {session.get_command()}", status_callback=status)
                return 0
            exporter = session.export()
            if opts.to_path:
                exporter.to_path(opts.to_path)
            if opts.visibility is not None:
                exporter.with_visibility(opts.visibility)
            saved = exporter.save()
        except Av1KitError as e:
            err_func(str(e))
            return 1
    emit_status(str(require_local_path(saved.disk, saved.path)), status_callback=status)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the av1kit CLI."""
    argv = sys.argv[1:] if argv is None else argv
    return app(argv)


if __name__ == "__main__":
    raise SystemExit(main())
