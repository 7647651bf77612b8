"""Accumulate one ab-av1 operation and render its argument list."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Self, TypeAlias

from av1kit.errors import InvalidOperation, MissingRequiredField
from av1kit.models.types import Operation
from av1kit.tools.process import join_command

from . import command_args as ca

if TYPE_CHECKING:
    from collections.abc import Mapping

OptionValue: TypeAlias = str | int | float | bool | Path

# Field names reported by MissingRequiredField, mapped to option keys.
_FIELD_OPTIONS: dict[str, str] = {
    "preset": ca.PRESET,
    "quality-level": ca.QUALITY_LEVEL,
    "min-quality-target": ca.MIN_QUALITY_TARGET,
}

REQUIRED_FIELDS: dict[Operation, tuple[str, ...]] = {
    Operation.AUTO_ENCODE: ("input", "output", "preset", "min-quality-target"),
    Operation.CRF_SEARCH: ("input", "output", "preset", "min-quality-target"),
    Operation.SAMPLE_ENCODE: ("input", "output", "preset", "quality-level"),
    Operation.ENCODE: ("input", "output", "preset", "quality-level"),
    Operation.QUALITY_VMAF: ("reference", "distorted"),
    Operation.QUALITY_XPSNR: ("reference", "distorted"),
}

# Options rendered straight after the inputs, in this order.
_LEADING_OPTIONS: dict[Operation, tuple[str, ...]] = {
    Operation.AUTO_ENCODE: (ca.PRESET, ca.MIN_QUALITY_TARGET),
    Operation.CRF_SEARCH: (ca.PRESET, ca.MIN_QUALITY_TARGET),
    Operation.SAMPLE_ENCODE: (ca.QUALITY_LEVEL, ca.PRESET),
    Operation.ENCODE: (ca.QUALITY_LEVEL, ca.PRESET),
    Operation.QUALITY_VMAF: (),
    Operation.QUALITY_XPSNR: (),
}


def _format_value(value: OptionValue) -> str:
    if isinstance(value, float):
        return format(value, "g")
    return str(value)


def _option_args(name: str, value: OptionValue) -> tuple[str, ...]:
    """Return argv elements for one option; ``False`` renders nothing."""
    flag = ca.option_flag(name)
    if isinstance(value, bool):
        return (flag,) if value else ()
    return (flag, _format_value(value))


class CommandBuilder:
    """Mutable description of a single ab-av1 invocation.

    Setters never validate and always return the builder so calls can be
    chained. Validation happens in :meth:`validate`, which :meth:`render`
    calls first; rendering depends on nothing but the builder's own state.
    """

    def __init__(self) -> None:
        self._operation: Operation | None = None
        self._options: dict[str, OptionValue] = {}
        self._input: str | None = None
        self._output: str | None = None
        self._reference: str | None = None
        self._distorted: str | None = None
        self._extra_args: list[str] = []

    def __repr__(self) -> str:
        op = self._operation.value if self._operation else None
        return f"CommandBuilder(operation={op!r}, options={self._options!r})"

    # -- operation and paths -------------------------------------------------

    def set_operation(self, operation: Operation | str) -> Self:
        """Select the operation by member, value or ab-av1 subcommand name."""
        try:
            self._operation = Operation(operation)
        except ValueError:
            raise InvalidOperation(f"Unknown operation: {operation!r}") from None
        return self

    def set_input(self, path: str | Path | None) -> Self:
        """Set the source file."""
        self._input = None if path is None else str(path)
        return self

    def set_output(self, path: str | Path | None) -> Self:
        """Set the file the operation writes."""
        self._output = None if path is None else str(path)
        return self

    def set_reference(self, path: str | Path | None) -> Self:
        """Set the reference file of a quality comparison."""
        self._reference = None if path is None else str(path)
        return self

    def set_distorted(self, path: str | Path | None) -> Self:
        """Set the distorted file of a quality comparison."""
        self._distorted = None if path is None else str(path)
        return self

    def add_args(self, *args: str | Path) -> Self:
        """Append raw arguments, rendered after every option and before the output."""
        self._extra_args.extend(str(a) for a in args)
        return self

    def clear_args(self) -> Self:
        """Drop the raw arguments added with :meth:`add_args`."""
        self._extra_args = []
        return self

    # -- options -------------------------------------------------------------

    def set_option(self, key: str, value: OptionValue | None) -> Self:
        """Set ``key`` to ``value``; ``None`` removes the option.

        Re-setting an existing key keeps its original position.
        """
        if value is None:
            self._options.pop(key, None)
        else:
            self._options[key] = value
        return self

    def set_preset(self, preset: str | int | None) -> Self:
        """Set the encoder preset."""
        return self.set_option(ca.PRESET, preset)

    def set_quality_level(self, level: int | None) -> Self:
        """Set a fixed quality level (CRF)."""
        return self.set_option(ca.QUALITY_LEVEL, level)

    def set_min_quality_target(self, target: float | None) -> Self:
        """Set the minimum VMAF score a search must reach."""
        return self.set_option(ca.MIN_QUALITY_TARGET, target)

    def set_min_crf(self, value: int | None) -> Self:
        """Set the lowest quality level a search may pick."""
        return self.set_option(ca.MIN_CRF, value)

    def set_max_crf(self, value: int | None) -> Self:
        """Set the highest quality level a search may pick."""
        return self.set_option(ca.MAX_CRF, value)

    def set_sample(self, seconds: float | None) -> Self:
        """Set the sample length in seconds."""
        return self.set_option(ca.SAMPLE, seconds)

    def set_encoder_choice(self, encoder: str | None) -> Self:
        """Pick an encoder instead of the detected one."""
        return self.set_option(ca.ENCODER, encoder)

    def set_pixel_format(self, pix_fmt: str | None) -> Self:
        """Set the output pixel format."""
        return self.set_option(ca.PIX_FMT, pix_fmt)

    def set_video_filter(self, graph: str | None) -> Self:
        """Set a video filter graph such as ``scale=1280:-2``."""
        return self.set_option(ca.VIDEO_FILTER, graph)

    def set_audio_codec(self, codec: str | None) -> Self:
        """Set the audio codec of the output."""
        return self.set_option(ca.AUDIO_CODEC, codec)

    def set_full_quality_scan(self, enabled: bool = True) -> Self:  # noqa: FBT001, FBT002
        """Score the whole file instead of samples."""
        return self.set_option(ca.FULL_VMAF, enabled)

    def set_verbose(self, enabled: bool = True) -> Self:  # noqa: FBT001, FBT002
        """Ask the tool for verbose output."""
        return self.set_option(ca.VERBOSE, enabled)

    def set_max_encoded_percent(self, percent: int | None) -> Self:
        """Cap the encoded size relative to the source."""
        return self.set_option(ca.MAX_ENCODED_PERCENT, percent)

    def set_vmaf_model(self, model: str | Path | None) -> Self:
        """Set the VMAF model file."""
        return self.set_option(ca.VMAF_MODEL, model)

    def set_vmaf_threads(self, threads: int | None) -> Self:
        """Set the VMAF thread count."""
        return self.set_option(ca.VMAF_THREADS, threads)

    def set_temp_dir(self, path: str | Path | None) -> Self:
        """Set where the tool keeps its side files."""
        return self.set_option(ca.TEMP_DIR, path)

    # -- read access ---------------------------------------------------------

    @property
    def operation(self) -> Operation | None:
        """Selected operation."""
        return self._operation

    @property
    def input(self) -> str | None:
        """Source file."""
        return self._input

    @property
    def output(self) -> str | None:
        """Output file."""
        return self._output

    @property
    def reference(self) -> str | None:
        """Reference file of a quality comparison."""
        return self._reference

    @property
    def distorted(self) -> str | None:
        """Distorted file of a quality comparison."""
        return self._distorted

    @property
    def extra_args(self) -> tuple[str, ...]:
        """Raw arguments added with :meth:`add_args`."""
        return tuple(self._extra_args)

    @property
    def options(self) -> Mapping[str, OptionValue]:
        """Read-only view of the options in insertion order."""
        return MappingProxyType(self._options)

    @property
    def preset(self) -> str | None:
        """Preset as text, if set."""
        value = self._options.get(ca.PRESET)
        return None if value is None else str(value)

    @property
    def quality_level(self) -> int | None:
        """Fixed quality level, if set."""
        value = self._options.get(ca.QUALITY_LEVEL)
        return None if value is None else int(value)

    @property
    def min_quality_target(self) -> float | None:
        """Minimum VMAF score, if set."""
        value = self._options.get(ca.MIN_QUALITY_TARGET)
        return None if value is None else float(value)

    def option(self, key: str, default: OptionValue | None = None) -> OptionValue | None:
        """Return option ``key`` or ``default``."""
        return self._options.get(key, default)

    # -- validation and rendering --------------------------------------------

    def _has_field(self, field: str) -> bool:
        if field in _FIELD_OPTIONS:
            return _FIELD_OPTIONS[field] in self._options
        return getattr(self, f"_{field}") is not None

    def validate(self) -> Operation:
        """Return the operation once every required field is present.

        Raises:
            InvalidOperation: If no operation is set.
            MissingRequiredField: For the first absent required field.

        """
        op = self._operation
        if op is None:
            raise InvalidOperation("No operation set")
        for field in REQUIRED_FIELDS[op]:
            if not self._has_field(field):
                raise MissingRequiredField(field, op.token)
        return op

    def render(self) -> tuple[str, ...]:
        """Return the validated argument list, without the binary name."""
        op = self.validate()
        args: list[str] = [op.token]
        if op.is_quality_analysis:
            args += [*ca.REFERENCE_FLAG, str(self._reference), *ca.DISTORTED_FLAG, str(self._distorted)]
        else:
            args += [*ca.INPUT_FLAG, str(self._input)]
        leading = _LEADING_OPTIONS[op]
        for key in leading:
            args += _option_args(key, self._options[key])
        for key, value in self._options.items():
            if key not in leading:
                args += _option_args(key, value)
        args += self._extra_args
        if op.produces_artifact:
            args += [*ca.OUTPUT_FLAG, str(self._output)]
        return tuple(args)

    def get_command(self, binary: str | Path = "ab-av1") -> str:
        """Return the rendered command as a display string."""
        return join_command(binary, self.render())

    # -- lifecycle -----------------------------------------------------------

    def copy(self) -> CommandBuilder:
        """Return an independent builder with the same state."""
        clone = CommandBuilder()
        clone._operation = self._operation
        clone._options = dict(self._options)
        clone._input = self._input
        clone._output = self._output
        clone._reference = self._reference
        clone._distorted = self._distorted
        clone._extra_args = list(self._extra_args)
        return clone

    def reset(self) -> Self:
        """Return the builder to its freshly constructed state."""
        self._operation = None
        self._options = {}
        self._input = None
        self._output = None
        self._reference = None
        self._distorted = None
        self._extra_args = []
        return self


__all__ = ["REQUIRED_FIELDS", "CommandBuilder", "OptionValue"]
