"""Command-line option models for the ``encode`` command."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from cyclopts import Group, Parameter
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import BackendChoice, Operation, Visibility
from .verbosity import Verbosity

SOURCE_GROUP = Group.create_ordered("Source")
OUTPUT_GROUP = Group.create_ordered("Output")
QUALITY_GROUP = Group.create_ordered("Quality")
RUNTIME_GROUP = Group.create_ordered("Runtime")

OUTPUT_SUFFIX = "_av1"


@Parameter(name="*")
class EncodeOptions(BaseModel):
    """Options for encoding one source file."""

    source: Annotated[
        Path,
        Parameter(group=SOURCE_GROUP),
    ] = Field(description="Path to the source video.")
    output: Annotated[
        str | None,
        Parameter(group=OUTPUT_GROUP),
    ] = Field(
        None,
        description=f"File name of the result. Defaults to the source name with '{OUTPUT_SUFFIX}' appended.",
    )
    to_path: Annotated[
        str | None,
        Parameter(group=OUTPUT_GROUP),
    ] = Field(
        None,
        description="Directory (or full file path) relative to the source directory to save into.",
    )
    visibility: Annotated[
        Visibility | None,
        Parameter(group=OUTPUT_GROUP),
    ] = Field(None, description="Permissions applied to the saved file.")
    backend: Annotated[
        BackendChoice,
        Parameter(group=QUALITY_GROUP),
    ] = Field(BackendChoice.ABAV1, description="Tool that performs the encode.")
    operation: Annotated[
        Operation,
        Parameter(group=QUALITY_GROUP),
    ] = Field(Operation.AUTO_ENCODE, description="Operation to run.")
    quality_level: Annotated[
        int | None,
        Parameter(group=QUALITY_GROUP),
    ] = Field(None, ge=0, description="Fixed quality level (CRF). Required by encode and sample-encode.")
    min_quality_target: Annotated[
        float | None,
        Parameter(group=QUALITY_GROUP),
    ] = Field(None, ge=0, le=100, description="Minimum VMAF score for quality searches.")
    preset: Annotated[
        str | None,
        Parameter(group=QUALITY_GROUP),
    ] = Field(None, description="Encoder preset.")
    encoder: Annotated[
        str | None,
        Parameter(group=QUALITY_GROUP),
    ] = Field(None, description="Encoder id, for example libsvtav1 or av1_nvenc.")
    dry_run: Annotated[
        bool,
        Parameter(group=RUNTIME_GROUP),
    ] = Field(default=False, description="Print the command without executing it.")
    verbosity: Annotated[
        Verbosity,
        Parameter(group=RUNTIME_GROUP),
    ] = Field(
        default=Verbosity.QUIET,
        description="Commands: show each command; Output: also show tool output.",
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: Path) -> Path:
        """Ensure the source is an existing file."""
        path = Path(v).expanduser().absolute()
        if not path.is_file():
            raise ValueError(f"Input path is not a file: {path}")
        return path

    @field_validator("verbosity", mode="before")
    @classmethod
    def _parse_verbosity(cls, v: object) -> Verbosity:
        """Accept ``--verbosity commands`` as well as ``--verbosity 1``."""
        return Verbosity.parse(v)

    @model_validator(mode="after")
    def validate_operation(self) -> EncodeOptions:
        """Reject operations that cannot produce an exportable file."""
        if not self.operation.produces_artifact:
            raise ValueError(f"Operation '{self.operation.value}' does not produce a file to save")
        if self.backend is BackendChoice.FFMPEG and self.operation is Operation.SAMPLE_ENCODE:
            raise ValueError("The ffmpeg backend does not support sample-encode")
        return self

    @property
    def output_name(self) -> str:
        """Name of the file produced by the session."""
        return self.output or f"{self.source.stem}{OUTPUT_SUFFIX}.mp4"


__all__ = [
    "OUTPUT_GROUP",
    "OUTPUT_SUFFIX",
    "QUALITY_GROUP",
    "RUNTIME_GROUP",
    "SOURCE_GROUP",
    "EncodeOptions",
]
