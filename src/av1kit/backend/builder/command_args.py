"""Common command arguments and ab-av1 option names."""

INPUT_FLAG: tuple[str, ...] = ("-i",)  #: Introduce an input file path.
OUTPUT_FLAG: tuple[str, ...] = ("-o",)  #: Introduce an ab-av1 output file path.
REFERENCE_FLAG: tuple[str, ...] = ("--reference",)  #: Reference file for quality analysis.
DISTORTED_FLAG: tuple[str, ...] = ("--distorted",)  #: Distorted file for quality analysis.
OVERWRITE_OUTPUT: tuple[str, ...] = ("-y",)  #: Overwrite existing files (ffmpeg).

PRESET = "preset"  #: Encoder speed/quality tradeoff.
QUALITY_LEVEL = "crf"  #: Single-pass rate/quality control value.
MIN_QUALITY_TARGET = "min-vmaf"  #: Minimum VMAF score a search must satisfy.
MIN_CRF = "min-crf"  #: Lower bound for quality searches.
MAX_CRF = "max-crf"  #: Upper bound for quality searches.
SAMPLE = "sample"  #: Sample duration in seconds.
ENCODER = "encoder"  #: Encoder used by ab-av1.
PIX_FMT = "pix-fmt"  #: Output pixel format.
FULL_VMAF = "full-vmaf"  #: Score the full file instead of samples.
VERBOSE = "verbose"  #: Verbose tool output.
MAX_ENCODED_PERCENT = "max-encoded-percent"  #: Size cap relative to the source.
VMAF_MODEL = "vmaf-model"  #: VMAF model path.
VMAF_THREADS = "vmaf-threads"  #: VMAF thread count.
TEMP_DIR = "temp-dir"  #: Directory for ab-av1 side files.
VIDEO_FILTER = "vfilter"  #: Video filter graph (ffmpeg ``-vf``).
AUDIO_CODEC = "acodec"  #: Audio codec (ffmpeg ``-c:a``).


def option_flag(name: str) -> str:
    """Return the long flag for an option name."""
    return f"--{name}"
