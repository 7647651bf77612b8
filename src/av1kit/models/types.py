"""Operation, encoder and storage type definitions."""

from enum import Enum


class Operation(str, Enum):
    """Operations understood by the command builder."""

    AUTO_ENCODE = "auto-encode"
    CRF_SEARCH = "crf-search"
    SAMPLE_ENCODE = "sample-encode"
    ENCODE = "encode"
    QUALITY_VMAF = "quality-vmaf"
    QUALITY_XPSNR = "quality-xpsnr"

    @classmethod
    def _missing_(cls, value: object) -> "Operation | None":
        """Accept ab-av1 subcommand names (``vmaf``, ``xpsnr``) as aliases."""
        for member in cls:
            if member.token == value:
                return member
        return None

    @property
    def token(self) -> str:
        """Return the ab-av1 subcommand for this operation."""
        return {
            Operation.QUALITY_VMAF: "vmaf",
            Operation.QUALITY_XPSNR: "xpsnr",
        }.get(self, self.value)

    @property
    def is_quality_analysis(self) -> bool:
        """Whether this operation compares a reference against a distorted file."""
        return self in {Operation.QUALITY_VMAF, Operation.QUALITY_XPSNR}

    @property
    def produces_artifact(self) -> bool:
        """Whether this operation writes an output file."""
        return self in {Operation.AUTO_ENCODE, Operation.SAMPLE_ENCODE, Operation.ENCODE}


class HardwareEncoder(str, Enum):
    """AV1 encoders backed by GPU or media engines."""

    QSV = "av1_qsv"
    NVENC = "av1_nvenc"
    AMF = "av1_amf"

    @property
    def label(self) -> str:
        """Human readable name."""
        return {
            HardwareEncoder.QSV: "Intel Quick Sync Video",
            HardwareEncoder.NVENC: "NVIDIA NVENC",
            HardwareEncoder.AMF: "AMD Advanced Media Framework",
        }[self]


class SoftwareEncoder(str, Enum):
    """AV1 encoders running on the CPU."""

    SVT_AV1 = "libsvtav1"
    AOM_AV1 = "libaom-av1"
    RAV1E = "librav1e"

    @property
    def label(self) -> str:
        """Human readable name."""
        return {
            SoftwareEncoder.SVT_AV1: "SVT-AV1 (CPU)",
            SoftwareEncoder.AOM_AV1: "AOM AV1 (CPU)",
            SoftwareEncoder.RAV1E: "rav1e (CPU)",
        }[self]


HARDWARE_ENCODER_IDS: frozenset[str] = frozenset(e.value for e in HardwareEncoder)
SOFTWARE_ENCODER_IDS: frozenset[str] = frozenset(e.value for e in SoftwareEncoder)
KNOWN_ENCODER_IDS: frozenset[str] = HARDWARE_ENCODER_IDS | SOFTWARE_ENCODER_IDS
FALLBACK_ENCODER = SoftwareEncoder.SVT_AV1.value


class HardwareAccelMethod(str, Enum):
    """Decode-side hardware acceleration transports."""

    QSV = "qsv"
    CUDA = "cuda"
    VAAPI = "vaapi"
    VULKAN = "vulkan"

    @property
    def label(self) -> str:
        """Human readable name."""
        return {
            HardwareAccelMethod.QSV: "Intel Quick Sync",
            HardwareAccelMethod.CUDA: "NVIDIA CUDA",
            HardwareAccelMethod.VAAPI: "VA-API (Linux)",
            HardwareAccelMethod.VULKAN: "Vulkan",
        }[self]


class Visibility(str, Enum):
    """Visibility applied to exported files."""

    PUBLIC = "public"
    PRIVATE = "private"

    @property
    def file_mode(self) -> int:
        """POSIX permission bits used by local storage."""
        return 0o644 if self is Visibility.PUBLIC else 0o600


class BackendChoice(str, Enum):
    """Backends selectable from the command line."""

    ABAV1 = "abav1"
    FFMPEG = "ffmpeg"


__all__ = [
    "FALLBACK_ENCODER",
    "HARDWARE_ENCODER_IDS",
    "KNOWN_ENCODER_IDS",
    "SOFTWARE_ENCODER_IDS",
    "BackendChoice",
    "HardwareAccelMethod",
    "HardwareEncoder",
    "Operation",
    "SoftwareEncoder",
    "Visibility",
]
