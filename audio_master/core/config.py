"""
Mastering Configuration

A single immutable record carries every setting of the offline chain.
Values are validated once at construction; processing code can rely on
them without re-checking.

Defaults:
- target_lufs: -14 LUFS (common streaming reference)
- ceiling_db: -1 dBTP
- sample_rate / bit_depth: 44.1 kHz, 16-bit ("streaming" preset)
- dither: TPDF
- lookahead_ms / release_ms: 3 ms / 50 ms limiter timing

Ranges follow the controls of the mastering UI:
- ceiling: -6 .. 0 dBTP
- target loudness: -60 .. 0 LUFS
- sample rate: 44100 or 48000 Hz
- bit depth: 16 or 24
"""

from dataclasses import dataclass, replace
from enum import Enum
import math

from .errors import InvalidConfiguration


SUPPORTED_SAMPLE_RATES = (44100, 48000)
SUPPORTED_BIT_DEPTHS = (16, 24)

CEILING_RANGE_DB = (-6.0, 0.0)
TARGET_LUFS_RANGE = (-60.0, 0.0)

MIN_CHUNK_SIZE = 1024
DEFAULT_CHUNK_SIZE = 65536


class DitherMode(Enum):
    """
    Dither applied before 16-bit quantization.

    NOISE_SHAPED is accepted as a label but is processed exactly like
    TPDF: no noise-shaping filter is applied.
    """
    NONE = "none"
    TPDF = "tpdf"
    NOISE_SHAPED = "noise-shaped"

    @property
    def adds_noise(self) -> bool:
        return self is not DitherMode.NONE

    @classmethod
    def coerce(cls, value: "DitherMode | str | None") -> "DitherMode":
        """Accept enum members, their string values or None (= NONE)."""
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise InvalidConfiguration(
                f"Unknown dither mode: {value!r} (expected one of {choices})"
            ) from None


@dataclass(frozen=True)
class OutputPreset:
    """Output format preset (header sample rate and PCM bit depth)."""
    name: str
    sample_rate: int
    bit_depth: int


OUTPUT_PRESETS = {
    "streaming": OutputPreset("streaming", sample_rate=44100, bit_depth=16),
    "studio": OutputPreset("studio", sample_rate=48000, bit_depth=24),
}


def validate_bit_depth(bit_depth: int) -> int:
    """Return bit_depth if supported, raise InvalidConfiguration otherwise."""
    if bit_depth not in SUPPORTED_BIT_DEPTHS:
        raise InvalidConfiguration(
            f"Unsupported bit depth: {bit_depth} (expected 16 or 24)"
        )
    return int(bit_depth)


def validate_target_lufs(target_lufs: float) -> float:
    """Return target_lufs if finite and inside TARGET_LUFS_RANGE."""
    low, high = TARGET_LUFS_RANGE
    if not math.isfinite(target_lufs) or not low <= target_lufs <= high:
        raise InvalidConfiguration(
            f"Target loudness {target_lufs} LUFS outside {low:g}..{high:g}"
        )
    return float(target_lufs)


def validate_ceiling_db(ceiling_db: float) -> float:
    """Return ceiling_db if finite and inside CEILING_RANGE_DB."""
    low, high = CEILING_RANGE_DB
    if not math.isfinite(ceiling_db) or not low <= ceiling_db <= high:
        raise InvalidConfiguration(
            f"Ceiling {ceiling_db} dBTP outside {low:g}..{high:g}"
        )
    return float(ceiling_db)


@dataclass(frozen=True)
class MasteringConfig:
    """
    Settings of one offline mastering run.

    Attributes:
        target_lufs: Integrated loudness target in LUFS
        ceiling_db: True-peak ceiling in dBTP
        normalize_loudness: Apply gain towards target_lufs
        true_peak_limit: Run the lookahead limiter at ceiling_db
        sample_rate: Output sample rate (payload is resampled to it)
        bit_depth: PCM bit depth, 16 or 24
        dither: Dither mode for 16-bit output
        lookahead_ms: Limiter lookahead in milliseconds
        release_ms: Limiter release time constant in milliseconds
        chunk_size: Frames per encoder chunk (async / iterator encoding)
        fallback_lufs: Loudness reported when a buffer is too short to measure
    """
    target_lufs: float = -14.0
    ceiling_db: float = -1.0
    normalize_loudness: bool = True
    true_peak_limit: bool = True
    sample_rate: int = 44100
    bit_depth: int = 16
    dither: DitherMode = DitherMode.TPDF
    lookahead_ms: float = 3.0
    release_ms: float = 50.0
    chunk_size: int = DEFAULT_CHUNK_SIZE
    fallback_lufs: float = float("-inf")

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "dither", DitherMode.coerce(self.dither))

        validate_target_lufs(self.target_lufs)
        validate_ceiling_db(self.ceiling_db)
        if self.sample_rate not in SUPPORTED_SAMPLE_RATES:
            raise InvalidConfiguration(f"Invalid sample rate: {self.sample_rate}")
        validate_bit_depth(self.bit_depth)
        if self.lookahead_ms < 0:
            raise InvalidConfiguration("Lookahead must not be negative")
        if self.release_ms <= 0:
            raise InvalidConfiguration("Release time must be positive")
        if self.chunk_size < MIN_CHUNK_SIZE:
            raise InvalidConfiguration(
                f"Chunk size must be at least {MIN_CHUNK_SIZE} frames"
            )

    @property
    def ceiling_linear(self) -> float:
        """Ceiling as linear amplitude (e.g. -1 dBTP -> 0.891)."""
        return 10 ** (self.ceiling_db / 20)

    @classmethod
    def from_preset(cls, name: str, **overrides) -> "MasteringConfig":
        """Create a configuration from an output preset name."""
        try:
            preset = OUTPUT_PRESETS[name]
        except KeyError:
            raise InvalidConfiguration(f"Unknown output preset: {name!r}") from None
        values = {"sample_rate": preset.sample_rate, "bit_depth": preset.bit_depth}
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes) -> "MasteringConfig":
        """Return a validated copy with some fields replaced."""
        return replace(self, **changes)
