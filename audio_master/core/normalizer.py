"""
Loudness Normalization

Brings a buffer to a target integrated loudness while keeping its true
peak under a ceiling.

Steps:
1. Measure integrated loudness and true peak of the unmodified source
2. Unmeasurable loudness (silence, shorter than 400 ms) -> return source
3. gain_db = target - current; gained = source × 10^(gain_db / 20)
4. projected_peak = source_peak + gain_db
5. projected_peak > ceiling -> lookahead limiter on the gained buffer

The ceiling wins over the target: for very dynamic material the result
can end up quieter than requested.
"""

from dataclasses import dataclass
import logging
import math
from typing import Optional

from .audio_io import SampleBuffer
from .config import validate_ceiling_db, validate_target_lufs
from .limiter import LookaheadLimiter
from .loudness import measure_loudness
from .signal_processing import apply_gain, db_to_linear
from .true_peak import true_peak_db


logger = logging.getLogger("audio_master.normalizer")


@dataclass(frozen=True, eq=False)
class NormalizationResult:
    """
    Outcome of a normalization run.

    Attributes:
        buffer: Output buffer (the input object itself when skipped)
        source_lufs: Measured loudness of the input (may be -inf)
        source_peak_db: True peak of the input in dBTP
        gain_db: Applied gain (0.0 when skipped)
        projected_peak_db: Expected true peak after gain, before limiting
        limited: Lookahead limiter was applied
        skipped: Loudness was unmeasurable, nothing was changed
    """
    buffer: SampleBuffer
    source_lufs: float
    source_peak_db: float
    gain_db: float
    projected_peak_db: float
    limited: bool
    skipped: bool


class LoudnessNormalizer:
    """
    Gain normalization towards a target loudness with ceiling enforcement.

    Usage:
        normalizer = LoudnessNormalizer(target_lufs=-14.0, ceiling_db=-1.0)
        result = normalizer.process(buffer)
    """

    def __init__(
        self,
        target_lufs: float,
        ceiling_db: float = -1.0,
        lookahead_ms: float = 3.0,
        release_ms: float = 50.0,
        skip_limiter: bool = False,
    ):
        """
        Args:
            target_lufs: Target integrated loudness
            ceiling_db: True-peak ceiling in dBTP
            lookahead_ms: Limiter lookahead
            release_ms: Limiter release
            skip_limiter: Apply gain only; a later stage enforces the ceiling

        Raises:
            InvalidConfiguration: Target or ceiling not finite or out of range
        """
        self.target_lufs = validate_target_lufs(target_lufs)
        self.ceiling_db = validate_ceiling_db(ceiling_db)
        self.lookahead_ms = lookahead_ms
        self.release_ms = release_ms
        self.skip_limiter = skip_limiter

    def process(
        self,
        buffer: SampleBuffer,
        source_lufs: Optional[float] = None,
        source_peak_db: Optional[float] = None,
    ) -> NormalizationResult:
        """
        Normalize a buffer, see module docstring for the steps.

        Args:
            buffer: Source buffer
            source_lufs: Integrated loudness of buffer if already measured
            source_peak_db: True peak of buffer in dBTP if already measured
        """
        if source_lufs is None:
            source_lufs = measure_loudness(buffer).integrated_lufs
        source_peak = true_peak_db(buffer) if source_peak_db is None else source_peak_db

        if not math.isfinite(source_lufs):
            logger.info("[NORM] Loudness unmeasurable, buffer left unchanged")
            return NormalizationResult(
                buffer=buffer,
                source_lufs=source_lufs,
                source_peak_db=source_peak,
                gain_db=0.0,
                projected_peak_db=source_peak,
                limited=False,
                skipped=True,
            )

        gain_db = self.target_lufs - source_lufs
        gained = apply_gain(buffer, gain_db)
        projected_peak = source_peak + gain_db

        logger.info(
            "[NORM] %.2f LUFS -> %.2f LUFS (gain %+.2f dB, projected peak %.2f dBTP)",
            source_lufs, self.target_lufs, gain_db, projected_peak,
        )

        limited = False
        if projected_peak > self.ceiling_db and not self.skip_limiter:
            limiter = LookaheadLimiter(
                db_to_linear(self.ceiling_db),
                buffer.sample_rate,
                lookahead_ms=self.lookahead_ms,
                release_ms=self.release_ms,
            )
            gained = limiter.process(gained)
            limited = True

        return NormalizationResult(
            buffer=gained,
            source_lufs=source_lufs,
            source_peak_db=source_peak,
            gain_db=gain_db,
            projected_peak_db=projected_peak,
            limited=limited,
            skipped=False,
        )


def normalize_to_lufs(
    buffer: SampleBuffer,
    target_lufs: float,
    ceiling_db: float = -1.0,
    **options,
) -> SampleBuffer:
    """
    Normalize a buffer to target_lufs and return the new buffer.

    Extra keyword options are passed to LoudnessNormalizer
    (lookahead_ms, release_ms, skip_limiter).
    """
    return LoudnessNormalizer(target_lufs, ceiling_db, **options).process(buffer).buffer
