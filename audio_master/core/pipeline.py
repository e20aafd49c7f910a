"""
Offline Mastering Chain

Runs the in-scope export chain on a decoded buffer:

    resample -> measure -> normalize (gain only) -> true-peak limit
    -> measure -> encode

Resampling comes first so that loudness, peaks and the limiter all see
the payload that is finally written. Normalization is gain only; the
ceiling is enforced by the limiter stage when true_peak_limit is set.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging

from .audio_io import SampleBuffer
from .config import MasteringConfig
from .errors import EncodingCancelled
from .limiter import LookaheadLimiter
from .loudness import measure_loudness
from .normalizer import LoudnessNormalizer
from .signal_processing import resample_buffer
from .true_peak import true_peak_db
from .wav_encoder import encode_wav, encode_wav_async


logger = logging.getLogger("audio_master.pipeline")

ProgressCallback = Callable[[float], None]

# share of the progress bar used by processing, the rest is encoding
_PROCESSING_SHARE = 0.85


@dataclass(frozen=True, eq=False)
class MasteringReport:
    """
    Result of master_buffer().

    Attributes:
        buffer: Processed buffer at config.sample_rate
        source_lufs: Loudness before processing (fallback_lufs if too short)
        source_peak_db: True peak before processing
        output_lufs: Loudness after processing
        output_peak_db: True peak after processing
        gain_db: Normalization gain (0.0 if skipped or disabled)
        limited: Limiter changed the signal
        max_gain_reduction_db: Deepest limiter gain reduction
    """
    buffer: SampleBuffer
    source_lufs: float
    source_peak_db: float
    output_lufs: float
    output_peak_db: float
    gain_db: float = 0.0
    limited: bool = False
    max_gain_reduction_db: float = 0.0


def _report(on_progress: Optional[ProgressCallback], value: float) -> None:
    if on_progress is not None:
        on_progress(min(max(value, 0.0), 1.0))


def master_buffer(
    buffer: SampleBuffer,
    config: MasteringConfig,
    on_progress: Optional[ProgressCallback] = None,
) -> MasteringReport:
    """
    Process a buffer with the normalization / limiting chain.

    Args:
        buffer: Decoded source buffer (never modified)
        config: Mastering settings
        on_progress: Receives monotonic fractions 0..1

    Returns:
        MasteringReport with the processed buffer and measurements
    """
    current = resample_buffer(buffer, config.sample_rate)
    _report(on_progress, 0.15)

    source = measure_loudness(current)
    source_lufs = source.value_or(config.fallback_lufs)
    source_peak = true_peak_db(current)
    logger.info(
        "[MASTER] Source %.2f LUFS, %.2f dBTP @ %d Hz",
        source_lufs, source_peak, current.sample_rate,
    )
    _report(on_progress, 0.3)

    gain_db = 0.0
    if config.normalize_loudness:
        normalized = LoudnessNormalizer(
            config.target_lufs, config.ceiling_db, skip_limiter=True
        ).process(current, source.integrated_lufs, source_peak)
        current = normalized.buffer
        gain_db = normalized.gain_db
    _report(on_progress, 0.55)

    limited = False
    reduction_db = 0.0
    if config.true_peak_limit:
        limiter = LookaheadLimiter(
            config.ceiling_linear,
            current.sample_rate,
            lookahead_ms=config.lookahead_ms,
            release_ms=config.release_ms,
        )
        result = limiter.process_with_envelope(current)
        reduction_db = result.max_gain_reduction_db
        limited = reduction_db > 0.0
        current = result.buffer
    _report(on_progress, 0.85)

    output_lufs = measure_loudness(current).value_or(config.fallback_lufs)
    output_peak = true_peak_db(current)
    logger.info("[MASTER] Output %.2f LUFS, %.2f dBTP", output_lufs, output_peak)
    _report(on_progress, 1.0)

    return MasteringReport(
        buffer=current,
        source_lufs=source_lufs,
        source_peak_db=source_peak,
        output_lufs=output_lufs,
        output_peak_db=output_peak,
        gain_db=gain_db,
        limited=limited,
        max_gain_reduction_db=reduction_db,
    )


def master_to_wav(
    buffer: SampleBuffer,
    config: MasteringConfig,
    on_progress: Optional[ProgressCallback] = None,
    seed: Optional[int] = None,
) -> bytes:
    """Master a buffer and encode it with the configured format."""
    report = master_buffer(
        buffer,
        config,
        on_progress=lambda p: _report(on_progress, p * _PROCESSING_SHARE),
    )
    data = encode_wav(
        report.buffer, config.sample_rate, config.bit_depth, dither=config.dither, seed=seed
    )
    _report(on_progress, 1.0)
    return data


async def master_to_wav_async(
    buffer: SampleBuffer,
    config: MasteringConfig,
    on_progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    seed: Optional[int] = None,
) -> bytes:
    """
    Asynchronous master_to_wav().

    Processing runs in one step; encoding yields between chunks and polls
    should_cancel at every chunk boundary.

    Raises:
        EncodingCancelled: should_cancel returned True
    """
    if should_cancel is not None and should_cancel():
        raise EncodingCancelled()

    report = master_buffer(
        buffer,
        config,
        on_progress=lambda p: _report(on_progress, p * _PROCESSING_SHARE),
    )
    return await encode_wav_async(
        report.buffer,
        config.sample_rate,
        config.bit_depth,
        dither=config.dither,
        on_progress=lambda p: _report(
            on_progress, _PROCESSING_SHARE + p * (1 - _PROCESSING_SHARE)
        ),
        should_cancel=should_cancel,
        chunk_size=config.chunk_size,
        seed=seed,
    )
