"""
General Signal Processing

Level conversions, scalar gain and resampling for SampleBuffers.
All functions are EXPLICIT - no automatic conversions.

Technical assumptions:
- Resampling uses scipy.signal.resample_poly for anti-aliasing
- Gain is a pure scalar multiply per sample and channel (no filtering)
- All operations return new buffers, the input remains unchanged
"""

import numpy as np
from scipy import signal

from .audio_io import SampleBuffer


def db_to_linear(db: float) -> float:
    """Convert a level in dB to a linear amplitude factor."""
    return float(10 ** (db / 20))


def linear_to_db(value: float) -> float:
    """
    Convert a linear amplitude to dB.

    Returns -inf for 0 (silence is a valid, unmeasurable level).
    """
    if value <= 0:
        return float("-inf")
    return float(20 * np.log10(value))


def apply_gain(buffer: SampleBuffer, gain_db: float) -> SampleBuffer:
    """Return a new buffer scaled by gain_db."""
    return apply_linear_gain(buffer, db_to_linear(gain_db))


def apply_linear_gain(buffer: SampleBuffer, factor: float) -> SampleBuffer:
    """Return a new buffer with every sample multiplied by factor."""
    return buffer.with_data(buffer.data * factor)


def compute_peak(data: np.ndarray, as_db: bool = False) -> float:
    """
    Compute sample peak value (absolute maximum) of the signal.

    This is the sample-domain peak; inter-sample peaks are measured
    by the true_peak module.

    Args:
        data: Audio data
        as_db: If True, return in dB (reference: 1.0)

    Returns:
        Peak value (linear or dB)
    """
    peak = float(np.max(np.abs(data))) if data.size else 0.0

    if as_db:
        return linear_to_db(peak)

    return peak


def resample_buffer(buffer: SampleBuffer, target_sr: int) -> SampleBuffer:
    """
    Resample a buffer to a new sample rate.

    Uses scipy.signal.resample_poly with automatic anti-aliasing filtering.

    Technical details:
    - Polyphase resampling for efficient computation
    - Anti-aliasing filter: Kaiser window FIR
    - Channels are resampled independently along the frame axis

    Args:
        buffer: Source buffer
        target_sr: Target sample rate

    Returns:
        New buffer at target_sr (same object if the rate already matches)
    """
    if buffer.sample_rate == target_sr:
        return buffer

    # Determine upsampling/downsampling factors
    gcd = np.gcd(buffer.sample_rate, target_sr)
    up = target_sr // gcd
    down = buffer.sample_rate // gcd

    if buffer.num_frames == 0:
        return SampleBuffer(data=buffer.data, sample_rate=target_sr)

    resampled = signal.resample_poly(buffer.data, up, down, axis=0)
    return SampleBuffer(data=resampled, sample_rate=target_sr)
