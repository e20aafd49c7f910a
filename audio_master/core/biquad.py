"""
Biquad Filter Stage

Second-order IIR sections with coefficients from the RBJ Audio EQ Cookbook.

Technical details:
- Difference equation (coefficients normalized by a0):
  y[n] = b0·x[n] + b1·x[n-1] + b2·x[n-2] - a1·y[n-1] - a2·y[n-2]
- Every call starts from silence: x1 = x2 = y1 = y2 = 0
- Channels are filtered independently, no state is shared between them

Design formulas (f0 center/corner frequency, fs sample rate):
- A  = 10^(gain_db / 40)
- w0 = 2·pi·f0 / fs
- alpha = sin(w0) / (2·Q)
"""

from dataclasses import dataclass
import numpy as np
from scipy import signal

from .audio_io import SampleBuffer
from .errors import InvalidConfiguration


@dataclass(frozen=True)
class BiquadCoefficients:
    """Normalized biquad coefficients (a0 == 1)."""
    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    @classmethod
    def from_unnormalized(
        cls, b0: float, b1: float, b2: float, a0: float, a1: float, a2: float
    ) -> "BiquadCoefficients":
        """Divide all coefficients by a0."""
        return cls(
            b0=float(b0 / a0),
            b1=float(b1 / a0),
            b2=float(b2 / a0),
            a1=float(a1 / a0),
            a2=float(a2 / a0),
        )

    @property
    def b(self) -> np.ndarray:
        return np.array([self.b0, self.b1, self.b2])

    @property
    def a(self) -> np.ndarray:
        return np.array([1.0, self.a1, self.a2])


class BiquadFilter:
    """
    Single biquad section.

    The filter keeps no state between calls: each process() call filters
    one channel starting from zero state, so the same instance can be
    used for any number of channels or buffers.
    """

    def __init__(self, coefficients: BiquadCoefficients):
        self.coefficients = coefficients

    def process(self, samples: np.ndarray) -> np.ndarray:
        """
        Filter one channel.

        Args:
            samples: 1D sample sequence

        Returns:
            New array of the same length
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError("Signal must be 1D (one channel)")
        if samples.size == 0:
            return samples.copy()
        # lfilter starts from zero initial conditions
        return signal.lfilter(self.coefficients.b, self.coefficients.a, samples)

    def process_buffer(self, buffer: SampleBuffer) -> SampleBuffer:
        """Filter every channel of a buffer independently."""
        matrix = buffer.channel_matrix()
        filtered = np.empty_like(matrix)
        for ch in range(matrix.shape[0]):
            filtered[ch] = self.process(matrix[ch])
        return SampleBuffer.from_channels(filtered, buffer.sample_rate)


def _check_design(freq: float, q: float, sample_rate: int) -> None:
    if sample_rate <= 0:
        raise InvalidConfiguration("Sample rate must be positive")
    if not 0 < freq < sample_rate / 2:
        raise InvalidConfiguration(
            f"Frequency {freq} Hz must lie between 0 and Nyquist ({sample_rate / 2} Hz)"
        )
    if q <= 0:
        raise InvalidConfiguration("Q must be positive")


def design_high_shelf(
    freq: float,
    gain_db: float,
    q: float,
    sample_rate: int,
) -> BiquadCoefficients:
    """
    Design a high-shelf biquad (RBJ cookbook).

    Args:
        freq: Shelf midpoint frequency in Hz
        gain_db: Shelf gain in dB (positive = boost)
        q: Shelf quality factor
        sample_rate: Sample rate in Hz

    Returns:
        Normalized coefficients
    """
    _check_design(freq, q, sample_rate)

    a = 10 ** (gain_db / 40)
    w0 = 2 * np.pi * freq / sample_rate
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2 * q)
    two_sqrt_a_alpha = 2 * np.sqrt(a) * alpha

    b0 = a * ((a + 1) + (a - 1) * cos_w0 + two_sqrt_a_alpha)
    b1 = -2 * a * ((a - 1) + (a + 1) * cos_w0)
    b2 = a * ((a + 1) + (a - 1) * cos_w0 - two_sqrt_a_alpha)
    a0 = (a + 1) - (a - 1) * cos_w0 + two_sqrt_a_alpha
    a1 = 2 * ((a - 1) - (a + 1) * cos_w0)
    a2 = (a + 1) - (a - 1) * cos_w0 - two_sqrt_a_alpha

    return BiquadCoefficients.from_unnormalized(b0, b1, b2, a0, a1, a2)


def design_high_pass(freq: float, q: float, sample_rate: int) -> BiquadCoefficients:
    """
    Design a second-order high-pass biquad (RBJ cookbook).

    Args:
        freq: Corner frequency in Hz
        q: Quality factor (0.5 = critically damped)
        sample_rate: Sample rate in Hz
    """
    _check_design(freq, q, sample_rate)

    w0 = 2 * np.pi * freq / sample_rate
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2 * q)

    b0 = (1 + cos_w0) / 2
    b1 = -(1 + cos_w0)
    b2 = (1 + cos_w0) / 2
    a0 = 1 + alpha
    a1 = -2 * cos_w0
    a2 = 1 - alpha

    return BiquadCoefficients.from_unnormalized(b0, b1, b2, a0, a1, a2)


def frequency_response(
    coefficients: BiquadCoefficients,
    sample_rate: int,
    frequencies: np.ndarray,
) -> np.ndarray:
    """
    Magnitude response in dB at the given frequencies (Hz).

    For documentation and verification of filter designs.
    """
    _, h = signal.freqz(
        coefficients.b,
        coefficients.a,
        worN=np.asarray(frequencies, dtype=np.float64),
        fs=sample_rate,
    )
    return 20 * np.log10(np.abs(h) + 1e-12)
