"""
Lookahead True-Peak Limiter

Two passes over a per-frame gain envelope (initialized to 1.0):

Pass 1 - gain computation:
    For every frame the oversampled true peak across all channels is
    measured. Where it exceeds the ceiling, required = ceiling / peak is
    applied retroactively to the frames [n - lookahead, n], keeping the
    minimum of all requests. Gain only decreases in this pass.

Pass 2 - smoothing:
    Walking forward, the held gain drops instantly to any lower raw value
    (zero-latency attack, already safe thanks to the lookahead) and
    otherwise relaxes towards 1.0 with
    coeff = exp(-1 / (release_ms · fs / 1000)).

The output is the input multiplied by the smoothed envelope. If gains
that differ inside one interpolation window still leave an inter-sample
overshoot, the whole output is scaled once more by ceiling / peak.

Invariants:
- envelope values lie in (0, 1]
- true peak of the output <= ceiling (within float precision)
"""

from dataclasses import dataclass
import logging
import numpy as np
from scipy.ndimage import minimum_filter1d

from .audio_io import SampleBuffer
from .errors import InvalidConfiguration
from .signal_processing import db_to_linear, linear_to_db
from .true_peak import true_peak_linear, true_peak_per_frame


logger = logging.getLogger("audio_master.limiter")

# Catmull-Rom looks three frames back; lookahead must cover that window.
MIN_LOOKAHEAD_SAMPLES = 3


@dataclass(frozen=True, eq=False)
class LimiterResult:
    """
    Output of one limiter run.

    Attributes:
        buffer: Limited audio
        envelope: Smoothed per-frame gain that was applied
        safety_gain: Extra scalar gain of the final overshoot correction (1.0 if unused)
    """
    buffer: SampleBuffer
    envelope: np.ndarray
    safety_gain: float = 1.0

    @property
    def max_gain_reduction_db(self) -> float:
        """Deepest gain reduction in dB (positive number, 0 if untouched)."""
        if self.envelope.size == 0:
            return 0.0
        return -linear_to_db(float(self.envelope.min()) * self.safety_gain)


class LookaheadLimiter:
    """
    Offline lookahead limiter.

    Usage:
        limiter = LookaheadLimiter.from_db(-1.0, sample_rate=44100)
        limited = limiter.process(buffer)
    """

    def __init__(
        self,
        ceiling_linear: float,
        sample_rate: int,
        lookahead_ms: float = 3.0,
        release_ms: float = 50.0,
    ):
        """
        Args:
            ceiling_linear: Peak ceiling as linear amplitude (0.891 ≈ -1 dBTP)
            sample_rate: Sample rate in Hz
            lookahead_ms: How far gain reduction reaches ahead of a peak
            release_ms: Release time constant
        """
        if not ceiling_linear > 0:
            raise InvalidConfiguration("Ceiling must be a positive linear amplitude")
        if lookahead_ms < 0:
            raise InvalidConfiguration("Lookahead must not be negative")
        if release_ms <= 0:
            raise InvalidConfiguration("Release time must be positive")
        if sample_rate <= 0:
            raise InvalidConfiguration("Sample rate must be positive")

        self.ceiling = float(ceiling_linear)
        self.sample_rate = sample_rate
        self.lookahead_ms = lookahead_ms
        self.release_ms = release_ms
        self.lookahead_samples = max(
            int(round(lookahead_ms * sample_rate / 1000)), MIN_LOOKAHEAD_SAMPLES
        )
        self.release_coeff = float(np.exp(-1.0 / (release_ms * sample_rate / 1000)))

    @classmethod
    def from_db(
        cls,
        ceiling_db: float,
        sample_rate: int,
        lookahead_ms: float = 3.0,
        release_ms: float = 50.0,
    ) -> "LookaheadLimiter":
        """Create a limiter with the ceiling given in dBTP."""
        return cls(db_to_linear(ceiling_db), sample_rate, lookahead_ms, release_ms)

    def compute_raw_envelope(self, buffer: SampleBuffer) -> np.ndarray:
        """
        Pass 1: required gain per frame, spread backwards over the lookahead.

        envelope[m] = min(required[m .. m + lookahead])
        """
        peaks = true_peak_per_frame(buffer)
        required = np.ones_like(peaks)
        over = peaks > self.ceiling
        required[over] = self.ceiling / peaks[over]

        if not over.any():
            return required

        size = self.lookahead_samples + 1
        # origin shifts the window to [m, m + lookahead]
        return minimum_filter1d(
            required, size=size, mode="constant", cval=1.0, origin=-(size // 2)
        )

    def smooth_envelope(self, raw: np.ndarray) -> np.ndarray:
        """
        Pass 2: instant attack, exponential release towards 1.0.

        With d = 1 - gain the recurrence
            held[n] = min(raw[n], 1 - coeff · (1 - held[n-1]))
        becomes d[n] = max(r[n], coeff · d[n-1]), r = 1 - raw, whose
        closed form max_k(r[k] · coeff^(n-k)) is a running maximum in
        the log domain.
        """
        raw = np.asarray(raw, dtype=np.float64)
        if raw.size == 0:
            return raw.copy()

        reduction = 1.0 - np.minimum(raw, 1.0)
        log_coeff = np.log(self.release_coeff)
        index = np.arange(raw.size, dtype=np.float64)

        with np.errstate(divide="ignore"):
            log_reduction = np.log(reduction)
        running = np.maximum.accumulate(log_reduction - index * log_coeff)
        held_reduction = np.exp(running + index * log_coeff)

        smoothed = 1.0 - held_reduction
        # exp/log round trip must not lift the gain above a raw request
        return np.clip(np.minimum(smoothed, raw), 0.0, 1.0)

    def process_with_envelope(self, buffer: SampleBuffer) -> LimiterResult:
        """Limit a buffer and return the applied envelope as well."""
        envelope = self.smooth_envelope(self.compute_raw_envelope(buffer))

        if buffer.data.ndim == 1:
            limited = buffer.data * envelope
        else:
            limited = buffer.data * envelope[:, np.newaxis]
        result = buffer.with_data(limited)

        safety_gain = 1.0
        peak = true_peak_linear(result)
        if peak > self.ceiling:
            safety_gain = self.ceiling / peak
            result = result.with_data(result.data * safety_gain)
            logger.debug(
                "[LIMIT] Residual overshoot %.4f dB corrected",
                linear_to_db(peak / self.ceiling),
            )

        limit_result = LimiterResult(buffer=result, envelope=envelope, safety_gain=safety_gain)
        logger.info(
            "[LIMIT] Ceiling %.2f dBTP, max gain reduction %.2f dB",
            linear_to_db(self.ceiling), limit_result.max_gain_reduction_db,
        )
        return limit_result

    def process(self, buffer: SampleBuffer) -> SampleBuffer:
        """Limit a buffer to the ceiling."""
        return self.process_with_envelope(buffer).buffer


def apply_lookahead_limiter(
    buffer: SampleBuffer,
    ceiling_linear: float,
    lookahead_ms: float = 3.0,
    release_ms: float = 50.0,
) -> SampleBuffer:
    """Function form of LookaheadLimiter(...).process(buffer)."""
    limiter = LookaheadLimiter(
        ceiling_linear, buffer.sample_rate, lookahead_ms=lookahead_ms, release_ms=release_ms
    )
    return limiter.process(buffer)
