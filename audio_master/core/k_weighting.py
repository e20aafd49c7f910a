"""
K-Weighting Cascade (ITU-R BS.1770-4)

Two biquads in series approximate the loudness perception of the head:
1. High shelf, +4 dB above ~1.7 kHz (acoustic effect of the head)
2. High pass at ~38 Hz (RLB weighting, rejects rumble and DC)

Coefficients are derived for the buffer's own sample rate with the
RBJ formulas, so 44.1 kHz, 48 kHz and 96 kHz material is weighted alike.

The unfiltered buffer is left untouched: true-peak measurement must run
on the original signal, never on the K-weighted copy.
"""

from .audio_io import SampleBuffer
from .biquad import BiquadFilter, design_high_pass, design_high_shelf


# Exact parameters that reproduce the BS.1770 48 kHz reference coefficients;
# commonly quoted rounded as +4 dB / Q 0.707 and 38 Hz / Q 0.5.
SHELF_FREQUENCY = 1681.974450955533
SHELF_GAIN_DB = 3.999843853973347
SHELF_Q = 0.7071752369554196

HIGHPASS_FREQUENCY = 38.13547087602444
HIGHPASS_Q = 0.5003270373238773


class KWeightingFilter:
    """
    K-weighting filter pair for one sample rate.

    Usage:
        kw = KWeightingFilter(sample_rate=48000)
        weighted = kw.apply(buffer)
    """

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self.shelf = BiquadFilter(
            design_high_shelf(SHELF_FREQUENCY, SHELF_GAIN_DB, SHELF_Q, sample_rate)
        )
        self.highpass = BiquadFilter(
            design_high_pass(HIGHPASS_FREQUENCY, HIGHPASS_Q, sample_rate)
        )

    def apply(self, buffer: SampleBuffer) -> SampleBuffer:
        """Return a K-weighted copy of the buffer (shelf, then high pass)."""
        if buffer.sample_rate != self.sample_rate:
            raise ValueError(
                f"Filter designed for {self.sample_rate} Hz, "
                f"buffer is {buffer.sample_rate} Hz"
            )
        return self.highpass.process_buffer(self.shelf.process_buffer(buffer))


def k_weight(buffer: SampleBuffer) -> SampleBuffer:
    """K-weight a buffer with filters designed for its sample rate."""
    return KWeightingFilter(buffer.sample_rate).apply(buffer)
