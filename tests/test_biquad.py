"""
Tests for biquad filters and the K-weighting cascade.
"""

import pytest
import numpy as np

from audio_master.core.audio_io import SampleBuffer
from audio_master.core.biquad import (
    BiquadCoefficients,
    BiquadFilter,
    design_high_pass,
    design_high_shelf,
    frequency_response,
)
from audio_master.core.errors import InvalidConfiguration
from audio_master.core.k_weighting import (
    HIGHPASS_FREQUENCY,
    HIGHPASS_Q,
    SHELF_GAIN_DB,
    SHELF_Q,
    KWeightingFilter,
    k_weight,
)


def reference_biquad(c: BiquadCoefficients, x: np.ndarray) -> np.ndarray:
    """Direct evaluation of the difference equation."""
    y = np.zeros_like(x)
    x1 = x2 = y1 = y2 = 0.0
    for n, xn in enumerate(x):
        yn = c.b0 * xn + c.b1 * x1 + c.b2 * x2 - c.a1 * y1 - c.a2 * y2
        x2, x1 = x1, xn
        y2, y1 = y1, yn
        y[n] = yn
    return y


class TestBiquadFilter:
    """Tests for the generic biquad stage."""

    def test_zero_coefficients_yield_silence(self):
        """Degenerate coefficients produce silence."""
        filt = BiquadFilter(BiquadCoefficients(0.0, 0.0, 0.0, 0.0, 0.0))
        out = filt.process(np.random.randn(256))

        np.testing.assert_array_equal(out, np.zeros(256))

    def test_identity(self):
        """b0 = 1 passes the signal through."""
        x = np.random.randn(256)
        filt = BiquadFilter(BiquadCoefficients(1.0, 0.0, 0.0, 0.0, 0.0))

        np.testing.assert_allclose(filt.process(x), x)

    def test_difference_equation(self):
        """Output matches a direct evaluation from zero state."""
        c = design_high_shelf(1500.0, 4.0, 0.7, 48000)
        x = np.random.randn(500)

        np.testing.assert_allclose(BiquadFilter(c).process(x), reference_biquad(c, x), atol=1e-12)

    def test_state_resets_per_call(self):
        """Two calls on the same input give the same output."""
        filt = BiquadFilter(design_high_pass(100.0, 0.5, 44100))
        x = np.random.randn(300)

        np.testing.assert_array_equal(filt.process(x), filt.process(x))

    def test_equal_length(self):
        """Output length equals input length."""
        filt = BiquadFilter(design_high_pass(38.0, 0.5, 48000))

        assert len(filt.process(np.ones(123))) == 123
        assert len(filt.process(np.zeros(0))) == 0

    def test_rejects_2d(self):
        """process() takes one channel."""
        filt = BiquadFilter(design_high_pass(38.0, 0.5, 48000))

        with pytest.raises(ValueError):
            filt.process(np.zeros((10, 2)))

    def test_channels_are_independent(self):
        """A silent channel stays silent next to a loud one."""
        data = np.column_stack([np.zeros(200), np.random.randn(200)])
        buffer = SampleBuffer(data=data, sample_rate=48000)
        filt = BiquadFilter(design_high_shelf(1000.0, 6.0, 0.7, 48000))

        out = filt.process_buffer(buffer)

        np.testing.assert_array_equal(out.get_channel(0), np.zeros(200))
        assert np.any(out.get_channel(1) != 0)


class TestCoefficientDesign:
    """Tests for the RBJ cookbook designs."""

    def test_coefficients_normalized(self):
        """Coefficients are stored with a0 == 1."""
        c = BiquadCoefficients.from_unnormalized(2.0, 4.0, 6.0, 2.0, 1.0, 0.5)

        assert (c.b0, c.b1, c.b2, c.a1, c.a2) == (1.0, 2.0, 3.0, 0.5, 0.25)
        assert c.a[0] == 1.0

    def test_high_shelf_response(self):
        """Shelf is flat at low and boosted at high frequencies."""
        c = design_high_shelf(1681.97, 4.0, 0.71, 48000)
        low, high = frequency_response(c, 48000, np.array([50.0, 15000.0]))

        assert low == pytest.approx(0.0, abs=0.1)
        assert high == pytest.approx(4.0, abs=0.5)

    def test_high_pass_response(self):
        """High pass rejects rumble and passes the midrange."""
        c = design_high_pass(38.14, 0.5, 48000)
        rumble, mid = frequency_response(c, 48000, np.array([10.0, 1000.0]))

        assert rumble < -15.0
        assert mid == pytest.approx(0.0, abs=0.1)

    def test_dc_is_blocked(self):
        """High pass output of DC decays to zero."""
        filt = BiquadFilter(design_high_pass(38.14, 0.5, 48000))
        out = filt.process(np.ones(48000))

        assert abs(out[-1]) < 1e-6

    @pytest.mark.parametrize("freq", [0.0, -10.0, 24000.0, 30000.0])
    def test_invalid_frequency(self, freq):
        """Frequencies outside (0, Nyquist) are rejected."""
        with pytest.raises(InvalidConfiguration):
            design_high_pass(freq, 0.5, 48000)

    def test_invalid_q(self):
        """Q must be positive."""
        with pytest.raises(InvalidConfiguration):
            design_high_shelf(1000.0, 4.0, 0.0, 48000)


class TestKWeighting:
    """Tests for the K-weighting cascade."""

    @pytest.mark.parametrize("sample_rate", [44100, 48000, 96000])
    def test_response_shape(self, sample_rate):
        """~0.7 dB at 1 kHz, ~+4 dB at 10 kHz, strongly cut at 10 Hz."""
        kw = KWeightingFilter(sample_rate)
        freqs = np.array([10.0, 997.0, 10000.0])
        shelf = frequency_response(kw.shelf.coefficients, sample_rate, freqs)
        highpass = frequency_response(kw.highpass.coefficients, sample_rate, freqs)
        total = shelf + highpass

        assert total[0] < -15.0
        assert total[1] == pytest.approx(0.7, abs=0.3)
        assert total[2] == pytest.approx(4.0, abs=0.5)

    def test_source_buffer_untouched(self):
        """K-weighting returns a filtered copy."""
        data = np.random.randn(4800, 2) * 0.1
        buffer = SampleBuffer(data=data, sample_rate=48000)

        weighted = k_weight(buffer)

        assert weighted is not buffer
        np.testing.assert_array_equal(buffer.data, data)
        assert weighted.data.shape == data.shape

    def test_constants_match_nominal_values(self):
        """Exact reference parameters round to the nominal filter values."""
        assert SHELF_GAIN_DB == pytest.approx(4.0, abs=1e-3)
        assert SHELF_Q == pytest.approx(0.7071, abs=1e-3)
        assert HIGHPASS_Q == pytest.approx(0.5, abs=1e-3)
        assert HIGHPASS_FREQUENCY == pytest.approx(38.0, abs=0.2)

    def test_sample_rate_mismatch(self):
        """A filter only accepts buffers of its design rate."""
        kw = KWeightingFilter(48000)
        buffer = SampleBuffer(data=np.zeros(100), sample_rate=44100)

        with pytest.raises(ValueError):
            kw.apply(buffer)
