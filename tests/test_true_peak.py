"""
Tests for oversampled true-peak estimation.
"""

import pytest
import numpy as np

from audio_master.core.audio_io import SampleBuffer
from audio_master.core.true_peak import (
    catmull_rom,
    channel_true_peaks,
    true_peak_db,
    true_peak_linear,
    true_peak_per_frame,
)


def quarter_rate_sine(amplitude=1.0, frames=64):
    """fs/4 sine with 45° phase: samples sit at ±0.707 of the real peak."""
    n = np.arange(frames)
    return amplitude * np.sin(np.pi / 2 * n + np.pi / 4)


class TestCatmullRom:
    """Tests for the interpolation kernel."""

    def test_endpoints(self):
        """t=0 gives y1, t=1 gives y2."""
        y = [np.array([v]) for v in (0.3, -0.2, 0.9, 0.1)]

        assert catmull_rom(*y, 0.0)[0] == pytest.approx(-0.2)
        assert catmull_rom(*y, 1.0)[0] == pytest.approx(0.9)

    def test_constant(self):
        """A constant signal interpolates to the same constant."""
        y = [np.array([0.5])] * 4

        assert catmull_rom(*y, 0.5)[0] == pytest.approx(0.5)

    def test_linear(self):
        """A ramp is reproduced exactly."""
        y = [np.array([v]) for v in (0.0, 1.0, 2.0, 3.0)]

        assert catmull_rom(*y, 0.25)[0] == pytest.approx(1.25)


class TestTruePeak:
    """Tests for per-frame and global true peaks."""

    def test_silence(self):
        """Silence has no true peak."""
        buffer = SampleBuffer(data=np.zeros(1000), sample_rate=48000)

        assert true_peak_linear(buffer) == 0.0
        assert true_peak_db(buffer) == float("-inf")

    def test_empty_buffer(self):
        """An empty buffer has zero peak."""
        assert true_peak_linear(SampleBuffer(data=np.zeros(0), sample_rate=48000)) == 0.0

    def test_constant_signal(self):
        """DC at 0.5 peaks at -6.02 dBTP."""
        buffer = SampleBuffer(data=np.full(100, 0.5), sample_rate=48000)

        assert true_peak_linear(buffer) == pytest.approx(0.5)
        assert true_peak_db(buffer) == pytest.approx(-6.0206, abs=1e-3)

    def test_detects_inter_sample_peak(self):
        """True peak exceeds the sample peak for an fs/4 sine."""
        data = quarter_rate_sine()
        buffer = SampleBuffer(data=data, sample_rate=48000)

        sample_peak = np.max(np.abs(data))
        tp = true_peak_linear(buffer)

        assert sample_peak == pytest.approx(np.sqrt(0.5))
        assert tp > sample_peak + 0.1
        assert tp <= 1.05

    def test_first_frames_use_raw_samples(self):
        """Before four samples are seen only |x| counts."""
        peaks = channel_true_peaks(np.array([0.1, -0.4, 0.2, 0.0, 0.0]))

        np.testing.assert_array_equal(peaks[:3], [0.1, 0.4, 0.2])

    def test_short_channel(self):
        """Fewer than four samples: plain absolute values."""
        np.testing.assert_array_equal(channel_true_peaks(np.array([-0.3, 0.2])), [0.3, 0.2])

    def test_per_frame_length(self):
        """One peak value per frame."""
        buffer = SampleBuffer(data=np.random.randn(500, 2) * 0.1, sample_rate=48000)

        assert true_peak_per_frame(buffer).shape == (500,)

    def test_maximum_across_channels(self):
        """Global peak is the loudest channel."""
        data = np.column_stack([np.full(50, 0.2), np.full(50, -0.7)])
        buffer = SampleBuffer(data=data, sample_rate=48000)

        assert true_peak_linear(buffer) == pytest.approx(0.7)

    def test_not_below_sample_peak(self):
        """True peak is never below the sample peak."""
        rng = np.random.default_rng(3)
        data = rng.uniform(-1, 1, 2000)
        buffer = SampleBuffer(data=data, sample_rate=44100)

        assert true_peak_linear(buffer) >= np.max(np.abs(data))
