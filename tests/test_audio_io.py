"""
Tests for the audio I/O module.

Covers the SampleBuffer value type and file loading without any UI.
"""

import pytest
import numpy as np
import soundfile as sf
import tempfile
from pathlib import Path

from audio_master.core.audio_io import (
    SampleBuffer,
    load_audio,
)


class TestSampleBuffer:
    """Tests for the SampleBuffer dataclass."""

    def test_mono_buffer(self):
        """Mono data is one channel."""
        buffer = SampleBuffer(data=np.random.randn(44100), sample_rate=44100)

        assert buffer.channels == 1
        assert buffer.num_frames == 44100
        assert buffer.duration_seconds == 1.0
        assert len(buffer.get_channel(0)) == 44100

    def test_stereo_buffer(self):
        """Stereo data keeps (frames, channels) layout."""
        buffer = SampleBuffer(data=np.random.randn(48000, 2), sample_rate=48000)

        assert buffer.channels == 2
        assert buffer.get_channel(0).shape == (48000,)
        assert buffer.get_channel(1).shape == (48000,)

    def test_data_is_private_copy(self):
        """Changing the source array does not change the buffer."""
        source = np.zeros(100)
        buffer = SampleBuffer(data=source, sample_rate=44100)

        source[0] = 1.0

        assert buffer.data[0] == 0.0

    def test_data_is_read_only(self):
        """Buffers cannot be modified in place."""
        buffer = SampleBuffer(data=np.zeros(100), sample_rate=44100)

        with pytest.raises(ValueError):
            buffer.data[0] = 1.0

    def test_data_converted_to_float64(self):
        """Float32 input is stored as float64."""
        buffer = SampleBuffer(data=np.zeros(10, dtype=np.float32), sample_rate=44100)

        assert buffer.data.dtype == np.float64

    def test_invalid_dimensions(self):
        """3D arrays are rejected."""
        with pytest.raises(ValueError):
            SampleBuffer(data=np.zeros((10, 2, 2)), sample_rate=44100)

    def test_invalid_sample_rate(self):
        """Sample rate must be positive."""
        with pytest.raises(ValueError):
            SampleBuffer(data=np.zeros(10), sample_rate=0)

    def test_invalid_channel(self):
        """Requesting a missing channel raises."""
        buffer = SampleBuffer(data=np.zeros(10), sample_rate=44100)

        with pytest.raises(ValueError):
            buffer.get_channel(1)

    def test_channel_matrix(self):
        """channel_matrix returns a writable (channels, frames) copy."""
        data = np.column_stack([np.ones(10), np.zeros(10)])
        buffer = SampleBuffer(data=data, sample_rate=44100)

        matrix = buffer.channel_matrix()
        matrix[0, 0] = 5.0

        assert matrix.shape == (2, 10)
        assert buffer.data[0, 0] == 1.0

    def test_from_channels(self):
        """from_channels is the inverse of channel_matrix."""
        matrix = np.vstack([np.linspace(-1, 1, 50), np.linspace(1, -1, 50)])
        buffer = SampleBuffer.from_channels(matrix, 48000)

        assert buffer.channels == 2
        np.testing.assert_array_equal(buffer.channel_matrix(), matrix)

    def test_from_single_channel_is_mono(self):
        """A (1, frames) matrix becomes a 1D mono buffer."""
        buffer = SampleBuffer.from_channels(np.ones((1, 20)), 48000)

        assert buffer.data.ndim == 1
        assert buffer.channels == 1

    def test_with_data_keeps_rate(self):
        """Successor buffers keep the sample rate."""
        buffer = SampleBuffer(data=np.zeros(10), sample_rate=48000)
        successor = buffer.with_data(np.ones(10))

        assert successor.sample_rate == 48000
        assert successor is not buffer
        assert buffer.data[0] == 0.0


class TestLoadAudio:
    """Tests for loading audio files."""

    def test_load_wav_mono(self):
        """Load a mono WAV file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = Path(tmpdir) / "test_mono.wav"
            original = 0.5 * np.sin(2 * np.pi * 440 * np.arange(44100) / 44100)
            sf.write(filepath, original, 44100, subtype="PCM_24")

            loaded = load_audio(filepath)

            assert loaded.sample_rate == 44100
            assert loaded.channels == 1
            assert loaded.num_frames == 44100
            assert loaded.bit_depth == 24
            assert loaded.file_path == filepath
            np.testing.assert_allclose(loaded.data, original, atol=1e-4)

    def test_load_wav_stereo(self):
        """Load a stereo WAV file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            filepath = Path(tmpdir) / "test_stereo.wav"
            left = np.sin(2 * np.pi * 440 * np.arange(48000) / 48000) * 0.3
            right = np.sin(2 * np.pi * 880 * np.arange(48000) / 48000) * 0.3
            sf.write(filepath, np.column_stack([left, right]), 48000, subtype="PCM_16")

            loaded = load_audio(filepath)

            assert loaded.channels == 2
            assert loaded.data.shape == (48000, 2)
            assert loaded.format_info["subtype"] == "PCM_16"


class TestFileErrors:
    """Tests for error handling."""

    def test_file_not_found(self):
        """FileNotFoundError for a missing file."""
        with pytest.raises(FileNotFoundError):
            load_audio("/nonexistent/path/audio.wav")

    def test_unsupported_format(self):
        """ValueError for an unknown suffix."""
        with tempfile.NamedTemporaryFile(suffix=".xyz") as f:
            with pytest.raises(ValueError, match="Unsupported format"):
                load_audio(f.name)
