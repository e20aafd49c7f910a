"""
Audio I/O Module

Defines the SampleBuffer value type and loads audio files (WAV, MP3)
into it without implicit signal manipulation.

Technical assumptions:
- WAV files are loaded with soundfile (high precision, no conversion)
- MP3 files are decoded with pydub (requires ffmpeg)
- All audio data is held as float64 numpy arrays (nominal range -1.0 to 1.0,
  values outside are valid but clipped on export)
- Channel order for stereo: [left, right] as (frames, 2) array
- A SampleBuffer never changes after construction: its array is a private,
  read-only copy. Processing stages return new buffers.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import numpy as np
import soundfile as sf


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """
    Fully decoded, multi-channel float audio.

    Attributes:
        data: Audio data, Shape: (frames,) for mono or (frames, channels)
        sample_rate: Sample rate in Hz
        file_path: Source file, if the buffer was decoded from disk
        bit_depth: Bit depth of the source file (if known)
        format_info: Format information (Subtype, Endianness)
    """
    data: np.ndarray
    sample_rate: int
    file_path: Optional[Path] = None
    bit_depth: Optional[int] = None
    format_info: dict = field(default_factory=dict)

    def __post_init__(self):
        """Validate and freeze the sample data."""
        data = np.array(self.data, dtype=np.float64)
        if data.ndim not in (1, 2):
            raise ValueError("Audio array must be 1D or 2D")
        if data.ndim == 2 and data.shape[1] < 1:
            raise ValueError("Audio must have at least one channel")
        if int(self.sample_rate) <= 0:
            raise ValueError("Sample rate must be positive")
        data.setflags(write=False)
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @property
    def channels(self) -> int:
        return 1 if self.data.ndim == 1 else self.data.shape[1]

    @property
    def num_frames(self) -> int:
        return self.data.shape[0]

    @property
    def duration_seconds(self) -> float:
        return self.num_frames / self.sample_rate

    def get_channel(self, channel: int) -> np.ndarray:
        """
        Extract a single channel.

        Args:
            channel: 0 for left/Mono, 1 for right

        Returns:
            1D read-only view of the channel samples
        """
        if not 0 <= channel < self.channels:
            raise ValueError(
                f"Channel {channel} not available ({self.channels} channel(s))"
            )
        if self.data.ndim == 1:
            return self.data
        return self.data[:, channel]

    def channel_matrix(self) -> np.ndarray:
        """Return a writable (channels, frames) copy of the samples."""
        if self.data.ndim == 1:
            return self.data[np.newaxis, :].copy()
        return self.data.T.copy()

    def with_data(self, data: np.ndarray) -> "SampleBuffer":
        """
        Create a successor buffer with new samples and the same sample rate.

        Source metadata is not carried over: the successor no longer
        matches the file on disk.
        """
        return SampleBuffer(data=data, sample_rate=self.sample_rate)

    @classmethod
    def from_channels(cls, channels: np.ndarray, sample_rate: int) -> "SampleBuffer":
        """Build a buffer from a (channels, frames) matrix."""
        channels = np.asarray(channels, dtype=np.float64)
        if channels.ndim == 1 or channels.shape[0] == 1:
            return cls(data=channels.reshape(-1), sample_rate=sample_rate)
        return cls(data=channels.T, sample_rate=sample_rate)


def load_audio(file_path: str | Path) -> SampleBuffer:
    """
    Load an audio file without implicit conversion.

    Supported formats:
    - WAV (all common subtypes: PCM_16, PCM_24, PCM_32, FLOAT)
    - MP3 (via pydub/ffmpeg)

    NO automatic conversion of sample rate or channel count.

    Args:
        file_path: Path to audio file

    Returns:
        SampleBuffer with source metadata

    Raises:
        FileNotFoundError: File does not exist
        ValueError: Unsupported format
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")

    suffix = path.suffix.lower()

    if suffix == ".wav":
        return _load_wav(path)
    elif suffix == ".mp3":
        return _load_mp3(path)
    else:
        raise ValueError(f"Unsupported format: {suffix}")


def _load_wav(path: Path) -> SampleBuffer:
    """Load WAV file with soundfile (libsndfile)."""
    data, sample_rate = sf.read(path, dtype='float64', always_2d=False)
    info = sf.info(path)

    format_info = {
        "format": info.format,
        "subtype": info.subtype,
        "endian": info.endian,
    }

    return SampleBuffer(
        data=data,
        sample_rate=sample_rate,
        file_path=path,
        bit_depth=_extract_bit_depth(info.subtype),
        format_info=format_info,
    )


def _load_mp3(path: Path) -> SampleBuffer:
    """
    Load MP3 file with pydub.

    Requires ffmpeg in system PATH for decoding.
    """
    from pydub import AudioSegment

    try:
        audio = AudioSegment.from_mp3(path)
    except Exception as e:
        raise RuntimeError(
            f"MP3 could not be loaded: {e}\n"
            "Please ensure ffmpeg is installed."
        ) from e

    samples = np.array(audio.get_array_of_samples())

    # pydub returns int16 or int32
    if audio.sample_width == 2:
        samples = samples.astype(np.float64) / 32768.0
    elif audio.sample_width == 4:
        samples = samples.astype(np.float64) / 2147483648.0
    else:
        samples = (samples.astype(np.float64) - 128) / 128.0

    if audio.channels > 1:
        samples = samples.reshape(-1, audio.channels)

    return SampleBuffer(
        data=samples,
        sample_rate=audio.frame_rate,
        file_path=path,
        format_info={"format": "MP3", "subtype": "MPEG Layer 3"},
    )


def _extract_bit_depth(subtype: str) -> Optional[int]:
    """Extract bit depth from soundfile subtype string."""
    bit_depth_map = {
        "PCM_16": 16,
        "PCM_24": 24,
        "PCM_32": 32,
        "FLOAT": 32,
        "DOUBLE": 64,
        "PCM_S8": 8,
        "PCM_U8": 8,
    }
    return bit_depth_map.get(subtype)
