"""
PCM Quantizer and WAV Writer

Converts float buffers to 16- or 24-bit integer PCM and serializes a
canonical 44-byte-header RIFF/WAVE container.

Per sample:
1. Clamp to [-1, 1]
2. Scale by 32767 (16-bit) or 8388607 (24-bit)
3. 16-bit only, dither != NONE: add TPDF noise u1 + u2 - 1 in [-1, 1] LSB
4. Round (floor(x + 0.5)), clamp to the integer range, write little-endian

24-bit output is never dithered. NOISE_SHAPED dither is processed like
TPDF (no shaping filter).

Precondition: the payload is written at the buffer's own rate. The
target sample rate only sets the header fields, so callers must resample
first (see signal_processing.resample_buffer).

Byte layout of the header:
    0 "RIFF" | 4 36 + data_size | 8 "WAVE" | 12 "fmt " | 16 16 | 20 1 (PCM)
    22 channels | 24 sample rate | 28 byte rate | 32 block align
    34 bits per sample | 36 "data" | 40 data_size | 44 payload
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional
import asyncio
import logging
import struct
import warnings
import numpy as np

from .audio_io import SampleBuffer
from .config import (
    DEFAULT_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
    DitherMode,
    validate_bit_depth,
)
from .errors import EncodingCancelled


logger = logging.getLogger("audio_master.wav_encoder")

HEADER_SIZE = 44
PCM_FORMAT_TAG = 1

_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")

# (max magnitude, min integer, max integer)
_INTEGER_RANGE = {
    16: (32767, -32768, 32767),
    24: (8388607, -8388607, 8388607),
}


@dataclass(frozen=True)
class WavHeader:
    """Decoded fields of a canonical 44-byte WAV header."""
    riff_size: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int


@dataclass(frozen=True)
class EncodedChunk:
    """One encoded slice of the payload."""
    payload: bytes
    frames_done: int
    progress: float


def build_wav_header(
    num_frames: int,
    channels: int,
    sample_rate: int,
    bit_depth: int,
) -> bytes:
    """Build the 44-byte PCM header for a payload of num_frames frames."""
    bytes_per_sample = validate_bit_depth(bit_depth) // 8
    block_align = channels * bytes_per_sample
    data_size = num_frames * block_align
    return _HEADER_STRUCT.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_TAG,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bit_depth,
        b"data",
        data_size,
    )


def parse_wav_header(data: bytes) -> WavHeader:
    """
    Decode a canonical 44-byte WAV header.

    Raises:
        ValueError: Not a canonical PCM WAV header
    """
    if len(data) < HEADER_SIZE:
        raise ValueError("WAV data shorter than 44-byte header")
    (riff, riff_size, wave, fmt, fmt_size, tag, channels, sample_rate,
     byte_rate, block_align, bits, data_id, data_size) = _HEADER_STRUCT.unpack(
        data[:HEADER_SIZE]
    )
    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_id != b"data":
        raise ValueError("Not a canonical RIFF/WAVE header")
    if fmt_size != 16 or tag != PCM_FORMAT_TAG:
        raise ValueError("Only uncompressed PCM is supported")
    return WavHeader(
        riff_size=riff_size,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_size=data_size,
    )


def tpdf_noise(rng: np.random.Generator, size: int) -> np.ndarray:
    """Triangular-PDF dither in LSB units, range [-1, 1]."""
    # two consecutive draws per sample, independent of how the payload is chunked
    u = rng.random((size, 2))
    return u[:, 0] + u[:, 1] - 1


def quantize(
    samples: np.ndarray,
    bit_depth: int,
    dither: DitherMode = DitherMode.NONE,
    rng: Optional[np.random.Generator] = None,
) -> bytes:
    """
    Quantize interleaved float samples to little-endian PCM bytes.

    Args:
        samples: 1D interleaved samples
        bit_depth: 16 or 24
        dither: Dither mode (only used for 16-bit)
        rng: Random generator for dither noise

    Returns:
        Raw PCM payload (2 or 3 bytes per sample)
    """
    max_val, int_min, int_max = _INTEGER_RANGE[validate_bit_depth(bit_depth)]
    dither = DitherMode.coerce(dither)

    scaled = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0) * max_val
    if bit_depth == 16 and dither.adds_noise:
        if rng is None:
            rng = np.random.default_rng()
        scaled = scaled + tpdf_noise(rng, scaled.size)

    ints = np.clip(np.floor(scaled + 0.5), int_min, int_max).astype("<i4")

    if bit_depth == 16:
        return ints.astype("<i2").tobytes()
    # low three bytes of each little-endian int32
    return ints.view(np.uint8).reshape(-1, 4)[:, :3].tobytes()


class WavEncoder:
    """
    Chunked WAV encoder for one buffer.

    The encoder can be driven three ways:
        encoder.encode()                 -> complete bytes
        for chunk in encoder.iter_chunks()  caller-driven, chunk by chunk
        await encode_wav_async(...)      asyncio, yields between chunks

    Chunks are produced strictly in order; dither noise is drawn from one
    generator so chunked and one-shot output match for the same seed.
    """

    def __init__(
        self,
        buffer: SampleBuffer,
        target_sample_rate: Optional[int] = None,
        bit_depth: int = 16,
        dither: DitherMode | str = DitherMode.TPDF,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        seed: Optional[int] = None,
    ):
        self.buffer = buffer
        self.bit_depth = validate_bit_depth(bit_depth)
        self.sample_rate = int(target_sample_rate or buffer.sample_rate)
        self.dither = DitherMode.coerce(dither)
        self.chunk_size = max(MIN_CHUNK_SIZE, int(chunk_size or DEFAULT_CHUNK_SIZE))
        self._rng = np.random.default_rng(seed)

        if self.sample_rate != buffer.sample_rate:
            logger.warning(
                "[WAV] Header rate %d Hz differs from buffer rate %d Hz; "
                "payload is not resampled",
                self.sample_rate, buffer.sample_rate,
            )
        if buffer.num_frames and np.any(np.abs(buffer.data) > 1.0):
            warnings.warn(
                "Audio data exceeds [-1.0, 1.0]. Clipping will be applied.",
                UserWarning,
            )

    def header(self) -> bytes:
        return build_wav_header(
            self.buffer.num_frames, self.buffer.channels, self.sample_rate, self.bit_depth
        )

    def iter_chunks(self) -> Iterator[EncodedChunk]:
        """Yield the payload in chunks of chunk_size frames."""
        total = self.buffer.num_frames
        data = self.buffer.data
        for start in range(0, total, self.chunk_size):
            end = min(start + self.chunk_size, total)
            payload = quantize(
                data[start:end].reshape(-1), self.bit_depth, self.dither, self._rng
            )
            yield EncodedChunk(payload=payload, frames_done=end, progress=end / total)

    def encode(self) -> bytes:
        """Encode header and full payload."""
        parts = [self.header()]
        parts.extend(chunk.payload for chunk in self.iter_chunks())
        return b"".join(parts)


def encode_wav(
    buffer: SampleBuffer,
    target_sample_rate: Optional[int] = None,
    bit_depth: int = 16,
    *,
    dither: DitherMode | str = DitherMode.TPDF,
    seed: Optional[int] = None,
) -> bytes:
    """
    Encode a buffer as 16- or 24-bit PCM WAV.

    Args:
        buffer: Float audio, already at target_sample_rate
        target_sample_rate: Header sample rate (defaults to the buffer's)
        bit_depth: 16 or 24
        dither: none / tpdf / noise-shaped (alias of tpdf)
        seed: Seed for reproducible dither noise

    Returns:
        Complete WAV file bytes
    """
    encoder = WavEncoder(buffer, target_sample_rate, bit_depth, dither=dither, seed=seed)
    return encoder.encode()


async def encode_wav_async(
    buffer: SampleBuffer,
    target_sample_rate: Optional[int] = None,
    bit_depth: int = 16,
    *,
    dither: DitherMode | str = DitherMode.TPDF,
    on_progress: Optional[Callable[[float], None]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    seed: Optional[int] = None,
) -> bytes:
    """
    Encode a buffer chunk by chunk, yielding to the event loop in between.

    should_cancel is polled before every chunk; a chunk in progress always
    completes. on_progress receives the completed fraction (0..1).

    Raises:
        EncodingCancelled: should_cancel returned True
    """
    encoder = WavEncoder(
        buffer,
        target_sample_rate,
        bit_depth,
        dither=dither,
        chunk_size=chunk_size,
        seed=seed,
    )
    parts = [encoder.header()]

    for chunk in encoder.iter_chunks():
        if should_cancel is not None and should_cancel():
            logger.info("[WAV] Encoding cancelled")
            raise EncodingCancelled()
        parts.append(chunk.payload)
        if on_progress is not None:
            on_progress(chunk.progress)
        if chunk.frames_done < buffer.num_frames:
            await asyncio.sleep(0)

    if on_progress is not None:
        on_progress(1.0)
    return b"".join(parts)


def write_wav(
    file_path: str | Path,
    buffer: SampleBuffer,
    target_sample_rate: Optional[int] = None,
    bit_depth: int = 16,
    *,
    dither: DitherMode | str = DitherMode.TPDF,
    seed: Optional[int] = None,
) -> Path:
    """Encode a buffer and write it to file_path."""
    path = Path(file_path)
    path.write_bytes(
        encode_wav(buffer, target_sample_rate, bit_depth, dither=dither, seed=seed)
    )
    logger.info("[WAV] Wrote %s", path)
    return path
