"""
Integrated Loudness (ITU-R BS.1770-4 gating)

Measures the integrated loudness of a fully decoded buffer in LUFS.

Algorithm:
1. K-weight every channel (see k_weighting)
2. Slide 400 ms blocks with 75 % overlap (100 ms hop) over the signal;
   blocks that do not fit completely are dropped
3. Mean-square energy per block, summed over all channels and samples,
   divided by (block_size × channels)
4. Absolute gate: drop blocks with energy <= 1e-7 (-70 LUFS)
5. Relative gate: drop blocks with energy <= 0.1 × mean of the
   remaining blocks (-10 LU)
6. Loudness = -0.691 + 10·log10(mean of surviving energies)

Undefined results are returned as data, not raised:
- silence or everything gated away -> -inf
- buffer shorter than one block -> -inf with insufficient_duration=True
"""

from dataclasses import dataclass
import logging
import numpy as np

from .audio_io import SampleBuffer
from .k_weighting import k_weight


logger = logging.getLogger("audio_master.loudness")

BLOCK_SECONDS = 0.4
BLOCK_OVERLAP = 0.75
ABSOLUTE_GATE_ENERGY = 1e-7
RELATIVE_GATE_FACTOR = 0.1
LOUDNESS_OFFSET = -0.691


@dataclass(frozen=True)
class LoudnessResult:
    """
    Outcome of one integrated loudness measurement.

    Attributes:
        integrated_lufs: Loudness in LUFS, -inf if unmeasurable
        block_count: Number of complete 400 ms blocks analysed
        gated_block_count: Blocks surviving both gates
        insufficient_duration: Buffer shorter than one block
    """
    integrated_lufs: float
    block_count: int
    gated_block_count: int
    insufficient_duration: bool = False

    @property
    def is_measurable(self) -> bool:
        return bool(np.isfinite(self.integrated_lufs))

    def value_or(self, default: float) -> float:
        """Loudness, or default when the buffer was too short to measure."""
        if self.insufficient_duration:
            return default
        return self.integrated_lufs


def block_parameters(sample_rate: int) -> tuple[int, int]:
    """Return (block_size, hop_size) in samples for a sample rate."""
    block_size = int(round(sample_rate * BLOCK_SECONDS))
    hop_size = int(round(sample_rate * BLOCK_SECONDS * (1 - BLOCK_OVERLAP)))
    return block_size, max(hop_size, 1)


def block_energies(weighted: SampleBuffer) -> np.ndarray:
    """
    Mean-square energy of every complete block.

    Args:
        weighted: K-weighted buffer

    Returns:
        1D array, one energy per block (empty if no block fits)
    """
    block_size, hop_size = block_parameters(weighted.sample_rate)
    num_frames = weighted.num_frames
    if block_size <= 0 or num_frames < block_size:
        return np.zeros(0)

    # Energy summed over channels per frame, then windowed sums via cumsum
    squared = weighted.data ** 2
    if squared.ndim == 2:
        squared = squared.sum(axis=1)
    cumulative = np.concatenate(([0.0], np.cumsum(squared)))

    starts = np.arange(0, num_frames - block_size + 1, hop_size)
    sums = cumulative[starts + block_size] - cumulative[starts]
    return np.maximum(sums, 0.0) / (block_size * weighted.channels)


def gate_blocks(energies: np.ndarray) -> np.ndarray:
    """Apply the absolute and relative gates, return surviving energies."""
    kept = energies[energies > ABSOLUTE_GATE_ENERGY]
    if kept.size == 0:
        return kept
    relative_threshold = RELATIVE_GATE_FACTOR * kept.mean()
    return kept[kept > relative_threshold]


def measure_loudness(buffer: SampleBuffer) -> LoudnessResult:
    """
    Measure integrated loudness of a buffer.

    Args:
        buffer: Unfiltered source buffer (mono or stereo)

    Returns:
        LoudnessResult (integrated_lufs may be -inf)
    """
    block_size, _ = block_parameters(buffer.sample_rate)
    if buffer.num_frames < block_size:
        logger.debug(
            "[LUFS] %d frames shorter than one %d-frame block",
            buffer.num_frames, block_size,
        )
        return LoudnessResult(
            integrated_lufs=float("-inf"),
            block_count=0,
            gated_block_count=0,
            insufficient_duration=True,
        )

    energies = block_energies(k_weight(buffer))
    gated = gate_blocks(energies)

    if gated.size == 0:
        logger.debug("[LUFS] All %d blocks gated, loudness undefined", energies.size)
        lufs = float("-inf")
    else:
        lufs = float(LOUDNESS_OFFSET + 10 * np.log10(gated.mean()))

    return LoudnessResult(
        integrated_lufs=lufs,
        block_count=int(energies.size),
        gated_block_count=int(gated.size),
    )


def integrated_loudness(
    buffer: SampleBuffer,
    fallback: float = float("-inf"),
) -> float:
    """
    Integrated loudness in LUFS.

    Shortcut for measure_loudness(); returns fallback when the buffer is
    shorter than one 400 ms block. Silence yields -inf.
    """
    return measure_loudness(buffer).value_or(fallback)
