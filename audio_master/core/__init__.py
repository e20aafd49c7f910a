"""
Core DSP module - fully testable without any UI.

This module contains the offline mastering core:
- SampleBuffer and audio file decoding
- Biquad filters and BS.1770 K-weighting
- Gated integrated loudness and oversampled true peak
- Loudness normalization and lookahead limiting
- Dithered PCM quantization / WAV encoding
"""

from .audio_io import SampleBuffer, load_audio
from .biquad import BiquadCoefficients, BiquadFilter, design_high_pass, design_high_shelf
from .config import DitherMode, MasteringConfig, OutputPreset, OUTPUT_PRESETS
from .errors import AudioMasterError, EncodingCancelled, InvalidConfiguration
from .k_weighting import KWeightingFilter, k_weight
from .limiter import LimiterResult, LookaheadLimiter, apply_lookahead_limiter
from .loudness import LoudnessResult, integrated_loudness, measure_loudness
from .normalizer import LoudnessNormalizer, NormalizationResult, normalize_to_lufs
from .pipeline import MasteringReport, master_buffer, master_to_wav, master_to_wav_async
from .signal_processing import apply_gain, compute_peak, resample_buffer
from .true_peak import true_peak_db, true_peak_linear, true_peak_per_frame
from .wav_encoder import (
    WavEncoder,
    WavHeader,
    encode_wav,
    encode_wav_async,
    parse_wav_header,
    write_wav,
)

__all__ = [
    "SampleBuffer",
    "load_audio",
    "BiquadCoefficients",
    "BiquadFilter",
    "design_high_pass",
    "design_high_shelf",
    "DitherMode",
    "MasteringConfig",
    "OutputPreset",
    "OUTPUT_PRESETS",
    "AudioMasterError",
    "EncodingCancelled",
    "InvalidConfiguration",
    "KWeightingFilter",
    "k_weight",
    "LimiterResult",
    "LookaheadLimiter",
    "apply_lookahead_limiter",
    "LoudnessResult",
    "integrated_loudness",
    "measure_loudness",
    "LoudnessNormalizer",
    "NormalizationResult",
    "normalize_to_lufs",
    "MasteringReport",
    "master_buffer",
    "master_to_wav",
    "master_to_wav_async",
    "apply_gain",
    "compute_peak",
    "resample_buffer",
    "true_peak_db",
    "true_peak_linear",
    "true_peak_per_frame",
    "WavEncoder",
    "WavHeader",
    "encode_wav",
    "encode_wav_async",
    "parse_wav_header",
    "write_wav",
]
