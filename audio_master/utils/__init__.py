"""
Utility module for audio_master.

Contains helper functions used by the command line and reports.
"""

from .formatting import (
    format_db,
    format_lufs,
    format_true_peak,
    format_gain,
    format_sample_rate,
    format_duration,
    format_channels,
)

__all__ = [
    "format_db",
    "format_lufs",
    "format_true_peak",
    "format_gain",
    "format_sample_rate",
    "format_duration",
    "format_channels",
]
