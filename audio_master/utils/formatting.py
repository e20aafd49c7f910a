"""
Formatting helpers for reports.

Converts numeric values into readable strings.
"""

import math


def format_db(db: float, precision: int = 1, unit: str = "dB") -> str:
    """
    Format a level in dB.

    Args:
        db: Level in dB
        precision: Decimal places
        unit: Unit suffix ("dB", "dBTP", "LUFS", ...)

    Returns:
        Formatted string (e.g. "-12.3 dB", "-∞ dBTP")
    """
    if db == float('-inf'):
        return f"-∞ {unit}"
    return f"{db:.{precision}f} {unit}"


def format_lufs(lufs: float, precision: int = 1) -> str:
    """Format integrated loudness (e.g. "-14.0 LUFS")."""
    return format_db(lufs, precision, unit="LUFS")


def format_true_peak(db: float, precision: int = 2) -> str:
    """Format a true-peak level (e.g. "-1.00 dBTP")."""
    return format_db(db, precision, unit="dBTP")


def format_gain(db: float, precision: int = 2) -> str:
    """Format a gain change with explicit sign (e.g. "+3.25 dB")."""
    if not math.isfinite(db):
        return format_db(db, precision)
    return f"{db:+.{precision}f} dB"


def format_sample_rate(sr: int) -> str:
    """
    Format a sample rate.

    Returns:
        Formatted string (e.g. "44.1 kHz" or "48 kHz")
    """
    if sr % 1000 == 0:
        return f"{sr // 1000} kHz"
    else:
        return f"{sr / 1000:.1f} kHz"


def format_duration(seconds: float) -> str:
    """
    Format a duration.

    Returns:
        Formatted string (e.g. "3:45.20" or "0:01.50")
    """
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}:{secs:05.2f}"


def format_channels(num_channels: int) -> str:
    """Return "Mono", "Stereo" or "X channels"."""
    if num_channels == 1:
        return "Mono"
    elif num_channels == 2:
        return "Stereo"
    else:
        return f"{num_channels} channels"
