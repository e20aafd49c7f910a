"""
audio_master - offline loudness normalization, true-peak limiting
and dithered WAV export for decoded audio buffers.
"""

__version__ = "1.0.0"
