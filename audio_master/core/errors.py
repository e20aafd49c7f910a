"""
Error types of the mastering core.

Only configuration misuse and explicit cancellation are raised.
Numerical edge cases (silence, buffers shorter than one loudness block,
block sets gated to empty) are returned as data: -inf loudness or peak
values and the ``insufficient_duration`` flag of a LoudnessResult.
"""


class AudioMasterError(Exception):
    """Base class for all errors raised by audio_master."""


class InvalidConfiguration(AudioMasterError, ValueError):
    """
    A parameter is outside the supported range.

    Examples: unsupported bit depth, ceiling above 0 dBTP,
    non-positive release time.
    """


class EncodingCancelled(AudioMasterError):
    """The asynchronous encoder was aborted by its cancellation predicate."""

    def __init__(self, message: str = "Cancelled"):
        super().__init__(message)
