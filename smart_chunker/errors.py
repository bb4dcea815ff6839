"""Error types raised by the smart-chunker pipeline.

Input and stream problems surface as ``DecodeError`` subclasses, which are
also ``ValueError`` so callers that only care about "bad audio" can catch
the built-in type. Model and resampler failures are ``RuntimeError``
subclasses.
"""


class SmartChunkerError(Exception):
    """Base class for all smart-chunker errors."""


class DecodeError(SmartChunkerError, ValueError):
    """Raised when an audio file cannot be probed or decoded."""


class NoSupportedTrackError(DecodeError):
    """Raised when a container holds no decodable audio track."""


class MissingSampleRateError(DecodeError):
    """Raised when the selected track does not report a sample rate."""


class ResampleError(SmartChunkerError, RuntimeError):
    """Raised when the resampler cannot be built or fails to process."""


class VadInitError(SmartChunkerError, RuntimeError):
    """Raised when the voice activity model cannot be loaded."""


class VadInferenceError(SmartChunkerError, RuntimeError):
    """Raised when classifying a single frame fails.

    The detector's recurrent state is left untouched, so the instance
    stays usable for the next frame.
    """


class VadStateError(SmartChunkerError, RuntimeError):
    """Raised when the classifier returns state of an unexpected shape."""
