"""16-bit PCM WAV persistence for canonical 16 kHz mono signals."""

import io
import logging
import os
from typing import Union

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
INT16_MAX = 32767


def to_int16(samples: np.ndarray) -> np.ndarray:
    """Convert float samples to int16 by scaling with 32767 and truncating.

    Values beyond the int16 range saturate; there is no rounding or dither.
    """
    scaled = np.asarray(samples, dtype=np.float32) * np.float32(INT16_MAX)
    return np.clip(scaled, -32768, INT16_MAX).astype(np.int16)


def save_wav_file(path: Union[str, os.PathLike], samples: np.ndarray):
    """Write samples as a 16-bit PCM mono 16 kHz WAV file.

    Args:
        path: Destination file path
        samples: Float samples in [-1, 1]
    """
    sf.write(os.fspath(path), to_int16(samples), SAMPLE_RATE, subtype="PCM_16", format="WAV")
    logger.debug(f"Saved WAV file: {path}")


def encode_wav_bytes(samples: np.ndarray) -> bytes:
    """Encode samples as an in-memory 16-bit PCM mono 16 kHz WAV payload."""
    buffer = io.BytesIO()
    sf.write(buffer, to_int16(samples), SAMPLE_RATE, subtype="PCM_16", format="WAV")
    return buffer.getvalue()
