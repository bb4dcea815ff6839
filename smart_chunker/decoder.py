"""Universal audio decoding to the canonical 16 kHz mono float signal.

Any container/codec FFmpeg can read is accepted. The first audio stream
with a usable decoder is selected, every decoded frame is downmixed to
mono by averaging its channels, and the result is resampled to 16 kHz
with the block-based FFT resampler.
"""

import logging
import os
from typing import Optional, Union

import av
import numpy as np

from .errors import DecodeError, MissingSampleRateError, NoSupportedTrackError
from .resampler import RESAMPLER_CHUNK_SIZE, resample

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000

# Packed/planar variants share a base name ("s16" / "s16p").
# Each entry maps raw sample values onto [-1, 1] as (value - offset) / scale.
_SAMPLE_FORMATS = {
    "flt": (0.0, 1.0),
    "dbl": (0.0, 1.0),
    "s16": (0.0, 32768.0),
    "u8": (128.0, 128.0),
}


def downmix_to_mono(data: np.ndarray, sample_format: str) -> Optional[np.ndarray]:
    """Normalize and average a ``(channels, samples)`` block to mono.

    Args:
        data: Raw decoded samples, one row per channel
        sample_format: FFmpeg sample format name (e.g. "s16", "fltp")

    Returns:
        1-D float32 mono samples, or None if the format is unsupported
    """
    base_format = sample_format[:-1] if sample_format.endswith("p") else sample_format
    if base_format not in _SAMPLE_FORMATS:
        return None

    offset, scale = _SAMPLE_FORMATS[base_format]
    block = data.astype(np.float32)
    if offset or scale != 1.0:
        block = (block - np.float32(offset)) / np.float32(scale)
    return block.mean(axis=0, dtype=np.float32)


def _frame_to_mono(frame: av.AudioFrame) -> Optional[np.ndarray]:
    channels = len(frame.layout.channels)
    data = frame.to_ndarray()
    if not frame.format.is_planar:
        # packed frames come back as (1, samples * channels), interleaved
        data = data.reshape(-1, channels).T
    return downmix_to_mono(data, frame.format.name)


def _select_stream(container):
    for stream in container.streams:
        if stream.type == "audio" and stream.codec_context is not None:
            return stream
    return None


def decode_to_mono(path: Union[str, os.PathLike]):
    """Decode an audio file to mono float32 at its native sample rate.

    Args:
        path: Path to any media file FFmpeg can read

    Returns:
        Tuple of (mono samples, native sample rate)

    Raises:
        FileNotFoundError: If the file does not exist
        NoSupportedTrackError: If no decodable audio stream exists
        MissingSampleRateError: If the stream has no sample rate
        DecodeError: If the file cannot be probed or the stream breaks
    """
    path = os.fspath(path)
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"Audio file '{path}' not found. Check file path and permissions"
        )

    try:
        container = av.open(path)
    except av.error.FFmpegError as e:
        raise DecodeError(f"failed to probe '{path}': {e}") from e

    with container:
        stream = _select_stream(container)
        if stream is None:
            raise NoSupportedTrackError(f"no supported audio tracks in '{path}'")

        sample_rate = stream.codec_context.sample_rate
        if not sample_rate:
            raise MissingSampleRateError(f"missing sample rate in '{path}'")

        logger.info(
            f"Decoding '{path}': stream #{stream.index}, "
            f"codec={stream.codec_context.name}, sample_rate={sample_rate}"
        )

        pieces = []
        try:
            for packet in container.demux():
                if packet.stream.index != stream.index:
                    continue

                try:
                    frames = packet.decode()
                except av.error.EOFError:
                    break
                except av.error.InvalidDataError as e:
                    # corrupt packet; the decoder resynchronizes on the next one
                    logger.warning(f"decode error: {e}")
                    continue

                for frame in frames:
                    mono = _frame_to_mono(frame)
                    if mono is None:
                        logger.warning(
                            f"Unsupported sample format '{frame.format.name}', "
                            f"skipping {frame.samples} samples"
                        )
                        continue
                    pieces.append(mono)
        except av.error.FFmpegError as e:
            raise DecodeError(f"failed to read packet: {e}") from e

    if not pieces:
        return np.zeros(0, dtype=np.float32), sample_rate
    return np.concatenate(pieces), sample_rate


def resample_to_16k(samples: np.ndarray, sample_rate: int) -> np.ndarray:
    """Resample a mono signal to 16 kHz; a no-op if already at 16 kHz."""
    if sample_rate == SAMPLE_RATE:
        return samples

    logger.debug(f"Resampling {len(samples)} samples {sample_rate}Hz -> {SAMPLE_RATE}Hz")
    return resample(samples, sample_rate, SAMPLE_RATE, RESAMPLER_CHUNK_SIZE)


def decode_and_resample(path: Union[str, os.PathLike]) -> np.ndarray:
    """Decode and resample an audio file to 16 kHz mono float32 samples.

    Args:
        path: Path to any media file FFmpeg can read

    Returns:
        1-D float32 array in [-1, 1] at 16 kHz

    Raises:
        FileNotFoundError: If the file does not exist
        DecodeError: If the file cannot be decoded (see ``decode_to_mono``)
        ResampleError: If resampling fails
    """
    samples, sample_rate = decode_to_mono(path)
    return resample_to_16k(samples, sample_rate)
