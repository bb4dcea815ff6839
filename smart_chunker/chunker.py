"""Silence-seeking audio chunking for long recordings.

This module splits a canonical 16 kHz signal into contiguous,
non-overlapping chunks of roughly ``target_chunk_seconds``. Each cut is
placed at the end of the first silent VAD frame found in a window of
``search_window_seconds`` around the target point; if the window holds no
silence the cut falls exactly on the target. Chunks are handed one by one
to a processing callback and the per-chunk texts are joined with spaces.
"""

import logging
import os
from typing import Callable, Iterator, Optional, Protocol, Sequence, Union

import numpy as np

from .data_models import AudioChunk
from .errors import VadInferenceError, VadInitError
from .vad import SAMPLE_RATE, VAD_FRAME_SIZE, VoiceActivityDetector, load_vad

logger = logging.getLogger(__name__)

TARGET_CHUNK_SECONDS = 30
SEARCH_WINDOW_SECONDS = 5

PathLike = Union[str, os.PathLike]


class SegmentHandler(Protocol):
    """Receives chunks in file order and is told the progress after each."""

    def process_segment(self, chunk: AudioChunk) -> str:
        ...

    def report_progress(self, percent: float) -> None:
        ...


class _CallbackHandler:
    """Adapts a pair of plain callables to ``SegmentHandler``."""

    def __init__(
        self,
        process_fn: Callable[[np.ndarray], str],
        progress_fn: Optional[Callable[[float], None]] = None,
    ):
        self.process_fn = process_fn
        self.progress_fn = progress_fn

    def process_segment(self, chunk: AudioChunk) -> str:
        return self.process_fn(chunk.audio)

    def report_progress(self, percent: float) -> None:
        if self.progress_fn is not None:
            self.progress_fn(percent)


def join_texts(texts: Sequence[str]) -> str:
    """Join chunk texts with a single space after any non-empty prefix."""
    joined = ""
    for text in texts:
        if joined:
            joined += " "
        joined += text
    return joined


class SmartChunker:
    """Splits long audio into ~30 s chunks cut at detected silence.

    Attributes:
        target_chunk_seconds: Desired chunk duration in seconds
        search_window_seconds: Radius of the silence search around the target cut
        sample_rate: Audio sample rate in Hz
        frame_size: VAD frame size in samples
        vad_loader: Factory building a fresh detector from a model path
    """

    def __init__(
        self,
        target_chunk_seconds: float = TARGET_CHUNK_SECONDS,
        search_window_seconds: float = SEARCH_WINDOW_SECONDS,
        sample_rate: int = SAMPLE_RATE,
        frame_size: int = VAD_FRAME_SIZE,
        vad_loader: Callable[[PathLike], VoiceActivityDetector] = load_vad,
    ):
        """Initialize the chunker.

        Args:
            target_chunk_seconds: Chunk duration in seconds (default: 30)
            search_window_seconds: Search radius in seconds (default: 5)
            sample_rate: Audio sample rate in Hz (default: 16000)
            frame_size: VAD frame size in samples (default: 480)
            vad_loader: Detector factory (default: ONNX ``load_vad``)

        Raises:
            TypeError: If a numeric parameter has the wrong type
            ValueError: If a parameter is out of range
        """
        for name, value in (
            ("target_chunk_seconds", target_chunk_seconds),
            ("search_window_seconds", search_window_seconds),
        ):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(
                    f"{name} must be numeric, got {type(value).__name__}"
                )
        for name, value in (("sample_rate", sample_rate), ("frame_size", frame_size)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(
                    f"{name} must be int, got {type(value).__name__}"
                )

        if target_chunk_seconds <= 0:
            raise ValueError(
                f"target_chunk_seconds must be positive, got {target_chunk_seconds}"
            )
        if search_window_seconds < 0:
            raise ValueError(
                f"search_window_seconds must be non-negative, got {search_window_seconds}"
            )
        if search_window_seconds >= target_chunk_seconds:
            raise ValueError(
                f"search_window_seconds ({search_window_seconds}s) must be less than "
                f"target_chunk_seconds ({target_chunk_seconds}s)"
            )
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        if frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {frame_size}")

        self.target_chunk_seconds = target_chunk_seconds
        self.search_window_seconds = search_window_seconds
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.vad_loader = vad_loader

        self.target_chunk_samples = int(target_chunk_seconds * sample_rate)
        self.search_window_samples = int(search_window_seconds * sample_rate)

    def create_vad(self, vad_model_path: PathLike) -> VoiceActivityDetector:
        """Build a fresh detector for one chunking call.

        Raises:
            VadInitError: If the detector cannot be created
        """
        try:
            return self.vad_loader(vad_model_path)
        except VadInitError:
            raise
        except Exception as e:
            raise VadInitError(f"Failed to initialize VAD: {e}") from e

    def find_cut_point(
        self,
        audio: np.ndarray,
        start_idx: int,
        vad: VoiceActivityDetector,
    ) -> int:
        """Choose the end index of the chunk starting at ``start_idx``.

        Frames are aligned to ``frame_size`` multiples counted from
        ``start_idx``. The first frame classified as silence wins, even if a
        later one lies closer to the target; a frame whose classification
        fails counts as speech.
        """
        total_samples = len(audio)
        target_end = start_idx + self.target_chunk_samples
        search_start = max(target_end - self.search_window_samples, start_idx)
        search_end = min(target_end + self.search_window_samples, total_samples)

        offset = ((search_start - start_idx) // self.frame_size) * self.frame_size
        aligned_start = start_idx + offset

        for pos in range(aligned_start, search_end, self.frame_size):
            if pos + self.frame_size > total_samples:
                break

            frame = audio[pos:pos + self.frame_size]
            try:
                result = vad.push_frame(frame)
            except VadInferenceError as e:
                logger.warning(f"VAD error at sample {pos}: {e}")
                continue

            if not result.is_speech():
                cut = pos + self.frame_size
                logger.debug(f"Found silence at sample {cut}, cutting there")
                return cut

        logger.debug(
            f"No silence found in search window, hard cutting at "
            f"{self.target_chunk_seconds}s"
        )
        return min(target_end, total_samples)

    def iter_chunks(
        self,
        audio: np.ndarray,
        vad: VoiceActivityDetector,
    ) -> Iterator[AudioChunk]:
        """Lazily yield contiguous chunks covering the whole buffer.

        The next cut point is only searched once the caller asks for the
        next chunk, so the detector sees frames strictly in file order.

        Args:
            audio: 1-D float32 samples at ``sample_rate``
            vad: Detector owned by this iteration

        Yields:
            AudioChunk objects holding owned copies of their samples
        """
        audio = np.asarray(audio, dtype=np.float32)
        if audio.ndim != 1:
            raise ValueError(
                f"audio must be 1-dimensional, got shape {audio.shape}"
            )

        total_samples = len(audio)
        start_idx = 0
        chunk_index = 0

        while start_idx < total_samples:
            if start_idx + self.target_chunk_samples >= total_samples:
                end_idx = total_samples
            else:
                end_idx = self.find_cut_point(audio, start_idx, vad)

            logger.debug(
                f"Processing chunk: start={start_idx}, len={end_idx - start_idx} samples"
            )
            yield AudioChunk(
                audio=audio[start_idx:end_idx].copy(),
                start_index=start_idx,
                end_index=end_idx,
                start_time=start_idx / self.sample_rate,
                end_time=end_idx / self.sample_rate,
                chunk_index=chunk_index,
            )

            start_idx = end_idx
            chunk_index += 1

    def process(
        self,
        audio: np.ndarray,
        vad_model_path: PathLike,
        handler: SegmentHandler,
    ) -> str:
        """Chunk ``audio`` and dispatch every chunk to ``handler``.

        Args:
            audio: 1-D float32 samples at ``sample_rate``
            vad_model_path: Path of the VAD model
            handler: Receives each chunk, then the progress percentage

        Returns:
            Chunk texts joined with single spaces

        Raises:
            VadInitError: If the detector cannot be created
            Exception: Whatever ``handler.process_segment`` raises, unchanged
        """
        audio = np.asarray(audio, dtype=np.float32)
        total_samples = len(audio)
        vad = self.create_vad(vad_model_path)

        texts = []
        for chunk in self.iter_chunks(audio, vad):
            texts.append(handler.process_segment(chunk))
            handler.report_progress(chunk.end_index / total_samples * 100.0)

        return join_texts(texts)

    def chunk_audio(
        self,
        audio: np.ndarray,
        vad_model_path: PathLike,
        process_fn: Callable[[np.ndarray], str],
        progress_fn: Optional[Callable[[float], None]] = None,
    ) -> str:
        """Chunk ``audio`` and call ``process_fn`` on each chunk's samples.

        Args:
            audio: 1-D float32 samples at ``sample_rate``
            vad_model_path: Path of the VAD model
            process_fn: Transcribes one chunk's samples to text
            progress_fn: Called with the completed percentage after each chunk

        Returns:
            Chunk texts joined with single spaces
        """
        return self.process(audio, vad_model_path, _CallbackHandler(process_fn, progress_fn))


def chunk_audio(
    audio: np.ndarray,
    vad_model_path: PathLike,
    process_fn: Callable[[np.ndarray], str],
    progress_fn: Optional[Callable[[float], None]] = None,
) -> str:
    """Chunk ``audio`` with the default 30 s / ±5 s settings.

    See ``SmartChunker.chunk_audio``.
    """
    return SmartChunker().chunk_audio(audio, vad_model_path, process_fn, progress_fn)
