"""Main API class for smart-chunker.

This module provides the SmartTranscriber class, which ties the pipeline
together: it decodes a file to the canonical 16 kHz mono signal, splits it
at silence with SmartChunker, hands every chunk to a caller-supplied
transcription function, and reports timing information.
"""

import logging
import os
from typing import Callable, List, Optional, Tuple, Union

import numpy as np

from .chunker import SEARCH_WINDOW_SECONDS, TARGET_CHUNK_SECONDS, SmartChunker
from .data_models import AudioChunk, Segment, TranscriptionInfo, TranscriptionResult
from .decoder import decode_and_resample
from .profiler import PerformanceProfiler

logger = logging.getLogger(__name__)


class _SegmentCollector:
    """SegmentHandler that records a Segment for every processed chunk."""

    def __init__(
        self,
        process_fn: Callable[[np.ndarray], str],
        progress_fn: Optional[Callable[[float], None]],
    ):
        self.process_fn = process_fn
        self.progress_fn = progress_fn
        self.segments: List[Segment] = []

    def process_segment(self, chunk: AudioChunk) -> str:
        text = self.process_fn(chunk.audio)
        self.segments.append(
            Segment(
                id=chunk.chunk_index,
                start=chunk.start_time,
                end=chunk.end_time,
                text=text,
            )
        )
        return text

    def report_progress(self, percent: float) -> None:
        if self.progress_fn is not None:
            self.progress_fn(percent)


class SmartTranscriber:
    """Decodes, chunks and transcribes audio through an injected function.

    Example:
        >>> transcriber = SmartTranscriber("silero_vad.onnx", engine.transcribe_samples)
        >>> result, info = transcriber.transcribe("meeting.mp3")
        >>> for segment in result.segments:
        ...     print(f"[{segment.start:.2f}s - {segment.end:.2f}s] {segment.text}")

    Attributes:
        vad_model_path: Path of the VAD model used for every call
        process_fn: Transcribes one chunk's samples to text
        progress_fn: Optional progress callback (percent complete)
        chunker: SmartChunker performing the segmentation
    """

    def __init__(
        self,
        vad_model_path: Union[str, os.PathLike],
        process_fn: Callable[[np.ndarray], str],
        progress_fn: Optional[Callable[[float], None]] = None,
        target_chunk_seconds: float = TARGET_CHUNK_SECONDS,
        search_window_seconds: float = SEARCH_WINDOW_SECONDS,
        chunker: Optional[SmartChunker] = None,
    ):
        """Initialize the transcriber.

        Args:
            vad_model_path: Path to the VAD ``.onnx`` model
            process_fn: Transcription function for one chunk
            progress_fn: Called with percent complete after each chunk
            target_chunk_seconds: Chunk duration in seconds (default: 30)
            search_window_seconds: Silence search radius in seconds (default: 5)
            chunker: Pre-built chunker; overrides the two duration arguments

        Raises:
            TypeError: If a callback is not callable or a duration is not numeric
            ValueError: If the durations are out of range
        """
        if not callable(process_fn):
            raise TypeError(
                f"process_fn must be callable, got {type(process_fn).__name__}"
            )
        if progress_fn is not None and not callable(progress_fn):
            raise TypeError(
                f"progress_fn must be callable, got {type(progress_fn).__name__}"
            )

        self.vad_model_path = vad_model_path
        self.process_fn = process_fn
        self.progress_fn = progress_fn
        self.chunker = chunker or SmartChunker(
            target_chunk_seconds=target_chunk_seconds,
            search_window_seconds=search_window_seconds,
        )

    def transcribe(
        self,
        audio: Union[str, os.PathLike, np.ndarray],
    ) -> Tuple[TranscriptionResult, TranscriptionInfo]:
        """Transcribe an audio file or a 16 kHz mono array.

        Args:
            audio: Audio file path, or 1-D float array at 16 kHz

        Returns:
            result: Joined text and per-chunk segments
            info: Transcription metadata

        Raises:
            FileNotFoundError: If the audio file is not found
            DecodeError: If the file cannot be decoded
            VadInitError: If the VAD model cannot be loaded
            TypeError: If ``audio`` has an unsupported type
            ValueError: If the array is not 1-dimensional
        """
        if isinstance(audio, (str, os.PathLike)):
            samples = decode_and_resample(audio)
        elif isinstance(audio, np.ndarray):
            if audio.ndim != 1:
                raise ValueError(
                    f"audio array must be 1-dimensional, got shape {audio.shape}"
                )
            samples = audio.astype(np.float32, copy=False)
        else:
            raise TypeError(
                f"audio must be str (file path) or np.ndarray, "
                f"got {type(audio).__name__}"
            )

        audio_duration = len(samples) / float(self.chunker.sample_rate)
        logger.info(f"Transcribing {audio_duration:.2f}s of audio")

        collector = _SegmentCollector(self.process_fn, self.progress_fn)
        with PerformanceProfiler.stopwatch() as timing:
            text = self.chunker.process(samples, self.vad_model_path, collector)

        stats = PerformanceProfiler.calculate_stats(
            audio_duration=audio_duration,
            processing_time=timing["elapsed"],
            num_chunks=len(collector.segments),
        )
        logger.info(str(stats))

        result = TranscriptionResult(
            text=text,
            segments=collector.segments,
        )
        info = TranscriptionInfo(
            duration=audio_duration,
            num_chunks=stats.num_chunks,
            processing_time=stats.processing_time,
            rtf=stats.rtf,
        )
        return result, info
