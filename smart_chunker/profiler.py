"""Performance profiling utilities.

This module provides tools for measuring how fast the chunking pipeline
processes audio relative to real time.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass


@dataclass
class PerformanceStats:
    """Performance statistics for a chunked transcription.

    Attributes:
        audio_duration: Total audio duration in seconds
        processing_time: Wall-clock processing time in seconds
        rtf: Real-time factor (processing_time / audio_duration)
        throughput: Audio seconds processed per wall-clock second
        num_chunks: Number of chunks processed
    """
    audio_duration: float
    processing_time: float
    rtf: float
    throughput: float
    num_chunks: int

    def __str__(self) -> str:
        return (
            f"Performance: {self.audio_duration:.1f}s audio in {self.processing_time:.2f}s "
            f"(RTF: {self.rtf:.3f}, throughput: {self.throughput:.1f}x, "
            f"chunks: {self.num_chunks})"
        )


class PerformanceProfiler:
    """Profiles chunked transcription performance."""

    @staticmethod
    def calculate_stats(
        audio_duration: float,
        processing_time: float,
        num_chunks: int,
    ) -> PerformanceStats:
        """Calculate performance statistics.

        Args:
            audio_duration: Total audio duration in seconds
            processing_time: Wall-clock processing time in seconds
            num_chunks: Number of chunks processed

        Returns:
            PerformanceStats object with calculated metrics
        """
        rtf = processing_time / audio_duration if audio_duration > 0 else 0.0
        throughput = audio_duration / processing_time if processing_time > 0 else 0.0

        return PerformanceStats(
            audio_duration=audio_duration,
            processing_time=processing_time,
            rtf=rtf,
            throughput=throughput,
            num_chunks=num_chunks,
        )

    @staticmethod
    @contextmanager
    def stopwatch():
        """Measure wall-clock time of the enclosed block.

        Yields:
            A dict whose ``"elapsed"`` key holds the seconds spent once the
            block exits

        Example:
            >>> with PerformanceProfiler.stopwatch() as timing:
            ...     text = chunker.chunk_audio(audio, "silero_vad.onnx", transcribe)
            >>> print(timing["elapsed"])
        """
        timing = {"elapsed": 0.0}
        start_time = time.perf_counter()
        try:
            yield timing
        finally:
            timing["elapsed"] = time.perf_counter() - start_time
