"""Core data models for smart-chunker.

This module defines the data structures used throughout the smart-chunker
pipeline for representing audio chunks, voice activity results, recurrent
detector state, and transcription output.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

# Silero-style recurrent state: (layers, batch, hidden units)
VAD_STATE_SHAPE: Tuple[int, int, int] = (2, 1, 64)

# A frame is speech when its probability is strictly above this value.
# The detector is trained as a balanced binary classifier, so 0.5 is the
# decision boundary; kept as a constant rather than a parameter so that
# segmentation stays reproducible across callers.
SPEECH_THRESHOLD = 0.5


@dataclass
class AudioChunk:
    """Represents a chunk of audio cut from a longer sample buffer.

    Chunks produced for one buffer are contiguous and non-overlapping:
    the ``end_index`` of one chunk is the ``start_index`` of the next.

    Attributes:
        audio: Owned copy of the chunk's samples (float32, mono)
        start_index: First sample index in the source buffer (inclusive)
        end_index: Last sample index in the source buffer (exclusive)
        start_time: Start time in seconds relative to original audio
        end_time: End time in seconds relative to original audio
        chunk_index: Index in the sequence of chunks (0-based)
    """
    audio: np.ndarray
    start_index: int
    end_index: int
    start_time: float
    end_time: float
    chunk_index: int

    @property
    def num_samples(self) -> int:
        return self.end_index - self.start_index


@dataclass
class VadResult:
    """Speech probability for a single VAD frame."""
    probability: float

    def is_speech(self) -> bool:
        return self.probability > SPEECH_THRESHOLD


@dataclass
class VadState:
    """Recurrent hidden/cell tensors carried between VAD frames.

    Attributes:
        h: Hidden state, shape ``VAD_STATE_SHAPE``
        c: Cell state, shape ``VAD_STATE_SHAPE``
    """
    h: np.ndarray
    c: np.ndarray

    @classmethod
    def zeros(cls, shape: Tuple[int, ...] = VAD_STATE_SHAPE) -> "VadState":
        return cls(
            h=np.zeros(shape, dtype=np.float32),
            c=np.zeros(shape, dtype=np.float32),
        )

    def copy(self) -> "VadState":
        return VadState(h=self.h.copy(), c=self.c.copy())


@dataclass
class Segment:
    """Represents a transcribed chunk with timing information.

    Attributes:
        id: Sequential identifier for the segment
        start: Start time in seconds relative to original audio
        end: End time in seconds relative to original audio
        text: Transcribed text content
    """
    id: int
    start: float
    end: float
    text: str


@dataclass
class TranscriptionResult:
    """Joined transcription text together with its per-chunk segments."""
    text: str
    segments: List[Segment] = field(default_factory=list)


@dataclass
class TranscriptionInfo:
    """Metadata about the transcription process.

    Attributes:
        duration: Total audio duration in seconds
        num_chunks: Number of chunks the audio was split into
        processing_time: Total wall-clock time for processing in seconds
        rtf: Real-time factor (processing_time / duration)
    """
    duration: float
    num_chunks: int
    processing_time: float
    rtf: float
