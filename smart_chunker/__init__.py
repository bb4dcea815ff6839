"""smart-chunker: silence-aware chunking of long audio for transcription.

This package decodes any audio file to a 16 kHz mono float signal, splits
long recordings into ~30 second chunks at silences found by a recurrent
voice activity detector, and feeds every chunk to a transcription function.

Example:
    >>> from smart_chunker import decode_and_resample, chunk_audio
    >>> samples = decode_and_resample("lecture.mp3")
    >>> text = chunk_audio(
    ...     samples,
    ...     "models/silero_vad.onnx",
    ...     engine.transcribe_samples,
    ...     lambda percent: print(f"{percent:.1f}%"),
    ... )
"""

from .chunker import SegmentHandler, SmartChunker, chunk_audio
from .data_models import (
    AudioChunk,
    Segment,
    TranscriptionInfo,
    TranscriptionResult,
    VadResult,
    VadState,
)
from .decoder import decode_and_resample, decode_to_mono, downmix_to_mono, resample_to_16k
from .errors import (
    DecodeError,
    MissingSampleRateError,
    NoSupportedTrackError,
    ResampleError,
    SmartChunkerError,
    VadInferenceError,
    VadInitError,
    VadStateError,
)
from .profiler import PerformanceProfiler, PerformanceStats
from .resampler import FftFixedInResampler, resample
from .transcriber import SmartTranscriber
from .vad import FrameClassifier, OnnxFrameClassifier, VoiceActivityDetector, load_vad
from .wav_io import encode_wav_bytes, save_wav_file, to_int16

__version__ = "0.1.0"

__all__ = [
    "AudioChunk",
    "DecodeError",
    "FftFixedInResampler",
    "FrameClassifier",
    "MissingSampleRateError",
    "NoSupportedTrackError",
    "OnnxFrameClassifier",
    "PerformanceProfiler",
    "PerformanceStats",
    "ResampleError",
    "Segment",
    "SegmentHandler",
    "SmartChunker",
    "SmartChunkerError",
    "SmartTranscriber",
    "TranscriptionInfo",
    "TranscriptionResult",
    "VadInferenceError",
    "VadInitError",
    "VadResult",
    "VadState",
    "VadStateError",
    "VoiceActivityDetector",
    "chunk_audio",
    "decode_and_resample",
    "decode_to_mono",
    "downmix_to_mono",
    "encode_wav_bytes",
    "load_vad",
    "resample",
    "resample_to_16k",
    "save_wav_file",
    "to_int16",
]
