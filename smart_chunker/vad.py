"""Stateful voice activity detection over fixed-size frames.

The detector is split in two: a ``FrameClassifier`` that maps one frame and
the current recurrent state to a speech probability and the next state, and
``VoiceActivityDetector`` which owns that state across calls. The ONNX
classifier runs a Silero-style recurrent model with the tensor contract::

    inputs:  input float[1, 480], sr [1], h float[2, 1, 64], c float[2, 1, 64]
    outputs: output float[1],  hn float[2, 1, 64], cn float[2, 1, 64]
"""

import logging
import os
from typing import Protocol, Tuple, Union

import numpy as np
import onnxruntime as ort

from .data_models import VAD_STATE_SHAPE, VadResult, VadState
from .errors import VadInferenceError, VadInitError, VadStateError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
VAD_FRAME_SIZE = 480  # 30 ms at 16 kHz

_INPUT_NAMES = ("input", "sr", "h", "c")
_OUTPUT_NAMES = ["output", "hn", "cn"]


class FrameClassifier(Protocol):
    """Maps a frame and recurrent state to (speech probability, next state)."""

    def classify(self, frame: np.ndarray, state: VadState) -> Tuple[float, VadState]:
        ...


class OnnxFrameClassifier:
    """Frame classifier backed by an ONNX Runtime session.

    Attributes:
        model_path: Path of the serialized model
        sample_rate: Sample rate fed to the model's ``sr`` input
        session: ONNX Runtime inference session
    """

    def __init__(
        self,
        model_path: Union[str, os.PathLike],
        sample_rate: int = SAMPLE_RATE,
    ):
        """Load the VAD model.

        Args:
            model_path: Path to the ``.onnx`` model file
            sample_rate: Sample rate of the frames (default: 16000)

        Raises:
            VadInitError: If the file is missing, cannot be loaded, or does
                not expose the expected inputs and outputs
        """
        self.model_path = os.fspath(model_path)
        self.sample_rate = sample_rate

        if not os.path.exists(self.model_path):
            raise VadInitError(f"VAD model '{self.model_path}' not found")

        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.intra_op_num_threads = 1
        try:
            self.session = ort.InferenceSession(
                self.model_path,
                sess_options=options,
                providers=["CPUExecutionProvider"],
            )
        except Exception as e:
            raise VadInitError(
                f"Failed to load VAD model '{self.model_path}': {e}"
            ) from e

        inputs = {node.name: node for node in self.session.get_inputs()}
        outputs = {node.name for node in self.session.get_outputs()}
        missing = [name for name in _INPUT_NAMES if name not in inputs]
        missing += [name for name in _OUTPUT_NAMES if name not in outputs]
        if missing:
            raise VadInitError(
                f"VAD model '{self.model_path}' is missing tensors: {', '.join(missing)}"
            )

        # Published Silero exports take an int64 scalar; others a float[1]
        sr_node = inputs["sr"]
        sr_dtype = np.int64 if sr_node.type == "tensor(int64)" else np.float32
        sr_shape = () if len(sr_node.shape) == 0 else (1,)
        self._sr = np.full(sr_shape, sample_rate, dtype=sr_dtype)

        logger.debug(f"Loaded VAD model '{self.model_path}'")

    def classify(self, frame: np.ndarray, state: VadState) -> Tuple[float, VadState]:
        feeds = {
            "input": np.asarray(frame, dtype=np.float32).reshape(1, -1),
            "sr": self._sr,
            "h": state.h,
            "c": state.c,
        }
        try:
            output, hn, cn = self.session.run(_OUTPUT_NAMES, feeds)
        except Exception as e:
            raise VadInferenceError(f"VAD inference failed: {e}") from e

        probability = float(np.asarray(output).reshape(-1)[0])
        return probability, VadState(h=hn, c=cn)


class VoiceActivityDetector:
    """Classifies frames as speech or silence, carrying recurrent state.

    A fresh or reset detector starts from all-zero state; every successful
    ``push_frame`` replaces the state with the classifier's output. A
    failed call leaves the state untouched.
    """

    def __init__(self, classifier: FrameClassifier):
        self.classifier = classifier
        self._state = VadState.zeros(VAD_STATE_SHAPE)

    @property
    def state(self) -> VadState:
        return self._state.copy()

    def push_frame(self, frame: np.ndarray) -> VadResult:
        """Classify one frame (``VAD_FRAME_SIZE`` samples).

        Raises:
            VadInferenceError: If the classifier fails on this frame
            VadStateError: If the returned state has a different shape
        """
        probability, new_state = self.classifier.classify(frame, self._state)

        h = np.array(new_state.h, dtype=np.float32)
        c = np.array(new_state.c, dtype=np.float32)
        if h.shape != self._state.h.shape or c.shape != self._state.c.shape:
            raise VadStateError(
                f"VAD state shape changed from {self._state.h.shape} "
                f"to h={h.shape}, c={c.shape}"
            )

        self._state = VadState(h=h, c=c)
        return VadResult(probability=probability)

    def reset(self):
        """Zero the recurrent state without reloading the classifier."""
        self._state.h.fill(0.0)
        self._state.c.fill(0.0)


def load_vad(model_path: Union[str, os.PathLike]) -> VoiceActivityDetector:
    """Create a detector backed by the ONNX model at ``model_path``."""
    return VoiceActivityDetector(OnnxFrameClassifier(model_path))
