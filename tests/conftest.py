"""Shared fixtures for smart-chunker tests."""

import pytest

from smart_chunker import VoiceActivityDetector
from tests.helpers import build_tiny_vad_model


@pytest.fixture
def loader_for():
    """Build a ``vad_loader`` that wraps a given classifier."""
    def make(classifier):
        def loader(path):
            return VoiceActivityDetector(classifier)
        return loader
    return make


@pytest.fixture
def tiny_vad_model(tmp_path):
    """Path to a freshly built tiny ONNX VAD model."""
    return build_tiny_vad_model(tmp_path / "tiny_vad.onnx")
