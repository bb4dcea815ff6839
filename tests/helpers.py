"""Signal generators, fake classifiers and media writers shared by the tests."""

from fractions import Fraction

import av
import numpy as np
import pytest

from smart_chunker import VadState

SR = 16000


def generate_sine(duration=3.0, sr=SR, freq=440.0, amplitude=0.5):
    """Generate a synthetic sine tone."""
    t = np.arange(int(sr * duration)) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def generate_sine_with_gap(duration=60.0, gap_start=28.0, gap_end=32.0, sr=SR):
    """Sine tone with true digital silence strictly between two instants."""
    audio = generate_sine(duration, sr)
    idx = np.arange(len(audio))
    audio[(idx > int(gap_start * sr)) & (idx < int(gap_end * sr))] = 0.0
    return audio


class ScriptedClassifier:
    """Returns probabilities from a script, then ``default`` forever.

    Script entries that are exceptions are raised instead of returned.
    """

    def __init__(self, script=(), default=1.0):
        self.script = list(script)
        self.default = default
        self.frames = []

    def classify(self, frame, state):
        call = len(self.frames)
        self.frames.append(np.array(frame, copy=True))
        item = self.script[call] if call < len(self.script) else self.default
        if isinstance(item, Exception):
            raise item
        return item, VadState(h=state.h + 1.0, c=state.c)


class EnergyClassifier:
    """Speech iff the frame has any non-zero sample."""

    def __init__(self):
        self.calls = 0

    def classify(self, frame, state):
        self.calls += 1
        probability = 1.0 if np.abs(frame).max() > 0.0 else 0.0
        return probability, state


class PositionClassifier:
    """For audio built with ``np.arange``: frame[0] is its absolute offset.

    ``silent_at`` is a set of offsets classified as silence.
    """

    def __init__(self, silent_at=()):
        self.silent_at = set(silent_at)
        self.positions = []

    def classify(self, frame, state):
        position = int(frame[0])
        self.positions.append(position)
        return (0.0 if position in self.silent_at else 1.0), state


class SeededClassifier:
    """Pseudo-random silence with a fixed seed."""

    def __init__(self, seed, silence_rate):
        self.rng = np.random.default_rng(seed)
        self.silence_rate = silence_rate

    def classify(self, frame, state):
        if self.rng.random() < self.silence_rate:
            return 0.0, state
        return 1.0, state


def build_tiny_vad_model(path, frame_size=480, output_name="output"):
    """Write a small recurrent ONNX model with the Silero v4 tensor contract.

    energy = mean(|input|) * (sr / sr)
    hn     = 0.5 * h + energy
    cn     = c
    output = sigmoid(50 * (energy + mean(hn)) - 1)

    Silent frames from zero state give ~0.27; a 0.5-amplitude tone gives
    ~1.0; after a tone the state decays back below 0.5 within a few frames.
    """
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper

    inputs = [
        helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, frame_size]),
        helper.make_tensor_value_info("sr", TensorProto.FLOAT, [1]),
        helper.make_tensor_value_info("h", TensorProto.FLOAT, [2, 1, 64]),
        helper.make_tensor_value_info("c", TensorProto.FLOAT, [2, 1, 64]),
    ]
    outputs = [
        helper.make_tensor_value_info(output_name, TensorProto.FLOAT, [1]),
        helper.make_tensor_value_info("hn", TensorProto.FLOAT, [2, 1, 64]),
        helper.make_tensor_value_info("cn", TensorProto.FLOAT, [2, 1, 64]),
    ]
    constants = [
        helper.make_tensor("decay", TensorProto.FLOAT, [1], [0.5]),
        helper.make_tensor("scale", TensorProto.FLOAT, [1], [50.0]),
        helper.make_tensor("bias", TensorProto.FLOAT, [1], [1.0]),
    ]
    nodes = [
        helper.make_node("Abs", ["input"], ["magnitude"]),
        helper.make_node("ReduceMean", ["magnitude"], ["raw_energy"], axes=[1], keepdims=0),
        helper.make_node("Div", ["sr", "sr"], ["unit"]),
        helper.make_node("Mul", ["raw_energy", "unit"], ["energy"]),
        helper.make_node("Mul", ["h", "decay"], ["h_decayed"]),
        helper.make_node("Add", ["h_decayed", "energy"], ["hn"]),
        helper.make_node("Identity", ["c"], ["cn"]),
        helper.make_node("ReduceMean", ["hn"], ["memory"], keepdims=0),
        helper.make_node("Add", ["energy", "memory"], ["activation"]),
        helper.make_node("Mul", ["activation", "scale"], ["scaled"]),
        helper.make_node("Sub", ["scaled", "bias"], ["logit"]),
        helper.make_node("Sigmoid", ["logit"], [output_name]),
    ]

    graph = helper.make_graph(nodes, "tiny_vad", inputs, outputs, initializer=constants)
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 7
    onnx.checker.check_model(model)
    onnx.save(model, str(path))
    return path


def _add_video_stream(container, num_frames=10):
    stream = container.add_stream("mpeg4", rate=10)
    stream.width = 64
    stream.height = 48
    stream.pix_fmt = "yuv420p"

    image = np.zeros((48, 64, 3), dtype=np.uint8)
    packets = []
    for index in range(num_frames):
        frame = av.VideoFrame.from_ndarray(image, format="rgb24").reformat(format="yuv420p")
        frame.pts = index
        frame.time_base = Fraction(1, 10)
        packets.extend(stream.encode(frame))
    packets.extend(stream.encode(None))
    return stream, packets


def _encode_pcm16(stream, audio, frame_size=1024):
    pcm = (np.asarray(audio) * 32767).astype(np.int16)
    packets = []
    for offset in range(0, len(pcm), frame_size):
        block = pcm[offset:offset + frame_size].reshape(1, -1)
        frame = av.AudioFrame.from_ndarray(block, format="s16", layout="mono")
        frame.sample_rate = SR
        frame.pts = offset
        frame.time_base = Fraction(1, SR)
        packets.extend(stream.encode(frame))
    packets.extend(stream.encode(None))
    return packets


def write_mkv(path, audio=None, with_video=False):
    """Write a Matroska file with an optional video stream before the audio.

    ``audio`` is 16 kHz mono float and is stored as 16-bit PCM.
    """
    with av.open(str(path), mode="w", format="matroska") as container:
        video_packets = []
        if with_video:
            _, video_packets = _add_video_stream(container)

        audio_packets = []
        if audio is not None:
            audio_stream = container.add_stream("pcm_s16le", rate=SR, layout="mono")
            audio_packets = _encode_pcm16(audio_stream, audio)

        for packet in video_packets + audio_packets:
            container.mux(packet)
    return path


def write_mkv_with_bad_packet(path, audio, bad_after=4):
    """Write 16-bit PCM audio with an undecodable packet in the middle.

    A one-byte packet is shorter than one 16-bit sample, which the PCM
    decoder rejects as invalid data.
    """
    with av.open(str(path), mode="w", format="matroska") as container:
        stream = container.add_stream("pcm_s16le", rate=SR, layout="mono")
        packets = _encode_pcm16(stream, audio)

        anchor = packets[bad_after - 1]
        bad = av.Packet(b"\x01")
        bad.stream = stream
        bad.time_base = anchor.time_base
        bad.pts = anchor.pts + 1
        bad.dts = anchor.pts + 1

        for packet in packets[:bad_after] + [bad] + packets[bad_after:]:
            container.mux(packet)
    return path
