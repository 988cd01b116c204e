from __future__ import annotations

import numpy as np
import pytest

from spamnet.core.activations import LOGSIG
from spamnet.core.errors import WeightFileError
from spamnet.core.network import LayerId, Network, assess, is_ambiguous
from spamnet.core.types import Pattern, ScoreReport


class _RecordingLogger:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def __getattr__(self, name: str):
        if not name.startswith("log_"):
            raise AttributeError(name)
        return lambda *args: self.calls.append((name, *args))


def _random_network(seed: int = 0) -> Network:
    network = Network(3, 4, 5, 2)
    rng = np.random.default_rng(seed)
    for layer in network.layers:
        layer.initialize_weights(rng, 1.0)
    return network


def test_layer_dimensions_chain():
    network = Network(6, 4, 3, 2)
    assert network.dims == [6, 4, 3, 2]
    assert network.layer(LayerId.HIDDEN_1).weights.shape == (4, 6)
    assert network.layer(LayerId.HIDDEN_2).weights.shape == (3, 4)
    assert network.layer(LayerId.OUTPUT).weights.shape == (2, 3)
    assert network.parameter_count() == (4 + 24) + (3 + 12) + (2 + 6)


def test_forward_pass_is_deterministic():
    network = _random_network()
    x = np.array([0.5, -1.0, 2.0])
    first = network.classify(x)
    second = network.classify(x)
    assert np.array_equal(first, second)
    assert first.shape == (2,)
    assert np.all((first > 0.0) & (first < 1.0))


def test_forward_pass_rejects_wrong_length():
    with pytest.raises(ValueError):
        _random_network().forward_pass(np.zeros(4))


def test_save_load_round_trip_is_bit_identical(tmp_path):
    network = _random_network(3)
    path = network.save(tmp_path / "weights.dat")
    loaded = Network.load(path)
    assert loaded.dims == network.dims
    for original, restored in zip(network.layers, loaded.layers):
        assert np.array_equal(original.bias, restored.bias)
        assert np.array_equal(original.weights, restored.weights)


def test_weight_file_layout_is_big_endian(tmp_path):
    network = Network(1, 1, 1, 1)
    network.layer(LayerId.HIDDEN_1).bias[0] = 1.5
    payload = network.to_bytes()
    assert payload[:16] == bytes.fromhex("00000001" * 4)
    assert payload[16:24] == np.array([1.5], dtype=">f8").tobytes()
    assert len(payload) == 16 + 3 * 2 * 8


def test_load_rejects_size_mismatch(tmp_path):
    payload = _random_network().to_bytes()
    path = tmp_path / "broken.dat"
    path.write_bytes(payload[:-8])
    with pytest.raises(WeightFileError):
        Network.load(path)
    path.write_bytes(payload + b"\x00")
    with pytest.raises(WeightFileError):
        Network.load(path)
    with pytest.raises(WeightFileError):
        Network.from_bytes(b"\x00\x00")


def test_load_missing_file_is_an_os_error(tmp_path):
    with pytest.raises(OSError):
        Network.load(tmp_path / "missing.dat")


def test_assess_tolerance_and_ambiguity():
    confident = assess(np.array([1.0, 0.0]), np.array([0.65, 0.1]))
    assert confident.correct
    assert not confident.ambiguous
    assert confident.error == pytest.approx(0.45)

    for expected in ([1.0, 0.0], [0.0, 1.0]):
        assert assess(np.array(expected), np.array([0.5, 0.5])).ambiguous
    borderline = assess(np.array([1.0, 0.0]), np.array([0.55, 0.45]))
    assert not borderline.correct
    assert borderline.ambiguous
    assert assess(np.array([1.0, 0.0]), np.array([0.61, 0.39])).correct
    assert not is_ambiguous(np.array([0.4, 0.6]))


def test_validation_error_leaves_live_output_untouched():
    network = _random_network(5)
    network.forward_pass(np.array([1.0, 1.0, 1.0]))
    live = network.output_layer.activation.copy()
    patterns = [Pattern(np.array([0.0, 1.0, -1.0]), np.array([1.0, 0.0]))]
    total = network.validation_error(patterns)
    assert np.array_equal(network.output_layer.activation, live)

    expected = np.sum(np.abs(patterns[0].expected - network.classify(patterns[0].inputs)))
    assert total == pytest.approx(expected)


def test_score_batch_reports_to_logger():
    network = Network(1, 1, 1, 2)
    out = network.layer(LayerId.OUTPUT)
    out.bias[:] = [10.0, -10.0]
    patterns = [
        Pattern(np.array([0.0]), np.array([1.0, 0.0])),
        Pattern(np.array([0.0]), np.array([0.0, 1.0])),
    ]
    logger = _RecordingLogger()
    report = network.score_batch(patterns, logger)

    assert report.correct == 1
    assert report.incorrect == 1
    assert report.accuracy == pytest.approx(0.5)
    names = [call[0] for call in logger.calls]
    assert names[0] == "log_pattern"
    assert ("log_pattern", 2, False) in logger.calls
    assert ("log_error_type", False) in logger.calls
    assert names.count("log_result") == 4
    assert names[-3:] == ["log_total_error", "log_correct_count", "log_incorrect_count"]
    assert logger.calls[-2] == ("log_correct_count", 1)


def test_set_layer_function():
    network = Network(2, 2, 2, 2)
    network.set_layer_function(LayerId.HIDDEN_1, LOGSIG)
    assert network.layer(LayerId.HIDDEN_1).function is LOGSIG


def test_accuracy_of_empty_batch_is_nan():
    network = Network(1, 1, 1, 2)
    report = network.score_batch([], _RecordingLogger())
    assert report == ScoreReport(total_error=0.0, correct=0, incorrect=0)
    assert np.isnan(report.accuracy)
