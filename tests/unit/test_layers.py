import numpy as np
import pytest

from spamnet.core.activations import LOGSIG, TANSIG
from spamnet.core.layers import ConnectionLayer, difference_total


def _toy_layers():
    hidden = ConnectionLayer(2, 2, TANSIG)
    output = ConnectionLayer(1, 2, LOGSIG)
    hidden.weights[:] = [[0.15, -0.25], [0.35, 0.45]]
    hidden.bias[:] = [0.05, -0.1]
    output.weights[:] = [[0.6, -0.7]]
    output.bias[:] = [0.2]
    return hidden, output


def _loss(hidden, output, x, target):
    h = hidden.forward(x, out=np.zeros(2))
    y = output.forward(h, out=np.zeros(1))
    return 0.5 * float(np.sum((target - y) ** 2))


def test_forward_writes_activation_or_buffer():
    hidden, _ = _toy_layers()
    x = np.array([1.0, -2.0])
    expected = np.tanh(hidden.bias + hidden.weights @ x)
    assert np.allclose(hidden.forward(x), expected)
    assert np.allclose(hidden.activation, expected)

    hidden.activation[:] = 7.0
    buffer = np.zeros(2)
    hidden.forward(x, out=buffer)
    assert np.allclose(buffer, expected)
    assert np.all(hidden.activation == 7.0)


def test_weight_error_matches_finite_difference_gradient():
    hidden, output = _toy_layers()
    x = np.array([0.3, -0.8])
    target = np.array([1.0])

    hidden.forward(x)
    output.forward(hidden.activation)
    output.backpropagate_output(target)
    output.backpropagate_hidden(hidden)
    hidden.accumulate_gradients(x)
    output.accumulate_gradients(hidden.activation)

    eps = 1e-6
    for layer in (hidden, output):
        for idx in np.ndindex(layer.weights.shape):
            original = layer.weights[idx]
            layer.weights[idx] = original + eps
            plus = _loss(hidden, output, x, target)
            layer.weights[idx] = original - eps
            minus = _loss(hidden, output, x, target)
            layer.weights[idx] = original
            numeric = -(plus - minus) / (2 * eps)
            assert layer.weight_error[idx] == pytest.approx(numeric, abs=1e-6)
        for i in range(len(layer)):
            original = layer.bias[i]
            layer.bias[i] = original + eps
            plus = _loss(hidden, output, x, target)
            layer.bias[i] = original - eps
            minus = _loss(hidden, output, x, target)
            layer.bias[i] = original
            assert layer.bias_error[i] == pytest.approx(-(plus - minus) / (2 * eps), abs=1e-6)


def test_momentum_deltas_accumulate_previous_update():
    layer = ConnectionLayer(1, 1, TANSIG)
    layer.weight_error[:] = 2.0
    layer.bias_error[:] = 1.0
    layer.compute_deltas(learn_rate=0.1, momentum=0.5)
    assert layer.weight_delta[0, 0] == pytest.approx(0.2)
    layer.compute_deltas(learn_rate=0.1, momentum=0.5)
    assert layer.weight_delta[0, 0] == pytest.approx(0.3)
    assert layer.bias_delta[0] == pytest.approx(0.15)

    layer.apply_deltas()
    assert layer.weights[0, 0] == pytest.approx(0.3)
    assert layer.bias[0] == pytest.approx(0.15)


def test_reset_clears_accumulators_but_keeps_deltas():
    layer = ConnectionLayer(2, 3, TANSIG)
    layer.weight_error[:] = 1.0
    layer.bias_error[:] = 1.0
    layer.activation[:] = 1.0
    layer.weight_delta[:] = 0.5
    layer.reset_accumulators()
    assert not layer.weight_error.any()
    assert not layer.bias_error.any()
    assert not layer.activation.any()
    assert np.all(layer.weight_delta == 0.5)


def test_initialize_weights_is_seeded_and_bounded():
    first = ConnectionLayer(4, 5, TANSIG)
    second = ConnectionLayer(4, 5, TANSIG)
    first.initialize_weights(np.random.default_rng(7), 0.25)
    second.initialize_weights(np.random.default_rng(7), 0.25)
    assert np.array_equal(first.weights, second.weights)
    assert np.array_equal(first.bias, second.bias)
    assert np.all(np.abs(first.weights) < 0.25)
    assert (first.weights < 0).any() and (first.weights > 0).any()


def test_layer_bytes_round_trip():
    layer = ConnectionLayer(3, 2, LOGSIG)
    layer.initialize_weights(np.random.default_rng(1), 1.0)
    payload = layer.to_bytes()
    assert len(payload) == layer.byte_length == (3 + 6) * 8

    clone = ConnectionLayer(3, 2, LOGSIG)
    assert clone.load_bytes(payload) == len(payload)
    assert np.array_equal(clone.weights, layer.weights)
    assert np.array_equal(clone.bias, layer.bias)


def test_difference_total():
    assert difference_total(np.array([1.0, 0.0]), np.array([0.75, 0.5])) == pytest.approx(0.75)


def test_rejects_empty_dimensions():
    with pytest.raises(ValueError):
        ConnectionLayer(0, 3, TANSIG)
