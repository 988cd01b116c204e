"""Fully-connected layer state and its per-pattern update rules."""

from __future__ import annotations

import numpy as np

from .activations import Activation
from .types import Array

FLOAT_DTYPE = np.dtype(">f8")


def difference_total(expected: Array, actual: Array) -> float:
    """Sum of absolute per-unit differences."""

    return float(np.sum(np.abs(np.asarray(expected) - np.asarray(actual))))


class ConnectionLayer:
    """Neurons of one layer plus the weights connecting them to the layer below.

    Each neuron carries ``activation``, ``bias``, ``delta`` (error
    derivative), ``bias_error`` (accumulated over an epoch) and
    ``bias_delta`` (momentum term). The weight matrix has one row per neuron
    of this layer and one column per neuron of the previous layer, with
    matching ``weight_error`` and ``weight_delta`` matrices.

    Layers never hold a reference to their neighbours; callers pass the
    previous layer's activation (or the previous layer itself) explicitly.
    """

    def __init__(self, length: int, prev_length: int, function: Activation) -> None:
        if length <= 0 or prev_length <= 0:
            raise ValueError("Layer dimensions must be positive")
        self.function = function
        self.activation = np.zeros(length, dtype=np.float64)
        self.bias = np.zeros(length, dtype=np.float64)
        self.delta = np.zeros(length, dtype=np.float64)
        self.bias_error = np.zeros(length, dtype=np.float64)
        self.bias_delta = np.zeros(length, dtype=np.float64)
        self.weights = np.zeros((length, prev_length), dtype=np.float64)
        self.weight_error = np.zeros_like(self.weights)
        self.weight_delta = np.zeros_like(self.weights)

    def __len__(self) -> int:
        return int(self.bias.shape[0])

    @property
    def prev_length(self) -> int:
        return int(self.weights.shape[1])

    @property
    def connections_length(self) -> int:
        return int(self.weights.size)

    def initialize_weights(self, rng: np.random.Generator, max_abs_weight: float) -> None:
        """Draw every bias and weight uniformly from ``(-max, max)``.

        Neurons are visited in order; each draws its bias magnitude and sign
        followed by the magnitude and sign of every incoming weight.
        """

        for i in range(len(self)):
            draws = rng.random(2 * (self.prev_length + 1))
            magnitudes = draws[0::2] * max_abs_weight
            signs = np.where(draws[1::2] < 0.5, -1.0, 1.0)
            values = magnitudes * signs
            self.bias[i] = values[0]
            self.weights[i, :] = values[1:]

    def forward(self, prev_activation: Array, out: Array | None = None) -> Array:
        """Compute ``f(bias + W @ prev)``.

        Writes into ``out`` when given, leaving :attr:`activation` untouched.
        """

        net = self.bias + self.weights @ prev_activation
        target = self.activation if out is None else out
        target[:] = self.function(net)
        return target

    def backpropagate_output(self, expected: Array) -> None:
        """Set the output-layer delta from the target vector."""

        y = self.activation
        self.delta[:] = self.function.backward(expected - y, y)

    def backpropagate_hidden(self, prev: "ConnectionLayer") -> None:
        """Push this layer's delta down into ``prev`` using ``prev``'s own slope."""

        signal = self.delta @ self.weights
        prev.delta[:] = prev.function.backward(signal, prev.activation)

    def accumulate_gradients(self, prev_activation: Array) -> None:
        self.weight_error += np.outer(self.delta, prev_activation)
        self.bias_error += self.delta

    def compute_deltas(self, learn_rate: float, momentum: float) -> None:
        """Classical momentum: previous deltas feed into the new ones."""

        self.weight_delta[:] = learn_rate * self.weight_error + momentum * self.weight_delta
        self.bias_delta[:] = learn_rate * self.bias_error + momentum * self.bias_delta

    def apply_deltas(self) -> None:
        self.weights += self.weight_delta
        self.bias += self.bias_delta

    def reset_accumulators(self) -> None:
        self.weight_error.fill(0.0)
        self.bias_error.fill(0.0)
        self.activation.fill(0.0)

    # ------------------------------------------------------------------
    # Serialisation

    @property
    def byte_length(self) -> int:
        return (len(self) + self.connections_length) * FLOAT_DTYPE.itemsize

    def to_bytes(self) -> bytes:
        """Biases followed by the row-major weight matrix, big-endian float64."""

        return self.bias.astype(FLOAT_DTYPE).tobytes() + self.weights.astype(FLOAT_DTYPE).tobytes()

    def load_bytes(self, buffer: bytes, offset: int = 0) -> int:
        """Read biases and weights from ``buffer`` and return the new offset."""

        n = len(self)
        self.bias[:] = np.frombuffer(buffer, dtype=FLOAT_DTYPE, count=n, offset=offset)
        offset += n * FLOAT_DTYPE.itemsize
        flat = np.frombuffer(buffer, dtype=FLOAT_DTYPE, count=self.connections_length, offset=offset)
        self.weights[:] = flat.reshape(self.weights.shape)
        return offset + self.connections_length * FLOAT_DTYPE.itemsize


__all__ = ["ConnectionLayer", "FLOAT_DTYPE", "difference_total"]
