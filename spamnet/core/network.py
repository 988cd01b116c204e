"""Two-hidden-layer perceptron used for inference and as the training target."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Sequence

import numpy as np

from .activations import LOGSIG, TANSIG, Activation
from .errors import WeightFileError
from .layers import ConnectionLayer, difference_total
from .types import (
    AMBIGUOUS_HIGH,
    AMBIGUOUS_LOW,
    Array,
    Pattern,
    PatternAssessment,
    ScoreReport,
    matches,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..reporting.logger import MlpLogger

INT_DTYPE = np.dtype(">i4")
HEADER_LENGTH = 4 * INT_DTYPE.itemsize


class LayerId(enum.IntEnum):
    """Index of each connection layer inside :attr:`Network.layers`."""

    HIDDEN_1 = 0
    HIDDEN_2 = 1
    OUTPUT = 2


def is_ambiguous(actual: Array) -> bool:
    """Return ``True`` when any activation is neither confidently 0 nor 1."""

    actual = np.asarray(actual)
    return bool(np.any((actual > AMBIGUOUS_LOW) & (actual < AMBIGUOUS_HIGH)))


def assess(expected: Array, actual: Array) -> PatternAssessment:
    return PatternAssessment(
        error=difference_total(expected, actual),
        correct=matches(expected, actual),
        ambiguous=is_ambiguous(actual),
    )


class Network:
    """Input vector followed by hidden-1, hidden-2 and output layers."""

    def __init__(self, input_length: int, hidden1: int, hidden2: int, output_length: int) -> None:
        self.input = np.zeros(input_length, dtype=np.float64)
        self.layers: list[ConnectionLayer] = [
            ConnectionLayer(hidden1, input_length, TANSIG),
            ConnectionLayer(hidden2, hidden1, TANSIG),
            ConnectionLayer(output_length, hidden2, LOGSIG),
        ]

    @property
    def input_length(self) -> int:
        return int(self.input.shape[0])

    @property
    def output_length(self) -> int:
        return len(self.output_layer)

    @property
    def output_layer(self) -> ConnectionLayer:
        return self.layers[LayerId.OUTPUT]

    @property
    def dims(self) -> list[int]:
        return [self.input_length] + [len(layer) for layer in self.layers]

    def parameter_count(self) -> int:
        return int(sum(len(layer) + layer.connections_length for layer in self.layers))

    def layer(self, layer_id: LayerId) -> ConnectionLayer:
        return self.layers[layer_id]

    def set_layer_function(self, layer_id: LayerId, function: Activation) -> None:
        self.layers[layer_id].function = function

    def _prev_activation(self, index: int) -> Array:
        return self.input if index == 0 else self.layers[index - 1].activation

    # ------------------------------------------------------------------
    # Inference

    def forward_pass(self, inputs: Array) -> Array:
        """Bind ``inputs`` and propagate through every layer in order."""

        inputs = np.asarray(inputs, dtype=np.float64)
        if inputs.shape != self.input.shape:
            raise ValueError(
                f"Expected an input vector of length {self.input_length}, got shape {inputs.shape}"
            )
        self.input[:] = inputs
        for index, layer in enumerate(self.layers):
            layer.forward(self._prev_activation(index))
        return self.output_layer.activation

    def classify(self, features: Array) -> Array:
        """Return a copy of the raw output activations for ``features``."""

        return self.forward_pass(features).copy()

    def validation_error(self, patterns: Iterable[Pattern]) -> float:
        """Summed absolute error over ``patterns``.

        The output activations are computed into a scratch buffer so the
        live output layer keeps whatever the last training pattern left.
        """

        buffer = np.zeros(self.output_length, dtype=np.float64)
        hidden = self.layers[: LayerId.OUTPUT]
        total = 0.0
        for pattern in patterns:
            self.input[:] = pattern.inputs
            for index, layer in enumerate(hidden):
                layer.forward(self._prev_activation(index))
            self.output_layer.forward(hidden[-1].activation, out=buffer)
            total += difference_total(pattern.expected, buffer)
        return total

    def score_batch(self, patterns: Sequence[Pattern], logger: "MlpLogger") -> ScoreReport:
        """Run every pattern, report per-pattern results to ``logger`` and tally."""

        total_error = 0.0
        correct = 0
        incorrect = 0
        for index, pattern in enumerate(patterns, start=1):
            actual = self.forward_pass(pattern.inputs)
            result = assess(pattern.expected, actual)
            total_error += result.error

            logger.log_pattern(index, result.correct)
            if not result.correct:
                logger.log_error_type(result.ambiguous)
            for expected, obtained in zip(pattern.expected, actual):
                logger.log_result(float(expected), float(obtained))
            logger.log_error(result.error)

            if result.correct:
                correct += 1
            else:
                incorrect += 1

        logger.log_total_error(total_error)
        logger.log_correct_count(correct)
        logger.log_incorrect_count(incorrect)
        return ScoreReport(total_error=total_error, correct=correct, incorrect=incorrect)

    # ------------------------------------------------------------------
    # Persistence

    def to_bytes(self) -> bytes:
        header = np.array(self.dims, dtype=INT_DTYPE).tobytes()
        return header + b"".join(layer.to_bytes() for layer in self.layers)

    @classmethod
    def from_bytes(cls, payload: bytes) -> "Network":
        if len(payload) < HEADER_LENGTH:
            raise WeightFileError(
                f"Weight data holds {len(payload)} bytes, fewer than the {HEADER_LENGTH}-byte header"
            )
        dims = [int(v) for v in np.frombuffer(payload, dtype=INT_DTYPE, count=4)]
        if any(d <= 0 for d in dims):
            raise WeightFileError(f"Weight header declares non-positive dimensions: {dims}")
        expected = HEADER_LENGTH + sum(
            (cur + cur * prev) * 8 for prev, cur in zip(dims[:-1], dims[1:])
        )
        if len(payload) != expected:
            raise WeightFileError(
                f"Weight data for dimensions {dims} must hold {expected} bytes, found {len(payload)}"
            )
        network = cls(*dims)
        offset = HEADER_LENGTH
        for layer in network.layers:
            offset = layer.load_bytes(payload, offset)
        return network

    def save(self, path: str | Path) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_bytes())
        return str(path)

    @classmethod
    def load(cls, path: str | Path) -> "Network":
        return cls.from_bytes(Path(path).read_bytes())


__all__ = ["LayerId", "Network", "assess", "is_ambiguous"]
