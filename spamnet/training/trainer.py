"""Epoch/step training loop with adaptive hyperparameters and early stopping."""

from __future__ import annotations

import sys
from dataclasses import asdict, dataclass
from typing import Mapping, Sequence

import numpy as np

from ..core.layers import difference_total
from ..core.network import LayerId, Network
from ..core.types import Pattern, TrainingResult
from ..reporting.logger import NullLogger

LEARN_RATE_GROWTH = 1.02
LEARN_RATE_BACKOFF = 0.5


@dataclass(frozen=True)
class TrainerConfig:
    """Hyperparameters of :class:`Trainer`.

    ``max_learn_rate`` caps the geometric learn-rate growth; ``None`` keeps
    the growth unbounded.
    """

    momentum: float = 0.9
    learn_rate: float = 1e-5
    epochs: int = 20
    max_initial_weight: float = 1e-5
    seed: int = 7
    max_learn_rate: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "max_initial_weight", abs(self.max_initial_weight))
        if self.epochs < 1:
            raise ValueError("epochs must be at least 1")
        if self.max_learn_rate is not None and self.max_learn_rate <= 0:
            raise ValueError("max_learn_rate must be positive when set")

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "TrainerConfig":
        known = {name: values[name] for name in cls.__dataclass_fields__ if name in values}
        return cls(**known)  # type: ignore[arg-type]

    def to_dict(self) -> dict:
        return asdict(self)


def adapt_momentum(momentum: float, epoch_error: float, prev_epoch_error: float) -> float:
    """Drop momentum to zero whenever the epoch error failed to improve."""

    return 0.0 if epoch_error >= prev_epoch_error else momentum


def adapt_learn_rate(
    learn_rate: float,
    epoch_error: float,
    prev_epoch_error: float,
    ceiling: float | None = None,
) -> float:
    """Halve the learn rate on regression, grow it by 2% on improvement."""

    if epoch_error >= prev_epoch_error:
        return learn_rate * LEARN_RATE_BACKOFF
    grown = learn_rate * LEARN_RATE_GROWTH
    if ceiling is not None:
        grown = min(grown, ceiling)
    return grown


class Trainer:
    """Train a :class:`Network` in place from labelled pattern sets."""

    def __init__(
        self,
        network: Network,
        training: Sequence[Pattern],
        validation: Sequence[Pattern],
        config: TrainerConfig | None = None,
        *,
        logger=None,
        callbacks: Sequence[object] | None = None,
        split_loggers: Mapping[str, Sequence[object]] | None = None,
    ) -> None:
        self.network = network
        self.training = list(training)
        self.validation = list(validation)
        self.config = config or TrainerConfig()
        self.logger = logger if logger is not None else NullLogger()
        self.callbacks = list(callbacks or [])
        self.split_loggers = {name: list(sinks) for name, sinks in (split_loggers or {}).items()}
        self._check_patterns(self.training, "training")
        self._check_patterns(self.validation, "validation")

    def _check_patterns(self, patterns: Sequence[Pattern], name: str) -> None:
        for pattern in patterns:
            if pattern.inputs.shape[0] != self.network.input_length:
                raise ValueError(
                    f"{name} pattern has {pattern.inputs.shape[0]} features, "
                    f"network expects {self.network.input_length}"
                )
            if pattern.expected.shape[0] != self.network.output_length:
                raise ValueError(
                    f"{name} pattern has {pattern.expected.shape[0]} targets, "
                    f"network expects {self.network.output_length}"
                )

    # ------------------------------------------------------------------
    # Building blocks

    def initialize(self) -> None:
        rng = np.random.default_rng(self.config.seed)
        for layer in self.network.layers:
            layer.initialize_weights(rng, self.config.max_initial_weight)

    def reset_layers(self) -> None:
        for layer in self.network.layers:
            layer.reset_accumulators()

    def backpropagate(self, expected) -> None:
        """Output error first, then OUTPUT -> HIDDEN_2 -> HIDDEN_1."""

        layers = self.network.layers
        layers[LayerId.OUTPUT].backpropagate_output(expected)
        for index in range(len(layers) - 1, 0, -1):
            layers[index].backpropagate_hidden(layers[index - 1])

    def accumulate(self) -> None:
        network = self.network
        for index, layer in enumerate(network.layers):
            prev = network.input if index == 0 else network.layers[index - 1].activation
            layer.accumulate_gradients(prev)

    def update_weights(self, learn_rate: float, momentum: float) -> None:
        for layer in self.network.layers:
            layer.compute_deltas(learn_rate, momentum)
        for layer in self.network.layers:
            layer.apply_deltas()

    def run_epoch(self, learn_rate: float, momentum: float) -> float:
        """One pass over the training set followed by a single weight update."""

        self.reset_layers()
        epoch_error = 0.0
        for pattern in self.training:
            actual = self.network.forward_pass(pattern.inputs)
            self.backpropagate(pattern.expected)
            self.accumulate()
            epoch_error += difference_total(pattern.expected, actual)
        self.update_weights(learn_rate, momentum)
        return epoch_error

    def validation_error(self) -> float:
        return self.network.validation_error(self.validation)

    # ------------------------------------------------------------------
    # Training loop

    def train_until_converged(self) -> TrainingResult:
        """Train in blocks of ``config.epochs`` while validation error keeps falling."""

        cfg = self.config
        momentum = cfg.momentum
        learn_rate = cfg.learn_rate
        prev_epoch_error = sys.float_info.max

        self.initialize()
        validation_error = self.validation_error()
        history = [validation_error]

        step = 0
        total_epochs = 0
        while True:
            step += 1
            self.logger.log_step(step)
            for epoch in range(1, cfg.epochs + 1):
                epoch_error = self.run_epoch(learn_rate, momentum)
                momentum = adapt_momentum(momentum, epoch_error, prev_epoch_error)
                learn_rate = adapt_learn_rate(
                    learn_rate, epoch_error, prev_epoch_error, cfg.max_learn_rate
                )
                prev_epoch_error = epoch_error
                total_epochs += 1
                self.logger.log_epoch(epoch, epoch_error, momentum, learn_rate)
                self._emit(
                    "train",
                    total_epochs,
                    {
                        "step": step,
                        "error": epoch_error,
                        "momentum": momentum,
                        "learn_rate": learn_rate,
                    },
                )

            prev_validation_error = validation_error
            validation_error = self.validation_error()
            history.append(validation_error)
            self._emit("val", step, {"validation_error": validation_error})
            if not validation_error < prev_validation_error:
                break

        return TrainingResult(
            steps=step,
            epochs=total_epochs,
            validation_error=validation_error,
            learn_rate=learn_rate,
            momentum=momentum,
            history=history,
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _emit(self, split: str, index: int, metrics: Mapping[str, float]) -> None:
        targets = list(self.split_loggers.get(split, []))
        if split == "train":
            targets = self.callbacks + targets
        for callback in targets:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(index, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(index, metrics)


__all__ = [
    "LEARN_RATE_BACKOFF",
    "LEARN_RATE_GROWTH",
    "Trainer",
    "TrainerConfig",
    "adapt_learn_rate",
    "adapt_momentum",
]
