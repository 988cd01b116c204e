"""Core typing contracts for spamnet."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np

Array = np.ndarray

MAX_DIFFERENCE = 0.4
"""Largest per-unit distance between expected and actual that still counts as correct."""

AMBIGUOUS_LOW = 0.4
AMBIGUOUS_HIGH = 0.6


class Label(enum.Enum):
    """Document classes recognised by the network."""

    HAM = "ham"
    SPAM = "spam"


class LabelEncoding(enum.Enum):
    """One-hot target convention chosen once at data-load time.

    ``HAM_FIRST`` is the canonical encoding used when training
    (ham = ``[1, 0]``, spam = ``[0, 1]``). ``SPAM_FIRST`` is the mirrored
    convention, kept for weight files trained against it.
    """

    HAM_FIRST = "ham-first"
    SPAM_FIRST = "spam-first"

    def target(self, label: Label) -> Array:
        first = (label is Label.HAM) == (self is LabelEncoding.HAM_FIRST)
        out = np.array([1.0, 0.0] if first else [0.0, 1.0], dtype=np.float64)
        out.setflags(write=False)
        return out

    def is_ham(self, outputs: Array) -> bool:
        return matches(self.target(Label.HAM), outputs)

    def is_spam(self, outputs: Array) -> bool:
        return matches(self.target(Label.SPAM), outputs)


def matches(expected: Array, actual: Array) -> bool:
    """Return ``True`` when every unit is within :data:`MAX_DIFFERENCE`."""

    diff = np.abs(np.asarray(expected, dtype=np.float64) - np.asarray(actual, dtype=np.float64))
    return bool(np.all(diff <= MAX_DIFFERENCE))


def _frozen(values) -> Array:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class Pattern:
    """A feature vector paired with its expected network output."""

    inputs: Array
    expected: Array

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", _frozen(self.inputs))
        object.__setattr__(self, "expected", _frozen(self.expected))


@dataclass(frozen=True)
class PatternAssessment:
    """Classification of one network output against its target."""

    error: float
    correct: bool
    ambiguous: bool


@dataclass(frozen=True)
class ScoreReport:
    """Summary returned by :meth:`spamnet.core.network.Network.score_batch`."""

    total_error: float
    correct: int
    incorrect: int

    @property
    def accuracy(self) -> float:
        total = self.correct + self.incorrect
        return self.correct / total if total else float("nan")


@dataclass(frozen=True)
class TrainingResult:
    """Summary returned by :meth:`spamnet.training.trainer.Trainer.train_until_converged`."""

    steps: int
    epochs: int
    validation_error: float
    learn_rate: float
    momentum: float
    history: list[float] = field(default_factory=list, compare=False)


@dataclass(frozen=True)
class RunResult:
    """Paths produced by a pipeline run."""

    steps: int
    weights_path: str
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    log_path: str = ""
