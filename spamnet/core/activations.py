"""Transfer functions for spamnet layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .types import Array

ComputeFn = Callable[[Array], Array]
DerivFn = Callable[[Array, Array], Array]


def tansig(x: Array) -> Array:
    """Return ``2 / (1 + exp(-2x)) - 1``."""

    with np.errstate(over="ignore"):
        return 2.0 / (1.0 + np.exp(-2.0 * x)) - 1.0


def tansig_deriv(x: Array, y: Array) -> Array:
    """Scale the back-propagated signal ``x`` by the tansig slope at output ``y``."""

    return x * (1.0 - y * y)


def logsig(x: Array) -> Array:
    """Return ``1 / (1 + exp(-x))``."""

    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def logsig_deriv(x: Array, y: Array) -> Array:
    return x * y * (1.0 - y)


@dataclass(frozen=True)
class Activation:
    """Pair of the forward map and its derivative combination."""

    name: str
    fn: ComputeFn
    deriv: DerivFn

    def __call__(self, x: Array) -> Array:
        return self.fn(x)

    def backward(self, signal: Array, output: Array) -> Array:
        return self.deriv(signal, output)


class ActivationRegistry:
    """Central registry for layer transfer functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Activation] = {}

    def register(self, name: str, fn: ComputeFn, deriv: DerivFn) -> None:
        self._registry[name] = Activation(name, fn, deriv)

    def get(self, name: str) -> Activation:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
        return self._registry[name]

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = ActivationRegistry()
REGISTRY.register("tansig", tansig, tansig_deriv)
REGISTRY.register("logsig", logsig, logsig_deriv)

TANSIG = REGISTRY.get("tansig")
LOGSIG = REGISTRY.get("logsig")

__all__ = [
    "Activation",
    "ActivationRegistry",
    "REGISTRY",
    "TANSIG",
    "LOGSIG",
    "tansig",
    "tansig_deriv",
    "logsig",
    "logsig_deriv",
]
