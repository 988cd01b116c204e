"""Core numerical primitives for spamnet."""

from . import activations, errors, layers, network, types

__all__ = ["activations", "errors", "layers", "network", "types"]
