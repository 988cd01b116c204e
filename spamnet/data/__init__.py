"""Feature vector loaders and data preparation."""

from .prepare import (
    PreparedData,
    balance,
    load_labeled,
    merge,
    partition,
    prepare,
    replicate,
    split,
)
from .vectors import load_patterns, load_vectors, save_vectors

__all__ = [
    "PreparedData",
    "balance",
    "load_labeled",
    "load_patterns",
    "load_vectors",
    "merge",
    "partition",
    "prepare",
    "replicate",
    "save_vectors",
    "split",
]
