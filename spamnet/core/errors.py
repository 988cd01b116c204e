"""Exception types raised by spamnet loaders."""

from __future__ import annotations


class VectorFileError(OSError):
    """A feature vector file holds fewer bytes than its header declares."""


class WeightFileError(ValueError):
    """A weight file's size disagrees with the dimensions in its header."""


__all__ = ["VectorFileError", "WeightFileError"]
