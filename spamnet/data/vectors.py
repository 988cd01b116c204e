"""Reader and writer for per-class feature vector files.

Layout (big-endian)::

    int32   pattern count
    int32   feature vector length
    float64 count * length activations, one pattern after another
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import numpy as np

from ..core.errors import VectorFileError
from ..core.types import Array, Label, LabelEncoding, Pattern

INT_DTYPE = np.dtype(">i4")
FLOAT_DTYPE = np.dtype(">f8")
_HEADER = 2 * INT_DTYPE.itemsize


def decode_vectors(payload: bytes, *, source: str = "<bytes>") -> Array:
    """Decode a feature vector payload into a ``(count, length)`` array."""

    if len(payload) < _HEADER:
        raise VectorFileError(f"{source}: header needs {_HEADER} bytes, found {len(payload)}")
    count, length = (int(v) for v in np.frombuffer(payload, dtype=INT_DTYPE, count=2))
    if count < 0 or length < 0:
        raise VectorFileError(f"{source}: negative dimensions in header ({count}, {length})")
    needed = _HEADER + count * length * FLOAT_DTYPE.itemsize
    if len(payload) < needed:
        raise VectorFileError(
            f"{source}: declares {count} patterns of length {length} "
            f"({needed} bytes) but only {len(payload)} bytes were read"
        )
    flat = np.frombuffer(payload, dtype=FLOAT_DTYPE, count=count * length, offset=_HEADER)
    return flat.astype(np.float64).reshape(count, length)


def load_vectors(path: str | Path) -> Array:
    path = Path(path)
    return decode_vectors(path.read_bytes(), source=str(path))


def encode_vectors(features: Array) -> bytes:
    features = np.asarray(features, dtype=np.float64)
    if features.ndim != 2:
        raise ValueError(f"Expected a 2-D feature array, got shape {features.shape}")
    header = np.array(features.shape, dtype=INT_DTYPE).tobytes()
    return header + features.astype(FLOAT_DTYPE).tobytes()


def save_vectors(path: str | Path, features: Array) -> str:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_vectors(features))
    return str(path)


def load_patterns(
    path: str | Path,
    label: Label,
    encoding: LabelEncoding = LabelEncoding.HAM_FIRST,
) -> List[Pattern]:
    """Load ``path`` and tag every row with the one-hot target for ``label``."""

    target = encoding.target(label)
    return [Pattern(inputs=row, expected=target) for row in load_vectors(path)]


__all__ = [
    "decode_vectors",
    "encode_vectors",
    "load_patterns",
    "load_vectors",
    "save_vectors",
]
