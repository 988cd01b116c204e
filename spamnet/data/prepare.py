"""Class balancing and train/validation partitioning of labelled patterns."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, TypeVar

from ..core.types import Label, LabelEncoding, Pattern
from .vectors import load_patterns

T = TypeVar("T")

HAM_FILENAME = "ham.dat"
SPAM_FILENAME = "spam.dat"


@dataclass(frozen=True)
class PreparedData:
    """Balanced training and validation sets."""

    training: List[Pattern]
    validation: List[Pattern]
    class_length: int

    @property
    def input_length(self) -> int:
        return int(self.training[0].inputs.shape[0]) if self.training else 0


def replicate(items: Sequence[T], new_size: int) -> List[T]:
    """Repeat ``items`` end to end until ``new_size`` elements are produced.

    The result holds ``new_size // len(items)`` full copies followed by the
    first ``new_size % len(items)`` elements; the elements themselves are
    shared, not copied.
    """

    if not items:
        raise ValueError("Cannot replicate an empty pattern list")
    full, remainder = divmod(new_size, len(items))
    return list(items) * full + list(items[:remainder])


def split(items: Sequence[T], index: int) -> Tuple[List[T], List[T]]:
    return list(items[:index]), list(items[index:])


def merge(first: Sequence[T], second: Sequence[T]) -> List[T]:
    return list(first) + list(second)


def balance(ham: Sequence[T], spam: Sequence[T]) -> Tuple[List[T], List[T]]:
    """Grow the shorter class cyclically to the length of the longer one."""

    if not ham or not spam:
        raise ValueError("Both ham and spam must contain at least one pattern")
    if len(spam) < len(ham):
        return list(ham), replicate(spam, len(ham))
    if len(ham) < len(spam):
        return replicate(ham, len(spam)), list(spam)
    return list(ham), list(spam)


def partition(
    ham: Sequence[Pattern], spam: Sequence[Pattern], validation_fraction: float
) -> PreparedData:
    """Balance, split each class, then concatenate spam before ham."""

    if not 0.0 <= validation_fraction <= 1.0:
        raise ValueError("validation_fraction must be in [0, 1]")
    ham, spam = balance(ham, spam)
    if ham[0].inputs.shape != spam[0].inputs.shape:
        raise ValueError(
            f"Ham vectors have length {ham[0].inputs.shape[0]} "
            f"but spam vectors have length {spam[0].inputs.shape[0]}"
        )
    length = len(ham)
    train_length = int(length * (1.0 - validation_fraction))
    ham_train, ham_val = split(ham, train_length)
    spam_train, spam_val = split(spam, train_length)
    return PreparedData(
        training=merge(spam_train, ham_train),
        validation=merge(spam_val, ham_val),
        class_length=length,
    )


def prepare(
    ham_path: str | Path,
    spam_path: str | Path,
    validation_fraction: float,
    encoding: LabelEncoding = LabelEncoding.HAM_FIRST,
) -> PreparedData:
    """Load both class files and build balanced training/validation sets."""

    ham = load_patterns(ham_path, Label.HAM, encoding)
    spam = load_patterns(spam_path, Label.SPAM, encoding)
    return partition(ham, spam, validation_fraction)


def load_labeled(
    folder: str | Path, encoding: LabelEncoding = LabelEncoding.HAM_FIRST
) -> List[Pattern]:
    """Load ``ham.dat`` then ``spam.dat`` from ``folder`` without balancing."""

    folder = Path(folder)
    ham = load_patterns(folder / HAM_FILENAME, Label.HAM, encoding)
    spam = load_patterns(folder / SPAM_FILENAME, Label.SPAM, encoding)
    return merge(ham, spam)


__all__ = [
    "HAM_FILENAME",
    "SPAM_FILENAME",
    "PreparedData",
    "balance",
    "load_labeled",
    "merge",
    "partition",
    "prepare",
    "replicate",
    "split",
]
