"""Metrics sinks for training runs."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Mapping

from .artifacts import _git_sha


class JsonlSink:
    """Append-only JSONL writer for metrics."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        index_key: str = "epoch",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.index_key = index_key
        self.seed = seed
        self.sha = sha or _git_sha()

    def _write(self, index: int, metrics: Mapping[str, float]) -> None:
        record = {
            self.index_key: int(index),
            "split": self.split,
            "seed": self.seed,
            "sha": self.sha,
        }
        record.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._write(epoch, metrics)

    __call__ = on_epoch


class CsvSink:
    """Write metrics to CSV with a stable schema."""

    def __init__(self, path: str | Path, *, split: str = "train", index_key: str = "epoch") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.index_key = index_key

    def _write(self, index: int, metrics: Mapping[str, float]) -> None:
        row = {self.index_key: int(index), "split": self.split}
        row.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            fieldnames = sorted(row.keys())
            writer = csv.DictWriter(handle, fieldnames=fieldnames)
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._write(epoch, metrics)


__all__ = ["CsvSink", "JsonlSink"]
