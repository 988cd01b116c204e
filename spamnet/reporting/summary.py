"""Deterministic training summaries built from JSONL metric files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

import numpy as np

_NON_METRIC_KEYS = {"epoch", "step", "seed", "split", "sha"}


def _read_records(path: Path) -> list[Mapping[str, object]]:
    records: list[Mapping[str, object]] = []
    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if line:
                records.append(json.loads(line))
    return records


def _extract_numeric(records: Iterable[Mapping[str, object]]) -> Mapping[str, list[float]]:
    metrics: dict[str, list[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in _NON_METRIC_KEYS:
                continue
            if isinstance(value, (int, float)):
                metrics.setdefault(key, []).append(float(value))
    return metrics


def summarise(records: list[Mapping[str, object]], tail: int) -> Mapping[str, object]:
    tail_window = min(tail, len(records)) if records else 0
    summary_metrics: dict[str, Mapping[str, float]] = {}
    for name, values in _extract_numeric(records).items():
        arr = np.asarray(values, dtype=np.float64)
        tail_arr = arr[-tail_window:] if tail_window else arr
        summary_metrics[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "first": float(arr[0]),
            "last": float(arr[-1]),
            "argmin": int(np.argmin(arr)),
            "tail_mean": float(np.mean(tail_arr)),
        }
    return {
        "version": 1,
        "records": len(records),
        "tail_window": tail_window,
        "metrics": summary_metrics,
    }


def write_summary(
    metrics_jsonl: str | Path,
    out_summary_json: str | Path,
    *,
    tail: int = 20,
    extra: Mapping[str, object] | None = None,
) -> str:
    """Write a deterministic summary for ``metrics_jsonl``."""

    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = dict(summarise(_read_records(Path(metrics_jsonl)), tail))
    if extra:
        summary.update(extra)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["summarise", "write_summary"]
