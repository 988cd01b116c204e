"""Reporting utilities for spamnet."""

from .artifacts import dataset_provenance, write_manifest
from .logger import MlpLogger, NullLogger
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import write_summary

__all__ = [
    "CsvSink",
    "JsonlSink",
    "MlpLogger",
    "NullLogger",
    "PlotAdapter",
    "dataset_provenance",
    "write_manifest",
    "write_summary",
]
