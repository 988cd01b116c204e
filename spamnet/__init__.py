"""spamnet public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.network import LayerId, Network
from .core.types import Label, LabelEncoding, Pattern
from .data.prepare import prepare
from .training.pipelines import load_preset, presets, run_evaluation, run_pipeline
from .training.trainer import Trainer, TrainerConfig

__all__ = [
    "Label",
    "LabelEncoding",
    "LayerId",
    "Network",
    "Pattern",
    "Trainer",
    "TrainerConfig",
    "activations",
    "load_preset",
    "prepare",
    "presets",
    "run_evaluation",
    "run_pipeline",
    "types",
]
