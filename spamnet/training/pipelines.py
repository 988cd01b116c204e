"""Pipeline assembly: configs and presets in, trained weights and reports out."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.activations import REGISTRY as ACTIVATIONS
from ..core.network import LayerId, Network
from ..core.types import LabelEncoding, RunResult, ScoreReport
from ..data.prepare import HAM_FILENAME, SPAM_FILENAME, load_labeled, prepare
from ..data.vectors import load_vectors
from ..reporting.artifacts import dataset_provenance, write_manifest
from ..reporting.logger import MlpLogger
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .trainer import Trainer, TrainerConfig

DEFAULT_FUNCTIONS = ("tansig", "tansig", "logsig")
WEIGHTS_FILENAME = "weights.dat"

_PRESETS: Dict[str, Mapping[str, object]] = {
    "spam-default": {
        "data": {
            "ham_path": "vectors/train/ham.dat",
            "spam_path": "vectors/train/spam.dat",
            "validation_fraction": 1.0 / 3.0,
            "encoding": "ham-first",
            "eval_dir": "vectors/run",
        },
        "model": {"hidden": [10, 12], "functions": list(DEFAULT_FUNCTIONS)},
        "train": {
            "momentum": 0.9,
            "learn_rate": 1e-5,
            "epochs": 20,
            "max_initial_weight": 1e-5,
            "seed": 7,
            "max_learn_rate": 1.0,
            "run_dir": "runs/spam-default",
            "log_language": "en",
            "enable_plots": False,
        },
    },
    "spam-chi2-500": {
        "data": {
            "ham_path": "vectors/vector_chi2_500/ham",
            "spam_path": "vectors/vector_chi2_500/spam",
            "validation_fraction": 0.3,
            "encoding": "ham-first",
        },
        "model": {"hidden": [10, 10], "functions": list(DEFAULT_FUNCTIONS)},
        "train": {
            "momentum": 0.9,
            "learn_rate": 1e-5,
            "epochs": 20,
            "max_initial_weight": 1e-5,
            "seed": 7,
            "max_learn_rate": 1.0,
            "run_dir": "runs/spam-chi2-500",
            "weights_path": "vectors/vector_chi2_500/500_nn",
            "log_language": "en",
            "enable_plots": False,
        },
    },
    "spam-unbounded": {
        "data": {
            "ham_path": "vectors/train/ham.dat",
            "spam_path": "vectors/train/spam.dat",
            "validation_fraction": 1.0 / 3.0,
            "encoding": "ham-first",
            "eval_dir": "vectors/run",
        },
        "model": {"hidden": [10, 12], "functions": list(DEFAULT_FUNCTIONS)},
        "train": {
            "momentum": 0.9,
            "learn_rate": 1e-5,
            "epochs": 20,
            "max_initial_weight": 1e-5,
            "seed": 7,
            "max_learn_rate": None,
            "run_dir": "runs/spam-unbounded",
            "log_language": "pt",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Dict[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return dict(file_overrides[name])
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


# ----------------------------------------------------------------------
# Builders


def build_network(input_length: int, model_cfg: Mapping[str, object], output_length: int = 2) -> Network:
    hidden = [int(h) for h in model_cfg.get("hidden", [10, 12])]  # type: ignore[union-attr]
    if len(hidden) != 2:
        raise ValueError(f"Exactly two hidden layer sizes are required, got {hidden}")
    network = Network(input_length, hidden[0], hidden[1], output_length)
    apply_functions(network, model_cfg.get("functions", DEFAULT_FUNCTIONS))  # type: ignore[arg-type]
    return network


def apply_functions(network: Network, functions: Sequence[str]) -> None:
    if len(functions) != len(LayerId):
        raise ValueError(f"Expected {len(LayerId)} activation names, got {list(functions)}")
    for layer_id, name in zip(LayerId, functions):
        network.set_layer_function(layer_id, ACTIVATIONS.get(str(name)))


def _encoding(data_cfg: Mapping[str, object]) -> LabelEncoding:
    return LabelEncoding(str(data_cfg.get("encoding", LabelEncoding.HAM_FIRST.value)))


def _weights_path(train_cfg: Mapping[str, object], run_dir: Path) -> Path:
    configured = train_cfg.get("weights_path")
    return Path(str(configured)) if configured else run_dir / WEIGHTS_FILENAME


def _safe_config(config: Mapping[str, object]) -> Dict[str, object]:
    return json.loads(json.dumps(config))


def _print_startup_summary(
    *,
    ham_path: str,
    spam_path: str,
    dims: Sequence[int],
    functions: Sequence[str],
    training: int,
    validation: int,
    trainer_cfg: TrainerConfig,
    param_count: int,
) -> None:
    print("=== spamnet training ===")
    print(f"Ham vectors   : {ham_path}")
    print(f"Spam vectors  : {spam_path}")
    print(f"Dimensions    : {list(dims)}")
    print(f"Functions     : {list(functions)}")
    print(f"Patterns      : {training} train / {validation} validation")
    print(f"Epochs/step   : {trainer_cfg.epochs}")
    print(f"Momentum      : {trainer_cfg.momentum}")
    print(f"Learn rate    : {trainer_cfg.learn_rate} (max {trainer_cfg.max_learn_rate})")
    print(f"Seed          : {trainer_cfg.seed}")
    print(f"Parameters    : {param_count}")
    print("========================")


# ----------------------------------------------------------------------
# Runs


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Prepare data, train until validation error stops improving and save weights."""

    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config.get("model", {}))  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]

    ham_path = str(data_cfg["ham_path"])
    spam_path = str(data_cfg["spam_path"])
    data = prepare(
        ham_path,
        spam_path,
        float(data_cfg.get("validation_fraction", 1.0 / 3.0)),
        _encoding(data_cfg),
    )
    if not data.training:
        raise ValueError("validation_fraction leaves no training patterns")

    network = build_network(data.input_length, model_cfg)
    trainer_cfg = TrainerConfig.from_mapping(train_cfg)
    functions = [layer.function.name for layer in network.layers]

    run_dir = Path(str(train_cfg.get("run_dir", "runs/spamnet")))
    run_dir.mkdir(parents=True, exist_ok=True)
    weights_path = _weights_path(train_cfg, run_dir)

    _print_startup_summary(
        ham_path=ham_path,
        spam_path=spam_path,
        dims=network.dims,
        functions=functions,
        training=len(data.training),
        validation=len(data.validation),
        trainer_cfg=trainer_cfg,
        param_count=network.parameter_count(),
    )

    train_jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=trainer_cfg.seed)
    train_csv = CsvSink(run_dir / "metrics_train.csv", split="train")
    val_jsonl = JsonlSink(
        run_dir / "metrics_val.jsonl", split="val", index_key="step", seed=trainer_cfg.seed
    )
    val_csv = CsvSink(run_dir / "metrics_val.csv", split="val", index_key="step")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    log_path = run_dir / "train.log"
    with MlpLogger(log_path, language=str(train_cfg.get("log_language", "en"))) as logger:
        logger.log_train_head(
            network.dims,
            functions,
            seed=trainer_cfg.seed,
            epochs=trainer_cfg.epochs,
            momentum=trainer_cfg.momentum,
            learn_rate=trainer_cfg.learn_rate,
        )
        trainer = Trainer(
            network,
            data.training,
            data.validation,
            trainer_cfg,
            logger=logger,
            callbacks=[plots],
            split_loggers={"train": [train_jsonl, train_csv], "val": [val_jsonl, val_csv]},
        )
        result = trainer.train_until_converged()
        logger.log_separator()

    network.save(weights_path)
    plots.close()

    result_payload = {
        "steps": result.steps,
        "epochs": result.epochs,
        "validation_error": result.validation_error,
        "learn_rate": result.learn_rate,
        "momentum": result.momentum,
        "weights_path": str(weights_path),
    }
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=_safe_config(config),
        dataset_provenance=dataset_provenance([ham_path, spam_path]),
        result=result_payload,
    )
    summary_path = write_summary(
        train_jsonl.path,
        run_dir / "summary.json",
        tail=int(train_cfg.get("summary_tail", 20)),
        extra={"validation_history": list(result.history)},
    )
    (run_dir / "config.json").write_text(json.dumps(_safe_config(config), indent=2))

    return RunResult(
        steps=result.steps,
        weights_path=str(weights_path),
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        log_path=str(log_path),
    )


def run_evaluation(config: Mapping[str, object]) -> ScoreReport:
    """Score saved weights against ``eval_dir/ham.dat`` and ``eval_dir/spam.dat``."""

    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config.get("model", {}))  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]

    run_dir = Path(str(train_cfg.get("run_dir", "runs/spamnet")))
    eval_dir = Path(str(data_cfg.get("eval_dir", "vectors/run")))
    network = Network.load(_weights_path(train_cfg, run_dir))
    if "functions" in model_cfg:
        apply_functions(network, model_cfg["functions"])  # type: ignore[arg-type]
    patterns = load_labeled(eval_dir, _encoding(data_cfg))

    log_path = run_dir / "evaluation.log"
    with MlpLogger(log_path, language=str(train_cfg.get("log_language", "en"))) as logger:
        report = network.score_batch(patterns, logger)

    payload = {
        "total_error": report.total_error,
        "correct": report.correct,
        "incorrect": report.incorrect,
        "accuracy": report.accuracy,
        "files": [str(eval_dir / HAM_FILENAME), str(eval_dir / SPAM_FILENAME)],
    }
    (run_dir / "metrics_eval.json").write_text(json.dumps(payload, indent=2))
    return report


def classify_vectors(weights_path: str | Path, vectors_path: str | Path) -> List[np.ndarray]:
    """Raw output activations for every row of an unlabeled vector file."""

    network = Network.load(weights_path)
    return [network.classify(row) for row in load_vectors(vectors_path)]


__all__ = [
    "apply_functions",
    "build_network",
    "classify_vectors",
    "load_preset",
    "merge_config",
    "presets",
    "read_config_file",
    "run_evaluation",
    "run_pipeline",
]
