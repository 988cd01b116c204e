import json
from pathlib import Path

import numpy as np
import pytest

from spamnet.core.network import Network
from spamnet.data.vectors import save_vectors
from spamnet.training.pipelines import (
    build_network,
    classify_vectors,
    load_preset,
    merge_config,
    presets,
    run_evaluation,
    run_pipeline,
)


def _write_vectors(folder: Path) -> Path:
    # Both classes share one feature vector, so the balanced validation
    # error cannot keep falling and training ends after the first step.
    folder.mkdir(parents=True, exist_ok=True)
    row = np.array([0.2, -0.4, 0.6, 0.1])
    save_vectors(folder / "ham.dat", np.tile(row, (4, 1)))
    save_vectors(folder / "spam.dat", np.tile(row, (2, 1)))
    return folder


def _config(vectors: Path, run_dir: Path) -> dict:
    return merge_config(
        load_preset("spam-default"),
        {
            "data": {
                "ham_path": str(vectors / "ham.dat"),
                "spam_path": str(vectors / "spam.dat"),
                "validation_fraction": 0.5,
                "eval_dir": str(vectors),
            },
            "model": {"hidden": [3, 3]},
            "train": {
                "epochs": 3,
                "learn_rate": 0.01,
                "max_initial_weight": 0.3,
                "run_dir": str(run_dir),
            },
        },
    )


def _errors(path: str) -> list[float]:
    lines = Path(path).read_text().splitlines()
    return [json.loads(line)["error"] for line in lines if line.strip()]


def test_run_pipeline_writes_all_artifacts(tmp_path):
    vectors = _write_vectors(tmp_path / "vectors")
    run_dir = tmp_path / "run"
    result = run_pipeline(_config(vectors, run_dir))

    assert result.steps >= 1
    for name in (
        "weights.dat",
        "metrics_train.jsonl",
        "metrics_train.csv",
        "metrics_val.jsonl",
        "metrics_val.csv",
        "manifest.json",
        "summary.json",
        "config.json",
        "train.log",
    ):
        assert (run_dir / name).exists(), name

    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert len(records) == 3 * result.steps
    assert records[0]["epoch"] == 1
    assert {"step", "error", "momentum", "learn_rate", "split"} <= set(records[0])

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["result"]["steps"] == result.steps
    assert len(manifest["dataset"]["files"]) == 2
    assert manifest["config"]["model"]["hidden"] == [3, 3]

    summary = json.loads(Path(result.summary_path).read_text())
    assert summary["records"] == len(records)
    assert len(summary["validation_history"]) == result.steps + 1

    log = Path(result.log_path).read_text(encoding="utf-8")
    assert log.startswith("MLP")
    assert "> Step 1" in log

    network = Network.load(result.weights_path)
    assert network.dims == [4, 3, 3, 2]


def test_run_pipeline_is_deterministic(tmp_path):
    vectors = _write_vectors(tmp_path / "vectors")
    first = run_pipeline(_config(vectors, tmp_path / "a"))
    second = run_pipeline(_config(vectors, tmp_path / "b"))
    assert _errors(first.metrics_path) == _errors(second.metrics_path)
    assert Path(first.weights_path).read_bytes() == Path(second.weights_path).read_bytes()


def test_evaluation_and_classification_use_saved_weights(tmp_path):
    vectors = _write_vectors(tmp_path / "vectors")
    run_dir = tmp_path / "run"
    config = _config(vectors, run_dir)
    result = run_pipeline(config)

    report = run_evaluation(config)
    assert report.correct + report.incorrect == 6
    assert (run_dir / "evaluation.log").exists()
    payload = json.loads((run_dir / "metrics_eval.json").read_text())
    assert payload["correct"] == report.correct

    outputs = classify_vectors(result.weights_path, vectors / "spam.dat")
    assert len(outputs) == 2
    assert all(out.shape == (2,) for out in outputs)


def test_presets_and_network_builder():
    names = set(presets())
    assert {"spam-default", "spam-chi2-500", "spam-unbounded"} <= names
    assert load_preset("spam-unbounded")["train"]["max_learn_rate"] is None
    with pytest.raises(KeyError):
        load_preset("missing")

    network = build_network(8, {"hidden": [5, 6], "functions": ["logsig", "tansig", "logsig"]})
    assert network.dims == [8, 5, 6, 2]
    assert network.layers[0].function.name == "logsig"
    with pytest.raises(ValueError):
        build_network(8, {"hidden": [5]})
