import json

import numpy as np
import pytest

from cli.main import main
from spamnet.data.vectors import save_vectors


def _last_json(capsys):
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


@pytest.fixture
def vectors(tmp_path):
    folder = tmp_path / "vectors"
    folder.mkdir()
    row = np.array([0.5, -0.5, 0.25])
    save_vectors(folder / "ham.dat", np.tile(row, (3, 1)))
    save_vectors(folder / "spam.dat", np.tile(row, (3, 1)))
    return folder


def _common(vectors, run_dir):
    return [
        "--ham",
        str(vectors / "ham.dat"),
        "--spam",
        str(vectors / "spam.dat"),
        "--eval-dir",
        str(vectors),
        "--run-dir",
        str(run_dir),
        "--hidden",
        "2",
        "3",
        "--epochs",
        "2",
        "--learn-rate",
        "0.01",
        "--validation-fraction",
        "0.5",
    ]


def test_train_evaluate_classify(tmp_path, vectors, capsys):
    run_dir = tmp_path / "run"
    dump = tmp_path / "resolved.json"
    main(["train", *_common(vectors, run_dir), "--dump-config", str(dump), "--unbounded"])
    trained = _last_json(capsys)
    assert trained["steps"] >= 1
    assert (run_dir / "weights.dat").exists()
    resolved = json.loads(dump.read_text())
    assert resolved["model"]["hidden"] == [2, 3]
    assert resolved["train"]["max_learn_rate"] is None

    main(["evaluate", *_common(vectors, run_dir)])
    scored = _last_json(capsys)
    assert scored["correct"] + scored["incorrect"] == 6

    main(["classify", *_common(vectors, run_dir), "--vectors", str(vectors / "ham.dat")])
    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(rows) == 3
    assert all(len(row) == 2 for row in rows)


def test_config_file_overrides_preset(tmp_path, vectors, capsys):
    config = tmp_path / "override.yaml"
    config.write_text("train:\n  seed: 11\n  log_language: pt\n")
    run_dir = tmp_path / "run"
    main(["train", *_common(vectors, run_dir), "--config", str(config)])
    _last_json(capsys)
    saved = json.loads((run_dir / "config.json").read_text())
    assert saved["train"]["seed"] == 11
    assert "Semente = 11" in (run_dir / "train.log").read_text(encoding="utf-8")


def test_list_presets_exits(capsys):
    with pytest.raises(SystemExit):
        main(["--list-presets"])
    assert "spam-default" in capsys.readouterr().out


def test_classify_requires_vectors(tmp_path, vectors):
    with pytest.raises(SystemExit):
        main(["classify", "--run-dir", str(tmp_path / "run")])
