"""Command line entry point for spamnet training and scoring."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from spamnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "weights": result.weights_path,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "log": result.log_path,
    }
    if getattr(result, "summary_path", ""):
        payload["summary"] = result.summary_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "command",
        nargs="?",
        choices=["train", "evaluate", "classify"],
        default="train",
        help="train a network, score saved weights, or classify unlabeled vectors",
    )
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="spam-default",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--ham", help="Ham feature vector file")
    parser.add_argument("--spam", help="Spam feature vector file")
    parser.add_argument("--eval-dir", help="Folder holding ham.dat and spam.dat to score")
    parser.add_argument("--vectors", type=Path, help="Unlabeled vector file for `classify`")
    parser.add_argument("--weights", help="Weight file to write (train) or read")
    parser.add_argument("--run-dir", help="Directory for logs and metrics")
    parser.add_argument(
        "--hidden",
        type=int,
        nargs=2,
        metavar=("H1", "H2"),
        help="Sizes of the two hidden layers",
    )
    parser.add_argument("--epochs", type=int, help="Epochs per validation step")
    parser.add_argument("--momentum", type=float, help="Initial momentum")
    parser.add_argument("--learn-rate", type=float, help="Initial learn rate")
    parser.add_argument("--max-learn-rate", type=float, help="Ceiling for learn-rate growth")
    parser.add_argument(
        "--unbounded",
        action="store_true",
        help="Let the learn rate grow without a ceiling",
    )
    parser.add_argument("--validation-fraction", type=float, help="Share held out for validation")
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation")
    parser.add_argument(
        "--encoding",
        choices=["ham-first", "spam-first"],
        help="One-hot target convention",
    )
    parser.add_argument("--language", choices=["en", "pt"], help="Language of the text log")
    parser.add_argument("--enable-plots", action="store_true", help="Write error.png")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def _apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    data = config.setdefault("data", {})
    model = config.setdefault("model", {})
    train = config.setdefault("train", {})

    for key, value in (
        ("ham_path", args.ham),
        ("spam_path", args.spam),
        ("eval_dir", args.eval_dir),
        ("encoding", args.encoding),
        ("validation_fraction", args.validation_fraction),
    ):
        if value is not None:
            data[key] = value
    if args.hidden is not None:
        model["hidden"] = list(args.hidden)
    for key, value in (
        ("weights_path", args.weights),
        ("run_dir", args.run_dir),
        ("epochs", args.epochs),
        ("momentum", args.momentum),
        ("learn_rate", args.learn_rate),
        ("max_learn_rate", args.max_learn_rate),
        ("seed", args.seed),
        ("log_language", args.language),
    ):
        if value is not None:
            train[key] = value
    if args.unbounded:
        train["max_learn_rate"] = None
    if args.enable_plots:
        train["enable_plots"] = True
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = pipelines.load_preset(args.preset)
    config = json.loads(json.dumps(config))

    if args.config:
        override = pipelines.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    config = _apply_overrides(config, args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    if args.command == "train":
        print(_format_result(pipelines.run_pipeline(config)))
    elif args.command == "evaluate":
        report = pipelines.run_evaluation(config)
        print(
            json.dumps(
                {
                    "total_error": report.total_error,
                    "correct": report.correct,
                    "incorrect": report.incorrect,
                    "accuracy": report.accuracy,
                },
                sort_keys=True,
            )
        )
    else:
        if args.vectors is None:
            raise SystemExit("classify requires --vectors")
        train_cfg = config.get("train", {})
        run_dir = Path(str(train_cfg.get("run_dir", "runs/spamnet")))
        weights = train_cfg.get("weights_path") or run_dir / pipelines.WEIGHTS_FILENAME
        for outputs in pipelines.classify_vectors(weights, args.vectors):
            print(json.dumps([float(v) for v in outputs]))


if __name__ == "__main__":
    main()
