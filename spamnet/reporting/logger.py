"""Human-readable training and scoring log."""

from __future__ import annotations

from pathlib import Path
from typing import IO, Mapping

I18N_EN: Mapping[str, str] = {
    "Step": "Step",
    "Epoch": "Epoch",
    "Error": "error",
    "Error.Unknown": "Error type: unclassified",
    "Error.False": "Error type: false positive",
    "Momentum": "momentum",
    "LearnRate": "learn rate",
    "FirstHiddenLayer": "First hidden layer",
    "SecondHiddenLayer": "Second hidden layer",
    "OutputLayer": "Output layer",
    "Length": "Neurons",
    "Function": "Function",
    "Seed": "Seed",
    "Epochs": "Epochs",
    "InitMomentum": "Initial momentum",
    "InitLearnRate": "Initial learn rate",
    "Pattern": "Pattern",
    "Correct": "CORRECT",
    "Incorrect": "INCORRECT",
    "TotalError": "Total error",
    "Pattern.Correct": "Patterns classified correctly",
    "Pattern.Incorrect": "Patterns classified incorrectly",
    "Pattern.Result": "expected [obtained]",
}

I18N_PT: Mapping[str, str] = {
    "Step": "Passo",
    "Epoch": "Época",
    "Error": "erro",
    "Error.Unknown": "Tipo de erro: sem classificação",
    "Error.False": "Tipo de erro: falso positivo",
    "Momentum": "momentum",
    "LearnRate": "learn rate",
    "FirstHiddenLayer": "Primeira camada escondida",
    "SecondHiddenLayer": "Segunda camada escondida",
    "OutputLayer": "Camada de saída",
    "Length": "Neurônios",
    "Function": "Função",
    "Seed": "Semente",
    "Epochs": "Épocas",
    "InitMomentum": "Momentum inicial",
    "InitLearnRate": "Taxa de aprendizado inicial (learn rate)",
    "Pattern": "Padrão",
    "Correct": "CORRETO",
    "Incorrect": "INCORRETO",
    "TotalError": "Erro Total",
    "Pattern.Correct": "Padrões classificados corretamente",
    "Pattern.Incorrect": "Padrões classificados incorretamente",
    "Pattern.Result": "espera [obtido]",
}

LANGUAGES: Mapping[str, Mapping[str, str]] = {"en": I18N_EN, "pt": I18N_PT}

SEPARATOR = "\n\n" + "-" * 79 + "\n\n"


class MlpLogger:
    """Buffered text log of training steps, epochs and per-pattern results.

    Write failures are discarded so a broken log never interrupts training.
    """

    def __init__(self, path: str | Path, *, language: str = "en") -> None:
        if language not in LANGUAGES:
            available = ", ".join(sorted(LANGUAGES))
            raise KeyError(f"Unknown log language {language!r}. Available languages: {available}")
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._text = LANGUAGES[language]
        self._handle: IO[str] | None = self.path.open("w", encoding="utf-8")

        self._step = self._fmt("\n> ", "Step", " ")
        self._epoch = self._fmt("\n\n\t> ", "Epoch", " ")
        self._error = self._fmt("\n\t\t> ", "Error", " = ")
        self._momentum = self._fmt("\n\t\t> ", "Momentum", " = ")
        self._learn_rate = self._fmt("\n\t\t> ", "LearnRate", " = ")
        self._pattern = self._fmt("\n\t> ", "Pattern", " ")
        self._correct = self._fmt(": ", "Correct", "")
        self._incorrect = self._fmt(": ", "Incorrect", "")
        self._total_error = self._fmt("\n\n> ", "TotalError", " = ")
        self._error_false = self._fmt("\n\t\t> ", "Error.False", "")
        self._error_unknown = self._fmt("\n\t\t> ", "Error.Unknown", "")
        self._pattern_correct = self._fmt("\n> ", "Pattern.Correct", " = ")
        self._pattern_incorrect = self._fmt("\n> ", "Pattern.Incorrect", " = ")
        self._pattern_result = self._fmt("\n\t\t> ", "Pattern.Result", " = ")

    def _fmt(self, before: str, key: str, after: str) -> str:
        return before + self._text[key] + after

    def _append(self, text: str) -> None:
        if self._handle is None:
            return
        try:
            self._handle.write(text)
        except (OSError, ValueError):
            pass

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        except OSError:  # pragma: no cover - flush failure on close
            pass
        self._handle = None

    def __enter__(self) -> "MlpLogger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Training

    def log_train_head(
        self,
        dims,
        functions,
        *,
        seed: int,
        epochs: int,
        momentum: float,
        learn_rate: float,
    ) -> None:
        t = self._text
        h1, h2 = dims[1], dims[2]
        h1_fn, h2_fn, out_fn = functions
        lines = [
            "MLP",
            f"\n\t> {t['FirstHiddenLayer']}",
            f"\n\t\t> {t['Length']} = {h1}",
            f"\n\t\t> {t['Function']} = {h1_fn}",
            f"\n\t> {t['SecondHiddenLayer']}",
            f"\n\t\t> {t['Length']} = {h2}",
            f"\n\t\t> {t['Function']} = {h2_fn}",
            f"\n\t> {t['OutputLayer']}",
            f"\n\t\t> {t['Function']} = {out_fn}",
            f"\n\t> {t['Seed']} = {seed}",
            f"\n\t> {t['Epochs']} = {epochs}",
            f"\n\t> {t['InitMomentum']} = {momentum!r}",
            f"\n\t> {t['InitLearnRate']} = {learn_rate!r}",
            "\n\n",
        ]
        self._append("".join(lines))

    def log_separator(self) -> None:
        self._append(SEPARATOR)

    def log_step(self, step: int) -> None:
        self._append(f"{self._step}{step}")

    def log_epoch(self, epoch: int, error: float, momentum: float, learn_rate: float) -> None:
        self._append(f"{self._epoch}{epoch}")
        self.log_error(error)
        self._append(f"{self._momentum}{momentum!r}")
        self._append(f"{self._learn_rate}{learn_rate!r}")
        self._append("\n")

    def log_error(self, error: float) -> None:
        self._append(f"{self._error}{error!r}")

    # ------------------------------------------------------------------
    # Scoring

    def log_pattern(self, index: int, correct: bool) -> None:
        self._append(f"{self._pattern}{index}{self._correct if correct else self._incorrect}")

    def log_error_type(self, ambiguous: bool) -> None:
        self._append(self._error_unknown if ambiguous else self._error_false)

    def log_result(self, expected: float, actual: float) -> None:
        self._append(f"{self._pattern_result}{expected!r} [{actual!r}]")

    def log_total_error(self, total: float) -> None:
        self._append(f"{self._total_error}{total!r}")

    def log_correct_count(self, count: int) -> None:
        self._append(f"{self._pattern_correct}{count}")

    def log_incorrect_count(self, count: int) -> None:
        self._append(f"{self._pattern_incorrect}{count}")


class NullLogger:
    """Logger that discards every call."""

    def __getattr__(self, name: str):
        if name.startswith("log_") or name == "close":
            return lambda *args, **kwargs: None
        raise AttributeError(name)


__all__ = ["I18N_EN", "I18N_PT", "LANGUAGES", "MlpLogger", "NullLogger"]
