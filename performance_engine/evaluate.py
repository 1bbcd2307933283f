"""
performance_engine/evaluate.py

Scores a labelled CSV and measures how well the predicted grades match the
actual ones.

Saves:
  artifacts/metrics.json           (accuracy, per-class + macro precision/recall/f1, matrix)
  artifacts/confusion_matrix.csv   (rows = actual, columns = predicted)

Run (default)
-------------
python -m performance_engine.evaluate

Run (custom)
------------
python -m performance_engine.evaluate --data data/students.csv --actual-col actual_grade --model artifacts/forest.json
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict

import pandas as pd

from performance_engine.config import ARTIFACT_DIR, DEFAULT_DATA_PATH, LOG_FORMAT, LOG_LEVEL, MODEL_FILENAME
from performance_engine.evaluation import EvaluationLog
from performance_engine.inference import load_bundle, score
from performance_engine.scoring import GRADE_LABELS


logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate predicted grades against actual grades.")
    parser.add_argument(
        "--data",
        type=str,
        default=str(DEFAULT_DATA_PATH),
        help="Path to CSV with the model inputs and an actual-grade column.",
    )
    parser.add_argument(
        "--actual-col",
        type=str,
        default="actual_grade",
        help="Name of the column holding the actual letter grade (A–F).",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=str(ARTIFACT_DIR / MODEL_FILENAME),
        help="Path to forest.json. If missing, the fallback formula is used.",
    )
    parser.add_argument(
        "--out-dir",
        type=str,
        default=str(ARTIFACT_DIR),
        help="Directory to write metrics.json and confusion_matrix.csv.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=LOG_LEVEL,
        help="Logging level (DEBUG, INFO, WARNING, ...).",
    )
    return parser.parse_args(argv)


def _model_source(sources: pd.Series, bundle) -> str:
    """
    Which scorer produced the rows: "forest", "fallback", or "mixed" when a
    non-finite forest mean sent some rows to the fallback.
    """
    used = set(sources)
    if len(used) == 1:
        return used.pop()
    if len(used) > 1:
        return "mixed"
    return "fallback" if bundle.uses_fallback else "forest"


def evaluate_frame(df: pd.DataFrame, actual_col: str, bundle) -> Dict:
    """
    Score `df`, fold (actual, predicted) pairs into a confusion matrix and
    return a JSON-ready report.

    Rows whose actual grade is not one of A–F are counted under
    "rows_skipped" and left out of the matrix.
    """
    if actual_col not in df.columns:
        raise ValueError(f"actual-col '{actual_col}' not found in CSV columns.")

    scored = score(df, bundle)
    actual = df[actual_col].astype(str).str.strip().str.upper()

    log = EvaluationLog()
    for a, p in zip(actual, scored["grade"]):
        log.record(a, p)

    matrix = log.confusion_matrix()
    metrics = log.metrics()

    report = metrics.to_dict()
    report.update(
        {
            "labels": list(GRADE_LABELS),
            "confusion_matrix": matrix.tolist(),
            "n_rows": int(len(df)),
            "rows_scored": int(matrix.sum()),
            "rows_skipped": int(len(df) - matrix.sum()),
            "model_source": _model_source(scored["source"], bundle),
            "rows_by_source": {str(k): int(v) for k, v in scored["source"].value_counts().items()},
            "model_error": bundle.error,
        }
    )
    return report


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    data_path = Path(args.data)
    if not data_path.exists():
        raise FileNotFoundError(
            f"Evaluation data not found at {data_path}. "
            f"Generate it first: python -m performance_engine.make_synthetic_data"
        )

    model_path = Path(args.model)
    bundle = load_bundle(model_path.parent, model_path.name)

    df = pd.read_csv(data_path)
    report = evaluate_frame(df, args.actual_col, bundle)
    report["data_path"] = str(data_path)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "metrics.json").write_text(json.dumps(report, indent=2))
    pd.DataFrame(
        report["confusion_matrix"],
        index=pd.Index(GRADE_LABELS, name="actual"),
        columns=list(GRADE_LABELS),
    ).to_csv(out_dir / "confusion_matrix.csv")

    if report["rows_skipped"]:
        logger.warning("Skipped %d rows with unknown actual grade.", report["rows_skipped"])

    print("Evaluation complete.")
    print(f"Saved artifacts to: {out_dir.resolve()}")
    print(f"Model={report['model_source']} | Rows={report['rows_scored']} | Accuracy={report['accuracy']:.3f}")
    macro = report["macro"]
    print(f"Macro Precision={macro['precision']:.3f} Recall={macro['recall']:.3f} F1={macro['f1']:.3f}")


if __name__ == "__main__":
    main()
