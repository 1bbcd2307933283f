"""
performance_engine/export_forest.py

Converts a pickled, already-fitted scikit-learn forest regressor (saved with
joblib.dump) into the JSON artifact the engine loads.

The regressor must have been fitted on the eight inputs in FEATURE_COLUMNS
order; nothing is fitted here.

Run
---
python -m performance_engine.export_forest --model model.pkl --out artifacts/forest.json
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import joblib

from performance_engine.config import ARTIFACT_DIR, LOG_FORMAT, LOG_LEVEL, MODEL_FILENAME
from performance_engine.forest import dump_forest, forest_from_estimator


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a fitted scikit-learn forest to forest.json.")
    parser.add_argument(
        "--model",
        type=str,
        required=True,
        help="Path to a joblib pickle of a fitted RandomForestRegressor/ExtraTreesRegressor/DecisionTreeRegressor.",
    )
    parser.add_argument(
        "--out",
        type=str,
        default=str(ARTIFACT_DIR / MODEL_FILENAME),
        help="Where to write the JSON forest.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    model_path = Path(args.model)
    if not model_path.exists():
        raise FileNotFoundError(f"Model pickle not found at {model_path}.")

    forest = forest_from_estimator(joblib.load(model_path))
    out_path = Path(args.out)
    dump_forest(forest, out_path)

    print(f"Exported {len(forest)} trees to {out_path.resolve()}")


if __name__ == "__main__":
    main()
