"""
performance_engine/inference.py

Purpose
-------
Inference-time entry points, kept apart from the Streamlit UI so the same code
serves the dashboard, the evaluate CLI and notebooks:
  - load_bundle: load the forest artifact (never fatal)
  - score: batch scoring of a DataFrame
  - PerformanceEngine: single-student predictions plus the evaluation log

Artifacts expected in artifacts/:
  - forest.json : pretrained regression forest, {"trees": [...]}
If it is missing or unreadable every prediction uses the heuristic formula.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from performance_engine.config import ARTIFACT_DIR, MODEL_FILENAME
from performance_engine.evaluation import EvaluationLog, EvaluationRecord, Metrics
from performance_engine.features import RawInputs, validate_features
from performance_engine.forest import Forest, load_forest
from performance_engine.scoring import SOURCE_FALLBACK, PredictionResult, predict


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelBundle:
    """
    Everything needed for scoring, kept together.

    forest is None when loading failed; error then says why. The bundle is
    immutable and can be shared by any number of concurrent predictions.
    """
    forest: Optional[Forest]
    error: Optional[str] = None

    @property
    def uses_fallback(self) -> bool:
        return self.forest is None or len(self.forest) == 0


def load_bundle(artifact_dir: Path = ARTIFACT_DIR, model_filename: str = MODEL_FILENAME) -> ModelBundle:
    """
    Load the forest artifact from `artifact_dir`.

    Unlike a missing feature schema, a missing model is not fatal: the
    returned bundle has forest=None and a message in `error`.
    """
    result = load_forest(Path(artifact_dir) / model_filename)
    return ModelBundle(forest=result.forest, error=result.error)


def score(df: pd.DataFrame, bundle: ModelBundle) -> pd.DataFrame:
    """
    Score every row of `df`.

    Returns
    -------
    pd.DataFrame
        Columns score (int 0–100), grade, risk and source, aligned to df.index.
    """
    X, _ = validate_features(df)

    results = [
        predict(RawInputs.from_vector(list(row)), bundle.forest)
        for row in X.itertuples(index=False)
    ]

    return pd.DataFrame(
        {
            "score": [r.score for r in results],
            "grade": [r.grade for r in results],
            "risk": [r.risk for r in results],
            "source": [r.source for r in results],
        },
        index=df.index,
    )


class PerformanceEngine:
    """
    The prediction and evaluation API behind the dashboard.

    predict() is a pure function of the inputs and the loaded bundle. The
    evaluation log is owned here and only changed through record_evaluation()
    and clear_evaluations().
    """

    def __init__(self, bundle: Optional[ModelBundle] = None) -> None:
        self.bundle = bundle if bundle is not None else ModelBundle(forest=None)
        self.log = EvaluationLog()

    @classmethod
    def from_artifacts(cls, artifact_dir: Path = ARTIFACT_DIR, model_filename: str = MODEL_FILENAME) -> "PerformanceEngine":
        return cls(load_bundle(artifact_dir, model_filename))

    @property
    def model_error(self) -> Optional[str]:
        return self.bundle.error

    def predict(self, raw: RawInputs) -> PredictionResult:
        result = predict(raw, self.bundle.forest)
        if result.source == SOURCE_FALLBACK:
            logger.debug("No usable forest; scored with fallback formula (score=%d)", result.score)
        return result

    def record_evaluation(self, actual: str, predicted: str) -> EvaluationRecord:
        return self.log.record(actual, predicted)

    def clear_evaluations(self) -> None:
        self.log.clear()

    def get_confusion_matrix(self):
        return self.log.confusion_matrix()

    def get_metrics(self) -> Metrics:
        return self.log.metrics()
