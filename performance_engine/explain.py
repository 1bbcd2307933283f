"""
performance_engine/explain.py

Local SHAP explanation of one prediction.

KernelExplainer is model-agnostic, so the same explanation works whether the
score comes from the forest or from the fallback formula. The explained
quantity is the unrounded score, before clamping to [0, 100] and bucketing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
import shap

from performance_engine.data_dictionary import FEATURE_COLUMNS
from performance_engine.forest import Forest
from performance_engine.make_synthetic_data import generate_student_dataset
from performance_engine.scoring import raw_score


@dataclass(frozen=True)
class Explanation:
    base_value: float
    prediction: float
    contributions: Dict[str, float]

    def to_frame(self) -> pd.DataFrame:
        """Contributions sorted by absolute size, largest first."""
        s = pd.Series(self.contributions, name="contribution")
        return s.reindex(s.abs().sort_values(ascending=False).index).to_frame()


def make_score_function(forest: Optional[Forest]):
    """Vectorized f(X) -> raw scores, the form SHAP explainers expect."""

    def f(X):
        X = np.atleast_2d(np.asarray(X, dtype=float))
        return np.array([raw_score(forest, list(row)) for row in X])

    return f


def default_background(n_rows: int = 50, random_state: int = 0) -> pd.DataFrame:
    df = generate_student_dataset(n_students=n_rows, random_state=random_state)
    return df[FEATURE_COLUMNS]


def explain_prediction(
    features: Sequence[float],
    forest: Optional[Forest],
    background=None,
    nsamples="auto",
) -> Explanation:
    """
    Attribute the score for `features` to each input.

    base_value + sum(contributions) equals the raw score of `features`.

    Parameters
    ----------
    features : Sequence[float]
        One feature vector, in FEATURE_COLUMNS order.
    forest : Forest or None
        Loaded forest; None explains the fallback formula.
    background : array-like, optional
        Reference rows. Kept small (tens of rows); KernelExplainer cost grows
        with it. Defaults to a synthetic sample.
    """
    if background is None:
        background = default_background()
    bg = np.asarray(background, dtype=float)

    f = make_score_function(forest)
    explainer = shap.KernelExplainer(f, bg)

    x = np.asarray(features, dtype=float).reshape(1, -1)
    values = np.asarray(explainer.shap_values(x, nsamples=nsamples, silent=True), dtype=float).reshape(-1)

    return Explanation(
        base_value=float(np.ravel(explainer.expected_value)[0]),
        prediction=float(f(x)[0]),
        contributions={c: float(v) for c, v in zip(FEATURE_COLUMNS, values)},
    )
