"""
performance_engine/scoring.py

From a feature vector to a PredictionResult: forest mean when a usable forest
is loaded, otherwise a fixed weighted-sum heuristic. Both paths end in an
integer score in [0, 100] that is bucketed into a grade and a risk tier.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from performance_engine.features import RawInputs, build_feature_vector
from performance_engine.forest import Forest, evaluate_forest


GRADE_LABELS = ("A", "B", "C", "D", "F")
RISK_LABELS = ("Low", "Medium", "High")

# (lower bound, label), checked top-down, first match wins.
GRADE_THRESHOLDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))
RISK_THRESHOLDS = ((80, "Low"), (60, "Medium"))

SOURCE_FOREST = "forest"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class PredictionResult:
    score: int
    grade: str
    risk: str
    source: str = SOURCE_FALLBACK


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (Python's round() would go to even)."""
    # floor(value + 0.5) would round 0.49999999999999994 up, since the sum rounds to 1.0.
    whole = math.floor(value)
    return int(whole) + (1 if value - whole >= 0.5 else 0)


def to_score(value: float) -> int:
    return round_half_up(_clamp(value, 0, 100))


def fallback_raw_score(features: Sequence[float]) -> float:
    """
    Unclamped weighted sum used when no forest is available.

    Max contributions: attendance 55, study hours 25, parent education,
    income, extracurricular and resources 5 each, internet 3, tutoring 7.
    """
    attendance, study_hours, parent_edu, income, extracurricular, resources, internet, tutoring = features

    study_impact = min(study_hours, 30) / 30
    parent_edu_norm = _clamp(parent_edu, 0, 4) / 4
    income_norm = _clamp(income, 0, 3) / 3
    extra_norm = _clamp(extracurricular, 0, 5) / 5
    resources_norm = _clamp(resources, 0, 5) / 5

    return (
        attendance * 0.55
        + study_impact * 25
        + parent_edu_norm * 5
        + income_norm * 5
        + extra_norm * 5
        + resources_norm * 5
        + (3 if internet else 0)
        + (7 if tutoring else 0)
    )


def fallback_score(features: Sequence[float]) -> int:
    return to_score(fallback_raw_score(features))


def classify_grade(score: float) -> str:
    for bound, label in GRADE_THRESHOLDS:
        if score >= bound:
            return label
    return "F"


def classify_risk(score: float) -> str:
    for bound, label in RISK_THRESHOLDS:
        if score >= bound:
            return label
    return "High"


def forest_raw_score(forest: Optional[Forest], features: Sequence[float]) -> Optional[float]:
    """Forest mean if it is usable (present, non-empty, finite), else None."""
    mean = evaluate_forest(forest, features)
    if mean is None or not math.isfinite(mean):
        return None
    return mean


def raw_score(forest: Optional[Forest], features: Sequence[float]) -> float:
    """Unrounded score from whichever path applies. Used for explanations."""
    mean = forest_raw_score(forest, features)
    return fallback_raw_score(features) if mean is None else mean


def predict_features(features: Sequence[float], forest: Optional[Forest] = None) -> PredictionResult:
    mean = forest_raw_score(forest, features)
    if mean is None:
        score, source = fallback_score(features), SOURCE_FALLBACK
    else:
        score, source = to_score(mean), SOURCE_FOREST
    return PredictionResult(
        score=score,
        grade=classify_grade(score),
        risk=classify_risk(score),
        source=source,
    )


def predict(raw: RawInputs, forest: Optional[Forest] = None) -> PredictionResult:
    """Score one student. Never raises for a missing or degenerate forest."""
    return predict_features(build_feature_vector(raw), forest)
