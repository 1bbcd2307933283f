"""
performance_engine/features.py

Turns raw student inputs into the fixed-order numeric feature vector the forest
was trained on, for a single student (RawInputs) or a whole table (validate_features).
"""

from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import List, Mapping, Tuple

import pandas as pd

from performance_engine.data_dictionary import BOOLEAN_COLUMNS, FEATURE_COLUMNS


FeatureVector = List[float]


@dataclass(frozen=True)
class RawInputs:
    """
    The eight values a user enters, in feature order.

    Values are not range-checked; anything out of range is passed through and
    clamped (or not) by whoever consumes it.
    """
    attendance_percent: float
    study_hours_per_week: float
    parent_education_level: float
    income_level: float
    extracurricular_score: float
    resources_score: float
    has_internet: bool
    has_tutoring: bool

    @classmethod
    def defaults(cls) -> "RawInputs":
        """Initial values shown by the dashboard."""
        return cls(90, 12, 2, 1, 4, 3, True, False)

    @classmethod
    def zeros(cls) -> "RawInputs":
        """Everything off; used by the dashboard's Reset button."""
        return cls(0, 0, 0, 0, 0, 0, False, False)

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "RawInputs":
        missing = [c for c in FEATURE_COLUMNS if c not in values]
        if missing:
            raise ValueError(f"Missing required inputs: {missing}")
        return cls(*(values[c] for c in FEATURE_COLUMNS))

    @classmethod
    def from_vector(cls, features: FeatureVector) -> "RawInputs":
        if len(features) != len(FEATURE_COLUMNS):
            raise ValueError(
                f"Expected {len(FEATURE_COLUMNS)} features, got {len(features)}."
            )
        *numeric, internet, tutoring = features
        return cls(*numeric, bool(internet), bool(tutoring))


def build_feature_vector(raw: RawInputs) -> FeatureVector:
    """Map RawInputs to [attendance, study, parentEdu, income, extra, resources, internet, tutoring]."""
    *numeric, internet, tutoring = astuple(raw)
    return [*numeric, 1 if internet else 0, 1 if tutoring else 0]


def validate_features(df: pd.DataFrame) -> Tuple[pd.DataFrame, List[str]]:
    """
    Validate and prepare a dataframe for batch scoring.

    This function:
      1) Ensures all feature columns are present (hard error if missing).
      2) Ignores unexpected columns (warning only).
      3) Maps boolean columns to 1/0 and coerces everything to numeric.
      4) Imputes missing values with the column median (warning).

    Parameters
    ----------
    df : pd.DataFrame
        Input dataframe from a user upload or a CSV on disk.

    Returns
    -------
    X : pd.DataFrame
        Feature matrix with exactly FEATURE_COLUMNS, in order.
    warnings : List[str]
        Human-readable descriptions of non-fatal issues.

    Raises
    ------
    ValueError
        If required columns are missing.
    """
    warnings: List[str] = []

    missing = [c for c in FEATURE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    extra = [c for c in df.columns if c not in FEATURE_COLUMNS]
    if extra:
        warnings.append(f"Ignoring extra columns: {extra}")

    X = df[FEATURE_COLUMNS].copy()

    for c in BOOLEAN_COLUMNS:
        if pd.api.types.is_bool_dtype(X[c]):
            X[c] = X[c].astype(int)
        elif not pd.api.types.is_numeric_dtype(X[c]):
            X[c] = X[c].map(_parse_flag)

    for c in FEATURE_COLUMNS:
        X[c] = pd.to_numeric(X[c], errors="coerce")

    n_missing = int(X.isna().sum().sum())
    if n_missing > 0:
        warnings.append(
            f"Found {n_missing} missing/non-numeric values; imputing with column median."
        )
        X = X.fillna(X.median(numeric_only=True))
        # A column that is entirely empty has no median.
        X = X.fillna(0)

    return X, warnings


_TRUE_STRINGS = {"1", "true", "yes", "y", "t"}
_FALSE_STRINGS = {"0", "false", "no", "n", "f"}


def _parse_flag(value):
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return 1
        if text in _FALSE_STRINGS:
            return 0
        return None
    return value
