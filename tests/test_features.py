import pandas as pd
import pytest

from performance_engine.data_dictionary import FEATURE_COLUMNS
from performance_engine.features import RawInputs, build_feature_vector, validate_features


def test_feature_vector_has_fixed_order_and_flags_as_ints(default_inputs):
    assert build_feature_vector(default_inputs) == [90, 12, 2, 1, 4, 3, 1, 0]


def test_zeros_input():
    assert build_feature_vector(RawInputs.zeros()) == [0] * 8


def test_out_of_range_values_pass_through_unchanged():
    raw = RawInputs(150, 99, -3, 7, 12, -1, False, True)
    assert build_feature_vector(raw) == [150, 99, -3, 7, 12, -1, 0, 1]


def test_from_mapping_and_from_vector_round_trip(default_inputs):
    values = dict(zip(FEATURE_COLUMNS, build_feature_vector(default_inputs)))
    assert RawInputs.from_vector(list(values.values())) == default_inputs
    assert RawInputs.from_mapping({**values, "has_internet": True, "has_tutoring": False}) == default_inputs


def test_from_mapping_reports_missing_inputs():
    with pytest.raises(ValueError, match="income_level"):
        RawInputs.from_mapping({c: 0 for c in FEATURE_COLUMNS if c != "income_level"})


def test_from_vector_rejects_wrong_length():
    with pytest.raises(ValueError):
        RawInputs.from_vector([1, 2, 3])


def test_validate_features_orders_columns_and_warns_about_extras():
    df = pd.DataFrame(
        {
            "student_id": ["S1"],
            **{c: [1] for c in reversed(FEATURE_COLUMNS)},
        }
    )
    X, warnings = validate_features(df)
    assert list(X.columns) == FEATURE_COLUMNS
    assert any("student_id" in w for w in warnings)


def test_validate_features_missing_columns_is_an_error():
    df = pd.DataFrame({"attendance_percent": [90]})
    with pytest.raises(ValueError, match="Missing required columns"):
        validate_features(df)


def test_validate_features_parses_boolean_columns():
    row = {c: [1, 2] for c in FEATURE_COLUMNS}
    row["has_internet"] = ["yes", "False"]
    row["has_tutoring"] = [True, False]
    X, warnings = validate_features(pd.DataFrame(row))
    assert X["has_internet"].tolist() == [1, 0]
    assert X["has_tutoring"].tolist() == [1, 0]
    assert warnings == []


def test_validate_features_imputes_median():
    row = {c: [10.0, 20.0, 30.0] for c in FEATURE_COLUMNS}
    row["study_hours_per_week"] = [10.0, None, "oops"]
    X, warnings = validate_features(pd.DataFrame(row))
    assert X["study_hours_per_week"].tolist() == [10.0, 10.0, 10.0]
    assert any("imputing" in w for w in warnings)
