import pytest

from performance_engine.features import RawInputs, build_feature_vector
from performance_engine.forest import Forest, Leaf
from performance_engine.scoring import (
    SOURCE_FALLBACK,
    SOURCE_FOREST,
    classify_grade,
    classify_risk,
    fallback_raw_score,
    fallback_score,
    predict,
    round_half_up,
)


# ------------------------------------------------------------------
# Fallback formula
# ------------------------------------------------------------------

def test_fallback_regression_value(default_inputs):
    # 49.5 + 10 + 2.5 + 5/3 + 4 + 3 + 3 = 73.67
    features = build_feature_vector(default_inputs)
    assert fallback_raw_score(features) == pytest.approx(73.6667, abs=1e-4)
    assert fallback_score(features) == 74


def test_fallback_maximum_contributions():
    features = build_feature_vector(RawInputs(100, 30, 4, 3, 5, 5, True, True))
    # 55 + 25 + 20 + 3 + 7 = 110 before clamping
    assert fallback_raw_score(features) == pytest.approx(110.0)
    assert fallback_score(features) == 100


def test_fallback_clamps_each_factor():
    high = build_feature_vector(RawInputs(0, 300, 40, 30, 50, 50, False, False))
    low = build_feature_vector(RawInputs(0, 0, -4, -3, -5, -5, False, False))
    assert fallback_raw_score(high) == pytest.approx(45.0)
    assert fallback_raw_score(low) == pytest.approx(0.0)


def test_fallback_rounds_half_up():
    # parent education 2 alone contributes exactly 2.5
    features = build_feature_vector(RawInputs(0, 0, 2, 0, 0, 0, False, False))
    assert fallback_raw_score(features) == 2.5
    assert fallback_score(features) == 3


def test_fallback_is_monotonic_in_attendance():
    scores = [
        fallback_score(build_feature_vector(RawInputs(a, 12, 2, 1, 4, 3, True, False)))
        for a in range(0, 201, 5)
    ]
    assert scores == sorted(scores)
    assert scores[-1] == 100


@pytest.mark.parametrize(
    "raw",
    [
        RawInputs(-1000, -50, -9, -9, -9, -9, False, False),
        RawInputs(1000, 500, 9, 9, 9, 9, True, True),
        RawInputs(0, -10, 0, 0, 0, 0, False, False),
    ],
)
def test_fallback_score_always_within_bounds(raw):
    assert 0 <= fallback_score(build_feature_vector(raw)) <= 100


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(16.5) == 17
    assert round_half_up(16.49) == 16
    assert round_half_up(0.49999999999999994) == 0
    assert round_half_up(99.5) == 100


# ------------------------------------------------------------------
# Classification
# ------------------------------------------------------------------

@pytest.mark.parametrize(
    "score, grade",
    [(100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"), (70, "C"), (69, "D"), (60, "D"), (59, "F"), (0, "F")],
)
def test_grade_boundaries(score, grade):
    assert classify_grade(score) == grade


@pytest.mark.parametrize(
    "score, risk",
    [(100, "Low"), (80, "Low"), (79, "Medium"), (60, "Medium"), (59, "High"), (0, "High")],
)
def test_risk_boundaries(score, risk):
    assert classify_risk(score) == risk


# ------------------------------------------------------------------
# predict
# ------------------------------------------------------------------

def test_predict_without_forest_uses_fallback(default_inputs):
    result = predict(default_inputs, None)
    assert (result.score, result.grade, result.risk, result.source) == (74, "C", "Medium", SOURCE_FALLBACK)


def test_predict_with_empty_forest_uses_fallback(default_inputs):
    assert predict(default_inputs, Forest(trees=())).source == SOURCE_FALLBACK


def test_predict_uses_forest_mean(default_inputs, three_leaf_forest):
    result = predict(default_inputs, three_leaf_forest)
    assert (result.score, result.grade, result.risk, result.source) == (20, "F", "High", SOURCE_FOREST)


@pytest.mark.parametrize("leaf, expected", [(250.0, 100), (-40.0, 0), (89.5, 90)])
def test_forest_mean_is_clamped_and_rounded(default_inputs, leaf, expected):
    assert predict(default_inputs, Forest(trees=(Leaf(leaf),))).score == expected


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_forest_mean_falls_back(default_inputs, bad):
    result = predict(default_inputs, Forest(trees=(Leaf(50.0), Leaf(bad))))
    assert result.source == SOURCE_FALLBACK
    assert result.score == 74
