import joblib
import numpy as np
import pytest
from sklearn.ensemble import RandomForestClassifier, RandomForestRegressor
from sklearn.tree import DecisionTreeRegressor

from performance_engine.export_forest import main
from performance_engine.forest import Forest, evaluate_forest, forest_from_estimator, load_forest


@pytest.fixture
def training_data():
    # Integer-valued features keep scikit-learn's float32 comparisons exact.
    rng = np.random.default_rng(0)
    X = np.column_stack(
        [
            rng.integers(0, 101, 200),
            rng.integers(0, 31, 200),
            rng.integers(0, 5, 200),
            rng.integers(0, 4, 200),
            rng.integers(0, 6, 200),
            rng.integers(0, 6, 200),
            rng.integers(0, 2, 200),
            rng.integers(0, 2, 200),
        ]
    ).astype(float)
    y = 0.6 * X[:, 0] + 0.8 * X[:, 1] + 5 * X[:, 7] + rng.normal(0, 3, 200)
    return X, y


@pytest.fixture
def fitted_forest(training_data):
    X, y = training_data
    return RandomForestRegressor(n_estimators=5, max_depth=6, random_state=0).fit(X, y)


def test_converted_forest_matches_sklearn(fitted_forest, training_data):
    X, _ = training_data
    forest = forest_from_estimator(fitted_forest)
    assert len(forest) == 5

    ours = np.array([evaluate_forest(forest, list(row)) for row in X[:50]])
    np.testing.assert_allclose(ours, fitted_forest.predict(X[:50]), rtol=1e-9)


def test_single_tree_conversion(training_data):
    X, y = training_data
    tree = DecisionTreeRegressor(max_depth=4, random_state=0).fit(X, y)
    forest = forest_from_estimator(tree)
    assert len(forest) == 1
    assert evaluate_forest(forest, list(X[0])) == pytest.approx(tree.predict(X[:1])[0])


def test_classifier_is_rejected(training_data):
    X, y = training_data
    clf = RandomForestClassifier(n_estimators=2, random_state=0).fit(X, y > y.mean())
    with pytest.raises(ValueError, match="Unsupported"):
        forest_from_estimator(clf)


def test_unfitted_estimator_is_rejected():
    with pytest.raises(ValueError, match="not fitted"):
        forest_from_estimator(RandomForestRegressor())


def test_wrong_feature_count_is_rejected(training_data):
    X, y = training_data
    model = DecisionTreeRegressor(max_depth=2).fit(X[:, :3], y)
    with pytest.raises(ValueError, match="3 features"):
        forest_from_estimator(model)


def test_export_cli(tmp_path, fitted_forest, training_data, capsys):
    X, _ = training_data
    model_path = tmp_path / "model.pkl"
    out_path = tmp_path / "artifacts" / "forest.json"
    joblib.dump(fitted_forest, model_path)

    main(["--model", str(model_path), "--out", str(out_path)])

    result = load_forest(out_path)
    assert result.error is None
    assert isinstance(result.forest, Forest)
    assert evaluate_forest(result.forest, list(X[3])) == pytest.approx(fitted_forest.predict(X[3:4])[0])
    assert "Exported 5 trees" in capsys.readouterr().out


def test_export_cli_missing_model(tmp_path):
    with pytest.raises(FileNotFoundError):
        main(["--model", str(tmp_path / "missing.pkl")])
