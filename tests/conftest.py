import json

import pytest

from performance_engine.features import RawInputs
from performance_engine.forest import Forest, Leaf, Split


@pytest.fixture
def default_inputs() -> RawInputs:
    return RawInputs.defaults()


@pytest.fixture
def attendance_tree() -> Split:
    """attendance <= 75 -> 55.0, otherwise study hours <= 10 -> 70.0 else 90.0."""
    return Split(
        feature_index=0,
        threshold=75.0,
        left=Leaf(55.0),
        right=Split(feature_index=1, threshold=10.0, left=Leaf(70.0), right=Leaf(90.0)),
    )


@pytest.fixture
def three_leaf_forest() -> Forest:
    return Forest(trees=(Leaf(10.0), Leaf(20.0), Leaf(30.0)))


@pytest.fixture
def forest_document() -> dict:
    return {
        "trees": [
            {
                "featureIndex": 0,
                "threshold": 75,
                "left": {"value": 55},
                "right": {
                    "featureIndex": 1,
                    "threshold": 10,
                    "left": {"value": 70},
                    "right": {"value": 90},
                },
            },
            {"value": 80},
        ]
    }


@pytest.fixture
def artifact_dir(tmp_path, forest_document):
    (tmp_path / "forest.json").write_text(json.dumps(forest_document))
    return tmp_path
