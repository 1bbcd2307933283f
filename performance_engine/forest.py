"""
performance_engine/forest.py

The pretrained regression forest: node types, evaluation, and the JSON artifact
format.

Artifact shape (artifacts/forest.json):
    {"trees": [TreeNode, ...]}
    TreeNode = {"value": number}
             | {"featureIndex": int, "threshold": number, "left": TreeNode, "right": TreeNode}

Whether a node is a Leaf or a Split is decided once, while parsing. A non-object
becomes an absent node (None); descending into one yields 0 for that tree. A split
whose index or threshold is unusable compares false and routes right.
"""

from __future__ import annotations

import json
import logging
import numbers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

from performance_engine.data_dictionary import FEATURE_COLUMNS


logger = logging.getLogger(__name__)

N_FEATURES = len(FEATURE_COLUMNS)

# scikit-learn marks leaves with children_left == children_right == -1.
_TREE_LEAF = -1


@dataclass(frozen=True)
class Leaf:
    value: float


@dataclass(frozen=True)
class Split:
    """feature_index or threshold is None when the artifact did not carry a usable one."""
    feature_index: Optional[int]
    threshold: Optional[float]
    left: Optional["TreeNode"]
    right: Optional["TreeNode"]


TreeNode = Union[Leaf, Split]


@dataclass(frozen=True)
class Forest:
    """Immutable, ordered collection of tree roots. A root may be None if it failed to parse."""
    trees: Tuple[Optional[TreeNode], ...]

    def __len__(self) -> int:
        return len(self.trees)


class ForestLoadResult(NamedTuple):
    forest: Optional[Forest]
    error: Optional[str]


# ---------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------

def _goes_left(split: Split, features: Sequence[float]) -> bool:
    # An unusable index or threshold never compares true, so descent goes right.
    index = split.feature_index
    if index is None or split.threshold is None or not 0 <= index < len(features):
        return False
    return features[index] <= split.threshold


def evaluate_tree(node: Optional[TreeNode], features: Sequence[float]) -> float:
    """
    Walk from `node` to a leaf and return its value.

    Values equal to a split's threshold go left. Reaching an absent node
    before any leaf returns 0.0. There is no depth limit; trees are assumed
    finite (every loader in this module builds them that way).
    """
    current = node
    while current is not None:
        if isinstance(current, Leaf):
            return current.value
        current = current.left if _goes_left(current, features) else current.right
    return 0.0


def evaluate_forest(forest: Optional[Forest], features: Sequence[float]) -> Optional[float]:
    """
    Mean of every tree's leaf value, or None when there is no forest or it has no trees.

    The mean is returned as-is; callers must treat a non-finite result like None.
    """
    if forest is None or len(forest.trees) == 0:
        return None
    predictions = [evaluate_tree(tree, features) for tree in forest.trees]
    return sum(predictions) / len(predictions)


# ---------------------------------------------------------------------
# JSON (de)serialization
# ---------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _parse_feature_index(value: Any) -> Optional[int]:
    """Integer index, accepting integral floats and digit strings; None otherwise."""
    if isinstance(value, str):
        text = value.strip()
        return int(text) if text.isdigit() else None
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _parse_threshold(value: Any) -> Optional[float]:
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return float(value) if _is_number(value) else None


def tree_from_dict(node: Any) -> Optional[TreeNode]:
    """
    Parse one JSON node (recursively).

    An object with a numeric "value" is a Leaf. Any other object is a Split;
    if its index or threshold is unusable it keeps None there and always
    routes right. Non-objects are absent nodes.
    """
    if not isinstance(node, dict):
        return None

    value = node.get("value")
    if _is_number(value):
        return Leaf(value=float(value))

    return Split(
        feature_index=_parse_feature_index(node.get("featureIndex")),
        threshold=_parse_threshold(node.get("threshold")),
        left=tree_from_dict(node.get("left")),
        right=tree_from_dict(node.get("right")),
    )


def tree_to_dict(node: Optional[TreeNode]) -> Optional[Dict[str, Any]]:
    if node is None:
        return None
    if isinstance(node, Leaf):
        return {"value": node.value}
    return {
        "featureIndex": node.feature_index,
        "threshold": node.threshold,
        "left": tree_to_dict(node.left),
        "right": tree_to_dict(node.right),
    }


def forest_from_dict(document: Any) -> Forest:
    """
    Build a Forest from a parsed JSON document.

    Raises
    ------
    ValueError
        If the document is not an object with a "trees" list.
    """
    if not isinstance(document, dict) or not isinstance(document.get("trees"), list):
        raise ValueError('Model document must be an object with a "trees" list.')

    trees = tuple(tree_from_dict(t) for t in document["trees"])
    n_bad = sum(1 for t in trees if t is None)
    if n_bad:
        logger.warning("%d of %d trees could not be parsed and will score 0.", n_bad, len(trees))
    return Forest(trees=trees)


def forest_to_dict(forest: Forest) -> Dict[str, List[Optional[Dict[str, Any]]]]:
    return {"trees": [tree_to_dict(t) for t in forest.trees]}


def load_forest(path: Path) -> ForestLoadResult:
    """
    Load the forest artifact from disk.

    Never raises for a missing or malformed file (including numbers too large
    for a float and trees nested deeper than the parser can follow): the result
    then carries forest=None and a message describing why, and scoring falls
    back to the heuristic formula.
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        forest = forest_from_dict(document)
    except FileNotFoundError:
        error = f"Model file not found: {path}"
    except (OSError, ValueError, ArithmeticError, RecursionError) as e:
        error = f"Failed to load forest model from {path}: {e}"
    else:
        logger.info("Loaded forest with %d trees from %s", len(forest), path)
        return ForestLoadResult(forest=forest, error=None)

    logger.warning(error)
    return ForestLoadResult(forest=None, error=error)


def dump_forest(forest: Forest, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(forest_to_dict(forest)), encoding="utf-8")


# ---------------------------------------------------------------------
# scikit-learn conversion
# ---------------------------------------------------------------------

def forest_from_estimator(estimator) -> Forest:
    """
    Convert an already-fitted scikit-learn regressor into a Forest.

    Supported: RandomForestRegressor, ExtraTreesRegressor, DecisionTreeRegressor.
    Their trees send `x <= threshold` left and the forest prediction is the mean
    of the trees, so the converted Forest scores identically.

    Raises
    ------
    ValueError
        If the estimator is unsupported, unfitted, multi-output, or was fitted on
        a feature count other than len(FEATURE_COLUMNS).
    """
    from sklearn.ensemble import ExtraTreesRegressor, RandomForestRegressor
    from sklearn.tree import DecisionTreeRegressor

    if isinstance(estimator, (RandomForestRegressor, ExtraTreesRegressor)):
        members = list(getattr(estimator, "estimators_", []))
    elif isinstance(estimator, DecisionTreeRegressor):
        members = [estimator] if hasattr(estimator, "tree_") else []
    else:
        raise ValueError(
            f"Unsupported estimator {type(estimator).__name__}; "
            "expected a fitted RandomForestRegressor, ExtraTreesRegressor or DecisionTreeRegressor."
        )

    if not members:
        raise ValueError("Estimator is not fitted.")

    n_features = getattr(estimator, "n_features_in_", None)
    if n_features != N_FEATURES:
        raise ValueError(
            f"Estimator was fitted on {n_features} features; expected {N_FEATURES} ({FEATURE_COLUMNS})."
        )

    if getattr(estimator, "n_outputs_", 1) != 1:
        raise ValueError("Only single-output regressors can be converted.")

    return Forest(trees=tuple(_convert_tree(m.tree_) for m in members))


def _convert_tree(tree) -> TreeNode:
    children_left = tree.children_left
    children_right = tree.children_right
    feature = tree.feature
    threshold = tree.threshold
    value = tree.value

    def build(node_id: int) -> TreeNode:
        if children_left[node_id] == _TREE_LEAF:
            return Leaf(value=float(value[node_id][0][0]))
        return Split(
            feature_index=int(feature[node_id]),
            threshold=float(threshold[node_id]),
            left=build(int(children_left[node_id])),
            right=build(int(children_right[node_id])),
        )

    return build(0)
