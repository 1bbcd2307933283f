"""
performance_engine/evaluation.py

Comparing predicted grades with grades the user reports as actual.

The log of (actual, predicted) pairs is the only mutable state. The confusion
matrix and the metrics are always recomputed from a snapshot of it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import accuracy_score, precision_recall_fscore_support
from sklearn.metrics import confusion_matrix as sk_confusion_matrix

from performance_engine.scoring import GRADE_LABELS


LABEL_INDEX = {label: i for i, label in enumerate(GRADE_LABELS)}
N_LABELS = len(GRADE_LABELS)


@dataclass(frozen=True)
class EvaluationRecord:
    actual: str
    predicted: str


class EvaluationLog:
    """
    Append-only list of EvaluationRecords, cleared only on request.

    A lock serializes writers against readers taking a snapshot, so the
    dashboard and a background scorer can share one log.
    """

    def __init__(self) -> None:
        self._records: List[EvaluationRecord] = []
        self._lock = threading.Lock()

    def record(self, actual: str, predicted: str) -> EvaluationRecord:
        entry = EvaluationRecord(actual=actual, predicted=predicted)
        with self._lock:
            self._records.append(entry)
        return entry

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def snapshot(self) -> Tuple[EvaluationRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def confusion_matrix(self) -> np.ndarray:
        return confusion_matrix(self.snapshot())

    def metrics(self) -> "Metrics":
        return compute_metrics(self.confusion_matrix())


def confusion_matrix(records: Iterable[EvaluationRecord]) -> np.ndarray:
    """
    5x5 counts, rows = actual, columns = predicted, both in GRADE_LABELS order.

    Records with a label outside GRADE_LABELS are skipped.
    """
    known = [r for r in records if r.actual in LABEL_INDEX and r.predicted in LABEL_INDEX]
    # With no known labels scikit-learn rejects the call, so build the empty matrix here.
    if not known:
        return np.zeros((N_LABELS, N_LABELS), dtype=np.int64)
    return sk_confusion_matrix(
        [r.actual for r in known],
        [r.predicted for r in known],
        labels=list(GRADE_LABELS),
    ).astype(np.int64)


@dataclass(frozen=True)
class Metrics:
    accuracy: float
    precisions: Tuple[float, ...]
    recalls: Tuple[float, ...]
    f1s: Tuple[float, ...]
    macro_precision: float
    macro_recall: float
    macro_f1: float
    support: Tuple[int, ...]

    @property
    def macro(self) -> Dict[str, float]:
        return {
            "precision": self.macro_precision,
            "recall": self.macro_recall,
            "f1": self.macro_f1,
        }

    def to_dict(self) -> Dict:
        return {
            "accuracy": self.accuracy,
            "per_class": {
                label: {
                    "precision": self.precisions[i],
                    "recall": self.recalls[i],
                    "f1": self.f1s[i],
                    "support": self.support[i],
                }
                for i, label in enumerate(GRADE_LABELS)
            },
            "macro": self.macro,
        }

    def to_frame(self) -> pd.DataFrame:
        """Per-class table indexed by grade label."""
        return pd.DataFrame(
            {
                "precision": self.precisions,
                "recall": self.recalls,
                "f1": self.f1s,
                "support": self.support,
            },
            index=pd.Index(GRADE_LABELS, name="grade"),
        )


def _expand(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Label-index arrays (y_true, y_pred) whose confusion matrix is `matrix`."""
    actual, predicted = np.nonzero(matrix)
    counts = matrix[actual, predicted]
    return np.repeat(actual, counts), np.repeat(predicted, counts)


def compute_metrics(matrix: np.ndarray) -> Metrics:
    """
    Accuracy plus per-class and macro precision/recall/F1 from a confusion matrix.

    Any ratio with a zero denominator is 0. Macro values average over all
    classes, so a class never seen as actual or predicted pulls them down.
    """
    m = np.asarray(matrix, dtype=np.int64)
    y_true, y_pred = _expand(m)

    if y_true.size == 0:
        zeros = (0.0,) * N_LABELS
        return Metrics(
            accuracy=0.0,
            precisions=zeros,
            recalls=zeros,
            f1s=zeros,
            macro_precision=0.0,
            macro_recall=0.0,
            macro_f1=0.0,
            support=(0,) * N_LABELS,
        )

    precision, recall, f1, support = precision_recall_fscore_support(
        y_true, y_pred, labels=list(range(N_LABELS)), average=None, zero_division=0
    )

    return Metrics(
        accuracy=float(accuracy_score(y_true, y_pred)),
        precisions=tuple(float(x) for x in precision),
        recalls=tuple(float(x) for x in recall),
        f1s=tuple(float(x) for x in f1),
        macro_precision=float(precision.mean()),
        macro_recall=float(recall.mean()),
        macro_f1=float(f1.mean()),
        support=tuple(int(x) for x in support),
    )
