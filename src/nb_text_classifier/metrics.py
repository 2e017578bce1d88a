"""Evaluation of predicted labels against a labeled test corpus.

Categories are reported in the model's order, followed by any category
seen only in the test labels. ``NO_CLASSIFICATION`` predictions are kept
out of the confusion matrix and counted per true category in
``unclassified``, so they can never land on the diagonal of a category
whose name reads the same as the sentinel.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from .models import NO_CLASSIFICATION, Label


@dataclass
class CategoryScores:
    """Precision, recall and F1 for one category."""

    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    support: int = 0
    predicted: int = 0

    def to_dict(self) -> dict:
        return {
            "precision": round(self.precision, 4),
            "recall": round(self.recall, 4),
            "f1": round(self.f1, 4),
            "support": self.support,
        }


@dataclass
class ClassificationMetrics:
    """Evaluation of a batch of predictions.

    Attributes:
        categories: Category names in report order.
        confusion_matrix: ``{true: {predicted: count}}`` over ``categories``.
        unclassified: Per true category, documents that got ``NO_CLASSIFICATION``.
        per_category: Scores per category.
    """

    categories: list[str] = field(default_factory=list)
    confusion_matrix: dict[str, dict[str, int]] = field(default_factory=dict)
    unclassified: dict[str, int] = field(default_factory=dict)
    per_category: dict[str, CategoryScores] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(s.support for s in self.per_category.values())

    @property
    def correct(self) -> int:
        return sum(self.confusion_matrix[c][c] for c in self.categories)

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    @property
    def coverage(self) -> float:
        """Fraction of documents that received a category at all."""
        if not self.total:
            return 0.0
        return 1.0 - sum(self.unclassified.values()) / self.total

    @property
    def support(self) -> dict[str, int]:
        return {c: self.per_category[c].support for c in self.categories}

    def _active(self) -> list[CategoryScores]:
        # Only categories present in the test labels or the predictions.
        return [s for s in self.per_category.values() if s.support or s.predicted]

    def _macro(self, attr: str) -> float:
        active = self._active()
        if not active:
            return 0.0
        return sum(getattr(s, attr) for s in active) / len(active)

    @property
    def macro_precision(self) -> float:
        return self._macro("precision")

    @property
    def macro_recall(self) -> float:
        return self._macro("recall")

    @property
    def macro_f1(self) -> float:
        return self._macro("f1")

    @property
    def weighted_f1(self) -> float:
        if not self.total:
            return 0.0
        return sum(s.f1 * s.support for s in self.per_category.values()) / self.total

    def most_confused(self, top_n: int = 5) -> list[tuple[str, str, int]]:
        """Off-diagonal ``(true, predicted, count)`` cells, largest first."""
        cells = [
            (true, pred, count)
            for true in self.categories
            for pred, count in self.confusion_matrix[true].items()
            if pred != true and count
        ]
        # Stable sort keeps category order among equal counts.
        cells.sort(key=lambda cell: -cell[2])
        return cells[:top_n]

    def to_dict(self) -> dict:
        return {
            "accuracy": round(self.accuracy, 4),
            "coverage": round(self.coverage, 4),
            "macro_precision": round(self.macro_precision, 4),
            "macro_recall": round(self.macro_recall, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "categories": list(self.categories),
            "per_category": {c: self.per_category[c].to_dict() for c in self.categories},
            "confusion_matrix": self.confusion_matrix,
            "unclassified": self.unclassified,
            "support": self.support,
        }

    def summary(self) -> str:
        """Plain-text report, one row per category in report order."""
        lines = [
            f"Documents: {self.total}",
            f"Accuracy: {self.accuracy:.2%}",
            f"Coverage: {self.coverage:.2%}",
            f"Macro F1: {self.macro_f1:.4f}",
            "",
            f"{'Category':<24} {'Precision':>10} {'Recall':>10} {'F1':>8} "
            f"{'Support':>8} {'Unclass.':>8}",
            "-" * 72,
        ]
        for name in self.categories:
            s = self.per_category[name]
            lines.append(
                f"{name:<24} {s.precision:>10.4f} {s.recall:>10.4f} {s.f1:>8.4f} "
                f"{s.support:>8} {self.unclassified[name]:>8}"
            )
        return "\n".join(lines)


def _report_order(
    categories: Iterable[str],
    y_true: Sequence[str],
    y_pred: Sequence[Label],
) -> list[str]:
    order: dict[str, None] = {}
    predicted = (p for p in y_pred if p is not NO_CLASSIFICATION)
    for name in itertools.chain(categories, y_true, predicted):
        order.setdefault(name, None)
    return list(order)


def compute_metrics(
    y_true: Sequence[str],
    y_pred: Sequence[Label],
    categories: Optional[Iterable[str]] = None,
) -> ClassificationMetrics:
    """Score predicted labels against the true categories.

    Args:
        y_true: True category of each test document.
        y_pred: Output of ``classify`` / ``classify_all`` for each document.
        categories: Report order, usually ``model.categories``.

    A ``NO_CLASSIFICATION`` prediction is a miss for its true category and
    a false positive for no category.

    Raises:
        ValueError: If the sequences differ in length or a true label is
            missing.
    """
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")
    for i, true in enumerate(y_true):
        if not isinstance(true, str):
            raise ValueError(f"Test document {i + 1} has no category label")

    order = _report_order(categories or (), y_true, y_pred)
    matrix = {true: {pred: 0 for pred in order} for true in order}
    unclassified = {name: 0 for name in order}
    for true, pred in zip(y_true, y_pred):
        if pred is NO_CLASSIFICATION:
            unclassified[true] += 1
        else:
            matrix[true][pred] += 1

    per_category: dict[str, CategoryScores] = {}
    for name in order:
        hits = matrix[name][name]
        predicted = sum(matrix[true][name] for true in order)
        support = sum(matrix[name].values()) + unclassified[name]
        precision = hits / predicted if predicted else 0.0
        recall = hits / support if support else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall else 0.0
        per_category[name] = CategoryScores(precision, recall, f1, support, predicted)

    return ClassificationMetrics(
        categories=order,
        confusion_matrix=matrix,
        unclassified=unclassified,
        per_category=per_category,
    )
