"""Result types shared by the classifier, the metrics and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class NoClassification(Enum):
    """Outcome when no category can be chosen for a document.

    Returned instead of a category name when the model has no categories
    (or every category scores ``+inf``). It is deliberately not a ``str``
    so it never compares equal to a real category name.
    """

    NO_CLASSIFICATION = "no classification given"

    def __str__(self) -> str:
        return self.value


NO_CLASSIFICATION = NoClassification.NO_CLASSIFICATION

#: A predicted category name, or the ``NO_CLASSIFICATION`` sentinel.
Label = Union[str, NoClassification]


@dataclass
class Prediction:
    """Outcome of classifying a single document.

    Attributes:
        label: Winning category name or ``NO_CLASSIFICATION``.
        scores: Negative log-probability per category (lower is better).
        probabilities: Normalised posterior per category.
    """

    label: Label
    scores: dict[str, float] = field(default_factory=dict)
    probabilities: dict[str, float] = field(default_factory=dict)

    @property
    def is_classified(self) -> bool:
        return self.label is not NO_CLASSIFICATION

    @property
    def confidence(self) -> float:
        """Posterior probability of the winning category (0 if none)."""
        if not self.is_classified:
            return 0.0
        return self.probabilities.get(self.label, 0.0)  # type: ignore[arg-type]

    def to_dict(self) -> dict:
        return {
            "label": str(self.label),
            "confidence": round(self.confidence, 4),
            "scores": {k: round(v, 4) for k, v in self.scores.items()},
            "probabilities": {
                k: round(v, 4) for k, v in sorted(
                    self.probabilities.items(),
                    key=lambda x: x[1],
                    reverse=True,
                )
            },
        }
