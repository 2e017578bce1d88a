"""Tests for result types: NoClassification and Prediction."""

from __future__ import annotations

from nb_text_classifier.models import (
    NO_CLASSIFICATION,
    NoClassification,
    Prediction,
)


class TestNoClassification:
    """Tests for the no-classification sentinel."""

    def test_is_enum_member(self) -> None:
        assert NO_CLASSIFICATION is NoClassification.NO_CLASSIFICATION

    def test_not_equal_to_its_text(self) -> None:
        assert NO_CLASSIFICATION != "no classification given"
        assert not isinstance(NO_CLASSIFICATION, str)

    def test_str(self) -> None:
        assert str(NO_CLASSIFICATION) == "no classification given"
        assert f"{NO_CLASSIFICATION}" == "no classification given"


class TestPrediction:
    """Tests for the Prediction dataclass."""

    def test_confidence(self) -> None:
        p = Prediction(label="a", scores={"a": 1.0, "b": 2.0},
                       probabilities={"a": 0.73, "b": 0.27})
        assert p.is_classified
        assert p.confidence == 0.73

    def test_unclassified(self) -> None:
        p = Prediction(label=NO_CLASSIFICATION)
        assert not p.is_classified
        assert p.confidence == 0.0

    def test_to_dict(self) -> None:
        p = Prediction(label="a", scores={"a": 1.23456, "b": 2.0},
                       probabilities={"b": 0.25, "a": 0.75})
        d = p.to_dict()
        assert d["label"] == "a"
        assert d["confidence"] == 0.75
        assert d["scores"]["a"] == 1.2346
        assert list(d["probabilities"]) == ["a", "b"]

    def test_to_dict_unclassified(self) -> None:
        d = Prediction(label=NO_CLASSIFICATION).to_dict()
        assert d["label"] == "no classification given"
        assert d["probabilities"] == {}
