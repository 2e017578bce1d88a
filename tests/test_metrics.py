"""Tests for evaluation metrics."""

from __future__ import annotations

import json

import pytest

from nb_text_classifier.metrics import ClassificationMetrics, compute_metrics
from nb_text_classifier.models import NO_CLASSIFICATION
from nb_text_classifier.naive_bayes import classify_all, fit


class TestComputeMetrics:
    """Tests for compute_metrics."""

    def test_perfect_predictions(self):
        y_true = ["spam", "ham", "spam", "ham"]
        m = compute_metrics(y_true, list(y_true))
        assert m.accuracy == 1.0
        assert m.coverage == 1.0
        assert m.macro_f1 == 1.0
        assert m.weighted_f1 == 1.0

    def test_known_precision_recall(self):
        # spam: 2 hits, 1 false positive, 1 miss -> p = r = 2/3
        m = compute_metrics(["spam", "spam", "spam", "ham"], ["spam", "spam", "ham", "spam"])
        assert m.per_category["spam"].precision == pytest.approx(2 / 3)
        assert m.per_category["spam"].recall == pytest.approx(2 / 3)
        assert m.per_category["ham"].f1 == 0.0
        assert m.macro_f1 == pytest.approx(1 / 3)
        assert m.weighted_f1 == pytest.approx(0.5)

    def test_confusion_matrix(self):
        m = compute_metrics(["spam", "ham", "spam", "ham"], ["spam", "spam", "ham", "ham"])
        assert m.confusion_matrix["spam"]["spam"] == 1
        assert m.confusion_matrix["ham"]["spam"] == 1  # ham read as spam

    def test_support_counts(self):
        m = compute_metrics(["spam", "spam", "spam", "ham", "ham"], ["spam"] * 5)
        assert m.support == {"spam": 3, "ham": 2}
        assert m.total == 5
        assert m.correct == 3

    def test_mismatched_lengths_raises(self):
        with pytest.raises(ValueError, match="same length"):
            compute_metrics(["spam"], ["spam", "ham"])

    def test_missing_true_label_raises(self):
        with pytest.raises(ValueError, match="document 2 has no category"):
            compute_metrics(["spam", None], ["spam", "ham"])

    def test_empty(self):
        m = compute_metrics([], [])
        assert m.accuracy == 0.0
        assert m.coverage == 0.0
        assert m.macro_f1 == 0.0

    def test_default_instance(self):
        assert ClassificationMetrics().total == 0


class TestReportOrder:
    """Categories follow the model, then the test labels."""

    def test_model_order(self):
        m = compute_metrics(["ham", "spam"], ["ham", "spam"], categories=("spam", "ham"))
        assert m.categories == ["spam", "ham"]
        assert list(m.confusion_matrix) == ["spam", "ham"]

    def test_unseen_test_category_appended(self):
        m = compute_metrics(
            ["promo", "spam"], ["spam", "spam"], categories=("spam", "ham")
        )
        assert m.categories == ["spam", "ham", "promo"]
        assert m.per_category["promo"].recall == 0.0

    def test_absent_categories_skip_macro_average(self):
        m = compute_metrics(["spam", "ham"], ["spam", "ham"], categories=("spam", "ham", "promo"))
        assert m.support["promo"] == 0
        assert m.macro_f1 == 1.0

    def test_most_confused(self):
        m = compute_metrics(
            ["spam", "spam", "ham", "ham", "ham"],
            ["ham", "ham", "spam", "ham", "ham"],
        )
        assert m.most_confused() == [("spam", "ham", 2), ("ham", "spam", 1)]
        assert m.most_confused(top_n=1) == [("spam", "ham", 2)]


class TestUnclassified:
    """NO_CLASSIFICATION predictions are misses kept outside the matrix."""

    def test_counts_as_miss(self):
        m = compute_metrics(["spam", "ham"], ["spam", NO_CLASSIFICATION])
        assert m.accuracy == 0.5
        assert m.coverage == 0.5
        assert m.unclassified == {"spam": 0, "ham": 1}
        assert m.per_category["ham"].recall == 0.0
        # No category is blamed with a false positive.
        assert m.per_category["spam"].precision == 1.0
        assert m.per_category["ham"].predicted == 0

    def test_category_named_like_sentinel_is_not_matched(self):
        m = compute_metrics(
            ["no classification given", "spam"], [NO_CLASSIFICATION, "spam"]
        )
        assert m.accuracy == 0.5
        assert m.confusion_matrix["no classification given"]["no classification given"] == 0
        assert m.unclassified["no classification given"] == 1
        assert m.per_category["no classification given"].recall == 0.0

    def test_real_prediction_of_that_category_still_counts(self):
        m = compute_metrics(["no classification given"], ["no classification given"])
        assert m.accuracy == 1.0
        assert m.unclassified == {"no classification given": 0}


class TestReporting:
    """Tests for to_dict and summary."""

    def test_to_dict(self):
        m = compute_metrics(
            ["spam", "ham", "ham"], ["spam", "ham", NO_CLASSIFICATION], categories=("spam", "ham")
        )
        d = json.loads(json.dumps(m.to_dict()))
        assert d["categories"] == ["spam", "ham"]
        assert d["accuracy"] == pytest.approx(0.6667)
        assert d["unclassified"] == {"spam": 0, "ham": 1}
        assert d["per_category"]["ham"]["support"] == 2
        assert d["per_category"]["ham"]["recall"] == 0.5

    def test_summary_format(self):
        summary = compute_metrics(
            ["spam", "ham", "spam", "ham"], ["spam", "ham", "ham", "ham"]
        ).summary()
        assert "Accuracy: 75.00%" in summary
        assert "Coverage: 100.00%" in summary
        assert summary.index("spam ") < summary.index("ham ")


class TestEvaluationPipeline:
    """Fit, classify and score a held-out set."""

    def test_heldout_accuracy(self, spam_corpus):
        model = fit(spam_corpus)
        heldout = [
            ("spam", "free prize now".split()),
            ("spam", "buy cheap pills".split()),
            ("ham", "agenda for monday meeting".split()),
            ("ham", "project team lunch".split()),
        ]
        predictions = classify_all(model, [toks for _, toks in heldout])
        metrics = compute_metrics([cat for cat, _ in heldout], predictions, model.categories)
        assert metrics.accuracy == 1.0
        assert metrics.categories == list(model.categories)
