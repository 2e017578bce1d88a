"""Shared test fixtures for nb-text-classifier tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from nb_text_classifier.naive_bayes import NaiveBayesModel, fit


@pytest.fixture
def tiny_corpus() -> list[tuple[str, list[str]]]:
    """One document per category, six distinct tokens."""
    return [
        ("A", ["buy", "cheap", "now"]),
        ("B", ["meeting", "agenda", "today"]),
    ]


@pytest.fixture
def tiny_model(tiny_corpus) -> NaiveBayesModel:
    return fit(tiny_corpus)


@pytest.fixture
def spam_corpus() -> list[tuple[str, list[str]]]:
    """A small spam/ham corpus with overlapping vocabulary."""
    return [
        ("spam", "win cash now claim your free prize".split()),
        ("spam", "cheap pills buy now limited offer".split()),
        ("spam", "free offer click now win".split()),
        ("ham", "meeting moved to monday see agenda".split()),
        ("ham", "lunch today with the project team".split()),
        ("ham", "please review the agenda before the meeting".split()),
        ("ham", "team offsite planning notes attached".split()),
    ]


@pytest.fixture
def spam_model(spam_corpus) -> NaiveBayesModel:
    return fit(spam_corpus)


@pytest.fixture
def training_text() -> str:
    return (
        "# label followed by tokens\n"
        "spam win cash now claim your free prize\n"
        "spam cheap pills buy now limited offer\n"
        "ham meeting moved to monday see agenda\n"
        "\n"
        "ham lunch today with the project team\n"
    )


@pytest.fixture
def training_file(tmp_path: Path, training_text: str) -> Path:
    file = tmp_path / "train.txt"
    file.write_text(training_text, encoding="utf-8")
    return file


@pytest.fixture
def test_file(tmp_path: Path) -> Path:
    """Labeled held-out file in the training format."""
    file = tmp_path / "test.txt"
    file.write_text(
        "spam free cash now\n"
        "ham agenda for the meeting\n"
        "ham project team lunch\n",
        encoding="utf-8",
    )
    return file
