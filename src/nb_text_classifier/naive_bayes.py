"""Multinomial Naive Bayes text classification with Laplace smoothing.

Fitting turns word-count statistics from a labeled training corpus into
a frozen :class:`NaiveBayesModel`; classification scores a bag of tokens
against every category and picks the most probable one.

All probabilities are stored as natural-log *negative* log-probabilities,
so a lower score means a more probable category and scores of
independent tokens are summed instead of multiplied (no underflow on
long documents). The winning category is therefore the arg-min of the
per-category totals.

Example::

    model = fit([
        ("spam", ["buy", "cheap", "now"]),
        ("ham", ["meeting", "agenda", "today"]),
    ])
    classify(model, ["buy", "cheap"])        # "spam"
    classify_all(model, [["agenda"], ["now"]], workers=4)

Counting can be split over disjoint shards of a large corpus and merged
with :meth:`WordCounts.merge` (or :func:`count_words_parallel`); the
merge must complete before :func:`fit_counts` computes probabilities,
because every denominator depends on the whole corpus.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial, reduce
from types import MappingProxyType
from typing import Optional, Union

from .dataset import Datapoint
from .models import NO_CLASSIFICATION, Label, Prediction

logger = logging.getLogger(__name__)

TrainingItem = Union[Datapoint, tuple[str, Iterable[str]]]


class InvalidModelError(ValueError):
    """Raised when a model cannot be fitted from the given corpus."""


# ---------------------------------------------------------------------------
# Vocabulary & word-count aggregation
# ---------------------------------------------------------------------------


@dataclass
class WordCounts:
    """Word-count statistics aggregated from a labeled corpus.

    Attributes:
        categories: Category names in index order.
        doc_counts: Number of training documents per category.
        token_counts: Token occurrence counts per category. Only tokens
            seen in a category appear in its counter.
        vocabulary: Distinct tokens across all categories.
    """

    categories: list[str] = field(default_factory=list)
    doc_counts: dict[str, int] = field(default_factory=dict)
    token_counts: dict[str, Counter[str]] = field(default_factory=dict)
    vocabulary: set[str] = field(default_factory=set)

    @property
    def vocab_size(self) -> int:
        return len(self.vocabulary)

    @property
    def total_docs(self) -> int:
        return sum(self.doc_counts.values())

    @property
    def word_totals(self) -> dict[str, int]:
        """Total token occurrences (repeats included) per category."""
        return {cat: sum(self.token_counts[cat].values()) for cat in self.categories}

    def add_category(self, name: str) -> None:
        """Register a category without adding any document to it."""
        if name not in self.doc_counts:
            self.categories.append(name)
            self.doc_counts[name] = 0
            self.token_counts[name] = Counter()

    def add(self, category: Optional[str], tokens: Iterable[str]) -> None:
        """Count one training document."""
        if category is None:
            raise InvalidModelError("Training document has no category label")
        if isinstance(tokens, str):
            raise TypeError("Documents must be an iterable of tokens, not a string")
        self.add_category(category)
        self.doc_counts[category] += 1
        counter = self.token_counts[category]
        for token in tokens:
            counter[token] += 1
            self.vocabulary.add(token)

    def merge(self, other: "WordCounts") -> "WordCounts":
        """Combine counts from two disjoint shards into a new instance.

        Categories of ``self`` keep their order; categories only seen in
        ``other`` follow in ``other``'s order.
        """
        merged = WordCounts()
        for source in (self, other):
            for cat in source.categories:
                merged.add_category(cat)
                merged.doc_counts[cat] += source.doc_counts[cat]
                merged.token_counts[cat].update(source.token_counts[cat])
            merged.vocabulary |= source.vocabulary
        return merged


def _training_pairs(corpus: Iterable[TrainingItem]) -> Iterator[tuple[Optional[str], Iterable[str]]]:
    for item in corpus:
        if isinstance(item, Datapoint):
            yield item.category, item.tokens
        else:
            category, tokens = item
            yield category, tokens


def count_words(
    corpus: Iterable[TrainingItem],
    categories: Optional[Sequence[str]] = None,
) -> WordCounts:
    """Aggregate vocabulary and per-category word counts in one pass.

    Args:
        corpus: ``(category, tokens)`` pairs or labeled ``Datapoint`` objects.
        categories: Optional category names registered up front, fixing
            their index order. Declared categories without documents
            keep empty counts.

    Returns:
        WordCounts for the corpus.
    """
    counts = WordCounts()
    for name in categories or ():
        counts.add_category(name)
    for category, tokens in _training_pairs(corpus):
        counts.add(category, tokens)
    return counts


def count_words_parallel(
    shards: Iterable[Iterable[TrainingItem]],
    workers: Optional[int] = None,
    categories: Optional[Sequence[str]] = None,
) -> WordCounts:
    """Count disjoint corpus shards concurrently and merge the results.

    Shard results are merged in shard order, so category indices match a
    single sequential pass over the concatenated shards.
    """
    if workers is not None and workers < 1:
        raise ValueError("workers must be at least 1")
    with ThreadPoolExecutor(max_workers=workers) as pool:
        partials = list(pool.map(count_words, shards))
    logger.debug("Merging word counts from %d shard(s)", len(partials))
    return reduce(WordCounts.merge, partials, count_words((), categories))


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NaiveBayesModel:
    """Fitted, read-only Naive Bayes parameters.

    Per-category values are tuples indexed by category index; the
    likelihood tables are read-only mappings. A model is never changed
    after :func:`fit` returns, so it can be shared between threads.

    Attributes:
        categories: Category names; position is the category index.
        category_index: Category name to index.
        priors: ``-log(P(category))`` per category (``inf`` for a
            category with no training documents).
        likelihoods: Per category, token to ``-log(P(token|category))``
            for the tokens seen in that category.
        unseen_in_category: Per category, the cost of a vocabulary token
            that never occurred in that category.
        unknown_word: Cost of a token outside the training vocabulary.
        vocabulary: Distinct training tokens.
        doc_counts: Training documents per category.
        word_totals: Training token occurrences per category.
    """

    categories: tuple[str, ...]
    category_index: Mapping[str, int]
    priors: tuple[float, ...]
    likelihoods: tuple[Mapping[str, float], ...]
    unseen_in_category: tuple[float, ...]
    unknown_word: float
    vocabulary: frozenset[str]
    doc_counts: tuple[int, ...] = ()
    word_totals: tuple[int, ...] = ()

    @classmethod
    def empty(cls) -> "NaiveBayesModel":
        """A model without categories; classifies everything as unclassified."""
        return cls(
            categories=(),
            category_index=MappingProxyType({}),
            priors=(),
            likelihoods=(),
            unseen_in_category=(),
            unknown_word=math.inf,
            vocabulary=frozenset(),
        )

    @property
    def num_categories(self) -> int:
        return len(self.categories)

    @property
    def vocab_size(self) -> int:
        return len(self.vocabulary)

    def index_of(self, category: str) -> int:
        try:
            return self.category_index[category]
        except KeyError:
            raise ValueError(
                f"Unknown category: {category}. Known: {list(self.categories)}"
            ) from None

    def prior(self, category: str) -> float:
        return self.priors[self.index_of(category)]

    def summary(self) -> dict:
        """Plain-data overview of the fitted parameters."""
        return {
            "vocab_size": self.vocab_size,
            "unknown_word": self.unknown_word,
            "categories": [
                {
                    "name": name,
                    "index": i,
                    "documents": self.doc_counts[i] if self.doc_counts else None,
                    "words": self.word_totals[i] if self.word_totals else None,
                    "prior": self.priors[i],
                    "unseen_in_category": self.unseen_in_category[i],
                    "distinct_tokens": len(self.likelihoods[i]),
                }
                for i, name in enumerate(self.categories)
            ],
        }


# ---------------------------------------------------------------------------
# Fitting
# ---------------------------------------------------------------------------


def fit_counts(counts: WordCounts) -> NaiveBayesModel:
    """Compute model parameters from aggregated word counts.

    Raises:
        InvalidModelError: If the counts hold no documents or no tokens.
    """
    total_docs = counts.total_docs
    if total_docs == 0:
        raise InvalidModelError("Cannot fit a model on an empty training corpus")
    vocab_size = counts.vocab_size
    if vocab_size == 0:
        raise InvalidModelError("Training corpus contains no tokens; vocabulary is empty")

    word_totals = counts.word_totals
    priors: list[float] = []
    likelihoods: list[Mapping[str, float]] = []
    unseen: list[float] = []

    for cat in counts.categories:
        doc_count = counts.doc_counts[cat]
        priors.append(-math.log(doc_count / total_docs) if doc_count else math.inf)

        denominator = word_totals[cat] + vocab_size
        table = {
            token: -math.log((n + 1) / denominator)
            for token, n in counts.token_counts[cat].items()
        }
        likelihoods.append(MappingProxyType(table))
        # Same formula at n=0: (0 + 1) / denominator.
        unseen.append(-math.log(1 / denominator))

    model = NaiveBayesModel(
        categories=tuple(counts.categories),
        category_index=MappingProxyType({cat: i for i, cat in enumerate(counts.categories)}),
        priors=tuple(priors),
        likelihoods=tuple(likelihoods),
        unseen_in_category=tuple(unseen),
        unknown_word=-math.log(1 / vocab_size),
        vocabulary=frozenset(counts.vocabulary),
        doc_counts=tuple(counts.doc_counts[cat] for cat in counts.categories),
        word_totals=tuple(word_totals[cat] for cat in counts.categories),
    )
    logger.debug(
        "Fitted model: %d documents, %d categories, vocabulary of %d tokens",
        total_docs, model.num_categories, vocab_size,
    )
    empty = [cat for cat in counts.categories if counts.doc_counts[cat] == 0]
    if empty:
        logger.info("Categories without training documents can never be predicted: %s", empty)
    return model


def fit(
    corpus: Iterable[TrainingItem],
    categories: Optional[Sequence[str]] = None,
) -> NaiveBayesModel:
    """Fit a model from a labeled training corpus.

    Args:
        corpus: ``(category, tokens)`` pairs or labeled ``Datapoint``
            objects (a ``Dataset`` works as-is).
        categories: Optional category names fixing the index order.

    Returns:
        The frozen NaiveBayesModel.

    Raises:
        InvalidModelError: If the corpus has no documents or no tokens,
            or a document has no category.
    """
    return fit_counts(count_words(corpus, categories))


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def token_cost(model: NaiveBayesModel, token: str, category: str) -> float:
    """Negative log-likelihood contributed by one token under a category."""
    return _token_cost(model, model.index_of(category), token)


def _token_cost(model: NaiveBayesModel, index: int, token: str) -> float:
    table = model.likelihoods[index]
    if token in table:
        return table[token]
    if token in model.vocabulary:
        return model.unseen_in_category[index]
    return model.unknown_word


def _category_score(model: NaiveBayesModel, index: int, tokens: Sequence[str]) -> float:
    # Every occurrence counts, not just distinct tokens.
    total = model.priors[index]
    for token in tokens:
        total += _token_cost(model, index, token)
    return total


def score(model: NaiveBayesModel, tokens: Iterable[str]) -> dict[str, float]:
    """Negative log-probability of the document under each category."""
    tokens = tuple(tokens)
    return {
        name: _category_score(model, i, tokens)
        for i, name in enumerate(model.categories)
    }


def classify(model: NaiveBayesModel, tokens: Iterable[str]) -> Label:
    """Return the most probable category for a bag of tokens.

    Categories are scored in index order and a later category only wins
    with a strictly lower score, so ties go to the lower index.

    Returns:
        The category name, or ``NO_CLASSIFICATION`` when the model has no
        categories (or none scores below ``inf``).
    """
    tokens = tuple(tokens)
    best_score = math.inf
    best: Label = NO_CLASSIFICATION
    for i, name in enumerate(model.categories):
        total = _category_score(model, i, tokens)
        if total < best_score:
            best_score = total
            best = name
    return best


def posterior(model: NaiveBayesModel, tokens: Iterable[str]) -> dict[str, float]:
    """Normalised class probabilities for a document.

    Uses log-sum-exp over the negated scores for numerical stability.
    """
    scores = score(model, tokens)
    finite = [s for s in scores.values() if s != math.inf]
    if not finite:
        return {name: 0.0 for name in scores}
    best = min(finite)
    weights = {name: math.exp(best - s) for name, s in scores.items()}
    total = sum(weights.values())
    return {name: w / total for name, w in weights.items()}


def predict(model: NaiveBayesModel, tokens: Iterable[str]) -> Prediction:
    """Classify a document and keep its per-category scores."""
    tokens = tuple(tokens)
    return Prediction(
        label=classify(model, tokens),
        scores=score(model, tokens),
        probabilities=posterior(model, tokens),
    )


def classify_all(
    model: NaiveBayesModel,
    documents: Iterable[Iterable[str]],
    workers: int = 1,
) -> list[Label]:
    """Classify every document, returning labels in input order.

    Args:
        model: Fitted model, shared read-only between workers.
        documents: Bags of tokens.
        workers: Number of threads; ``1`` classifies sequentially.

    Raises:
        ValueError: If ``workers`` is less than 1.
    """
    if workers < 1:
        raise ValueError("workers must be at least 1")
    if workers == 1:
        return [classify(model, doc) for doc in documents]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(partial(classify, model), documents))


def iter_classify(
    model: NaiveBayesModel,
    documents: Iterable[Iterable[str]],
) -> Iterator[tuple[tuple[str, ...], Label]]:
    """Lazily yield ``(tokens, label)`` for each document."""
    for doc in documents:
        tokens = tuple(doc)
        yield tokens, classify(model, tokens)


def most_informative_tokens(
    model: NaiveBayesModel,
    category: str,
    top_n: int = 20,
) -> list[tuple[str, float]]:
    """Tokens that most favour ``category`` over the other categories.

    The score of a token is the average cost under the other categories
    minus its cost under ``category``; larger means more indicative.
    With a single category the tokens are ranked by their
    log-likelihood instead.

    Raises:
        ValueError: If ``category`` is not in the model.
    """
    index = model.index_of(category)
    others = [i for i in range(model.num_categories) if i != index]

    ranked: list[tuple[str, float]] = []
    for token in model.likelihoods[index]:
        own = _token_cost(model, index, token)
        if others:
            avg_other = sum(_token_cost(model, i, token) for i in others) / len(others)
            ranked.append((token, round(avg_other - own, 4)))
        else:
            ranked.append((token, round(-own, 4)))

    ranked.sort(key=lambda x: (-x[1], x[0]))
    return ranked[:top_n]
