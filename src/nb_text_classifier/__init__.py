"""nb-text-classifier -- multinomial Naive Bayes text classification."""

__version__ = "0.1.0"

from .config import Settings
from .dataset import (
    Datapoint,
    Dataset,
    DatasetFormatError,
    load_dataset,
    parse_lines,
    read_dataset,
    tokenize,
)
from .metrics import ClassificationMetrics, compute_metrics
from .models import NO_CLASSIFICATION, Label, NoClassification, Prediction
from .naive_bayes import (
    InvalidModelError,
    NaiveBayesModel,
    WordCounts,
    classify,
    classify_all,
    count_words,
    count_words_parallel,
    fit,
    fit_counts,
    iter_classify,
    most_informative_tokens,
    posterior,
    predict,
    score,
    token_cost,
)

__all__ = [
    # Core
    "fit",
    "fit_counts",
    "classify",
    "classify_all",
    "iter_classify",
    "NaiveBayesModel",
    "InvalidModelError",
    # Counting
    "WordCounts",
    "count_words",
    "count_words_parallel",
    # Scoring
    "score",
    "token_cost",
    "posterior",
    "predict",
    "most_informative_tokens",
    # Results
    "Label",
    "NoClassification",
    "NO_CLASSIFICATION",
    "Prediction",
    # Corpus loading
    "Datapoint",
    "Dataset",
    "DatasetFormatError",
    "load_dataset",
    "parse_lines",
    "read_dataset",
    "tokenize",
    # Evaluation
    "ClassificationMetrics",
    "compute_metrics",
    # Configuration
    "Settings",
]
