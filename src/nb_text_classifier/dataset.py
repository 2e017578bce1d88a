"""Corpus loading for labeled and unlabeled text datasets.

A dataset file holds one datapoint per line with whitespace-separated
tokens. In a labeled file the first token of each line is the category
name::

    spam buy cheap pills now
    ham  agenda for the meeting today

Blank lines and lines starting with ``#`` are skipped. A labeled line
with only a category is a valid, empty document. With an explicit
delimiter (e.g. a tab) the category is everything before the first
delimiter and lines without it are rejected.
"""

from __future__ import annotations

import io
import logging
import sys
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


class DatasetFormatError(ValueError):
    """Raised when a dataset line cannot be parsed."""


def tokenize(text: str, lowercase: bool = False) -> list[str]:
    """Split text on whitespace into tokens."""
    tokens = text.split()
    if lowercase:
        tokens = [t.lower() for t in tokens]
    return tokens


@dataclass(frozen=True)
class Datapoint:
    """A bag of tokens, optionally tagged with its category."""

    tokens: tuple[str, ...]
    category: Optional[str] = None

    def __iter__(self) -> Iterator[str]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def count(self, token: str) -> int:
        """Occurrences of ``token`` in this datapoint."""
        return self.tokens.count(token)

    @property
    def is_labeled(self) -> bool:
        return self.category is not None


@dataclass
class Dataset:
    """An ordered collection of datapoints with per-category statistics.

    Attributes:
        datapoints: Datapoints in file order.
        categories: Category names in order of first appearance.
        category_index: Category name to index in ``categories``.
        doc_counts: Number of datapoints per category.
        word_totals: Total token occurrences per category.
        source: Where the data came from (file name or ``<stdin>``).
    """

    datapoints: list[Datapoint] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    category_index: dict[str, int] = field(default_factory=dict)
    doc_counts: Counter[str] = field(default_factory=Counter)
    word_totals: Counter[str] = field(default_factory=Counter)
    source: str = ""

    def add(self, datapoint: Datapoint) -> None:
        self.datapoints.append(datapoint)
        cat = datapoint.category
        if cat is None:
            return
        if cat not in self.category_index:
            self.category_index[cat] = len(self.categories)
            self.categories.append(cat)
        self.doc_counts[cat] += 1
        self.word_totals[cat] += len(datapoint)

    def __iter__(self) -> Iterator[Datapoint]:
        return iter(self.datapoints)

    def __len__(self) -> int:
        return len(self.datapoints)

    @property
    def is_labeled(self) -> bool:
        """True when every datapoint carries a category."""
        return bool(self.datapoints) and all(dp.is_labeled for dp in self.datapoints)

    @property
    def labels(self) -> list[Optional[str]]:
        return [dp.category for dp in self.datapoints]

    def pairs(self) -> Iterator[tuple[Optional[str], tuple[str, ...]]]:
        """Yield ``(category, tokens)`` for fitting."""
        for dp in self.datapoints:
            yield dp.category, dp.tokens

    def documents(self) -> list[tuple[str, ...]]:
        """Token tuples of every datapoint, for classification."""
        return [dp.tokens for dp in self.datapoints]


def _split_label(
    line: str,
    delimiter: Optional[str],
    source: str,
    lineno: int,
) -> tuple[str, str]:
    if delimiter is None:
        parts = line.split(None, 1)
        return parts[0], parts[1] if len(parts) > 1 else ""

    if delimiter not in line:
        raise DatasetFormatError(
            f"{source or '<input>'}:{lineno}: expected {delimiter!r} after the category"
        )
    category, text = line.split(delimiter, 1)
    category = category.strip()
    if not category:
        raise DatasetFormatError(f"{source or '<input>'}:{lineno}: empty category")
    return category, text


def parse_lines(
    lines: Iterable[str],
    labeled: bool = True,
    lowercase: bool = False,
    delimiter: Optional[str] = None,
    source: str = "",
) -> Dataset:
    """Build a Dataset from text lines.

    Args:
        lines: Raw lines, one datapoint each.
        labeled: Whether each line starts with a category.
        lowercase: Lowercase tokens (category names are kept as-is).
        delimiter: Separator between category and text in labeled
            lines. ``None`` takes the first whitespace-separated token.
        source: Name used in error messages.

    Raises:
        DatasetFormatError: If a labeled line lacks the delimiter or has
            an empty category.
    """
    dataset = Dataset(source=source)
    for lineno, line in enumerate(lines, 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if labeled:
            raw = stripped if delimiter is None else line.rstrip("\r\n")
            category, text = _split_label(raw, delimiter, source, lineno)
            dataset.add(Datapoint(tuple(tokenize(text, lowercase)), category))
        else:
            dataset.add(Datapoint(tuple(tokenize(stripped, lowercase))))
    logger.debug(
        "Loaded %d datapoint(s) in %d categories from %s",
        len(dataset), len(dataset.categories), source or "<input>",
    )
    return dataset


def read_dataset(
    stream: TextIO,
    labeled: bool = True,
    lowercase: bool = False,
    delimiter: Optional[str] = None,
) -> Dataset:
    """Read a Dataset from an open text stream."""
    source = getattr(stream, "name", "<stream>")
    return parse_lines(
        stream, labeled=labeled, lowercase=lowercase, delimiter=delimiter, source=str(source)
    )


def load_dataset(
    path: str | Path,
    labeled: bool = True,
    lowercase: bool = False,
    delimiter: Optional[str] = None,
    encoding: str = "utf-8",
) -> Dataset:
    """Load a Dataset from a file, or from stdin when ``path`` is ``-``.

    Both sources are decoded with ``encoding``; undecodable bytes are
    replaced rather than rejected.

    Raises:
        FileNotFoundError: If the file does not exist.
        DatasetFormatError: If a labeled line is malformed.
    """
    if str(path) == STDIN_PATH:
        buffer = getattr(sys.stdin, "buffer", None)
        if buffer is None:
            # Already a decoded text stream, e.g. a StringIO.
            return parse_lines(
                sys.stdin, labeled=labeled, lowercase=lowercase, delimiter=delimiter,
                source="<stdin>",
            )
        stream = io.TextIOWrapper(buffer, encoding=encoding, errors="replace")
        try:
            return parse_lines(
                stream, labeled=labeled, lowercase=lowercase, delimiter=delimiter,
                source="<stdin>",
            )
        finally:
            # Leave sys.stdin.buffer open for the rest of the process.
            stream.detach()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding=encoding, errors="replace") as f:
        return parse_lines(
            f, labeled=labeled, lowercase=lowercase, delimiter=delimiter, source=path.name
        )
