"""Command-line interface for the Naive Bayes text classifier.

Provides ``classify``, ``evaluate`` and ``inspect`` commands built on
``click``, with ``rich`` tables and log output.

Usage::

    nb-text-classifier classify -d train.txt -t test.txt
    nb-text-classifier classify -d train.txt -t - --no-test-labels < docs.txt
    nb-text-classifier evaluate -d train.txt -t heldout.txt
    nb-text-classifier inspect -d train.txt --top 10

``classify`` prints one predicted label per line unless another output
format is requested.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import Settings
from .dataset import Dataset, load_dataset
from .metrics import ClassificationMetrics, compute_metrics
from .models import NO_CLASSIFICATION
from .naive_bayes import (
    NaiveBayesModel,
    classify_all,
    fit,
    most_informative_tokens,
    posterior,
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    """Send the package's log records to stderr through rich."""
    handler = RichHandler(console=err_console, show_path=False, log_time_format="[%X]")
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger("nb_text_classifier")
    package_logger.handlers = [handler]
    package_logger.setLevel(settings.log_level_value)
    package_logger.propagate = False


def _fail(error: Exception) -> None:
    err_console.print(f"[bold red]Error:[/] {escape(str(error))}")
    sys.exit(1)


def _dataset_options(func):
    """Options shared by every command that reads a training file."""
    func = click.option("--delimiter", default=None,
                        help="Separator between label and text "
                             "(default: first token is the label).")(func)
    func = click.option("--lowercase/--no-lowercase", default=None,
                        help="Lowercase tokens (default from NBTEXT_LOWERCASE).")(func)
    func = click.option("--training", "-d", "training_file", required=True,
                        type=click.Path(dir_okay=False, path_type=Path),
                        help="Labeled training file.")(func)
    return func


def _effective(settings: Settings, lowercase: Optional[bool], delimiter: Optional[str],
               workers: Optional[int] = None) -> Settings:
    """Apply command-line overrides on top of the configured settings."""
    overrides: dict = {}
    if lowercase is not None:
        overrides["lowercase"] = lowercase
    if delimiter is not None:
        overrides["delimiter"] = delimiter
    if workers is not None:
        overrides["workers"] = workers
    return replace(settings, **overrides)


def _load(path: Path | str, settings: Settings, labeled: bool = True) -> Dataset:
    return load_dataset(
        path,
        labeled=labeled,
        lowercase=settings.lowercase,
        delimiter=settings.delimiter,
        encoding=settings.encoding,
    )


def _train(path: Path, settings: Settings) -> NaiveBayesModel:
    training = _load(path, settings)
    logger.info("Training on %d document(s) from %s", len(training), training.source)
    return fit(training)


@click.group()
@click.version_option(package_name="nb-text-classifier")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Logging level (default from NBTEXT_LOG_LEVEL).")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """Multinomial Naive Bayes text classifier.

    Train on a labeled corpus and classify documents, one per line.
    """
    try:
        settings = Settings.from_env()
    except ValueError as e:
        _fail(e)
    if log_level:
        settings = replace(settings, log_level=log_level.upper())
    _configure_logging(settings)
    ctx.obj = settings


@main.command()
@_dataset_options
@click.option("--test", "-t", "test_file", required=True,
              help="Test file, or '-' to read from stdin.")
@click.option("--test-labels/--no-test-labels", default=True,
              help="Whether test lines start with a category like training lines.")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None,
              help="Threads used for classification (default from NBTEXT_WORKERS).")
@click.option("--output", "-o", type=click.Choice(["plain", "rich", "json"]), default="plain",
              help="Output format.")
@click.pass_obj
def classify(
    settings: Settings,
    training_file: Path,
    lowercase: bool | None,
    delimiter: str | None,
    test_file: str,
    test_labels: bool,
    workers: int | None,
    output: str,
) -> None:
    """Train on TRAINING and print the predicted category of each test line.

    Example: nb-text-classifier classify -d train.txt -t test.txt
    """
    settings = _effective(settings, lowercase, delimiter, workers)
    try:
        model = _train(training_file, settings)
        test = _load(test_file, settings, labeled=test_labels)
        documents = test.documents()
        labels = classify_all(model, documents, workers=settings.workers)
    except (OSError, ValueError) as e:
        _fail(e)

    if output == "plain":
        for label in labels:
            click.echo(str(label))
        return

    rows = []
    for i, (dp, label) in enumerate(zip(test, labels), 1):
        confidence = 0.0
        if label is not NO_CLASSIFICATION:
            confidence = posterior(model, dp.tokens).get(label, 0.0)
        rows.append({
            "index": i,
            "label": str(label),
            "confidence": round(confidence, 4),
            "expected": dp.category,
            "tokens": len(dp),
        })

    if output == "json":
        click.echo(json.dumps(rows, indent=2))
    else:
        _render_predictions(rows, test.source, test_labels)


@main.command()
@_dataset_options
@click.option("--test", "-t", "test_file", required=True,
              help="Labeled test file, or '-' to read from stdin.")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None,
              help="Threads used for classification.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def evaluate(
    settings: Settings,
    training_file: Path,
    lowercase: bool | None,
    delimiter: str | None,
    test_file: str,
    workers: int | None,
    output: str,
) -> None:
    """Train on TRAINING and score predictions against a labeled test file.

    Example: nb-text-classifier evaluate -d train.txt -t heldout.txt
    """
    settings = _effective(settings, lowercase, delimiter, workers)
    try:
        model = _train(training_file, settings)
        test = _load(test_file, settings)
        predictions = classify_all(model, test.documents(), workers=settings.workers)
        metrics = compute_metrics(test.labels, predictions, model.categories)
    except (OSError, ValueError) as e:
        _fail(e)

    if output == "json":
        click.echo(json.dumps(metrics.to_dict(), indent=2))
    else:
        _render_metrics(metrics, test.source)


@main.command()
@_dataset_options
@click.option("--top", "-n", type=click.IntRange(min=1), default=10,
              help="Number of informative tokens shown per category.")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_obj
def inspect(
    settings: Settings,
    training_file: Path,
    lowercase: bool | None,
    delimiter: str | None,
    top: int,
    output: str,
) -> None:
    """Show the fitted priors and the most informative tokens per category.

    Example: nb-text-classifier inspect -d train.txt --top 5
    """
    settings = _effective(settings, lowercase, delimiter)
    try:
        model = _train(training_file, settings)
    except (OSError, ValueError) as e:
        _fail(e)

    summary = model.summary()
    for entry in summary["categories"]:
        entry["top_tokens"] = most_informative_tokens(model, entry["name"], top)

    if output == "json":
        click.echo(json.dumps(summary, indent=2))
    else:
        _render_model(summary, training_file.name)


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_predictions(rows: list[dict], source: str, show_expected: bool) -> None:
    """Render per-document predictions as a rich table."""
    table = Table(title=f"Predictions — {source}", show_lines=False)
    table.add_column("#", justify="right", width=5)
    table.add_column("Predicted", style="cyan")
    table.add_column("Conf.", justify="center", width=7)
    if show_expected:
        table.add_column("Expected", style="dim")
    table.add_column("Tokens", justify="right", width=7)

    for row in rows:
        cells = [str(row["index"]), escape(row["label"]), f"{row['confidence']:.0%}"]
        if show_expected:
            expected = row["expected"] or "-"
            style = "green" if expected == row["label"] else "red"
            cells.append(f"[{style}]{escape(expected)}[/]")
        cells.append(str(row["tokens"]))
        table.add_row(*cells)

    console.print(table)


def _render_metrics(metrics: ClassificationMetrics, source: str) -> None:
    """Render evaluation metrics with a per-category table."""
    console.print(Panel(
        f"Documents: {metrics.total} | "
        f"Accuracy: [bold]{metrics.accuracy:.2%}[/] | "
        f"Coverage: {metrics.coverage:.2%} | "
        f"Macro F1: {metrics.macro_f1:.4f} | "
        f"Weighted F1: {metrics.weighted_f1:.4f}",
        title=f"Evaluation — {source}",
        border_style="blue",
    ))

    table = Table(show_lines=False)
    table.add_column("Category", style="cyan")
    table.add_column("Precision", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("F1", justify="right")
    table.add_column("Support", justify="right")
    table.add_column("Unclassified", justify="right")
    for name in metrics.categories:
        s = metrics.per_category[name]
        table.add_row(
            escape(name),
            f"{s.precision:.4f}",
            f"{s.recall:.4f}",
            f"{s.f1:.4f}",
            str(s.support),
            str(metrics.unclassified[name]),
        )
    console.print(table)

    confused = metrics.most_confused()
    if confused:
        console.print("[bold]Most confused:[/]")
        for true, pred, count in confused:
            console.print(f"  {escape(true)} -> {escape(pred)}: {count}")


def _render_model(summary: dict, source: str) -> None:
    """Render fitted model parameters."""
    console.print(Panel(
        f"Categories: {len(summary['categories'])} | "
        f"Vocabulary: {summary['vocab_size']} | "
        f"Unknown-word cost: {summary['unknown_word']:.4f}",
        title=f"Naive Bayes model — {source}",
        border_style="blue",
    ))

    table = Table(show_lines=True)
    table.add_column("#", justify="right", width=4)
    table.add_column("Category", style="cyan")
    table.add_column("Docs", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("-log prior", justify="right")
    table.add_column("Top tokens", style="white", max_width=50)
    for entry in summary["categories"]:
        tokens = ", ".join(token for token, _ in entry["top_tokens"]) or "-"
        table.add_row(
            str(entry["index"]),
            entry["name"],
            str(entry["documents"]),
            str(entry["words"]),
            f"{entry['prior']:.4f}",
            tokens,
        )
    console.print(table)


if __name__ == "__main__":
    main()
