"""Command-line interface for the expense categorizer.

Provides ``train``, ``classify``, ``status``, ``evaluate``, ``features`` and
``serve`` commands with rich terminal output using the ``click`` and ``rich``
libraries.

Usage::

    expense-categorizer train
    expense-categorizer train --retrain --data my_expenses.csv
    expense-categorizer classify "coffee at starbucks" "uber to airport"
    expense-categorizer serve --port 8000
"""

from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .classifier import CategoryClassifier
from .config import Settings, configure_logging
from .errors import MalformedInputError, NotTrainedError
from .models import ClassificationResult, TrainingExample
from .storage import store_from_settings
from .training_data import SAMPLE_DESCRIPTIONS, build_training_set, load_training_csv

console = Console()


def _confidence_style(confidence: float) -> str:
    """Return a rich style string for a confidence value."""
    if confidence >= 0.6:
        return "bold green"
    if confidence >= 0.3:
        return "bold yellow"
    return "bold red"


def _build_classifier(ctx: click.Context) -> CategoryClassifier:
    settings: Settings = ctx.obj["settings"]
    return CategoryClassifier(store_from_settings(settings))


def _load_examples(data: Optional[Path]) -> list[TrainingExample]:
    if data is None:
        return build_training_set()
    try:
        return load_training_csv(data)
    except MalformedInputError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)
    except UnicodeDecodeError as e:
        console.print(f"[bold red]Error:[/] {data.name} is not valid UTF-8 ({e.reason})")
        sys.exit(1)


@click.group()
@click.version_option(package_name="expense-categorizer")
@click.option("--model", "model_path", type=click.Path(path_type=Path), default=None,
              help="Local model file (overrides CATEGORIZER_MODEL_PATH and S3 settings).")
@click.option("--log-level", default=None, help="Logging level (default from CATEGORIZER_LOG_LEVEL).")
@click.pass_context
def main(ctx: click.Context, model_path: Path | None, log_level: str | None) -> None:
    """💸 Expense Categorizer — suggest spending categories for expenses.

    Train a small Naive Bayes model on labelled descriptions, then classify
    new expense descriptions from the terminal or over HTTP.
    """
    settings = Settings.from_env()
    if model_path is not None:
        settings = dataclasses.replace(settings, model_path=str(model_path), s3_bucket=None)
    if log_level:
        settings = dataclasses.replace(settings, log_level=log_level.upper())
    configure_logging(settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@main.command()
@click.option("--retrain", is_flag=True, help="Discard the current model before training.")
@click.option("--data", "-d", type=click.Path(exists=True, path_type=Path), default=None,
              help="CSV with description and category columns (default: built-in catalog).")
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_context
def train(ctx: click.Context, retrain: bool, data: Path | None, output: str) -> None:
    """Train the classifier and save the model.

    Example: expense-categorizer train --retrain
    """
    examples = _load_examples(data)
    if not examples:
        console.print("[bold red]Error:[/] no training examples found")
        sys.exit(1)

    classifier = _build_classifier(ctx)
    with console.status("[bold blue]Training expense classifier...", spinner="dots"):
        report = classifier.retrain(examples) if retrain else classifier.train(examples)

    samples = [classifier.classify(d) for d in SAMPLE_DESCRIPTIONS]

    if output == "json":
        click.echo(json.dumps({
            "report": report.to_dict(),
            "status": classifier.get_status().to_dict(),
            "samples": [s.to_dict() for s in samples],
        }, indent=2))
        return

    save_note = "[green]saved[/]" if report.saved else "[bold red]not saved[/]"
    console.print(Panel(
        f"Examples: {report.documents} | "
        f"Documents in model: {report.total_documents} | "
        f"Vocabulary: {report.vocabulary_size} | "
        f"Categories: {len(report.categories)}\n"
        f"Model {save_note} to {classifier.store.identifier}",
        title="🤖 Classifier trained",
        border_style="blue",
    ))
    _render_results(samples, title="Sample classifications")


@main.command()
@click.argument("descriptions", nargs=-1, required=True)
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich",
              help="Output format.")
@click.pass_context
def classify(ctx: click.Context, descriptions: tuple[str, ...], output: str) -> None:
    """Suggest categories for one or more descriptions.

    Example: expense-categorizer classify "latte at starbucks"
    """
    classifier = _build_classifier(ctx)
    try:
        results = classifier.classify_batch(list(descriptions))
    except NotTrainedError as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)

    if output == "json":
        click.echo(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        _render_results(results, title="Classifications")


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show whether a model is trained and where it is stored."""
    classifier = _build_classifier(ctx)
    click.echo(json.dumps(classifier.get_status().to_dict(), indent=2))


@main.command()
@click.option("--folds", "-k", type=click.IntRange(min=2), default=5, show_default=True,
              help="Number of cross-validation folds.")
@click.option("--data", "-d", type=click.Path(exists=True, path_type=Path), default=None,
              help="CSV with description and category columns (default: built-in catalog).")
@click.option("--seed", type=int, default=42, show_default=True)
@click.pass_context
def evaluate(ctx: click.Context, folds: int, data: Path | None, seed: int) -> None:
    """Cross-validate the classifier on labelled data.

    Does not modify the saved model.
    """
    examples = _load_examples(data)
    classifier = CategoryClassifier(store_from_settings(ctx.obj["settings"]), autoload=False)
    with console.status("[bold blue]Cross-validating...", spinner="dots"):
        results = classifier.evaluate(examples, k=folds, seed=seed)

    if not results:
        console.print("[bold red]Error:[/] not enough data for cross-validation")
        sys.exit(1)

    table = Table(title=f"{len(results)}-fold cross-validation")
    table.add_column("Fold", justify="right", width=5)
    table.add_column("Accuracy", justify="right")
    table.add_column("Macro F1", justify="right")
    table.add_column("Weighted F1", justify="right")
    for i, metrics in enumerate(results, 1):
        table.add_row(str(i), f"{metrics.accuracy:.2%}", f"{metrics.macro_f1:.4f}",
                      f"{metrics.weighted_f1:.4f}")
    mean_acc = sum(m.accuracy for m in results) / len(results)
    table.add_row("mean", f"{mean_acc:.2%}", "", "", style="bold")

    console.print(table)


@main.command()
@click.argument("category")
@click.option("--top", "-n", type=click.IntRange(min=1), default=10, show_default=True)
@click.pass_context
def features(ctx: click.Context, category: str, top: int) -> None:
    """List the tokens that most favour CATEGORY.

    Example: expense-categorizer features "Food & Dining"
    """
    classifier = _build_classifier(ctx)
    try:
        ranked = classifier.most_informative_features(category, top_n=top)
    except (NotTrainedError, ValueError) as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)

    table = Table(title=f"Most informative tokens — {category}")
    table.add_column("Token", style="cyan")
    table.add_column("Log ratio", justify="right")
    for token, score in ranked:
        table.add_row(token, f"{score:+.3f}")
    console.print(table)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", type=int, default=8000, show_default=True)
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from .api import create_app

    settings: Settings = ctx.obj["settings"]
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


# ------------------------------------------------------------------
# Rich rendering helpers
# ------------------------------------------------------------------

def _render_results(results: list[ClassificationResult], title: str) -> None:
    """Render classification results as a rich table."""
    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", width=4)
    table.add_column("Description", style="white", max_width=50)
    table.add_column("Category", style="cyan", width=16)
    table.add_column("Conf.", justify="center", width=7)

    for i, result in enumerate(results, 1):
        style = _confidence_style(result.confidence)
        category = result.category if not result.is_fallback else f"{result.category} (fallback)"
        table.add_row(
            str(i),
            str(result.description),
            category,
            f"[{style}]{result.confidence:.1%}[/]",
        )

    console.print(table)
    console.print()


if __name__ == "__main__":
    main()
