"""
WordPath CLI - vocabulary learning path in the terminal.

Commands:
    wordpath stats       - Learning path statistics for the deck
    wordpath queues      - Preview, quiz and deep-learn queues
    wordpath recommend   - The single most useful next action
    wordpath plan        - Preview today's session without starting it
    wordpath session     - Run the interactive daily session
    wordpath score       - Estimated verbal score, percentile and readiness
    wordpath review      - SM-2 due list (add --drill to review them)
    wordpath feynman     - Explain words in your own words and rate yourself

Usage:
    wordpath --help
    wordpath --deck words.json stats
    wordpath session --preview 5 --quiz 10
    wordpath score --target 165 --days 30
"""

from __future__ import annotations

import random
import sys
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import Settings, get_settings
from src.engine import (
    Item,
    LearningPathPlanner,
    LearningStage,
    LearningStageMachine,
    ReviewScheduler,
    ScoreCategory,
    ScoreEstimator,
    WordStatus,
)
from src.engine.planner import FEYNMAN_BATCH
from src.storage import JsonItemStore, StoreError

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="wordpath",
    help="📚 WordPath - Preview, quiz and deep-learn vocabulary from the terminal",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"

CATEGORY_STYLES = {
    ScoreCategory.SUCCESS: "green",
    ScoreCategory.WARNING: "yellow",
    ScoreCategory.NEEDS_WORK: "red",
}

STAGE_STYLES = {
    LearningStage.UNSEEN: "dim",
    LearningStage.PREVIEWED: "cyan",
    LearningStage.QUIZ_READY: "blue",
    LearningStage.QUIZ_PASSED: "yellow",
    LearningStage.DEEP_LEARNED: "green",
}


def configure_logging(level: str) -> None:
    """Send loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)


@dataclass
class CLIContext:
    """Services shared by every command."""

    settings: Settings
    store: JsonItemStore
    rng: random.Random

    def load_items(self) -> list[Item]:
        try:
            return self.store.load_items()
        except StoreError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(1)

    def planner(self) -> LearningPathPlanner:
        return LearningPathPlanner(rng=self.rng)


@app.callback()
def main_callback(
    ctx: typer.Context,
    deck: Annotated[
        Path | None, typer.Option("--deck", "-d", help="Deck JSON file (default from settings)")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log engine decisions to stderr")
    ] = False,
) -> None:
    """
    WordPath vocabulary trainer.

    Words move along a fixed path: preview, quiz on a spaced schedule,
    then a deep-learning check for anything you keep missing.
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    ctx.obj = CLIContext(
        settings=settings,
        store=JsonItemStore(deck or settings.deck_path),
        rng=random.Random(settings.random_seed),
    )


# =============================================================================
# Progress Commands
# =============================================================================


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show learning path statistics."""
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    path_stats = cli.planner().stats(items)

    table = Table(title="Learning Path", box=box.ROUNDED)
    table.add_column("Stage", style="bold")
    table.add_column("Words", justify="right")

    counts = {
        LearningStage.UNSEEN: path_stats.unseen,
        LearningStage.PREVIEWED: path_stats.previewed,
        LearningStage.QUIZ_READY: path_stats.quiz_ready,
        LearningStage.QUIZ_PASSED: path_stats.quiz_passed,
        LearningStage.DEEP_LEARNED: path_stats.deep_learned,
    }
    for stage, count in counts.items():
        table.add_row(f"[{STAGE_STYLES[stage]}]{stage.display_name}[/]", str(count))
    table.add_section()
    table.add_row("Total", str(path_stats.total))

    console.print(table)
    console.print(
        f"Mastered: [green]{path_stats.mastered}[/green] "
        f"({path_stats.completion_percentage:.0f}%)  "
        f"In progress: [cyan]{path_stats.in_progress}[/cyan]  "
        f"Ready for quiz: [blue]{path_stats.ready_for_quiz}[/blue]  "
        f"Needs deep learning: [yellow]{path_stats.needs_deep_learn}[/yellow]  "
        f"Struggling: [red]{path_stats.struggling}[/red]"
    )


@app.command()
def queues(ctx: typer.Context) -> None:
    """List the words waiting in each learning-path queue."""
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    planner = cli.planner()
    settings = cli.settings

    sections = [
        ("Preview", "cyan", planner.preview_queue(items, settings.preview_queue_limit)),
        ("Quiz", "blue", planner.quiz_queue(items, settings.quiz_queue_limit)),
        ("Deep Learn", "yellow", planner.deep_learn_queue(items, settings.deep_learn_queue_limit)),
    ]

    table = Table(title="Learning Path Queues", box=box.ROUNDED)
    table.add_column("Queue", style="bold")
    table.add_column("Count", justify="right")
    table.add_column("Words")
    for name, style, queue in sections:
        table.add_row(f"[{style}]{name}[/]", str(len(queue)), ", ".join(item.term for item in queue) or "-")
    console.print(table)


@app.command()
def recommend(ctx: typer.Context) -> None:
    """Show the single most useful next action."""
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    recommendation = cli.planner().recommendation(items)

    body = recommendation.reason
    if recommendation.count:
        body = f"[bold]{recommendation.count}[/bold] words · {recommendation.reason}"
    console.print(Panel(body, title=f"[bold cyan]{recommendation.title}[/bold cyan]", border_style="cyan"))


@app.command()
def plan(
    ctx: typer.Context,
    preview: Annotated[
        int | None, typer.Option("--preview", "-p", help="New words to preview")
    ] = None,
    quiz: Annotated[int | None, typer.Option("--quiz", "-q", help="Quiz questions")] = None,
) -> None:
    """Show what today's session would contain."""
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    config = cli.planner().build_session(
        items,
        preview_count=cli.settings.preview_count if preview is None else preview,
        quiz_goal=cli.settings.quiz_goal if quiz is None else quiz,
    )

    if config.is_empty:
        console.print("[yellow]Nothing to study right now. Great job! 🎉[/yellow]")
        return

    table = Table(title="Today's Session", box=box.ROUNDED)
    table.add_column("Phase", style="bold")
    table.add_column("Words")
    table.add_row("Preview", ", ".join(item.term for item in config.preview_items) or "-")
    table.add_row("Quiz", ", ".join(item.term for item in config.quiz_items) or "-")
    table.add_row("Deep Moment", config.deep_learn_item.term if config.deep_learn_item else "-")
    console.print(table)


@app.command()
def session(
    ctx: typer.Context,
    preview: Annotated[
        int | None, typer.Option("--preview", "-p", help="New words to preview")
    ] = None,
    quiz: Annotated[int | None, typer.Option("--quiz", "-q", help="Quiz questions")] = None,
) -> None:
    """
    Run the interactive daily session.

    Examples:
        wordpath session              # Default sizes from settings
        wordpath session -p 5 -q 10   # Bigger session
    """
    from src.cli.session_runner import SessionRunner

    cli: CLIContext = ctx.obj
    items = cli.load_items()
    config = cli.planner().build_session(
        items,
        preview_count=cli.settings.preview_count if preview is None else preview,
        quiz_goal=cli.settings.quiz_goal if quiz is None else quiz,
    )

    if config.is_empty:
        console.print("[yellow]Nothing to study right now. Come back tomorrow! 🎉[/yellow]")
        return

    runner = SessionRunner(
        config=config,
        store=cli.store,
        rng=cli.rng,
        console=console,
        max_answer_length=cli.settings.max_answer_length,
    )
    runner.run()


# =============================================================================
# Score
# =============================================================================


def _collect_accuracy(items: list[Item], history: list[dict]) -> tuple[int, int]:
    """Answers given and answers correct across SM-2 reviews and past sessions."""
    studied = sum(item.times_reviewed for item in items)
    correct = sum(item.times_correct for item in items)
    for record in history:
        studied += int(record.get("total_questions", 0))
        correct += int(record.get("quiz_correct", 0))
    return studied, correct


@app.command()
def score(
    ctx: typer.Context,
    target: Annotated[int | None, typer.Option("--target", "-t", help="Target score")] = None,
    days: Annotated[
        int | None, typer.Option("--days", help="Days until the exam")
    ] = None,
    words_per_day: Annotated[
        float, typer.Option("--words-per-day", "-w", help="Study pace for the projection")
    ] = 10.0,
) -> None:
    """Estimate your verbal score from learning progress."""
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    try:
        history = cli.store.load_session_history()
    except StoreError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)

    target_score = cli.settings.target_score if target is None else target
    estimator = ScoreEstimator()

    reviewed = [item for item in items if item.times_reviewed > 0]
    avg_time = (
        sum(item.average_response_time for item in reviewed) / len(reviewed) if reviewed else 10.0
    )
    studied, correct = _collect_accuracy(items, history)
    mastered = sum(1 for item in items if item.status == WordStatus.MASTERED)
    deep_learned = sum(1 for item in items if item.learning_stage == LearningStage.DEEP_LEARNED)

    estimate = estimator.estimate_from_stats(
        mastered_count=mastered,
        deep_learned_count=deep_learned,
        total_count=len(items),
        total_studied=studied,
        total_correct=correct,
        avg_response_time=avg_time,
    )
    style = CATEGORY_STYLES[estimator.category(estimate, target_score)]
    readiness = estimator.readiness(mastered, len(items), estimate, target_score)

    lines = [
        f"[bold {style}]{estimate}[/bold {style}]  {estimator.describe(estimate)}",
        f"Percentile: ~{estimator.percentile(estimate)}",
        f"Readiness for {target_score}: {readiness:.0%}",
        estimator.study_recommendation(estimate, target_score, days),
    ]
    if days is not None and days > 0:
        projected = estimator.project(estimate, words_per_day, days)
        lines.append(f"Projected in {days} days at {words_per_day:g} words/day: {projected}")

    console.print(Panel("\n".join(lines), title="[bold]Estimated Verbal Score[/bold]", border_style=style))


# =============================================================================
# SM-2 Review
# =============================================================================


@app.command()
def review(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option("--limit", "-n", help="Max items")] = None,
    drill: Annotated[
        bool, typer.Option("--drill", help="Review the due items one by one")
    ] = False,
    swipe: Annotated[
        bool, typer.Option("--swipe", help="Grade knew-it/missed-it only, ignoring recall time")
    ] = False,
) -> None:
    """
    List (or drill) items due for SM-2 review.

    In a drill the time taken to reveal the definition sets the grade:
    quick recalls are scheduled further out than slow ones.
    """
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    scheduler = ReviewScheduler()
    due = scheduler.due_items(items, limit=cli.settings.review_limit if limit is None else limit)

    if not due:
        console.print("[green]No words due for review. 🎉[/green]")
        return

    if not drill:
        table = Table(title=f"Due for Review ({len(due)})", box=box.ROUNDED)
        table.add_column("Word", style="bold")
        table.add_column("Status")
        table.add_column("Reps", justify="right")
        table.add_column("Ease", justify="right")
        table.add_column("Due")
        for item in due:
            table.add_row(
                item.term,
                item.status.value,
                str(item.repetitions),
                f"{item.ease_factor:.2f}",
                f"{item.next_review_date:%Y-%m-%d}" if item.next_review_date else "now",
            )
        console.print(table)
        return

    reviewed: list[Item] = []
    for item in due:
        console.print(Panel(f"[bold]{item.term}[/bold] [dim]({item.part_of_speech})[/dim]", border_style="cyan"))
        started = time.monotonic()
        Prompt.ask("[dim]Press Enter to reveal[/dim]", default="", show_default=False)
        recall_ms = int((time.monotonic() - started) * 1000)
        console.print(f"  {item.definition}")
        knew_it = Confirm.ask("Did you know it?", default=True)

        if swipe:
            updated = scheduler.apply_swipe(item, knew_it)
        else:
            updated = scheduler.apply_response(item, scheduler.grade_from_response(knew_it, recall_ms))
        reviewed.append(updated.record_review(knew_it, recall_ms / 1000, datetime.now()))

    _save(cli, reviewed)
    console.print(f"[green]✓ Reviewed {len(reviewed)} words[/green]")


# =============================================================================
# Feynman Mode
# =============================================================================

RATINGS = {
    1: ("Lost", "I don't understand this word at all"),
    2: ("Fuzzy", "I have a vague idea but need more practice"),
    3: ("Okay", "I understand it but might forget"),
    4: ("Good", "I understand it well"),
    5: ("Solid", "I could teach this word to someone else!"),
}


@app.command()
def feynman(
    ctx: typer.Context,
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Words to explain")
    ] = FEYNMAN_BATCH,
) -> None:
    """
    Explain words in your own words, then rate your understanding.

    Words come from the deep-learn queue first, then any word you have
    not yet rated 4 or higher. A rating of 4+ marks the word deep-learned.
    """
    cli: CLIContext = ctx.obj
    items = cli.load_items()
    words = cli.planner().feynman_queue(items, limit)

    if not words:
        console.print("[yellow]No words in the deck yet.[/yellow]")
        return

    machine = LearningStageMachine()
    explained: list[Item] = []
    for index, item in enumerate(words, start=1):
        body = f"[bold]{item.term}[/bold] [dim]({item.part_of_speech})[/dim]\n\n{item.definition}"
        if item.example_sentence:
            body += f"\n\n[italic]{item.example_sentence}[/italic]"
        console.print(Panel(body, title=f"Word {index}/{len(words)}", border_style="magenta"))
        if item.has_feynman_data:
            console.print(f"[dim]Last time: {item.user_explanation or '-'} | {item.user_example or '-'}[/dim]")

        explanation = Prompt.ask("Explain it in your own simple words", default="", show_default=False)
        example = Prompt.ask("Use it in a sentence of your own", default="", show_default=False)
        for rating, (label, description) in RATINGS.items():
            console.print(f"  [bold]{rating}[/bold] {label}: [dim]{description}[/dim]")
        confidence = int(Prompt.ask("How well do you understand it?", choices=[str(r) for r in RATINGS], default="3"))

        explained.append(machine.record_feynman(item, confidence, explanation, example))

    _save(cli, explained)
    confident = sum(1 for item in explained if item.learning_stage == LearningStage.DEEP_LEARNED)
    try:
        cli.store.save_session_stats(
            uuid.uuid4().hex[:8],
            {"session_type": "feynman", "words_explained": len(explained), "deep_learned": confident},
        )
    except StoreError as e:
        logger.warning(f"Could not record Feynman session: {e}")

    console.print(f"[green]✓ Explained {len(explained)} words ({confident} deep-learned)[/green]")


def _save(cli: CLIContext, items: list[Item]) -> None:
    try:
        cli.store.save_items(items)
    except StoreError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
