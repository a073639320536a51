"""
Command line interface for the adaptive scheduler.

Commands:
    adaptive-scheduler review <learner> <item> <quality>   - record an SM-2 review
    adaptive-scheduler answer <learner> <item> --correct   - route an answer (review + exam)
    adaptive-scheduler due <learner>                       - cards due now
    adaptive-scheduler stats <learner>                     - learner performance rollup
    adaptive-scheduler exam start <learner>                - open an exam session
    adaptive-scheduler exam answer <session> <item>        - submit an exam answer
    adaptive-scheduler exam show <session>                 - session progress
    adaptive-scheduler exam next <session>                 - next question from the bank
"""
from __future__ import annotations

from itertools import islice
from typing import NoReturn, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .errors import SchedulerError
from .models import ExamSession, ReviewCard

console = Console()

app = typer.Typer(
    name="adaptive-scheduler",
    help="Spaced repetition reviews and adaptive exam sessions",
    no_args_is_help=True,
)
exam_app = typer.Typer(
    name="exam",
    help="Adaptive (CAT) and standard exam sessions",
    no_args_is_help=True,
)
app.add_typer(exam_app, name="exam")


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    from config import get_settings

    from .log_setup import configure_logging

    configure_logging(get_settings(), level="DEBUG" if verbose else "WARNING")


def _get_service():
    """Lazy load the service so --help works without a database."""
    from config import get_settings

    from .service import build_service

    return build_service(get_settings())


def _fail(error: SchedulerError) -> NoReturn:
    rprint(f"[red]Error:[/red] {error}")
    raise typer.Exit(code=1)


def _format_progress_bar(score: float, width: int = 10) -> str:
    """Format a progress bar."""
    filled = int(score / 100 * width)
    empty = width - filled
    return "#" * filled + "-" * empty


def _card_table(cards: list[ReviewCard], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Item", style="cyan")
    table.add_column("Ease", justify="right")
    table.add_column("Interval", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Last", justify="center")
    table.add_column("Next Review")

    for card in cards:
        table.add_row(
            card.item_id,
            f"{card.ease_factor:.2f}",
            f"{card.interval}d",
            str(card.repetitions),
            card.last_outcome.value,
            card.next_review_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def _print_session(session: ExamSession, next_difficulty: Optional[int] = None) -> None:
    status_style = "green" if session.is_active else "yellow"
    lines = [
        f"Session:    {session.session_id}",
        f"Learner:    {session.learner_id}",
        f"Mode:       {session.mode.value}",
        f"Status:     [{status_style}]{session.status.value}[/{status_style}]",
        f"Answered:   {session.answered_count} / {session.question_target}",
        f"Correct:    {session.correct_count} ({session.score}%)",
        f"Mastery:    {_format_progress_bar(session.mastery_estimate * 100)} "
        f"{session.mastery_estimate:.2f}",
        f"Difficulty: {session.current_difficulty}",
    ]
    if next_difficulty is not None:
        lines.append(f"Next item difficulty: {next_difficulty}")
    if session.completed_at is not None:
        lines.append(f"Completed:  {session.completed_at.isoformat()}")

    console.print(Panel("\n".join(lines), title="[bold]Exam Session[/bold]", border_style="blue"))


# =============================================================================
# Review commands
# =============================================================================


@app.command("review")
def review(
    learner_id: str = typer.Argument(..., help="Learner identifier"),
    item_id: str = typer.Argument(..., help="Item identifier"),
    quality: int = typer.Argument(..., help="Recall quality 0-5"),
) -> None:
    """Record one SM-2 review for a learner/item pair."""
    try:
        card = _get_service().reviews.record_review(learner_id, item_id, quality)
    except SchedulerError as e:
        _fail(e)

    console.print(_card_table([card], title="Review recorded"))


@app.command("answer")
def answer(
    learner_id: str = typer.Argument(..., help="Learner identifier"),
    item_id: str = typer.Argument(..., help="Item identifier"),
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Answer correctness"),
    time_ms: int = typer.Option(0, "--time-ms", "-t", help="Time spent (ms)"),
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Exam session id"),
    quality: Optional[int] = typer.Option(None, "--quality", "-q", help="Explicit quality 0-5"),
) -> None:
    """Record an answer: exam session first (if given), then the review card."""
    try:
        outcome = _get_service().record_answer(
            learner_id, item_id, correct, time_ms, session_id=session_id, quality=quality
        )
    except SchedulerError as e:
        _fail(e)

    console.print(_card_table([outcome.card], title=f"Review recorded (quality {outcome.quality})"))
    if outcome.exam is not None:
        _print_session(outcome.exam.session, outcome.exam.next_difficulty)


@app.command("due")
def due(
    learner_id: str = typer.Argument(..., help="Learner identifier"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum cards to show"),
) -> None:
    """List cards due for review, most overdue first."""
    try:
        cards = list(islice(_get_service().reviews.due_cards(learner_id), limit))
    except SchedulerError as e:
        _fail(e)

    if not cards:
        rprint("[green]All caught up - nothing due.[/green]")
        return
    console.print(_card_table(cards, title=f"Due cards for {learner_id}"))


@app.command("stats")
def stats(
    learner_id: str = typer.Argument(..., help="Learner identifier"),
) -> None:
    """Show mastery, learning and retention statistics."""
    try:
        record = _get_service().reviews.learner_stats(learner_id)
    except SchedulerError as e:
        _fail(e)

    table = Table(title=f"Performance for {learner_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total cards", str(record.total_cards))
    table.add_row("Mastered", str(record.mastered))
    table.add_row("Learning", str(record.learning))
    table.add_row("Needs review", str(record.needs_review))
    table.add_row("Retention", f"{record.retention_rate:.0f}%")
    table.add_row(
        "Mastery",
        f"{_format_progress_bar(record.mastery_percent)} {record.mastery_percent:.0f}%",
    )
    console.print(table)


# =============================================================================
# Exam commands
# =============================================================================


@exam_app.command("start")
def exam_start(
    learner_id: str = typer.Argument(..., help="Learner identifier"),
    mode: str = typer.Option("adaptive", "--mode", "-m", help="adaptive or standard"),
    difficulty: Optional[str] = typer.Option(
        None, "--difficulty", "-d", help="Starting difficulty: easy, medium, hard"
    ),
    questions: Optional[int] = typer.Option(
        None, "--questions", help="Standard mode question count (25-100)"
    ),
) -> None:
    """Start an exam session."""
    try:
        session = _get_service().exams.start_session(
            learner_id, mode, difficulty_hint=difficulty, question_count=questions
        )
    except SchedulerError as e:
        _fail(e)

    _print_session(session)


@exam_app.command("answer")
def exam_answer(
    session_id: str = typer.Argument(..., help="Exam session id"),
    item_id: str = typer.Argument(..., help="Answered item id"),
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Answer correctness"),
    time_ms: int = typer.Option(0, "--time-ms", "-t", help="Time spent (ms)"),
) -> None:
    """Submit one answer to an exam session."""
    try:
        result = _get_service().exams.submit_answer(session_id, item_id, correct, time_ms)
    except SchedulerError as e:
        _fail(e)

    _print_session(result.session, result.next_difficulty)


@exam_app.command("show")
def exam_show(
    session_id: str = typer.Argument(..., help="Exam session id"),
) -> None:
    """Show exam session progress."""
    try:
        session = _get_service().exams.get_session(session_id)
    except SchedulerError as e:
        _fail(e)

    _print_session(session)


@exam_app.command("next")
def exam_next(
    session_id: str = typer.Argument(..., help="Exam session id"),
) -> None:
    """Fetch the next question from the question bank."""
    try:
        item = _get_service().exams.next_item(session_id)
    except SchedulerError as e:
        _fail(e)

    if item is None:
        rprint("[yellow]Question bank has no more items at this difficulty.[/yellow]")
        return
    rprint(f"[cyan]Next item:[/cyan] {item.id}")
    if item.payload:
        rprint(item.payload)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
