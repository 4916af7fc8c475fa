"""CLI interface for the Interview Practice Engine."""
import asyncio
import sys
from typing import Any, Awaitable, Callable, List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .models.session import Feedback, ResponseRecord, Session
from .services.configuration_manager import ConfigurationManager
from .services.practice_service import PracticeSessionService
from .utils.exceptions import PracticeEngineError
from .utils.logging import get_logger, setup_logging


console = Console()
logger = get_logger("cli")


def _run(ctx: click.Context, operation: Callable[[PracticeSessionService], Awaitable[Any]]) -> Any:
    """Run one service operation, printing engine errors instead of tracebacks."""
    service: PracticeSessionService = ctx.obj["service"]

    async def runner():
        try:
            return await operation(service)
        finally:
            await service.cleanup()

    try:
        return asyncio.run(runner())
    except PracticeEngineError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        if e.retryable:
            console.print("[yellow]This is a temporary problem - please try again.[/yellow]")
        logger.error(f"Command failed: {e}")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True, file_okay=False), help="Configuration directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool):
    """Interview Practice - AI-scored mock interview sessions."""
    ctx.ensure_object(dict)

    # Quiet until configuration says otherwise
    setup_logging("DEBUG" if verbose else "ERROR")

    try:
        config_manager = ConfigurationManager(config or "config")
        config_manager.initialize()
        if verbose:
            setup_logging(**{**config_manager.get_logging_config(), "level": "DEBUG"})
        else:
            setup_logging(**config_manager.get_logging_config())

        ctx.obj["config_manager"] = config_manager
        ctx.obj["service"] = PracticeSessionService.from_config(config_manager)
        logger.info("CLI initialized successfully")

    except PracticeEngineError as e:
        console.print(f"[red]Failed to initialize: {escape(str(e))}[/red]")
        logger.error(f"CLI initialization failed: {e}")
        sys.exit(1)


@cli.command()
@click.pass_context
def catalog(ctx: click.Context):
    """List supported industries and positions."""
    bank = ctx.obj["service"].question_bank

    table = Table(title=f"Question bank {bank.version}")
    table.add_column("Industry", style="bold")
    table.add_column("Positions")
    for industry in bank.industries():
        table.add_row(escape(industry), escape(", ".join(bank.positions_for(industry))))
    console.print(table)


@cli.command()
@click.option("--owner", "-o", required=True, help="Owner identifier")
@click.option("--industry", "-i", required=True, help="Industry, e.g. Technology")
@click.option("--position", "-p", required=True, help="Position, e.g. 'Software Developer'")
@click.option("--tier", "-t", type=click.Choice(["entry", "intermediate", "senior"]), default="entry",
              help="Difficulty tier")
@click.option("--length", "-n", type=int, default=None, help="Number of questions")
@click.pass_context
def start(ctx: click.Context, owner: str, industry: str, position: str, tier: str, length: Optional[int]):
    """Start a new practice session."""
    session = _run(ctx, lambda service: service.create_session(owner, position, industry, tier, length))

    content = "\n".join([
        f"Session: {session.id}",
        f"Position: {escape(session.position)} ({escape(session.industry)})",
        f"Tier: {session.difficulty_tier.label}",
        f"Questions: {session.total_questions}",
    ])
    console.print(Panel(content, title="Session Created", border_style="blue"))
    _print_question(session)


@cli.command()
@click.argument("session_id")
@click.argument("text")
@click.pass_context
def answer(ctx: click.Context, session_id: str, text: str):
    """Answer the current question of a session."""

    async def submit(service: PracticeSessionService):
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      console=console, transient=True) as progress:
            progress.add_task("Analyzing your response...", total=None)
            record = await service.submit_response(session_id, text)
        return record, await service.get_session(session_id), await service.get_feedback(session_id)

    record, session, feedback = _run(ctx, submit)
    _print_record(record)

    if feedback is not None:
        _print_feedback(feedback)
    elif session.has_remaining_questions():
        _print_question(session)
    else:
        console.print("[yellow]All questions answered but feedback is not ready yet. "
                      "Run 'retry-feedback' to generate it.[/yellow]")


@cli.command()
@click.argument("session_id")
@click.option("--owner", "-o", default=None, help="Only show feedback if this owner holds the session")
@click.pass_context
def feedback(ctx: click.Context, session_id: str, owner: Optional[str]):
    """Show the feedback of a completed session."""
    result = _run(ctx, lambda service: service.get_feedback(session_id, owner))
    if result is None:
        console.print("[yellow]No feedback for this session yet.[/yellow]")
        return
    _print_feedback(result)


@cli.command("retry-feedback")
@click.argument("session_id")
@click.pass_context
def retry_feedback(ctx: click.Context, session_id: str):
    """Generate feedback for a fully answered session."""
    _print_feedback(_run(ctx, lambda service: service.retry_feedback(session_id)))


@cli.command()
@click.option("--owner", "-o", required=True, help="Owner identifier")
@click.pass_context
def sessions(ctx: click.Context, owner: str):
    """List an owner's sessions, newest first."""
    summaries = _run(ctx, lambda service: service.list_sessions(owner))
    if not summaries:
        console.print("[yellow]No sessions found.[/yellow]")
        return

    table = Table(title=f"Sessions for {owner}")
    table.add_column("ID", style="dim")
    table.add_column("Position")
    table.add_column("Tier")
    table.add_column("Progress")
    table.add_column("Status")
    table.add_column("Score")
    for summary in summaries:
        table.add_row(
            summary.id,
            escape(f"{summary.position} ({summary.industry})"),
            summary.difficulty_tier.value,
            f"{summary.current_question_index}/{summary.total_questions}",
            summary.status.value,
            "-" if summary.overall_score is None else str(summary.overall_score),
        )
    console.print(table)


@cli.command()
@click.argument("session_id")
@click.option("--owner", "-o", required=True, help="Owner identifier")
@click.confirmation_option(prompt="Delete this session and all of its answers?")
@click.pass_context
def delete(ctx: click.Context, session_id: str, owner: str):
    """Delete a session with its answers and feedback."""
    _run(ctx, lambda service: service.delete_session(session_id, owner))
    console.print(f"[green]Session {session_id} deleted.[/green]")


def _bullets(items: List[str]) -> str:
    """Render model-written items as escaped markup bullets."""
    return "".join(f"\n- {escape(item)}" for item in items)


def _print_question(session: Session) -> None:
    question = session.current_question()
    if question is None:
        return
    tips = "\n".join(f"- {escape(tip)}" for tip in question.tips)
    content = f"[bold]{escape(question.text)}[/bold]"
    if tips:
        content += f"\n\n[dim]Tips:\n{tips}[/dim]"
    console.print(Panel(
        content,
        title=f"Question {session.current_question_index + 1}/{session.total_questions} | "
              f"{question.category.value.title()}",
        border_style="green",
    ))


def _print_record(record: ResponseRecord) -> None:
    lines = [
        f"Score: {record.score} (communication {record.communication_score}, "
        f"content {record.content_score}, structure {record.structure_score})",
    ]
    if record.overall_feedback:
        lines.append(f"\n{escape(record.overall_feedback)}")
    if record.strengths:
        lines.append("\n[bold]Strengths:[/bold]" + _bullets(record.strengths))
    if record.improvements:
        lines.append("\n[bold]Improvements:[/bold]" + _bullets(record.improvements))
    console.print(Panel("\n".join(lines), title=f"Question {record.question_number + 1} Evaluation",
                        border_style="cyan"))


def _print_feedback(result: Feedback) -> None:
    lines = [
        f"Overall score: {result.overall_score}",
        f"Readiness: {result.readiness_level.value} - {result.readiness_level.description}",
        f"Communication {result.communication_avg} | Content {result.content_avg} | "
        f"Structure {result.structure_avg}",
        f"Questions: {result.question_count} | Time: {result.completion_time_seconds}s",
    ]
    if result.aggregated_strengths:
        lines.append("\n[bold]Strengths:[/bold]" + _bullets(result.aggregated_strengths))
    if result.aggregated_improvements:
        lines.append("\n[bold]Improvements:[/bold]" + _bullets(result.aggregated_improvements))
    console.print(Panel("\n".join(lines), title="Final Feedback", border_style="blue"))


def main():
    """Main entry point for the CLI."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
