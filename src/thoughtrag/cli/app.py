# src/thoughtrag/cli/app.py
"""Command-line interface for thoughtrag.

This module provides a thin Typer wrapper around the commands layer.
Each command:
1. Parses args (via Typer)
2. Calls commands module functions
3. Renders results with Rich
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from thoughtrag import __version__
from thoughtrag.commands import add, ask, ingest, search, status
from thoughtrag.commands.base import IngestResult, MatchInfo, ThoughtInfo
from thoughtrag.config import load_env_file
from thoughtrag.models import ThoughtKind

app = typer.Typer(
    name="thoughtrag",
    help="thoughtrag - Ask your team's captured thoughts.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"thoughtrag {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging through Rich. INFO with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show pipeline progress logs.",
    ),
) -> None:
    """thoughtrag - Ask your team's captured thoughts."""
    load_env_file()
    configure_logging(verbose)


def _fail(message: str | None) -> None:
    console.print(f"[red]Error: {escape(message or '')}[/red]")
    raise typer.Exit(1)


def _render_matches(matches: list[MatchInfo], plain: bool, title: str) -> None:
    if plain:
        console.print(f"{title}:")
        for i, m in enumerate(matches, 1):
            label = escape(m.title or m.id)
            console.print(f"  [{i}] {label} (team: {escape(m.team_id)}, score: {m.similarity:.3f})")
            console.print(f"      {escape(m.text[:100])}")
        return

    table = Table(title=title)
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="cyan")
    table.add_column("Team", style="dim")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Text")
    for i, m in enumerate(matches, 1):
        preview = m.text[:100].replace("\n", " ")
        if len(m.text) > 100:
            preview += "..."
        table.add_row(
            str(i), escape(m.title or m.id), m.team_id, f"{m.similarity:.3f}", escape(preview)
        )
    console.print(table)


def _render_thought(info: ThoughtInfo, plain: bool) -> None:
    if plain:
        console.print(f"{info.id} ({info.kind}) {info.embedding_status}")
        if info.ai_description:
            console.print(f"  {escape(info.ai_description)}")
        return

    style = {"completed": "green", "failed": "red"}.get(info.embedding_status, "yellow")
    console.print(
        f"[cyan]{info.id}[/cyan] [dim]{info.kind}[/dim] "
        f"[{style}]{info.embedding_status}[/{style}]"
    )
    if info.ai_description:
        console.print(f"  [dim]{escape(info.ai_description)}[/dim]")


@app.command(name="add")
def add_cmd(
    user_id: str = typer.Option(..., "--user", "-u", help="Creator of the thought"),
    team_id: str = typer.Option(..., "--team", "-t", help="Team the thought belongs to"),
    kind: ThoughtKind = typer.Option(
        ThoughtKind.DOCUMENT, "--kind", "-k", case_sensitive=False, help="Kind of thought"
    ),
    title: str = typer.Option("", "--title", help="Short title"),
    description: str = typer.Option("", "--description", help="Free text"),
    image_url: str = typer.Option(None, "--image-url", "-i", help="Image to describe and embed"),
    parent: str = typer.Option(None, "--parent", help="Question this thought answers"),
    run_ingest: bool = typer.Option(False, "--ingest", help="Embed the thought right away"),
    data_dir: str = typer.Option(
        None, "--data-dir", "-d", help="Data directory (default: from settings)"
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    plain: bool = typer.Option(False, "--plain", help="Plain output (no colors/formatting)"),
) -> None:
    """Capture a thought."""
    result = add.add(
        user_id=user_id,
        team_id=team_id,
        kind=kind,
        title=title,
        description=description,
        image_url=image_url,
        parent_question_id=parent,
        ingest=run_ingest,
        data_dir=data_dir,
        config_path=config_file,
    )

    if result.thought is not None:
        _render_thought(result.thought, plain)
    if not result.success:
        _fail(result.error)


def _render_ingest_result(result: IngestResult, plain: bool, verb: str) -> None:
    for thought_id in result.missing:
        console.print(f"Not found: {thought_id}" if plain else f"[red]Not found: {thought_id}[/red]")
    for thought_id, reason in result.skipped:
        console.print(
            f"Skipped {thought_id}: {reason}" if plain else f"[dim]Skipped {thought_id}: {reason}[/dim]"
        )
    for info in result.failed:
        if plain:
            console.print(f"Failed {info.id}: {escape(info.error or '')}")
        else:
            console.print(f"[red]Failed[/red] [cyan]{info.id}[/cyan]: {escape(info.error or '')}")

    if result.processed == 0 and not result.skipped and not result.missing:
        console.print("Nothing to do." if plain else "[dim]Nothing to do.[/dim]")
        raise typer.Exit(0)

    summary = f"{verb} {len(result.completed)} of {result.processed} thoughts"
    console.print(summary if plain else f"[green]{summary}[/green]")

    if not result.success:
        _fail(result.error)


@app.command(name="ingest")
def ingest_cmd(
    thought_ids: list[str] = typer.Argument(None, help="Thought ids (default: all pending)"),
    team: list[str] = typer.Option(None, "--team", "-t", help="Only thoughts of this team"),
    data_dir: str = typer.Option(
        None, "--data-dir", "-d", help="Data directory (default: from settings)"
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    plain: bool = typer.Option(False, "--plain", help="Plain output (no colors/formatting)"),
) -> None:
    """Generate descriptions and embeddings for pending thoughts."""

    def on_thought_complete(info: ThoughtInfo) -> None:
        if info.embedding_status == "completed":
            _render_thought(info, plain)

    result = ingest.ingest(
        thought_ids=thought_ids or None,
        team_ids=team or None,
        data_dir=data_dir,
        config_path=config_file,
        on_thought_complete=on_thought_complete,
    )
    if not result.success and not result.processed and not result.missing:
        _fail(result.error)
    _render_ingest_result(result, plain, "Embedded")


@app.command(name="retry")
def retry_cmd(
    thought_ids: list[str] = typer.Argument(None, help="Thought ids (default: all failed)"),
    team: list[str] = typer.Option(None, "--team", "-t", help="Only thoughts of this team"),
    data_dir: str = typer.Option(
        None, "--data-dir", "-d", help="Data directory (default: from settings)"
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    plain: bool = typer.Option(False, "--plain", help="Plain output (no colors/formatting)"),
) -> None:
    """Retry failed thoughts, respecting the retry backoff and attempt cap."""

    def on_thought_complete(info: ThoughtInfo) -> None:
        if info.embedding_status == "completed":
            _render_thought(info, plain)

    result = ingest.retry(
        thought_ids=thought_ids or None,
        team_ids=team or None,
        data_dir=data_dir,
        config_path=config_file,
        on_thought_complete=on_thought_complete,
    )
    if not result.success and not result.processed and not result.missing:
        _fail(result.error)
    _render_ingest_result(result, plain, "Recovered")


@app.command(name="ask")
def ask_cmd(
    question: str = typer.Argument(..., help="Question to ask"),
    team: list[str] = typer.Option(..., "--team", "-t", help="Team whose thoughts may be used"),
    no_stream: bool = typer.Option(False, "--no-stream", help="Wait for the whole answer"),
    show_sources: bool = typer.Option(
        False, "--sources", "-s", help="Show the thoughts used as context"
    ),
    data_dir: str = typer.Option(
        None, "--data-dir", "-d", help="Data directory (default: from settings)"
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    plain: bool = typer.Option(False, "--plain", help="Plain output (no colors/formatting)"),
) -> None:
    """Ask a question of your team's knowledge base."""
    streaming = not no_stream

    def on_delta(text: str) -> None:
        console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    result = ask.ask(
        question=question,
        team_ids=team,
        data_dir=data_dir,
        config_path=config_file,
        on_delta=on_delta if streaming else None,
    )

    if streaming and result.answer:
        console.print()

    if not result.success:
        _fail(result.error)

    if not streaming:
        if plain:
            console.print(f"Answer: {escape(result.answer)}")
        else:
            console.print(Panel(Markdown(result.answer), title="Answer", border_style="green"))

    if not result.grounded:
        note = "No matching thoughts found; the answer is not from your knowledge base."
        console.print(note if plain else f"[yellow]{note}[/yellow]")
    elif show_sources:
        console.print()
        _render_matches(result.matches, plain, "Sources")


@app.command(name="search")
def search_cmd(
    query: str = typer.Argument(..., help="What to search for"),
    team: list[str] = typer.Option(..., "--team", "-t", help="Team to search"),
    data_dir: str = typer.Option(
        None, "--data-dir", "-d", help="Data directory (default: from settings)"
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    plain: bool = typer.Option(False, "--plain", help="Plain output (no colors/formatting)"),
) -> None:
    """Find thoughts similar to a query."""
    result = search.search(
        query=query,
        team_ids=team,
        data_dir=data_dir,
        config_path=config_file,
    )

    if not result.success:
        _fail(result.error)

    if not result.matches:
        console.print("No results found." if plain else "[yellow]No results found.[/yellow]")
        raise typer.Exit(0)

    _render_matches(result.matches, plain, f"Results ({len(result.matches)})")


@app.command(name="status")
def status_cmd(
    team: list[str] = typer.Option(None, "--team", "-t", help="Only thoughts of this team"),
    data_dir: str = typer.Option(
        None, "--data-dir", "-d", help="Data directory (default: from settings)"
    ),
    config_file: str = typer.Option(None, "--config", "-c", help="Path to config file"),
    plain: bool = typer.Option(False, "--plain", help="Plain output (no colors/formatting)"),
) -> None:
    """Show embedding status of stored thoughts."""
    result = status.status(
        team_ids=team or None,
        data_dir=data_dir,
        config_path=config_file,
    )

    if not result.success:
        _fail(result.error)

    if result.total == 0:
        if plain:
            console.print("No thoughts found.")
        else:
            console.print("[dim]No thoughts found. Run 'thoughtrag add' first.[/dim]")
        raise typer.Exit(0)

    if plain:
        console.print("Embedding Status:")
        for name, count in result.counts.items():
            console.print(f"  {name}: {count}")
        console.print(f"  total: {result.total}")
    else:
        table = Table(title="Embedding Status")
        table.add_column("Status", style="cyan")
        table.add_column("Thoughts", style="green", justify="right")
        for name, count in result.counts.items():
            table.add_row(name, str(count))
        table.add_row("total", str(result.total), style="bold")
        console.print(table)

    if result.failed:
        console.print()
        if plain:
            console.print("Failed thoughts:")
            for info in result.failed:
                console.print(f"  {info.id} ({info.attempts} attempts): {escape(info.error or '')}")
        else:
            failed_table = Table(title="Failed Thoughts")
            failed_table.add_column("Id", style="cyan")
            failed_table.add_column("Attempts", justify="right")
            failed_table.add_column("Error", style="red")
            for info in result.failed:
                failed_table.add_row(info.id, str(info.attempts), escape(info.error or ""))
            console.print(failed_table)
            console.print("[dim]Run 'thoughtrag retry' to retry them.[/dim]")
