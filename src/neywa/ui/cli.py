"""CLI interface for neywa.

This module provides a Typer-based command-line interface that drives the
channel orchestrator from a terminal and inspects its on-disk state.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from neywa.background import wait_for_background_tasks
from neywa.backend import BackendAdapter, BackendKind, BackendNotFoundError
from neywa.config import get_settings
from neywa.orchestrator import ChannelOrchestrator, InboundMessage, SessionStore, trim_transcript
from neywa.ui.console_gateway import ConsoleGateway

app = typer.Typer(help="Neywa - relay chat messages to AI coding backends")
console = Console()

sessions_app = typer.Typer(help="Inspect and reset stored backend sessions")
app.add_typer(sessions_app, name="sessions")


@app.command(name="chat")
def chat_command(
    messages: list[str] = typer.Argument(..., help="Messages (or !commands) sent in order"),
    channel_id: int = typer.Option(1, "--channel-id", help="Channel identifier"),
    channel_name: Optional[str] = typer.Option(
        "general", "--channel-name", help="Channel name (selects the behavior profile)"
    ),
    user_id: int = typer.Option(1, "--user-id", help="Author identifier"),
    user_name: str = typer.Option("me", "--user", help="Author display name"),
    attach: Optional[list[Path]] = typer.Option(
        None, "--attach", "-a", help="Attach a local file to the first message"
    ),
) -> None:
    """Send messages through the orchestrator and print the replies.

    Examples:
        neywa chat "What does this repo do?"
        neywa chat "!status"
        neywa chat "!plan add a --verbose flag" --channel-name code
    """
    attachments = tuple(str(path.expanduser().resolve()) for path in attach or [])
    inbound = [
        InboundMessage(
            channel_id=channel_id,
            author_id=user_id,
            author_name=user_name,
            content=message,
            channel_name=channel_name,
            attachment_paths=attachments if index == 0 else (),
        )
        for index, message in enumerate(messages)
    ]
    asyncio.run(_chat(inbound))


async def _chat(messages: list[InboundMessage]) -> None:
    """Feed messages to a fresh orchestrator and wait for every channel to drain."""
    orchestrator = ChannelOrchestrator(ConsoleGateway(console))
    for message in messages:
        console.print(f"\n[bold blue]{message.author_name}:[/bold blue] {message.content}")
        await orchestrator.handle_message(message)
    await orchestrator.wait_idle()
    # Detached runs keep their readers alive until the backend exits
    await wait_for_background_tasks()


@sessions_app.command("list")
def sessions_list() -> None:
    """List stored (user, channel) → session id entries."""
    store = SessionStore.from_file(get_settings().sessions_file)
    sessions = store.snapshot()
    if not sessions:
        console.print("[yellow]No stored sessions.[/yellow]")
        return

    table = Table(title=f"Sessions ({len(sessions)})")
    table.add_column("User", style="cyan")
    table.add_column("Channel", style="blue")
    table.add_column("Session ID", style="green", overflow="fold")
    for (user_id, channel_id), session_id in sorted(sessions.items()):
        table.add_row(str(user_id), str(channel_id), session_id)
    console.print(table)


@sessions_app.command("clear")
def sessions_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Forget every stored session."""
    if not yes:
        typer.confirm("Forget all stored sessions?", abort=True)
    store = SessionStore.from_file(get_settings().sessions_file)
    count = asyncio.run(store.clear())
    console.print(f"[green]Cleared {count} session(s).[/green]")


@app.command(name="trim")
def trim_command(
    session_id: str = typer.Argument(..., help="Backend session id"),
) -> None:
    """Drop the oldest conversational lines of a session transcript."""
    settings = get_settings()
    try:
        result = trim_transcript(
            session_id,
            transcripts_dir=settings.transcripts_dir,
            keep_ratio=settings.trim_keep_ratio,
            min_keep=settings.trim_min_keep_lines,
            min_total=settings.trim_min_total_lines,
        )
    except OSError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    if result is None:
        console.print("[yellow]Nothing to trim (transcript missing or too short).[/yellow]")
        raise typer.Exit(1)
    console.print(
        f"[green]Trimmed {result.path}: {result.total_lines} → {result.kept_lines} lines[/green]"
    )


@app.command(name="locate")
def locate_command() -> None:
    """Show the executable resolved for every backend."""
    adapter = BackendAdapter(get_settings())
    table = Table(title="Backends")
    table.add_column("Backend", style="cyan")
    table.add_column("Command", style="blue")
    table.add_column("Path", style="green", overflow="fold")
    for kind in BackendKind:
        try:
            path = str(adapter.locate(kind))
        except BackendNotFoundError:
            path = "[red]not found[/red]"
        table.add_row(kind.value, adapter.executable_name(kind), path)
    console.print(table)


if __name__ == "__main__":
    app()
