"""Typer command line for cmdialog."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from cmdialog.config import get_settings
from cmdialog.core.monitor import append_commands
from cmdialog.dialog.document import dump_document, parse_document, sample_document, validate_document
from cmdialog.dialog.state import DialogModel
from cmdialog.errors import CmdialogError
from cmdialog.session import DialogSession

app = typer.Typer(
    name="cmdialog",
    help="Drive a dialog from a command file.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _exit_with_error(message: str) -> None:
    console.print(f"[red]error:[/red] {message}")
    raise typer.Exit(1)


def _render_state(state: DialogModel) -> None:
    console.print(f"[bold]{state.title or '(untitled)'}[/bold]")
    if state.message:
        console.print(state.message)
    console.print(f"progress: {state.progress.formatted()}")
    if len(state.items):
        table = Table("#", "item", "status", "detail")
        for item in state.items:
            table.add_row(str(item.index), item.title, f"{item.display_icon} {item.status}", item.status_text)
        console.print(table)


@app.command()
def watch(
    command_file: Optional[Path] = typer.Argument(None, help="Command file to monitor"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Initial dialog title"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Initial dialog message"),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON dialog document to start from"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout for execute commands in seconds"),
) -> None:
    """Monitor a command file until a quit command arrives."""

    settings = get_settings(command_file=command_file, command_timeout_seconds=timeout)
    state = DialogModel()

    if config is not None:
        try:
            document = parse_document(config.read_text(encoding="utf-8-sig"))
        except (OSError, CmdialogError) as exc:
            _exit_with_error(str(exc))
        result = validate_document(document)
        if not result.is_valid:
            _exit_with_error("; ".join(result.errors))
        state.apply_document(document)
    if title is not None:
        state.set_title(title)
    if message is not None:
        state.set_message(message)

    session = DialogSession.from_settings(settings, state)
    console.print(f"monitoring [cyan]{settings.command_file}[/cyan]")
    try:
        asyncio.run(session.run(settings.command_file))
    except CmdialogError as exc:
        _exit_with_error(str(exc))
    except KeyboardInterrupt:
        console.print("interrupted")
    _render_state(state)


@app.command()
def send(
    command_file: Path = typer.Argument(..., help="Command file to append to"),
    lines: list[str] = typer.Argument(..., help="Command lines, e.g. 'progress: 50'"),
) -> None:
    """Append command lines to a command file."""

    if not command_file.parent.is_dir():
        _exit_with_error(f"directory does not exist: {command_file.parent}")
    count = append_commands(command_file, lines)
    console.print(f"appended {count} line(s) to {command_file}")


@app.command()
def validate(config: Path = typer.Argument(..., help="JSON dialog document")) -> None:
    """Validate a JSON dialog document."""

    try:
        document = parse_document(config.read_text(encoding="utf-8-sig"))
    except (OSError, CmdialogError) as exc:
        _exit_with_error(str(exc))
    result = validate_document(document)
    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    for error in result.errors:
        console.print(f"[red]error:[/red] {error}")
    if not result.is_valid:
        raise typer.Exit(1)
    console.print("[green]valid[/green]")


@app.command("sample-config")
def sample_config() -> None:
    """Print a sample JSON dialog document."""

    typer.echo(dump_document(sample_document()))
