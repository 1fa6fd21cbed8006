"""
Main CLI application for snap-cli.

Provides a Typer-based command-line interface for tracking files, grouping
them, committing versions and comparing history.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax

from ..config import get_config_manager, load_config
from ..core.repository import Repository, init_repository
from ..errors import CrossFileInconsistency, SnapError
from ..version.diff_engine import DiffEngine
from ..version.version_control import VersionController
from .display import history_table, tracked_files_table, tracked_files_tree

# Initialize Typer app
app = typer.Typer(
    name="snap",
    help="Lightweight local version control for groups of files",
    add_completion=False,
    rich_markup_mode="rich"
)

# Global console for rich output
console = Console()


def get_repository() -> Repository:
    """Repository rooted at the current working directory."""
    return Repository(Path.cwd(), load_config())


def get_version_controller() -> VersionController:
    return VersionController(get_repository())


def fail(error: SnapError) -> NoReturn:
    console.print(f"[red]Error: {error}[/red]")
    if isinstance(error, CrossFileInconsistency):
        console.print("[yellow]Re-run the commit to bring the tracker registry up to date.[/yellow]")
    raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Track files in groups and keep a linear history of their versions.
    """
    level = logging.DEBUG if verbose else load_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def init() -> None:
    """
    Initialize a repository in the current directory.
    """
    try:
        repo = init_repository(Path.cwd(), load_config())
    except SnapError as e:
        fail(e)
    console.print(f"[green]Initialized empty repository in {repo.control_path}[/green]")


@app.command()
def track(
    file_path: Path = typer.Argument(..., help="File to start tracking"),
) -> None:
    """
    Start tracking a file.
    """
    try:
        record = get_version_controller().track_file(file_path)
    except SnapError as e:
        fail(e)
    console.print(f"[green]Tracking {record.current_path}[/green]")


@app.command("group-init")
def group_init(
    group_name: str = typer.Argument(..., help="Name of the new group"),
) -> None:
    """
    Create a new group with an empty initial version.
    """
    try:
        group = get_version_controller().group_init(group_name)
    except SnapError as e:
        fail(e)
    console.print(f"[green]Initialized group {group_name} at version {group.current}[/green]")


@app.command("group-track")
def group_track(
    group_name: str = typer.Argument(..., help="Group to add the file to"),
    file_path: Path = typer.Argument(..., help="File to track in the group"),
) -> None:
    """
    Track a file as a member of a group.
    """
    try:
        group = get_version_controller().group_track(group_name, file_path)
    except SnapError as e:
        fail(e)
    console.print(f"[green]{file_path} added to {group_name} ({len(group.members)} members)[/green]")


@app.command()
def commit(
    group_name: str = typer.Argument(..., help="Group to commit"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    files: Optional[List[Path]] = typer.Option(None, "--file", "-f", help="Commit only these files"),
) -> None:
    """
    Record a new version of a group.
    """
    try:
        version = get_version_controller().commit(group_name, message, files or None)
    except SnapError as e:
        fail(e)
    console.print(
        f"[green]Committed {len(version.files)} file(s) to {group_name} as version {version.version_id}[/green]"
    )


@app.command()
def log(
    group_name: str = typer.Argument(..., help="Group to show history for"),
    max_count: int = typer.Option(10, "--count", "-n", min=0, help="Maximum number of versions to show"),
) -> None:
    """
    Show a group's version history.
    """
    vc = get_version_controller()
    try:
        group = vc.get_group(group_name)
        versions = vc.history(group_name, max_count=max_count)
    except SnapError as e:
        fail(e)
    console.print(history_table(group_name, reversed(versions), group.current))


@app.command("list")
def list_files(
    tree: bool = typer.Option(False, "--tree", "-t", help="Show tracked files as a directory tree"),
) -> None:
    """
    List tracked files and their commit statistics.
    """
    try:
        registry = get_version_controller().tracked_files()
    except SnapError as e:
        fail(e)

    if not len(registry):
        console.print("[yellow]No tracked files[/yellow]")
        return
    console.print(tracked_files_tree(registry.values()) if tree else tracked_files_table(registry.values()))


@app.command()
def diff(
    file_path: Path = typer.Argument(..., help="Tracked file to compare"),
    version1: str = typer.Argument("", help="First version ID"),
    version2: str = typer.Argument("", help="Second version ID"),
    output_format: str = typer.Option("text", "--format", "-f", help="Output format: text, json"),
    context: Optional[int] = typer.Option(None, "--context", "-U", help="Context lines"),
) -> None:
    """
    Show differences between two versions of a file, or the working tree.
    """
    vc = get_version_controller()
    try:
        file_diff = DiffEngine(vc).diff(file_path, version1, version2)
    except SnapError as e:
        fail(e)

    if output_format == "json":
        console.print_json(json.dumps(file_diff.to_dict()))
        return

    context_lines = context if context is not None else vc.repo.config.diff_context_lines
    diff_text = file_diff.unified(context_lines)
    if diff_text.strip():
        console.print(Panel(
            Syntax(diff_text, "diff", theme="monokai"),
            title=f"Diff: {file_diff.source_label} → {file_diff.target_label}",
            border_style="blue"
        ))
    else:
        console.print("[yellow]No differences found[/yellow]")

    summary = file_diff.summary
    console.print(
        f"[green]+{summary['insertions']}[/green] [red]-{summary['deletions']}[/red]"
    )


@app.command()
def restore(
    file_path: Path = typer.Argument(..., help="Tracked file to restore"),
    version_id: str = typer.Argument(..., help="Version to restore from"),
) -> None:
    """
    Overwrite a file with its content from a recorded version.
    """
    try:
        target = get_version_controller().restore(file_path, version_id)
    except SnapError as e:
        fail(e)
    console.print(f"[green]Restored {target} from version {version_id}[/green]")


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    create_default: bool = typer.Option(False, "--create-default", help="Create default config file"),
) -> None:
    """
    Manage snap-cli configuration.
    """
    config_manager = get_config_manager()

    if create_default:
        path = config_manager.create_default_config()
        console.print(f"[green]Created default configuration at {path}[/green]")
        return

    if show:
        info = config_manager.get_config_info()
        config_display = f"""[bold]snap-cli Configuration[/bold]

• Control Directory: {info['control_dir']}
• Excluded Directories: {', '.join(info['excluded_dirs'])}
• Compression Level: {info['compression_level']}
• Log Level: {info['log_level']}

[bold magenta]Files:[/bold magenta]
• Config File: {info['config_file']}
• Exists: {'Yes' if info['config_exists'] else 'No'}"""
        console.print(Panel(config_display, border_style="green"))
        return

    console.print("Use [cyan]snap config --show[/cyan] to see full configuration")
    console.print("Use [cyan]snap config --create-default[/cyan] to create a default config file")


if __name__ == "__main__":
    app()
