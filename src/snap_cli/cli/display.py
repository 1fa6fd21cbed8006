"""
Rich renderables for tracked files and group history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, Optional

from rich.table import Table
from rich.tree import Tree

from ..core.models import TrackedFile, Version

MAX_COMMIT_MESSAGE_LEN = 60
COMMIT_MESSAGE_TRUNC_LEN = 57


def truncate_message(message: str) -> str:
    if not message:
        return "-"
    if len(message) > MAX_COMMIT_MESSAGE_LEN:
        return message[:COMMIT_MESSAGE_TRUNC_LEN] + "..."
    return message


def relative_time(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Coarse "how long ago" string for a commit time."""
    if timestamp is None:
        return "-"
    seconds = ((now or datetime.now()) - timestamp).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return f"{int(seconds // 86400)}d ago"


def tracked_files_table(records: Iterable[TrackedFile]) -> Table:
    table = Table(title="Tracked Files")
    table.add_column("Path", style="cyan")
    table.add_column("Commits", justify="right", style="green")
    table.add_column("Last", style="blue")
    table.add_column("Last Message", style="white")

    for record in sorted(records, key=lambda r: r.current_path):
        table.add_row(
            record.current_path,
            str(record.commit_count),
            relative_time(record.last_commit_timestamp),
            truncate_message(record.last_commit_message),
        )
    return table


def tracked_files_tree(records: Iterable[TrackedFile]) -> Tree:
    """Directory tree of tracked paths, directories bold and files blue."""
    root = Tree(".")
    nodes: Dict[str, Tree] = {}

    for record in sorted(records, key=lambda r: r.current_path):
        parts = [p for p in record.current_path.split("/") if p and p != "."]
        parent, prefix = root, ""
        for index, part in enumerate(parts):
            prefix = f"{prefix}/{part}"
            if index == len(parts) - 1:
                parent.add(f"[blue]{part}[/blue]")
                break
            if prefix not in nodes:
                nodes[prefix] = parent.add(f"[bold]{part}[/bold]")
            parent = nodes[prefix]
    return root


def history_table(group_name: str, versions: Iterable[Version], current: str) -> Table:
    table = Table(title=f"Group History ({group_name})")
    table.add_column("Version", style="cyan")
    table.add_column("Message", style="white")
    table.add_column("Date", style="blue")
    table.add_column("Files", style="green", justify="right")

    for version in versions:
        marker = "→ " if version.version_id == current else "  "
        table.add_row(
            f"{marker}{version.version_id}",
            version.commit_message,
            version.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(len(version.files)) if version.files else "-",
        )
    return table
