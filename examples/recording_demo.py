#!/usr/bin/env python3
"""
Demonstration script for the filesystem event recorder.

This script starts the event pipeline on a scratch directory, makes a few
file changes in it, stops the pipeline and shows what was recorded.

Usage:
    python examples/recording_demo.py [--watch-dir PATH] [--db PATH] [--flush-interval SECONDS]
"""

import asyncio
import logging
import sqlite3
import tempfile
from pathlib import Path

import click
from fswatch_recorder.config import RecorderConfig
from fswatch_recorder.monitoring import EventPipeline
from fswatch_recorder.storage import SQLiteEventStore
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Initialize rich console
console = Console()


async def make_changes(directory: Path, pause: float) -> None:
    """Create, modify, rename and delete a handful of files."""
    steps = [
        ("Create notes.txt", lambda: (directory / "notes.txt").write_text("first draft\n")),
        ("Append to notes.txt", lambda: _append(directory / "notes.txt", "second line\n")),
        ("Create drafts/plan.md", lambda: _write_nested(directory / "drafts" / "plan.md", "# Plan\n")),
        ("Rename notes.txt to final.txt", lambda: (directory / "notes.txt").rename(directory / "final.txt")),
        ("Delete drafts/plan.md", lambda: (directory / "drafts" / "plan.md").unlink()),
    ]

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        for description, action in steps:
            task = progress.add_task(description, total=None)
            action()
            await asyncio.sleep(pause)
            progress.update(task, completed=True)


def _write_nested(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _append(path: Path, content: str) -> None:
    with path.open("a") as f:
        f.write(content)


def create_events_table(db_path: Path) -> Table:
    """Create a rich table with the recorded events."""
    table = Table(title="📒 Recorded File Events", show_header=True)
    table.add_column("Timestamp", style="dim")
    table.add_column("Change", style="cyan")
    table.add_column("File", style="white")
    table.add_column("Path", style="dim")

    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute(
            "SELECT timestamp, change_type, file_name, path FROM file_events ORDER BY timestamp, rowid"
        ).fetchall()
    finally:
        conn.close()

    for timestamp, change_type, file_name, path in rows:
        table.add_row(str(timestamp), change_type, file_name, path)

    return table


async def demonstrate_recording(watch_dir: Path, db_path: Path, flush_interval: float) -> None:
    """
    Run the pipeline around a scripted set of file changes.

    Args:
        watch_dir: Directory to watch
        db_path: SQLite database receiving the events
        flush_interval: Flush timer period in seconds
    """
    config = RecorderConfig(flush_interval_seconds=flush_interval)
    pipeline = EventPipeline(config=config, root_dir=watch_dir, writer=SQLiteEventStore(db_path))

    run_task = asyncio.create_task(pipeline.run())
    while not pipeline.watch_source.is_watching:
        if run_task.done():
            run_task.result()
        await asyncio.sleep(0.05)

    console.print(f"✅ [bold green]Watching[/bold green] [cyan]{watch_dir}[/cyan]")
    await make_changes(watch_dir, pause=flush_interval / 2)

    pipeline.request_stop()
    await run_task

    stats = pipeline.get_stats()
    console.print(
        f"📊 {stats['accumulator']['records_flushed']} records in "
        f"{stats['accumulator']['flushes']} flushes "
        f"({stats['accumulator']['timer_flushes']} by timer, {stats['accumulator']['size_flushes']} by size)"
    )
    console.print(create_events_table(db_path))


@click.command()
@click.option('--watch-dir', '-d', type=click.Path(path_type=Path), default=None, help='Directory to watch')
@click.option('--db', 'db_path', type=click.Path(path_type=Path), default=None, help='SQLite database file')
@click.option('--flush-interval', '-i', type=float, default=1.0, help='Flush timer period in seconds')
def main(watch_dir: Path | None, db_path: Path | None, flush_interval: float):
    """Run the filesystem event recorder demonstration."""
    console.print(
        Panel.fit(
            "🎯 [bold blue]Filesystem Event Recorder Demo[/bold blue]\n\n"
            "Watches a scratch directory, makes a few changes in it and\n"
            "shows the events committed to SQLite.",
            title="Welcome",
            border_style="blue",
        )
    )

    with tempfile.TemporaryDirectory() as scratch:
        watch_dir = watch_dir or Path(scratch) / "watched"
        watch_dir.mkdir(parents=True, exist_ok=True)
        db_path = db_path or Path(scratch) / "events.db"

        try:
            asyncio.run(demonstrate_recording(watch_dir, db_path, flush_interval))
        except KeyboardInterrupt:
            console.print("\n⚡ [yellow]Demo interrupted by user[/yellow]")
        except Exception as e:
            console.print(f"❌ [red]Demo failed:[/red] {e}")
            logger.exception("Full error details:")
            return 1

    console.print("\n🎉 [bold green]Demo completed successfully![/bold green]")
    return 0


if __name__ == '__main__':
    exit(main())
