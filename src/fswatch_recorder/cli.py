"""
Command line entry point.

Usage:
    fswatch-recorder ROOT_DIR DB_PATH
"""

import asyncio
import logging
import logging.config
import signal
from pathlib import Path

import click
from rich.console import Console

from fswatch_recorder.config import RecorderConfig, get_config
from fswatch_recorder.models.exceptions import (
    PersistenceError,
    SchemaInitializationError,
    ShutdownError,
    WatchSetupError,
)
from fswatch_recorder.monitoring import EventPipeline
from fswatch_recorder.storage import SQLiteEventStore

logger = logging.getLogger(__name__)

console = Console(stderr=True)


async def record(root_dir: Path, db_path: Path, config: RecorderConfig) -> None:
    """Run the event pipeline until SIGINT or SIGTERM."""
    store = SQLiteEventStore(db_path)
    pipeline = EventPipeline(config=config, root_dir=root_dir, writer=store)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, pipeline.request_stop)
        except (NotImplementedError, AttributeError):
            # Windows: Ctrl+C still arrives as KeyboardInterrupt.
            pass

    await pipeline.run()
    logger.info("%d events stored in %s", store.count_events(), db_path)


@click.command()
@click.argument("root_dir", type=click.Path(path_type=Path))
@click.argument("db_path", type=click.Path(path_type=Path, dir_okay=False))
def main(root_dir: Path, db_path: Path) -> None:
    """Record file changes under ROOT_DIR into the SQLite database DB_PATH."""
    config = get_config()
    logging.config.dictConfig(config.get_log_config())

    try:
        asyncio.run(record(root_dir, db_path, config))
    except (WatchSetupError, SchemaInitializationError) as e:
        console.print(f"[bold red]Startup failed:[/bold red] {e}")
        raise SystemExit(1) from e
    except (PersistenceError, ShutdownError) as e:
        console.print(f"[bold red]Recording stopped:[/bold red] {e}")
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        console.print("Interrupted")
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
