"""psaux CLI.

`psaux list` prints the process table once, `psaux demo` prints the first
records every few seconds, `psaux poll` prints each event of a repeating
schedule and `psaux watch` opens the interactive viewer.
"""

from __future__ import annotations

import logging
import time
from queue import Queue
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from psaux.acquire import obtain_parsed, obtain_raw
from psaux.config import settings
from psaux.exceptions import AcquisitionError
from psaux.models import ProcessRecord
from psaux.poller import INFO, PollEvent, Poller

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="psaux",
    help="psaux -- running processes and their resource usage.",
    no_args_is_help=True,
)

_COLUMNS = [
    ("USER", "user"),
    ("PID", "pid"),
    ("%CPU", "cpu_percent"),
    ("%MEM", "mem_percent"),
    ("VSZ", "vsz"),
    ("RSS", "rss"),
    ("TTY", "tty"),
    ("STAT", "state"),
    ("START", "started"),
    ("TIME", "time"),
    ("COMMAND", "command"),
]


@app.callback()
def _configure(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _render(records: list[ProcessRecord]) -> Table:
    table = Table(show_edge=False, box=None)
    for title, _ in _COLUMNS:
        table.add_column(title, overflow="fold" if title == "COMMAND" else "ellipsis")
    for record in records:
        values = (getattr(record, attr) for _, attr in _COLUMNS)
        table.add_row(*("" if value is None else str(value) for value in values))
    return table


def _fail(error: AcquisitionError) -> NoReturn:
    err_console.print(f"[red]{escape(str(error))}[/red]")
    raise typer.Exit(1)


@app.command("list")
def list_processes(
    raw: bool = typer.Option(False, "--raw", help="Print unparsed ps lines (not on Windows)"),
):
    """Print the current process table once."""
    try:
        if raw:
            for line in obtain_raw():
                console.print(line, markup=False, highlight=False)
            return
        records = obtain_parsed()
    except AcquisitionError as e:
        _fail(e)
    console.print(_render(records))


@app.command()
def demo(
    interval: float = typer.Option(settings.refresh_interval, "--interval", "-i", help="Seconds between polls"),
):
    """Print the first two processes every few seconds until interrupted."""
    try:
        while True:
            time.sleep(interval)
            try:
                records = obtain_parsed()
            except AcquisitionError as e:
                _fail(e)
            for record in records[:2]:
                console.print(record)
            console.print(f"sleeping {interval:g} seconds...")
    except KeyboardInterrupt:
        pass


@app.command()
def poll(
    interval: float = typer.Option(settings.interval, "--interval", "-i", help="Seconds between polls"),
    parsed: bool = typer.Option(settings.parsed, "--parsed/--raw", help="Publish parsed records or raw lines"),
):
    """Publish the process table on a schedule and print each event."""
    update_queue: Queue[PollEvent] = Queue()
    poller = Poller(update_queue, interval=interval, parsed=parsed)
    poller.start()
    try:
        while True:
            event = update_queue.get()
            if event.name == INFO:
                console.print(f"[green]info[/green] {len(event.payload)} processes")
            else:
                err_console.print(f"[red]error[/red] {escape(str(event.payload))}")
    except KeyboardInterrupt:
        pass
    finally:
        poller.stop()


@app.command()
def watch(
    interval: float = typer.Option(settings.refresh_interval, "--interval", "-i", help="Seconds between polls"),
):
    """Open the interactive process viewer."""
    from psaux.app import PsauxApp

    PsauxApp(interval=interval).run()


def main() -> None:
    """Entry point for the psaux command."""
    app()


if __name__ == "__main__":
    main()
