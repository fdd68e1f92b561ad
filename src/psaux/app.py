"""psaux - Textual process viewer."""

from datetime import datetime
from enum import Enum
from queue import Empty, Queue

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from psaux.models import ProcessRecord
from psaux.poller import ERROR, INFO, PollEvent, Poller


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"
    USER = "user"


def as_float(value: float | str | None) -> float:
    """Coerce a percent field (float on Unix, string on Windows) for sorting."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def format_field(value: object) -> str:
    """Format a record field for display; missing values become '?'."""
    if value is None:
        return "?"
    if isinstance(value, float):
        return f"{value:5.1f}"
    return str(value)


class StatusBar(Static):
    """Status line showing process count, last update and last error."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize StatusBar."""
        super().__init__("Waiting for first poll...", *args, **kwargs)
        self._process_count: int = 0
        self._last_update: datetime | None = None
        self._last_error: str | None = None

    def show_records(self, records: list[ProcessRecord]) -> None:
        """Record a successful poll."""
        self._process_count = len(records)
        self._last_update = datetime.now()
        self._last_error = None
        self.update(self._render_status())

    def show_error(self, error: object) -> None:
        """Record a failed poll; the previous table stays visible."""
        self._last_error = str(error)
        self.update(self._render_status())

    def _render_status(self) -> str:
        parts = [f"Processes: {self._process_count}"]
        if self._last_update is not None:
            parts.append(f"Updated: {self._last_update:%H:%M:%S}")
        if self._last_error:
            parts.append(f"[red]Error: {escape(self._last_error)}[/red]")
        return "  ".join(parts)


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: set[int] = set()
        self._sort_key: SortKey = SortKey.CPU
        self._sort_reverse: bool = True  # Default: descending for CPU

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self._sort_key)
        self._sort_key = keys[(current_index + 1) % len(keys)]
        self._sort_reverse = self._sort_key in (SortKey.CPU, SortKey.MEM)
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("USER", key="user", width=12)
        table.add_column("CPU%", key="cpu", width=7)
        table.add_column("MEM%", key="mem", width=7)
        table.add_column("VSZ", key="vsz", width=9)
        table.add_column("RSS", key="rss", width=9)
        table.add_column("TTY", key="tty", width=6)
        table.add_column("S", key="state", width=5)
        table.add_column("START", key="started", width=6)
        table.add_column("TIME", key="time", width=9)
        table.add_column("Command", key="command")

    def update_processes(self, records: list[ProcessRecord]) -> None:
        """
        Update the process table with a new snapshot.

        Rows are keyed by pid; existing rows are updated cell by cell and
        rows of vanished processes removed. Records without a pid are skipped.
        """
        table = self.query_one("#process-table", DataTable)

        visible = [record for record in self._sort_records(records) if record.pid is not None]
        new_pids = {record.pid for record in visible}

        for pid in self._current_pids - new_pids:
            try:
                table.remove_row(str(pid))
            except Exception:
                pass  # Row may not exist

        for record in visible:
            row_key = str(record.pid)
            if record.pid in self._current_pids:
                self._update_row(table, row_key, record)
            else:
                self._add_row(table, row_key, record)

        self._current_pids = new_pids

    def _sort_records(self, records: list[ProcessRecord]) -> list[ProcessRecord]:
        """Sort records based on the current sort key."""
        key_func = {
            SortKey.CPU: lambda r: as_float(r.cpu_percent),
            SortKey.MEM: lambda r: as_float(r.mem_percent),
            SortKey.PID: lambda r: r.pid or 0,
            SortKey.USER: lambda r: (r.user or "").lower(),
        }
        return sorted(records, key=key_func[self._sort_key], reverse=self._sort_reverse)

    @staticmethod
    def _cells(record: ProcessRecord) -> dict[str, str]:
        return {
            "pid": str(record.pid),
            "user": format_field(record.user)[:12],
            "cpu": format_field(record.cpu_percent),
            "mem": format_field(record.mem_percent),
            "vsz": format_field(record.vsz),
            "rss": format_field(record.rss),
            "tty": format_field(record.tty),
            "state": format_field(record.state),
            "started": format_field(record.started),
            "time": format_field(record.time),
            "command": record.command[:80],
        }

    def _update_row(self, table: DataTable, row_key: str, record: ProcessRecord) -> None:
        """Update an existing row using update_cell."""
        try:
            for column_key, value in self._cells(record).items():
                table.update_cell(row_key, column_key, value)
        except Exception:
            pass  # Row may have been removed

    def _add_row(self, table: DataTable, row_key: str, record: ProcessRecord) -> None:
        """Add a new row to the table."""
        try:
            table.add_row(*self._cells(record).values(), key=row_key)
        except Exception:
            pass  # Row may already exist


class PsauxApp(App):
    """Process viewer fed by a Poller."""

    TITLE = "psaux"
    SUB_TITLE = "Process Table"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
    ]

    def __init__(self, interval: float = 2.0) -> None:
        """Initialize the PsauxApp."""
        super().__init__()
        self._update_queue: Queue[PollEvent] = Queue()
        self._poller = Poller(self._update_queue, interval=interval)

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatusBar(id="status-bar")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start polling when the app is mounted."""
        self._poller.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and apply the most recent events to the UI."""
        latest: PollEvent | None = None
        latest_info: PollEvent | None = None
        while True:
            try:
                latest = self._update_queue.get_nowait()
            except Empty:
                break
            if latest.name == INFO:
                latest_info = latest

        if latest_info is not None:
            self._show_records(latest_info.payload)
        if latest is not None and latest.name == ERROR:
            self._show_error(latest.payload)

    def _show_records(self, records: list[ProcessRecord]) -> None:
        try:
            self.query_one("#status-bar", StatusBar).show_records(records)
            self.query_one(ProcessTable).update_processes(records)
        except Exception:
            pass  # Display errors must not stop the viewer

    def _show_error(self, error: object) -> None:
        try:
            self.query_one("#status-bar", StatusBar).show_error(error)
        except Exception:
            pass

    def action_sort(self) -> None:
        """Cycle through sort keys."""
        try:
            new_sort_key = self.query_one(ProcessTable).cycle_sort()
            self.notify(f"Sort: {new_sort_key.value.upper()}")
        except Exception:
            pass

    def action_quit(self) -> None:
        """Stop polling and exit."""
        self._poller.stop()
        self.exit()
