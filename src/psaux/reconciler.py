"""Reconciliation of ``tasklist /V`` and ``wmic process`` grids.

``tasklist`` reports memory, status, owner and CPU time but truncates the
image name and has no arguments. ``wmic`` reports the full command line
keyed by process id but no resource usage. The two are joined on pid.
"""

from dataclasses import dataclass

from psaux.grid import Grid, Row
from psaux.models import ProcessRecord

# Placeholders for columns tasklist does not expose.
VSZ_PLACEHOLDER = "VSZ"
RSS_PLACEHOLDER = "RSS"
TTY_PLACEHOLDER = "TTY"
STARTED_PLACEHOLDER = "-"
UNKNOWN_STATE = "-"


def _cell(row: Row, label: str) -> list[str]:
    return row.get(label) or []


def _first(row: Row, label: str) -> str:
    cell = _cell(row, label)
    return cell[0] if cell else ""


def _parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def _parse_pid(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def parse_cpu_time(value: str) -> int:
    """
    Convert an ``H:MM:SS`` CPU time into seconds.

    Missing or non-numeric parts count as zero.
    """
    parts = [_parse_int(part) for part in value.split(":")]
    while len(parts) < 3:
        parts.insert(0, 0)
    hours, minutes, seconds = parts[-3:]
    return hours * 3600 + minutes * 60 + seconds


def parse_mem_kb(value: str) -> int:
    """Convert a ``Mem Usage`` number such as ``12,345`` into kilobytes."""
    digits = value.replace(",", "").replace(".", "").replace("\xa0", "")
    return _parse_int(digits)


@dataclass(slots=True, frozen=True)
class TaskRow:
    """One row of ``tasklist /V`` output."""

    image_name: str
    pid: int | None
    mem_kb: int
    status: str
    user: str
    cpu_time: str

    @classmethod
    def from_row(cls, row: Row) -> "TaskRow":
        return cls(
            image_name=" ".join(_cell(row, "Image Name")),
            pid=_parse_pid(_first(row, "PID")),
            mem_kb=parse_mem_kb(_first(row, "Mem Usage")),
            status=" ".join(_cell(row, "Status")),
            user="_".join(_cell(row, "User Name")),
            cpu_time=_first(row, "CPU Time"),
        )


@dataclass(slots=True, frozen=True)
class QueryRow:
    """One row of ``wmic process get CommandLine,Name,ProcessId`` output."""

    process_id: int | None
    name: str
    command_line: str

    @classmethod
    def from_row(cls, row: Row) -> "QueryRow":
        return cls(
            process_id=_parse_pid(_first(row, "ProcessId")),
            name=" ".join(_cell(row, "Name")),
            command_line=" ".join(_cell(row, "CommandLine")),
        )


def normalize_state(status: str) -> str:
    """Map any status mentioning 'unknown' to '-'; pass others through."""
    return UNKNOWN_STATE if "unknown" in status.lower() else status


def _percent(part: float, whole: float) -> str:
    if not whole:
        return "0.00"
    return f"{part * 100 / whole:.2f}"


def reconcile(task_grid: Grid, query_grid: Grid, total_memory_kb: float) -> list[ProcessRecord]:
    """
    Merge the two grids into one ProcessRecord per tasklist row.

    The task grid must already be stripped of its separator row. CPU share
    is relative to the total CPU time of the batch, so it is filled in on a
    second pass once every row has been seen.
    """
    commands: dict[int, str] = {}
    for row in query_grid:
        query = QueryRow.from_row(row)
        if query.process_id is None:
            continue
        commands.setdefault(query.process_id, query.command_line)

    tasks = [TaskRow.from_row(row) for row in task_grid]
    cpu_times = [parse_cpu_time(task.cpu_time) for task in tasks]
    total_cpu_time = sum(cpu_times)

    records: list[ProcessRecord] = []
    for task, cpu_time in zip(tasks, cpu_times):
        command = commands.get(task.pid) if task.pid is not None else None
        records.append(
            ProcessRecord(
                user=task.user,
                pid=task.pid,
                cpu_percent=_percent(cpu_time, total_cpu_time),
                mem_percent=_percent(task.mem_kb, total_memory_kb),
                vsz=VSZ_PLACEHOLDER,
                rss=RSS_PLACEHOLDER,
                tty=TTY_PLACEHOLDER,
                state=normalize_state(task.status),
                started=STARTED_PLACEHOLDER,
                time=task.cpu_time,
                command=command or task.image_name,
            )
        )
    return records
