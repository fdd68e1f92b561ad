"""Data models for psaux."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of one process, normalized across platforms."""

    user: str | None
    pid: int | None
    cpu_percent: float | str | None  # float from ps, "12.34" from tasklist
    mem_percent: float | str | None
    vsz: int | str | None  # "VSZ" placeholder on Windows
    rss: int | str | None  # "RSS" placeholder on Windows
    tty: str | None
    state: str | None  # 'R', 'S', 'Ss', 'Running', '-', etc.
    started: str | None
    time: str | None
    command: str
