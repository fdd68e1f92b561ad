"""Parsing of ``ps aux`` output lines."""

from psaux.models import ProcessRecord


def _token(parts: list[str], index: int) -> str | None:
    return parts[index] if index < len(parts) else None


def _to_int(value: str | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: str | None) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_line(line: str) -> ProcessRecord:
    """
    Parse one ``ps aux`` line into a ProcessRecord.

    Except for the command, no column contains whitespace, so the line is
    split on whitespace and the command pieced back together from the
    tokens after the tenth. Missing or non-numeric tokens become None.
    """
    parts = line.split()
    return ProcessRecord(
        user=_token(parts, 0),
        pid=_to_int(_token(parts, 1)),
        cpu_percent=_to_float(_token(parts, 2)),
        mem_percent=_to_float(_token(parts, 3)),
        vsz=_to_int(_token(parts, 4)),
        rss=_to_int(_token(parts, 5)),
        tty=_token(parts, 6),
        state=_token(parts, 7),
        started=_token(parts, 8),
        time=_token(parts, 9),
        command=" ".join(parts[10:]),
    )
