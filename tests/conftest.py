"""Shared fixtures: sample tasklist /V and wmic output."""

import pytest

TASKLIST_HEADERS = [
    "Image Name",
    "PID",
    "Session Name",
    "Session#",
    "Mem Usage",
    "Status",
    "User Name",
    "CPU Time",
    "Window Title",
]
TASKLIST_WIDTHS = [25, 8, 16, 11, 12, 15, 50, 12, 30]
TASKLIST_RIGHT_ALIGNED = {1, 3, 4, 7}

TASKLIST_ROWS = [
    ["System Idle Process", "0", "Services", "0", "8 K", "Unknown", r"NT AUTHORITY\SYSTEM", "0:00:00", "N/A"],
    ["explorer.exe", "4120", "Console", "1", "123,456 K", "Running", r"DESKTOP\alice", "0:01:40", "N/A"],
    ["python.exe", "5200", "Console", "1", "50,000 K", "Not Responding", r"DESKTOP\alice", "0:01:40", "Untitled - Notepad"],
    ["svchost.exe", "6000", "Services", "0", "1,024 K", "Unknown", "N/A", "0:00:20", "N/A"],
]

WMIC_ROWS = [
    ["", "System Idle Process", "0"],
    [r"C:\Windows\Explorer.EXE", "explorer.exe", "4120"],
    [r'"C:\Python312\python.exe" -m http.server 8000', "python.exe", "5200"],
]


def _tasklist_line(cells: list[str]) -> str:
    return " ".join(
        cell.rjust(width) if i in TASKLIST_RIGHT_ALIGNED else cell.ljust(width)
        for i, (cell, width) in enumerate(zip(cells, TASKLIST_WIDTHS))
    ).rstrip()


def make_tasklist_output(rows: list[list[str]]) -> str:
    """Render rows the way ``tasklist /V`` lays them out."""
    lines = [
        "",
        _tasklist_line(TASKLIST_HEADERS),
        " ".join("=" * width for width in TASKLIST_WIDTHS),
    ]
    lines.extend(_tasklist_line(row) for row in rows)
    return "\r\n".join(lines) + "\r\n"


def make_wmic_output(rows: list[list[str]]) -> str:
    """Render rows the way ``wmic process get`` lays them out."""
    headers = ["CommandLine", "Name", "ProcessId"]
    widths = [max(len(cell) for cell in column) + 2 for column in zip(headers, *rows)]
    lines = [
        "".join(cell.ljust(width) for cell, width in zip(line, widths))
        for line in [headers, *rows]
    ]
    return "\r\r\n".join(lines) + "\r\r\n\r\r\n"


@pytest.fixture
def tasklist_output() -> str:
    return make_tasklist_output(TASKLIST_ROWS)


@pytest.fixture
def wmic_output() -> str:
    return make_wmic_output(WMIC_ROWS)
