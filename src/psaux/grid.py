"""Parsing of column-aligned tool output into grids.

A grid is a list of rows. Each row maps a column label to the
whitespace-separated tokens found under that label, e.g.::

    {"Image Name": ["System", "Idle", "Process"], "PID": ["0"], ...}

Two layouts are understood. When the header is followed by a rule line
(``===== ====``, as written by ``tasklist``) the rule runs give the exact
column extents, which also copes with right-aligned numeric columns.
Otherwise columns begin where the header labels begin, with labels
separated by at least two spaces (the left-aligned ``wmic`` layout).
"""

import re

Row = dict[str, list[str]]
Grid = list[Row]

_RULE_LINE = re.compile(r"^[=\-\s]+$")
_RULE_RUN = re.compile(r"[=\-]+")
# A label may contain single spaces ("Image Name"); two or more end it.
_HEADER_LABEL = re.compile(r"\S+(?: \S+)*")


def _is_rule_line(line: str) -> bool:
    return bool(_RULE_LINE.match(line)) and bool(_RULE_RUN.search(line))


def _columns(header: str, starts: list[int]) -> list[tuple[str, int, int | None]]:
    """Pair each column start with its label and end offset."""
    columns = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else None
        label = header[start:end].strip()
        columns.append((label, start, end))
    return columns


def _split_row(line: str, columns: list[tuple[str, int, int | None]]) -> Row:
    return {label: line[start:end].split() for label, start, end in columns}


def parse_grid(text: str) -> Grid:
    """
    Parse columnar text into a grid.

    Blank lines are skipped. The rule line, when present, is returned as the
    first row so that callers can discard it with strip_separator().
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return []

    header, body = lines[0], lines[1:]

    if body and _is_rule_line(body[0]):
        starts = [match.start() for match in _RULE_RUN.finditer(body[0])]
    else:
        starts = [match.start() for match in _HEADER_LABEL.finditer(header)]

    columns = _columns(header, starts)
    return [_split_row(line, columns) for line in body]


def is_separator_row(row: Row) -> bool:
    """Check whether a row is the rule line under a header."""
    tokens = [token for cell in row.values() for token in cell]
    return bool(tokens) and all(_is_rule_line(token) for token in tokens)


def strip_separator(grid: Grid) -> Grid:
    """Return the grid without its leading separator row, if it has one."""
    if grid and is_separator_row(grid[0]):
        return grid[1:]
    return grid
