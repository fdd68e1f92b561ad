"""Platform-dispatched acquisition of the process table.

On Unix-like systems ``ps aux`` is run and each line parsed on its own. On
Windows ``tasklist /V`` and ``wmic process`` are run one after the other
and their grids reconciled into the same record shape.
"""

import logging
import subprocess
import sys

import psutil

from psaux.exceptions import AcquisitionError
from psaux.grid import parse_grid, strip_separator
from psaux.models import ProcessRecord
from psaux.parser import parse_line
from psaux.reconciler import reconcile

_logger = logging.getLogger(__name__)

PS_COMMAND = ["ps", "aux"]
TASKLIST_COMMAND = ["tasklist.exe", "/V"]
WMIC_COMMAND = ["wmic", "process", "get", "CommandLine,Name,ProcessId"]


def is_windows() -> bool:
    """Check whether the current platform needs the tasklist path."""
    return sys.platform == "win32"


def console_encoding() -> str | None:
    """Codec of console tool output: the OEM code page on Windows, else the locale default."""
    return "oem" if is_windows() else None


def run_command(args: list[str]) -> str:
    """
    Run a command and return its standard output.

    Raises:
        AcquisitionError: If the command cannot be spawned, exits with a
            non-zero status or writes anything to stderr.
    """
    _logger.debug("Running %s", " ".join(args))
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            encoding=console_encoding(),
            errors="replace",
        )
    except OSError as e:
        raise AcquisitionError(str(e), args) from e

    if result.stderr:
        raise AcquisitionError(result.stderr, args)
    if result.returncode != 0:
        raise AcquisitionError(f"exited with status {result.returncode}", args)
    return result.stdout


def split_output(stdout: str) -> list[str]:
    """Split ps output into lines, dropping the header and trailing newline."""
    lines = stdout.split("\n")[1:]
    if lines and not lines[-1]:
        lines.pop()
    return lines


def total_memory_kb() -> float:
    """Total physical memory in kilobytes."""
    return psutil.virtual_memory().total / 1024


def obtain_raw() -> list[str]:
    """
    Obtain one unparsed line per running process.

    Only supported where ``ps`` exists; Windows raises AcquisitionError.
    """
    if is_windows():
        raise AcquisitionError("raw process listing is not supported on Windows")
    return split_output(run_command(PS_COMMAND))


def obtain_psaux() -> list[ProcessRecord]:
    """Obtain and parse ``ps aux`` output."""
    records = [parse_line(line) for line in split_output(run_command(PS_COMMAND))]
    _logger.debug("Parsed %d processes from ps", len(records))
    return records


def obtain_tasklist() -> list[ProcessRecord]:
    """
    Obtain ``tasklist`` and ``wmic`` output and reconcile them.

    The second command only runs once the first has succeeded.
    """
    task_list = run_command(TASKLIST_COMMAND)
    wmic_list = run_command(WMIC_COMMAND)

    task_grid = strip_separator(parse_grid(task_list))
    wmic_grid = parse_grid(wmic_list)

    records = reconcile(task_grid, wmic_grid, total_memory_kb())
    _logger.debug("Reconciled %d processes from tasklist", len(records))
    return records


def obtain_parsed() -> list[ProcessRecord]:
    """
    Obtain process information and parse it.

    Returns:
        A fresh list of ProcessRecord, one per running process.

    Raises:
        AcquisitionError: If any of the underlying commands fails. No
            partial list is returned.
    """
    if is_windows():
        return obtain_tasklist()
    return obtain_psaux()
