"""Tests for tasklist/wmic reconciliation."""

from psaux.grid import parse_grid, strip_separator
from psaux.reconciler import (
    QueryRow,
    TaskRow,
    normalize_state,
    parse_cpu_time,
    parse_mem_kb,
    reconcile,
)


def task_row(pid: int, name: str = "app.exe", mem: str = "1,000", status: str = "Running",
             user: str = r"DESKTOP\alice", cpu_time: str = "0:00:10") -> dict[str, list[str]]:
    return {
        "Image Name": name.split(),
        "PID": [str(pid)],
        "Mem Usage": [mem, "K"],
        "Status": status.split(),
        "User Name": user.split(),
        "CPU Time": [cpu_time],
    }


def query_row(pid: int, command_line: str, name: str = "app.exe") -> dict[str, list[str]]:
    return {
        "CommandLine": command_line.split(),
        "Name": name.split(),
        "ProcessId": [str(pid)],
    }


class TestParsing:
    """Tests for the small value parsers."""

    def test_parse_cpu_time(self):
        """Test H:MM:SS is converted into seconds."""
        assert parse_cpu_time("0:00:00") == 0
        assert parse_cpu_time("1:02:03") == 3723
        assert parse_cpu_time("100:23:45") == 361425

    def test_parse_cpu_time_malformed(self):
        """Test missing or non-numeric parts count as zero."""
        assert parse_cpu_time("") == 0
        assert parse_cpu_time("5:07") == 307
        assert parse_cpu_time("x:01:00") == 60

    def test_parse_mem_kb(self):
        """Test thousands separators are removed."""
        assert parse_mem_kb("8") == 8
        assert parse_mem_kb("123,456") == 123456
        assert parse_mem_kb("1.024") == 1024
        assert parse_mem_kb("") == 0

    def test_normalize_state(self):
        """Test 'Unknown' in any case becomes '-', other values pass through."""
        assert normalize_state("Unknown") == "-"
        assert normalize_state("UNKNOWN") == "-"
        assert normalize_state("unknown") == "-"
        assert normalize_state("Running") == "Running"
        assert normalize_state("Not Responding") == "Not Responding"

    def test_task_row_from_row(self):
        """Test a tasklist grid row is converted into a typed TaskRow."""
        task = TaskRow.from_row(task_row(42, name="System Idle Process", mem="12,345",
                                         user=r"NT AUTHORITY\SYSTEM", cpu_time="1:00:00"))

        assert task.pid == 42
        assert task.image_name == "System Idle Process"
        assert task.mem_kb == 12345
        assert task.user == r"NT_AUTHORITY\SYSTEM"
        assert task.cpu_time == "1:00:00"

    def test_query_row_from_row(self):
        """Test a wmic grid row is converted into a typed QueryRow."""
        query = QueryRow.from_row(query_row(42, "app.exe --flag value"))

        assert query.process_id == 42
        assert query.command_line == "app.exe --flag value"

    def test_missing_columns(self):
        """Test rows missing columns yield empty values instead of raising."""
        task = TaskRow.from_row({})

        assert task.pid is None
        assert task.image_name == ""
        assert task.mem_kb == 0


class TestReconcile:
    """Tests for reconcile."""

    def test_command_line_from_query_grid(self):
        """Test M matched rows take their command from CommandLine, not Name."""
        tasks = [task_row(pid, name=f"app{pid}.exe") for pid in (10, 20, 30)]
        queries = [query_row(pid, f"C:\\bin\\app{pid}.exe --id {pid}") for pid in (30, 10, 20)]

        records = reconcile(tasks, queries, 1_000_000)

        assert len(records) == 3
        assert [r.pid for r in records] == [10, 20, 30]
        assert [r.command for r in records] == [
            "C:\\bin\\app10.exe --id 10",
            "C:\\bin\\app20.exe --id 20",
            "C:\\bin\\app30.exe --id 30",
        ]

    def test_fallback_to_image_name(self):
        """Test a pid without a query match falls back to the image name."""
        records = reconcile([task_row(99, name="lonely.exe")], [query_row(1, "other.exe")], 1_000_000)

        assert records[0].command == "lonely.exe"

    def test_fallback_on_empty_command_line(self):
        """Test an empty CommandLine also falls back to the image name."""
        records = reconcile([task_row(0, name="System Idle Process")], [query_row(0, "")], 1_000_000)

        assert records[0].command == "System Idle Process"

    def test_mem_percent(self):
        """Test memory share against total memory, with two decimals."""
        records = reconcile([task_row(1, mem="500,000")], [], 1_000_000)

        assert records[0].mem_percent == "50.00"

    def test_mem_percent_rounding(self):
        """Test memory share is rounded to two decimals."""
        records = reconcile([task_row(1, mem="1")], [], 3)

        assert records[0].mem_percent == "33.33"

    def test_cpu_percent_is_relative_to_batch(self):
        """Test CPU share is relative to the total CPU time of the batch."""
        tasks = [
            task_row(1, cpu_time="0:01:00"),
            task_row(2, cpu_time="0:01:00"),
            task_row(3, cpu_time="0:02:00"),
            task_row(4, cpu_time="0:00:00"),
        ]
        records = reconcile(tasks, [], 1_000_000)

        assert records[0].cpu_percent == records[1].cpu_percent == "25.00"
        assert records[2].cpu_percent == "50.00"
        assert records[3].cpu_percent == "0.00"

    def test_cpu_percent_counts_seconds(self):
        """Test the seconds component contributes to the CPU share."""
        records = reconcile([task_row(1, cpu_time="0:00:30"), task_row(2, cpu_time="0:00:10")], [], 1)

        assert records[0].cpu_percent == "75.00"
        assert records[1].cpu_percent == "25.00"

    def test_zero_total_cpu_time(self):
        """Test a batch with no CPU time reports 0.00 everywhere."""
        records = reconcile([task_row(1, cpu_time="0:00:00"), task_row(2, cpu_time="0:00:00")], [], 1)

        assert [r.cpu_percent for r in records] == ["0.00", "0.00"]

    def test_state_and_placeholders(self):
        """Test state normalization and fixed placeholders."""
        records = reconcile([task_row(1, status="Unknown"), task_row(2, status="Running")], [], 1)

        assert records[0].state == "-"
        assert records[1].state == "Running"
        for record in records:
            assert record.vsz == "VSZ"
            assert record.rss == "RSS"
            assert record.tty == "TTY"
            assert record.started == "-"
            assert record.time == "0:00:10"

    def test_empty_grids(self):
        """Test empty input yields an empty list."""
        assert reconcile([], [], 1_000_000) == []

    def test_parsed_tool_output(self, tasklist_output, wmic_output):
        """Test reconciling grids parsed from real-looking tool output."""
        task_grid = strip_separator(parse_grid(tasklist_output))
        wmic_grid = parse_grid(wmic_output)

        records = reconcile(task_grid, wmic_grid, 1_000_000)

        by_pid = {record.pid: record for record in records}
        assert sorted(by_pid) == [0, 4120, 5200, 6000]

        idle = by_pid[0]
        assert idle.user == r"NT_AUTHORITY\SYSTEM"
        assert idle.command == "System Idle Process"
        assert idle.state == "-"
        assert idle.cpu_percent == "0.00"

        explorer = by_pid[4120]
        assert explorer.command == r"C:\Windows\Explorer.EXE"
        assert explorer.mem_percent == "12.35"
        assert explorer.state == "Running"
        assert explorer.cpu_percent == "45.45"

        python = by_pid[5200]
        assert python.command == r'"C:\Python312\python.exe" -m http.server 8000'
        assert python.state == "Not Responding"
        assert python.mem_percent == "5.00"

        svchost = by_pid[6000]
        assert svchost.command == "svchost.exe"
        assert svchost.user == "N/A"
        assert svchost.cpu_percent == "9.09"

    def test_missing_pid_is_none(self):
        """Test a row without a usable PID keeps pid None and its own name."""
        broken = task_row(0, name="broken.exe")
        del broken["PID"]
        garbled = task_row(0, name="garbled.exe")
        garbled["PID"] = ["N/A"]
        tasks = [task_row(0, name="System Idle Process"), broken, garbled]
        queries = [query_row(0, "idle-cmd")]

        records = reconcile(tasks, queries, 1000)

        assert records[0].pid == 0
        assert records[0].command == "idle-cmd"
        assert records[1].pid is None
        assert records[1].command == "broken.exe"
        assert records[2].pid is None
        assert records[2].command == "garbled.exe"

    def test_query_rows_without_pid_are_ignored(self):
        """Test a wmic row without a usable ProcessId matches nothing."""
        broken_query = query_row(0, "stray-cmd")
        broken_query["ProcessId"] = []

        records = reconcile([task_row(0, name="System Idle Process")], [broken_query], 1000)

        assert QueryRow.from_row(broken_query).process_id is None
        assert records[0].command == "System Idle Process"
