"""
Process inspectors: find a variant's running instance and read its usage.

ProcessInspector is the capability interface used by every harness component.
One implementation is selected at startup by `create_inspector`:

- PsutilInspector: cross-platform, reads counters through psutil (default).
- PsCommandInspector: POSIX `ps` process table query.
- TasklistInspector: Windows `tasklist` plus PowerShell CPU counters.

All implementations report memory in MB (summed over every matching process)
and CPU as a percentage of one core (so a process saturating two cores reads
~200). A missing match, or a query whose output cannot be parsed, yields 0,
which callers treat as "no reading this tick".
"""

import csv
import io
import logging
import os
import platform
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import psutil

from ..validation import SampleReadFailure
from .commands import run_command
from .processes import compile_pattern, iter_matching_processes, matches_process

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
KB_PER_MB = 1024


class ProcessInspector(ABC):
    """
    Abstract capability for locating a process by pattern and reading its usage.

    Subclasses implement the raw queries and may raise SampleReadFailure; the
    public methods convert those failures into "absent" results.
    """

    name: str = "abstract"

    def find_process(self, pattern: str) -> bool:
        """Return True if at least one live process matches `pattern`."""
        return bool(self.matching_pids(pattern))

    def matching_pids(self, pattern: str) -> List[int]:
        """Return the PIDs of live processes matching `pattern` (empty on query failure)."""
        try:
            return self._matching_pids(pattern)
        except SampleReadFailure as e:
            logger.debug(f"{self.name}: process listing failed for '{pattern}': {e}")
            return []

    def read_memory_mb(self, pattern: str) -> float:
        """Resident memory of all matching processes in MB, or 0 if none."""
        try:
            return max(0.0, self._read_memory_mb(pattern))
        except SampleReadFailure as e:
            logger.debug(f"{self.name}: memory read failed for '{pattern}': {e}")
            return 0.0

    def read_cpu_percent(self, pattern: str) -> float:
        """CPU usage of all matching processes in percent of one core, or 0 if none."""
        try:
            return max(0.0, self._read_cpu_percent(pattern))
        except SampleReadFailure as e:
            logger.debug(f"{self.name}: CPU read failed for '{pattern}': {e}")
            return 0.0

    @abstractmethod
    def _matching_pids(self, pattern: str) -> List[int]:
        pass

    @abstractmethod
    def _read_memory_mb(self, pattern: str) -> float:
        pass

    @abstractmethod
    def _read_cpu_percent(self, pattern: str) -> float:
        pass


class PsutilInspector(ProcessInspector):
    """
    Reads process counters through psutil.

    CPU percentages come from `Process.cpu_percent(interval=None)`, which
    measures the time since the previous call on the same Process object. The
    first read of a newly seen process therefore returns 0 and only primes it.
    """

    name = "psutil"

    def __init__(self):
        self._cpu_trackers: Dict[int, psutil.Process] = {}

    def _matching_pids(self, pattern: str) -> List[int]:
        return [proc.pid for proc in iter_matching_processes(pattern)]

    def _read_memory_mb(self, pattern: str) -> float:
        total_bytes = 0
        for proc in iter_matching_processes(pattern):
            try:
                total_bytes += proc.memory_info().rss
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        return total_bytes / BYTES_PER_MB

    def _read_cpu_percent(self, pattern: str) -> float:
        total = 0.0
        seen = set()
        for proc in iter_matching_processes(pattern):
            tracker = self._cpu_trackers.setdefault(proc.pid, proc)
            seen.add(proc.pid)
            try:
                total += tracker.cpu_percent(interval=None)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                self._cpu_trackers.pop(proc.pid, None)
                continue

        for pid in list(self._cpu_trackers):
            if pid not in seen:
                del self._cpu_trackers[pid]
        return total


@dataclass(frozen=True)
class PsRow:
    """One parsed line of `ps` output."""

    pid: int
    stat: str
    rss_kb: int
    cpu_percent: float
    args: str


class PsCommandInspector(ProcessInspector):
    """
    Queries the POSIX process table with a single `ps` invocation per read.

    `ps` reports %CPU as the lifetime average of each process on Linux and as
    a decaying average on BSD/macOS; both are already per-core percentages.
    """

    name = "ps"

    PS_ARGV = ["ps", "-A", "-o", "pid=,stat=,rss=,pcpu=,args="]

    def __init__(self, runner: Callable[[List[str]], Tuple[int, str, str]] = run_command):
        self._run = runner

    def _snapshot(self, pattern: str) -> List[PsRow]:
        compiled = compile_pattern(pattern)
        return_code, stdout, stderr = self._run(self.PS_ARGV)
        if return_code != 0:
            raise SampleReadFailure(f"ps exited with {return_code}: {stderr.strip()}")

        own_pid = os.getpid()
        rows = []
        for line in stdout.splitlines():
            if not line.strip():
                continue
            row = self.parse_line(line)
            if row.pid == own_pid or row.stat.startswith("Z"):
                continue
            command_name = os.path.basename(row.args.split()[0]) if row.args else ""
            if matches_process(compiled, command_name, [row.args]):
                rows.append(row)
        return rows

    @staticmethod
    def parse_line(line: str) -> PsRow:
        """
        Parse one `ps -o pid=,stat=,rss=,pcpu=,args=` line.

        Raises:
            SampleReadFailure: If the line does not have the expected columns
        """
        parts = line.split(None, 4)
        if len(parts) < 4:
            raise SampleReadFailure(f"Unparsable ps line: {line!r}")
        try:
            return PsRow(
                pid=int(parts[0]),
                stat=parts[1],
                rss_kb=int(parts[2]),
                cpu_percent=float(parts[3].replace(",", ".")),
                args=parts[4] if len(parts) > 4 else "",
            )
        except ValueError as e:
            raise SampleReadFailure(f"Unparsable ps line: {line!r}") from e

    def _matching_pids(self, pattern: str) -> List[int]:
        return [row.pid for row in self._snapshot(pattern)]

    def _read_memory_mb(self, pattern: str) -> float:
        return sum(row.rss_kb for row in self._snapshot(pattern)) / KB_PER_MB

    def _read_cpu_percent(self, pattern: str) -> float:
        return sum(row.cpu_percent for row in self._snapshot(pattern))


class TasklistInspector(ProcessInspector):
    """
    Queries the Windows process table with `tasklist` and PowerShell.

    PowerShell's `Get-Process` exposes cumulative CPU seconds, not a rate.
    Successive reads for the same pattern are differenced against wall time to
    produce a percentage; the first read of a pattern only primes the baseline.
    """

    name = "tasklist"

    TASKLIST_ARGV = ["tasklist", "/FO", "CSV", "/NH"]

    def __init__(
        self,
        runner: Callable[[List[str]], Tuple[int, str, str]] = run_command,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._run = runner
        self._clock = clock
        self._cpu_history: Dict[str, Tuple[float, float]] = {}

    def _snapshot(self, pattern: str) -> List[Tuple[int, int]]:
        """Return (pid, working_set_kb) for every matching image."""
        compiled = compile_pattern(pattern)
        return_code, stdout, stderr = self._run(self.TASKLIST_ARGV)
        if return_code != 0:
            raise SampleReadFailure(f"tasklist exited with {return_code}: {stderr.strip()}")

        own_pid = os.getpid()
        matched = []
        for row in csv.reader(io.StringIO(stdout)):
            if not row:
                continue
            if len(row) < 5:
                raise SampleReadFailure(f"Unparsable tasklist row: {row!r}")
            image, pid_str, mem_str = row[0], row[1], row[4]
            try:
                pid = int(pid_str)
            except ValueError as e:
                raise SampleReadFailure(f"Unparsable tasklist PID: {pid_str!r}") from e
            if pid == own_pid or not matches_process(compiled, image, [image]):
                continue
            matched.append((pid, self.parse_memory_kb(mem_str)))
        return matched

    @staticmethod
    def parse_memory_kb(value: str) -> int:
        """
        Parse a tasklist "Mem Usage" column such as "12,345 K".

        Raises:
            SampleReadFailure: If no number can be extracted
        """
        digits = "".join(ch for ch in value if ch.isdigit())
        if not digits:
            raise SampleReadFailure(f"Unparsable tasklist memory value: {value!r}")
        return int(digits)

    def _matching_pids(self, pattern: str) -> List[int]:
        return [pid for pid, _ in self._snapshot(pattern)]

    def _read_memory_mb(self, pattern: str) -> float:
        return sum(mem_kb for _, mem_kb in self._snapshot(pattern)) / KB_PER_MB

    def _read_cpu_seconds(self, pids: List[int]) -> float:
        script = (
            f"Get-Process -Id {','.join(str(p) for p in pids)} -ErrorAction SilentlyContinue"
            " | ForEach-Object { $_.CPU }"
        )
        return_code, stdout, stderr = self._run(["powershell", "-NoProfile", "-Command", script])
        if return_code != 0:
            raise SampleReadFailure(f"powershell exited with {return_code}: {stderr.strip()}")
        total = 0.0
        for line in stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                total += float(line.replace(",", "."))
            except ValueError as e:
                raise SampleReadFailure(f"Unparsable CPU seconds: {line!r}") from e
        return total

    def _read_cpu_percent(self, pattern: str) -> float:
        pids = self._matching_pids(pattern)
        if not pids:
            self._cpu_history.pop(pattern, None)
            return 0.0

        cpu_seconds = self._read_cpu_seconds(pids)
        now = self._clock()
        previous = self._cpu_history.get(pattern)
        self._cpu_history[pattern] = (now, cpu_seconds)

        if previous is None:
            return 0.0
        previous_time, previous_cpu = previous
        elapsed = now - previous_time
        delta = cpu_seconds - previous_cpu
        # A restarted process resets its counter.
        if elapsed <= 0 or delta < 0:
            return 0.0
        return delta / elapsed * 100.0


def create_inspector(kind: str = "auto", system: Optional[str] = None) -> ProcessInspector:
    """
    Create the process inspector for the host OS.

    Args:
        kind: "auto", "psutil", "ps" or "tasklist"
        system: OS name as returned by platform.system(); detected when None

    Raises:
        ValueError: If `kind` is unknown or not supported on `system`
    """
    system = system or platform.system()

    if kind in ("auto", "psutil"):
        inspector: ProcessInspector = PsutilInspector()
    elif kind == "ps":
        if system == "Windows":
            raise ValueError("The 'ps' inspector is not available on Windows")
        inspector = PsCommandInspector()
    elif kind == "tasklist":
        if system != "Windows":
            raise ValueError(f"The 'tasklist' inspector requires Windows, host is {system}")
        inspector = TasklistInspector()
    else:
        raise ValueError(f"Unknown process inspector: {kind}")

    logger.info(f"Using {inspector.name} process inspector on {system}")
    return inspector
