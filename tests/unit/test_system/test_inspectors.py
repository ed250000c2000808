"""
Unit tests for the platform process inspectors.
"""

import os
from unittest.mock import Mock, patch

import psutil
import pytest

from runbench.system.inspectors import (
    PsCommandInspector,
    PsutilInspector,
    TasklistInspector,
    create_inspector,
)
from runbench.validation import SampleReadFailure


PS_OUTPUT = """\
  101 Ss    204800  12.5 /opt/electron-app/electron-app --no-sandbox
  102 S     102400   3.0 /opt/electron-app/electron-app --type=renderer
  103 Z          0   0.0 [electron-app] <defunct>
  200 S      51200   1.0 /usr/bin/tauri-app
"""


def ps_runner(output=PS_OUTPUT, return_code=0):
    return Mock(return_value=(return_code, output, ""))


@pytest.mark.unit
class TestPsCommandInspector:
    """Test cases for the POSIX `ps` inspector."""

    def test_find_process(self):
        inspector = PsCommandInspector(runner=ps_runner())

        assert inspector.find_process("electron-app")
        assert not inspector.find_process("slack")

    def test_memory_is_summed_in_mb_and_zombies_skipped(self):
        inspector = PsCommandInspector(runner=ps_runner())

        assert inspector.read_memory_mb("electron-app") == pytest.approx(300.0)
        assert inspector.matching_pids("electron-app") == [101, 102]

    def test_cpu_is_summed(self):
        inspector = PsCommandInspector(runner=ps_runner())
        assert inspector.read_cpu_percent("electron-app") == pytest.approx(15.5)

    def test_absent_process_reads_zero(self):
        inspector = PsCommandInspector(runner=ps_runner())

        assert inspector.read_memory_mb("slack") == 0.0
        assert inspector.read_cpu_percent("slack") == 0.0

    def test_unparsable_output_reads_zero(self):
        inspector = PsCommandInspector(runner=ps_runner("garbage line here\n"))

        assert inspector.read_memory_mb("garbage") == 0.0
        assert inspector.find_process("garbage") is False

    def test_command_failure_reads_zero(self):
        inspector = PsCommandInspector(runner=ps_runner("", return_code=-1))
        assert inspector.read_memory_mb("electron-app") == 0.0

    def test_parse_line_rejects_short_lines(self):
        with pytest.raises(SampleReadFailure):
            PsCommandInspector.parse_line("101 S")

    def test_own_process_is_ignored(self):
        output = f"{os.getpid()} S 1000 5.0 python -m pytest electron-app\n"
        inspector = PsCommandInspector(runner=ps_runner(output))
        assert not inspector.find_process("electron-app")


TASKLIST_OUTPUT = """\
"Electron.exe","4100","Console","1","153,600 K"
"Electron.exe","4101","Console","1","51,200 K"
"tauri-app.exe","5200","Console","1","40,960 K"
"""


@pytest.mark.unit
class TestTasklistInspector:
    """Test cases for the Windows tasklist inspector."""

    def _runner(self, cpu_outputs):
        cpu_iter = iter(cpu_outputs)

        def run(argv):
            if argv[0] == "tasklist":
                return 0, TASKLIST_OUTPUT, ""
            return 0, next(cpu_iter), ""

        return run

    def test_memory(self):
        inspector = TasklistInspector(runner=self._runner([]))

        assert inspector.read_memory_mb("Electron") == pytest.approx(200.0)
        assert inspector.matching_pids("tauri-app") == [5200]

    def test_parse_memory_kb(self):
        assert TasklistInspector.parse_memory_kb("153,600 K") == 153600
        assert TasklistInspector.parse_memory_kb("153.600 K") == 153600
        with pytest.raises(SampleReadFailure):
            TasklistInspector.parse_memory_kb("N/A")

    def test_cpu_is_delta_over_wall_time(self):
        clock = Mock(side_effect=[10.0, 12.0])
        inspector = TasklistInspector(runner=self._runner(["1.0\n2.0\n", "2.0\n2.5\n"]), clock=clock)

        assert inspector.read_cpu_percent("Electron") == 0.0
        # 1.5 CPU seconds over 2 wall seconds.
        assert inspector.read_cpu_percent("Electron") == pytest.approx(75.0)

    def test_cpu_counter_reset_reads_zero(self):
        clock = Mock(side_effect=[10.0, 11.0])
        inspector = TasklistInspector(runner=self._runner(["5.0\n", "1.0\n"]), clock=clock)

        inspector.read_cpu_percent("tauri-app")
        assert inspector.read_cpu_percent("tauri-app") == 0.0


@pytest.mark.unit
class TestPsutilInspector:
    """Test cases for the psutil inspector."""

    def _proc(self, pid, rss, cpu):
        proc = Mock(pid=pid)
        proc.memory_info.return_value = Mock(rss=rss)
        proc.cpu_percent.return_value = cpu
        return proc

    def test_memory_sums_rss(self):
        procs = [self._proc(1, 100 * 1024 * 1024, 0.0), self._proc(2, 50 * 1024 * 1024, 0.0)]
        with patch("runbench.system.inspectors.iter_matching_processes", return_value=procs):
            assert PsutilInspector().read_memory_mb("app") == pytest.approx(150.0)

    def test_vanished_process_is_skipped(self):
        gone = Mock(pid=3)
        gone.memory_info.side_effect = psutil.NoSuchProcess(3)
        procs = [self._proc(1, 10 * 1024 * 1024, 0.0), gone]
        with patch("runbench.system.inspectors.iter_matching_processes", return_value=procs):
            assert PsutilInspector().read_memory_mb("app") == pytest.approx(10.0)

    def test_cpu_uses_cached_process_objects(self):
        first = self._proc(1, 0, 0.0)
        second_view = self._proc(1, 0, 99.0)
        inspector = PsutilInspector()

        with patch("runbench.system.inspectors.iter_matching_processes", return_value=[first]):
            inspector.read_cpu_percent("app")
        first.cpu_percent.return_value = 12.0
        with patch("runbench.system.inspectors.iter_matching_processes", return_value=[second_view]):
            assert inspector.read_cpu_percent("app") == 12.0

    def test_no_match_reads_zero(self):
        with patch("runbench.system.inspectors.iter_matching_processes", return_value=[]):
            inspector = PsutilInspector()
            assert inspector.read_memory_mb("app") == 0.0
            assert inspector.read_cpu_percent("app") == 0.0
            assert inspector.find_process("app") is False


@pytest.mark.unit
class TestCreateInspector:
    """Test cases for create_inspector()."""

    def test_auto_is_psutil(self):
        assert isinstance(create_inspector("auto", system="Linux"), PsutilInspector)

    def test_ps_on_posix(self):
        assert isinstance(create_inspector("ps", system="Darwin"), PsCommandInspector)

    def test_ps_on_windows_rejected(self):
        with pytest.raises(ValueError):
            create_inspector("ps", system="Windows")

    def test_tasklist_requires_windows(self):
        assert isinstance(create_inspector("tasklist", system="Windows"), TasklistInspector)
        with pytest.raises(ValueError):
            create_inspector("tasklist", system="Linux")

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            create_inspector("wmic", system="Windows")
