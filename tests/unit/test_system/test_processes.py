"""
Unit tests for process matching and command helpers.
"""

import os
import subprocess
from unittest.mock import Mock, patch

import psutil
import pytest

from runbench.system.commands import resolve_executable, run_command
from runbench.system.processes import compile_pattern, iter_matching_processes, matches_process


def make_proc(pid, name, cmdline, status=psutil.STATUS_RUNNING):
    proc = Mock()
    proc.info = {"pid": pid, "name": name, "cmdline": cmdline, "status": status}
    return proc


@pytest.mark.unit
class TestPatternMatching:
    """Test cases for pattern compilation and matching."""

    def test_invalid_pattern(self):
        with pytest.raises(ValueError):
            compile_pattern("[unclosed")

    def test_matches_name_or_cmdline(self):
        compiled = compile_pattern("[Ee]lectron")

        assert matches_process(compiled, "Electron Helper", None)
        assert matches_process(compiled, "node", ["node", "/apps/electron/main.js"])
        assert not matches_process(compiled, "node", ["node", "server.js"])
        assert not matches_process(compiled, None, None)


@pytest.mark.unit
class TestIterMatchingProcesses:
    """Test cases for iter_matching_processes()."""

    def test_filters_zombies_and_self(self):
        procs = [
            make_proc(10, "tauri-app", ["tauri-app"]),
            make_proc(11, "tauri-app", ["tauri-app"], status=psutil.STATUS_ZOMBIE),
            make_proc(os.getpid(), "python", ["python", "tauri-app"]),
            make_proc(12, "bash", ["bash"]),
        ]
        with patch("runbench.system.processes.psutil.process_iter", return_value=procs):
            matched = iter_matching_processes("tauri-app")

        assert [p.info["pid"] for p in matched] == [10]

    def test_vanishing_process_is_skipped(self):
        vanished = Mock()
        type(vanished).info = property(Mock(side_effect=psutil.NoSuchProcess(13)))
        procs = [vanished, make_proc(14, "tauri-app", [])]
        with patch("runbench.system.processes.psutil.process_iter", return_value=procs):
            matched = iter_matching_processes("tauri-app")

        assert len(matched) == 1


@pytest.mark.unit
class TestCommands:
    """Test cases for run_command() and resolve_executable()."""

    def test_run_command_success(self):
        completed = Mock(returncode=0, stdout="out", stderr="")
        with patch("runbench.system.commands.subprocess.run", return_value=completed) as run:
            assert run_command(["ps", "-A"]) == (0, "out", "")
        assert run.call_args.args[0] == ["ps", "-A"]

    def test_run_command_not_found(self):
        with patch("runbench.system.commands.subprocess.run", side_effect=FileNotFoundError()):
            return_code, _, stderr = run_command(["nope"])
        assert return_code == -1
        assert "not found" in stderr

    def test_run_command_timeout(self):
        with patch(
            "runbench.system.commands.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ps", timeout=1),
        ):
            assert run_command(["ps"])[0] == -1

    def test_run_command_failures_are_logged_with_command(self, caplog):
        with patch("runbench.system.commands.subprocess.run", side_effect=FileNotFoundError("nope")):
            with caplog.at_level("ERROR", logger="runbench.system.commands"):
                run_command(["nope", "-x"])

        assert "Error in subprocess command 'nope'" in caplog.text

    def test_run_command_timeout_is_a_warning(self, caplog):
        with patch(
            "runbench.system.commands.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ps", timeout=1),
        ):
            with caplog.at_level("WARNING", logger="runbench.system.commands"):
                run_command(["ps"])

        assert [r.levelname for r in caplog.records] == ["WARNING"]

    def test_resolve_relative_path(self, temp_dir):
        (temp_dir / "bin").mkdir()
        (temp_dir / "bin" / "app").write_text("")

        assert resolve_executable("bin/app", cwd=temp_dir) == str(temp_dir / "bin" / "app")
        assert resolve_executable("bin/missing", cwd=temp_dir) is None

    def test_resolve_bare_name_uses_path(self):
        with patch("runbench.system.commands.shutil.which", return_value="/usr/bin/npm"):
            assert resolve_executable("npm") == "/usr/bin/npm"
