"""
Process lifecycle control for application variants.

The ProcessController spawns a variant as a detached, output-suppressed
process, kills every process matching the variant's pattern (including their
children), and waits with a bounded timeout for a variant to appear or
disappear. Launch and terminate calls are serialized so that only one variant
is live at a time.
"""

import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import psutil

from ..models.config import AppVariant
from ..system.commands import resolve_executable
from ..system.inspectors import ProcessInspector
from ..validation import (
    ErrorSeverity,
    LaunchFailure,
    ProcessIdentityConflict,
    handle_subprocess_error,
)
from .clock import Clock, SystemClock, poll_until

logger = logging.getLogger(__name__)

KILL_WAIT_TIMEOUT_S = 3.0
REAP_TIMEOUT_S = 1.0


@dataclass
class LaunchHandle:
    """A spawned variant process."""

    variant_id: str
    pid: int
    launched_at_ms: float
    process: Optional[subprocess.Popen] = field(default=None, repr=False)


def kill_process_tree(pid: int) -> int:
    """
    Forcefully kill a process and all of its descendants.

    Returns:
        The number of processes that were signalled. A process that is already
        gone counts as 0; this never raises for absent processes.
    """
    try:
        parent = psutil.Process(pid)
        victims = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        logger.debug(f"PID {pid} already terminated")
        return 0
    except psutil.AccessDenied:
        logger.warning(f"Access denied while enumerating children of PID {pid}")
        victims = [parent]

    killed: List[psutil.Process] = []
    for proc in victims:
        try:
            proc.kill()
            killed.append(proc)
            logger.debug(f"Sent SIGKILL to PID {proc.pid}")
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied when killing PID {proc.pid}")

    if killed:
        _, alive = psutil.wait_procs(killed, timeout=KILL_WAIT_TIMEOUT_S)
        for proc in alive:
            logger.warning(f"PID {proc.pid} survived SIGKILL")
    return len(killed)


class ProcessController:
    """
    Starts, stops and waits for application variants.

    Args:
        inspector: Used to locate running instances by pattern
        clock: Time source for the await loops
        poll_interval_ms: Interval between presence checks
        absence_timeout_ms: Default bound for waiting on termination
        killer: Function that kills a PID and its children, returning the count
    """

    def __init__(
        self,
        inspector: ProcessInspector,
        clock: Optional[Clock] = None,
        poll_interval_ms: int = 100,
        absence_timeout_ms: int = 5000,
        killer: Callable[[int], int] = kill_process_tree,
    ):
        self.inspector = inspector
        self.clock = clock or SystemClock()
        self.poll_interval_ms = poll_interval_ms
        self.absence_timeout_ms = absence_timeout_ms
        self._killer = killer
        self._lock = threading.Lock()
        self._active: Dict[str, LaunchHandle] = {}

    def launch(self, variant: AppVariant) -> LaunchHandle:
        """
        Spawn the variant and return immediately.

        Success only means the OS accepted the command; readiness is checked
        separately with `await_presence`. The command is resolved on PATH
        first, which also finds Windows `.cmd` shims such as `npm.cmd`.

        Raises:
            LaunchFailure: If the command cannot be spawned
            ProcessIdentityConflict: If a variant launched by this controller
                has not been terminated yet
        """
        with self._lock:
            if self._active:
                live = ", ".join(sorted(self._active))
                raise ProcessIdentityConflict(
                    f"Cannot launch '{variant.id}' while '{live}' is still active",
                    variant.id,
                )

            popen_kwargs = {
                "cwd": variant.working_dir,
                "stdin": subprocess.DEVNULL,
                "stdout": subprocess.DEVNULL,
                "stderr": subprocess.DEVNULL,
            }
            if os.name == "nt":
                popen_kwargs["creationflags"] = (
                    subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
                )
            else:
                popen_kwargs["start_new_session"] = True

            argv = variant.launch_argv
            resolved = resolve_executable(variant.command, variant.working_dir)
            if resolved is not None:
                argv[0] = resolved

            try:
                process = subprocess.Popen(argv, **popen_kwargs)
            except OSError as e:
                handle_subprocess_error(
                    e, variant.command, severity=ErrorSeverity.ERROR, reraise=False, logger=logger
                )
                raise LaunchFailure(
                    f"Could not spawn {variant.launch_argv[0]}: {e}", variant.id
                ) from e

            handle = LaunchHandle(
                variant_id=variant.id,
                pid=process.pid,
                launched_at_ms=self.clock.monotonic_ms(),
                process=process,
            )
            self._active[variant.id] = handle
            logger.info(f"Launched {variant.name} (PID: {process.pid})")
            return handle

    def terminate(self, variant: AppVariant) -> int:
        """
        Kill every process matching the variant's pattern, plus its children.

        Idempotent: terminating an absent variant is not an error.

        Returns:
            The number of processes signalled.
        """
        with self._lock:
            handle = self._active.pop(variant.id, None)
            pids = set(self.inspector.matching_pids(variant.process_pattern))
            if handle is not None and handle.process is not None and handle.process.poll() is None:
                pids.add(handle.pid)

            killed = 0
            for pid in sorted(pids):
                killed += self._killer(pid)

            if handle is not None and handle.process is not None:
                try:
                    handle.process.wait(timeout=REAP_TIMEOUT_S)
                except subprocess.TimeoutExpired:
                    logger.warning(f"Launcher PID {handle.pid} of {variant.id} did not exit")

            if killed:
                logger.info(f"Terminated {variant.id}: {killed} processes killed")
            else:
                logger.debug(f"Terminate {variant.id}: no matching processes")
            return killed

    def is_running(self, variant: AppVariant) -> bool:
        return self.inspector.find_process(variant.process_pattern)

    def await_presence(self, variant: AppVariant, timeout_ms: float) -> bool:
        """Poll until the variant is found. Returns False on timeout."""
        found = poll_until(
            lambda: self.inspector.find_process(variant.process_pattern),
            timeout_ms,
            self.poll_interval_ms,
            self.clock,
        )
        if not found:
            logger.warning(f"{variant.id} did not appear within {timeout_ms} ms")
        return found

    def await_absence(self, variant: AppVariant, timeout_ms: Optional[float] = None) -> bool:
        """Poll until no process matches the variant. Returns False on timeout."""
        timeout_ms = self.absence_timeout_ms if timeout_ms is None else timeout_ms
        gone = poll_until(
            lambda: not self.inspector.find_process(variant.process_pattern),
            timeout_ms,
            self.poll_interval_ms,
            self.clock,
        )
        if not gone:
            logger.warning(f"{variant.id} still running after {timeout_ms} ms")
        return gone

    def ensure_exclusive(self, variant: AppVariant, kill_existing: bool = False) -> None:
        """
        Check that no instance of the variant is running before benchmarking.

        Args:
            variant: The variant about to be benchmarked
            kill_existing: Terminate pre-existing instances instead of failing

        Raises:
            ProcessIdentityConflict: If a matching process is (still) running
        """
        if not self.is_running(variant):
            return
        if kill_existing:
            logger.warning(f"Found a running instance of {variant.id}; terminating it")
            self.terminate(variant)
            if self.await_absence(variant):
                return
        raise ProcessIdentityConflict(
            f"A process matching '{variant.process_pattern}' is already running; "
            f"close it before benchmarking {variant.id}",
            variant.id,
        )
