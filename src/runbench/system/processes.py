"""
Process matching utilities.

A variant is identified by a regex searched in the process name and in the
full command line. Zombies and the harness process itself never match.
"""

import logging
import os
import re
from typing import List, Optional, Sequence

import psutil

logger = logging.getLogger(__name__)

_ITER_ATTRS = ["pid", "name", "cmdline", "status"]


def compile_pattern(pattern: str) -> re.Pattern:
    """
    Compile a process-match pattern.

    Raises:
        ValueError: If the pattern is not a valid regular expression
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.error(f"Invalid process pattern: '{pattern}'. Error: {e}")
        raise ValueError(f"Invalid regular expression pattern: {pattern}") from e


def matches_process(compiled: re.Pattern, name: Optional[str], cmdline: Optional[Sequence[str]]) -> bool:
    """Return True if `compiled` is found in the process name or command line."""
    proc_name = name or ""
    cmdline_str = " ".join(cmdline or [])
    return bool(
        compiled.search(proc_name)
        or (cmdline_str and compiled.search(cmdline_str))
    )


def iter_matching_processes(pattern: str) -> List[psutil.Process]:
    """
    List live processes whose name or command line matches `pattern`.

    Processes that vanish or deny access during enumeration are skipped.
    """
    compiled = compile_pattern(pattern)
    own_pid = os.getpid()
    matched: List[psutil.Process] = []

    for proc in psutil.process_iter(_ITER_ATTRS):
        try:
            info = proc.info
            if info["pid"] == own_pid:
                continue
            if info.get("status") in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD):
                continue
            if matches_process(compiled, info.get("name"), info.get("cmdline")):
                matched.append(proc)
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue

    logger.debug(f"Pattern '{pattern}' matched {len(matched)} processes")
    return matched
