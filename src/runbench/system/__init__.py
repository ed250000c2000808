"""
System interaction for the runbench package.

This module groups the OS-facing pieces: process matching, process
inspectors, and the command runner used by native OS queries.
"""

from .commands import resolve_executable, run_command
from .inspectors import (
    ProcessInspector,
    PsCommandInspector,
    PsutilInspector,
    TasklistInspector,
    create_inspector,
)
from .processes import compile_pattern, iter_matching_processes, matches_process

__all__ = [
    "ProcessInspector",
    "PsCommandInspector",
    "PsutilInspector",
    "TasklistInspector",
    "create_inspector",
    "compile_pattern",
    "iter_matching_processes",
    "matches_process",
    "resolve_executable",
    "run_command",
]
