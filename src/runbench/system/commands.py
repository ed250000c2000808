"""
Command execution utilities.

This module runs the short-lived OS query commands used by the native
process inspectors, and resolves variant executables for setup checks.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..validation import ErrorSeverity, handle_subprocess_error

logger = logging.getLogger(__name__)


def run_command(
    argv: List[str], cwd: Optional[Path] = None, timeout: Optional[float] = 10.0
) -> Tuple[int, str, str]:
    """Execute a command and capture its output.

    Args:
        argv: Command and arguments. No shell is involved.
        cwd: Working directory for the command.
        timeout: Seconds before the command is abandoned.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 for execution errors.
    """
    logger.debug(f"Executing command: {argv} in '{cwd}'")
    try:
        process = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        handle_subprocess_error(e, argv[0], severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
        return -1, "", f"Error: Command not found '{argv[0]}'"
    except subprocess.TimeoutExpired as e:
        handle_subprocess_error(e, argv[0], severity=ErrorSeverity.WARNING, reraise=False, logger=logger)
        return -1, "", f"Error: Command timed out '{argv[0]}'"
    except OSError as e:
        handle_subprocess_error(e, argv[0], severity=ErrorSeverity.ERROR, reraise=False, logger=logger)
        return -1, "", f"An unexpected error occurred: {e}"


def resolve_executable(command: str, cwd: Optional[Path] = None) -> Optional[str]:
    """Resolve a variant command to an executable path, or None if it cannot be found.

    Absolute and relative paths are checked on disk (relative to `cwd` when
    given); bare names are looked up on PATH.
    """
    candidate = Path(command)
    if candidate.is_absolute() or len(candidate.parts) > 1:
        if not candidate.is_absolute() and cwd is not None:
            candidate = cwd / candidate
        return str(candidate) if candidate.exists() else None
    return shutil.which(command)
