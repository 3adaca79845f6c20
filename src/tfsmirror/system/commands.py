"""
Command execution utilities.

This module provides a helper for running short-lived commands (such as git
queries) and capturing their output.
"""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union


logger = logging.getLogger(__name__)


def run_command(
    command: Union[str, Sequence[str]],
    cwd: Optional[Path] = None,
    shell: bool = False,
    timeout: Optional[float] = 30.0,
) -> Tuple[int, str, str]:
    """Execute a command and capture its output with robust error handling.

    Args:
        command: The command string or argument list to execute.
        cwd: Working directory for command execution (default: current).
        shell: Whether to use the shell for execution (default: False).
        timeout: Seconds to wait before giving up (default: 30).

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 for execution errors.

    Note:
        Uses UTF-8 encoding with error replacement for robust text handling.
    """
    if isinstance(command, str) and not shell:
        args: Union[str, Sequence[str]] = shlex.split(command)
    else:
        args = command
    program = args if isinstance(args, str) else (args[0] if args else "")

    logger.debug(f"Executing command: '{command}' in '{cwd or Path.cwd()}'")
    try:
        process = subprocess.run(
            args,
            cwd=cwd,
            shell=shell,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        logger.error(f"Command not found: {program}: {type(e).__name__}: {e}")
        return -1, "", f"Error: Command not found '{program}'"
    except subprocess.TimeoutExpired:
        logger.warning(f"Command '{command}' timed out after {timeout}s")
        return -1, "", f"Error: Command timed out after {timeout}s"
    except OSError as e:
        logger.error(f"Unexpected error while running command '{command}': {type(e).__name__}: {e}", exc_info=True)
        return -1, "", f"An unexpected error occurred: {e}"
