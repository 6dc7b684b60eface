"""
This module provides the wrapper used to run every external tool invocation.
"""

import os
import shlex
import subprocess
from typing import List, Optional

from loguru import logger


def format_cmd(cmd_list: List[str]) -> str:
    """Returns a copy-pasteable representation of a command for logs."""
    if os.name == "nt":
        return subprocess.list2cmdline(cmd_list)
    return shlex.join(cmd_list)


def run_cmd(cmd_list: List[str], show_cmd: bool = True) -> Optional[subprocess.CompletedProcess]:
    """
    Executes an external command and captures its output.

    This is a wrapper around Python's `subprocess.run` that adds logging. The
    command is always given as a list of arguments and never run through a shell,
    so file names with spaces or quotes need no escaping. The call blocks until
    the tool exits; there is no timeout, since the tools are trusted local
    binaries that can legitimately run for a long time on large files.

    Args:
        cmd_list: The command to execute, as a list of strings.
        show_cmd: If True, the command line is logged at the DEBUG level before execution.

    Returns:
        A `subprocess.CompletedProcess` with the return code, stdout and stderr.
        Returns `None` if the command could not be started (e.g. the executable
        does not exist).
    """
    if not cmd_list:
        logger.error("run_cmd received an empty command list.")
        return None

    display_cmd_str = format_cmd(cmd_list)
    if show_cmd:
        logger.debug(f"Executing: {display_cmd_str}")

    try:
        result = subprocess.run(
            cmd_list,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            shell=False,
        )
    except FileNotFoundError:
        logger.error(f"Command not found: '{cmd_list[0]}'.")
        return None
    except OSError as e:
        logger.error(f"Could not execute '{display_cmd_str}': {e}")
        return None

    if result.stdout and len(result.stdout) > 500:
        logger.trace(f"Command stdout (truncated): {result.stdout[:500]}...")
    elif result.stdout:
        logger.trace(f"Command stdout: {result.stdout}")

    if result.stderr and result.returncode != 0:
        logger.debug(f"Command stderr (error, rc={result.returncode}): {result.stderr}")
    elif result.stderr:
        logger.trace(f"Command stderr (non-error, rc={result.returncode}): {result.stderr}")

    return result
