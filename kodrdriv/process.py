"""Process runner - executes shell commands and git/npm subprocesses."""

import platform
import subprocess
from dataclasses import dataclass
from pathlib import Path

from kodrdriv.utils.logging import get_subprocess_env, logger

IS_WINDOWS = platform.system() == "Windows"


@dataclass
class ProcessResult:
    """Captured output of a finished command."""

    stdout: str
    stderr: str
    returncode: int = 0


class ProcessError(Exception):
    """Raised when a command exits non-zero. Carries the captured output."""

    def __init__(self, command: str, returncode: int, stdout: str = "", stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        super().__init__(f"Command failed with exit code {returncode}: {command}")


def run(command: str | list[str], cwd: str | Path | None = None) -> ProcessResult:
    """
    Run a command to completion and capture its output.

    A string is handed to the shell (user-supplied --cmd values rely on shell
    syntax such as && and pipes). A list is executed directly with shell=False.

    Args:
        command: Shell command line or argv list
        cwd: Working directory, defaults to the current one

    Returns:
        ProcessResult with decoded stdout/stderr

    Raises:
        ProcessError: If the command exits non-zero
        OSError: If the executable cannot be started
    """
    use_shell = isinstance(command, str)
    display = command if use_shell else " ".join(command)
    logger.debug(f"Executing: {display}" + (f" (cwd={cwd})" if cwd else ""))

    result = subprocess.run(
        command,
        cwd=str(cwd) if cwd else None,
        shell=use_shell,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        env=get_subprocess_env(),
        check=False,
    )

    if result.returncode != 0:
        raise ProcessError(display, result.returncode, result.stdout, result.stderr)

    return ProcessResult(stdout=result.stdout or "", stderr=result.stderr or "", returncode=0)
