"""Command execution helpers for external disk and boot tooling."""

from __future__ import annotations

import shutil
import subprocess
from typing import Optional, Sequence

from sheep.exceptions import CommandError, MissingToolError
from sheep.logging import LoggerFactory

log = LoggerFactory.for_system()


def run_command(
    command: Sequence[str],
    check: bool = True,
    input_text: Optional[str] = None,
    log_output: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command and capture its output.

    Args:
        command: Argument list (never passed through a shell)
        check: Raise CommandError on a non-zero exit status
        input_text: Optional text fed to stdin
        log_output: Log stdout/stderr at DEBUG level

    Raises:
        CommandError: If check is True and the command fails
        MissingToolError: If the executable does not exist
    """
    command = [str(part) for part in command]
    log.debug(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(
            command, input=input_text, text=True, capture_output=True
        )
    except FileNotFoundError as error:
        raise MissingToolError([command[0]]) from error
    if result.stdout and (log_output or result.returncode != 0):
        log.debug(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        log.debug(f"stderr: {result.stderr.strip()}")
    if check and result.returncode != 0:
        stderr = (result.stderr or result.stdout or "").strip()
        raise CommandError(command, result.returncode, stderr)
    log.debug(f"Command completed with return code {result.returncode}")
    return result


def find_tool(*candidates: str) -> str:
    """Return the first candidate executable found on PATH.

    Raises:
        MissingToolError: If none of the candidates is installed
    """
    for candidate in candidates:
        if shutil.which(candidate):
            return candidate
    raise MissingToolError(candidates)


def settle(device: str) -> None:
    """Best-effort wait for the kernel and udev to see partition changes."""
    for command in (["sync"], ["partprobe", device], ["udevadm", "settle", "--timeout=10"]):
        if not shutil.which(command[0]):
            log.debug(f"Skipping {command[0]}: command not found")
            continue
        result = run_command(command, check=False, log_output=False)
        if result.returncode != 0:
            log.debug(f"Best-effort command failed ({command[0]}): rc={result.returncode}")
