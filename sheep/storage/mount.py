"""Mount point management for the target disk.

Mount directories are recreated on every run: leftovers from a previous,
interrupted run are unmounted and their contents removed before use.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Sequence

from sheep.exceptions import CommandError, MountError
from sheep.logging import LoggerFactory
from sheep.storage.commands import run_command

log = LoggerFactory.for_disk()


def _validate_device_path(device_path: str) -> None:
    if not isinstance(device_path, str) or not device_path.startswith("/dev/"):
        raise MountError(str(device_path), "device path must start with /dev/")
    if any(char in device_path for char in [";", "&", "|", "$", "`", "\n", "\r", " "]):
        raise MountError(device_path, "device path contains invalid characters")


def fresh_directory(path: Path) -> Path:
    """Return `path` as an empty directory, unmounting stale mounts first."""
    path = Path(path)
    if os.path.ismount(path):
        log.warning(f"{path} is still mounted from a previous run, unmounting")
        unmount(path, recursive=True)
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
    return path


def mount_partition(
    partition: str,
    target: Path,
    options: Sequence[str] = (),
) -> None:
    """Mount a partition on an existing directory.

    Raises:
        MountError: If the device path is invalid or mount fails
    """
    _validate_device_path(partition)
    target = Path(target)
    target.mkdir(parents=True, exist_ok=True)
    command = ["mount"]
    if options:
        command.extend(["-o", ",".join(options)])
    command.extend([partition, str(target)])
    try:
        run_command(command)
    except CommandError as e:
        raise MountError(str(target), f"cannot mount {partition}: {e.stderr}") from e
    log.info(f"Mounted {partition} on {target}")


def unmount(target: Path, recursive: bool = False) -> None:
    """Unmount a mount point, optionally with everything mounted below it.

    Raises:
        MountError: If umount fails
    """
    command = ["umount"]
    if recursive:
        command.append("-R")
    command.append(str(target))
    try:
        run_command(command)
    except CommandError as e:
        raise MountError(str(target), f"cannot unmount: {e.stderr}") from e
    log.info(f"Unmounted {target}")
