"""Filesystem creation on the planned partitions.

Supported Filesystems:
    vfat:   FAT32, used for the EFI system partition and CIDATA
    ext4:   root filesystem, forced so existing signatures never prompt
    btrfs:  root filesystem, forced

A partition planned without a filesystem (the BIOS boot partition) is left
raw; the bootloader installer writes its core image there later.
"""

from __future__ import annotations

from typing import List, Optional

from sheep.domain import PartitionPlan, PartitionSpec
from sheep.exceptions import InvalidParameterError
from sheep.logging import LoggerFactory
from sheep.storage.commands import run_command

log = LoggerFactory.for_disk()


def mkfs_command(filesystem: str, partition_path: str, label: Optional[str]) -> List[str]:
    """Build the mkfs command for a filesystem type.

    Raises:
        InvalidParameterError: If the filesystem type is not supported
    """
    filesystem = filesystem.lower()
    if filesystem == "vfat":
        command = ["mkfs.vfat", "-F", "32"]
        if label:
            command.extend(["-n", label])
    elif filesystem == "ext4":
        command = ["mkfs.ext4", "-q", "-F"]
        if label:
            command.extend(["-L", label])
    elif filesystem == "btrfs":
        command = ["mkfs.btrfs", "-f"]
        if label:
            command.extend(["-L", label])
    else:
        raise InvalidParameterError("filesystem", filesystem, "unsupported filesystem")
    command.append(partition_path)
    return command


def format_partition(plan: PartitionPlan, spec: PartitionSpec) -> bool:
    """Format one partition. Returns False when it is intentionally left raw."""
    partition_path = plan.partition_path(spec)
    if spec.filesystem is None:
        log.debug(f"Leaving {partition_path} ({spec.name}) unformatted")
        return False
    log.info(f"Formatting {partition_path} as {spec.filesystem} (label {spec.label})")
    run_command(mkfs_command(spec.filesystem, partition_path, spec.label))
    return True


def format_partitions(plan: PartitionPlan) -> List[str]:
    """Format every planned partition and return the formatted device nodes."""
    formatted = []
    for spec in plan.partitions:
        if format_partition(plan, spec):
            formatted.append(plan.partition_path(spec))
    return formatted
