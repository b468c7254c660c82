"""GPT partitioning of the target disk.

The partition plan is applied with non-interactive sgdisk invocations:

    1. zap any existing GPT/MBR structures
    2. write a fresh, empty GPT
    3. create each planned partition with its type code and name

This is irreversible: every byte of partition metadata on the device is lost.
"""

from __future__ import annotations

from typing import List

from sheep.domain import PartitionPlan, PartitionSpec
from sheep.logging import LoggerFactory
from sheep.storage.commands import run_command, settle

log = LoggerFactory.for_disk()


def partition_arguments(spec: PartitionSpec) -> List[str]:
    """sgdisk arguments creating one partition from the plan."""
    end = "0" if spec.takes_remainder else spec.size
    return [
        f"--new={spec.index}:0:{end}",
        f"--typecode={spec.index}:{spec.type_code}",
        f"--change-name={spec.index}:{spec.name}",
    ]


def wipe_partition_table(device: str) -> None:
    log.warning(f"Destroying partition table on {device}")
    run_command(["sgdisk", "--zap-all", device])
    run_command(["sgdisk", "--clear", device])


def apply_partition_plan(plan: PartitionPlan) -> None:
    """Wipe the device and create the planned partitions.

    Raises:
        CommandError: If sgdisk fails
    """
    wipe_partition_table(plan.device)
    for spec in plan.partitions:
        log.info(
            f"Creating partition {spec.index} ({spec.name}, "
            f"{'remaining space' if spec.takes_remainder else spec.size}, "
            f"type {spec.type_code}) on {plan.device}"
        )
        run_command(["sgdisk", *partition_arguments(spec), plan.device])
    settle(plan.device)
