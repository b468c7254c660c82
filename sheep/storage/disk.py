"""Target disk lifecycle.

A run drives exactly one block device through a fixed sequence of states:

    UNPARTITIONED -> PARTITIONED -> FORMATTED -> MOUNTED -> UNMOUNTED

Each transition requires the previous state. There is no way back and no
rollback: a failure leaves the disk as it is, since it is being wiped anyway.
"""

from __future__ import annotations

from enum import Enum

from sheep.domain import BootMode, MountLayout, PartitionPlan
from sheep.exceptions import DiskStateError
from sheep.logging import LoggerFactory
from sheep.storage import format as fs_format
from sheep.storage import mount as fs_mount
from sheep.storage import partition as fs_partition

log = LoggerFactory.for_disk()


class DiskState(Enum):
    UNPARTITIONED = "unpartitioned"
    PARTITIONED = "partitioned"
    FORMATTED = "formatted"
    MOUNTED = "mounted"
    UNMOUNTED = "unmounted"


class TargetDisk:
    """The block device being provisioned, with its plan and mount layout."""

    def __init__(self, plan: PartitionPlan, layout: MountLayout):
        self.plan = plan
        self.layout = layout
        self.state = DiskState.UNPARTITIONED

    @property
    def device(self) -> str:
        return self.plan.device

    def _require(self, expected: DiskState) -> None:
        if self.state is not expected:
            raise DiskStateError(expected.value, self.state.value)

    def _advance(self, new_state: DiskState) -> None:
        log.debug(f"{self.device}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def partition(self) -> None:
        self._require(DiskState.UNPARTITIONED)
        fs_partition.apply_partition_plan(self.plan)
        self._advance(DiskState.PARTITIONED)

    def format(self) -> None:
        self._require(DiskState.PARTITIONED)
        fs_format.format_partitions(self.plan)
        self._advance(DiskState.FORMATTED)

    def mount(self) -> None:
        """Mount root, the ESP below it under UEFI, and CIDATA separately."""
        self._require(DiskState.FORMATTED)
        plan = self.plan
        root = fs_mount.fresh_directory(self.layout.rootfs_mount)
        fs_mount.mount_partition(plan.partition_path(plan.root), root)
        if plan.boot_mode is BootMode.UEFI:
            self.layout.efi_mount.mkdir(parents=True, exist_ok=True)
            fs_mount.mount_partition(plan.partition_path(plan.boot), self.layout.efi_mount)
        cidata = fs_mount.fresh_directory(self.layout.cloud_data_mount)
        fs_mount.mount_partition(plan.partition_path(plan.cidata), cidata)
        self._advance(DiskState.MOUNTED)

    def unmount(self) -> None:
        self._require(DiskState.MOUNTED)
        fs_mount.unmount(self.layout.rootfs_mount, recursive=True)
        fs_mount.unmount(self.layout.cloud_data_mount)
        self._advance(DiskState.UNMOUNTED)
