"""Domain model for provisioning runs.

Immutable records produced once per run by the plan builder and consumed by
the pipeline steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union


# ==============================================================================
# Enumerations
# ==============================================================================


class BootMode(Enum):
    """Firmware boot mode of the machine being provisioned."""

    UEFI = "uefi"
    LEGACY = "legacy"


class RootfsType(Enum):
    """Supported root filesystems."""

    EXT4 = "ext4"
    BTRFS = "btrfs"


class SelinuxPolicy(Enum):
    ENABLE = "enable"
    DISABLE = "disable"


class InterfaceMode(Enum):
    DHCP = "dhcp"
    STATIC = "static"


class ImageFormat(Enum):
    """Container format of a downloaded image, detected from its content."""

    XZ_TAR = "xz-tar"
    GZ_TAR = "gz-tar"
    SQUASHFS = "squashfs"
    QCOW2 = "qcow2"
    UNRECOGNIZED = "unrecognized"


# ==============================================================================
# Cloud-init payload
# ==============================================================================


@dataclass(frozen=True)
class UserSpec:
    """A user declared in the structured environment section."""

    name: str
    password: str
    ssh_key: str = ""
    sudoer: bool = False
    shell: Optional[str] = None


@dataclass(frozen=True)
class InterfaceSpec:
    """A network interface declared in the structured network section."""

    name: str
    mode: InterfaceMode
    address: Optional[str] = None
    gateway: Optional[str] = None


@dataclass(frozen=True)
class PassthroughSeed:
    """Seed files copied verbatim from the declarative document."""

    meta_data: str
    user_data: str
    network_config: str = ""


@dataclass(frozen=True)
class StructuredSeed:
    """Seed files synthesized field by field (legacy compatibility mode)."""

    instance_id: str
    hostname: Optional[str] = None
    users: Tuple[UserSpec, ...] = ()
    interfaces: Tuple[InterfaceSpec, ...] = ()


CloudInitPayload = Union[PassthroughSeed, StructuredSeed]


# ==============================================================================
# Resolved configuration
# ==============================================================================


@dataclass(frozen=True)
class ResolvedConfig:
    """Configuration of one provisioning run.

    `boot_mode` is always computed from firmware probing, never configured.
    """

    os_label: str
    boot_mode: BootMode
    rootfs_type: RootfsType
    rootfs_label: str
    block_device: str
    root_image_url: str
    bootloader_image_url: Optional[str]
    kernel_extra_params: str
    selinux_policy: SelinuxPolicy
    cloud_init_enabled: bool
    cloud_init_payload: CloudInitPayload
    pxe_notify_enabled: bool
    pxe_notify_base_url: Optional[str]
    pxe_notify_profile: str
    reboot_on_completion: bool
    blacklisted_modules: Tuple[str, ...] = ()

    @property
    def is_uefi(self) -> bool:
        return self.boot_mode is BootMode.UEFI


# ==============================================================================
# Partition plan and mount layout
# ==============================================================================


@dataclass(frozen=True)
class PartitionSpec:
    """One entry of the partition plan.

    `size` is a GPT end specifier relative to the start (e.g. "+500M"), or None
    for the remainder of the disk. `filesystem` is None for raw partitions.
    """

    index: int
    size: Optional[str]
    type_code: str
    name: str
    filesystem: Optional[str] = None
    label: Optional[str] = None

    @property
    def takes_remainder(self) -> bool:
        return self.size is None


@dataclass(frozen=True)
class PartitionPlan:
    """Ordered partitions of the target disk: boot, CIDATA, root."""

    device: str
    boot_mode: BootMode
    partitions: Tuple[PartitionSpec, ...] = field(default_factory=tuple)

    @property
    def boot(self) -> PartitionSpec:
        return self.partitions[0]

    @property
    def cidata(self) -> PartitionSpec:
        return self.partitions[1]

    @property
    def root(self) -> PartitionSpec:
        return self.partitions[2]

    def partition_path(self, spec: PartitionSpec) -> str:
        """Device node of a partition (nvme/mmcblk devices use a p separator)."""
        separator = "p" if self.device[-1].isdigit() else ""
        return f"{self.device}{separator}{spec.index}"


@dataclass(frozen=True)
class MountLayout:
    """Mount points used while provisioning the target disk."""

    rootfs_mount: Path
    cloud_data_mount: Path

    @property
    def efi_mount(self) -> Path:
        return self.rootfs_mount / "boot" / "efi"


# ==============================================================================
# Bootloader profile
# ==============================================================================


@dataclass(frozen=True)
class BootloaderProfile:
    """Vendor layout of a UEFI shim bootloader archive.

    Shim binaries embed the path of their second stage, so the archive has to
    be laid out under the vendor directory it was built for.
    """

    name: str
    vendor_dir: str
    loader_path: str

    @property
    def efi_directory(self) -> str:
        return f"EFI/{self.vendor_dir}"
