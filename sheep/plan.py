"""Provisioning plan builder.

Resolves every parameter of a run from the declarative document, probes the
firmware for the boot mode and validates the result. Nothing here touches the
disk: every configuration error surfaces before the partition table is wiped.
"""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Callable, Optional, Tuple

from sheep.config.resolver import ParameterResolver
from sheep.domain import (
    BootMode,
    CloudInitPayload,
    InterfaceMode,
    InterfaceSpec,
    PartitionPlan,
    PartitionSpec,
    PassthroughSeed,
    ResolvedConfig,
    RootfsType,
    SelinuxPolicy,
    StructuredSeed,
    UserSpec,
)
from sheep.exceptions import InvalidParameterError
from sheep.logging import LoggerFactory

log = LoggerFactory.for_plan()

ROOTFS_LABEL_PATTERN = re.compile(r"^[0-9A-Za-z_-]+$")
ROOTFS_LABEL_MAX_LENGTH = 12

DEFAULT_ROOTFS_TYPE = RootfsType.EXT4.value
DEFAULT_ROOTFS_LABEL = "rootfs"
DEFAULT_SELINUX = SelinuxPolicy.DISABLE.value
DEFAULT_PXE_PROFILE = "local"

EFI_PARTITION_SIZE = "+500M"
BIOS_BOOT_PARTITION_SIZE = "+2M"
CIDATA_PARTITION_SIZE = "+100M"

EFI_TYPE_CODE = "ef00"
BIOS_BOOT_TYPE_CODE = "ef02"
BASIC_DATA_TYPE_CODE = "0700"
LINUX_FS_TYPE_CODE = "8300"

EFI_LABEL = "EFI"
CIDATA_LABEL = "cidata"


# ==============================================================================
# Validation helpers
# ==============================================================================


def detect_boot_mode(efi_firmware_dir: Path) -> BootMode:
    """UEFI when the running kernel exposes EFI firmware variables."""
    if Path(efi_firmware_dir).exists():
        return BootMode.UEFI
    return BootMode.LEGACY


def is_valid_rootfs_label(label: str) -> bool:
    return (
        isinstance(label, str)
        and len(label) <= ROOTFS_LABEL_MAX_LENGTH
        and bool(ROOTFS_LABEL_PATTERN.match(label))
    )


def validate_rootfs_label(label: str) -> str:
    if not is_valid_rootfs_label(label):
        raise InvalidParameterError(
            "linux.rootfsLabel",
            label,
            f"must be 1-{ROOTFS_LABEL_MAX_LENGTH} characters of [0-9A-Za-z_-]",
        )
    return label


def _enum_value(enum_type, key: str, value: str, exact: bool = False):
    candidate = value if exact else str(value).strip().lower()
    try:
        return enum_type(candidate)
    except ValueError as error:
        allowed = ", ".join(member.value for member in enum_type)
        raise InvalidParameterError(key, value, f"expected one of: {allowed}") from error


# ==============================================================================
# cloud-init payload
# ==============================================================================


def resolve_passthrough_seed(resolver: ParameterResolver) -> PassthroughSeed:
    for key in ("cloudInit.metaData", "cloudInit.userData"):
        resolver.resolve_mandatory(key, f"'{key}' must be provided when cloudInit.enable is true")
    return PassthroughSeed(
        meta_data=resolver.resolve_yaml("cloudInit.metaData"),
        user_data=resolver.resolve_yaml("cloudInit.userData"),
        network_config=resolver.resolve_yaml("cloudInit.networkConfig", ""),
    )


def resolve_users(resolver: ParameterResolver) -> Tuple[UserSpec, ...]:
    users = []
    for index in resolver.iter_indexed("environment.users"):
        prefix = f"environment.users[{index}]"
        users.append(
            UserSpec(
                name=str(resolver.resolve_mandatory(f"{prefix}.name")),
                ssh_key=resolver.resolve_str(f"{prefix}.sshKey", ""),
                sudoer=resolver.resolve_bool(f"{prefix}.sudoer", False),
                shell=resolver.resolve_str(f"{prefix}.shell"),
                password=str(resolver.resolve_mandatory(f"{prefix}.password")),
            )
        )
    return tuple(users)


def resolve_interfaces(resolver: ParameterResolver) -> Tuple[InterfaceSpec, ...]:
    interfaces = []
    for index in resolver.iter_indexed("network.interfaces"):
        prefix = f"network.interfaces[{index}]"
        name = str(resolver.resolve_mandatory(f"{prefix}.name"))
        mode = _enum_value(
            InterfaceMode, f"{prefix}.mode", resolver.resolve_mandatory(f"{prefix}.mode"), exact=True
        )
        address = gateway = None
        if mode is InterfaceMode.STATIC:
            address = str(
                resolver.resolve_mandatory(
                    f"{prefix}.address", f"'{prefix}.address' is mandatory in static mode"
                )
            )
            gateway = resolver.resolve_str(f"{prefix}.gateway")
        interfaces.append(InterfaceSpec(name=name, mode=mode, address=address, gateway=gateway))
    return tuple(interfaces)


def resolve_structured_seed(
    resolver: ParameterResolver, clock: Callable[[], float] = time.time
) -> StructuredSeed:
    return StructuredSeed(
        instance_id=resolver.resolve_str(
            "environment.instanceId", f"iid-{int(clock())}"
        ),
        hostname=resolver.resolve_str("environment.hostname"),
        users=resolve_users(resolver),
        interfaces=resolve_interfaces(resolver),
    )


# ==============================================================================
# Plan
# ==============================================================================


def build_config(
    resolver: ParameterResolver,
    efi_firmware_dir: Path,
    clock: Callable[[], float] = time.time,
) -> ResolvedConfig:
    """Resolve and validate the configuration of a run.

    Raises:
        MissingParameterError: If a mandatory value is absent
        InvalidParameterError: If a value is not supported
    """
    boot_mode = detect_boot_mode(efi_firmware_dir)
    log.info(f"Firmware boot mode: {boot_mode.value}")

    os_label = str(resolver.resolve_mandatory("linux.label", "'linux.label' must be provided"))
    root_image_url = str(resolver.resolve_mandatory("linux.image", "'linux.image' must be provided"))
    block_device = str(resolver.resolve_mandatory("linux.device", "'linux.device' must be provided"))

    rootfs_type = _enum_value(
        RootfsType, "linux.rootfsType", resolver.resolve("linux.rootfsType", DEFAULT_ROOTFS_TYPE)
    )
    rootfs_label = validate_rootfs_label(
        str(resolver.resolve("linux.rootfsLabel", DEFAULT_ROOTFS_LABEL))
    )
    selinux_policy = _enum_value(
        SelinuxPolicy, "linux.selinux", resolver.resolve("linux.selinux", DEFAULT_SELINUX)
    )

    bootloader_image_url: Optional[str] = None
    if boot_mode is BootMode.UEFI:
        bootloader_image_url = str(
            resolver.resolve_mandatory(
                "bootloader.image", "'bootloader.image' must be provided for UEFI boot"
            )
        )

    pxe_notify_enabled = resolver.resolve_bool("pxePilot.enable", False)
    pxe_notify_base_url = None
    if pxe_notify_enabled:
        pxe_notify_base_url = str(
            resolver.resolve_mandatory(
                "pxePilot.url", "'pxePilot.url' must be provided when pxePilot.enable is true"
            )
        )

    cloud_init_enabled = resolver.resolve_bool("cloudInit.enable", False)
    payload: CloudInitPayload
    if cloud_init_enabled:
        payload = resolve_passthrough_seed(resolver)
    else:
        payload = resolve_structured_seed(resolver, clock)

    config = ResolvedConfig(
        os_label=os_label,
        boot_mode=boot_mode,
        rootfs_type=rootfs_type,
        rootfs_label=rootfs_label,
        block_device=block_device,
        root_image_url=root_image_url,
        bootloader_image_url=bootloader_image_url,
        kernel_extra_params=resolver.resolve_str("bootloader.kernel_parameter", ""),
        selinux_policy=selinux_policy,
        cloud_init_enabled=cloud_init_enabled,
        cloud_init_payload=payload,
        pxe_notify_enabled=pxe_notify_enabled,
        pxe_notify_base_url=pxe_notify_base_url,
        pxe_notify_profile=resolver.resolve_str("pxePilot.config_after_reboot", DEFAULT_PXE_PROFILE),
        reboot_on_completion=resolver.resolve_bool("sheep.reboot", True),
        blacklisted_modules=tuple(
            str(module) for module in resolver.resolve_list("linux.blacklist_module")
        ),
    )
    log.info(
        f"Plan: {config.os_label} on {config.block_device} "
        f"({config.rootfs_type.value}, label {config.rootfs_label}, {boot_mode.value})"
    )
    return config


def build_partition_plan(config: ResolvedConfig) -> PartitionPlan:
    """Boot partition (ESP or BIOS boot), CIDATA, then root on the remaining space."""
    if config.is_uefi:
        boot = PartitionSpec(
            index=1,
            size=EFI_PARTITION_SIZE,
            type_code=EFI_TYPE_CODE,
            name=EFI_LABEL,
            filesystem="vfat",
            label=EFI_LABEL,
        )
    else:
        boot = PartitionSpec(
            index=1,
            size=BIOS_BOOT_PARTITION_SIZE,
            type_code=BIOS_BOOT_TYPE_CODE,
            name="BIOS",
        )
    cidata = PartitionSpec(
        index=2,
        size=CIDATA_PARTITION_SIZE,
        type_code=BASIC_DATA_TYPE_CODE,
        name=CIDATA_LABEL,
        filesystem="vfat",
        label=CIDATA_LABEL,
    )
    root = PartitionSpec(
        index=3,
        size=None,
        type_code=LINUX_FS_TYPE_CODE,
        name=config.rootfs_label,
        filesystem=config.rootfs_type.value,
        label=config.rootfs_label,
    )
    return PartitionPlan(
        device=config.block_device,
        boot_mode=config.boot_mode,
        partitions=(boot, cidata, root),
    )

