"""Bootloader installation and boot menu generation."""

from __future__ import annotations

from pathlib import Path

from sheep.bootloader.efi import install_efi_bootloader
from sheep.bootloader.grubcfg import regenerate_grub_config
from sheep.bootloader.legacy import install_legacy_bootloader
from sheep.bootloader.profiles import DEFAULT_PROFILE
from sheep.domain import BootloaderProfile, MountLayout, PartitionPlan, ResolvedConfig


def configure_bootloader(
    config: ResolvedConfig,
    plan: PartitionPlan,
    layout: MountLayout,
    download_dir: Path,
    profile: BootloaderProfile = DEFAULT_PROFILE,
) -> Path:
    """Install the bootloader for the boot mode and regenerate grub.cfg.

    Returns:
        Path of the regenerated system grub.cfg
    """
    root = layout.rootfs_mount
    if config.is_uefi:
        cfg_path = regenerate_grub_config(root, config)
        install_efi_bootloader(
            config,
            plan,
            layout,
            profile,
            download_dir,
            cfg_path.relative_to(root).as_posix(),
        )
    else:
        install_legacy_bootloader(plan.device, root)
        cfg_path = regenerate_grub_config(root, config)
    return cfg_path


__all__ = ["configure_bootloader"]
