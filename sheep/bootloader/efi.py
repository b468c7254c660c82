"""UEFI bootloader installation.

Steps:
    1. download the shim/GRUB archive and extract it under EFI/<vendor>
    2. write EFI/<vendor>/grub.cfg deferring to the system's own grub.cfg
    3. purge firmware boot entries that point at a local disk
    4. register a new firmware entry for the shim loader
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from sheep.domain import BootloaderProfile, MountLayout, PartitionPlan, ResolvedConfig
from sheep.download import fetch
from sheep.image.installer import extract_archive
from sheep.logging import LoggerFactory
from sheep.storage.commands import run_command

log = LoggerFactory.for_bootloader()

BOOT_ENTRY_PATTERN = re.compile(r"^Boot([0-9A-Fa-f]{4})\*?\s+(.*)$")
LOCAL_DISK_MARKER = "HD("


def render_efi_grub_config(rootfs_label: str, system_cfg: str) -> str:
    """Stub config loaded by the shim: find the root filesystem and chain to its grub.cfg."""
    return (
        f"search --no-floppy --label --set=root {rootfs_label}\n"
        f"configfile ($root)/{system_cfg}\n"
    )


def stale_boot_entries(efibootmgr_output: str) -> List[str]:
    """Return boot numbers of entries whose device path is a local disk."""
    entries = []
    for line in efibootmgr_output.splitlines():
        match = BOOT_ENTRY_PATTERN.match(line.strip())
        if match and LOCAL_DISK_MARKER in match.group(2):
            entries.append(match.group(1))
    return entries


def purge_stale_boot_entries() -> List[str]:
    output = run_command(["efibootmgr", "-v"]).stdout or ""
    removed = stale_boot_entries(output)
    for boot_num in removed:
        log.info(f"Removing stale firmware boot entry Boot{boot_num}")
        run_command(["efibootmgr", "-b", boot_num, "-B"])
    return removed


def register_boot_entry(config: ResolvedConfig, plan: PartitionPlan, profile: BootloaderProfile) -> None:
    log.info(f"Registering firmware boot entry '{config.os_label}' -> {profile.loader_path}")
    run_command(
        [
            "efibootmgr",
            "-c",
            "-d",
            plan.device,
            "-p",
            str(plan.boot.index),
            "-L",
            config.os_label,
            "-l",
            profile.loader_path,
        ]
    )


def install_efi_bootloader(
    config: ResolvedConfig,
    plan: PartitionPlan,
    layout: MountLayout,
    profile: BootloaderProfile,
    download_dir: Path,
    system_cfg: str,
) -> Path:
    """Install the shim bootloader on the mounted ESP and register it.

    Args:
        system_cfg: Path of the system grub.cfg relative to the root filesystem

    Returns:
        Path of the vendor directory on the ESP
    """
    vendor_dir = layout.efi_mount / profile.efi_directory
    vendor_dir.mkdir(parents=True, exist_ok=True)

    archive = fetch(config.bootloader_image_url, Path(download_dir) / "bootloader.img")
    try:
        extract_archive(archive, vendor_dir)
    finally:
        archive.unlink(missing_ok=True)

    (vendor_dir / "grub.cfg").write_text(
        render_efi_grub_config(config.rootfs_label, system_cfg), encoding="utf-8"
    )

    purge_stale_boot_entries()
    register_boot_entry(config, plan, profile)
    return vendor_dir
