"""BIOS (legacy) bootloader installation.

GRUB is written to the disk's boot code area and the BIOS boot partition,
with its modules placed under the mounted root's /boot.
"""

from __future__ import annotations

from pathlib import Path

from sheep.logging import LoggerFactory
from sheep.storage.commands import find_tool, run_command

log = LoggerFactory.for_bootloader()

GRUB_INSTALL_CANDIDATES = ("grub-install", "grub2-install")


def install_legacy_bootloader(device: str, root: Path) -> str:
    """Install GRUB for i386-pc on `device`.

    Returns:
        The installer that was used

    Raises:
        MissingToolError: If neither grub-install nor grub2-install exists
        CommandError: If the installer fails
    """
    tool = find_tool(*GRUB_INSTALL_CANDIDATES)
    log.info(f"Installing GRUB on {device} with {tool}")
    run_command(
        [
            tool,
            "--target=i386-pc",
            f"--boot-directory={Path(root) / 'boot'}",
            device,
        ]
    )
    return tool
