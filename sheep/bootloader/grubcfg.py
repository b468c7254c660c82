"""GRUB configuration of the installed system.

The image ships its own grub.cfg. It is located (boot/grub2 is the modern
path, boot/grub the legacy one), the kernel and initrd it boots are extracted,
and it is regenerated with a single menu entry that finds the root filesystem
by label instead of UUID, since the filesystem was just recreated.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import Optional, Tuple

from sheep.domain import ResolvedConfig
from sheep.exceptions import BootConfigError
from sheep.logging import LoggerFactory

log = LoggerFactory.for_bootloader()

MODERN_GRUB_CFG = Path("boot/grub2/grub.cfg")
LEGACY_GRUB_CFG = Path("boot/grub/grub.cfg")
# Legacy path points at the modern one, relative to boot/grub
LEGACY_LINK_TARGET = Path("../grub2/grub.cfg")

KERNEL_PATTERN = re.compile(r"^\s*(?:linux|linux16|linuxefi|kernel)\s+(\S+)", re.MULTILINE)
INITRD_PATTERN = re.compile(r"^\s*(?:initrd|initrd16|initrdefi)\s+(\S+)", re.MULTILINE)

KERNEL_GLOBS = ("vmlinuz-*", "vmlinuz")
INITRD_GLOBS = ("initrd.img-*", "initrd-*", "initramfs-*", "initrd.img", "initrd")

CLOUD_INIT_DISCOVERY = "ds=nocloud"
DEFAULT_TIMEOUT = 5


def _exists(path: Path) -> bool:
    return path.exists() or path.is_symlink()


def locate_grub_config(root: Path) -> Optional[Path]:
    """Return the modern grub.cfg of the installed system, or None.

    When only one of the two locations exists the other is made to resolve to
    the same file: a legacy-only file is copied to the modern path and the
    legacy path becomes a symlink to it; a modern-only file gets a legacy
    symlink.
    """
    modern = Path(root) / MODERN_GRUB_CFG
    legacy = Path(root) / LEGACY_GRUB_CFG
    has_modern = _exists(modern)
    has_legacy = _exists(legacy)

    if has_modern and has_legacy:
        return modern
    if has_legacy:
        log.debug(f"Only {LEGACY_GRUB_CFG} found, moving it to {MODERN_GRUB_CFG}")
        modern.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(legacy, modern)
        legacy.unlink()
        legacy.symlink_to(LEGACY_LINK_TARGET)
        return modern
    if has_modern:
        log.debug(f"Only {MODERN_GRUB_CFG} found, linking {LEGACY_GRUB_CFG}")
        legacy.parent.mkdir(parents=True, exist_ok=True)
        legacy.symlink_to(LEGACY_LINK_TARGET)
        return modern
    return None


def find_boot_files(text: str) -> Tuple[Optional[str], Optional[str]]:
    """Return the first kernel and initrd paths referenced in a grub.cfg."""
    kernel = KERNEL_PATTERN.search(text)
    initrd = INITRD_PATTERN.search(text)
    return (
        kernel.group(1) if kernel else None,
        initrd.group(1) if initrd else None,
    )


def _newest(boot_dir: Path, patterns: Tuple[str, ...]) -> Optional[str]:
    for pattern in patterns:
        matches = sorted(p.name for p in boot_dir.glob(pattern) if not p.is_dir())
        if matches:
            return f"/boot/{matches[-1]}"
    return None


def scan_boot_files(root: Path) -> Tuple[Optional[str], Optional[str]]:
    """Look for a kernel and initrd directly in <root>/boot."""
    boot_dir = Path(root) / "boot"
    if not boot_dir.is_dir():
        return None, None
    return _newest(boot_dir, KERNEL_GLOBS), _newest(boot_dir, INITRD_GLOBS)


def render_grub_config(
    menu_label: str,
    rootfs_label: str,
    kernel: str,
    initrd: str,
    extra_params: str = "",
) -> str:
    parts = (f"root=LABEL={rootfs_label}", extra_params.strip(), CLOUD_INIT_DISCOVERY)
    cmdline = " ".join(part for part in parts if part)
    return (
        "set default=0\n"
        f"set timeout={DEFAULT_TIMEOUT}\n"
        "\n"
        f"menuentry '{menu_label}' {{\n"
        f"    search --no-floppy --label --set=root {rootfs_label}\n"
        f"    linux {kernel} {cmdline}\n"
        f"    initrd {initrd}\n"
        "}\n"
    )


def regenerate_grub_config(root: Path, config: ResolvedConfig) -> Path:
    """Rewrite the installed system's grub.cfg from scratch.

    Returns:
        Path of the written (modern) grub.cfg

    Raises:
        BootConfigError: If no kernel or initrd can be found
    """
    root = Path(root)
    cfg_path = locate_grub_config(root)
    kernel = initrd = None
    if cfg_path is not None:
        kernel, initrd = find_boot_files(cfg_path.read_text(encoding="utf-8", errors="replace"))
    else:
        log.warning("No grub.cfg shipped with the image")

    if kernel is None or initrd is None:
        scanned_kernel, scanned_initrd = scan_boot_files(root)
        kernel = kernel or scanned_kernel
        initrd = initrd or scanned_initrd
    if kernel is None:
        raise BootConfigError("no kernel reference found in grub.cfg or /boot")
    if initrd is None:
        raise BootConfigError("no initrd reference found in grub.cfg or /boot")
    log.info(f"Booting kernel {kernel} with initrd {initrd}")

    if cfg_path is None:
        cfg_path = root / MODERN_GRUB_CFG
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        cfg_path.touch()
        locate_grub_config(root)

    text = render_grub_config(
        config.os_label,
        config.rootfs_label,
        kernel,
        initrd,
        config.kernel_extra_params,
    )
    legacy = root / LEGACY_GRUB_CFG
    for path in (cfg_path, legacy):
        if path is legacy and path.is_symlink():
            continue
        # Never follow links out of the target root
        if path.is_symlink():
            path.unlink()
        path.write_text(text, encoding="utf-8")
    return cfg_path
