"""Runtime settings of the live environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from sheep.domain import MountLayout

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_WORK_DIR = "/mnt/sheep"
DEFAULT_STAGING_DIR = "/tmp/sheep/staging"
DEFAULT_DOWNLOAD_DIR = "/tmp/sheep/downloads"
DEFAULT_LOG_FILE = "/var/log/sheep.log"
DEFAULT_SUCCESS_MARKER = "/var/lib/sheep/provisioned"
DEFAULT_EFI_FIRMWARE_DIR = "/sys/firmware/efi"
DEFAULT_NET_CLASS_DIR = "/sys/class/net"

# Command line keys
CONFIG_URL_PARAM = "sheep.config"
LOG_LEVEL_PARAM = "sheep.log.level"
DELAY_PARAM = "sheep.delay"


@dataclass(frozen=True)
class RuntimeSettings:
    """Paths used on the live system, overridable through the environment."""

    work_dir: Path
    staging_dir: Path
    download_dir: Path
    log_file: Path
    success_marker: Path
    efi_firmware_dir: Path
    net_class_dir: Path

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> RuntimeSettings:
        environ = os.environ if environ is None else environ
        return cls(
            work_dir=Path(environ.get("SHEEP_WORK_DIR", DEFAULT_WORK_DIR)),
            staging_dir=Path(environ.get("SHEEP_STAGING_DIR", DEFAULT_STAGING_DIR)),
            download_dir=Path(environ.get("SHEEP_DOWNLOAD_DIR", DEFAULT_DOWNLOAD_DIR)),
            log_file=Path(environ.get("SHEEP_LOG_FILE", DEFAULT_LOG_FILE)),
            success_marker=Path(
                environ.get("SHEEP_SUCCESS_MARKER", DEFAULT_SUCCESS_MARKER)
            ),
            efi_firmware_dir=Path(
                environ.get("SHEEP_EFI_DIR", DEFAULT_EFI_FIRMWARE_DIR)
            ),
            net_class_dir=Path(
                environ.get("SHEEP_NET_CLASS_DIR", DEFAULT_NET_CLASS_DIR)
            ),
        )

    @property
    def mount_layout(self) -> MountLayout:
        return MountLayout(
            rootfs_mount=self.work_dir / "rootfs",
            cloud_data_mount=self.work_dir / "cidata",
        )
