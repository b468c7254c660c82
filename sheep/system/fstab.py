"""Label based /etc/fstab for the installed system."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from sheep.domain import PartitionPlan, ResolvedConfig
from sheep.logging import LoggerFactory

log = LoggerFactory.for_system()

CIDATA_MOUNTPOINT = "/mnt/cidata"


@dataclass(frozen=True)
class FstabEntry:
    spec: str
    mountpoint: str
    fstype: str
    options: str = "defaults"
    dump: int = 0
    passno: int = 0

    def render(self) -> str:
        return (
            f"{self.spec}\t{self.mountpoint}\t{self.fstype}\t"
            f"{self.options}\t{self.dump}\t{self.passno}"
        )


def fstab_entries(config: ResolvedConfig, plan: PartitionPlan) -> List[FstabEntry]:
    entries = [
        FstabEntry(
            spec=f"LABEL={config.rootfs_label}",
            mountpoint="/",
            fstype=config.rootfs_type.value,
            passno=1,
        )
    ]
    if config.is_uefi:
        entries.append(
            FstabEntry(
                spec=f"LABEL={plan.boot.label}",
                mountpoint="/boot/efi",
                fstype="vfat",
                options="umask=0077",
                passno=1,
            )
        )
    entries.append(
        FstabEntry(
            spec=f"LABEL={plan.cidata.label}",
            mountpoint=CIDATA_MOUNTPOINT,
            fstype="vfat",
            options="defaults,nofail",
        )
    )
    return entries


def render_fstab(entries: List[FstabEntry]) -> str:
    header = "# <file system>\t<mount point>\t<type>\t<options>\t<dump>\t<pass>\n"
    return header + "".join(entry.render() + "\n" for entry in entries)


def write_fstab(root: Path, config: ResolvedConfig, plan: PartitionPlan) -> Path:
    """Replace the image's /etc/fstab with label based entries."""
    fstab_path = Path(root) / "etc" / "fstab"
    fstab_path.parent.mkdir(parents=True, exist_ok=True)
    fstab_path.write_text(render_fstab(fstab_entries(config, plan)), encoding="utf-8")
    log.info(f"Wrote {fstab_path}")
    return fstab_path
