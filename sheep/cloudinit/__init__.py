"""cloud-init seeding of the installed system."""

from __future__ import annotations

from sheep.cloudinit.blacklist import append_blacklist
from sheep.cloudinit.seed import SeedFiles, write_seed_files
from sheep.domain import MountLayout, ResolvedConfig


def seed_environment(config: ResolvedConfig, layout: MountLayout) -> SeedFiles:
    """Write the cloud-init seed and the module blacklist."""
    files = write_seed_files(layout.cloud_data_mount, config.cloud_init_payload)
    append_blacklist(layout.rootfs_mount, config.blacklisted_modules)
    return files


__all__ = ["seed_environment"]
