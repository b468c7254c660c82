"""Ordered provisioning pipeline.

Steps run strictly in sequence, each relying on the previous one:

    partition -> format -> mount -> install image -> bootloader
    -> system config -> cloud-init seed -> unmount
    -> notify (optional) -> success marker -> reboot (optional)

Any exception stops the run where it is. Mounts are not released and the
disk is not restored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sheep.bootloader import configure_bootloader
from sheep.cloudinit import seed_environment
from sheep.config.settings import RuntimeSettings
from sheep.domain import MountLayout, PartitionPlan, ResolvedConfig
from sheep.image.installer import ImageInstaller
from sheep.logging import LoggerFactory, operation_context
from sheep.notify import notify_fleet
from sheep.plan import build_partition_plan
from sheep.storage.disk import TargetDisk
from sheep.system import live
from sheep.system.fstab import write_fstab
from sheep.system.selinux import apply_selinux_policy

log = LoggerFactory.for_pipeline()


@dataclass
class Provisioner:
    """Drive one provisioning run from a resolved configuration."""

    config: ResolvedConfig
    settings: RuntimeSettings
    plan: PartitionPlan = field(init=False)
    layout: MountLayout = field(init=False)
    disk: TargetDisk = field(init=False)
    completed: List[str] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.plan = build_partition_plan(self.config)
        self.layout = self.settings.mount_layout
        self.disk = TargetDisk(self.plan, self.layout)
        self.installer = ImageInstaller(
            staging_dir=self.settings.staging_dir,
            download_dir=self.settings.download_dir,
        )

    def steps(self) -> List[tuple[str, Callable[[], object]]]:
        steps: List[tuple[str, Callable[[], object]]] = [
            ("partition", self.disk.partition),
            ("format", self.disk.format),
            ("mount", self.disk.mount),
            ("install", self.install_image),
            ("bootloader", self.install_bootloader),
            ("system", self.configure_system),
            ("cloudinit", self.seed_cloud_init),
            ("unmount", self.disk.unmount),
        ]
        if self.config.pxe_notify_enabled:
            steps.append(("notify", self.notify))
        steps.append(("finalize", self.mark_success))
        return steps

    def install_image(self) -> None:
        self.installer.install(self.config.root_image_url, self.layout.rootfs_mount)

    def install_bootloader(self) -> None:
        configure_bootloader(self.config, self.plan, self.layout, self.settings.download_dir)

    def configure_system(self) -> None:
        root = self.layout.rootfs_mount
        write_fstab(root, self.config, self.plan)
        apply_selinux_policy(root, self.config.selinux_policy)

    def seed_cloud_init(self) -> None:
        seed_environment(self.config, self.layout)

    def notify(self) -> None:
        notify_fleet(
            self.config.pxe_notify_base_url,
            self.config.pxe_notify_profile,
            self.settings.net_class_dir,
        )

    def mark_success(self) -> None:
        live.write_success_marker(self.settings.success_marker, self.config.block_device)

    def run(self, reboot: Optional[bool] = None) -> List[str]:
        """Run every step in order, then reboot if configured.

        Returns:
            Names of the completed steps
        """
        steps = self.steps()
        log.info(
            f"Provisioning {self.config.os_label} on {self.config.block_device}: "
            f"{' -> '.join(name for name, _ in steps)}"
        )
        for name, step in steps:
            with operation_context(name, device=self.config.block_device):
                step()
            self.completed.append(name)
        log.success(f"{self.config.block_device} provisioned")
        if self.config.reboot_on_completion if reboot is None else reboot:
            live.reboot()
        return self.completed
