"""Tests for domain models."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from sheep.bootloader.profiles import UBUNTU_PROFILE
from sheep.domain import BootMode, MountLayout, PartitionPlan, PartitionSpec


class TestPartitionPlan:
    """Test PartitionPlan accessors."""

    def test_roles_by_position(self):
        boot = PartitionSpec(1, "+500M", "ef00", "EFI", "vfat", "EFI")
        cidata = PartitionSpec(2, "+100M", "0700", "cidata", "vfat", "cidata")
        root = PartitionSpec(3, None, "8300", "rootfs", "ext4", "rootfs")
        plan = PartitionPlan("/dev/vda", BootMode.UEFI, (boot, cidata, root))

        assert plan.boot is boot
        assert plan.cidata is cidata
        assert plan.root is root
        assert plan.partition_path(root) == "/dev/vda3"

    def test_mmcblk_separator(self):
        spec = PartitionSpec(2, "+100M", "0700", "cidata")
        plan = PartitionPlan("/dev/mmcblk0", BootMode.LEGACY, (spec,))

        assert plan.partition_path(spec) == "/dev/mmcblk0p2"

    def test_frozen(self, uefi_plan):
        with pytest.raises(FrozenInstanceError):
            uefi_plan.device = "/dev/sdb"


class TestMountLayout:
    """Test MountLayout paths."""

    def test_efi_mount_below_root(self):
        layout = MountLayout(Path("/mnt/sheep/rootfs"), Path("/mnt/sheep/cidata"))

        assert layout.efi_mount == Path("/mnt/sheep/rootfs/boot/efi")


class TestBootloaderProfile:
    """Test the built-in bootloader profile."""

    def test_ubuntu_profile(self):
        assert UBUNTU_PROFILE.efi_directory == "EFI/ubuntu"
        assert UBUNTU_PROFILE.loader_path == "\\EFI\\ubuntu\\shimx64.efi"


class TestResolvedConfig:
    """Test ResolvedConfig helpers."""

    def test_is_uefi(self, uefi_config, legacy_config):
        assert uefi_config.is_uefi is True
        assert legacy_config.is_uefi is False
