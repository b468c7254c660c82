"""
Pytest configuration and shared fixtures for sheep tests.

This module provides declarative documents, resolved configurations and
temporary live-system paths used across all test modules.
"""

from pathlib import Path
from typing import Any, Dict

import pytest
from loguru import logger

from sheep.config import ConfigDocument, ParameterResolver, RuntimeSettings
from sheep.domain import (
    BootMode,
    MountLayout,
    ResolvedConfig,
    RootfsType,
    SelinuxPolicy,
    StructuredSeed,
)
from sheep.plan import build_partition_plan


# ==============================================================================
# Document Fixtures
# ==============================================================================


@pytest.fixture
def minimal_document_data() -> Dict[str, Any]:
    """Smallest document accepted under legacy BIOS boot."""
    return {
        "linux": {
            "label": "Ubuntu",
            "image": "http://10.0.0.1/images/ubuntu.tar.xz",
            "device": "/dev/sda",
        }
    }


@pytest.fixture
def full_document_data(minimal_document_data) -> Dict[str, Any]:
    """Document exercising every optional section."""
    data = dict(minimal_document_data)
    data["linux"] = dict(
        minimal_document_data["linux"],
        rootfsType="btrfs",
        rootfsLabel="Ubuntu-fs",
        selinux="enable",
        blacklist_module=["nouveau", "floppy"],
    )
    data["bootloader"] = {
        "image": "http://10.0.0.1/images/grub-efi.tar.xz",
        "kernel_parameter": "console=ttyS0",
    }
    data["pxePilot"] = {
        "enable": True,
        "url": "http://pxepilot:3478",
        "config_after_reboot": "local",
    }
    data["environment"] = {
        "instanceId": "iid-node01",
        "hostname": "node-01",
        "users": [
            {
                "name": "ops",
                "sshKey": "ssh-ed25519 AAAA ops@example",
                "sudoer": True,
                "password": "s3cret",
            }
        ],
    }
    data["network"] = {
        "interfaces": [
            {
                "name": "eth0",
                "mode": "static",
                "address": "172.19.17.111/24",
                "gateway": "172.19.17.1",
            },
            {"name": "eth1", "mode": "dhcp"},
        ]
    }
    return data


@pytest.fixture
def make_resolver():
    """Factory building a resolver over an in-memory document."""

    def _make(data: Dict[str, Any]) -> ParameterResolver:
        return ParameterResolver(ConfigDocument(data))

    return _make


# ==============================================================================
# Live System Fixtures
# ==============================================================================


@pytest.fixture
def efi_dir(tmp_path) -> Path:
    """Firmware directory present: UEFI boot."""
    path = tmp_path / "sys" / "firmware" / "efi"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def no_efi_dir(tmp_path) -> Path:
    """Firmware directory absent: legacy BIOS boot."""
    return tmp_path / "sys" / "firmware" / "missing-efi"


@pytest.fixture
def runtime_settings(tmp_path) -> RuntimeSettings:
    """Runtime settings rooted in a temporary directory."""
    return RuntimeSettings(
        work_dir=tmp_path / "work",
        staging_dir=tmp_path / "staging",
        download_dir=tmp_path / "downloads",
        log_file=tmp_path / "log" / "sheep.log",
        success_marker=tmp_path / "state" / "provisioned",
        efi_firmware_dir=tmp_path / "sys" / "firmware" / "efi",
        net_class_dir=tmp_path / "sys" / "class" / "net",
    )


@pytest.fixture
def layout(tmp_path) -> MountLayout:
    rootfs = tmp_path / "rootfs"
    cidata = tmp_path / "cidata"
    rootfs.mkdir()
    cidata.mkdir()
    return MountLayout(rootfs_mount=rootfs, cloud_data_mount=cidata)


# ==============================================================================
# Resolved Configuration Fixtures
# ==============================================================================


def make_config(**overrides) -> ResolvedConfig:
    """Build a resolved configuration with sensible defaults."""
    values: Dict[str, Any] = dict(
        os_label="Ubuntu",
        boot_mode=BootMode.UEFI,
        rootfs_type=RootfsType.EXT4,
        rootfs_label="rootfs",
        block_device="/dev/sda",
        root_image_url="http://10.0.0.1/images/ubuntu.tar.xz",
        bootloader_image_url="http://10.0.0.1/images/grub-efi.tar.xz",
        kernel_extra_params="",
        selinux_policy=SelinuxPolicy.DISABLE,
        cloud_init_enabled=False,
        cloud_init_payload=StructuredSeed(instance_id="iid-test"),
        pxe_notify_enabled=False,
        pxe_notify_base_url=None,
        pxe_notify_profile="local",
        reboot_on_completion=False,
    )
    values.update(overrides)
    return ResolvedConfig(**values)


@pytest.fixture
def uefi_config() -> ResolvedConfig:
    return make_config()


@pytest.fixture
def legacy_config() -> ResolvedConfig:
    return make_config(boot_mode=BootMode.LEGACY, bootloader_image_url=None)


@pytest.fixture
def uefi_plan(uefi_config):
    return build_partition_plan(uefi_config)


@pytest.fixture
def legacy_plan(legacy_config):
    return build_partition_plan(legacy_config)


@pytest.fixture
def config_factory():
    """Factory for resolved configurations with field overrides."""
    return make_config


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks added by setup_logging so they never outlive a test."""
    yield
    logger.remove()
