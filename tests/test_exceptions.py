"""Tests for provisioning exception classes."""

import pytest

from sheep.exceptions import (
    BootConfigError,
    CommandError,
    ConfigurationError,
    DiskStateError,
    DownloadError,
    InvalidParameterError,
    MissingParameterError,
    MissingToolError,
    MountError,
    NotificationError,
    ResourceError,
    SheepError,
    UnsupportedImageError,
)


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    @pytest.mark.parametrize(
        "error",
        [
            MissingParameterError("linux.image"),
            InvalidParameterError("linux.rootfsType", "xfs", "unsupported"),
        ],
    )
    def test_configuration_errors(self, error):
        assert isinstance(error, ConfigurationError)
        assert isinstance(error, SheepError)

    @pytest.mark.parametrize(
        "error",
        [
            CommandError(["sgdisk"], 1),
            DownloadError("http://x", "timeout"),
            MountError("/mnt/sheep/rootfs", "busy"),
            DiskStateError("formatted", "partitioned"),
            UnsupportedImageError("http://x/img.zip"),
            BootConfigError("no kernel"),
            MissingToolError(["grub-install"]),
        ],
    )
    def test_resource_errors(self, error):
        assert isinstance(error, ResourceError)
        assert isinstance(error, SheepError)

    def test_notification_error_is_sheep_error(self):
        assert isinstance(NotificationError("http://x", 2), SheepError)


class TestMessages:
    """Test exception messages and attributes."""

    def test_missing_parameter_default_message(self):
        error = MissingParameterError("linux.device")

        assert error.key == "linux.device"
        assert str(error) == "'linux.device' parameter must be provided"

    def test_missing_parameter_custom_message(self):
        assert str(MissingParameterError("k", "custom")) == "custom"

    def test_command_error_includes_stderr(self):
        error = CommandError(["mkfs.ext4", "/dev/sda3"], 1, "device busy")

        assert error.command == ["mkfs.ext4", "/dev/sda3"]
        assert str(error) == "Command failed (mkfs.ext4 /dev/sda3) rc=1: device busy"

    def test_missing_tool_lists_candidates(self):
        assert "grub-install or grub2-install" in str(MissingToolError(["grub-install", "grub2-install"]))

    def test_notification_attempts(self):
        error = NotificationError("http://pxepilot", 3)

        assert error.attempts == 3
        assert "after 3 attempt(s)" in str(error)
