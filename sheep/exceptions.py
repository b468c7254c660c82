"""Custom exceptions for provisioning runs.

Every fatal condition raised during a run derives from SheepError so the
entry point can funnel it through a single abort path.

Exception Hierarchy:
    SheepError (base)
        ├── ConfigurationError
        │   ├── MissingParameterError
        │   └── InvalidParameterError
        ├── ResourceError
        │   ├── CommandError
        │   ├── DownloadError
        │   ├── MountError
        │   ├── DiskStateError
        │   ├── UnsupportedImageError
        │   ├── BootConfigError
        │   └── MissingToolError
        └── NotificationError

Usage:
    from sheep.exceptions import MissingParameterError

    if not value:
        raise MissingParameterError("linux.image", "'linux.image' must be provided")
"""

from __future__ import annotations

from typing import Sequence


class SheepError(Exception):
    """Base exception for all provisioning errors."""



class ConfigurationError(SheepError):
    """Base exception for invalid or incomplete configuration."""



class MissingParameterError(ConfigurationError):
    """A mandatory parameter is absent or blank."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(message or f"'{key}' parameter must be provided")


class InvalidParameterError(ConfigurationError):
    """A parameter is present but holds an unsupported value."""

    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid value for '{key}' ({value!r}): {reason}")


class ResourceError(SheepError):
    """Base exception for failures while acting on disks, files or network."""



class CommandError(ResourceError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command failed ({' '.join(self.command)}) rc={returncode}"
        if stderr:
            msg += f": {stderr}"
        super().__init__(msg)


class DownloadError(ResourceError):
    """A remote resource could not be fetched."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")


class MountError(ResourceError):
    """A filesystem could not be mounted or unmounted."""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"Mount operation failed for {target}: {reason}")


class DiskStateError(ResourceError):
    """A disk operation was attempted out of order."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Target disk is {actual}, expected {expected}")


class UnsupportedImageError(ResourceError):
    """The downloaded image is not in a recognized container format."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Unrecognized image format: {path}")


class BootConfigError(ResourceError):
    """The boot configuration could not be located or generated."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Boot configuration error: {reason}")


class MissingToolError(ResourceError):
    """None of the candidate tools for an operation are installed."""

    def __init__(self, tools: Sequence[str]):
        self.tools = list(tools)
        super().__init__(f"Required tool not found: {' or '.join(self.tools)}")


class NotificationError(SheepError):
    """The fleet service could not be notified on any interface."""

    def __init__(self, base_url: str, attempts: int):
        self.base_url = base_url
        self.attempts = attempts
        super().__init__(
            f"Failed to notify {base_url} after {attempts} attempt(s)"
        )
