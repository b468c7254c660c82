"""Built-in UEFI bootloader profiles.

Only one vendor layout is supported: signed shim binaries embed the path of
their second stage, so the bootloader archive must be extracted under the
vendor directory the shim was built for.
"""

from __future__ import annotations

from sheep.domain import BootloaderProfile

UBUNTU_PROFILE = BootloaderProfile(
    name="ubuntu",
    vendor_dir="ubuntu",
    loader_path="\\EFI\\ubuntu\\shimx64.efi",
)

DEFAULT_PROFILE = UBUNTU_PROFILE
