"""Root filesystem image installation.

The image is downloaded to a temporary file, its container format is sniffed
and it is installed onto the mounted target:

    XZ tar      extract to staging, copy into target
    gzip tar    extract to staging, copy into target
    SquashFS    unsquashfs to staging, copy into target
    QCOW2       guestmount first partition read-only, copy into target

Copies always preserve permissions, ownership and timestamps. Anything else
raises UnsupportedImageError before a single file reaches the target.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Optional

from sheep.domain import ImageFormat
from sheep.download import fetch
from sheep.exceptions import UnsupportedImageError
from sheep.image.detection import detect_format
from sheep.logging import LoggerFactory
from sheep.storage.commands import run_command
from sheep.storage.mount import fresh_directory

log = LoggerFactory.for_image()

TAR_DECOMPRESS_FLAGS = {
    ImageFormat.XZ_TAR: "-J",
    ImageFormat.GZ_TAR: "-z",
}

QCOW2_GUEST_PARTITION = "/dev/sda1"


def extract_tar(archive: Path, target: Path, image_format: ImageFormat) -> None:
    run_command(
        [
            "tar",
            "--numeric-owner",
            TAR_DECOMPRESS_FLAGS[image_format],
            "-xpf",
            str(archive),
            "-C",
            str(target),
        ]
    )


def extract_archive(archive: Path, target: Path) -> ImageFormat:
    """Extract a compressed tarball into an existing directory.

    Raises:
        UnsupportedImageError: If the archive is not an XZ or gzip tarball
    """
    image_format = detect_format(archive)
    if image_format not in TAR_DECOMPRESS_FLAGS:
        raise UnsupportedImageError(str(archive))
    log.debug(f"Extracting {image_format.value} archive {archive} into {target}")
    extract_tar(archive, target, image_format)
    return image_format


def copy_tree(source: Path, target: Path) -> None:
    """Recursively copy the content of `source` into `target`, preserving metadata."""
    run_command(["cp", "-a", f"{source}/.", f"{target}/"])


class ImageInstaller:
    """Install a root filesystem image onto a mounted target."""

    def __init__(
        self,
        staging_dir: Path,
        download_dir: Path,
        guest_mount_dir: Optional[Path] = None,
    ):
        self.staging_dir = Path(staging_dir)
        self.download_dir = Path(download_dir)
        self.guest_mount_dir = (
            Path(guest_mount_dir)
            if guest_mount_dir is not None
            else self.staging_dir.parent / "guest"
        )
        self._handlers: Dict[ImageFormat, Callable[[Path, Path, ImageFormat], None]] = {
            ImageFormat.XZ_TAR: self._install_tarball,
            ImageFormat.GZ_TAR: self._install_tarball,
            ImageFormat.SQUASHFS: self._install_squashfs,
            ImageFormat.QCOW2: self._install_qcow2,
        }

    def install(self, url: str, target: Path) -> ImageFormat:
        """Download the image at `url` and install it into `target`.

        Returns:
            The detected image format

        Raises:
            DownloadError: If the image cannot be fetched
            UnsupportedImageError: If the format is not recognized
            CommandError: If extraction or copy fails
        """
        image = fetch(url, self.download_dir / "rootfs.img")
        try:
            image_format = detect_format(image)
            log.info(f"Detected {image_format.value} image from {url}")
            handler = self._handlers.get(image_format)
            if handler is None:
                raise UnsupportedImageError(url)
            handler(image, Path(target), image_format)
        finally:
            image.unlink(missing_ok=True)
        return image_format

    def _install_tarball(self, image: Path, target: Path, image_format: ImageFormat) -> None:
        staging = fresh_directory(self.staging_dir)
        extract_tar(image, staging, image_format)
        copy_tree(staging, target)

    def _install_squashfs(self, image: Path, target: Path, image_format: ImageFormat) -> None:
        staging = fresh_directory(self.staging_dir)
        run_command(["unsquashfs", "-f", "-d", str(staging), str(image)])
        copy_tree(staging, target)

    def _install_qcow2(self, image: Path, target: Path, image_format: ImageFormat) -> None:
        guest = fresh_directory(self.guest_mount_dir)
        run_command(
            ["guestmount", "-a", str(image), "-m", QCOW2_GUEST_PARTITION, "--ro", str(guest)]
        )
        try:
            copy_tree(guest, target)
        finally:
            run_command(["guestunmount", str(guest)])
