"""Container format detection from file content.

The file extension is never trusted; the first bytes of the file decide.
"""

from __future__ import annotations

from pathlib import Path

from sheep.domain import ImageFormat

XZ_SIGNATURE = b"\xfd7zXZ\x00"
GZIP_SIGNATURE = b"\x1f\x8b"
# SquashFS superblock magic "hsqs", little-endian; "sqsh" on big-endian images
SQUASHFS_SIGNATURES = (b"hsqs", b"sqsh")
QCOW2_SIGNATURE = b"QFI\xfb"

SNIFF_SIZE = 16


def detect_format_from_bytes(header: bytes) -> ImageFormat:
    if header.startswith(XZ_SIGNATURE):
        return ImageFormat.XZ_TAR
    if header.startswith(GZIP_SIGNATURE):
        return ImageFormat.GZ_TAR
    if header[:4] in SQUASHFS_SIGNATURES:
        return ImageFormat.SQUASHFS
    if header.startswith(QCOW2_SIGNATURE):
        return ImageFormat.QCOW2
    return ImageFormat.UNRECOGNIZED


def detect_format(file_path: Path) -> ImageFormat:
    """Detect the container format of a downloaded image.

    Args:
        file_path: Path to the file to check

    Returns:
        The detected format, UNRECOGNIZED for anything else or unreadable files
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        return ImageFormat.UNRECOGNIZED
    try:
        with file_path.open("rb") as f:
            header = f.read(SNIFF_SIZE)
    except OSError:
        return ImageFormat.UNRECOGNIZED
    return detect_format_from_bytes(header)
