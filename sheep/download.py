"""Download of images, archives and configuration documents.

Remote resources are fetched over HTTP(S) with aiohttp and streamed to disk.
`file://` URLs and plain paths are copied, which lets a configuration
document or an image be served from the live media itself.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from urllib.parse import unquote, urlparse

import aiohttp

from sheep.exceptions import DownloadError
from sheep.logging import LoggerFactory

log = LoggerFactory.for_image()

CHUNK_SIZE = 1024 * 1024


def _local_path(url: str) -> Path | None:
    parsed = urlparse(url)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if parsed.scheme == "":
        return Path(url)
    return None


async def _fetch_http(url: str, destination: Path) -> None:
    async with aiohttp.ClientSession() as session:
        try:
            async with session.get(url) as resp:
                if resp.status != 200:
                    raise DownloadError(url, f"HTTP status {resp.status}")
                with destination.open("wb") as handle:
                    async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                        handle.write(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DownloadError(url, f"network error: {e}") from e


def fetch(url: str, destination: Path) -> Path:
    """Download `url` to `destination`, replacing any previous file.

    Args:
        url: http(s)://, file:// URL or local path
        destination: Target file path

    Returns:
        The destination path

    Raises:
        DownloadError: If the resource cannot be retrieved
    """
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.exists():
        destination.unlink()

    local = _local_path(url)
    log.info(f"Fetching {url} -> {destination}")
    if local is not None:
        if not local.is_file():
            raise DownloadError(url, "no such file")
        try:
            shutil.copyfile(local, destination)
        except OSError as e:
            raise DownloadError(url, str(e)) from e
        return destination

    scheme = urlparse(url).scheme
    if scheme not in ("http", "https"):
        raise DownloadError(url, f"unsupported scheme '{scheme}'")

    asyncio.run(_fetch_http(url, destination))
    log.debug(f"Downloaded {destination.stat().st_size} bytes from {url}")
    return destination
