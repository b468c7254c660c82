"""Kernel module blacklist of the installed system."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from sheep.logging import LoggerFactory

log = LoggerFactory.for_cloudinit()

BLACKLIST_CONF = Path("etc/modprobe.d/blacklist.conf")


def append_blacklist(root: Path, modules: Iterable[str]) -> Optional[Path]:
    """Append one `blacklist <module>` line per module."""
    modules = [module for module in modules if module]
    if not modules:
        return None
    path = Path(root) / BLACKLIST_CONF
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        for module in modules:
            f.write(f"blacklist {module}\n")
    log.info(f"Blacklisted modules: {', '.join(modules)}")
    return path
