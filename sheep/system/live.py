"""Actions on the live system running the installer."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sheep.logging import LoggerFactory
from sheep.storage.commands import run_command

log = LoggerFactory.for_system()


def write_success_marker(marker: Path, device: str) -> Path:
    """Record on the live system that provisioning completed."""
    marker = Path(marker)
    marker.parent.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    marker.write_text(f"{device} provisioned at {stamp}\n", encoding="utf-8")
    log.info(f"Success marker written to {marker}")
    return marker


def reboot() -> None:
    log.info("Rebooting into the installed system")
    run_command(["reboot"])
