"""Fleet notification (PXE Pilot).

Once the disk is provisioned the fleet service is told which boot profile
the machine should use next, identified by a MAC address:

    PUT {base_url}/v1/configurations/{profile}/deploy
    {"hosts": [{"macAddress": "<mac>"}]}

The machine may have several interfaces and only some of them are known to
the service, so each interface is tried in turn until one gets HTTP 200.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import aiohttp

from sheep.exceptions import NotificationError
from sheep.logging import LoggerFactory

log = LoggerFactory.for_notify()

IGNORED_INTERFACES = {"lo"}
NULL_MAC = "00:00:00:00:00:00"


@dataclass(frozen=True)
class NetworkInterface:
    name: str
    mac_address: str


def list_interfaces(net_class_dir: Path) -> List[NetworkInterface]:
    """Interfaces with a hardware address, sorted by name."""
    interfaces = []
    net_class_dir = Path(net_class_dir)
    if not net_class_dir.is_dir():
        return interfaces
    for entry in sorted(net_class_dir.iterdir(), key=lambda p: p.name):
        if entry.name in IGNORED_INTERFACES:
            continue
        try:
            mac = (entry / "address").read_text(encoding="utf-8").strip().lower()
        except OSError:
            continue
        if mac and mac != NULL_MAC:
            interfaces.append(NetworkInterface(entry.name, mac))
    return interfaces


class PxePilotClient:
    """HTTP client for the fleet notification API."""

    def __init__(self, base_url: str, profile: str, timeout_seconds: int = 30):
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    @property
    def deploy_url(self) -> str:
        return f"{self.base_url}/v1/configurations/{self.profile}/deploy"

    async def deploy(self, mac_address: str) -> bool:
        """Ask the service to deploy the profile for one MAC. True on HTTP 200."""
        payload = {"hosts": [{"macAddress": mac_address}]}
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            try:
                async with session.put(self.deploy_url, json=payload) as resp:
                    if resp.status == 200:
                        return True
                    log.warning(f"{self.deploy_url} answered {resp.status} for {mac_address}")
                    return False
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                log.warning(f"Network error notifying {self.deploy_url} for {mac_address}: {e}")
                return False

    async def notify(self, interfaces: List[NetworkInterface]) -> NetworkInterface:
        """Try each interface in order until the service accepts one.

        Raises:
            NotificationError: If no interface gets HTTP 200
        """
        attempts = 0
        for interface in interfaces:
            attempts += 1
            log.info(f"Notifying {self.deploy_url} with {interface.name} ({interface.mac_address})")
            if await self.deploy(interface.mac_address):
                log.success(f"Profile '{self.profile}' deployed for {interface.mac_address}")
                return interface
        raise NotificationError(self.base_url, attempts)


def notify_fleet(
    base_url: str,
    profile: str,
    net_class_dir: Path,
    interfaces: Optional[List[NetworkInterface]] = None,
) -> NetworkInterface:
    if interfaces is None:
        interfaces = list_interfaces(net_class_dir)
    client = PxePilotClient(base_url, profile)
    return asyncio.run(client.notify(interfaces))
