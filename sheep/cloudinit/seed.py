"""cloud-init NoCloud seed files.

Three files are written at the root of the CIDATA partition: meta-data,
user-data and network-config. Their content comes either verbatim from the
declarative document (passthrough mode) or is synthesized from the
structured environment/network sections (legacy compatibility mode).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

from sheep.domain import (
    CloudInitPayload,
    InterfaceMode,
    InterfaceSpec,
    PassthroughSeed,
    StructuredSeed,
    UserSpec,
)
from sheep.logging import LoggerFactory

log = LoggerFactory.for_cloudinit()

CLOUD_CONFIG_HEADER = "#cloud-config\n"

META_DATA = "meta-data"
USER_DATA = "user-data"
NETWORK_CONFIG = "network-config"

# Fallback account for test/dev images when no user is declared. Not for production.
DEFAULT_USER_NAME = "linux"
DEFAULT_USER_PASSWORD = "linux"
DEFAULT_SHELL = "/bin/bash"
SUDO_NOPASSWD = "ALL=(ALL) NOPASSWD:ALL"


@dataclass(frozen=True)
class SeedFiles:
    meta_data: str
    user_data: str
    network_config: str


def _dump(data: Any) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def render_meta_data(seed: StructuredSeed) -> str:
    data: Dict[str, Any] = {"instance-id": seed.instance_id}
    if seed.hostname:
        data["local-hostname"] = seed.hostname
    return _dump(data)


def _interface_config(interface: InterfaceSpec) -> Dict[str, Any]:
    subnet: Dict[str, Any] = {"type": interface.mode.value}
    if interface.mode is InterfaceMode.STATIC:
        subnet["address"] = interface.address
        if interface.gateway:
            subnet["gateway"] = interface.gateway
    return {"type": "physical", "name": interface.name, "subnets": [subnet]}


def render_network_config(seed: StructuredSeed) -> str:
    """Network config version 1 with one physical block per interface."""
    return _dump(
        {
            "version": 1,
            "config": [_interface_config(interface) for interface in seed.interfaces],
        }
    )


def _user_config(user: UserSpec) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "name": user.name,
        "lock_passwd": False,
        "ssh_authorized_keys": [user.ssh_key] if user.ssh_key else [],
    }
    if user.sudoer:
        entry["sudo"] = SUDO_NOPASSWD
    if user.shell:
        entry["shell"] = user.shell
    return entry


def render_user_data(seed: StructuredSeed) -> str:
    """User accounts and passwords; a default account when none is declared."""
    data: Dict[str, Any]
    if not seed.users:
        log.warning(
            f"No user declared, creating default user '{DEFAULT_USER_NAME}' "
            "with a well-known password"
        )
        data = {
            "users": [
                {
                    "name": DEFAULT_USER_NAME,
                    "lock_passwd": False,
                    "sudo": SUDO_NOPASSWD,
                    "shell": DEFAULT_SHELL,
                }
            ],
            "chpasswd": {
                "expire": False,
                "list": f"{DEFAULT_USER_NAME}:{DEFAULT_USER_PASSWORD}\n",
            },
        }
    else:
        data = {"users": [_user_config(user) for user in seed.users]}
        passwords: List[str] = [f"{user.name}:{user.password}" for user in seed.users]
        data["chpasswd"] = {"expire": False, "list": "\n".join(passwords) + "\n"}
        data["ssh_pwauth"] = True
    return CLOUD_CONFIG_HEADER + _dump(data)


def build_seed_files(payload: CloudInitPayload) -> SeedFiles:
    if isinstance(payload, PassthroughSeed):
        return SeedFiles(
            meta_data=payload.meta_data,
            user_data=CLOUD_CONFIG_HEADER + payload.user_data,
            network_config=payload.network_config,
        )
    return SeedFiles(
        meta_data=render_meta_data(payload),
        user_data=render_user_data(payload),
        network_config=render_network_config(payload),
    )


def write_seed_files(cidata_mount: Path, payload: CloudInitPayload) -> SeedFiles:
    """Write the three seed files at the root of the CIDATA mount."""
    files = build_seed_files(payload)
    cidata_mount = Path(cidata_mount)
    for name, content in (
        (META_DATA, files.meta_data),
        (USER_DATA, files.user_data),
        (NETWORK_CONFIG, files.network_config),
    ):
        (cidata_mount / name).write_text(content, encoding="utf-8")
        log.debug(f"Wrote {cidata_mount / name} ({len(content)} bytes)")
    mode = "passthrough" if isinstance(payload, PassthroughSeed) else "structured"
    log.info(f"cloud-init seed written to {cidata_mount} ({mode})")
    return files
