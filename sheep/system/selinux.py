"""SELinux mode of the installed system."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from sheep.domain import SelinuxPolicy
from sheep.logging import LoggerFactory

log = LoggerFactory.for_system()

SELINUX_CONFIG = Path("etc/selinux/config")
SELINUX_LINE = re.compile(r"^SELINUX=.*$", re.MULTILINE)

MODES = {
    SelinuxPolicy.ENABLE: "enforcing",
    SelinuxPolicy.DISABLE: "disabled",
}


def apply_selinux_policy(root: Path, policy: SelinuxPolicy) -> Optional[Path]:
    """Set SELINUX= in the image's config. Images without SELinux are left alone."""
    config_path = Path(root) / SELINUX_CONFIG
    if not config_path.is_file():
        log.debug("Image has no SELinux configuration")
        return None
    mode = MODES[policy]
    text = config_path.read_text(encoding="utf-8")
    if SELINUX_LINE.search(text):
        text = SELINUX_LINE.sub(f"SELINUX={mode}", text)
    else:
        text = text.rstrip("\n") + f"\nSELINUX={mode}\n"
    config_path.write_text(text, encoding="utf-8")
    log.info(f"SELinux set to {mode}")
    return config_path
