"""Kernel command line parameters.

Parameters are read from /proc/cmdline unless the OS_DEPLOY_PARAMETERS
environment variable is set, in which case its content is used instead with
the exact same `key=value` syntax.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from sheep.config.document import MISSING

OVERRIDE_ENV = "OS_DEPLOY_PARAMETERS"
PROC_CMDLINE = Path("/proc/cmdline")


def parse_cmdline(text: str) -> dict[str, str]:
    """Tokenize a whitespace separated `key=value` string.

    Tokens without `=` are kept as flags with an empty value. When a key is
    repeated the last occurrence wins.
    """
    params: dict[str, str] = {}
    for token in text.split():
        key, _, value = token.partition("=")
        if key:
            params[key] = value
    return params


@dataclass(frozen=True)
class KernelCommandLine:
    """Immutable view of the boot parameters, parsed once at startup."""

    params: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @classmethod
    def from_string(cls, text: str) -> KernelCommandLine:
        return cls(parse_cmdline(text))

    @classmethod
    def load(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        path: Path = PROC_CMDLINE,
    ) -> KernelCommandLine:
        """Load parameters from the override variable or the kernel."""
        environ = os.environ if environ is None else environ
        override = environ.get(OVERRIDE_ENV)
        if override:
            return cls.from_string(override)
        try:
            return cls.from_string(path.read_text(encoding="utf-8"))
        except OSError:
            return cls()

    def lookup(self, key: str) -> Any:
        value = self.params.get(key)
        if value is None or value == "":
            return MISSING
        return value

    def get(self, key: str, default: Any = None) -> Any:
        value = self.lookup(key)
        return default if value is MISSING else value
