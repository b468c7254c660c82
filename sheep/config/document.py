"""Declarative configuration document.

The document is YAML. Values are addressed with path expressions made of
dot separated keys and optional list indices:

    linux.image
    linux.blacklist_module[0]
    network.interfaces[1].address

A path is absent when a segment does not exist, or when the value it lands on
is null or an empty string.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Union

import yaml

from sheep.download import fetch
from sheep.exceptions import InvalidParameterError


class _Missing:
    """Sentinel for absent values."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()

_SEGMENT_PATTERN = re.compile(r"^([^\[\]]*)((?:\[\d+\])*)$")
_INDEX_PATTERN = re.compile(r"\[(\d+)\]")


def parse_path(path: str) -> List[Union[str, int]]:
    """Split a path expression into dict keys and list indices.

    Raises:
        ValueError: If the expression is malformed
    """
    steps: List[Union[str, int]] = []
    for segment in path.split("."):
        match = _SEGMENT_PATTERN.match(segment)
        if not match or (not match.group(1) and not match.group(2)):
            raise ValueError(f"Invalid path expression: {path!r}")
        if match.group(1):
            steps.append(match.group(1))
        steps.extend(int(index) for index in _INDEX_PATTERN.findall(match.group(2)))
    return steps


class ConfigDocument:
    """A parsed declarative configuration tree."""

    def __init__(self, data: Any = None):
        self.data = data if data is not None else {}

    @classmethod
    def from_yaml(cls, text: str) -> ConfigDocument:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as error:
            raise InvalidParameterError(
                "sheep.config", "<document>", f"not valid YAML: {error}"
            ) from error
        if data is not None and not isinstance(data, dict):
            raise InvalidParameterError(
                "sheep.config", type(data).__name__, "document root must be a mapping"
            )
        return cls(data)

    @classmethod
    def from_file(cls, path: Path) -> ConfigDocument:
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))

    def lookup(self, path: str) -> Any:
        """Return the raw node at `path`, or MISSING."""
        node = self.data
        for step in parse_path(path):
            if isinstance(step, int):
                if not isinstance(node, list) or step >= len(node):
                    return MISSING
            elif not isinstance(node, dict) or step not in node:
                return MISSING
            node = node[step]
        if node is None or node == "":
            return MISSING
        return node

    def get(self, path: str, default: Any = None) -> Any:
        value = self.lookup(path)
        return default if value is MISSING else value

    def get_yaml(self, path: str, default: Any = None) -> Any:
        """Serialize the subtree at `path` back to a YAML block.

        A string node is returned unchanged so literal blocks pass through
        byte for byte.
        """
        value = self.lookup(path)
        if value is MISSING:
            return default
        if isinstance(value, str):
            return value
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=False)


def load_document(location: str, download_dir: Path) -> ConfigDocument:
    """Fetch the document referenced on the boot command line and parse it."""
    path = fetch(location, Path(download_dir) / "sheep-config.yml")
    return ConfigDocument.from_file(path)
