"""Parameter resolution with defaults and mandatory values.

A resolver wraps one parameter source (the kernel command line or the
declarative document). Sources expose `lookup(key)` returning the value or
MISSING; the resolver adds default and mandatory semantics on top.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Protocol

from sheep.config.document import MISSING
from sheep.exceptions import InvalidParameterError, MissingParameterError
from sheep.logging import LoggerFactory

log = LoggerFactory.for_config()

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


class ParameterSource(Protocol):
    def lookup(self, key: str) -> Any:
        ...


class ParameterResolver:
    """Resolve configuration values from a single source."""

    def __init__(self, source: ParameterSource):
        self.source = source

    def resolve(self, key: str, default: Any = None) -> Any:
        """Return the value of `key`, or `default` when it is absent."""
        value = self.source.lookup(key)
        if value is MISSING:
            log.trace(f"{key} absent, using default {default!r}")
            return default
        log.trace(f"{key} = {value!r}")
        return value

    def resolve_mandatory(self, key: str, message: str = "") -> Any:
        """Return the value of `key`.

        Raises:
            MissingParameterError: If the value is absent or blank
        """
        value = self.source.lookup(key)
        if value is MISSING:
            raise MissingParameterError(key, message)
        return value

    def resolve_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.resolve(key, default)
        if value is None:
            return None
        return str(value).strip()

    def resolve_bool(self, key: str, default: bool = False) -> bool:
        """Resolve a boolean given as a YAML bool or a yes/no style string.

        Raises:
            InvalidParameterError: If the value is not a recognizable boolean
        """
        value = self.resolve(key, MISSING)
        if value is MISSING:
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise InvalidParameterError(key, value, "expected a boolean")

    def resolve_int(self, key: str, default: int = 0) -> int:
        value = self.resolve(key, MISSING)
        if value is MISSING:
            return default
        try:
            return int(value)
        except (TypeError, ValueError) as error:
            raise InvalidParameterError(key, value, "expected an integer") from error

    def resolve_yaml(self, key: str, default: Any = None) -> Any:
        """Return the subtree at `key` serialized as a YAML block."""
        get_yaml = getattr(self.source, "get_yaml", None)
        if get_yaml is None:
            raise TypeError(f"{type(self.source).__name__} has no YAML subtrees")
        return get_yaml(key, default)

    def iter_indexed(self, key: str) -> Iterator[int]:
        """Yield 0, 1, 2... while `key[n]` is present."""
        index = 0
        while True:
            if self.source.lookup(f"{key}[{index}]") is MISSING:
                return
            yield index
            index += 1

    def resolve_list(self, key: str) -> List[Any]:
        """Collect `key[0]`, `key[1]`... until the first absent entry."""
        return [self.source.lookup(f"{key}[{i}]") for i in self.iter_indexed(key)]
