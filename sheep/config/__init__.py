"""Configuration sources and runtime settings."""

from sheep.config.cmdline import KernelCommandLine
from sheep.config.document import MISSING, ConfigDocument, load_document
from sheep.config.resolver import ParameterResolver
from sheep.config.settings import RuntimeSettings

__all__ = [
    "MISSING",
    "ConfigDocument",
    "KernelCommandLine",
    "ParameterResolver",
    "RuntimeSettings",
    "load_document",
]
