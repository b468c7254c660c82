"""Unattended bare-metal OS provisioning agent."""

from sheep.__version__ import __version__

__all__ = ["__version__"]
