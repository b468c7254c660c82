"""Domain models for provisioning runs.

This package contains the immutable records passed between the plan builder
and the pipeline steps.
"""

from __future__ import annotations

from .models import (
    BootloaderProfile,
    BootMode,
    CloudInitPayload,
    ImageFormat,
    InterfaceMode,
    InterfaceSpec,
    MountLayout,
    PartitionPlan,
    PartitionSpec,
    PassthroughSeed,
    ResolvedConfig,
    RootfsType,
    SelinuxPolicy,
    StructuredSeed,
    UserSpec,
)

__all__ = [
    "BootloaderProfile",
    "BootMode",
    "CloudInitPayload",
    "ImageFormat",
    "InterfaceMode",
    "InterfaceSpec",
    "MountLayout",
    "PartitionPlan",
    "PartitionSpec",
    "PassthroughSeed",
    "ResolvedConfig",
    "RootfsType",
    "SelinuxPolicy",
    "StructuredSeed",
    "UserSpec",
]
