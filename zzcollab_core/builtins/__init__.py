"""Helper utilities for registering built-in zzcollab commands."""

from __future__ import annotations

from typing import Sequence

from zzcollab_core.features import FeatureEntry, FeatureRegistry

from .commands import HelpCommand, ListingCommand
from .docker import DockerCommand
from .validate import ValidateCommand

__all__ = ["register_builtin_commands"]

_BUILTIN_FEATURES: Sequence[type] = (
    ValidateCommand,
    DockerCommand,
    HelpCommand,
    ListingCommand,
)


def register_builtin_commands(registry: FeatureRegistry) -> None:
    """Register the built-in command classes with the supplied registry."""

    for feature in _BUILTIN_FEATURES:
        if getattr(feature, "__zz_feature__", None) is None:
            continue
        registry.register(FeatureEntry.from_feature(feature, origin="builtin"))
