"""In-memory registry of zzcollab commands."""

from __future__ import annotations

from ..errors import CommandCollisionError, CommandNotFoundError
from .entry import FeatureEntry


class FeatureRegistry:
    """Track commands by name; ``group:name`` is accepted when resolving."""

    def __init__(self) -> None:
        self._by_name: dict[str, FeatureEntry] = {}

    def register(self, entry: FeatureEntry) -> None:
        existing = self._by_name.get(entry.name)
        if existing is not None:
            raise CommandCollisionError(
                f"{entry.qualified_name} collides with {existing.qualified_name} (origin={existing.origin})."
            )
        self._by_name[entry.name] = entry

    def resolve(self, name: str) -> FeatureEntry:
        group, _, simple = name.rpartition(":")
        entry = self._by_name.get(simple)
        if entry is None or (group and entry.group != group):
            raise CommandNotFoundError(f"{name} is not registered.")
        return entry

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_name))

    def entries(self) -> tuple[FeatureEntry, ...]:
        return tuple(self._by_name[name] for name in self.names())
