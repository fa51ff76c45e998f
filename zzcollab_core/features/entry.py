"""Registry entry describing one registered command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Type


@dataclass(frozen=True)
class FeatureEntry:
    group: str
    name: str
    target: Type[Any]
    kind: str
    origin: str

    def __post_init__(self) -> None:
        for label in ("group", "name", "kind", "origin"):
            value = getattr(self, label)
            if not value:
                raise ValueError(f"{label} cannot be empty.")
            if ":" in value:
                raise ValueError(f"{label} may not contain ':'.")
        if not isinstance(self.target, type):
            raise TypeError("target must be a class type.")

    @property
    def qualified_name(self) -> str:
        return f"{self.group}:{self.name}"

    @classmethod
    def from_feature(cls, feature: type, *, origin: str = "builtin") -> "FeatureEntry":
        metadata = getattr(feature, "__zz_feature__", None)
        if metadata is None:
            raise ValueError(f"{feature.__name__} is not decorated with @zzcommand.")
        return cls(
            group=str(metadata["group"]),
            name=str(metadata["name"]),
            target=feature,
            kind=str(metadata["kind"]),
            origin=origin,
        )
