"""Decorator that marks zzcollab command classes with registry metadata."""

from __future__ import annotations

from typing import Any, Callable, Type

from .abc import ZZAbstractCommand

_FeatureCandidate = Type[Any]


def _determine_group(cls: type, override: str | None) -> str:
    if override:
        return override
    module = getattr(cls, "__module__", "")
    return module.split(".")[0] or "zzcollab"


def _attach_feature_metadata(cls: type, kind: str, *, name: str | None, group: str | None) -> type:
    if not isinstance(cls, type):
        raise TypeError("Decorated object must be a class.")

    metadata = {
        "kind": kind,
        "name": name or cls.__name__,
        "group": _determine_group(cls, group),
    }
    metadata["qualified_name"] = f"{metadata['group']}:{metadata['name']}"
    setattr(cls, "__zz_feature__", metadata)
    return cls


def zzcommand(
    cls: _FeatureCandidate | None = None,
    *,
    name: str | None = None,
    group: str | None = None,
) -> Callable[[_FeatureCandidate], _FeatureCandidate] | _FeatureCandidate:
    """Register-ready marker: ``@zzcommand(name="validate", group="zzcollab")``."""

    def wrap(target: _FeatureCandidate) -> _FeatureCandidate:
        if not issubclass(target, ZZAbstractCommand):
            raise TypeError(f"{target.__name__} must subclass ZZAbstractCommand to be registered as command.")
        return _attach_feature_metadata(target, "command", name=name, group=group)

    if cls is None:
        return wrap
    return wrap(cls)
