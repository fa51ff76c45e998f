"""renv.lock reading and writing."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from zzcollab_core.errors import ManifestError

DEFAULT_REPOSITORIES: tuple[dict[str, str], ...] = (
    {"Name": "CRAN", "URL": "https://cloud.r-project.org"},
)


@dataclass(frozen=True)
class LockEntry:
    name: str
    version: str
    hash: str | None = None
    source: str = "Repository"
    repository: str | None = "CRAN"
    requirements: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "LockEntry":
        requirements = data.get("Requirements") or []
        if not isinstance(requirements, list):
            requirements = []
        return cls(
            name=str(data.get("Package") or name),
            version=str(data.get("Version") or ""),
            hash=data.get("Hash"),
            source=str(data.get("Source") or "Repository"),
            repository=data.get("Repository"),
            requirements=tuple(str(item) for item in requirements),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "Package": self.name,
            "Version": self.version,
            "Source": self.source,
        }
        if self.repository:
            payload["Repository"] = self.repository
        if self.hash:
            payload["Hash"] = self.hash
        if self.requirements:
            payload["Requirements"] = list(self.requirements)
        return payload


@dataclass(frozen=True)
class Lockfile:
    """Parsed renv.lock; ``document`` keeps unknown keys so they round-trip."""

    document: Mapping[str, Any]

    @classmethod
    def empty(cls) -> "Lockfile":
        return cls(document={"R": {"Repositories": [dict(repo) for repo in DEFAULT_REPOSITORIES]}, "Packages": {}})

    @property
    def r_version(self) -> str | None:
        r_block = self.document.get("R")
        if not isinstance(r_block, Mapping):
            return None
        version = str(r_block.get("Version") or "").strip()
        return version or None

    @property
    def packages(self) -> dict[str, LockEntry]:
        raw = self.document.get("Packages") or {}
        return {
            name: LockEntry.from_dict(name, data)
            for name, data in raw.items()
            if isinstance(data, Mapping)
        }

    def names(self) -> frozenset[str]:
        return frozenset(self.packages)

    def with_entries(self, entries: Iterable[LockEntry]) -> "Lockfile":
        """Return a copy with ``entries`` added; existing packages are left as-is."""
        document = copy.deepcopy(dict(self.document))
        packages = document.setdefault("Packages", {})
        for entry in entries:
            if entry.name in packages:
                continue
            packages[entry.name] = entry.to_dict()
        return Lockfile(document=document)

    def to_text(self) -> str:
        return json.dumps(self.document, indent=2) + "\n"


def parse_lockfile(text: str, *, source: str = "renv.lock") -> Lockfile:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ManifestError(f"{source} must contain a JSON object")
    packages = payload.get("Packages")
    if packages is not None and not isinstance(packages, dict):
        raise ManifestError(f"{source}: 'Packages' must be an object")
    return Lockfile(document=payload)


def load_lockfile(path: Path) -> Lockfile:
    """Load ``path``; a missing file is an empty lockfile."""
    if not path.exists():
        return Lockfile.empty()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestError(f"unable to read {path}: {exc}") from exc
    return parse_lockfile(text, source=str(path))
