"""Registry metadata lookups for packages missing from renv.lock."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import requests
from requests import RequestException

from .description import parse_dependency_list
from .lockfile import LockEntry

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://crandb.r-pkg.org"
_REQUIREMENT_FIELDS = ("Depends", "Imports", "LinkingTo")
_HASH_FIELDS = ("MD5sum", "Hash", "sha256")


class FailureKind(str, Enum):
    NETWORK = "network"
    NOT_FOUND = "not_found"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    MISSING_VERSION = "missing_version"


@dataclass(frozen=True)
class ResolvedPackage:
    name: str
    version: str
    hash: str | None
    repository: str
    requirements: tuple[str, ...] = ()

    def to_lock_entry(self) -> LockEntry:
        return LockEntry(
            name=self.name,
            version=self.version,
            hash=self.hash,
            source="Repository",
            repository=self.repository,
            requirements=self.requirements,
        )


@dataclass(frozen=True)
class ResolutionFailure:
    name: str
    kind: FailureKind
    detail: str

    def describe(self) -> str:
        return (
            f"{self.name}: {self.kind.value} ({self.detail}); "
            f"retry with `zzcollab validate --fix` or run `R -e \"renv::install('{self.name}'); renv::snapshot()\"`"
        )


ResolutionOutcome = ResolvedPackage | ResolutionFailure


def _requirements(payload: Mapping[str, Any]) -> tuple[str, ...]:
    names: list[str] = []
    for field in _REQUIREMENT_FIELDS:
        value = payload.get(field)
        if isinstance(value, Mapping):
            candidates = [str(key) for key in value]
        elif isinstance(value, str):
            candidates = [entry.name for entry in parse_dependency_list(value, field)]
        else:
            continue
        for candidate in candidates:
            if candidate != "R" and candidate not in names:
                names.append(candidate)
    return tuple(names)


def _hash(payload: Mapping[str, Any]) -> str | None:
    for field in _HASH_FIELDS:
        value = payload.get(field)
        if value:
            return str(value)
    return None


class RegistryResolver:
    """Single-attempt metadata lookup against a crandb-style HTTP registry."""

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._memo: dict[str, ResolutionOutcome] = {}

    def resolve(self, name: str) -> ResolutionOutcome:
        if name not in self._memo:
            self._memo[name] = self._fetch(name)
        return self._memo[name]

    def _fetch(self, name: str) -> ResolutionOutcome:
        url = f"{self.base_url}/{name}"
        logger.debug("GET %s timeout=%s", url, self.timeout)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except RequestException as exc:
            logger.warning("registry query for %s failed: %s", name, exc)
            return ResolutionFailure(name=name, kind=FailureKind.NETWORK, detail=f"GET {url} failed: {exc}")

        if resp.status_code == 404:
            return ResolutionFailure(name=name, kind=FailureKind.NOT_FOUND, detail=f"GET {url} returned 404")
        if not 200 <= resp.status_code < 300:
            return ResolutionFailure(
                name=name,
                kind=FailureKind.HTTP_STATUS,
                detail=f"GET {url} returned {resp.status_code}",
            )

        try:
            payload = resp.json()
        except ValueError:
            return ResolutionFailure(name=name, kind=FailureKind.MALFORMED, detail=f"GET {url} returned non-JSON body")
        if not isinstance(payload, Mapping):
            return ResolutionFailure(name=name, kind=FailureKind.MALFORMED, detail=f"GET {url} returned non-object JSON")

        version = str(payload.get("Version") or "").strip()
        if not version:
            return ResolutionFailure(
                name=name,
                kind=FailureKind.MISSING_VERSION,
                detail=f"GET {url} response has no Version field",
            )

        resolved = ResolvedPackage(
            name=name,
            version=version,
            hash=_hash(payload),
            repository=str(payload.get("Repository") or "CRAN"),
            requirements=_requirements(payload),
        )
        logger.info("resolved %s %s from %s", resolved.name, resolved.version, resolved.repository)
        return resolved
