"""Profile catalog and the profile-to-build-strategy resolver."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

import yaml

from zzcollab_core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "minimal"
DEFAULT_BASE_IMAGE = "rocker/r-ver"
UNKNOWN_PROFILE_POLICIES = ("warn", "error")

# First match wins; order matters because "tidyverse" also contains "verse".
_LIBS_DEFAULTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("alpine", "r-minimal"), "alpine_standard"),
    (("bioconductor",), "bioinfo"),
    (("geospatial",), "geospatial"),
)
_PKGS_DEFAULTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("tidyverse", "shiny-verse"), "analysis"),
    (("verse",), "publishing"),
)


def _ensure_mapping(data: Any, label: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if isinstance(data, Mapping):
        return data
    raise ConfigurationError(f"expected a mapping for {label}")


def _as_names(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return split_bundle_list(value)
    return tuple(str(item) for item in value if str(item).strip())


def split_bundle_list(value: str | None) -> tuple[str, ...]:
    """``"geospatial, modeling"`` -> ``("geospatial", "modeling")``."""
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def smart_libs(base_image: str) -> str:
    lowered = base_image.lower()
    for needles, bundle in _LIBS_DEFAULTS:
        if any(needle in lowered for needle in needles):
            return bundle
    return "standard"


def smart_pkgs(base_image: str) -> str:
    lowered = base_image.lower()
    for needles, bundle in _PKGS_DEFAULTS:
        if any(needle in lowered for needle in needles):
            return bundle
    return "minimal"


@dataclass(frozen=True)
class Profile:
    name: str
    base_image: str
    libs: tuple[str, ...]
    pkgs: tuple[str, ...]
    dockerfile: str | None = None
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "Profile":
        raw = _ensure_mapping(data, f"profile {name!r}")
        if not raw.get("base_image"):
            raise ConfigurationError(f"profile {name!r} has no base_image")
        return cls(
            name=name,
            base_image=str(raw["base_image"]),
            libs=_as_names(raw.get("libs")),
            pkgs=_as_names(raw.get("pkgs")),
            dockerfile=str(raw["dockerfile"]) if raw.get("dockerfile") else None,
            description=str(raw.get("description") or ""),
        )


@dataclass(frozen=True)
class LibraryBundle:
    name: str
    deps: tuple[str, ...] = ()
    runtime_deps: tuple[str, ...] = ()
    package_manager: str = "apt-get"
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "LibraryBundle":
        raw = _ensure_mapping(data, f"library bundle {name!r}")
        manager = str(raw.get("package_manager") or "apt-get")
        if manager not in ("apt-get", "apk"):
            raise ConfigurationError(f"library bundle {name!r} uses unsupported package_manager {manager!r}")
        return cls(
            name=name,
            deps=_as_names(raw.get("deps")),
            runtime_deps=_as_names(raw.get("runtime_deps")),
            package_manager=manager,
            description=str(raw.get("description") or ""),
        )


@dataclass(frozen=True)
class PackageBundle:
    name: str
    packages: tuple[str, ...] = ()
    bioconductor: tuple[str, ...] = ()
    description: str = ""

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "PackageBundle":
        raw = _ensure_mapping(data, f"package bundle {name!r}")
        return cls(
            name=name,
            packages=_as_names(raw.get("packages")),
            bioconductor=_as_names(raw.get("bioconductor")),
            description=str(raw.get("description") or ""),
        )


@dataclass(frozen=True)
class ProfileCatalog:
    """Read-only view of ``bundles.yaml``."""

    root: Path
    profiles: Mapping[str, Profile] = field(default_factory=dict)
    library_bundles: Mapping[str, LibraryBundle] = field(default_factory=dict)
    package_bundles: Mapping[str, PackageBundle] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "ProfileCatalog":
        if not path.exists():
            raise ConfigurationError(f"bundle catalog {path} not found; set `bundles_file` in .zzcollab/config.toml")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"unable to read bundle catalog {path}: {exc}") from exc
        raw = _ensure_mapping(data, str(path))
        return cls(
            root=path.parent,
            profiles={
                str(name): Profile.from_dict(str(name), value)
                for name, value in _ensure_mapping(raw.get("profiles"), "profiles").items()
            },
            library_bundles={
                str(name): LibraryBundle.from_dict(str(name), value)
                for name, value in _ensure_mapping(raw.get("library_bundles"), "library_bundles").items()
            },
            package_bundles={
                str(name): PackageBundle.from_dict(str(name), value)
                for name, value in _ensure_mapping(raw.get("package_bundles"), "package_bundles").items()
            },
        )

    def library_bundles_for(self, names: Iterable[str]) -> tuple[LibraryBundle, ...]:
        return tuple(self._lookup(self.library_bundles, names, "library"))

    def package_bundles_for(self, names: Iterable[str]) -> tuple[PackageBundle, ...]:
        return tuple(self._lookup(self.package_bundles, names, "package"))

    def _lookup(self, table: Mapping[str, Any], names: Iterable[str], kind: str) -> list[Any]:
        found = []
        for name in names:
            if name not in table:
                available = ", ".join(sorted(table)) or "none"
                raise ConfigurationError(
                    f"unknown {kind} bundle {name!r} (available: {available}); "
                    f"pick one of these with `--{'libs' if kind == 'library' else 'pkgs'}`"
                )
            found.append(table[name])
        return found


@dataclass(frozen=True)
class UseStaticDefinition:
    path: Path
    profile: str


@dataclass(frozen=True)
class GenerateDefinition:
    base_image: str
    libs: tuple[str, ...]
    pkgs: tuple[str, ...]
    profile: str | None = None


BuildStrategy = UseStaticDefinition | GenerateDefinition


@dataclass(frozen=True)
class ProfileRequest:
    profile: str | None = None
    base_image: str | None = None
    libs: Sequence[str] = ()
    pkgs: Sequence[str] = ()

    @property
    def has_overrides(self) -> bool:
        return bool(self.base_image or self.libs or self.pkgs)


class ProfileResolver:
    """Map a profile name and/or explicit overrides onto a build strategy."""

    def __init__(
        self,
        catalog: ProfileCatalog,
        *,
        unknown_policy: str = "warn",
        default_profile: str = DEFAULT_PROFILE,
    ) -> None:
        if unknown_policy not in UNKNOWN_PROFILE_POLICIES:
            raise ConfigurationError(
                f"unknown_profile must be one of {', '.join(UNKNOWN_PROFILE_POLICIES)}, got {unknown_policy!r}"
            )
        self.catalog = catalog
        self.unknown_policy = unknown_policy
        self.default_profile = default_profile

    def resolve(self, request: ProfileRequest) -> BuildStrategy:
        profile = self._known_profile(request.profile)

        if request.has_overrides:
            base = request.base_image or (profile.base_image if profile else self._default_base())
            libs = tuple(request.libs) or (profile.libs if profile else (smart_libs(base),))
            pkgs = tuple(request.pkgs) or (profile.pkgs if profile else (smart_pkgs(base),))
            return self._generate(base, libs, pkgs, request.profile)

        if profile is None and request.profile is None:
            profile = self._known_profile(self.default_profile)

        if profile is None:
            base = self._default_base()
            return self._generate(base, (smart_libs(base),), (smart_pkgs(base),), request.profile)

        if profile.dockerfile:
            self._check_bundles(profile.libs, profile.pkgs)
            path = self.catalog.root / profile.dockerfile
            if not path.is_file():
                raise ConfigurationError(
                    f"profile {profile.name!r} declares {path} but the file is missing; "
                    "reinstall zzcollab or point `bundles_file` at a complete catalog"
                )
            return UseStaticDefinition(path=path, profile=profile.name)
        return self._generate(profile.base_image, profile.libs, profile.pkgs, profile.name)

    def _known_profile(self, name: str | None) -> Profile | None:
        if not name:
            return None
        profile = self.catalog.profiles.get(name)
        if profile is None and self.unknown_policy == "error":
            available = ", ".join(sorted(self.catalog.profiles)) or "none"
            raise ConfigurationError(f"unknown profile {name!r} (available: {available}); use `--profile <name>`")
        if profile is None:
            logger.warning("unknown profile %r; falling back to default bundles", name)
        return profile

    def _default_base(self) -> str:
        fallback = self.catalog.profiles.get(self.default_profile)
        return fallback.base_image if fallback else DEFAULT_BASE_IMAGE

    def _generate(
        self,
        base: str,
        libs: tuple[str, ...],
        pkgs: tuple[str, ...],
        profile: str | None,
    ) -> GenerateDefinition:
        self._check_bundles(libs, pkgs)
        return GenerateDefinition(base_image=base, libs=libs, pkgs=pkgs, profile=profile)

    def _check_bundles(self, libs: Iterable[str], pkgs: Iterable[str]) -> None:
        self.catalog.library_bundles_for(libs)
        self.catalog.package_bundles_for(pkgs)
