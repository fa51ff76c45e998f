"""Project layout helpers and layered settings resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import tomllib

from .paths import UserDirs

STATE_DIR_NAME = ".zzcollab"
CONFIG_FILE_NAME = "config.toml"
DESCRIPTION_FILE_NAME = "DESCRIPTION"
LOCKFILE_NAME = "renv.lock"
DOCKERFILE_NAME = "Dockerfile"
APPLY_LOCK_NAME = "apply.lock"

_DEFAULTS: dict[str, str] = {
    "registry_url": "https://crandb.r-pkg.org",
    "registry_timeout": "10",
    "unknown_profile": "warn",
    "lock_timeout_seconds": "10",
    "lock_stale_seconds": "600",
    "container_cli": "docker",
    "build_timeout_seconds": "3600",
    "cache_repository": "zzcollab-cache",
    "log_level": "WARNING",
}
_ENV_PREFIX = "ZZCOLLAB_"


def _load_config_from_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return {key: str(value) for key, value in data.items() if not isinstance(value, dict)}


@dataclass(frozen=True)
class ProjectLayout:
    """Files of an R research project that the engine reads and writes."""

    root: Path
    state_dir: Path
    config_file: Path
    description: Path
    lockfile: Path
    dockerfile: Path
    apply_lock: Path

    @classmethod
    def from_root(cls, root: Path) -> "ProjectLayout":
        root = root.resolve()
        state_dir = root / STATE_DIR_NAME
        return cls(
            root=root,
            state_dir=state_dir,
            config_file=state_dir / CONFIG_FILE_NAME,
            description=root / DESCRIPTION_FILE_NAME,
            lockfile=root / LOCKFILE_NAME,
            dockerfile=root / DOCKERFILE_NAME,
            apply_lock=state_dir / APPLY_LOCK_NAME,
        )

    def ensure(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)


def find_project_root(start_dir: Path | None = None) -> Path:
    """Walk parents looking for a DESCRIPTION or .zzcollab directory."""
    start = (Path(start_dir) if start_dir else Path.cwd()).resolve()
    for current in (start, *start.parents):
        if (current / DESCRIPTION_FILE_NAME).is_file() or (current / STATE_DIR_NAME).is_dir():
            return current
    return start


@dataclass
class SettingsResolver:
    """Resolve settings while honoring CLI, env, project, user, defaults order."""

    project_root: Path | None = None
    user_dirs: UserDirs | None = None
    cli_overrides: Mapping[str, str] | None = None
    env: Mapping[str, str] | None = None
    defaults: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        self.user_dirs = self.user_dirs or UserDirs()
        self.cli_overrides = {
            key: value for key, value in dict(self.cli_overrides or {}).items() if value not in (None, "")
        }
        self.env = self.env if self.env is not None else os.environ
        base_defaults = dict(_DEFAULTS)
        if self.defaults:
            base_defaults.update(self.defaults)
        self.defaults = base_defaults

    # ---------- Public API ----------

    def get(self, key: str) -> str | None:
        """Return the value for `key` using CLI, env, project, user, defaults order."""
        if value := self.cli_overrides.get(key):
            return str(value)
        if value := self.env.get(_ENV_PREFIX + key.upper()):
            return value
        if value := self._project_layer().get(key):
            return value
        if value := self._user_layer().get(key):
            return value
        return self.defaults.get(key)

    def get_float(self, key: str) -> float:
        value = self.get(key)
        try:
            return float(value) if value is not None else 0.0
        except ValueError:
            return float(_DEFAULTS.get(key, "0"))

    def get_path(self, key: str) -> Path | None:
        value = self.get(key)
        if not value:
            return None
        path = Path(value).expanduser()
        if not path.is_absolute() and self.project_root is not None:
            path = self.project_root / path
        return path

    # ---------- Internal helpers ----------

    def _project_layer(self) -> dict[str, str]:
        if self.project_root is None:
            return {}
        return _load_config_from_file(ProjectLayout.from_root(self.project_root).config_file)

    def _user_layer(self) -> dict[str, str]:
        return _load_config_from_file(self.user_dirs.config_dir() / CONFIG_FILE_NAME)

