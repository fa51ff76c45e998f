"""Dependency reconciliation and build resolution engine for R research projects."""

from .app import ZZCollabApp
from .context import EngineContext
from .errors import (
    ConfigurationError,
    LockTimeoutError,
    ManifestError,
    PersistenceError,
    RuntimeCommandError,
    ZZCollabError,
)
from .paths import UserDirs
from .workspace import ProjectLayout, SettingsResolver, find_project_root

__version__ = "0.1.0"

__all__ = [
    "ZZCollabApp",
    "EngineContext",
    "ZZCollabError",
    "ManifestError",
    "PersistenceError",
    "LockTimeoutError",
    "ConfigurationError",
    "RuntimeCommandError",
    "UserDirs",
    "ProjectLayout",
    "SettingsResolver",
    "find_project_root",
]
