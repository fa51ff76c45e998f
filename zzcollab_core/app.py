"""Application object that wires settings and the command registry together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from zzcollab_core.builtins import register_builtin_commands
from zzcollab_core.features import FeatureRegistry
from zzcollab_core.paths import UserDirs
from zzcollab_core.workspace import SettingsResolver, find_project_root


@dataclass(frozen=True)
class ZZCollabAppStatus:
    project_root: Path
    commands: Sequence[str]


class ZZCollabApp:
    """Entry point that glues project discovery, settings and built-in commands."""

    def __init__(
        self,
        *,
        start_dir: Path | str | None = None,
        user_dirs: UserDirs | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger("zzcollab_core.app")
        self.user_dirs = user_dirs or UserDirs()
        normalized_start = Path(start_dir) if isinstance(start_dir, str) else start_dir
        self.project_root = find_project_root(normalized_start)
        self.settings = SettingsResolver(project_root=self.project_root, user_dirs=self.user_dirs)
        self.feature_registry = FeatureRegistry()
        self._builtins_registered = False

    def _register_builtins(self) -> None:
        if self._builtins_registered:
            return
        register_builtin_commands(self.feature_registry)
        self._builtins_registered = True

    def bootstrap(self) -> ZZCollabAppStatus:
        self._register_builtins()
        self.logger.debug("bootstrapped zzcollab for %s", self.project_root)
        return ZZCollabAppStatus(
            project_root=self.project_root,
            commands=self.feature_registry.names(),
        )
