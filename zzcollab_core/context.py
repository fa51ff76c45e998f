"""Per-invocation wiring of settings, project files and collaborators."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from zzcollab_builtin import BASE_TEMPLATE_FILENAME, default_bundles_path, default_template_path

from .build import BuildCache, ContainerRuntime, ContainerRuntimeConfig, ProfileCatalog, ProfileResolver
from .build.cache import DEFAULT_CACHE_REPOSITORY
from .deps import RegistryResolver, apply_lock
from .paths import UserDirs
from .workspace import ProjectLayout, SettingsResolver, find_project_root


@dataclass
class EngineContext:
    """Everything a command needs, built once and passed down explicitly.

    ``resolver`` and ``runtime`` may be injected (tests use fakes); otherwise
    they are created from settings on first use.
    """

    layout: ProjectLayout
    settings: SettingsResolver
    resolver: RegistryResolver | None = None
    runtime: ContainerRuntime | None = None

    @classmethod
    def create(
        cls,
        start_dir: Path | str | None = None,
        *,
        overrides: Mapping[str, str] | None = None,
        user_dirs: UserDirs | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "EngineContext":
        root = find_project_root(Path(start_dir) if start_dir else None)
        settings = SettingsResolver(
            project_root=root,
            user_dirs=user_dirs,
            cli_overrides=overrides,
            env=env,
        )
        return cls(layout=ProjectLayout.from_root(root), settings=settings)

    @property
    def root(self) -> Path:
        return self.layout.root

    def registry_resolver(self) -> RegistryResolver:
        if self.resolver is None:
            self.resolver = RegistryResolver(
                str(self.settings.get("registry_url")),
                timeout=self.settings.get_float("registry_timeout"),
            )
        return self.resolver

    def container_runtime(self) -> ContainerRuntime:
        if self.runtime is None:
            self.runtime = ContainerRuntime(
                ContainerRuntimeConfig(
                    cli=str(self.settings.get("container_cli")),
                    build_timeout_seconds=self.settings.get_float("build_timeout_seconds"),
                )
            )
        return self.runtime

    def build_cache(self) -> BuildCache:
        repository = self.settings.get("cache_repository") or DEFAULT_CACHE_REPOSITORY
        return BuildCache(self.container_runtime(), repository=repository)

    def bundles_path(self) -> Path:
        return self.settings.get_path("bundles_file") or default_bundles_path()

    def template_path(self) -> Path:
        templates_dir = self.settings.get_path("templates_dir")
        return templates_dir / BASE_TEMPLATE_FILENAME if templates_dir else default_template_path()

    def catalog(self) -> ProfileCatalog:
        return ProfileCatalog.load(self.bundles_path())

    def profile_resolver(self) -> ProfileResolver:
        return ProfileResolver(self.catalog(), unknown_policy=str(self.settings.get("unknown_profile")))

    def apply_lock(self, command: str) -> AbstractContextManager[None]:
        self.layout.ensure()
        return apply_lock(
            self.layout.apply_lock,
            timeout_seconds=self.settings.get_float("lock_timeout_seconds"),
            stale_seconds=self.settings.get_float("lock_stale_seconds"),
            command=command,
        )
