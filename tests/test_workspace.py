"""Tests for project discovery, layout helpers and settings precedence."""

from pathlib import Path

from zzcollab_builtin import default_bundles_path, default_template_path
from zzcollab_core.context import EngineContext
from zzcollab_core.paths import UserDirs
from zzcollab_core.workspace import (
    CONFIG_FILE_NAME,
    STATE_DIR_NAME,
    ProjectLayout,
    SettingsResolver,
    find_project_root,
)


def test_find_project_root_from_nested_dir(tmp_path: Path) -> None:
    project = tmp_path / "project"
    nested = project / "analysis" / "figures"
    nested.mkdir(parents=True)
    (project / "DESCRIPTION").write_text("Package: project\n")

    assert find_project_root(nested) == project.resolve()


def test_find_project_root_by_state_dir(tmp_path: Path) -> None:
    project = tmp_path / "project"
    (project / STATE_DIR_NAME).mkdir(parents=True)
    (project / "R").mkdir()

    assert find_project_root(project / "R") == project.resolve()


def test_find_project_root_falls_back_to_start(tmp_path: Path) -> None:
    start = tmp_path / "empty"
    start.mkdir()

    assert find_project_root(start) == start.resolve()


def test_layout_paths_and_ensure(tmp_path: Path) -> None:
    layout = ProjectLayout.from_root(tmp_path)

    assert layout.description == tmp_path.resolve() / "DESCRIPTION"
    assert layout.lockfile.name == "renv.lock"
    assert layout.apply_lock.parent == layout.state_dir
    assert not layout.state_dir.exists()

    layout.ensure()
    assert layout.state_dir.is_dir()


def test_config_resolution_precedence(tmp_path: Path) -> None:
    user_config_dir = tmp_path / "user-config"
    user_dirs = UserDirs(config_dir_override=user_config_dir)
    user_config_dir.mkdir()
    (user_config_dir / CONFIG_FILE_NAME).write_text('registry_url = "user"\nunknown_profile = "error"\n')

    project_root = tmp_path / "project"
    state_dir = project_root / STATE_DIR_NAME
    state_dir.mkdir(parents=True)
    (state_dir / CONFIG_FILE_NAME).write_text('registry_url = "project"\nlock_timeout_seconds = 3\n')

    base = SettingsResolver(project_root=project_root, user_dirs=user_dirs, env={})
    assert base.get("registry_url") == "project"
    assert base.get("unknown_profile") == "error"
    assert base.get_float("lock_timeout_seconds") == 3.0
    assert base.get("container_cli") == "docker"

    with_env = SettingsResolver(
        project_root=project_root,
        user_dirs=user_dirs,
        env={"ZZCOLLAB_REGISTRY_URL": "env"},
    )
    assert with_env.get("registry_url") == "env"

    with_cli = SettingsResolver(
        project_root=project_root,
        user_dirs=user_dirs,
        cli_overrides={"registry_url": "cli", "container_cli": ""},
        env={"ZZCOLLAB_REGISTRY_URL": "env"},
    )
    assert with_cli.get("registry_url") == "cli"
    assert with_cli.get("container_cli") == "docker"


def test_invalid_config_file_is_ignored(tmp_path: Path) -> None:
    user_dirs = UserDirs(config_dir_override=tmp_path / "user")
    state_dir = tmp_path / STATE_DIR_NAME
    state_dir.mkdir()
    (state_dir / CONFIG_FILE_NAME).write_text("registry_url = [unterminated\n")

    settings = SettingsResolver(project_root=tmp_path, user_dirs=user_dirs, env={})
    assert settings.get("registry_url") == "https://crandb.r-pkg.org"


def test_numeric_and_path_settings(tmp_path: Path) -> None:
    settings = SettingsResolver(
        project_root=tmp_path,
        user_dirs=UserDirs(config_dir_override=tmp_path / "user"),
        env={"ZZCOLLAB_REGISTRY_TIMEOUT": "soon", "ZZCOLLAB_BUNDLES_FILE": "config/bundles.yaml"},
    )

    assert settings.get_float("registry_timeout") == 10.0
    assert settings.get_path("bundles_file") == tmp_path / "config" / "bundles.yaml"
    assert settings.get_path("templates_dir") is None


def test_engine_context_uses_bundled_catalog_by_default(tmp_path: Path) -> None:
    (tmp_path / "DESCRIPTION").write_text("Package: project\n")
    context = EngineContext.create(
        tmp_path,
        user_dirs=UserDirs(config_dir_override=tmp_path / "user"),
        env={},
    )

    assert context.root == tmp_path.resolve()
    assert context.bundles_path() == default_bundles_path()
    assert context.template_path() == default_template_path()
    assert context.registry_resolver().base_url == "https://crandb.r-pkg.org"
    assert context.registry_resolver() is context.registry_resolver()
    assert context.container_runtime().config.cli == "docker"


def test_engine_context_settings_overrides(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    context = EngineContext.create(
        tmp_path,
        overrides={"templates_dir": str(templates), "container_cli": "podman"},
        user_dirs=UserDirs(config_dir_override=tmp_path / "user"),
        env={"ZZCOLLAB_REGISTRY_URL": "http://localhost:9999/"},
    )

    assert context.template_path() == templates / "Dockerfile.base.template"
    assert context.registry_resolver().base_url == "http://localhost:9999"
    assert context.container_runtime().config.cli == "podman"
