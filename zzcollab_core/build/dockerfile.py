"""Turn a build strategy into Dockerfile text."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Iterable, Sequence

from zzcollab_core.errors import ConfigurationError

from .profiles import (
    BuildStrategy,
    GenerateDefinition,
    LibraryBundle,
    PackageBundle,
    ProfileCatalog,
    UseStaticDefinition,
)
from .sysdeps import build_deps_for, runtime_deps_for

logger = logging.getLogger(__name__)

POSIT_CRAN_MIRROR = "https://packagemanager.posit.co/cran/__linux__/jammy/latest"
_INDENT = "    "


@dataclass(frozen=True)
class BuildDefinition:
    text: str
    origin: str

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()


def _continued(lines: Sequence[str], indent: str) -> str:
    return " \\\n".join(f"{indent}{line}" for line in lines)


def system_install_command(deps: Iterable[str], package_manager: str, label: str) -> str:
    packages = sorted(set(deps))
    if not packages:
        return f"# No additional {label} for this configuration"
    listing = _continued(packages, _INDENT * 2)
    if package_manager == "apk":
        return f"RUN apk add --no-cache \\\n{listing}"
    return (
        "RUN apt-get update && \\\n"
        f"{_INDENT}apt-get install -y --no-install-recommends \\\n"
        f"{listing} && \\\n"
        f"{_INDENT}rm -rf /var/lib/apt/lists/*"
    )


def r_install_command(base_image: str, packages: Sequence[str], bioconductor: Sequence[str]) -> str:
    cran = list(dict.fromkeys(packages))
    bioc = list(dict.fromkeys(bioconductor))
    if bioc and "BiocManager" not in cran:
        cran.append("BiocManager")
    if not cran:
        return "# No R packages requested"

    if base_image.startswith("rocker/"):
        command = f"RUN install2.r --error --skipinstalled {' '.join(cran)} && \\\n{_INDENT}rm -rf /tmp/downloaded_packages"
    else:
        quoted = ", ".join(f"'{name}'" for name in cran)
        command = f"RUN R -e \"install.packages(c({quoted}), repos = '{POSIT_CRAN_MIRROR}')\""
    if bioc:
        quoted = ", ".join(f"'{name}'" for name in bioc)
        command += f" && \\\n{_INDENT}R -e \"BiocManager::install(c({quoted}), update = FALSE, ask = FALSE)\""
    return command


def _primary_manager(bundles: Sequence[LibraryBundle]) -> str:
    managers = {bundle.package_manager for bundle in bundles}
    return "apk" if managers == {"apk"} else "apt-get"


def render_generated(
    strategy: GenerateDefinition,
    catalog: ProfileCatalog,
    *,
    template_path: Path,
    r_version: str,
    lock_packages: Iterable[str] = (),
) -> str:
    try:
        template = Template(template_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(
            f"unable to read Dockerfile template {template_path}: {exc}; check `templates_dir` in .zzcollab/config.toml"
        ) from exc

    libs: Sequence[LibraryBundle] = catalog.library_bundles_for(strategy.libs)
    pkgs: Sequence[PackageBundle] = catalog.package_bundles_for(strategy.pkgs)
    manager = _primary_manager(libs)

    build_deps = [dep for bundle in libs for dep in bundle.deps]
    runtime_deps = [dep for bundle in libs for dep in bundle.runtime_deps]
    lock_packages = tuple(lock_packages)
    if manager == "apt-get":
        build_deps.extend(build_deps_for(lock_packages))
        runtime_deps.extend(runtime_deps_for(lock_packages))
    elif lock_packages:
        logger.debug("skipping Debian system dependencies for apk-based image %s", strategy.base_image)

    substitutions = {
        "BASE_IMAGE": strategy.base_image,
        "R_VERSION": r_version,
        "LIBS_BUNDLE_LIST": ",".join(strategy.libs),
        "PKGS_BUNDLE_LIST": ",".join(strategy.pkgs),
        "CUSTOM_SYSTEM_DEPS_INSTALL": system_install_command(build_deps, manager, "build dependencies"),
        "CUSTOM_RUNTIME_LIBS_INSTALL": system_install_command(runtime_deps, manager, "runtime libraries"),
        "CUSTOM_R_PACKAGES_INSTALL": r_install_command(
            strategy.base_image,
            [name for bundle in pkgs for name in bundle.packages],
            [name for bundle in pkgs for name in bundle.bioconductor],
        ),
    }
    try:
        return template.substitute(substitutions)
    except (KeyError, ValueError) as exc:
        raise ConfigurationError(f"Dockerfile template {template_path} has an unknown placeholder: {exc}") from exc


def render_definition(
    strategy: BuildStrategy,
    catalog: ProfileCatalog,
    *,
    template_path: Path,
    r_version: str | None,
    lock_packages: Iterable[str] = (),
) -> BuildDefinition:
    """Produce the Dockerfile for ``strategy``.

    Static profiles are copied verbatim. Generated definitions need an R
    version, taken from ``--r-version`` or renv.lock by the caller. Nothing
    time-dependent is written so identical inputs give identical text.
    """
    if isinstance(strategy, UseStaticDefinition):
        try:
            text = strategy.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"unable to read static Dockerfile {strategy.path}: {exc}") from exc
        return BuildDefinition(text=text, origin=f"static:{strategy.path.name}")
    if isinstance(strategy, GenerateDefinition):
        if not r_version:
            raise ConfigurationError(
                "no R version available: renv.lock has no R.Version; "
                "run `R -e \"renv::init()\"` or pass `--r-version 4.4.0`"
            )
        text = render_generated(
            strategy,
            catalog,
            template_path=template_path,
            r_version=r_version,
            lock_packages=lock_packages,
        )
        return BuildDefinition(text=text, origin=f"generate:{strategy.profile or 'custom'}")
    raise TypeError(f"unsupported build strategy {strategy!r}")
