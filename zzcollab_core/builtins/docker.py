"""`zzcollab docker`: render the project Dockerfile and optionally build it."""

from __future__ import annotations

import re
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Mapping

from zzcollab_core.api import zzcommand
from zzcollab_core.build import (
    BuildRequest,
    ProfileRequest,
    UseStaticDefinition,
    render_definition,
    split_bundle_list,
)
from zzcollab_core.context import EngineContext
from zzcollab_core.deps import commit_staged, load_lockfile
from zzcollab_core.errors import ConfigurationError, ManifestError, PersistenceError, RuntimeCommandError

from .commands import _ProjectCommand

_PREFIX = "[zzcollab:docker]"
_TAG_UNSAFE = re.compile(r"[^a-z0-9._-]+")


@zzcommand(name="docker", group="zzcollab")
class DockerCommand(_ProjectCommand):
    """Write the project Dockerfile from a profile or bundle overrides.

    With --build the image is built unless an image built from identical
    Dockerfile and renv.lock content already exists.
    """

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--build", action="store_true", help="Build the image after writing the Dockerfile")
        parser.add_argument("--profile", help="Named profile from bundles.yaml")
        parser.add_argument("--base-image", dest="base_image", help="Override the base image (e.g. rocker/r-ver)")
        parser.add_argument("--libs", help="Comma-separated library bundles")
        parser.add_argument("--pkgs", help="Comma-separated package bundles")
        parser.add_argument("--r-version", dest="r_version", help="R version (default: R.Version from renv.lock)")
        parser.add_argument("--tag", help="Image tag to apply after building or reusing")
        parser.add_argument("--output", help="Dockerfile path (default: <project>/Dockerfile)")
        cls.add_project_argument(parser)

    def run(self, argv: Namespace) -> int:
        context = self._context(argv)
        layout = context.layout

        request = ProfileRequest(
            profile=getattr(argv, "profile", None),
            base_image=getattr(argv, "base_image", None),
            libs=split_bundle_list(getattr(argv, "libs", None)),
            pkgs=split_bundle_list(getattr(argv, "pkgs", None)),
        )
        try:
            resolver = context.profile_resolver()
            strategy = resolver.resolve(request)
            lock = load_lockfile(layout.lockfile)
            r_version = getattr(argv, "r_version", None) or lock.r_version
            definition = render_definition(
                strategy,
                resolver.catalog,
                template_path=context.template_path(),
                r_version=r_version,
                lock_packages=lock.names(),
            )
        except (ConfigurationError, ManifestError) as exc:
            print(f"{_PREFIX} {exc}")
            return 1

        output = Path(argv.output) if getattr(argv, "output", None) else layout.dockerfile
        if not output.is_absolute():
            output = layout.root / output
        try:
            commit_staged({output: definition.text})
        except PersistenceError as exc:
            print(f"{_PREFIX} {exc}")
            return 1
        print(f"{_PREFIX} wrote {output} ({definition.origin})")

        if not getattr(argv, "build", False):
            return 0

        build_args = {"R_VERSION": r_version} if isinstance(strategy, UseStaticDefinition) and r_version else {}
        tag = getattr(argv, "tag", None) or context.settings.get("image_tag") or _default_tag(layout.root)
        try:
            return _build(context, output, definition.text + _build_arg_suffix(build_args), tag, build_args)
        except (RuntimeCommandError, OSError) as exc:
            print(f"{_PREFIX} {exc}")
            return 1


def _default_tag(root: Path) -> str:
    name = _TAG_UNSAFE.sub("-", root.name.lower()).strip("-._") or "project"
    return f"{name}:latest"


def _build_arg_suffix(build_args: Mapping[str, str]) -> str:
    return "".join(f"\n# build-arg {key}={value}" for key, value in sorted(build_args.items()))


def _build(
    context: EngineContext,
    dockerfile: Path,
    cache_input: str,
    tag: str,
    build_args: Mapping[str, str],
) -> int:
    lockfile = context.layout.lockfile
    lock_text = lockfile.read_bytes() if lockfile.exists() else b""
    cache = context.build_cache()
    runtime = context.container_runtime()

    cached = cache.lookup(cache_input, lock_text)
    if cached:
        runtime.tag(cached, tag)
        print(f"{_PREFIX} reusing cached image {cached} as {tag}")
        return 0

    image_id = runtime.build(
        BuildRequest(
            context_dir=context.root,
            dockerfile=dockerfile,
            tags=(tag,),
            labels=cache.build_labels(cache_input, lock_text),
            build_args=build_args,
        )
    )
    record = cache.record(cache_input, lock_text, image_id)
    print(f"{_PREFIX} built {tag} ({image_id}) digest={record.digest}")
    return 0
