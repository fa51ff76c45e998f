"""`zzcollab validate`: keep code, DESCRIPTION and renv.lock in agreement."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace
from typing import Sequence

from zzcollab_core.api import zzcommand
from zzcollab_core.deps import (
    ApplyResult,
    Reconciler,
    ReconciliationPlan,
    load_description,
    load_lockfile,
)
from zzcollab_core.errors import ManifestError, PersistenceError
from zzcollab_core.scan import STANDARD_DIRS, STRICT_DIRS, DependencyScanner

from .commands import _ProjectCommand

_PREFIX = "[zzcollab:validate]"


@zzcommand(name="validate", group="zzcollab")
class ValidateCommand(_ProjectCommand):
    """Check that every package used in code is declared and locked.

    Scans R/, scripts/ and analysis/ (plus tests/, vignettes/ and inst/ with
    --scan-all), compares the result with DESCRIPTION and renv.lock, and with
    --fix adds what is missing using registry metadata.
    """

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("--fix", action="store_true", help="Add missing packages to DESCRIPTION and renv.lock")
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Treat renv.lock gaps and registry failures as errors",
        )
        parser.add_argument(
            "--scan-all",
            action="store_true",
            dest="scan_all",
            help="Also scan tests/, vignettes/ and inst/",
        )
        cls.add_project_argument(parser)

    def run(self, argv: Namespace) -> int:
        context = self._context(argv)
        layout = context.layout
        strict = bool(getattr(argv, "strict", False))

        try:
            manifest = load_description(layout.description)
            lock = load_lockfile(layout.lockfile)
        except ManifestError as exc:
            print(f"{_PREFIX} {exc}")
            return 1

        exclude = {manifest.package} if manifest.package else set()
        scanner = DependencyScanner(
            directories=STRICT_DIRS if getattr(argv, "scan_all", False) else STANDARD_DIRS,
            exclude=frozenset(exclude),
        )
        scan = scanner.scan(layout.root)
        for warning in scan.warnings:
            print(f"{_PREFIX} warning: skipped unreadable file {warning}")
        print(f"{_PREFIX} scanned {scan.files_scanned} file(s), found {len(scan.names)} package(s)")

        reconciler = Reconciler(
            context.registry_resolver(),
            locker=lambda: context.apply_lock("validate"),
            exclude=exclude,
        )
        plan = reconciler.reconcile(scan.names, manifest, lock)
        _print_orphans(plan.orphans)

        if plan.is_empty:
            print(f"{_PREFIX} DESCRIPTION and renv.lock cover all referenced packages")
            return 0

        if not getattr(argv, "fix", False):
            return _report_drift(plan, strict)

        try:
            result = reconciler.apply(plan, layout.description, layout.lockfile)
        except (PersistenceError, ManifestError) as exc:
            print(f"{_PREFIX} {exc}")
            print(f"{_PREFIX} DESCRIPTION and renv.lock were not modified; rerun `zzcollab validate --fix`")
            return 1
        return _report_applied(result, strict)


def _print_orphans(orphans: Sequence[str]) -> None:
    if not orphans:
        return
    print(f"{_PREFIX} renv.lock entries not required by DESCRIPTION (left untouched): {', '.join(orphans)}")


def _report_drift(plan: ReconciliationPlan, strict: bool) -> int:
    if plan.to_manifest:
        print(f"{_PREFIX} missing from DESCRIPTION: {', '.join(plan.to_manifest)}")
    if plan.to_lock:
        level = "error" if strict else "warning"
        print(f"{_PREFIX} {level}: missing from renv.lock: {', '.join(plan.to_lock)}")
    print(f"{_PREFIX} run `zzcollab validate --fix` to add them")
    return 1 if plan.to_manifest or (strict and plan.to_lock) else 0


def _report_applied(result: ApplyResult, strict: bool) -> int:
    if result.added_to_manifest:
        print(f"{_PREFIX} added to DESCRIPTION Imports: {', '.join(result.added_to_manifest)}")
    if result.added_to_lock:
        print(f"{_PREFIX} added to renv.lock: {', '.join(result.added_to_lock)}")
    level = "error" if strict else "warning"
    for failure in result.failures:
        print(f"{_PREFIX} {level}: could not resolve {failure.describe()}")
    if result.failures and strict:
        return 1
    return 0
