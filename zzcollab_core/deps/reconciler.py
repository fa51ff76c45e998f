"""Diff scanned packages against DESCRIPTION and renv.lock and repair drift."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Mapping, Protocol

from zzcollab_core.scan import BASE_PACKAGES

from .description import Manifest, load_description
from .lockfile import LockEntry, Lockfile, load_lockfile
from .resolver import ResolutionFailure, ResolutionOutcome, ResolvedPackage
from .staging import commit_staged

logger = logging.getLogger(__name__)

# renv records itself in the lockfile without being a declared dependency.
_IMPLICIT_LOCK_ROOTS = frozenset({"renv"})


class PlanAction(str, Enum):
    ADD_TO_MANIFEST = "add-to-manifest"
    ADD_TO_LOCK = "add-to-lock"
    NO_OP = "no-op"
    FLAGGED_ORPHAN = "flagged-orphan"


@dataclass(frozen=True)
class ReconciliationPlan:
    actions: Mapping[str, frozenset[PlanAction]] = field(default_factory=dict)

    def _names(self, action: PlanAction) -> tuple[str, ...]:
        return tuple(sorted(name for name, kinds in self.actions.items() if action in kinds))

    @property
    def to_manifest(self) -> tuple[str, ...]:
        return self._names(PlanAction.ADD_TO_MANIFEST)

    @property
    def to_lock(self) -> tuple[str, ...]:
        return self._names(PlanAction.ADD_TO_LOCK)

    @property
    def orphans(self) -> tuple[str, ...]:
        return self._names(PlanAction.FLAGGED_ORPHAN)

    @property
    def is_empty(self) -> bool:
        """True when nothing would be written; orphan flags are informational."""
        return not self.to_manifest and not self.to_lock


@dataclass(frozen=True)
class ApplyResult:
    added_to_manifest: tuple[str, ...] = ()
    added_to_lock: tuple[str, ...] = ()
    failures: tuple[ResolutionFailure, ...] = ()
    orphans: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


class Resolver(Protocol):
    def resolve(self, name: str) -> ResolutionOutcome: ...


def _reachable(roots: Iterable[str], packages: Mapping[str, LockEntry]) -> set[str]:
    seen: set[str] = set()
    pending = [name for name in roots if name in packages]
    while pending:
        name = pending.pop()
        if name in seen:
            continue
        seen.add(name)
        pending.extend(req for req in packages[name].requirements if req in packages and req not in seen)
    return seen


def reconcile(
    scanned: Iterable[str],
    manifest: Manifest,
    lock: Lockfile,
    *,
    exclude: Iterable[str] = (),
) -> ReconciliationPlan:
    """Compute the edits that bring ``manifest`` and ``lock`` in line with ``scanned``.

    Pure: reads nothing from disk and always yields the same plan for the same
    inputs. ``R``, base packages, the manifest's own package and ``exclude``
    are never added anywhere.
    """
    ignored = set(BASE_PACKAGES) | set(exclude)
    if manifest.package:
        ignored.add(manifest.package)

    declared = {name for name in manifest.dependency_names() if name not in ignored}
    packages = lock.packages
    actions: dict[str, set[PlanAction]] = {}

    for name in scanned:
        if name in ignored:
            continue
        actions.setdefault(name, set())
        if name not in declared:
            actions[name].add(PlanAction.ADD_TO_MANIFEST)

    wanted = declared | set(actions)
    for name in wanted:
        kinds = actions.setdefault(name, set())
        if name not in packages:
            kinds.add(PlanAction.ADD_TO_LOCK)

    reachable = _reachable(wanted | _IMPLICIT_LOCK_ROOTS, packages)
    for name in packages:
        kinds = actions.setdefault(name, set())
        if name not in reachable:
            kinds.add(PlanAction.FLAGGED_ORPHAN)

    for kinds in actions.values():
        if not kinds:
            kinds.add(PlanAction.NO_OP)
    return ReconciliationPlan(actions={name: frozenset(kinds) for name, kinds in actions.items()})


class Reconciler:
    """Apply reconciliation plans to DESCRIPTION and renv.lock on disk.

    ``locker`` returns the context manager guarding the read-modify-write
    region; ``writer`` persists ``{path: text}`` all-or-nothing.
    """

    def __init__(
        self,
        resolver: Resolver,
        *,
        locker: Callable[[], AbstractContextManager[object]] | None = None,
        writer: Callable[[Mapping[Path, str]], None] = commit_staged,
        exclude: Iterable[str] = (),
    ) -> None:
        self.resolver = resolver
        self.locker = locker or nullcontext
        self.writer = writer
        self.exclude = frozenset(exclude)

    def reconcile(self, scanned: Iterable[str], manifest: Manifest, lock: Lockfile) -> ReconciliationPlan:
        return reconcile(scanned, manifest, lock, exclude=self.exclude)

    def apply(self, plan: ReconciliationPlan, description_path: Path, lock_path: Path) -> ApplyResult:
        if plan.is_empty:
            return ApplyResult(orphans=plan.orphans)

        with self.locker():
            # Another invocation may have written since the plan was computed.
            manifest = load_description(description_path)
            lock = load_lockfile(lock_path)
            declared = manifest.dependency_names()
            present = lock.names()

            manifest_additions = [name for name in plan.to_manifest if name not in declared]
            resolved: list[ResolvedPackage] = []
            failures: list[ResolutionFailure] = []
            for name in plan.to_lock:
                if name in present:
                    continue
                outcome = self.resolver.resolve(name)
                if isinstance(outcome, ResolutionFailure):
                    logger.warning("skipping lock entry for %s: %s", name, outcome.detail)
                    failures.append(outcome)
                    continue
                resolved.append(outcome)

            writes: dict[Path, str] = {}
            new_manifest = manifest.with_imports(manifest_additions)
            if manifest_additions:
                writes[description_path] = new_manifest.render()
            new_lock = lock.with_entries(package.to_lock_entry() for package in resolved)
            if resolved:
                writes[lock_path] = new_lock.to_text()
            if writes:
                self.writer(writes)

        final = reconcile((), new_manifest, new_lock, exclude=self.exclude)
        return ApplyResult(
            added_to_manifest=tuple(manifest_additions),
            added_to_lock=tuple(package.name for package in resolved),
            failures=tuple(failures),
            orphans=final.orphans,
        )
