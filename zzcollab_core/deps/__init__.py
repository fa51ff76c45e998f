"""DESCRIPTION / renv.lock reconciliation."""

from .description import (
    DEPENDENCY_FIELDS,
    Manifest,
    ManifestEntry,
    load_description,
    parse_dependency_list,
    parse_description,
)
from .lockfile import LockEntry, Lockfile, load_lockfile, parse_lockfile
from .reconciler import ApplyResult, PlanAction, ReconciliationPlan, Reconciler, reconcile
from .resolver import (
    DEFAULT_REGISTRY_URL,
    FailureKind,
    RegistryResolver,
    ResolutionFailure,
    ResolvedPackage,
)
from .staging import apply_lock, commit_staged

__all__ = [
    "DEPENDENCY_FIELDS",
    "DEFAULT_REGISTRY_URL",
    "ApplyResult",
    "FailureKind",
    "LockEntry",
    "Lockfile",
    "Manifest",
    "ManifestEntry",
    "PlanAction",
    "ReconciliationPlan",
    "Reconciler",
    "RegistryResolver",
    "ResolutionFailure",
    "ResolvedPackage",
    "apply_lock",
    "commit_staged",
    "load_description",
    "load_lockfile",
    "parse_dependency_list",
    "parse_description",
    "parse_lockfile",
    "reconcile",
]
