"""Tests for the crandb registry resolver against a local HTTP server."""

from __future__ import annotations

import requests

from zzcollab_core.deps import FailureKind, RegistryResolver, ResolutionFailure, ResolvedPackage

from conftest import MockCranState


def test_resolve_success_reads_version_hash_and_requirements(cran_registry: MockCranState) -> None:
    cran_registry.add(
        "dplyr",
        "1.1.4",
        Depends={"R": ">= 3.5.0"},
        Imports={"cli": ">= 3.4.0", "R6": "*"},
        LinkingTo="cpp11 (>= 0.4.0)",
    )
    outcome = RegistryResolver(cran_registry.url, timeout=5).resolve("dplyr")

    assert outcome == ResolvedPackage(
        name="dplyr",
        version="1.1.4",
        hash="md5-dplyr-1.1.4",
        repository="CRAN",
        requirements=("cli", "R6", "cpp11"),
    )
    entry = outcome.to_lock_entry()
    assert entry.to_dict()["Requirements"] == ["cli", "R6", "cpp11"]


def test_not_found(cran_registry: MockCranState) -> None:
    outcome = RegistryResolver(cran_registry.url, timeout=5).resolve("pkgX")

    assert isinstance(outcome, ResolutionFailure)
    assert outcome.kind is FailureKind.NOT_FOUND
    assert "renv::install('pkgX')" in outcome.describe()


def test_server_error_is_http_status(cran_registry: MockCranState) -> None:
    cran_registry.respond_raw("glue", 500, b"boom")
    outcome = RegistryResolver(cran_registry.url, timeout=5).resolve("glue")

    assert isinstance(outcome, ResolutionFailure)
    assert outcome.kind is FailureKind.HTTP_STATUS
    assert "500" in outcome.detail


def test_non_json_body_is_malformed(cran_registry: MockCranState) -> None:
    cran_registry.respond_raw("glue", 200, b"<html>maintenance</html>")
    outcome = RegistryResolver(cran_registry.url, timeout=5).resolve("glue")

    assert isinstance(outcome, ResolutionFailure)
    assert outcome.kind is FailureKind.MALFORMED


def test_missing_version(cran_registry: MockCranState) -> None:
    cran_registry.add("glue", "")
    outcome = RegistryResolver(cran_registry.url, timeout=5).resolve("glue")

    assert isinstance(outcome, ResolutionFailure)
    assert outcome.kind is FailureKind.MISSING_VERSION


def test_outcomes_are_memoised(cran_registry: MockCranState) -> None:
    cran_registry.add("glue", "1.7.0")
    resolver = RegistryResolver(cran_registry.url, timeout=5)

    first = resolver.resolve("glue")
    second = resolver.resolve("glue")
    resolver.resolve("missing")
    resolver.resolve("missing")

    assert first is second
    assert cran_registry.requests == ["glue", "missing"]


class _FailingSession:
    def __init__(self) -> None:
        self.calls = 0

    def get(self, url: str, timeout: float) -> requests.Response:
        self.calls += 1
        raise requests.ConnectionError(f"cannot reach {url}")


def test_network_failure_is_reported_once() -> None:
    session = _FailingSession()
    resolver = RegistryResolver("http://registry.invalid", timeout=1, session=session)  # type: ignore[arg-type]

    outcome = resolver.resolve("glue")
    resolver.resolve("glue")

    assert isinstance(outcome, ResolutionFailure)
    assert outcome.kind is FailureKind.NETWORK
    assert session.calls == 1
