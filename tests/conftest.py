"""Shared fixtures: a threaded mock crandb registry and small project trees."""

from __future__ import annotations

import http.server
import json
import threading
import textwrap
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest


class MockCranState:
    """In-memory package metadata served the way crandb serves it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.packages: Dict[str, Dict[str, Any]] = {}
        self.raw_bodies: Dict[str, tuple[int, bytes]] = {}
        self.requests: list[str] = []
        self.url = ""

    def add(self, name: str, version: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {
            "Package": name,
            "Version": version,
            "MD5sum": f"md5-{name}-{version}",
            "Repository": "CRAN",
        }
        payload.update(fields)
        with self._lock:
            self.packages[name] = payload

    def respond_raw(self, name: str, status: int, body: bytes) -> None:
        with self._lock:
            self.raw_bodies[name] = (status, body)

    def record(self, name: str) -> None:
        with self._lock:
            self.requests.append(name)


class _MockCranRequestHandler(http.server.BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _write(self, status: int, data: bytes, content_type: str = "application/json") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _state(self) -> MockCranState:
        return self.server.state  # type: ignore[attr-defined]

    def do_GET(self) -> None:
        name = self.path.split("?", 1)[0].strip("/")
        state = self._state()
        state.record(name)
        if name in state.raw_bodies:
            status, body = state.raw_bodies[name]
            self._write(status, body, content_type="text/plain")
            return
        payload = state.packages.get(name)
        if payload is None:
            self._write(404, json.dumps({"error": "not_found", "reason": "missing"}).encode("utf-8"))
            return
        self._write(200, json.dumps(payload).encode("utf-8"))

    def log_message(self, *_: Any) -> None:  # pragma: no cover - avoid noisy logs
        return


class _ThreadingHTTPServer(http.server.ThreadingHTTPServer):
    allow_reuse_address = True
    daemon_threads = True


@pytest.fixture
def cran_registry(monkeypatch: pytest.MonkeyPatch) -> Iterator[MockCranState]:
    for key in ("NO_PROXY", "no_proxy"):
        monkeypatch.setenv(key, "127.0.0.1,localhost")
    server = _ThreadingHTTPServer(("127.0.0.1", 0), _MockCranRequestHandler)
    state = MockCranState()
    server.state = state  # type: ignore[attr-defined]
    host, port = server.server_address[:2]
    state.url = f"http://{host}:{port}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield state
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


DESCRIPTION_TEMPLATE = """\
Package: myproj
Title: Example Research Compendium
Version: 0.1.0
Depends:
    R (>= 4.1.0)
{imports}License: MIT
"""


def write_description(root: Path, imports: list[str] | None = None) -> Path:
    block = ""
    if imports:
        block = "Imports:\n" + ",\n".join(f"    {name}" for name in imports) + "\n"
    path = root / "DESCRIPTION"
    path.write_text(DESCRIPTION_TEMPLATE.format(imports=block), encoding="utf-8")
    return path


def write_lockfile(root: Path, packages: Dict[str, Dict[str, Any]] | None = None, r_version: str = "4.4.0") -> Path:
    document = {
        "R": {
            "Version": r_version,
            "Repositories": [{"Name": "CRAN", "URL": "https://cloud.r-project.org"}],
        },
        "Packages": packages or {},
    }
    path = root / "renv.lock"
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    return path


def write_r_file(root: Path, relative: str, body: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path
