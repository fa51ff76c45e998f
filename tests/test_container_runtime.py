"""Tests for the docker CLI wrapper with subprocess stubbed out."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from zzcollab_core.build import BuildRequest, ContainerRuntime, ContainerRuntimeConfig
from zzcollab_core.build import runtime as runtime_module
from zzcollab_core.errors import RuntimeCommandError


class FakeRun:
    def __init__(self, responses: dict[str, tuple[int, str, str]]) -> None:
        self.responses = responses
        self.commands: list[list[str]] = []

    def __call__(self, command, **kwargs):
        self.commands.append(list(command))
        code, stdout, stderr = self.responses.get(command[1], (0, "", ""))
        return subprocess.CompletedProcess(command, code, stdout, stderr)


def _install(monkeypatch: pytest.MonkeyPatch, fake) -> None:
    monkeypatch.setattr(runtime_module.subprocess, "run", fake)


def test_list_images_parses_json_lines(monkeypatch: pytest.MonkeyPatch) -> None:
    lines = "\n".join(
        [
            json.dumps({"ID": "sha256:aaa", "Repository": "myproj", "Tag": "latest"}),
            "not json",
            json.dumps({"ID": "sha256:bbb", "Repository": "zzcollab-cache", "Tag": "abc"}),
        ]
    )
    fake = FakeRun({"image": (0, lines, "")})
    _install(monkeypatch, fake)

    images = ContainerRuntime().list_images()

    assert [image.reference for image in images] == ["myproj:latest", "zzcollab-cache:abc"]
    assert fake.commands[0] == ["docker", "image", "ls", "--no-trunc", "--format", "{{json .}}"]


def test_labels_come_from_inspect(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = json.dumps([{"Id": "sha256:aaa", "Config": {"Labels": {"org.zzcollab.content-digest": "k"}}}])
    _install(monkeypatch, FakeRun({"image": (0, payload, "")}))

    assert ContainerRuntime().labels("sha256:aaa") == {"org.zzcollab.content-digest": "k"}


def test_build_passes_tags_labels_and_args(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeRun({"image": (0, json.dumps([{"Id": "sha256:built"}]), "")})
    _install(monkeypatch, fake)
    runtime = ContainerRuntime(ContainerRuntimeConfig(cli="podman"))

    image_id = runtime.build(
        BuildRequest(
            context_dir=tmp_path,
            dockerfile=tmp_path / "Dockerfile",
            tags=("myproj:latest",),
            labels={"org.zzcollab.content-digest": "k"},
            build_args={"R_VERSION": "4.4.0"},
        )
    )

    assert image_id == "sha256:built"
    build = fake.commands[0]
    assert build[:2] == ["podman", "build"]
    assert ["-t", "myproj:latest"] == build[4:6]
    assert "org.zzcollab.content-digest=k" in build
    assert "R_VERSION=4.4.0" in build
    assert build[-1] == str(tmp_path)
    assert fake.commands[1] == ["podman", "image", "inspect", "myproj:latest"]


def test_build_without_tag_is_rejected(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = FakeRun({})
    _install(monkeypatch, fake)

    with pytest.raises(RuntimeCommandError):
        ContainerRuntime().build(BuildRequest(context_dir=tmp_path, dockerfile=tmp_path / "Dockerfile"))
    assert fake.commands == []


def test_non_zero_exit_raises_with_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeRun({"tag": (1, "", "No such image: abc")}))

    with pytest.raises(RuntimeCommandError, match="No such image"):
        ContainerRuntime().tag("abc", "myproj:latest")


def test_missing_cli_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(command, **kwargs):
        raise FileNotFoundError(command[0])

    _install(monkeypatch, missing)

    with pytest.raises(RuntimeCommandError, match="container_cli"):
        ContainerRuntime().list_images()


def test_timeout_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    def slow(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs.get("timeout"))

    _install(monkeypatch, slow)

    with pytest.raises(RuntimeCommandError, match="timed out"):
        ContainerRuntime().inspect("abc")
