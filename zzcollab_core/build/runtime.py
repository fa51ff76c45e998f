"""Container runtime wrapper built on top of the docker CLI."""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from zzcollab_core.errors import RuntimeCommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerRuntimeConfig:
    cli: str = "docker"
    timeout_seconds: float = 60.0
    build_timeout_seconds: float = 3600.0


@dataclass(frozen=True)
class ImageSummary:
    id: str
    repository: str
    tag: str

    @property
    def reference(self) -> str:
        return f"{self.repository}:{self.tag}"


@dataclass(frozen=True)
class BuildRequest:
    context_dir: Path
    dockerfile: Path
    tags: tuple[str, ...] = ()
    labels: Mapping[str, str] = field(default_factory=dict)
    build_args: Mapping[str, str] = field(default_factory=dict)


class ContainerRuntime:
    """Thin docker CLI wrapper: list, inspect, tag and build images."""

    def __init__(self, config: ContainerRuntimeConfig | None = None) -> None:
        self.config = config or ContainerRuntimeConfig()

    def list_images(self) -> list[ImageSummary]:
        result = self._run(["image", "ls", "--no-trunc", "--format", "{{json .}}"])
        images: list[ImageSummary] = []
        for line in (result.stdout or "").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("ignoring unparsable image line: %s", line)
                continue
            images.append(
                ImageSummary(
                    id=str(payload.get("ID", "")),
                    repository=str(payload.get("Repository", "")),
                    tag=str(payload.get("Tag", "")),
                )
            )
        return images

    def inspect(self, image: str) -> dict[str, Any]:
        result = self._run(["image", "inspect", image])
        try:
            payload = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise RuntimeCommandError(f"unable to parse `{self.config.cli} image inspect {image}` output") from exc
        if not isinstance(payload, list) or not payload or not isinstance(payload[0], dict):
            raise RuntimeCommandError(f"`{self.config.cli} image inspect {image}` returned no image")
        return payload[0]

    def labels(self, image: str) -> dict[str, str]:
        config = self.inspect(image).get("Config") or {}
        labels = config.get("Labels") or {}
        return {str(key): str(value) for key, value in labels.items()}

    def tag(self, image: str, reference: str) -> None:
        self._run(["tag", image, reference])

    def build(self, request: BuildRequest) -> str:
        """Run ``docker build`` and return the resulting image id."""
        if not request.tags:
            raise RuntimeCommandError("docker build needs at least one tag to locate the built image")
        command = ["build", "-f", str(request.dockerfile)]
        for tag in request.tags:
            command += ["-t", tag]
        for key, value in sorted(request.labels.items()):
            command += ["--label", f"{key}={value}"]
        for key, value in sorted(request.build_args.items()):
            command += ["--build-arg", f"{key}={value}"]
        command.append(str(request.context_dir))
        self._run(command, timeout=self.config.build_timeout_seconds, capture=False)
        return str(self.inspect(request.tags[0]).get("Id", ""))

    def _run(
        self,
        args: list[str],
        *,
        timeout: float | None = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        command = [self.config.cli, *args]
        limit = max(float(timeout or self.config.timeout_seconds), 1.0)
        logger.debug("runtime command cmd=%s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                check=False,
                capture_output=capture,
                text=True,
                timeout=limit,
            )
        except FileNotFoundError as exc:
            raise RuntimeCommandError(
                f"{self.config.cli} CLI not found. Install it or set `container_cli` in .zzcollab/config.toml."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise RuntimeCommandError(f"{self.config.cli} command timed out after {limit:.1f}s") from exc
        if result.returncode != 0:
            raise RuntimeCommandError(_format_failure(command, result.returncode, result.stderr))
        return result


def _format_failure(command: list[str], code: int, stderr: str | None) -> str:
    detail = (stderr or "").strip()
    joined = " ".join(command)
    if detail:
        return f"container command failed (exit={code}) cmd='{joined}' err='{detail}'"
    return f"container command failed (exit={code}) cmd='{joined}'"
