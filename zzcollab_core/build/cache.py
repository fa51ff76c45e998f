"""Content-addressed reuse of previously built images."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Protocol

from .runtime import ImageSummary

logger = logging.getLogger(__name__)

DIGEST_LABEL = "org.zzcollab.content-digest"
DEFAULT_CACHE_REPOSITORY = "zzcollab-cache"
_SEPARATOR = b"\x00--renv.lock--\x00"


class ImageStore(Protocol):
    def list_images(self) -> list[ImageSummary]: ...

    def labels(self, image: str) -> dict[str, str]: ...

    def tag(self, image: str, reference: str) -> None: ...


@dataclass(frozen=True)
class CacheRecord:
    digest: str
    artifact_id: str


def _as_bytes(content: str | bytes) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


def cache_key(definition: str | bytes, lock: str | bytes) -> str:
    """sha256 over the build definition, a fixed separator and the lockfile."""
    digest = hashlib.sha256()
    digest.update(_as_bytes(definition))
    digest.update(_SEPARATOR)
    digest.update(_as_bytes(lock))
    return digest.hexdigest()


class BuildCache:
    """Find and mark images by the digest of the inputs that produced them.

    Only the Dockerfile text and renv.lock feed the key; files copied into
    the image by the Dockerfile do not.
    """

    def __init__(
        self,
        runtime: ImageStore,
        *,
        label: str = DIGEST_LABEL,
        repository: str = DEFAULT_CACHE_REPOSITORY,
    ) -> None:
        self.runtime = runtime
        self.label = label
        self.repository = repository

    def cache_key(self, definition: str | bytes, lock: str | bytes) -> str:
        return cache_key(definition, lock)

    def cache_tag(self, key: str) -> str:
        return f"{self.repository}:{key}"

    def build_labels(self, definition: str | bytes, lock: str | bytes) -> dict[str, str]:
        return {self.label: self.cache_key(definition, lock)}

    def lookup(self, definition: str | bytes, lock: str | bytes) -> str | None:
        key = self.cache_key(definition, lock)
        tag = self.cache_tag(key)
        images = self.runtime.list_images()
        for image in images:
            if image.reference == tag:
                logger.info("cache hit by tag %s -> %s", tag, image.id)
                return image.id

        checked: set[str] = set()
        for image in images:
            if not image.id or image.id in checked:
                continue
            checked.add(image.id)
            if self.runtime.labels(image.id).get(self.label) == key:
                logger.info("cache hit by label %s -> %s", key, image.id)
                return image.id
        logger.info("cache miss for %s", key)
        return None

    def record(self, definition: str | bytes, lock: str | bytes, artifact_id: str) -> CacheRecord:
        key = self.cache_key(definition, lock)
        self.runtime.tag(artifact_id, self.cache_tag(key))
        return CacheRecord(digest=key, artifact_id=artifact_id)
