"""Tests for content-addressed image reuse."""

from __future__ import annotations

from zzcollab_core.build import DIGEST_LABEL, BuildCache, ImageSummary, cache_key

DOCKERFILE = "FROM rocker/r-ver:4.4.0\nRUN install2.r renv\n"
LOCK = '{"R": {"Version": "4.4.0"}, "Packages": {}}\n'


class FakeImageStore:
    def __init__(self) -> None:
        self.images: list[ImageSummary] = []
        self.image_labels: dict[str, dict[str, str]] = {}
        self.tagged: list[tuple[str, str]] = []

    def list_images(self) -> list[ImageSummary]:
        return list(self.images)

    def labels(self, image: str) -> dict[str, str]:
        return dict(self.image_labels.get(image, {}))

    def tag(self, image: str, reference: str) -> None:
        repository, tag = reference.rsplit(":", 1)
        self.images.append(ImageSummary(id=image, repository=repository, tag=tag))
        self.tagged.append((image, reference))


def test_cache_key_is_stable_and_input_sensitive() -> None:
    key = cache_key(DOCKERFILE, LOCK)

    assert key == cache_key(DOCKERFILE.encode("utf-8"), LOCK.encode("utf-8"))
    assert len(key) == 64
    assert key != cache_key(DOCKERFILE + " ", LOCK)
    assert key != cache_key(DOCKERFILE, LOCK.replace("4.4.0", "4.4.1"))


def test_cache_key_separates_definition_from_lock() -> None:
    assert cache_key("ab", "c") != cache_key("a", "bc")


def test_lookup_misses_on_empty_store() -> None:
    assert BuildCache(FakeImageStore()).lookup(DOCKERFILE, LOCK) is None


def test_record_then_lookup_hits() -> None:
    store = FakeImageStore()
    cache = BuildCache(store, repository="zzcollab-cache")

    record = cache.record(DOCKERFILE, LOCK, "sha256:111")

    assert store.tagged == [("sha256:111", f"zzcollab-cache:{record.digest}")]
    assert cache.lookup(DOCKERFILE, LOCK) == "sha256:111"


def test_one_byte_change_in_either_input_misses() -> None:
    store = FakeImageStore()
    cache = BuildCache(store)
    cache.record(DOCKERFILE, LOCK, "sha256:111")

    assert cache.lookup(DOCKERFILE.replace("renv", "renW"), LOCK) is None
    assert cache.lookup(DOCKERFILE, LOCK + " ") is None


def test_lookup_matches_by_label_regardless_of_tag() -> None:
    store = FakeImageStore()
    store.images.append(ImageSummary(id="sha256:222", repository="myproj", tag="latest"))
    store.image_labels["sha256:222"] = {DIGEST_LABEL: cache_key(DOCKERFILE, LOCK)}
    cache = BuildCache(store)

    assert cache.lookup(DOCKERFILE, LOCK) == "sha256:222"
    assert cache.build_labels(DOCKERFILE, LOCK) == {DIGEST_LABEL: cache_key(DOCKERFILE, LOCK)}
