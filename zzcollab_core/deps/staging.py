"""Staged manifest/lockfile writes and the cross-invocation apply lock."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Iterator, Mapping

from zzcollab_core.errors import LockTimeoutError, PersistenceError

logger = logging.getLogger(__name__)


def _stage(path: Path, content: str | bytes) -> Path:
    data = content.encode("utf-8") if isinstance(content, str) else content
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.tmp.", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
    except BaseException:
        _discard(tmp_path)
        raise
    return tmp_path


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def commit_staged(writes: Mapping[Path, str]) -> None:
    """Write every ``path -> content`` pair or none of them.

    Each file is staged next to its target and only swapped in once all
    stages succeeded. If a swap fails, targets already swapped are restored
    from their previous bytes and :class:`PersistenceError` is raised.
    """
    staged: dict[Path, Path] = {}
    try:
        for path, content in writes.items():
            staged[path] = _stage(path, content)
    except OSError as exc:
        for tmp_path in staged.values():
            _discard(tmp_path)
        raise PersistenceError(f"unable to stage {path}: {exc}; originals left untouched") from exc

    backups: dict[Path, bytes | None] = {}
    for path in staged:
        backups[path] = path.read_bytes() if path.exists() else None

    swapped: list[Path] = []
    try:
        for path, tmp_path in staged.items():
            os.replace(tmp_path, path)
            swapped.append(path)
    except OSError as exc:
        for tmp_path in staged.values():
            _discard(tmp_path)
        unrestored = _rollback(swapped, backups)
        restored = len(swapped) - len(unrestored)
        detail = f"restored {restored} file(s) to their previous content"
        if unrestored:
            detail += f"; could not restore {', '.join(str(item) for item in unrestored)}"
        raise PersistenceError(f"unable to replace {path}: {exc}; {detail}") from exc
    logger.debug("committed %s staged file(s)", len(swapped))


def _rollback(swapped: list[Path], backups: Mapping[Path, bytes | None]) -> list[Path]:
    """Put back the previous bytes of ``swapped``; return the paths that could not be restored."""
    unrestored: list[Path] = []
    for path in reversed(swapped):
        original = backups.get(path)
        tmp_path: Path | None = None
        try:
            if original is None:
                _discard(path)
            else:
                tmp_path = _stage(path, original)
                os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path is not None:
                _discard(tmp_path)
            logger.error("unable to restore %s: %s", path, exc)
            unrestored.append(path)
            continue
        logger.warning("rolled back %s", path)
    return unrestored


# ---------- apply lock ----------


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        return False
    except OSError:
        return True


def _read_lock_metadata(lock_path: Path) -> dict[str, Any]:
    try:
        obj = json.loads(lock_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return obj if isinstance(obj, dict) else {}


def lock_stale_reason(lock_path: Path, stale_seconds: float) -> str | None:
    meta = _read_lock_metadata(lock_path)
    created = meta.get("created_epoch")
    pid = meta.get("pid")
    if isinstance(created, (int, float)) and (time.time() - float(created)) > stale_seconds:
        return "age_exceeded"
    if isinstance(pid, int) and not _pid_alive(pid):
        return "owner_process_missing"
    if not meta:
        # The owner may not have written its metadata yet; only the file age counts.
        try:
            age = time.time() - lock_path.stat().st_mtime
        except FileNotFoundError:
            return None
        if age > stale_seconds:
            return "invalid_metadata"
    return None


@contextmanager
def apply_lock(
    lock_path: Path,
    *,
    timeout_seconds: float = 10.0,
    stale_seconds: float = 600.0,
    command: str = "validate",
) -> Iterator[None]:
    """Hold an exclusive lock file for the duration of the block."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    token = f"{os.getpid()}-{int(time.time() * 1000)}"
    start = time.monotonic()

    while True:
        try:
            fd = os.open(lock_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            reason = lock_stale_reason(lock_path, stale_seconds)
            if reason:
                logger.warning("removing stale lock %s (%s)", lock_path, reason)
                _discard(lock_path)
                continue
            if (time.monotonic() - start) >= timeout_seconds:
                owner = _read_lock_metadata(lock_path)
                raise LockTimeoutError(
                    f"unable to acquire {lock_path} within {timeout_seconds:.1f}s "
                    f"(owner={owner or 'unknown'}); wait for the other zzcollab run or delete the lock file"
                )
            time.sleep(0.1)
            continue
        payload = {
            "token": token,
            "pid": os.getpid(),
            "created_epoch": time.time(),
            "created_at": datetime.now(UTC).isoformat(),
            "command": command,
        }
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        break

    try:
        yield
    finally:
        if _read_lock_metadata(lock_path).get("token") == token:
            _discard(lock_path)
