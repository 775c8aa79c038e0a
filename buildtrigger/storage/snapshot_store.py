"""Snapshot persistence.

Snapshots are persisted per project key. The payload format is private to
each store implementation; unreadable or corrupt data is always reported as
absent so that the change detector falls back to its dirty-by-default path.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from buildtrigger.errors import IO_ERRORS, STORE_ERRORS, SnapshotStoreError
from buildtrigger.model import DependencySnapshot

logger = logging.getLogger("buildtrigger.storage.snapshot_store")

FORMAT_VERSION = 1

_UNSAFE_KEY_CHARS = re.compile(r"[^\w.\-]+")


class SnapshotStore(ABC):
    """Load and store the last known snapshot of a project."""

    @abstractmethod
    def load(self, key: str) -> Optional[DependencySnapshot]:
        """Return the persisted snapshot, or None when absent or unreadable."""
        pass

    @abstractmethod
    def store(self, key: str, snapshot: Optional[DependencySnapshot]) -> None:
        """Persist a snapshot. A None snapshot is ignored."""
        pass


def encode_snapshot(snapshot: DependencySnapshot) -> str:
    return json.dumps({"version": FORMAT_VERSION, "snapshot": snapshot.to_dict()}, sort_keys=True)


def decode_snapshot(payload: str) -> DependencySnapshot:
    """Decode a persisted payload.

    Raises:
        SnapshotStoreError: If the payload was written by an unknown format.
        ValueError, KeyError, TypeError: If the payload is corrupt.
    """
    data: Dict[str, Any] = json.loads(payload)
    if not isinstance(data, dict):
        raise SnapshotStoreError("Snapshot payload is not a mapping")
    version = data.get("version")
    if version != FORMAT_VERSION:
        raise SnapshotStoreError(f"Unsupported snapshot format version: {version!r}")
    return DependencySnapshot.from_dict(data["snapshot"])


class FileSnapshotStore(SnapshotStore):
    """JSON snapshot files under ``<cache_dir>/<key>-<hash>/<file_name>``.

    Writes go through a temporary file and an atomic rename so that readers
    never observe a half-written snapshot.
    """

    def __init__(self, cache_dir: Path, file_name: str = "dependency-snapshot.json") -> None:
        self.cache_dir = Path(cache_dir)
        self.file_name = file_name
        self._lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key).strip("._") or "_"
        key_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]
        safe_key = f"{safe_key}-{key_hash}"
        return self.cache_dir / safe_key / self.file_name

    def load(self, key: str) -> Optional[DependencySnapshot]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return decode_snapshot(path.read_text(encoding="utf-8"))
        except STORE_ERRORS as e:
            logger.warning("Could not load snapshot %s: %s", path, e)
            return None

    def store(self, key: str, snapshot: Optional[DependencySnapshot]) -> None:
        if snapshot is None:
            return
        path = self.path_for(key)
        payload = encode_snapshot(snapshot)
        with self._lock:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.file_name}.", suffix=".tmp", dir=str(path.parent)
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        handle.write(payload)
                    os.replace(tmp_name, path)
                except IO_ERRORS:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except IO_ERRORS as e:
                logger.error("Could not persist snapshot %s: %s", path, e)
                return
        logger.debug("Persisted snapshot for %s to %s", key, path)


class MemorySnapshotStore(SnapshotStore):
    """Process-local store keeping encoded payloads in a dict."""

    def __init__(self) -> None:
        self._payloads: Dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[DependencySnapshot]:
        with self._lock:
            payload = self._payloads.get(key)
        if payload is None:
            return None
        try:
            return decode_snapshot(payload)
        except STORE_ERRORS as e:
            logger.warning("Could not load snapshot for %s: %s", key, e)
            return None

    def store(self, key: str, snapshot: Optional[DependencySnapshot]) -> None:
        if snapshot is None:
            return
        with self._lock:
            self._payloads[key] = encode_snapshot(snapshot)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._payloads


__all__ = [
    "SnapshotStore",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "encode_snapshot",
    "decode_snapshot",
]
