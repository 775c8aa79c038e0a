"""Snapshot persistence backends."""

from .snapshot_store import (
    FileSnapshotStore,
    MemorySnapshotStore,
    SnapshotStore,
    decode_snapshot,
    encode_snapshot,
)

__all__ = [
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "SnapshotStore",
    "decode_snapshot",
    "encode_snapshot",
]
