"""Persistent key/value storage for string payloads."""

from __future__ import annotations

from typing import Any, Dict, Mapping

import lmdb


class StorageError(Exception):
    """Raised when a storage request is invalid or the store fails."""


def _valid(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class KeyValueStore:
    """A small on-disk key/value store driven by request mappings."""

    def __init__(self, env: "lmdb.Environment"):
        self._env = env

    @classmethod
    def open(cls, path) -> "KeyValueStore":
        try:
            return cls(lmdb.open(str(path), map_size=256 * 1024 * 1024))
        except lmdb.Error as exc:
            raise StorageError(str(exc)) from exc

    def _run(self, write: bool, action):
        try:
            with self._env.begin(write=write) as txn:
                return action(txn)
        except lmdb.Error as exc:
            raise StorageError(str(exc)) from exc

    def write(self, call: Mapping[str, Any]) -> None:
        """Store call["data"] under call["key"]; both must be non-empty strings."""
        key, data = call.get("key"), call.get("data")
        if not (_valid(key) and _valid(data)):
            raise StorageError("invalid key or data")
        self._run(True, lambda txn: txn.put(key.encode(), data.encode()))

    def read(self, call: Mapping[str, Any]) -> bytes:
        """Return the stored bytes for call["key"]."""
        key = call.get("key")
        if not _valid(key):
            raise StorageError("Key not found")
        value = self._run(False, lambda txn: txn.get(key.encode()))
        if value is None:
            raise StorageError("not found")
        return bytes(value)

    def delete(self, call: Mapping[str, Any]) -> Dict[str, Any]:
        """Remove call["key"]; report a missing key in the returned mapping."""
        key = call.get("key")
        if not _valid(key):
            return {"error": "EDKS-001", "message": "Key is required"}
        self._run(True, lambda txn: txn.delete(key.encode()))
        return {"success": True}

    def close(self) -> None:
        self._env.close()

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()