"""Disk-backed KV store using diskcache."""

from typing import Iterable, cast

from .base import KVStore


class Disk(KVStore):
    """KV store backed by diskcache (SQLite + mmap).

    Eviction is disabled: objects are write-once and must never be
    dropped. Each ``set()`` is a single SQLite transaction, so the
    state record is replaced atomically.
    """

    def __init__(self, directory: str) -> None:
        from diskcache import Cache as DiskCache

        self.store = DiskCache(directory, size_limit=0, eviction_policy="none")

    def get(self, key: str) -> bytes | None:
        return cast(bytes | None, self.store.get(key))

    def set(self, key: str, value: bytes) -> None:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        self.store.set(key, value)

    def add(self, key: str, value: bytes) -> bool:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        return bool(self.store.add(key, value))

    def add_many(self, **kwargs: bytes) -> bool:
        for key, value in kwargs.items():
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
        with self.store.transact():
            if any(key in self.store for key in kwargs):
                return False
            for key, value in kwargs.items():
                self.store.set(key, value)
        return True

    def keys(self, prefix: str = "") -> Iterable[str]:
        for key in self.store.iterkeys():
            key = str(key)
            if key.startswith(prefix):
                yield key

    def __contains__(self, key: str) -> bool:
        return key in self.store

    def close(self) -> None:
        self.store.close()
