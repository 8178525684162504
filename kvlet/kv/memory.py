"""In-memory KV store."""

import threading
from typing import Iterable

from .base import KVStore


class Memory(KVStore):
    """A memory-backed KV store.

    Nothing survives the process. Used for tests and scratch
    repositories.
    """

    def __init__(self) -> None:
        self.memory: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            return self.memory.get(key)

    def set(self, key: str, value: bytes) -> None:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        with self._lock:
            self.memory[key] = value

    def add(self, key: str, value: bytes) -> bool:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        with self._lock:
            if key in self.memory:
                return False
            self.memory[key] = value
            return True

    def add_many(self, **kwargs: bytes) -> bool:
        for key, value in kwargs.items():
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
        with self._lock:
            if any(key in self.memory for key in kwargs):
                return False
            self.memory.update(kwargs)
            return True

    def keys(self, prefix: str = "") -> Iterable[str]:
        with self._lock:
            return [k for k in self.memory if k.startswith(prefix)]

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self.memory
