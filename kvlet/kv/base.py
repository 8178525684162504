"""Abstract KV store interface."""

from abc import ABC, abstractmethod
from typing import Iterable


class KVStore(ABC):
    """Key-value store operating on bytes only.

    Object records are written with ``add()`` (write-once); the
    repository state record is the only key ever overwritten with
    ``set()``. Encoding is handled at higher layers.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Get bytes value for key, or None if not found."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Set bytes value for key, replacing any previous value."""

    @abstractmethod
    def add(self, key: str, value: bytes) -> bool:
        """Store value only if key is absent.

        Returns True if the value was written, False if the key
        already existed (the stored value is left untouched).
        """

    @abstractmethod
    def add_many(self, **kwargs: bytes) -> bool:
        """Store several pairs in one step, only if none of the keys exist.

        Returns True if every value was written, False if any key was
        already present (nothing is written then).
        """

    @abstractmethod
    def keys(self, prefix: str = "") -> Iterable[str]:
        """Iterate over keys, optionally only those starting with prefix."""

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        """Check if key exists in store."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""
