"""Object store: write-once blobs and commits over a KV store."""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterable, Iterator

from .errors import (
    AmbiguousOrNotFound,
    CommitNotFound,
    CorruptObject,
    ObjectNotFound,
    StorageError,
)
from .kv.base import KVStore
from .kv.memory import Memory
from .objects import Blob, Commit, blob_digest

logger = logging.getLogger(__name__)

COMMIT_KEY = "__commit__%s"
BLOB_KEY = "__blob__%s"
BLOB_META_KEY = "__blob_meta__%s"

Object = Blob | Commit


@contextmanager
def _storage(action: str) -> Iterator[None]:
    """Re-raise backend failures as StorageError."""
    try:
        yield
    except (OSError, sqlite3.Error) as e:
        raise StorageError(f"Failed to {action}: {e}") from e


class ObjectStore:
    """Content-addressed storage for blobs and commits.

    Objects are keyed by their digest and never change once written;
    putting the same object twice is a no-op returning the same digest.
    """

    def __init__(self, kv: KVStore | None = None) -> None:
        if kv is None:
            kv = Memory()
        self.kv = kv

    def __repr__(self) -> str:
        return f"ObjectStore({type(self.kv).__name__})"

    # -- Write --

    def put(self, obj: Object) -> str:
        """Store an object and return its digest."""
        if isinstance(obj, Commit):
            with _storage(f"write commit {obj.digest}"):
                written = self.kv.add(COMMIT_KEY % obj.digest, obj.to_bytes())
        elif isinstance(obj, Blob):
            with _storage(f"write blob {obj.digest}"):
                written = self.kv.add_many(
                    **{
                        BLOB_KEY % obj.digest: obj.content,
                        BLOB_META_KEY % obj.digest: obj.meta_bytes(),
                    }
                )
        else:
            raise TypeError(f"Expected Blob or Commit, got {type(obj).__name__}")
        if written:
            logger.debug("stored %s %s", type(obj).__name__.lower(), obj.digest)
        return obj.digest

    # -- Read --

    def exists(self, digest: str) -> bool:
        return COMMIT_KEY % digest in self.kv or BLOB_KEY % digest in self.kv

    def get(self, digest: str, *, verify: bool = False) -> Object:
        """Retrieve a blob or commit by digest.

        Args:
            digest: Full object digest.
            verify: Recompute the digest of the loaded object and raise
                ``CorruptObject`` if it does not match.

        Raises:
            ObjectNotFound: If no object has this digest.
        """
        with _storage(f"read object {digest}"):
            raw = self.kv.get(COMMIT_KEY % digest)
            if raw is not None:
                obj: Object = Commit.from_bytes(raw)
            else:
                content = self.kv.get(BLOB_KEY % digest)
                meta = self.kv.get(BLOB_META_KEY % digest)
                if content is None or meta is None:
                    raise ObjectNotFound(digest)
                obj = Blob.from_parts(meta, content)
        if verify and obj.digest != digest:
            raise CorruptObject(digest, obj.digest)
        return obj

    def get_commit(self, commit_id: str, *, verify: bool = False) -> Commit:
        with _storage(f"read commit {commit_id}"):
            raw = self.kv.get(COMMIT_KEY % commit_id)
        if raw is None:
            raise CommitNotFound(commit_id)
        commit = Commit.from_bytes(raw)
        if verify and commit.digest != commit_id:
            raise CorruptObject(commit_id, commit.digest)
        return commit

    def get_blob(self, digest: str, *, verify: bool = False) -> Blob:
        with _storage(f"read blob {digest}"):
            content = self.kv.get(BLOB_KEY % digest)
            meta = self.kv.get(BLOB_META_KEY % digest)
        if content is None or meta is None:
            raise ObjectNotFound(digest)
        blob = Blob.from_parts(meta, content)
        if verify and blob_digest(blob.name, blob.content) != digest:
            raise CorruptObject(digest, blob.digest)
        return blob

    def read_content(self, digest: str) -> bytes:
        """Raw bytes of a blob."""
        with _storage(f"read blob {digest}"):
            content = self.kv.get(BLOB_KEY % digest)
        if content is None:
            raise ObjectNotFound(digest)
        return content

    def parents(self, commit_id: str) -> tuple[str, ...]:
        """Parent ids of a commit (empty for the root)."""
        return self.get_commit(commit_id).parents

    # -- Enumeration --

    def commit_ids(self) -> list[str]:
        prefix = COMMIT_KEY.replace("%s", "")
        with _storage("list commits"):
            return sorted(key[len(prefix) :] for key in self.kv.keys(prefix))

    def commits(self) -> Iterable[Commit]:
        for commit_id in self.commit_ids():
            yield self.get_commit(commit_id)

    def resolve(self, commit_id: str) -> str:
        """Resolve a full or abbreviated commit id to a full digest.

        Raises:
            AmbiguousOrNotFound: If zero or several commits match.
        """
        if not commit_id:
            raise AmbiguousOrNotFound(commit_id)
        if COMMIT_KEY % commit_id in self.kv:
            return commit_id
        matches = tuple(c for c in self.commit_ids() if c.startswith(commit_id))
        if len(matches) != 1:
            raise AmbiguousOrNotFound(commit_id, matches)
        return matches[0]
