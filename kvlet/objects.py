"""Immutable object records: blobs and commits."""

import hashlib
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping

INITIAL_MESSAGE = "initial commit"


def _to_bytes(obj) -> bytes:
    """Encode a JSON-safe Python object to bytes."""
    return json.dumps(obj, separators=(",", ":")).encode()


def _from_bytes(raw: bytes):
    """Decode bytes to a Python object."""
    return json.loads(raw)


def blob_digest(name: str, content: bytes) -> str:
    """Digest of a file snapshot.

    The file name is part of the identity: the same bytes under two
    names are two distinct blobs. The name is NUL-terminated so no
    name/content split can collide with another.
    """
    h = hashlib.sha1()
    h.update(name.encode() + b"\0")
    h.update(content)
    return h.hexdigest()


def commit_digest(
    message: str,
    timestamp: float,
    branch: str,
    parents: tuple[str, ...],
    snapshot: Mapping[str, str],
) -> str:
    """Compute a content-addressable commit hash.

    Hashes the message, timestamp, branch, ordered parent ids and the
    snapshot sorted by file name (so insertion order never matters).
    """
    h = hashlib.sha1()
    h.update(_to_bytes([message, repr(timestamp), branch]))
    h.update(_to_bytes(list(parents)))
    h.update(_to_bytes(sorted(snapshot.items())))
    return h.hexdigest()


def format_timestamp(timestamp: float) -> str:
    """Render a timestamp as e.g. ``Thu Jan 1 00:00:00 1970 +0000``."""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return f"{dt:%a %b} {dt.day} {dt:%H:%M:%S %Y %z}"


@dataclass(frozen=True)
class Blob:
    """Snapshot of one file's bytes at the moment it was staged."""

    name: str
    content: bytes
    created_at: float = field(default_factory=time.time)
    digest: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "digest", blob_digest(self.name, self.content))

    def meta_bytes(self) -> bytes:
        return _to_bytes({"name": self.name, "created_at": self.created_at})

    @classmethod
    def from_parts(cls, meta: bytes, content: bytes) -> "Blob":
        raw = _from_bytes(meta)
        return cls(name=raw["name"], content=content, created_at=raw["created_at"])


@dataclass(frozen=True)
class Commit:
    """A node in the history graph.

    ``snapshot`` maps every tracked file name to its blob digest.
    The root commit has no parents, a normal commit one, a merge
    commit two.
    """

    message: str
    timestamp: float
    branch: str
    parents: tuple[str, ...]
    snapshot: Mapping[str, str]
    digest: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", float(self.timestamp))
        object.__setattr__(self, "parents", tuple(self.parents))
        object.__setattr__(self, "snapshot", dict(self.snapshot))
        object.__setattr__(
            self,
            "digest",
            commit_digest(
                self.message, self.timestamp, self.branch, self.parents, self.snapshot
            ),
        )

    @classmethod
    def root(cls, branch: str) -> "Commit":
        """The commit every repository starts from: epoch time, nothing tracked."""
        return cls(
            message=INITIAL_MESSAGE, timestamp=0.0, branch=branch, parents=(), snapshot={}
        )

    @classmethod
    def create(
        cls,
        message: str,
        branch: str,
        parents: tuple[str, ...],
        snapshot: Mapping[str, str],
    ) -> "Commit":
        return cls(
            message=message,
            timestamp=time.time(),
            branch=branch,
            parents=parents,
            snapshot=snapshot,
        )

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def date(self) -> str:
        return format_timestamp(self.timestamp)

    def to_bytes(self) -> bytes:
        return _to_bytes(
            {
                "message": self.message,
                "timestamp": self.timestamp,
                "branch": self.branch,
                "parents": list(self.parents),
                "snapshot": self.snapshot,
            }
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Commit":
        data = _from_bytes(raw)
        return cls(
            message=data["message"],
            timestamp=data["timestamp"],
            branch=data["branch"],
            parents=tuple(data["parents"]),
            snapshot=data["snapshot"],
        )
