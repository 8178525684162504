"""Repository state: branch table, head, staging area and removed set."""

import logging
from dataclasses import dataclass, field

from .errors import NoSuchBranch, NotInitialized
from .kv.base import KVStore
from .objects import _from_bytes, _to_bytes

logger = logging.getLogger(__name__)

STATE_KEY = "__state__"


@dataclass
class RepoState:
    """Mutable pointers of a repository.

    Objects are referenced by digest only. A file name is never both
    staged and marked removed: staging cancels a pending removal and
    removal drops a staged entry.
    """

    branches: dict[str, str]
    head: str
    staged: dict[str, str] = field(default_factory=dict)
    removed: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.head not in self.branches:
            raise NoSuchBranch(self.head)

    @property
    def head_commit(self) -> str:
        """Commit id the head branch points at."""
        return self.branches[self.head]

    @property
    def has_changes(self) -> bool:
        """Whether anything is staged or marked for removal."""
        return bool(self.staged or self.removed)

    def stage(self, name: str, digest: str) -> None:
        self.removed.discard(name)
        self.staged[name] = digest

    def unstage(self, name: str) -> bool:
        """Drop a staged entry. Returns True if one existed."""
        return self.staged.pop(name, None) is not None

    def mark_removed(self, name: str) -> None:
        self.staged.pop(name, None)
        self.removed.add(name)

    def clear_pending(self) -> None:
        self.staged.clear()
        self.removed.clear()

    def move_head(self, commit_id: str) -> None:
        """Point the head branch at a commit."""
        logger.debug("%s: %s -> %s", self.head, self.head_commit[:7], commit_id[:7])
        self.branches[self.head] = commit_id

    # -- Serialization --

    def to_bytes(self) -> bytes:
        return _to_bytes(
            {
                "branches": self.branches,
                "head": self.head,
                "staged": self.staged,
                "removed": sorted(self.removed),
            }
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "RepoState":
        data = _from_bytes(raw)
        return cls(
            branches=dict(data["branches"]),
            head=data["head"],
            staged=dict(data.get("staged", {})),
            removed=set(data.get("removed", [])),
        )


def load_state(kv: KVStore, path: str = ".") -> RepoState:
    """Read the persisted state record.

    Raises:
        NotInitialized: If the store holds no state record.
    """
    raw = kv.get(STATE_KEY)
    if raw is None:
        raise NotInitialized(path)
    return RepoState.from_bytes(raw)


def save_state(kv: KVStore, state: RepoState) -> None:
    """Replace the persisted state record in a single write."""
    kv.set(STATE_KEY, state.to_bytes())
