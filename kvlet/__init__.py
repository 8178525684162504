"""kvlet: a local version-control engine over a content-addressed KV store."""

from .ancestry import distances, is_ancestor, merge_base
from .config import Settings
from .errors import (
    AlreadyInitialized,
    AlreadyOnBranch,
    AmbiguousOrNotFound,
    BranchExists,
    CannotDeleteCurrent,
    CannotMergeSelf,
    CommitNotFound,
    ConflictingState,
    CorruptObject,
    DirtyWorkingTree,
    EmptyMessage,
    FileNotFound,
    FileNotInCommit,
    InvalidFileName,
    KvletError,
    NoMatchingCommits,
    NoSuchBranch,
    NotFound,
    NothingToCommit,
    NothingToRemove,
    NotInitialized,
    ObjectNotFound,
    StorageError,
    UntrackedFileConflict,
    ValidationError,
)
from .kv.base import KVStore
from .object_store import ObjectStore
from .objects import Blob, Commit, blob_digest, commit_digest
from .reconcile import Outcome, ReconcileResult, reconcile
from .repository import (
    CheckoutBranch,
    CheckoutCommitFile,
    CheckoutFile,
    CheckoutRequest,
    MergeResult,
    Repository,
    Status,
)
from .state import RepoState
from .store import open_repository
from .worktree import WorkTree

__all__ = [
    "AlreadyInitialized",
    "AlreadyOnBranch",
    "AmbiguousOrNotFound",
    "Blob",
    "BranchExists",
    "CannotDeleteCurrent",
    "CannotMergeSelf",
    "CheckoutBranch",
    "CheckoutCommitFile",
    "CheckoutFile",
    "CheckoutRequest",
    "Commit",
    "CommitNotFound",
    "ConflictingState",
    "CorruptObject",
    "DirtyWorkingTree",
    "EmptyMessage",
    "FileNotFound",
    "FileNotInCommit",
    "InvalidFileName",
    "KVStore",
    "KvletError",
    "MergeResult",
    "NoMatchingCommits",
    "NoSuchBranch",
    "NotFound",
    "NotInitialized",
    "NothingToCommit",
    "NothingToRemove",
    "ObjectNotFound",
    "ObjectStore",
    "Outcome",
    "ReconcileResult",
    "RepoState",
    "Repository",
    "Settings",
    "Status",
    "StorageError",
    "UntrackedFileConflict",
    "ValidationError",
    "WorkTree",
    "blob_digest",
    "commit_digest",
    "distances",
    "is_ancestor",
    "merge_base",
    "open_repository",
    "reconcile",
]
