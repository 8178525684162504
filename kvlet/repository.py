"""Repository: the commands of the version-control engine."""

import logging
from dataclasses import dataclass
from typing import Iterable

from . import ancestry
from .errors import (
    AlreadyInitialized,
    AlreadyOnBranch,
    BranchExists,
    CannotDeleteCurrent,
    CannotMergeSelf,
    DirtyWorkingTree,
    EmptyMessage,
    FileNotInCommit,
    NoMatchingCommits,
    NoSuchBranch,
    NothingToCommit,
    NothingToRemove,
)
from .object_store import ObjectStore
from .objects import Blob, Commit, blob_digest
from .reconcile import ReconcileResult, reconcile
from .state import STATE_KEY, RepoState, load_state, save_state
from .worktree import WorkTree

logger = logging.getLogger(__name__)

MERGE_MESSAGE = "Merged %s into %s."


# -- Checkout requests --


@dataclass(frozen=True)
class CheckoutFile:
    """Restore one file from the head commit."""

    name: str


@dataclass(frozen=True)
class CheckoutCommitFile:
    """Restore one file from a given (possibly abbreviated) commit."""

    commit_id: str
    name: str


@dataclass(frozen=True)
class CheckoutBranch:
    """Switch the working tree and head to another branch."""

    branch: str


CheckoutRequest = CheckoutFile | CheckoutCommitFile | CheckoutBranch


# -- Results --


@dataclass(frozen=True)
class MergeResult:
    """Result of a merge operation."""

    merged: bool
    commit: str | None
    strategy: str  # "up_to_date", "fast_forward", "merged"
    base: str | None
    conflicts: frozenset[str] = frozenset()

    def __bool__(self) -> bool:
        return self.merged


@dataclass(frozen=True)
class Status:
    """Snapshot of branch, staging and working-tree state."""

    head: str
    branches: tuple[str, ...]
    staged: tuple[str, ...]
    removed: tuple[str, ...]
    modified: tuple[tuple[str, str], ...]  # (name, "modified" | "deleted")
    untracked: tuple[str, ...]


class Repository:
    """A single-user repository over an object store and a working tree.

    Every mutating command persists the repository state when it
    completes; a command that raises leaves the persisted state as it
    was.
    """

    def __init__(
        self,
        objects: ObjectStore,
        worktree: WorkTree,
        state: RepoState | None = None,
    ) -> None:
        self.objects = objects
        self.worktree = worktree
        if state is None:
            state = load_state(objects.kv, str(worktree.root))
        self.state = state

    @classmethod
    def init(
        cls, objects: ObjectStore, worktree: WorkTree, *, branch: str = "master"
    ) -> "Repository":
        """Create the root commit and a single branch pointing at it.

        Raises:
            AlreadyInitialized: If the store already holds a repository.
        """
        if STATE_KEY in objects.kv:
            raise AlreadyInitialized(str(worktree.root))
        root = Commit.root(branch)
        objects.put(root)
        state = RepoState(branches={branch: root.digest}, head=branch)
        save_state(objects.kv, state)
        logger.info("initialized repository at %s on %s", worktree.root, branch)
        return cls(objects, worktree, state)

    def __repr__(self) -> str:
        return (
            f"Repository(head={self.head!r}, commit={self.head_commit[:8]}..., "
            f"branches={len(self.state.branches)})"
        )

    @property
    def head(self) -> str:
        """The name of the current branch."""
        return self.state.head

    @property
    def head_commit(self) -> str:
        return self.state.head_commit

    @property
    def branches(self) -> dict[str, str]:
        return dict(self.state.branches)

    def save(self) -> None:
        save_state(self.objects.kv, self.state)

    # -- Lookups --

    def resolve(self, commit_id: str) -> str:
        """Full id for a full or abbreviated commit id."""
        return self.objects.resolve(commit_id)

    def get_commit(self, commit_id: str) -> Commit:
        return self.objects.get_commit(self.resolve(commit_id))

    def snapshot(self, commit_id: str | None = None) -> dict[str, str]:
        """File name -> blob digest tracked at a commit (default: head)."""
        target = commit_id or self.head_commit
        return dict(self.objects.get_commit(target).snapshot)

    def read(self, name: str, commit_id: str | None = None) -> bytes:
        """Content of a file as tracked at a commit (default: head)."""
        target = self.resolve(commit_id) if commit_id else self.head_commit
        digest = self.snapshot(target).get(name)
        if digest is None:
            raise FileNotInCommit(name, target)
        return self.objects.read_content(digest)

    def _parents(self, commit_id: str) -> tuple[str, ...]:
        return self.objects.parents(commit_id)

    def _timestamp(self, commit_id: str) -> float:
        return self.objects.get_commit(commit_id).timestamp

    def merge_base(self, commit_a: str, commit_b: str) -> str | None:
        """Nearest common ancestor of two commits."""
        return ancestry.merge_base(
            self.resolve(commit_a),
            self.resolve(commit_b),
            self._parents,
            order_key=self._timestamp,
        )

    # -- Staging --

    def add(self, name: str) -> bool:
        """Stage the working-tree version of a file.

        A file identical to the head commit's version is not staged,
        and any stale staged entry for it is dropped. Staging always
        cancels a pending removal.

        Returns:
            True if the file was staged.

        Raises:
            FileNotFound: If the file is not in the working tree.
        """
        blob = Blob(name=name, content=self.worktree.read(name))
        self.state.removed.discard(name)
        if self.snapshot().get(name) == blob.digest:
            self.state.unstage(name)
            self.save()
            return False
        self.objects.put(blob)
        self.state.stage(name, blob.digest)
        self.save()
        logger.debug("staged %s as %s", name, blob.digest[:7])
        return True

    def rm(self, name: str) -> None:
        """Unstage a file and, if head tracks it, untrack and delete it.

        Raises:
            NothingToRemove: If the file is neither staged nor tracked.
        """
        was_staged = self.state.unstage(name)
        tracked = name in self.snapshot()
        if not was_staged and not tracked:
            raise NothingToRemove(name)
        if tracked:
            self.state.mark_removed(name)
            self.worktree.delete(name)
        self.save()

    # -- Commit --

    def commit(self, message: str, extra_parents: Iterable[str] = ()) -> Commit:
        """Record staged additions and removals as a new commit.

        The new commit's parents are the head commit followed by
        ``extra_parents`` (one extra parent makes a merge commit).
        The head branch advances to it and staging is cleared.

        Raises:
            EmptyMessage: If the message is blank.
            NothingToCommit: If nothing is staged or removed and this
                is not a merge commit.
        """
        if not message.strip():
            raise EmptyMessage()
        extra = tuple(extra_parents)
        if not self.state.has_changes and not extra:
            raise NothingToCommit()

        snapshot = self.snapshot()
        snapshot.update(self.state.staged)
        for name in self.state.removed:
            snapshot.pop(name, None)

        new = Commit.create(
            message=message,
            branch=self.head,
            parents=(self.head_commit,) + extra,
            snapshot=snapshot,
        )
        self.objects.put(new)
        self.state.move_head(new.digest)
        self.state.clear_pending()
        self.save()
        logger.info("[%s %s] %s", self.head, new.digest[:7], message)
        return new

    # -- History --

    def log(self) -> list[Commit]:
        """First-parent history from head back to the root commit."""
        return [
            self.objects.get_commit(c)
            for c in ancestry.first_parent_history(self.head_commit, self._parents)
        ]

    def global_log(self) -> list[Commit]:
        """Every commit ever made, oldest first."""
        return sorted(self.objects.commits(), key=lambda c: (c.timestamp, c.digest))

    def find(self, message: str) -> list[str]:
        """Ids of all commits with exactly this message.

        Raises:
            NoMatchingCommits: If there are none.
        """
        found = [c.digest for c in self.global_log() if c.message == message]
        if not found:
            raise NoMatchingCommits(message)
        return found

    def status(self) -> Status:
        tracked = self.snapshot()
        staged = self.state.staged
        removed = self.state.removed
        on_disk = set(self.worktree.files())

        modified: list[tuple[str, str]] = []
        for name in sorted(set(tracked) | set(staged)):
            if name in removed:
                continue
            expected = staged.get(name, tracked.get(name))
            if name not in on_disk:
                modified.append((name, "deleted"))
            elif blob_digest(name, self.worktree.read(name)) != expected:
                modified.append((name, "modified"))

        untracked = sorted(
            n for n in on_disk if (n not in tracked or n in removed) and n not in staged
        )
        return Status(
            head=self.head,
            branches=tuple(sorted(self.state.branches)),
            staged=tuple(sorted(staged)),
            removed=tuple(sorted(removed)),
            modified=tuple(modified),
            untracked=tuple(untracked),
        )

    # -- Checkout / branches / reset --

    def checkout(self, request: CheckoutRequest) -> None:
        """Restore a file or switch branches, depending on the request."""
        if isinstance(request, CheckoutFile):
            self._checkout_file(self.head_commit, request.name)
        elif isinstance(request, CheckoutCommitFile):
            self._checkout_file(self.resolve(request.commit_id), request.name)
        elif isinstance(request, CheckoutBranch):
            self._checkout_branch(request.branch)
        else:
            raise TypeError(f"Unknown checkout request: {request!r}")

    def _checkout_file(self, commit_id: str, name: str) -> None:
        self.worktree.write(name, self.read(name, commit_id))

    def _checkout_branch(self, branch: str) -> None:
        if branch not in self.state.branches:
            raise NoSuchBranch(branch)
        if branch == self.head:
            raise AlreadyOnBranch(branch)
        self._replace_tree(self.state.branches[branch])
        self.state.clear_pending()
        self.state.head = branch
        self.save()
        logger.info("switched to branch %s", branch)

    def _replace_tree(self, commit_id: str) -> None:
        """Make the working tree match a commit, refusing to clobber untracked files."""
        current = self.snapshot()
        target = self.snapshot(commit_id)
        self.worktree.check_untracked(current, self.state.staged, target)
        self.worktree.materialize(target, current, self.objects.read_content)

    def branch(self, name: str) -> None:
        """Create a branch at the head commit."""
        if name in self.state.branches:
            raise BranchExists(name)
        self.state.branches[name] = self.head_commit
        self.save()
        logger.info("created branch %s at %s", name, self.head_commit[:7])

    def delete_branch(self, name: str) -> None:
        """Delete a branch pointer. Its commits are kept."""
        if name not in self.state.branches:
            raise NoSuchBranch(name)
        if name == self.head:
            raise CannotDeleteCurrent(name)
        del self.state.branches[name]
        self.save()
        logger.info("deleted branch %s", name)

    def reset(self, commit_id: str) -> None:
        """Move the head branch to a commit and check out its files."""
        target = self.resolve(commit_id)
        self._replace_tree(target)
        self.state.clear_pending()
        self.state.move_head(target)
        self.save()
        logger.info("reset %s to %s", self.head, target[:7])

    # -- Merge --

    def merge(self, branch: str) -> MergeResult:
        """Merge another branch into the current one.

        Fast-forwards when the current branch is behind, does nothing
        when the given branch is already contained, and otherwise
        reconciles both sides against their merge base and commits the
        result with two parents. Conflicts do not stop the merge; the
        conflicted files are committed with markers and reported.

        Raises:
            NoSuchBranch: If ``branch`` does not exist.
            DirtyWorkingTree: If anything is staged or removed.
            CannotMergeSelf: If ``branch`` is the current branch.
            UntrackedFileConflict: If the merge would overwrite
                untracked files.
        """
        if branch not in self.state.branches:
            raise NoSuchBranch(branch)
        if self.state.has_changes:
            raise DirtyWorkingTree()
        if branch == self.head:
            raise CannotMergeSelf(branch)

        current_id = self.head_commit
        given_id = self.state.branches[branch]
        base = ancestry.merge_base(
            current_id, given_id, self._parents, order_key=self._timestamp
        )

        if base == given_id:
            logger.info("%s is already up to date with %s", self.head, branch)
            return MergeResult(
                merged=False, commit=current_id, strategy="up_to_date", base=base
            )

        if base == current_id:
            self._replace_tree(given_id)
            self.state.move_head(given_id)
            self.save()
            logger.info("fast-forwarded %s to %s", self.head, given_id[:7])
            return MergeResult(
                merged=True, commit=given_id, strategy="fast_forward", base=base
            )

        current = self.snapshot(current_id)
        result = reconcile(
            self.snapshot(base) if base is not None else {},
            current,
            self.snapshot(given_id),
            self.objects.read_content,
        )
        self._apply_merge(current, result)
        merge_commit = self.commit(MERGE_MESSAGE % (branch, self.head), (given_id,))
        return MergeResult(
            merged=True,
            commit=merge_commit.digest,
            strategy="merged",
            base=base,
            conflicts=result.conflicts,
        )

    def _apply_merge(self, current: dict[str, str], result: ReconcileResult) -> None:
        """Stage the reconciled snapshot and write it into the working tree."""
        changed = {
            name: digest
            for name, digest in result.snapshot.items()
            if current.get(name) != digest
        }
        gone = set(current) - set(result.snapshot)
        self.worktree.check_untracked(current, self.state.staged, changed)

        for blob in result.conflict_blobs.values():
            self.objects.put(blob)
        for name, digest in sorted(changed.items()):
            self.state.stage(name, digest)
            self.worktree.write(name, self.objects.read_content(digest))
        for name in sorted(gone):
            self.state.mark_removed(name)
            self.worktree.delete(name)
