"""kvlet error types.

Every error carries a ``kind`` naming its family (``NotFound``,
``ValidationError``, ``ConflictingState``, ``StorageError``) and the
identifier it concerns, so callers can render a message without
re-deriving details.
"""


class KvletError(Exception):
    """Base class for all kvlet errors."""

    kind = "KvletError"


# -- NotFound --


class NotFound(KvletError):
    """An object, commit, file or branch could not be located."""

    kind = "NotFound"


class ObjectNotFound(NotFound):
    def __init__(self, digest: str) -> None:
        self.digest = digest
        super().__init__(f"No object with digest {digest}")


class CommitNotFound(NotFound):
    def __init__(self, commit_id: str) -> None:
        self.commit_id = commit_id
        super().__init__("No commit with that id exists.")


class AmbiguousOrNotFound(NotFound):
    """A commit id prefix matched zero or several commits.

    Attributes:
        prefix: The abbreviated id that was looked up.
        matches: The full ids it matched (empty when none did).
    """

    def __init__(self, prefix: str, matches: tuple[str, ...] = ()) -> None:
        self.prefix = prefix
        self.matches = matches
        if matches:
            msg = f"Commit id {prefix!r} is ambiguous ({len(matches)} matches)."
        else:
            msg = "No commit with that id exists."
        super().__init__(msg)


class FileNotFound(NotFound):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("File does not exist.")


class FileNotInCommit(NotFound):
    def __init__(self, name: str, commit_id: str) -> None:
        self.name = name
        self.commit_id = commit_id
        super().__init__("File does not exist in that commit.")


class NoSuchBranch(NotFound):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__("A branch with that name does not exist.")


# -- ValidationError --


class ValidationError(KvletError):
    """A request was well-formed but not allowed in the current state."""

    kind = "ValidationError"


class EmptyMessage(ValidationError):
    def __init__(self) -> None:
        super().__init__("Please enter a commit message.")


class NothingToCommit(ValidationError):
    def __init__(self) -> None:
        super().__init__("No changes added to the commit.")


class NothingToRemove(ValidationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("No reason to remove the file.")


class BranchExists(ValidationError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__("A branch with that name already exists.")


class CannotDeleteCurrent(ValidationError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__("Cannot remove the current branch.")


class CannotMergeSelf(ValidationError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__("Cannot merge a branch with itself.")


class DirtyWorkingTree(ValidationError):
    def __init__(self) -> None:
        super().__init__("You have uncommitted changes.")


class AlreadyOnBranch(ValidationError):
    def __init__(self, branch: str) -> None:
        self.branch = branch
        super().__init__("No need to checkout the current branch.")


class NoMatchingCommits(ValidationError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__("Found no commit with that message.")


class InvalidFileName(ValidationError):
    """A file name that is not a plain entry of the working directory."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Not a plain file name: {name!r}")


class NotInitialized(ValidationError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("Not in an initialized kvlet directory.")


class AlreadyInitialized(ValidationError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            "A kvlet version-control system already exists in the current directory."
        )


# -- ConflictingState --


class ConflictingState(KvletError):
    """The working tree is in a state that blocks the operation."""

    kind = "ConflictingState"


class UntrackedFileConflict(ConflictingState):
    """Materializing a snapshot would overwrite untracked files.

    Attributes:
        names: The untracked working-tree files in the way.
    """

    def __init__(self, names: set[str]) -> None:
        self.names = frozenset(names)
        super().__init__(
            "There is an untracked file in the way; "
            "delete it, or add and commit it first."
        )


# -- StorageError --


class StorageError(KvletError):
    """Reading or writing the backing store failed."""

    kind = "StorageError"


class CorruptObject(StorageError):
    def __init__(self, digest: str, actual: str) -> None:
        self.digest = digest
        self.actual = actual
        super().__init__(f"Object {digest} failed verification (hashes to {actual})")
