"""Working tree: copies object contents to and from the filesystem."""

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Mapping

from .errors import FileNotFound, InvalidFileName, StorageError, UntrackedFileConflict

logger = logging.getLogger(__name__)


class WorkTree:
    """The user's working directory.

    Only regular files directly under ``root`` are considered; names in
    ``ignored`` (including the control directory) are never touched.
    """

    def __init__(self, root: str | Path, ignored: Iterable[str] = ()) -> None:
        self.root = Path(root)
        self.ignored = frozenset(ignored)

    def __repr__(self) -> str:
        return f"WorkTree({str(self.root)!r})"

    def path(self, name: str) -> Path:
        """Location of a working file.

        Raises:
            InvalidFileName: If ``name`` is empty, a relative directory
                reference, or contains a path separator.
        """
        seps = {"/", os.sep} | ({os.altsep} if os.altsep else set())
        if name in ("", ".", "..") or "\0" in name or any(s in name for s in seps):
            raise InvalidFileName(name)
        return self.root / name

    def files(self) -> list[str]:
        """Names of all user files in the working tree."""
        try:
            return sorted(
                p.name
                for p in self.root.iterdir()
                if p.is_file() and p.name not in self.ignored
            )
        except OSError as e:
            raise StorageError(f"Failed to list {self.root}: {e}") from e

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def read(self, name: str) -> bytes:
        path = self.path(name)
        if not path.is_file():
            raise FileNotFound(name)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {name}: {e}") from e

    def write(self, name: str, content: bytes) -> None:
        try:
            self.path(name).write_bytes(content)
        except OSError as e:
            raise StorageError(f"Failed to write {name}: {e}") from e

    def delete(self, name: str) -> bool:
        """Delete a file if present. Returns True if it existed."""
        path = self.path(name)
        if not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete {name}: {e}") from e
        return True

    # -- Snapshot synchronization --

    def untracked(self, tracked: Iterable[str], staged: Iterable[str]) -> set[str]:
        """Working files neither tracked by head nor staged."""
        known = set(tracked) | set(staged)
        return {name for name in self.files() if name not in known}

    def check_untracked(
        self,
        tracked: Iterable[str],
        staged: Iterable[str],
        incoming: Iterable[str],
    ) -> None:
        """Refuse to overwrite untracked files.

        Raises:
            UntrackedFileConflict: If any untracked working file would be
                written by a snapshot containing ``incoming``.
        """
        blocking = self.untracked(tracked, staged) & set(incoming)
        if blocking:
            raise UntrackedFileConflict(blocking)

    def materialize(
        self,
        target: Mapping[str, str],
        tracked: Iterable[str],
        content: Callable[[str], bytes],
    ) -> None:
        """Replace the tracked files with the ``target`` snapshot.

        Files tracked before but absent from ``target`` are deleted;
        every file in ``target`` is written from its blob.
        """
        for name in set(tracked) - set(target):
            self.delete(name)
        for name, digest in target.items():
            self.write(name, content(digest))
        logger.debug("materialized %d files into %s", len(target), self.root)
