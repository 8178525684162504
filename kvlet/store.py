"""Repository factory."""

from pathlib import Path
from typing import Literal

from .config import Settings
from .errors import AlreadyInitialized, NotInitialized
from .kv.base import KVStore
from .object_store import ObjectStore
from .repository import Repository
from .worktree import WorkTree


def backend(
    storage: Literal["disk", "memory"] = "disk",
    *,
    path: str | Path | None = None,
) -> KVStore:
    """Build a KV backend.

    Args:
        storage: ``"disk"`` (default) or ``"memory"``.
        path: Required when ``storage="disk"``. Directory for the
            diskcache database.
    """
    if storage == "memory":
        from .kv.memory import Memory

        return Memory()
    if storage == "disk":
        if path is None:
            raise ValueError("path is required when storage='disk'")
        from .kv.disk import Disk

        return Disk(str(path))
    raise ValueError(f"Unknown storage: {storage!r}")


def open_repository(
    path: str | Path = ".",
    storage: Literal["disk", "memory"] = "disk",
    *,
    create: bool = False,
    settings: Settings | None = None,
) -> Repository:
    """Open (or with ``create=True``, initialize) the repository at ``path``.

    Args:
        path: Working-tree directory.
        storage: ``"disk"`` (default) keeps objects under the control
            directory; ``"memory"`` keeps them for this process only.
        create: Initialize a new repository instead of opening one.
        settings: Defaults to ``Settings.from_env()``.

    Raises:
        NotInitialized: Opening a directory with no repository.
        AlreadyInitialized: Creating over an existing repository.
    """
    settings = settings or Settings.from_env()
    root = Path(path)
    worktree = WorkTree(root, ignored=settings.ignored)
    control = root / settings.control_dir

    if storage == "disk":
        if create and control.exists():
            raise AlreadyInitialized(str(root))
        if not create and not control.is_dir():
            raise NotInitialized(str(root))

    objects = ObjectStore(backend(storage, path=control))
    if create:
        return Repository.init(objects, worktree, branch=settings.default_branch)
    return Repository(objects, worktree)
