"""Three-way reconciliation of file snapshots."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping

from .objects import Blob

logger = logging.getLogger(__name__)

CURRENT_MARKER = b"<<<<<<< HEAD\n"
SEPARATOR = b"=======\n"
END_MARKER = b">>>>>>>\n"

Snapshot = Mapping[str, str]
"""File name -> blob digest."""

ContentFn = Callable[[str], bytes]
"""Loads the raw bytes of a blob digest."""


class Outcome(str, Enum):
    """What happens to one file when two branches are reconciled."""

    KEEP_CURRENT = "keep_current"
    TAKE_GIVEN = "take_given"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ReconcileResult:
    """Merged snapshot of a three-way reconciliation.

    ``snapshot`` already contains the conflicted files, pointing at
    the marker-framed blobs in ``conflict_blobs``; those blobs are not
    yet stored.
    """

    snapshot: dict[str, str]
    conflicts: frozenset[str]
    conflict_blobs: dict[str, Blob]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


def classify(split: str | None, current: str | None, given: str | None) -> Outcome:
    """Decide the fate of one file from its digest on each side.

    ``None`` means the file is absent on that side. A side counts as
    changed when its digest differs from the split point's.
    """
    if current == given:
        # unchanged, changed identically, or removed on both sides
        return Outcome.KEEP_CURRENT
    if current == split:
        return Outcome.TAKE_GIVEN
    if given == split:
        return Outcome.KEEP_CURRENT
    return Outcome.CONFLICT


def _section(content: bytes) -> bytes:
    if content and not content.endswith(b"\n"):
        return content + b"\n"
    return content


def conflict_content(current: bytes | None, given: bytes | None) -> bytes:
    """Frame both sides of a conflicted file with markers.

    An absent side contributes an empty section. Every non-empty
    section ends with a newline so each marker starts its own line.
    """
    return (
        CURRENT_MARKER
        + _section(current or b"")
        + SEPARATOR
        + _section(given or b"")
        + END_MARKER
    )


def reconcile(
    split: Snapshot,
    current: Snapshot,
    given: Snapshot,
    content: ContentFn,
) -> ReconcileResult:
    """Merge ``given`` into ``current`` relative to their split point.

    Every file in the union of the three snapshots is classified on
    its own; a conflict on one file never stops the others.

    Args:
        split: Snapshot of the merge base.
        current: Snapshot of the branch being merged into.
        given: Snapshot of the branch being merged in.
        content: Loads blob bytes, used only to render conflicts.
    """
    merged: dict[str, str] = {}
    conflicts: set[str] = set()
    conflict_blobs: dict[str, Blob] = {}

    for name in sorted(set(split) | set(current) | set(given)):
        s, c, g = split.get(name), current.get(name), given.get(name)
        outcome = classify(s, c, g)

        if outcome is Outcome.KEEP_CURRENT:
            if c is not None:
                merged[name] = c
        elif outcome is Outcome.TAKE_GIVEN:
            if g is not None:
                merged[name] = g
        else:
            blob = Blob(
                name=name,
                content=conflict_content(
                    content(c) if c is not None else None,
                    content(g) if g is not None else None,
                ),
            )
            merged[name] = blob.digest
            conflict_blobs[name] = blob
            conflicts.add(name)
            logger.warning("merge conflict in %s", name)

    return ReconcileResult(
        snapshot=merged,
        conflicts=frozenset(conflicts),
        conflict_blobs=conflict_blobs,
    )
