"""Ancestor search over the commit graph.

All functions are pure: they take a ``parents`` callable mapping a
commit id to its parent ids and return fresh values, so nothing is
shared between calls.
"""

import logging
from collections import deque
from typing import Any, Callable, Iterator

logger = logging.getLogger(__name__)

ParentsFn = Callable[[str], tuple[str, ...]]
"""Maps a commit id to its parent ids (empty for the root)."""


def distances(start: str, parents: ParentsFn) -> dict[str, int]:
    """Minimum edge count from ``start`` to every commit it can reach.

    Breadth-first over the parent relation, so the first time a commit
    is reached is along a shortest path; later paths are ignored.
    ``start`` itself is at distance 0.
    """
    dist: dict[str, int] = {start: 0}
    queue: deque[str] = deque([start])
    while queue:
        current = queue.popleft()
        for p in parents(current):
            if p not in dist:
                dist[p] = dist[current] + 1
                queue.append(p)
    return dist


def merge_base(
    commit_a: str,
    commit_b: str,
    parents: ParentsFn,
    *,
    order_key: Callable[[str], Any] | None = None,
) -> str | None:
    """Find the nearest common ancestor of two commits.

    Picks the common ancestor minimizing ``dist(a) + dist(b)``. Ties
    go to the smallest ``order_key`` (pass commit timestamps to prefer
    the earliest commit), then to the smallest id.

    Returns:
        The merge-base commit id, or None if the histories are disjoint.
    """
    if commit_a == commit_b:
        return commit_a

    dist_a = distances(commit_a, parents)
    dist_b = distances(commit_b, parents)
    common = dist_a.keys() & dist_b.keys()
    if not common:
        return None

    def rank(commit_id: str) -> tuple:
        total = dist_a[commit_id] + dist_b[commit_id]
        if order_key is None:
            return (total, commit_id)
        return (total, order_key(commit_id), commit_id)

    base = min(common, key=rank)
    logger.debug(
        "merge base of %s and %s is %s", commit_a[:7], commit_b[:7], base[:7]
    )
    return base


def is_ancestor(ancestor: str, descendant: str, parents: ParentsFn) -> bool:
    """Whether ``ancestor`` is reachable from ``descendant`` (or equal)."""
    return ancestor in distances(descendant, parents)


def first_parent_history(start: str, parents: ParentsFn) -> Iterator[str]:
    """Yield the first-parent chain from ``start`` back to the root."""
    current: str | None = start
    while current is not None:
        yield current
        ps = parents(current)
        current = ps[0] if ps else None

