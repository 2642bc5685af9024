"""Depth-limited traversal of the lockfile dependency graph.

Purpose
-------
Collect the distinct packages reachable from a set of roots, each exactly
once, honouring a maximum depth measured from the nearest root.

Contents
--------
* :class:`WalkStep` - An entry together with its distance from the roots
* :func:`walk` - Breadth-first traversal from all roots at once
* :func:`select_roots` - Look up root entries by name

System Role
-----------
Sits between the lockfile model and the outdated resolver and decides which
packages are evaluated.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import UnknownPackage

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .models import DependencyGraph, LockfileEntry, PackageId

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WalkStep:
    """A package reached by the walker.

    Attributes:
        entry: The lockfile entry.
        depth: Minimum number of edges from any root (0 for roots).
    """

    entry: LockfileEntry
    depth: int


def select_roots(graph: DependencyGraph, names: Iterable[str]) -> list[LockfileEntry]:
    """Return every entry carrying one of ``names``, in request order.

    Args:
        graph: The dependency graph.
        names: Package names to start from.

    Returns:
        Matching entries. A name locked at several versions yields all of them.

    Raises:
        UnknownPackage: If a name is not present in the graph.
    """
    roots: list[LockfileEntry] = []
    for name in names:
        matches = graph.by_name(name)
        if not matches:
            raise UnknownPackage(name)
        roots.extend(matches)
    return roots


def walk(
    graph: DependencyGraph,
    roots: Sequence[LockfileEntry],
    max_depth: int | None = None,
    *,
    include_roots: bool = True,
) -> list[WalkStep]:
    """Traverse the graph breadth-first from all roots simultaneously.

    Breadth-first order makes the recorded depth the minimum distance from
    any root, so a package reachable through paths of different lengths is
    kept whenever its shortest path fits within ``max_depth``.

    Args:
        graph: The dependency graph.
        roots: Starting entries, visited first in the given order.
        max_depth: Deepest layer to include; None walks the full closure.
        include_roots: When False, roots seed the traversal but are left out
            of the result. ``walk(graph, [root], 1, include_roots=False)``
            yields exactly the direct dependencies of ``root``.

    Returns:
        Steps in discovery order, one per distinct package identity.

    Raises:
        ValueError: If ``max_depth`` is negative.
        UnknownPackage: If a root is not part of ``graph``.
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must not be negative, got {max_depth}")

    visited: set[PackageId] = set()
    queue: deque[WalkStep] = deque()
    for root in roots:
        if root.id not in graph:
            raise UnknownPackage(str(root.id))
        if root.id in visited:
            continue
        visited.add(root.id)
        queue.append(WalkStep(root, 0))

    steps: list[WalkStep] = []
    while queue:
        step = queue.popleft()
        if include_roots or step.depth > 0:
            steps.append(step)
        if max_depth is not None and step.depth >= max_depth:
            continue
        for dependency in graph.dependencies_of(step.entry):
            if dependency.id in visited:
                continue
            visited.add(dependency.id)
            queue.append(WalkStep(dependency, step.depth + 1))

    logger.debug(
        "Walked %d package(s) from %d root(s) with max depth %s",
        len(steps),
        len(roots),
        "unbounded" if max_depth is None else max_depth,
    )
    return steps


__all__ = [
    "WalkStep",
    "select_roots",
    "walk",
]
