"""Reachability over the reference graph and unused-file classification."""

from collections import deque
from typing import Callable, Collection, Iterable, List, Mapping, Set

from .model import REASON_NO_REFERENCES, REASON_UNREACHABLE, FileNode, ReferenceGraph, UnusedFile


def find_reachable(graph: ReferenceGraph, entry_points: Iterable[str]) -> Set[str]:
    """
    Compute every node reachable from the entry points.

    Breadth-first traversal; each node is expanded at most once, so cycles
    terminate. Entry points that are not graph nodes are ignored.

    Args:
        graph: The reference graph.
        entry_points: Paths treated as always used.

    Returns:
        Set of reachable node paths, entry points included.
    """
    seen: Set[str] = set()
    queue = deque(node for node in entry_points if node in graph)

    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        for target in graph.neighbors(current):
            if target not in seen:
                queue.append(target)

    return seen


def unused_reason(graph: ReferenceGraph, node: str) -> str:
    """
    Explain why an unreachable node is unused.

    An isolated node (no edges in or out, ignoring self-loops) has no
    references at all; anything else is part of a cluster that no entry
    point reaches.
    """
    if graph.has_incoming(node) or graph.has_outgoing(node):
        return REASON_UNREACHABLE
    return REASON_NO_REFERENCES


def find_unused(
    graph: ReferenceGraph,
    nodes: Mapping[str, FileNode],
    entry_points: Collection[str],
    reachable: Collection[str],
    is_excluded: Callable[[str], bool],
    skip: Collection[str] = (),
) -> List[UnusedFile]:
    """
    Classify source files outside the reachable set as unused.

    Args:
        graph: The reference graph.
        nodes: FileNode index keyed by path.
        entry_points: Entry-point paths (never unused).
        reachable: Output of find_reachable.
        is_excluded: Predicate for paths that are never reported.
        skip: Paths whose extraction failed; they are never reported.

    Returns:
        Unused files sorted by path.
    """
    unused: List[UnusedFile] = []

    for path in sorted(nodes):
        node = nodes[path]
        if not node.is_source:
            continue
        if path in reachable or path in entry_points or path in skip:
            continue
        if is_excluded(path):
            continue
        unused.append(UnusedFile(path=path, reason=unused_reason(graph, path), size=node.size))

    return unused
