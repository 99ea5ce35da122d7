"""Reference graph model and reachability analysis."""

from .model import (
    BrokenReference,
    FileNode,
    RawReference,
    ReferenceGraph,
    ReferenceType,
    ResolvedEdge,
    UnusedFile,
)
from .reachability import find_reachable, find_unused

__all__ = [
    "BrokenReference",
    "FileNode",
    "RawReference",
    "ReferenceGraph",
    "ReferenceType",
    "ResolvedEdge",
    "UnusedFile",
    "find_reachable",
    "find_unused",
]
