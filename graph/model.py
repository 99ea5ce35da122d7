"""Graph data model for storing file reference relationships."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Set, Tuple


class ReferenceType(str, Enum):
    """Kinds of textual references an extractor can emit."""

    IMPORT = "import"
    REQUIRE = "require"
    INCLUDE = "include"
    PATH = "path"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FileNode:
    """
    One enumerated file in the analyzed tree.

    Attributes:
        path: Tree-relative POSIX path with the tree's own casing.
        size: File size in bytes.
        is_source: True if an extractor is registered for the file suffix.
    """

    path: str
    size: int
    is_source: bool


@dataclass(frozen=True)
class RawReference:
    """A reference token found in a source file, as written."""

    source: str
    line: int
    ref_type: ReferenceType
    token: str
    column: int = 0
    # Dropped instead of reported broken when nothing matches.
    optional: bool = False


@dataclass(frozen=True)
class ResolvedEdge:
    """A reference that was mapped to an existing file."""

    source: str
    target: str
    ref_type: ReferenceType


@dataclass(frozen=True)
class BrokenReference:
    """A reference whose target could not be found in the tree."""

    source: str
    token: str
    line: int
    ref_type: ReferenceType

    @classmethod
    def from_raw(cls, ref: RawReference) -> "BrokenReference":
        return cls(source=ref.source, token=ref.token, line=ref.line, ref_type=ref.ref_type)


REASON_NO_REFERENCES = "no references found"
REASON_UNREACHABLE = "unreachable from entry points"


@dataclass(frozen=True)
class UnusedFile:
    """A source file that no entry point reaches."""

    path: str
    reason: str
    size: int


class ReferenceGraph:
    """
    A directed graph representing file references.

    Nodes are tree-relative file paths, and edges represent
    'source -> referenced' relationships. Every edge endpoint must already
    be a node; the node set is fixed when the tree is enumerated.
    """

    def __init__(self, nodes: Iterable[str] = ()):
        self._nodes: Set[str] = set(nodes)
        self._edges: Dict[str, Set[str]] = {}
        self._reverse: Dict[str, Set[str]] = {}
        self._edge_types: Dict[Tuple[str, str], Set[ReferenceType]] = {}

    @property
    def nodes(self) -> Set[str]:
        """Return all nodes in the graph."""
        return self._nodes.copy()

    @property
    def edges(self) -> Dict[str, Set[str]]:
        """Return adjacency list representation of edges."""
        return {k: v.copy() for k, v in self._edges.items()}

    def add_node(self, node: str) -> None:
        """Add a node to the graph."""
        self._nodes.add(node)

    def add_edge(self, source: str, target: str, ref_type: ReferenceType = ReferenceType.PATH) -> None:
        """
        Add a directed edge from source to target.

        Duplicate edges are stored once; self-loops are kept.

        Raises:
            KeyError: If either endpoint is not a node of the graph.
        """
        for endpoint in (source, target):
            if endpoint not in self._nodes:
                raise KeyError(f"Unknown graph node: {endpoint}")

        self._edges.setdefault(source, set()).add(target)
        self._reverse.setdefault(target, set()).add(source)
        self._edge_types.setdefault((source, target), set()).add(ReferenceType(ref_type))

    def neighbors(self, node: str) -> List[str]:
        """Get all files that the node references, sorted."""
        return sorted(self._edges.get(node, ()))

    def sources(self, node: str) -> Set[str]:
        """Get all files that reference the node."""
        return self._reverse.get(node, set()).copy()

    def edge_types(self, source: str, target: str) -> Set[ReferenceType]:
        """Get the reference types that produced the source -> target edge."""
        return self._edge_types.get((source, target), set()).copy()

    def has_incoming(self, node: str) -> bool:
        """Check if another file references the node (self-loops ignored)."""
        return any(src != node for src in self._reverse.get(node, ()))

    def has_outgoing(self, node: str) -> bool:
        """Check if the node references another file (self-loops ignored)."""
        return any(dst != node for dst in self._edges.get(node, ()))

    def get_roots(self) -> Set[str]:
        """Get nodes that are never referenced by other nodes."""
        return {node for node in self._nodes if not self.has_incoming(node)}

    def iter_edges(self) -> Iterator[Tuple[str, str]]:
        """Iterate over all edges as (source, target) tuples, sorted."""
        for source in sorted(self._edges):
            for target in sorted(self._edges[source]):
                yield source, target

    def edge_count(self) -> int:
        """Return the number of distinct edges."""
        return sum(len(t) for t in self._edges.values())

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._nodes)

    def __contains__(self, node: str) -> bool:
        """Check if a node is in the graph."""
        return node in self._nodes

    def __repr__(self) -> str:
        return f"ReferenceGraph(nodes={len(self._nodes)}, edges={self.edge_count()})"
