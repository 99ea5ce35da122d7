"""Per-file extraction and graph construction."""

from pathlib import Path
from typing import Iterable, List

from graph.model import FileNode, RawReference, ReferenceGraph, ResolvedEdge
from .extractors import ExtractionError, ExtractorRegistry

# Bytes inspected for a NUL byte before content is treated as text.
NULL_PROBE_BYTES = 8192


def read_source(file_path: Path, max_bytes: int) -> str:
    """
    Read a file as UTF-8 text within a size budget.

    Args:
        file_path: Absolute path of the file.
        max_bytes: Largest accepted file size.

    Returns:
        The decoded file content (a leading BOM is dropped).

    Raises:
        ExtractionError: If the file is over budget or looks binary.
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the content is not valid UTF-8.
    """
    with file_path.open("rb") as handle:
        data = handle.read(max_bytes + 1)

    if len(data) > max_bytes:
        raise ExtractionError(f"exceeds size budget of {max_bytes} bytes")
    if b"\x00" in data[:NULL_PROBE_BYTES]:
        raise ExtractionError("binary content")

    return data.decode("utf-8-sig")


def extract_file(
    root: Path,
    node: FileNode,
    registry: ExtractorRegistry,
    max_bytes: int,
) -> List[RawReference]:
    """
    Read one source file and run its extractor.

    Returns:
        References in file order; an empty list for non-source files.

    Raises:
        ExtractionError, OSError, UnicodeDecodeError: The file could not be
        analyzed. Callers treat this as zero references.
    """
    extractor = registry.for_path(node.path)
    if extractor is None:
        return []

    if node.size > max_bytes:
        raise ExtractionError(f"exceeds size budget of {max_bytes} bytes")

    content = read_source(root / node.path, max_bytes)

    try:
        return extractor.extract(node.path, content)
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(f"{extractor.name or type(extractor).__name__} extractor failed: {exc}") from exc


def build_graph(nodes: Iterable[str], edges: Iterable[ResolvedEdge]) -> ReferenceGraph:
    """
    Build a reference graph from the node set and resolved edges.

    Args:
        nodes: Every enumerated file path.
        edges: Resolved references; endpoints must be in ``nodes``.

    Returns:
        ReferenceGraph containing all nodes and edges.
    """
    graph = ReferenceGraph(nodes)
    for edge in edges:
        graph.add_edge(edge.source, edge.target, edge.ref_type)
    return graph
