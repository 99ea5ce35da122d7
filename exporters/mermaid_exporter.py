"""Mermaid flowchart exporter for reference graphs."""

import re
from typing import Dict, List, Set

from analysis.result import AnalysisResult


def to_mermaid(
    result: AnalysisResult,
    orientation: str = "LR",
    group_by_directory: bool = False,
    include_missing: bool = True,
    show_all: bool = False,
) -> str:
    """
    Convert an analysis result's reference graph to Mermaid flowchart syntax.

    Unused files are styled with the ``unused`` class, entry points with
    ``entry``, and broken references point at dashed ``[MISSING]`` nodes.

    Args:
        result: Analysis result carrying the built graph.
        orientation: Flowchart orientation (LR, TD, TB, RL, BT).
        group_by_directory: If True, group nodes by top-level directory.
        include_missing: If True, show broken references.
        show_all: If True, include files with no edges, no broken
                  references and no unused finding.

    Returns:
        Mermaid flowchart string.

    Raises:
        ValueError: If the result has no graph attached.
    """
    graph = result.graph
    if graph is None:
        raise ValueError("Analysis result has no reference graph to export")

    unused = {item.path for item in result.unused_files}
    entry_points = set(result.entry_points)
    broken = result.broken_references if include_missing else []

    if show_all:
        nodes: Set[str] = graph.nodes
    else:
        nodes = set(unused)
        for source, target in graph.iter_edges():
            nodes.update((source, target))
        nodes.update(ref.source for ref in broken)

    used: Set[str] = set()
    node_ids: Dict[str, str] = {node: _unique_id(node, used) for node in sorted(nodes)}

    missing_ids: Dict[str, str] = {}
    for token in sorted({ref.token for ref in broken}):
        missing_ids[token] = _unique_id(f"missing_{token}", used)

    lines = [f"flowchart {orientation}"]

    if group_by_directory:
        lines.extend(_grouped_node_lines(node_ids, used))
    else:
        for node in sorted(node_ids):
            lines.append(f'    {node_ids[node]}["{node}"]')

    if missing_ids:
        lines.append("")
        lines.append("    %% Broken references")
        for token in sorted(missing_ids):
            missing_id = missing_ids[token]
            lines.append(f'    {missing_id}["{_escape_label(token)} [MISSING]"]')
            lines.append(f"    style {missing_id} stroke:#ff0000,stroke-dasharray: 5 5")

    lines.append("")
    for source, target in graph.iter_edges():
        if source in node_ids and target in node_ids:
            lines.append(f"    {node_ids[source]} --> {node_ids[target]}")

    seen_missing = set()
    for ref in broken:
        key = (ref.source, ref.token)
        if key in seen_missing:
            continue
        seen_missing.add(key)
        lines.append(f"    {node_ids[ref.source]} -.-> {missing_ids[ref.token]}")

    lines.append("")
    lines.append("    classDef unused fill:#ffe5e5,stroke:#cc0000")
    lines.append("    classDef entry stroke-width:3px")
    unused_ids = [node_ids[node] for node in sorted(unused) if node in node_ids]
    if unused_ids:
        lines.append(f"    class {','.join(unused_ids)} unused")
    entry_ids = [node_ids[node] for node in sorted(entry_points) if node in node_ids]
    if entry_ids:
        lines.append(f"    class {','.join(entry_ids)} entry")

    return "\n".join(lines)


def _grouped_node_lines(node_ids: Dict[str, str], used: Set[str]) -> List[str]:
    """Generate subgraphs grouped by top-level directory."""
    lines = []

    groups: Dict[str, List[str]] = {}
    for node in node_ids:
        parts = node.split("/")
        top_dir = parts[0] if len(parts) > 1 else "root"
        groups.setdefault(top_dir, []).append(node)

    for group_name in sorted(groups):
        subgraph_id = _unique_id(f"dir_{group_name}", used)
        lines.append(f"    subgraph {subgraph_id}[{group_name}]")
        for node in sorted(groups[group_name]):
            lines.append(f'        {node_ids[node]}["{node}"]')
        lines.append("    end")

    return lines


def _sanitize_id(value: str) -> str:
    """
    Convert a path or token to a valid Mermaid node ID.

    Mermaid IDs can only contain letters, digits, and underscores.
    """
    # Replace path separators and dots with underscores
    sanitized = re.sub(r"[/\\.\-]", "_", value)
    # Remove any remaining invalid characters
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "", sanitized)
    # Ensure it starts with a letter
    if sanitized and not sanitized[0].isalpha():
        sanitized = "n_" + sanitized
    return sanitized or "unknown"


def _escape_label(value: str) -> str:
    return value.replace('"', "#quot;")


def _unique_id(value: str, used: Set[str]) -> str:
    """Sanitize a value, appending _2, _3, ... until the ID is unused."""
    base = _sanitize_id(value)
    candidate = base
    counter = 2
    while candidate in used:
        candidate = f"{base}_{counter}"
        counter += 1
    used.add(candidate)
    return candidate
