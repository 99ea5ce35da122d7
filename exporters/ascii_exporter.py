"""ASCII tree-style exporter for analysis results."""

from itertools import groupby
from typing import List, Optional, Tuple

from analysis.result import AnalysisResult


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "


def to_ascii(
    result: AnalysisResult,
    title: Optional[str] = None,
    style: str = "tree",
) -> str:
    """
    Convert an analysis result to a text report with tree connectors.

    Args:
        result: The analysis result to export.
        title: Optional first line, e.g. the analyzed root.
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).

    Returns:
        Multi-line report string.
    """
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)

    lines: List[str] = []
    if title:
        lines.append(title)

    lines.append(
        f"Files: {result.total_files} total, {result.analyzed_files} analyzed, "
        f"{len(result.entry_points)} entry points"
    )
    lines.append("")

    lines.append(f"Unused files ({len(result.unused_files)})")
    _render_unused(result, chars, lines)
    lines.append("")

    lines.append(f"Broken references ({len(result.broken_references)})")
    _render_broken(result, chars, lines)

    return "\n".join(lines)


def _render_unused(result: AnalysisResult, chars: Tuple[str, str, str, str], lines: List[str]) -> None:
    branch, last, _, _ = chars
    items = result.unused_files
    for index, item in enumerate(items):
        connector = last if index == len(items) - 1 else branch
        lines.append(f"{connector}{item.path} [{item.reason}, {_format_size(item.size)}]")


def _render_broken(result: AnalysisResult, chars: Tuple[str, str, str, str], lines: List[str]) -> None:
    """Render broken references grouped under their source file."""
    branch, last, vertical, space = chars
    groups = [
        (source, list(refs))
        for source, refs in groupby(result.broken_references, key=lambda ref: ref.source)
    ]

    for group_index, (source, refs) in enumerate(groups):
        is_last_group = group_index == len(groups) - 1
        lines.append(f"{last if is_last_group else branch}{source}")
        prefix = space if is_last_group else vertical
        for ref_index, ref in enumerate(refs):
            connector = last if ref_index == len(refs) - 1 else branch
            lines.append(f"{prefix}{connector}line {ref.line}: {ref.token} [{ref.ref_type.value}]")


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"
