"""File discovery utilities for scanning repositories."""

from pathlib import Path
from typing import Callable, Collection, Dict, Iterator, Optional

from graph.model import FileNode

DEFAULT_EXCLUDE_DIRS = frozenset({
    ".git", ".hg", ".svn",
    "node_modules", "__pycache__", ".tox", ".nox",
    "venv", ".venv",
    ".idea", ".vscode",
    ".mypy_cache", ".pytest_cache",
    "*.egg-info",
})


def iter_files(
    root: Path,
    exclude_dirs: Optional[Collection[str]] = None,
    max_depth: Optional[int] = None,
) -> Iterator[Path]:
    """
    Iterate over files in a directory tree.

    Args:
        root: Root directory to scan.
        exclude_dirs: Set of directory names to skip. Entries starting with
                     '*' match by suffix (e.g. '*.egg-info').
                     If None, uses DEFAULT_EXCLUDE_DIRS.
        max_depth: Maximum depth to descend. None means unlimited.

    Yields:
        Path objects for every regular file, in sorted order.
    """
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDE_DIRS

    suffix_patterns = [pat.lstrip("*") for pat in exclude_dirs if pat.startswith("*")]

    def _walk(current: Path, depth: int) -> Iterator[Path]:
        if max_depth is not None and depth > max_depth:
            return

        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            return

        for entry in entries:
            if entry.is_symlink() and entry.is_dir():
                continue
            if entry.is_dir():
                if entry.name in exclude_dirs:
                    continue
                if any(entry.name.endswith(suffix) for suffix in suffix_patterns):
                    continue
                yield from _walk(entry, depth + 1)
            elif entry.is_file():
                yield entry

    yield from _walk(root, 0)


def enumerate_tree(
    root: Path,
    is_source: Callable[[str], bool],
    exclude_dirs: Optional[Collection[str]] = None,
    max_depth: Optional[int] = None,
) -> Dict[str, FileNode]:
    """
    Snapshot the tree into FileNodes keyed by canonical relative path.

    Args:
        root: Resolved root directory.
        is_source: Predicate deciding whether a path is reference-extractable.
        exclude_dirs: Directory names that are not enumerated.
        max_depth: Maximum depth to descend.

    Returns:
        Mapping of POSIX relative path to FileNode. Directories are never
        included and every path appears once.
    """
    nodes: Dict[str, FileNode] = {}

    for file_path in iter_files(root, exclude_dirs=exclude_dirs, max_depth=max_depth):
        rel_path = get_relative_path(file_path, root)
        try:
            size = file_path.stat().st_size
        except OSError:
            size = 0
        nodes[rel_path] = FileNode(path=rel_path, size=size, is_source=is_source(rel_path))

    return nodes


def get_relative_path(file_path: Path, root: Path) -> str:
    """Get the POSIX path relative to root, handling edge cases."""
    try:
        return file_path.relative_to(root).as_posix()
    except ValueError:
        return file_path.as_posix()
