"""Analysis orchestrator: enumerate, extract, resolve, build, traverse, report."""

import os
import threading
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from graph.model import BrokenReference, FileNode, RawReference, ResolvedEdge
from graph.reachability import find_reachable, find_unused
from scanner.builder import build_graph, extract_file
from scanner.discovery import enumerate_tree
from scanner.extractors import ExtractionError, ExtractorRegistry
from scanner.resolver import Resolver

from .config import AnalysisConfig
from .errors import AnalysisCancelled, AnalysisInputError
from .logging import get_logger
from .result import AnalysisResult

logger = get_logger("orchestrator")

# Seconds between checks for cancellation and per-file time budgets.
POLL_INTERVAL = 0.05

_READ_ERRORS = (ExtractionError, OSError, UnicodeDecodeError)


def analyze(
    root: Union[str, Path],
    config: Optional[AnalysisConfig] = None,
    cancel_event: Optional[threading.Event] = None,
    registry: Optional[ExtractorRegistry] = None,
) -> AnalysisResult:
    """
    Analyze a materialized source tree for unused files and broken references.

    Args:
        root: Tree root directory.
        config: Entry-point and exclusion rules, inference lists and
                budgets. Defaults apply when omitted.
        cancel_event: Run-scoped cancellation signal.
        registry: Extractor strategies; the built-in set when omitted.

    Returns:
        AnalysisResult for the tree.

    Raises:
        AnalysisInputError: If the root does not exist or cannot be read.
        AnalysisCancelled: If cancel_event is set before the run completes.
    """
    config = config or AnalysisConfig()
    registry = registry or ExtractorRegistry.default()
    root_path = _validate_root(root)
    _check_cancelled(cancel_event)

    nodes = enumerate_tree(root_path, registry.is_source, exclude_dirs=config.exclude_dirs)
    sources = [nodes[path] for path in sorted(nodes) if nodes[path].is_source]
    logger.debug("Enumerated %d files (%d source) under %s", len(nodes), len(sources), root_path)

    resolver = Resolver(nodes, extensions=config.extensions, index_files=config.index_files)

    references, failed = _extract_all(root_path, sources, registry, config, cancel_event)
    logger.debug(
        "Extracted %d references from %d files (%d failed)",
        sum(len(refs) for refs in references.values()),
        len(references),
        len(failed),
    )
    _check_cancelled(cancel_event)

    executor = ThreadPoolExecutor(max_workers=config.worker_count(), thread_name_prefix="refcheck")
    try:
        edges, broken = _resolve_all(executor, resolver, references, cancel_event)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    _check_cancelled(cancel_event)

    graph = build_graph(nodes, edges)
    entry_rules = config.entry_rules()
    entry_points = {path for path in nodes if entry_rules(path)}
    logger.debug("Built %r with %d entry points", graph, len(entry_points))

    reachable = find_reachable(graph, entry_points)
    unused = find_unused(
        graph,
        nodes,
        entry_points,
        reachable,
        config.exclude_rules(),
        skip=failed,
    )

    result = AnalysisResult(
        unused_files=unused,
        broken_references=broken,
        total_files=len(nodes),
        analyzed_files=len(sources) - len(failed),
        entry_points=sorted(entry_points),
        graph=graph,
    )

    logger.info(
        "Analysis complete: %d unused files, %d broken references (%d of %d files analyzed)",
        len(result.unused_files),
        len(result.broken_references),
        result.analyzed_files,
        result.total_files,
    )
    return result


def _validate_root(root: Union[str, Path]) -> Path:
    root_path = Path(root).expanduser()
    if not root_path.exists():
        raise AnalysisInputError(f"Repository path not found: {root}")
    if not root_path.is_dir():
        raise AnalysisInputError(f"Repository path is not a directory: {root}")

    root_path = root_path.resolve()
    try:
        os.listdir(root_path)
    except OSError as exc:
        raise AnalysisInputError(f"Cannot read repository path {root}: {exc}") from exc
    return root_path


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Analysis cancelled")
        raise AnalysisCancelled("Analysis was cancelled")


def _start_extraction(root: Path, node: FileNode, registry: ExtractorRegistry, max_file_size: int) -> Future:
    """Extract one file on a daemon thread; a hung read never blocks interpreter exit."""
    future: Future = Future()

    def _run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(extract_file(root, node, registry, max_file_size))
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=_run, name=f"refcheck-extract-{node.path}", daemon=True).start()
    return future


def _extract_all(
    root: Path,
    sources: Sequence[FileNode],
    registry: ExtractorRegistry,
    config: AnalysisConfig,
    cancel_event: Optional[threading.Event],
) -> Tuple[Dict[str, List[RawReference]], Set[str]]:
    """
    Run extraction for every source file; returns references and failed paths.

    At most ``config.worker_count()`` files are read at once. A file past
    its time budget is abandoned and its slot goes to the next queued file.
    """
    workers = config.worker_count()
    queue = deque(sources)
    active: Dict[Future, Tuple[FileNode, float]] = {}

    references: Dict[str, List[RawReference]] = {}
    failed: Set[str] = set()

    while queue or active:
        _check_cancelled(cancel_event)
        while queue and len(active) < workers:
            node = queue.popleft()
            future = _start_extraction(root, node, registry, config.max_file_size)
            active[future] = (node, time.monotonic())

        done, _ = wait(active, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)

        for future in done:
            node, _ = active.pop(future)
            try:
                references[node.path] = future.result()
            except _READ_ERRORS as exc:
                logger.warning("Skipping %s: %s", node.path, exc)
                failed.add(node.path)

        now = time.monotonic()
        for future, (node, started) in list(active.items()):
            if now - started > config.read_timeout:
                # The thread cannot be interrupted; its result is discarded.
                del active[future]
                failed.add(node.path)
                logger.warning("Skipping %s: read exceeded %.1fs budget", node.path, config.read_timeout)

    return references, failed


def _resolve_all(
    executor: ThreadPoolExecutor,
    resolver: Resolver,
    references: Dict[str, List[RawReference]],
    cancel_event: Optional[threading.Event],
) -> Tuple[List[ResolvedEdge], List[BrokenReference]]:
    """Resolve every reference, partitioning into edges and broken references."""

    def _resolve_file(refs: List[RawReference]) -> list:
        return [resolver.resolve(ref) for ref in refs]

    edges: List[ResolvedEdge] = []
    broken: List[BrokenReference] = []

    batches = [references[path] for path in sorted(references)]
    for resolutions in executor.map(_resolve_file, batches):
        _check_cancelled(cancel_event)
        for resolution in resolutions:
            if isinstance(resolution, ResolvedEdge):
                edges.append(resolution)
            elif isinstance(resolution, BrokenReference):
                broken.append(resolution)

    return edges, broken
