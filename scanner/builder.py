"""Graph builder that scans source roots concurrently into one dependency graph."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Set, Tuple, Union

from depgraph.errors import CycleDetectedError, RootScanError, RootScanFailedError
from depgraph.model import DependencyGraph
from .discovery import iter_files
from .parser import scan_file

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of a build: the graph plus what happened while filling it."""

    graph: DependencyGraph
    files_scanned: int = 0
    rejected: List[str] = field(default_factory=list)


def build_graph(
    roots: Sequence[Union[str, Path]],
    allow_cycles: bool = True,
    include_ext: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
    max_depth: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> BuildResult:
    """
    Scan source roots and build a dependency graph.

    Each root is scanned by its own task; all tasks add edges to the same
    graph. A root that fails does not stop the others.

    Args:
        roots: Source root directories.
        allow_cycles: If False, edges closing a cycle are rejected; the
                     traces of rejected edges end up in BuildResult.rejected.
        include_ext: File extensions to scan (default: .java).
        exclude_dirs: Directory names to exclude (default: .git, build, etc.).
        max_depth: Maximum directory depth to scan.
        max_workers: Thread pool size (default: one per root).

    Returns:
        BuildResult holding the graph.

    Raises:
        RootScanFailedError: After all roots were attempted, if any failed.
    """
    graph = DependencyGraph(allow_cycles=allow_cycles)
    result = BuildResult(graph=graph)

    if not roots:
        return result

    start = time.monotonic()
    failures: List[RootScanError] = []

    with ThreadPoolExecutor(max_workers=max_workers or len(roots), thread_name_prefix="scan") as pool:
        futures = [
            pool.submit(_scan_root, graph, Path(root), include_ext, exclude_dirs, max_depth)
            for root in roots
        ]

        for root, future in zip(roots, futures):
            try:
                files, rejected = future.result()
            except RootScanError as e:
                failures.append(e)
            except OSError as e:
                failures.append(RootScanError(root, str(e)))
            else:
                result.files_scanned += files
                result.rejected.extend(rejected)

    for failure in failures:
        logger.error("Failed scanning root %s", failure)

    if failures:
        raise RootScanFailedError(failures)

    logger.info(
        "Scanned %d file(s) from %d root(s) in %.3fs: %r",
        result.files_scanned, len(roots), time.monotonic() - start, graph,
    )
    return result


def _scan_root(
    graph: DependencyGraph,
    root: Path,
    include_ext: Optional[Set[str]],
    exclude_dirs: Optional[Set[str]],
    max_depth: Optional[int],
) -> Tuple[int, List[str]]:
    """Scan one root into the graph. Returns (files scanned, rejected traces)."""
    files = 0
    rejected: List[str] = []

    logger.debug("Scanning root %s", root)

    for file_path in iter_files(
        root=root,
        include_ext=include_ext,
        exclude_dirs=exclude_dirs,
        max_depth=max_depth,
    ):
        unit = scan_file(file_path)
        files += 1

        if not unit.name:
            logger.warning("Cannot name unit for %s, skipping", file_path)
            continue

        for reference in unit.references:
            if reference == unit.name:
                continue
            try:
                graph.add_edge(unit.name, reference)
            except CycleDetectedError as e:
                logger.warning("Rejected %s -> %s: %s", unit.name, reference, e.trace)
                rejected.append(e.trace)

    return files, rejected
