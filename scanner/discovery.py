"""Source file discovery for scanning source roots."""

import logging
from pathlib import Path
from typing import Iterator, Set, Optional

from depgraph.errors import RootScanError

logger = logging.getLogger(__name__)


DEFAULT_EXTENSIONS = {".java"}
DEFAULT_EXCLUDE_DIRS = {
    ".git", ".hg", ".svn",
    ".gradle", ".mvn", ".idea",
    "build", "target", "out", "bin",
}


def iter_files(
    root: Path,
    include_ext: Optional[Set[str]] = None,
    exclude_dirs: Optional[Set[str]] = None,
    max_depth: Optional[int] = None,
) -> Iterator[Path]:
    """
    Iterate over source files in a directory tree.

    Args:
        root: Root directory to scan.
        include_ext: Set of file extensions to include (e.g., {'.java'}).
                    If None, uses DEFAULT_EXTENSIONS.
        exclude_dirs: Set of directory names to skip. Entries starting
                     with '*' match on name suffix.
                     If None, uses DEFAULT_EXCLUDE_DIRS.
        max_depth: Maximum depth to descend. None means unlimited.

    Yields:
        Path objects for matching files, in sorted order.

    Raises:
        RootScanError: If the root does not exist or is not a directory.
    """
    if include_ext is None:
        include_ext = DEFAULT_EXTENSIONS
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDE_DIRS

    root = Path(root)
    if not root.exists():
        raise RootScanError(root, "no such directory")
    if not root.is_dir():
        raise RootScanError(root, "not a directory")

    suffix_patterns = [pat.lstrip("*") for pat in exclude_dirs if pat.startswith("*")]

    def _walk(current: Path, depth: int) -> Iterator[Path]:
        if max_depth is not None and depth > max_depth:
            return

        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            logger.warning("Permission denied, skipping: %s", current)
            return

        for entry in entries:
            if entry.is_dir():
                if entry.name in exclude_dirs:
                    continue
                if any(entry.name.endswith(pat) for pat in suffix_patterns):
                    continue
                yield from _walk(entry, depth + 1)
            elif entry.is_file():
                if entry.suffix.lower() in include_ext:
                    yield entry
                else:
                    logger.debug("Skipping non-source file: %s", entry)

    yield from _walk(root.resolve(), 0)
