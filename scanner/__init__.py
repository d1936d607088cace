"""Scanner module for source discovery and dependency extraction."""

from .discovery import iter_files
from .parser import scan_file, extract_imports, extract_package, extract_fqcn
from .config import ScanConfig, load_config, read_source_list
from .builder import build_graph, BuildResult

__all__ = [
    "iter_files",
    "scan_file",
    "extract_imports",
    "extract_package",
    "extract_fqcn",
    "ScanConfig",
    "load_config",
    "read_source_list",
    "build_graph",
    "BuildResult",
]
