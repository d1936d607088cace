#!/usr/bin/env python3
"""
depcycle CLI

A tool for scanning Java source roots for import dependencies and reporting
dependency cycles between classes.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

from depgraph.errors import RootScanFailedError
from scanner.builder import build_graph
from scanner.config import (
    ConfigError,
    ScanConfig,
    find_config,
    load_config,
    normalize_extensions,
    read_source_list,
)
from exporters import to_text, to_mermaid, to_json

logger = logging.getLogger("depcycle")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CYCLES = 2


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="depcycle",
        description="Scan Java source roots and report dependency cycles between classes.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  depcycle src/main/java                  # Audit one source root
  depcycle core/src api/src               # Several roots, scanned concurrently
  depcycle -f sources.txt                 # Read roots from a file, one per line
  depcycle src --strict                   # Reject cycle-closing edges while building
  depcycle src --format json -o out.json  # JSON report to a file
  depcycle src --format mermaid           # Mermaid flowchart of the cycles
  depcycle src --fail-on-cycles           # Exit with status 2 if cycles exist
        """,
    )

    # Positional arguments
    parser.add_argument(
        "roots",
        nargs="*",
        help="Source root directories to scan",
    )

    # Input options
    parser.add_argument(
        "-f", "--file",
        type=str,
        default=None,
        help="File listing source roots, one per line",
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Config file (.yaml or .toml); default: .depcycle.yaml or "
             "pyproject.toml [tool.depcycle] in the current directory",
    )

    # Output options
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "--format",
        choices=["text", "json", "mermaid"],
        default="text",
        help="Output format (default: text)",
    )

    # Mermaid-specific options
    parser.add_argument(
        "--orientation",
        choices=["LR", "TD", "TB", "RL", "BT"],
        default="LR",
        help="Mermaid flowchart orientation (default: LR)",
    )

    parser.add_argument(
        "--full-graph",
        action="store_true",
        help="Draw every edge in Mermaid output, not only the cycles",
    )

    # Scanning options
    parser.add_argument(
        "--include-ext",
        nargs="+",
        default=None,
        help="File extensions to include (default: .java)",
    )

    parser.add_argument(
        "--exclude-dir",
        nargs="+",
        default=None,
        help="Additional directory names to exclude",
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum directory depth to scan",
    )

    parser.add_argument(
        "-j", "--jobs",
        type=int,
        default=None,
        help="Number of worker threads for scanning and auditing",
    )

    # Cycle handling
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject edges that would close a cycle while building the graph",
    )

    parser.add_argument(
        "--fail-on-cycles",
        action="store_true",
        help=f"Exit with status {EXIT_CYCLES} when any cycle is found",
    )

    # Verbosity
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug information",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )

    return parser.parse_args(args)


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Send log records to stderr at the requested level."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def resolve_config(parsed) -> ScanConfig:
    """
    Merge the config file (if any) with command line flags.

    Flags win over file settings.

    Raises:
        ConfigError: If a config or source list file is invalid.
    """
    if parsed.config:
        config = load_config(Path(parsed.config))
    else:
        found = find_config(Path.cwd())
        config = load_config(found) if found is not None else ScanConfig()

    roots: List[str] = list(parsed.roots)
    if parsed.file:
        roots.extend(read_source_list(Path(parsed.file)))
    if roots:
        config.roots = roots

    if parsed.include_ext:
        config.include_ext = normalize_extensions(parsed.include_ext)
    if parsed.exclude_dir:
        config.exclude_dirs = config.exclude_dirs | set(parsed.exclude_dir)
    if parsed.max_depth is not None:
        config.max_depth = parsed.max_depth
    if parsed.jobs is not None:
        config.max_workers = parsed.jobs
    if parsed.strict:
        config.allow_cycles = False

    return config


def main(args=None) -> int:
    """Main entry point."""
    parsed = parse_args(args)
    configure_logging(verbose=parsed.verbose, quiet=parsed.quiet)

    epoch = time.monotonic()

    try:
        config = resolve_config(parsed)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if not config.roots:
        print("Error: specify one or more source roots, or a file with -f", file=sys.stderr)
        return EXIT_ERROR

    if config.max_workers is not None and config.max_workers < 1:
        print("Error: --jobs must be at least 1", file=sys.stderr)
        return EXIT_ERROR

    logger.info("Got %d source root(s)", len(config.roots))
    logger.info("Building dependencies")
    start = time.monotonic()

    # Build the graph
    try:
        result = build_graph(
            roots=config.roots,
            allow_cycles=config.allow_cycles,
            include_ext=config.include_ext,
            exclude_dirs=config.exclude_dirs,
            max_depth=config.max_depth,
            max_workers=config.max_workers,
        )
    except RootScanFailedError as e:
        print(f"Error building dependencies: {e}", file=sys.stderr)
        return EXIT_ERROR

    logger.info("Dependencies built in %.3fs", time.monotonic() - start)
    logger.info("Checking cyclic dependencies")
    start = time.monotonic()

    graph = result.graph
    cycles, all_clear = graph.check_all(max_workers=config.max_workers)

    if not all_clear:
        logger.warning("%d dependency cycle(s) detected", len(cycles))
    logger.info("Cyclic dependency check done in %.3fs", time.monotonic() - start)

    # Generate output
    if parsed.format == "json":
        output = to_json(graph, cycles, rejected=result.rejected)
    elif parsed.format == "mermaid":
        output = to_mermaid(
            graph,
            cycles | set(result.rejected),
            orientation=parsed.orientation,
            only_cycles=not parsed.full_graph,
        )
    else:  # text (default)
        output = to_text(cycles, rejected=result.rejected)

    # Write output
    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output + "\n", encoding="utf-8")
            logger.info("Output written to: %s", output_path)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return EXIT_ERROR
    else:
        print(output)

    logger.info("Whole process took %.3fs", time.monotonic() - epoch)

    if parsed.fail_on_cycles and (not all_clear or result.rejected):
        return EXIT_CYCLES
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
