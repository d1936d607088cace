"""JSON exporter for cycle reports (machine-friendly format)."""

import json
from typing import Any, Dict, Iterable, List

from depgraph.model import DependencyGraph
from depgraph.trace import split_route


def to_json(
    graph: DependencyGraph,
    cycles: Iterable[str],
    rejected: Iterable[str] = (),
    indent: int = 2,
    include_graph: bool = True,
) -> str:
    """
    Convert a cycle report to JSON format.

    Args:
        graph: The dependency graph that was audited.
        cycles: Cycle traces found by the audit.
        rejected: Traces of edges rejected while building in strict mode.
        indent: JSON indentation level.
        include_graph: If True, include every unit and edge.

    Returns:
        JSON string representation of the report.
    """
    found = sorted(cycles)

    data: Dict[str, Any] = {
        "all_clear": not found,
        "cycles": [
            {"trace": trace, "units": split_route(trace)}
            for trace in found
        ],
        "rejected": sorted(set(rejected)),
    }

    if include_graph:
        edges: List[Dict[str, str]] = [
            {"depender": depender, "dependent": dependent}
            for depender, dependent in graph.iter_edges()
        ]
        data["units"] = sorted(graph.units)
        data["edges"] = edges

    return json.dumps(data, indent=indent)
