"""Mermaid flowchart exporter for dependency graphs and their cycles."""

import re
from typing import Dict, Iterable, List, Set, Tuple

from depgraph.model import DependencyGraph
from depgraph.trace import split_route


CYCLE_EDGE_STYLE = "stroke:#ff0000,stroke-width:2px"
CYCLE_NODE_STYLE = "stroke:#ff0000"


def to_mermaid(
    graph: DependencyGraph,
    cycles: Iterable[str],
    orientation: str = "LR",
    only_cycles: bool = True,
) -> str:
    """
    Convert a dependency graph to Mermaid flowchart syntax.

    Edges that belong to a reported cycle are drawn in red.

    Args:
        graph: The dependency graph.
        cycles: Cycle traces to highlight.
        orientation: Flowchart orientation (LR, TD, TB, RL, BT).
        only_cycles: If True, draw only the units and edges of the cycles.

    Returns:
        Mermaid flowchart string.
    """
    lines = [f"flowchart {orientation}"]

    cycle_edges = _cycle_edges(cycles)

    if only_cycles:
        edges = sorted(cycle_edges)
    else:
        edges = list(graph.iter_edges())

    nodes: Set[str] = set()
    for depender, dependent in edges:
        nodes.add(depender)
        nodes.add(dependent)

    node_ids = _assign_ids(sorted(nodes))

    # Node definitions with labels
    for node in sorted(nodes):
        lines.append(f'    {node_ids[node]}["{node}"]')

    if edges:
        lines.append("")

    highlighted: List[int] = []
    for index, (depender, dependent) in enumerate(edges):
        lines.append(f"    {node_ids[depender]} --> {node_ids[dependent]}")
        if (depender, dependent) in cycle_edges:
            highlighted.append(index)

    if highlighted:
        lines.append("")
        lines.append("    %% Cycle edges")
        lines.append(f"    linkStyle {','.join(str(i) for i in highlighted)} {CYCLE_EDGE_STYLE}")
        cyclic_nodes = sorted({n for edge in cycle_edges for n in edge} & nodes)
        for node in cyclic_nodes:
            lines.append(f"    style {node_ids[node]} {CYCLE_NODE_STYLE}")

    return "\n".join(lines)


def _cycle_edges(cycles: Iterable[str]) -> Set[Tuple[str, str]]:
    """Collect the (depender, dependent) pairs along each trace."""
    edges: Set[Tuple[str, str]] = set()
    for trace in cycles:
        units = split_route(trace)
        edges.update(zip(units, units[1:]))
    return edges


def _assign_ids(nodes: List[str]) -> Dict[str, str]:
    """Map unit names to unique, valid Mermaid node IDs."""
    ids: Dict[str, str] = {}
    used: Set[str] = set()
    for node in nodes:
        base = _sanitize_id(node)
        candidate = base
        suffix = 1
        while candidate in used:
            suffix += 1
            candidate = f"{base}_{suffix}"
        used.add(candidate)
        ids[node] = candidate
    return ids


def _sanitize_id(value: str) -> str:
    """
    Sanitize a unit name to be a valid Mermaid ID.

    Mermaid IDs can only contain letters, digits, and underscores.
    """
    # Replace separators and dots with underscores
    sanitized = re.sub(r"[/\\.\-$*]", "_", value)
    # Remove any remaining invalid characters
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "", sanitized)
    # Ensure it starts with a letter
    if sanitized and not sanitized[0].isalpha():
        sanitized = "n_" + sanitized
    return sanitized or "unknown"
