"""Plain text exporter for cycle reports (human-friendly format)."""

from typing import Iterable, List


def to_text(cycles: Iterable[str], rejected: Iterable[str] = ()) -> str:
    """
    Render cycle traces as plain text, one per line.

    Args:
        cycles: Cycle traces found by an audit.
        rejected: Traces of edges rejected while building in strict mode.

    Returns:
        A summary line followed by the sorted traces.
    """
    lines: List[str] = []

    found = sorted(cycles)
    if found:
        lines.append(f"{len(found)} dependency cycle(s) detected:")
        lines.extend(f"  {trace}" for trace in found)
    else:
        lines.append("No dependency cycles found")

    refused = sorted(set(rejected))
    if refused:
        lines.append("")
        lines.append(f"{len(refused)} edge(s) rejected because they would close a cycle:")
        lines.extend(f"  {trace}" for trace in refused)

    return "\n".join(lines)
