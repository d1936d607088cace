"""Graph data model for storing unit dependencies and finding cycles."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from .errors import CycleDetectedError, InvalidArgumentError
from .sync import ConcurrentSet, RWLock
from .trace import canonical_units, format_route

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    A directed graph of 'depender -> dependent' relationships.

    If A depends on B, A is the depender and B the dependent; B must be
    visible to A. Both directions are stored: the dependency map is the
    adjacency list walked when searching for cycles, the visibility map
    answers "who depends on B" without scanning every edge.

    All methods are safe to call from several threads. Insertion holds a
    readers-writer lock exclusively over both maps, lookups share it.

    Args:
        allow_cycles: If False, an edge that closes a cycle is rejected with
            CycleDetectedError and not kept. If True, every edge is accepted
            and cycles are found later with check_all().
    """

    def __init__(self, allow_cycles: bool = False):
        self._allow_cycles = allow_cycles
        self._lock = RWLock()
        self._deps: Dict[str, List[str]] = {}
        self._visibility: Dict[str, List[str]] = {}  # dependent -> dependers
        self._known_cyclers: ConcurrentSet[str] = ConcurrentSet()
        self._claimed: ConcurrentSet[Tuple[str, ...]] = ConcurrentSet(key=canonical_units)
        self._cycles: ConcurrentSet[str] = ConcurrentSet()

    @property
    def allow_cycles(self) -> bool:
        """Whether edges closing a cycle are accepted."""
        return self._allow_cycles

    @property
    def units(self) -> Set[str]:
        """Return every unit that takes part in at least one edge."""
        with self._lock.read():
            return set(self._deps) | set(self._visibility)

    @property
    def edge_count(self) -> int:
        """Return the number of distinct edges."""
        with self._lock.read():
            return sum(len(targets) for targets in self._deps.values())

    @property
    def known_cyclers(self) -> Set[str]:
        """Return the units already proven to close a cycle."""
        return set(self._known_cyclers.snapshot())

    @property
    def cycles(self) -> Set[str]:
        """Return the cycle traces recorded by previous audits."""
        return set(self._cycles.snapshot())

    def add_edge(self, depender: str, dependent: str) -> None:
        """
        Record that ``depender`` depends on ``dependent``.

        Inserting an existing edge is a no-op.

        Raises:
            InvalidArgumentError: If either name is empty. Nothing is stored.
            CycleDetectedError: If cycles are not allowed and the edge would
                close one. The edge is removed again before the lock is
                released; earlier edges are kept.
        """
        if not depender or not dependent:
            raise InvalidArgumentError("empty depender or dependent")

        with self._lock.write():
            added = _append_unique(self._deps, depender, dependent)
            _append_unique(self._visibility, dependent, depender)

            if not added or self._allow_cycles:
                return

            trace = _walk_for_cycles(depender, self._dependents_unlocked)
            if trace is None:
                return

            _remove(self._deps, depender, dependent)
            _remove(self._visibility, dependent, depender)

        raise CycleDetectedError(trace)

    def dependents(self, unit: str) -> List[str]:
        """Get the units ``unit`` depends on, in insertion order."""
        with self._lock.read():
            return list(self._deps.get(unit, ()))

    def dependers(self, unit: str) -> List[str]:
        """Get the units that depend on ``unit``, in insertion order."""
        with self._lock.read():
            return list(self._visibility.get(unit, ()))

    def depender_units(self) -> List[str]:
        """Return the units with at least one outgoing edge, sorted."""
        with self._lock.read():
            return sorted(self._deps)

    def iter_edges(self) -> Iterator[Tuple[str, str]]:
        """Iterate over a snapshot of all edges as (depender, dependent) tuples."""
        with self._lock.read():
            snapshot = [(source, list(targets)) for source, targets in self._deps.items()]
        for source, targets in sorted(snapshot):
            for target in targets:
                yield source, target

    def find_cycle(self, unit: str) -> Optional[str]:
        """
        Look for a cycle reachable from ``unit`` without recording it.

        Returns:
            The first minimal cycle trace found, or None.
        """
        return _walk_for_cycles(unit, self.dependents)

    def check_all(self, max_workers: Optional[int] = None) -> Tuple[Set[str], bool]:
        """
        Search the whole graph for dependency cycles.

        One task per depender is run on a thread pool. Tasks share the set
        of known cyclers, so a unit already proven to close a cycle is not
        walked again, and share the set of recorded traces, so a cycle
        reached from several roots is reported once.

        The known-cyclers gate trades completeness for speed when cycles
        share units. With ``a <-> b``, ``b <-> c`` and ``c <-> d`` the audit
        typically reports the first and last cycle and misses ``b <-> c``,
        because every walk into it passes a unit already known to cycle.
        ``all_clear`` is still exact: it is False whenever any cycle exists.

        Args:
            max_workers: Thread pool size; None lets the executor decide.

        Returns:
            (traces, all_clear) where all_clear is True iff no cycle exists.
        """
        roots = self.depender_units()
        logger.debug("Auditing %d root unit(s) for cycles", len(roots))

        if roots:
            with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cycle-audit") as pool:
                futures = [pool.submit(self._audit_root, root) for root in roots]
                for future in as_completed(futures):
                    future.result()

        cycles = self.cycles
        return cycles, not cycles

    def _audit_root(self, root: str) -> None:
        _walk_for_cycles(
            root,
            self.dependents,
            on_cycle=self._claim_cycle,
            skip=self._known_cyclers.__contains__,
        )

    def _claim_cycle(self, offender: str, cycle: List[str]) -> bool:
        self._known_cyclers.add(offender)
        if self._claimed.add(tuple(cycle)):
            trace = format_route(cycle)
            self._cycles.add(trace)
            logger.debug("Recorded cycle: %s", trace)
        # keep walking the remaining branches
        return False

    def _dependents_unlocked(self, unit: str) -> Sequence[str]:
        return self._deps.get(unit, ())

    def __len__(self) -> int:
        """Return the number of units in the graph."""
        return len(self.units)

    def __contains__(self, unit: str) -> bool:
        """Check if a unit takes part in any edge."""
        with self._lock.read():
            return unit in self._deps or unit in self._visibility

    def __repr__(self) -> str:
        return (
            f"DependencyGraph(units={len(self)}, edges={self.edge_count}, "
            f"allow_cycles={self._allow_cycles}, cycles={len(self._cycles)})"
        )


def _walk_for_cycles(
    origin: str,
    dependents_of: Callable[[str], Sequence[str]],
    on_cycle: Optional[Callable[[str, List[str]], bool]] = None,
    skip: Optional[Callable[[str], bool]] = None,
) -> Optional[str]:
    """
    Depth-first search for cycles reachable from ``origin``.

    ``seen`` holds the units on the current path only; a unit is dropped
    from it when the walk backs out, so sibling branches never collide. The
    origin starts the walk but is not on the path until some edge leads
    back to it. Units fully explored once are not explored again.

    Args:
        origin: Unit to start from.
        dependents_of: Returns the outgoing edges of a unit.
        on_cycle: Called with (offender, cycle) for each cycle found, where
            cycle lists the units from the offender back to itself. The walk
            stops and returns the trace if it returns True. By default the
            first cycle stops the walk.
        skip: Units for which this returns True are not descended into.

    Returns:
        The trace that stopped the walk, or None.
    """
    path: List[str] = []
    seen: Set[str] = set()
    finished: Set[str] = set()
    frames = [iter(sorted(dependents_of(origin)))]

    while frames:
        nxt = next(frames[-1], None)
        if nxt is None:
            frames.pop()
            # the origin's frame has no path entry
            if path:
                done = path.pop()
                seen.discard(done)
                finished.add(done)
            continue

        if skip is not None and skip(nxt):
            continue

        if nxt in seen:
            cycle = path[path.index(nxt):] + [nxt]
            if on_cycle is None or on_cycle(nxt, cycle):
                return format_route(cycle)
            continue

        if nxt in finished:
            continue

        seen.add(nxt)
        path.append(nxt)
        frames.append(iter(sorted(dependents_of(nxt))))

    return None


def _append_unique(table: Dict[str, List[str]], key: str, value: str) -> bool:
    """Append value to table[key] unless present. Returns True if appended."""
    values = table.setdefault(key, [])
    for existing in values:
        if existing == value:
            return False
    values.append(value)
    return True


def _remove(table: Dict[str, List[str]], key: str, value: str) -> None:
    values = table.get(key)
    if values is None:
        return
    if value in values:
        values.remove(value)
    if not values:
        del table[key]
