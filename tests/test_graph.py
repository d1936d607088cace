"""Tests for the dependency graph store and inline cycle guard."""

import threading

import pytest

from depgraph.errors import CycleDetectedError, InvalidArgumentError, NotFoundError
from depgraph.model import DependencyGraph
from depgraph.trace import canonical_cycle, canonical_units, format_route, split_route, trim_to_cycle


class TestDependencyGraph:
    """Tests for edge bookkeeping."""

    def test_empty_graph(self):
        """Test empty graph initialization."""
        graph = DependencyGraph()
        assert len(graph) == 0
        assert graph.units == set()
        assert graph.edge_count == 0
        assert graph.dependents("a") == []
        assert graph.dependers("a") == []

    def test_add_edge(self):
        """Test adding edges."""
        graph = DependencyGraph()

        graph.add_edge("com.a.A", "com.b.B")

        assert len(graph) == 2
        assert "com.a.A" in graph
        assert "com.b.B" in graph
        assert graph.dependents("com.a.A") == ["com.b.B"]

    def test_duplicate_edge_is_kept_once(self):
        """Test that inserting the same edge twice is a no-op."""
        graph = DependencyGraph()

        graph.add_edge("A", "B")
        graph.add_edge("A", "B")

        assert graph.dependents("A") == ["B"]
        assert graph.dependers("B") == ["A"]
        assert graph.edge_count == 1

    @pytest.mark.parametrize("depender,dependent", [("", "B"), ("A", ""), ("", "")])
    def test_empty_names_rejected(self, depender, dependent):
        """Test that empty names fail without touching the graph."""
        graph = DependencyGraph()

        with pytest.raises(InvalidArgumentError):
            graph.add_edge(depender, dependent)

        assert len(graph) == 0
        assert graph.edge_count == 0

    def test_visibility(self):
        """Test that every depender becomes visible from its dependent."""
        graph = DependencyGraph()

        graph.add_edge("app.Main", "util.Strings")
        graph.add_edge("app.Cli", "util.Strings")

        assert graph.dependers("util.Strings") == ["app.Main", "app.Cli"]
        assert graph.dependers("app.Main") == []

    def test_insertion_order(self):
        """Test that dependents keep insertion order."""
        graph = DependencyGraph()

        graph.add_edge("a", "c")
        graph.add_edge("a", "b")

        assert graph.dependents("a") == ["c", "b"]

    def test_dependents_returns_copy(self):
        """Test that modifying the returned list leaves the graph alone."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")

        dependents = graph.dependents("a")
        dependents.append("z")

        assert graph.dependents("a") == ["b"]

    def test_leaf_units_are_not_dependers(self):
        """Test that only units with outgoing edges are depender keys."""
        graph = DependencyGraph()
        graph.add_edge("b", "c")
        graph.add_edge("a", "b")

        assert graph.depender_units() == ["a", "b"]

    def test_iter_edges(self):
        """Test iterating over edges."""
        graph = DependencyGraph()
        edges = [("a", "b"), ("a", "c"), ("b", "d")]

        for depender, dependent in edges:
            graph.add_edge(depender, dependent)

        assert list(graph.iter_edges()) == edges

    def test_repr(self):
        """Test string representation."""
        graph = DependencyGraph(allow_cycles=True)
        graph.add_edge("a", "b")

        assert "units=2" in repr(graph)
        assert "edges=1" in repr(graph)
        assert "allow_cycles=True" in repr(graph)

    def test_concurrent_insertion(self):
        """Test that concurrent writers converge on the same mirrored edge set."""
        graph = DependencyGraph(allow_cycles=True)
        edges = [(f"u{i}", f"u{(i * 7 + 3) % 50}") for i in range(200)]
        expected = {(a, b) for a, b in edges if a != b}

        def insert(offset):
            for i in range(len(edges)):
                a, b = edges[(i + offset) % len(edges)]
                if a != b:
                    graph.add_edge(a, b)

        threads = [threading.Thread(target=insert, args=(n * 13,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert set(graph.iter_edges()) == expected
        assert graph.edge_count == len(expected)
        visibility_edges = {
            (depender, unit)
            for unit in graph.units
            for depender in graph.dependers(unit)
        }
        assert visibility_edges == expected

    def test_readers_never_see_half_an_edge(self):
        """Test that an edge read from one map is already in the other."""
        graph = DependencyGraph(allow_cycles=True)
        edges = [(f"u{i % 30}", f"v{(i * 11) % 30}") for i in range(300)]
        done = threading.Event()
        mismatches = []

        def write(offset):
            for i in range(len(edges)):
                graph.add_edge(*edges[(i + offset) % len(edges)])

        def read():
            while not done.is_set():
                for depender, dependent in edges:
                    if dependent in graph.dependents(depender):
                        if depender not in graph.dependers(dependent):
                            mismatches.append((depender, dependent))
                    if depender in graph.dependers(dependent):
                        if dependent not in graph.dependents(depender):
                            mismatches.append((depender, dependent))

        readers = [threading.Thread(target=read) for _ in range(4)]
        writers = [threading.Thread(target=write, args=(n * 37,)) for n in range(4)]
        for t in readers + writers:
            t.start()
        for t in writers:
            t.join()
        done.set()
        for t in readers:
            t.join()

        assert mismatches == []
        assert set(graph.iter_edges()) == set(edges)


class TestInlineCycleGuard:
    """Tests for rejecting edges that close a cycle."""

    def test_allow_cycles_default(self):
        """Test that cycles are rejected unless allowed."""
        assert DependencyGraph().allow_cycles is False
        assert DependencyGraph(allow_cycles=True).allow_cycles is True

    def test_two_unit_cycle(self):
        """Test that the edge closing a two-unit cycle is rejected."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")

        with pytest.raises(CycleDetectedError) as excinfo:
            graph.add_edge("b", "a")

        assert excinfo.value.trace == "a -> b -> a"
        assert "a -> b -> a" in str(excinfo.value)

    def test_rejected_edge_not_retained(self):
        """Test that a rejected edge is removed from both maps."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")

        with pytest.raises(CycleDetectedError):
            graph.add_edge("b", "a")

        assert graph.dependents("a") == ["b"]
        assert graph.dependents("b") == []
        assert graph.dependers("a") == []
        assert graph.depender_units() == ["a"]
        assert graph.edge_count == 1

    def test_three_unit_cycle(self):
        """Test the trace of a longer cycle."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")
        graph.add_edge("b", "c")

        with pytest.raises(CycleDetectedError) as excinfo:
            graph.add_edge("c", "a")

        assert excinfo.value.trace == "a -> b -> c -> a"

    def test_self_reference(self):
        """Test that a unit depending on itself is rejected."""
        graph = DependencyGraph()

        with pytest.raises(CycleDetectedError) as excinfo:
            graph.add_edge("a", "a")

        assert excinfo.value.trace == "a -> a"
        assert "a" not in graph

    def test_trace_skips_acyclic_prefix(self):
        """Test that the trace starts where the cycle starts."""
        graph = DependencyGraph()
        graph.add_edge("x", "b")
        graph.add_edge("b", "c")

        with pytest.raises(CycleDetectedError) as excinfo:
            graph.add_edge("c", "b")

        assert excinfo.value.trace == "b -> c -> b"

    def test_diamond_is_not_a_cycle(self):
        """Test that shared dependencies on sibling branches do not collide."""
        graph = DependencyGraph()

        graph.add_edge("a", "b")
        graph.add_edge("a", "c")
        graph.add_edge("b", "d")
        graph.add_edge("c", "d")
        graph.add_edge("d", "e")

        assert graph.edge_count == 5

    def test_graph_usable_after_rejection(self):
        """Test that a rejection only affects that one insertion."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")

        with pytest.raises(CycleDetectedError):
            graph.add_edge("b", "a")

        graph.add_edge("b", "c")
        assert graph.dependents("b") == ["c"]

    def test_existing_edge_not_rechecked(self):
        """Test that re-adding an accepted edge succeeds."""
        graph = DependencyGraph()
        graph.add_edge("a", "b")
        graph.add_edge("a", "b")

        assert graph.edge_count == 1

    def test_find_cycle(self):
        """Test looking for a cycle without recording it."""
        graph = DependencyGraph(allow_cycles=True)
        graph.add_edge("a", "b")
        graph.add_edge("b", "a")
        graph.add_edge("c", "d")

        trace = graph.find_cycle("a")

        assert canonical_cycle(trace) == ("a", "b")
        assert graph.find_cycle("c") is None
        assert graph.cycles == set()

    def test_unit_names_containing_arrow(self):
        """Test that unit names holding the route separator are still traced."""
        graph = DependencyGraph()
        graph.add_edge("x -> y", "z")

        with pytest.raises(CycleDetectedError) as excinfo:
            graph.add_edge("z", "x -> y")

        assert excinfo.value.trace == "x -> y -> z -> x -> y"
        assert graph.dependents("z") == []

    def test_concurrent_ring_insertion(self):
        """Test that exactly one edge of a ring is rejected under concurrent writers."""
        ring_size = 40

        for run in range(20):
            graph = DependencyGraph()
            ring = [(f"r{i}", f"r{(i + 1) % ring_size}") for i in range(ring_size)]
            rejected = []
            rejected_lock = threading.Lock()

            def insert(edges):
                for depender, dependent in edges:
                    try:
                        graph.add_edge(depender, dependent)
                    except CycleDetectedError as e:
                        with rejected_lock:
                            rejected.append(e.trace)

            threads = [
                threading.Thread(target=insert, args=(ring[n::6],))
                for n in range(6)
            ]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert len(rejected) == 1, f"run {run}: {rejected}"
            assert graph.edge_count == ring_size - 1
            cycles, all_clear = graph.check_all(max_workers=4)
            assert cycles == set()
            assert all_clear is True


class TestTraces:
    """Tests for trace helpers."""

    def test_trim_to_cycle(self):
        """Test trimming a route to its cycle."""
        assert trim_to_cycle("x -> y -> x", "y") == "y -> x"
        assert trim_to_cycle("a -> b -> c -> b", "b") == "b -> c -> b"

    def test_trim_matches_whole_names(self):
        """Test that a name is not matched inside a longer name."""
        assert trim_to_cycle("ab -> b -> ab", "b") == "b -> ab"

    @pytest.mark.parametrize("route,offender", [("", "y"), ("x -> y", ""), ("", "")])
    def test_trim_empty_arguments(self, route, offender):
        """Test that empty arguments are rejected."""
        with pytest.raises(InvalidArgumentError):
            trim_to_cycle(route, offender)

    def test_trim_offender_missing(self):
        """Test that an absent offender is reported as not found."""
        with pytest.raises(NotFoundError):
            trim_to_cycle("x -> y -> x", "z")

    def test_error_types(self):
        """Test that errors also match the built-in categories."""
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(NotFoundError, LookupError)

    def test_format_and_split(self):
        """Test joining and splitting routes."""
        assert format_route(["a", "b", "a"]) == "a -> b -> a"
        assert split_route("a -> b -> a") == ["a", "b", "a"]
        assert split_route("") == []

    def test_canonical_cycle(self):
        """Test that rotations of a cycle share a key."""
        assert canonical_cycle("b -> c -> a -> b") == ("a", "b", "c")
        assert canonical_cycle("a -> b -> c -> a") == ("a", "b", "c")
        assert canonical_cycle("a -> c -> b -> a") != canonical_cycle("a -> b -> c -> a")
        assert canonical_cycle("a -> a") == ("a",)

    def test_canonical_units(self):
        """Test rotation keys built from unit names rather than a route string."""
        assert canonical_units(["x -> y", "z", "x -> y"]) == ("x -> y", "z")
        assert canonical_units(("z", "x -> y")) == ("x -> y", "z")
        assert canonical_units(["a", "a"]) == ("a",)
