#!/usr/bin/env python3
"""Tests for pomgen/module_graph.py"""

import networkx as nx

from pomgen.config import PomGenConfig
from pomgen.graph_index import BuildGraphIndex
from pomgen.module_graph import (
    analyze_module_cycles,
    build_module_graph,
    diagnose_cycles,
    find_all_cycles,
    find_cycle_impacted_modules,
    get_triples,
    has_path_through_module,
    rank_triples,
    transitive_forward_deps_of_module,
    transitive_reverse_deps_on_module,
)


def graph_of(edges) -> "nx.DiGraph[str]":
    graph: nx.DiGraph[str] = nx.DiGraph()
    graph.add_edges_from(edges)
    return graph


class TestBuildModuleGraph:
    """Tests for build_module_graph."""

    def test_edges_between_modules(self, cycle_targets, config: PomGenConfig) -> None:
        """Test unit edges are lifted to module edges."""
        graph = build_module_graph(BuildGraphIndex(list(cycle_targets.values()), config))
        assert set(graph.edges) == {("a", "b"), ("b", "c"), ("c", "a"), ("d", "a")}
        assert "e" in graph

    def test_no_self_loops(self, make_unit, config: PomGenConfig) -> None:
        """Test edges inside one module are not module edges."""
        dep = make_unit("dep", "svc")
        user = make_unit("user", "svc", deps=[dep.outputs[0]])
        graph = build_module_graph(BuildGraphIndex([dep, user], config))
        assert graph.number_of_edges() == 0


class TestFindAllCycles:
    """Tests for cycle detection."""

    def test_three_cycle_reported_once(self) -> None:
        """Test a ring is reported once, from its smallest module."""
        assert find_all_cycles(graph_of([("a", "b"), ("b", "c"), ("c", "a")])) == [["a", "b", "c"]]

    def test_start_order_does_not_matter(self) -> None:
        """Test insertion order of the graph does not change the result."""
        assert find_all_cycles(graph_of([("c", "a"), ("b", "c"), ("a", "b")])) == [["a", "b", "c"]]

    def test_two_cycle(self) -> None:
        """Test mutual dependencies form a cycle."""
        assert find_all_cycles(graph_of([("a", "b"), ("b", "a")])) == [["a", "b"]]

    def test_acyclic(self) -> None:
        """Test a DAG has no cycles."""
        assert find_all_cycles(graph_of([("a", "b"), ("b", "c"), ("a", "c")])) == []

    def test_two_cycles_through_one_module(self) -> None:
        """Test separate rings sharing a module are both found."""
        cycles = find_all_cycles(graph_of([("a", "b"), ("b", "a"), ("a", "c"), ("c", "a")]))
        assert cycles == [["a", "b"], ["a", "c"]]

    def test_cycle_beyond_acyclic_prefix(self) -> None:
        """Test a cycle not containing the first start is still found."""
        assert find_all_cycles(graph_of([("a", "b"), ("b", "c"), ("c", "b")])) == [["b", "c"]]


class TestTriples:
    """Tests for triple extraction and ranking."""

    def test_get_triples_wraps(self) -> None:
        """Test triples wrap around the ring."""
        assert get_triples(["a", "b", "c"]) == [("a", "b", "c"), ("b", "c", "a"), ("c", "a", "b")]

    def test_get_triples_two_cycle(self) -> None:
        """Test a two-cycle yields a triple per module."""
        assert get_triples(["a", "b"]) == [("a", "b", "a"), ("b", "a", "b")]

    def test_rank_triples(self) -> None:
        """Test shared triples rank first and ties keep first-seen order."""
        ranked = rank_triples([["a", "b", "c"], ["a", "b", "c", "d"]])
        assert ranked[0] == (("a", "b", "c"), 2)
        assert [count for _, count in ranked[1:]] == [1] * 5
        assert ranked[1][0] == ("b", "c", "a")


class TestTransitiveDeps:
    """Tests for target-level evidence inside a module."""

    def test_forward_and_reverse(self, make_unit, output_of, config: PomGenConfig) -> None:
        """Test the walks stay inside the module and list reachable units."""
        a1 = make_unit("a1", "a", deps=[output_of("b", "entry")])
        entry = make_unit("entry", "b", deps=[output_of("b", "inner")])
        inner = make_unit("inner", "b")
        exit_unit = make_unit("exit", "b", deps=[output_of("c", "c1")])
        c1 = make_unit("c1", "c", deps=[output_of("a", "a1")])
        index = BuildGraphIndex([a1, entry, inner, exit_unit, c1], config)

        assert transitive_forward_deps_of_module(index, "b", "a") == [entry, inner]
        assert transitive_reverse_deps_on_module(index, "b", "c") == [exit_unit]
        assert not has_path_through_module(index, "b", "a", "c")

    def test_path_through_module(self, cycle_targets, config: PomGenConfig) -> None:
        """Test a unit entered from a that depends on c is a path through b."""
        index = BuildGraphIndex(list(cycle_targets.values()), config)
        assert has_path_through_module(index, "b", "a", "c")


class TestDiagnoseCycles:
    """Tests for diagnose_cycles."""

    def test_splittable_module_reported(self, make_unit, output_of, config: PomGenConfig) -> None:
        """Test the module whose targets could be split is the one reported."""
        a1 = make_unit("a1", "a", deps=[output_of("b", "b1")])
        b1 = make_unit("b1", "b")
        b2 = make_unit("b2", "b", deps=[output_of("c", "c1")])
        c1 = make_unit("c1", "c", deps=[output_of("a", "a1")])
        index = BuildGraphIndex([a1, b1, b2, c1], config)

        diagnostics = diagnose_cycles(index, [["a", "b", "c"]])
        assert [d.triple for d in diagnostics] == [("a", "b", "c")]
        assert diagnostics[0].forward_targets == ["//b:b1"]
        assert diagnostics[0].reverse_targets == ["//b:b2"]
        assert diagnostics[0].occurrences == 1

    def test_cycle_keeps_best_triple(self, cycle_targets, config: PomGenConfig) -> None:
        """Test a cycle whose triples all pass through their module still reports one."""
        index = BuildGraphIndex(list(cycle_targets.values()), config)
        diagnostics = diagnose_cycles(index, [["a", "b", "c"]])
        assert [d.triple for d in diagnostics] == [("a", "b", "c")]
        assert diagnostics[0].forward_targets == ["//b:b1"]
        assert diagnostics[0].reverse_targets == ["//b:b1"]


class TestImpactedModules:
    """Tests for find_cycle_impacted_modules."""

    def test_dependents_are_impacted(self, cycle_targets, config: PomGenConfig) -> None:
        """Test cycle members and their transitive dependents are excluded."""
        index = BuildGraphIndex(list(cycle_targets.values()), config)
        assert find_cycle_impacted_modules(index, [["a", "b", "c"]]) == {"a", "b", "c", "d"}

    def test_no_cycles(self, cycle_targets, config: PomGenConfig) -> None:
        """Test nothing is impacted without cycles."""
        index = BuildGraphIndex(list(cycle_targets.values()), config)
        assert find_cycle_impacted_modules(index, []) == set()

    def test_transitive_dependent(self, cycle_targets, make_unit, output_of, config: PomGenConfig) -> None:
        """Test a module depending on a dependent of the cycle is impacted too."""
        f1 = make_unit("f1", "f", deps=[output_of("d", "d1")])
        index = BuildGraphIndex(list(cycle_targets.values()) + [f1], config)
        assert "f" in find_cycle_impacted_modules(index, [["a", "b", "c"]])


class TestAnalyzeModuleCycles:
    """Tests for analyze_module_cycles."""

    def test_report(self, cycle_targets, config: PomGenConfig) -> None:
        """Test the full report for one ring."""
        report = analyze_module_cycles(BuildGraphIndex(list(cycle_targets.values()), config))
        assert report.has_cycles
        assert report.cycles == [["a", "b", "c"]]
        assert report.impacted_modules == {"a", "b", "c", "d"}
        assert report.diagnostics

    def test_acyclic_report(self, make_unit, output_of, config: PomGenConfig) -> None:
        """Test an acyclic graph yields an empty report."""
        units = [make_unit("a1", "a", deps=[output_of("b", "b1")]), make_unit("b1", "b")]
        report = analyze_module_cycles(BuildGraphIndex(units, config))
        assert not report.has_cycles
        assert report.impacted_modules == set()
