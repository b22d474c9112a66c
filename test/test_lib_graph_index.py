#!/usr/bin/env python3
"""Tests for pomgen/graph_index.py"""

from dataclasses import replace

import pytest

from pomgen.config import PomGenConfig
from pomgen.constants import UnknownOutputError
from pomgen.graph_index import BuildGraphIndex
from pomgen.targets import CompiledUnit, DependencyType


class TestOutputRegistration:
    """Tests for output -> target indexing."""

    def test_duplicate_output_in_one_target(self, make_unit, config: PomGenConfig, capsys) -> None:
        """Test a target listing its own output twice is not a conflict."""
        unit = make_unit("lib", "svc")
        unit = replace(unit, outputs=unit.outputs * 2)
        index = BuildGraphIndex([unit], config)
        assert index.target_for(unit.outputs[0]) is unit
        assert "provided by both" not in capsys.readouterr().err

    def test_output_provided_twice_last_wins(self, make_unit, config: PomGenConfig, capsys) -> None:
        """Test a conflicting provider is warned about and the later one kept."""
        first = make_unit("lib", "svc")
        second = replace(make_unit("lib2", "svc"), outputs=first.outputs)
        index = BuildGraphIndex([first, second], config)
        assert index.target_for(first.outputs[0]) is second
        assert f"File {first.outputs[0]} is provided by both" in capsys.readouterr().err

    def test_unknown_output(self, make_unit, config: PomGenConfig) -> None:
        """Test looking up an output nobody provides fails."""
        index = BuildGraphIndex([make_unit("lib", "svc")], config)
        with pytest.raises(UnknownOutputError):
            index.target_for("missing.jar")


class TestFlattening:
    """Tests for extra dependency flattening."""

    def test_aggregator_and_external_are_inlined(self, make_unit, make_external, make_import, config: PomGenConfig) -> None:
        """Test deps of pass-through targets and external artifacts are flattened in order."""
        guava = make_external("com.google.guava:guava:31.1-jre", deps=["external/maven/failureaccess.jar"])
        failureaccess = make_external("com.google.guava:failureaccess:1.0.1")
        agg = make_import("bundle", deps=[guava.outputs[0]])
        unit = make_unit("lib", "svc", deps=[agg.outputs[0]])
        index = BuildGraphIndex([unit, guava, failureaccess, agg], config)
        assert index.deps_with_extra_deps(unit, DependencyType.COMPILE) == [agg.outputs[0], guava.outputs[0], failureaccess.outputs[0]]

    def test_external_deps_not_inlined_without_bazel_resolution(self, make_unit, make_external, config: PomGenConfig) -> None:
        """Test Maven resolves external transitive deps when Bazel resolution is off."""
        guava = make_external("com.google.guava:guava:31.1-jre", deps=["external/maven/failureaccess.jar"])
        failureaccess = make_external("com.google.guava:failureaccess:1.0.1")
        unit = make_unit("lib", "svc", deps=[guava.outputs[0]])
        index = BuildGraphIndex([unit, guava, failureaccess], config.with_overrides(use_bazel_dependency_resolution=False))
        assert index.deps_with_extra_deps(unit, DependencyType.COMPILE) == [guava.outputs[0]]

    def test_flatten_singleton(self, make_unit, config: PomGenConfig) -> None:
        """Test a compiled unit dependency flattens to itself."""
        dep = make_unit("dep", "core")
        index = BuildGraphIndex([dep], config)
        assert list(index.flatten_extra_deps(dep.outputs[0], DependencyType.COMPILE)) == [dep.outputs[0]]

    def test_distinct_across_paths(self, make_unit, make_import, config: PomGenConfig) -> None:
        """Test a dependency reached twice is listed once."""
        dep = make_unit("dep", "core")
        agg = make_import("bundle", deps=[dep.outputs[0]])
        unit = make_unit("lib", "svc", deps=[dep.outputs[0], agg.outputs[0]])
        index = BuildGraphIndex([unit, dep, agg], config)
        assert index.deps_with_extra_deps(unit, DependencyType.COMPILE) == [dep.outputs[0], agg.outputs[0]]

    def test_compile_and_runtime_are_separate(self, make_unit, config: PomGenConfig) -> None:
        """Test runtime deps don't show up as compile deps."""
        dep = make_unit("dep", "core")
        unit = make_unit("lib", "svc", runtime_deps=[dep.outputs[0]])
        index = BuildGraphIndex([unit, dep], config)
        assert index.deps_with_extra_deps(unit, DependencyType.COMPILE) == []
        assert index.deps_with_extra_deps(unit, DependencyType.RUNTIME) == [dep.outputs[0]]


class TestModules:
    """Tests for module grouping and coordinate uniqueness."""

    def test_units_grouped_by_module(self, make_unit, config: PomGenConfig) -> None:
        """Test each module holds its units."""
        units = [make_unit("a", "svc"), make_unit("b", "svc"), make_unit("c", "core")]
        index = BuildGraphIndex(units, config)
        assert sorted(index.modules_by_path) == ["core", "svc"]
        assert index.modules_by_path["svc"].targets == units[:2]

    def test_shared_coordinate_made_unique(self, make_unit, config: PomGenConfig) -> None:
        """Test modules with the same last path segment get full-path coordinates."""
        index = BuildGraphIndex([make_unit("a", "billing/lib"), make_unit("b", "search/lib"), make_unit("c", "core")], config)
        assert index.modules_by_path["billing/lib"].coordinate.artifact_id == "billing_lib"
        assert index.modules_by_path["search/lib"].coordinate.artifact_id == "search_lib"
        assert index.modules_by_path["core"].coordinate.artifact_id == "core"


class TestSystemImports:
    """Tests for local import indexing."""

    def test_first_declaration_wins(self, make_import, config: PomGenConfig) -> None:
        """Test the jars of the first import of a coordinate are kept."""
        first = make_import("foo", jars=["third_party/foo-1.jar"], coord="x:foo:1")
        second = replace(make_import("foo", jars=["third_party/foo-2.jar"], coord="x:foo:1"), outputs=("other.jar",))
        index = BuildGraphIndex([first, second], config)
        assert index.system_imports[first.coordinate] == ("third_party/foo-1.jar",)

    def test_aggregator_has_no_jars(self, make_import, config: PomGenConfig) -> None:
        """Test an aggregator is a local import without jars."""
        agg = make_import("bundle")
        index = BuildGraphIndex([agg], config)
        assert index.system_imports[agg.coordinate] == ()


class TestReverseDeps:
    """Tests for reverse dependency queries."""

    def test_reverse_compiled_deps(self, make_unit, config: PomGenConfig) -> None:
        """Test dependents are found through the flattened edges."""
        dep = make_unit("dep", "core")
        user = make_unit("user", "svc", deps=[dep.outputs[0]])
        other = make_unit("other", "svc")
        index = BuildGraphIndex([dep, user, other], config)
        assert index.reverse_compiled_deps(dep) == [user]
        assert index.reverse_compiled_deps(user) == []

    def test_compiled_deps_skip_non_units(self, make_unit, make_external, config: PomGenConfig) -> None:
        """Test only compiled units are returned."""
        dep = make_unit("dep", "core")
        guava = make_external("com.google.guava:guava:31.1-jre")
        user = make_unit("user", "svc", deps=[guava.outputs[0], dep.outputs[0]])
        index = BuildGraphIndex([dep, guava, user], config)
        assert index.compiled_deps(user) == [dep]
        assert index.has_direct_dependency_on_module(user, "core")
        assert not index.has_direct_dependency_on_module(user, "svc")

    def test_unit_graph(self, cycle_targets, config: PomGenConfig) -> None:
        """Test the unit graph points from dependent to dependency."""
        graph = BuildGraphIndex(list(cycle_targets.values()), config).build_unit_graph()
        assert graph.has_edge(cycle_targets["a1"], cycle_targets["b1"])
        assert not graph.has_edge(cycle_targets["b1"], cycle_targets["a1"])
        assert isinstance(next(iter(graph.nodes)), CompiledUnit)
