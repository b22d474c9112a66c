#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""Module-level dependency graph, cycle detection and cycle diagnostics.

Maven forbids dependency cycles between modules, while Bazel only forbids them
between targets. A cycle between modules therefore always goes through at
least one module whose targets could be split apart. This module finds the
cycles, ranks (a, b, c) module triples by how many cycles pass through them and,
for each, lists the targets inside b that carry the a -> b -> c path.
"""

import logging
from collections import Counter
from typing import Any, Callable, Dict, Iterator, List, Set, Tuple
from dataclasses import dataclass, field

import networkx as nx

from pomgen.graph_index import BuildGraphIndex
from pomgen.targets import CompiledUnit

logger = logging.getLogger(__name__)

ModuleTriple = Tuple[str, str, str]


@dataclass
class TripleDiagnostic:
    """Evidence for one ranked module triple a -> b -> c.

    Attributes:
        triple: (a, b, c) module paths
        occurrences: Number of cycles the triple appears in
        forward_targets: Labels of targets in b reachable from a (within b)
        reverse_targets: Labels of targets in b that reach c (within b)
    """

    triple: ModuleTriple
    occurrences: int
    forward_targets: List[str]
    reverse_targets: List[str]


@dataclass
class CycleReport:
    """Result of cycle analysis.

    Attributes:
        cycles: Each cycle as the ordered ring of module paths
        diagnostics: Ranked triples with target-level evidence
        impacted_modules: Modules that must be left out of the generated output
    """

    cycles: List[List[str]] = field(default_factory=list)
    diagnostics: List[TripleDiagnostic] = field(default_factory=list)
    impacted_modules: Set[str] = field(default_factory=set)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)


def build_module_graph(index: BuildGraphIndex) -> "nx.DiGraph[str]":
    """Build the module dependency graph (self-loops excluded).

    Args:
        index: Build graph index

    Returns:
        DiGraph with an edge a -> b when a unit in a depends on a unit in b
    """
    graph: nx.DiGraph[str] = nx.DiGraph()
    graph.add_nodes_from(index.modules_by_path)
    for path, module in index.modules_by_path.items():
        for unit in module.targets:
            graph.add_edges_from((path, dep.module) for dep in index.compiled_deps(unit) if dep.module != path)

    logger.debug("Built module graph with %s nodes and %s edges", graph.number_of_nodes(), graph.number_of_edges())
    return graph


def find_cycles_from(graph: "nx.DiGraph[str]", start: str, visited: Set[str], exclude: Set[str]) -> Iterator[List[str]]:
    """Yield the cycles through start found by a depth-first search.

    A path is reported when the successors of its last module contain start.
    Modules in exclude are never entered and each module is entered at most
    once per search (visited), so a cycle already reported from an earlier
    start is not reported again.

    Args:
        graph: Module graph
        start: Module the search starts from (should already be in exclude)
        visited: Modules entered by this search (updated in place)
        exclude: Modules whose cycles were already searched

    Yields:
        Cycles as paths beginning with start
    """
    path = [start]
    successors = sorted(graph.successors(start))
    if start in successors:
        yield list(path)
    stack: List[Iterator[str]] = [iter(successors)]

    while stack:
        node = next(stack[-1], None)
        if node is None:
            stack.pop()
            path.pop()
            continue
        if node in exclude or node in visited:
            continue
        visited.add(node)
        path.append(node)
        successors = sorted(graph.successors(node))
        if start in successors:
            yield list(path)
        stack.append(iter(successors))


def find_all_cycles(graph: "nx.DiGraph[str]") -> List[List[str]]:
    """Find module cycles, each reported once, starting from modules in sorted order."""
    exclude: Set[str] = set()
    cycles: List[List[str]] = []
    for start in sorted(graph.nodes()):
        exclude.add(start)
        cycles.extend(find_cycles_from(graph, start, set(), exclude))
    return cycles


def get_triples(cycle: List[str]) -> List[ModuleTriple]:
    """Consecutive (a, b, c) triples of a cycle, wrapping around."""
    n = len(cycle)
    return [(cycle[i], cycle[(i + 1) % n], cycle[(i + 2) % n]) for i in range(n)]


def rank_triples(cycles: List[List[str]]) -> List[Tuple[ModuleTriple, int]]:
    """Group identical triples across cycles and sort by occurrence count, highest first.

    Ties keep the order in which the triples were first seen.
    """
    counts: Counter = Counter()
    for cycle in cycles:
        counts.update(get_triples(cycle))
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def _walk_same_module(
    start: CompiledUnit, next_units: Callable[[CompiledUnit], List[CompiledUnit]], module: str, seen: Set[CompiledUnit]
) -> List[CompiledUnit]:
    """Pre-order walk from start through units of the same module.

    Every unit offered by next_units is marked seen, even when it belongs to
    another module and is therefore not entered.
    """
    result = [start]
    stack: List[Iterator[CompiledUnit]] = [iter(next_units(start))]
    while stack:
        unit = next(stack[-1], None)
        if unit is None:
            stack.pop()
            continue
        if unit in seen:
            continue
        seen.add(unit)
        if unit.module != module:
            continue
        result.append(unit)
        stack.append(iter(next_units(unit)))
    return result


def transitive_forward_deps_of_module(index: BuildGraphIndex, module: str, from_module: str) -> List[CompiledUnit]:
    """Units in module reachable from units of from_module, walking only inside module."""
    seen: Set[CompiledUnit] = set()
    result: List[CompiledUnit] = []
    for unit in index.modules_by_path[from_module].targets:
        for dep in index.compiled_deps(unit):
            if dep.module != module or dep in seen:
                continue
            seen.add(dep)
            result.extend(_walk_same_module(dep, index.compiled_deps, module, seen))
    return result


def transitive_reverse_deps_on_module(index: BuildGraphIndex, module: str, to_module: str) -> List[CompiledUnit]:
    """Units in module that reach to_module, walking dependents only inside module."""
    seen: Set[CompiledUnit] = set()
    result: List[CompiledUnit] = []
    for unit in index.modules_by_path[module].targets:
        if unit in seen:
            continue
        seen.add(unit)
        if index.has_direct_dependency_on_module(unit, to_module):
            result.extend(_walk_same_module(unit, index.reverse_compiled_deps, module, seen))
    return result


def has_path_through_module(index: BuildGraphIndex, module: str, from_module: str, to_module: str) -> bool:
    """True if the units of module entered from from_module directly depend on to_module."""
    return any(
        dep.module == to_module for unit in transitive_forward_deps_of_module(index, module, from_module) for dep in index.compiled_deps(unit)
    )


def diagnose_cycles(index: BuildGraphIndex, cycles: List[List[str]]) -> List[TripleDiagnostic]:
    """Rank cycle triples and collect target-level evidence for them.

    A triple (a, b, c) is dropped when the units of b entered from a already
    reach c directly, unless that would leave one of the cycles without any
    triple at all; such a cycle keeps its best-ranked triple.

    Args:
        index: Build graph index
        cycles: Cycles from find_all_cycles()

    Returns:
        Diagnostics in rank order
    """
    ranked = rank_triples(cycles)
    rank_of: Dict[ModuleTriple, int] = {triple: i for i, (triple, _) in enumerate(ranked)}

    kept = {triple for triple, _ in ranked if not has_path_through_module(index, triple[1], triple[0], triple[2])}
    for cycle in cycles:
        triples = get_triples(cycle)
        if not any(t in kept for t in triples):
            best = min(triples, key=lambda t: rank_of[t])
            logger.debug("Keeping %s as the only evidence for cycle %s", best, cycle)
            kept.add(best)

    diagnostics = []
    for triple, occurrences in ranked:
        if triple not in kept:
            continue
        a, b, c = triple
        diagnostics.append(
            TripleDiagnostic(
                triple=triple,
                occurrences=occurrences,
                forward_targets=[u.label for u in transitive_forward_deps_of_module(index, b, a)],
                reverse_targets=[u.label for u in transitive_reverse_deps_on_module(index, b, c)],
            )
        )
    return diagnostics


def find_cycle_impacted_modules(index: BuildGraphIndex, cycles: List[List[str]], unit_graph: Any = None) -> Set[str]:
    """Modules in a cycle plus the modules of every unit that transitively depends on one.

    Args:
        index: Build graph index
        cycles: Detected module cycles
        unit_graph: Optional precomputed index.build_unit_graph()

    Returns:
        Set of module paths to exclude from output
    """
    members = {module for cycle in cycles for module in cycle}
    if not members:
        return set()
    if unit_graph is None:
        unit_graph = index.build_unit_graph()

    impacted = set(members)
    reached: Set[CompiledUnit] = set()
    for module in sorted(members):
        for unit in index.modules_by_path[module].targets:
            if unit in reached:
                continue
            dependents = nx.ancestors(unit_graph, unit)
            reached.update(dependents)
            impacted.update(dependent.module for dependent in dependents)
    return impacted


def analyze_module_cycles(index: BuildGraphIndex) -> CycleReport:
    """Detect module cycles, diagnose them and work out which modules they impact."""
    graph = build_module_graph(index)
    cycles = find_all_cycles(graph)
    if not cycles:
        return CycleReport()

    logger.info("Found %s module cycles", len(cycles))
    return CycleReport(
        cycles=cycles,
        diagnostics=diagnose_cycles(index, cycles),
        impacted_modules=find_cycle_impacted_modules(index, cycles),
    )
