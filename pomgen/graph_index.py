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
"""Indices over the parsed build graph.

BuildGraphIndex is built once from the immutable target list and is read-only
afterwards (apart from the coordinate uniqueness rewrite done while building).
It answers the questions the module graph and the scope resolver keep asking:
who provides an output, which module a unit lives in, what a unit really
depends on once pass-through targets are inlined, and who depends on an output.
"""

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Dict, Iterator, List, Tuple

import networkx as nx

from pomgen.color_utils import print_warning
from pomgen.config import PomGenConfig
from pomgen.constants import UnknownOutputError
from pomgen.coordinates import MavenCoordinate
from pomgen.maven_module import MavenModule
from pomgen.targets import (
    AggregatorUnit,
    CompiledUnit,
    DependencyType,
    ImportedJar,
    Target,
    get_descriptor_path,
    get_extra_deps,
    get_outputs,
)

logger = logging.getLogger(__name__)


def _distinct(items: Iterator[str]) -> List[str]:
    return list(dict.fromkeys(items))


class BuildGraphIndex:
    """Output, module, local import and reverse-dependency indices.

    Attributes:
        config: Run configuration
        outputs_to_target: Output id -> target providing it (last registered wins)
        modules_by_path: Module path -> MavenModule
        system_imports: Local import coordinate -> its jars (first declaration wins)
        reverse_deps: Output id -> compiled units whose flattened deps reference it
    """

    def __init__(self, targets: List[Target], config: PomGenConfig):
        self.config = config
        self.outputs_to_target: Dict[str, Target] = {}
        self.modules_by_path: Dict[str, MavenModule] = {}
        self.system_imports: Dict[MavenCoordinate, Tuple[str, ...]] = {}
        self.reverse_deps: Dict[str, List[CompiledUnit]] = {}

        self._register_outputs(targets)
        self._register_system_imports(targets)
        self._build_modules(targets)
        self._build_reverse_deps(targets)

        logger.debug(
            "Indexed %s outputs, %s modules, %s local imports", len(self.outputs_to_target), len(self.modules_by_path), len(self.system_imports)
        )

    def _register_outputs(self, targets: List[Target]) -> None:
        for target in targets:
            # A target's own output list can contain duplicates
            for output in dict.fromkeys(get_outputs(target)):
                existing = self.outputs_to_target.get(output)
                if existing is not None:
                    print_warning(f"File {output} is provided by both {get_descriptor_path(target)} and {get_descriptor_path(existing)}")
                self.outputs_to_target[output] = target

    def _register_system_imports(self, targets: List[Target]) -> None:
        for target in targets:
            if isinstance(target, ImportedJar):
                jars = target.jars
            elif isinstance(target, AggregatorUnit):
                jars = ()
            else:
                continue
            # The same coordinate appears once per configuration it is used in
            self.system_imports.setdefault(target.coordinate, jars)

    def _build_modules(self, targets: List[Target]) -> None:
        units_by_module: DefaultDict[str, List[CompiledUnit]] = defaultdict(list)
        for target in targets:
            if isinstance(target, CompiledUnit):
                units_by_module[target.module].append(target)

        for path, units in units_by_module.items():
            self.modules_by_path[path] = MavenModule(path, units, self.config)

        modules_by_coordinate: DefaultDict[MavenCoordinate, List[MavenModule]] = defaultdict(list)
        for module in self.modules_by_path.values():
            modules_by_coordinate[module.coordinate].append(module)

        for coordinate, modules in modules_by_coordinate.items():
            if len(modules) > 1:
                logger.info("Coordinate %s is shared by %s modules, deriving unique coordinates", coordinate, len(modules))
                for module in modules:
                    module.make_coordinate_unique()

    def _build_reverse_deps(self, targets: List[Target]) -> None:
        reverse: DefaultDict[str, List[CompiledUnit]] = defaultdict(list)
        for target in targets:
            if isinstance(target, CompiledUnit):
                for dep in self.all_deps_with_extra_deps(target):
                    reverse[dep].append(target)
        self.reverse_deps = dict(reverse)

    def target_for(self, output: str) -> Target:
        """Return the target providing an output id.

        Raises:
            UnknownOutputError: If no target provides it
        """
        try:
            return self.outputs_to_target[output]
        except KeyError:
            raise UnknownOutputError(f"No target provides {output}") from None

    def flatten_extra_deps(self, dep: str, dep_type: DependencyType) -> Iterator[str]:
        """Yield dep followed by the flattened extra deps of its provider.

        The extra-deps-only subgraph must be acyclic; there is no guard.
        """
        yield dep
        for extra in get_extra_deps(self.target_for(dep), dep_type, self.config):
            yield from self.flatten_extra_deps(extra, dep_type)

    def deps_with_extra_deps(self, unit: CompiledUnit, dep_type: DependencyType) -> List[str]:
        """Distinct flattened dependencies of one type, in first-seen order."""
        return _distinct(flat for dep in unit.get_deps(dep_type) for flat in self.flatten_extra_deps(dep, dep_type))

    def all_deps_with_extra_deps(self, unit: CompiledUnit) -> List[str]:
        """Distinct flattened dependencies of every type."""
        return _distinct(dep for dep_type in DependencyType for dep in self.deps_with_extra_deps(unit, dep_type))

    def compiled_deps(self, unit: CompiledUnit) -> List[CompiledUnit]:
        """Compiled units the unit depends on (after flattening)."""
        result = []
        for dep in self.all_deps_with_extra_deps(unit):
            target = self.target_for(dep)
            if isinstance(target, CompiledUnit):
                result.append(target)
        return result

    def reverse_compiled_deps(self, unit: CompiledUnit) -> List[CompiledUnit]:
        """Compiled units depending on any output of the unit."""
        return [dependent for output in unit.outputs for dependent in self.reverse_deps.get(output, [])]

    def has_direct_dependency_on_module(self, unit: CompiledUnit, module: str) -> bool:
        return any(dep.module == module for dep in self.compiled_deps(unit))

    def build_unit_graph(self) -> "nx.DiGraph[Any]":
        """Directed graph of compiled units, dependent -> dependency."""
        graph: nx.DiGraph[Any] = nx.DiGraph()
        for module in self.modules_by_path.values():
            graph.add_nodes_from(module.targets)
        for output, dependents in self.reverse_deps.items():
            target = self.outputs_to_target.get(output)
            if isinstance(target, CompiledUnit):
                graph.add_edges_from((dependent, target) for dependent in dependents)
        return graph
