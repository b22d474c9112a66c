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
"""Per-module scoped dependency resolution.

For every module this works out which coordinates it depends on, in which of
the four scopes, which local jars back them, and which remote repositories the
module needs to list.
"""

import logging
from collections import Counter, defaultdict
from pathlib import Path
from typing import DefaultDict, Dict, FrozenSet, List, Optional, Set
from dataclasses import dataclass

from pomgen.graph_index import BuildGraphIndex
from pomgen.maven_module import MavenModule
from pomgen.coordinates import MavenCoordinate
from pomgen.targets import CompiledUnit, DependencyType, Scope, get_coordinate, get_repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PomDependency:
    """One <dependency> entry of a module pom.

    Attributes:
        coordinate: Dependency coordinate (artifactId suffixed for multi-jar imports)
        scopes: Scopes the dependency is needed in
        system_path: Local jar for system scoped dependencies
        jar_index: Position of the jar when a local import has several
        optional: Whether the dependency is optional
    """

    coordinate: MavenCoordinate
    scopes: FrozenSet[Scope]
    system_path: Optional[Path] = None
    jar_index: Optional[int] = None
    optional: bool = False

    @property
    def maven_scope(self) -> str:
        """Project the scope set onto Maven's single scope."""
        if self.system_path is not None:
            return "system"
        if Scope.MAIN_COMPILE in self.scopes:
            return "compile"
        if Scope.MAIN_RUNTIME in self.scopes:
            return "runtime"
        return "test"


@dataclass
class ResolvedModule:
    """Everything the pom writer needs for one module."""

    module: MavenModule
    coordinate: MavenCoordinate
    dependencies: List[PomDependency]
    repositories: List[str]


def get_unit_scopes(module: MavenModule, unit: CompiledUnit) -> Dict[DependencyType, Set[Scope]]:
    """Scopes a unit's compile and runtime deps contribute to its module."""
    scopes: Dict[DependencyType, Set[Scope]] = {DependencyType.COMPILE: set(), DependencyType.RUNTIME: set()}
    # A unit can have sources in main and test roots at the same time
    if module.is_unit_main(unit):
        scopes[DependencyType.COMPILE].add(Scope.MAIN_COMPILE)
        scopes[DependencyType.RUNTIME].add(Scope.MAIN_RUNTIME)
    if module.is_unit_test(unit):
        scopes[DependencyType.COMPILE].add(Scope.TEST_COMPILE)
        scopes[DependencyType.RUNTIME].add(Scope.TEST_RUNTIME)
    return scopes


def get_deps(index: BuildGraphIndex, module: MavenModule) -> Dict[str, Set[Scope]]:
    """Map every flattened dependency output id of the module to its scopes."""
    result: DefaultDict[str, Set[Scope]] = defaultdict(set)
    for unit in module.targets:
        unit_scopes = get_unit_scopes(module, unit)
        for dep_type in DependencyType:
            for dep in index.deps_with_extra_deps(unit, dep_type):
                result[dep].update(unit_scopes[dep_type])
    return dict(result)


def get_deps_on_coordinates(index: BuildGraphIndex, module: MavenModule) -> Dict[MavenCoordinate, Set[Scope]]:
    """Project the module's dependencies onto coordinates, without the module itself."""
    result: DefaultDict[MavenCoordinate, Set[Scope]] = defaultdict(set)
    for dep, scopes in get_deps(index, module).items():
        result[get_coordinate(index.target_for(dep), index)].update(scopes)
    result.pop(module.coordinate, None)
    return dict(result)


def get_repositories(index: BuildGraphIndex, module: MavenModule) -> List[str]:
    """Origin repositories of the module's dependencies, most used first."""
    counts: Counter = Counter()
    for dep in get_deps(index, module):
        repository = get_repository(index.target_for(dep))
        if repository is not None:
            counts[repository] += 1
    return [repository for repository, _ in sorted(counts.items(), key=lambda item: item[1], reverse=True)]


def get_dependencies(index: BuildGraphIndex, module: MavenModule) -> List[PomDependency]:
    """Build the module's dependency entries.

    Local imports become system scoped entries pointing at their jar. An import
    with several jars is split into one entry per jar with '-<n>' appended to
    the artifactId, and an import with no jars is dropped.

    Returns:
        Entries sorted by groupId then artifactId
    """
    config = index.config
    dependencies: List[PomDependency] = []
    for coordinate, scopes in get_deps_on_coordinates(index, module).items():
        if not scopes:
            continue
        frozen = frozenset(scopes)
        jars = index.system_imports.get(coordinate)

        if jars is None:
            dependencies.append(PomDependency(coordinate, frozen))
        elif len(jars) == 1:
            dependencies.append(PomDependency(coordinate, frozen, config.require_paths().to_absolute_path(jars[0])))
        else:
            for i, jar in enumerate(jars):
                dependencies.append(PomDependency(coordinate.with_artifact_suffix(str(i)), frozen, config.require_paths().to_absolute_path(jar), i))

    return sorted(dependencies, key=lambda d: (d.coordinate.group_id, d.coordinate.artifact_id))


def resolve_module(index: BuildGraphIndex, module: MavenModule) -> ResolvedModule:
    """Resolve coordinate, dependencies and repositories of one module."""
    resolved = ResolvedModule(
        module=module,
        coordinate=module.coordinate,
        dependencies=get_dependencies(index, module),
        repositories=get_repositories(index, module),
    )
    logger.debug("Module '%s': %s dependencies, %s repositories", module.path, len(resolved.dependencies), len(resolved.repositories))
    return resolved
