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
"""Target model for the parsed build graph.

A target is one of a closed set of variants:

- CompiledUnit: a java_library/java_binary/java_test with sources or resources.
  It belongs to exactly one module and carries its direct dependency edges.
- ExternalArtifact: a jar resolved from a remote Maven repository.
- ImportedJar: prebuilt local jar(s) (java_import and friends).
- AggregatorUnit: a target with no jars of its own that only re-exports deps.

Every variant is addressed through the same small surface (outputs, coordinate,
extra deps, repository). Consumers dispatch with isinstance over all variants
and raise TypeError for anything else, so adding a variant forces every
consumption point to be revisited.
"""

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, FrozenSet, List, Optional, Tuple, Union
from dataclasses import dataclass

from pomgen.config import PomGenConfig, WorkspacePaths
from pomgen.coordinates import MavenCoordinate

if TYPE_CHECKING:
    from pomgen.graph_index import BuildGraphIndex


class DependencyType(Enum):
    """Kind of dependency edge. Compile and runtime edges are independent."""

    COMPILE = "compile"
    RUNTIME = "runtime"


class Scope(Enum):
    """When a dependency is needed by a module."""

    MAIN_COMPILE = "main_compile"
    MAIN_RUNTIME = "main_runtime"
    TEST_COMPILE = "test_compile"
    TEST_RUNTIME = "test_runtime"


@dataclass(frozen=True)
class SourceRoot:
    """A source or resource root.

    Attributes:
        prefix: 'bazel-out/<config>/bin/' for generated files, '' otherwise
        module_root: Module directory relative to the workspace ('' for the root module)
        source_root: Root directory relative to the module directory
    """

    prefix: str
    module_root: str
    source_root: str

    def relative_path(self) -> str:
        """Execution-root relative path of this root."""
        if not self.module_root:
            return f"{self.prefix}{self.source_root}"
        return f"{self.prefix}{self.module_root}/{self.source_root}"

    def absolute_path(self, paths: WorkspacePaths) -> Path:
        return paths.to_absolute_path(self.relative_path())

    def has_suffix(self, suffixes: List[str]) -> bool:
        return any(self.source_root.endswith(suffix) for suffix in suffixes)


@dataclass(frozen=True)
class SourcePath:
    """A file inside a source root."""

    root: SourceRoot
    path: str


@dataclass(frozen=True)
class CompiledUnit:
    """A target with sources and/or resources."""

    descriptor_path: Path
    label: str
    module: str
    outputs: Tuple[str, ...]
    srcs: Tuple[SourcePath, ...] = ()
    resources: Tuple[SourcePath, ...] = ()
    compile_deps: Tuple[str, ...] = ()
    runtime_deps: Tuple[str, ...] = ()
    declared_coordinate: Optional[MavenCoordinate] = None
    is_test: bool = False

    def source_roots(self) -> FrozenSet[SourceRoot]:
        return frozenset(src.root for src in self.srcs)

    def resource_roots(self) -> FrozenSet[SourceRoot]:
        return frozenset(res.root for res in self.resources)

    def get_deps(self, dep_type: DependencyType) -> Tuple[str, ...]:
        """Direct dependency output ids of the given type."""
        if dep_type is DependencyType.COMPILE:
            return self.compile_deps
        return self.runtime_deps


@dataclass(frozen=True)
class ExternalArtifact:
    """A jar fetched from a remote Maven repository."""

    descriptor_path: Path
    label: str
    outputs: Tuple[str, ...]
    coordinate: MavenCoordinate
    repository: str
    compile_deps: Tuple[str, ...] = ()
    runtime_deps: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImportedJar:
    """Prebuilt jar(s) checked into or generated inside the workspace."""

    descriptor_path: Path
    label: str
    outputs: Tuple[str, ...]
    jars: Tuple[str, ...]
    coordinate: MavenCoordinate
    compile_deps: Tuple[str, ...] = ()
    runtime_deps: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AggregatorUnit:
    """A target with no jars that only passes its dependencies through."""

    descriptor_path: Path
    label: str
    outputs: Tuple[str, ...]
    coordinate: MavenCoordinate
    compile_deps: Tuple[str, ...] = ()
    runtime_deps: Tuple[str, ...] = ()


Target = Union[CompiledUnit, ExternalArtifact, ImportedJar, AggregatorUnit]


def get_outputs(target: Target) -> Tuple[str, ...]:
    """Output ids provided by a target (may contain duplicates)."""
    if isinstance(target, (CompiledUnit, ExternalArtifact, ImportedJar, AggregatorUnit)):
        return target.outputs
    raise TypeError(f"Unknown target type: {type(target).__name__}")


def get_coordinate(target: Target, index: "BuildGraphIndex") -> MavenCoordinate:
    """Maven coordinate that provides the target.

    A compiled unit is provided by its module, so its coordinate is looked up in
    the index (and reflects any uniqueness rewrite).
    """
    if isinstance(target, CompiledUnit):
        return index.modules_by_path[target.module].coordinate
    if isinstance(target, (ExternalArtifact, ImportedJar, AggregatorUnit)):
        return target.coordinate
    raise TypeError(f"Unknown target type: {type(target).__name__}")


def get_extra_deps(target: Target, dep_type: DependencyType, config: PomGenConfig) -> Tuple[str, ...]:
    """Dependencies that depending on the target's coordinate will not bring in.

    Maven only sees the coordinate, so anything a consumer would otherwise lose
    has to be inlined into the consumer's pom.
    """
    if isinstance(target, CompiledUnit):
        # Module poms carry their own dependencies
        return ()
    if isinstance(target, ExternalArtifact):
        if not config.use_bazel_dependency_resolution:
            return ()
        return target.compile_deps if dep_type is DependencyType.COMPILE else target.runtime_deps
    if isinstance(target, (ImportedJar, AggregatorUnit)):
        return target.compile_deps if dep_type is DependencyType.COMPILE else target.runtime_deps
    raise TypeError(f"Unknown target type: {type(target).__name__}")


def get_repository(target: Target) -> Optional[str]:
    """Origin repository URL, for artifacts that have one."""
    if isinstance(target, ExternalArtifact):
        return target.repository
    if isinstance(target, (CompiledUnit, ImportedJar, AggregatorUnit)):
        return None
    raise TypeError(f"Unknown target type: {type(target).__name__}")


def get_descriptor_path(target: Target) -> Path:
    if isinstance(target, (CompiledUnit, ExternalArtifact, ImportedJar, AggregatorUnit)):
        return target.descriptor_path
    raise TypeError(f"Unknown target type: {type(target).__name__}")
