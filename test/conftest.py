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
"""Pytest configuration and shared fixtures for pomgen tests.

Targets are built directly as model objects, so most tests never touch the
filesystem. Fixtures that need files (descriptors, Java sources) lay them out
under tmp_path using the same split as a real Bazel workspace: sources under
the workspace, generated files and descriptors under the execution root.
"""

import sys
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pomgen.config import PomGenConfig, WorkspacePaths
from pomgen.coordinates import MavenCoordinate
from pomgen.targets import AggregatorUnit, CompiledUnit, ExternalArtifact, ImportedJar, SourcePath, SourceRoot

MAVEN_CENTRAL = "https://repo1.maven.org/maven2"


def unit_output(module: str, name: str) -> str:
    return f"bazel-out/k8-fastbuild/bin/{module}/lib{name}.jar"


@pytest.fixture
def workspace_paths(tmp_path: Path) -> WorkspacePaths:
    """Workspace, execution root and output base as separate directories."""
    paths = WorkspacePaths(
        workspace=tmp_path / "workspace",
        execution_root=tmp_path / "execroot",
        output_base=tmp_path / "output_base",
        bazel_bin=tmp_path / "execroot" / "bazel-out" / "k8-fastbuild" / "bin",
    )
    for directory in (paths.workspace, paths.execution_root, paths.output_base, paths.bazel_bin):
        directory.mkdir(parents=True, exist_ok=True)
    return paths


@pytest.fixture
def config(workspace_paths: WorkspacePaths) -> PomGenConfig:
    """Multi module configuration with workspace paths."""
    return PomGenConfig(single_module=False, paths=workspace_paths)


@pytest.fixture
def make_unit() -> Callable[..., CompiledUnit]:
    """Factory for compiled units.

    The unit's single output is unit_output(module, name); pass other units'
    outputs as deps.
    """

    def factory(
        name: str,
        module: str,
        deps: Sequence[str] = (),
        runtime_deps: Sequence[str] = (),
        root: Optional[str] = "src/main/java",
        resource_root: Optional[str] = None,
        is_test: bool = False,
        coordinate: Optional[MavenCoordinate] = None,
    ) -> CompiledUnit:
        srcs = (SourcePath(SourceRoot("", module, root), f"com/example/{name}.java"),) if root else ()
        resources = (SourcePath(SourceRoot("", module, resource_root), f"{name}.properties"),) if resource_root else ()
        return CompiledUnit(
            descriptor_path=Path(f"/bin/{module}/{name}-maven-info.json"),
            label=f"//{module}:{name}",
            module=module,
            outputs=(unit_output(module, name),),
            srcs=srcs,
            resources=resources,
            compile_deps=tuple(deps),
            runtime_deps=tuple(runtime_deps),
            declared_coordinate=coordinate,
            is_test=is_test,
        )

    return factory


@pytest.fixture
def make_external() -> Callable[..., ExternalArtifact]:
    """Factory for external artifacts, output 'external/maven/<artifact>.jar'."""

    def factory(
        coord: str, repository: str = MAVEN_CENTRAL, deps: Sequence[str] = (), runtime_deps: Sequence[str] = ()
    ) -> ExternalArtifact:
        coordinate = MavenCoordinate.parse(coord)
        return ExternalArtifact(
            descriptor_path=Path(f"/external/maven/{coordinate.artifact_id}-maven-info.json"),
            label=f"@maven//:{coordinate.artifact_id}",
            outputs=(f"external/maven/{coordinate.artifact_id}.jar",),
            coordinate=coordinate,
            repository=repository,
            compile_deps=tuple(deps),
            runtime_deps=tuple(runtime_deps),
        )

    return factory


@pytest.fixture
def make_import() -> Callable[..., Any]:
    """Factory for local imports: an ImportedJar when jars are given, else an AggregatorUnit."""

    def factory(name: str, jars: Sequence[str] = (), deps: Sequence[str] = (), coord: Optional[str] = None) -> Any:
        coordinate = MavenCoordinate.parse(coord) if coord else MavenCoordinate.from_path(f"third_party/{name}")
        common: Dict[str, Any] = dict(
            descriptor_path=Path(f"/bin/third_party/{name}-maven-info.json"),
            label=f"//third_party:{name}",
            outputs=(f"bazel-out/k8-fastbuild/bin/third_party/{name}.jar",),
            coordinate=coordinate,
            compile_deps=tuple(deps),
        )
        if jars:
            return ImportedJar(jars=tuple(jars), **common)
        return AggregatorUnit(**common)

    return factory


@pytest.fixture
def cycle_targets(make_unit: Callable[..., CompiledUnit]) -> Dict[str, CompiledUnit]:
    """Modules a -> b -> c -> a, each with one unit, plus d depending on a and an independent e."""
    a1 = make_unit("a1", "a", deps=[unit_output("b", "b1")])
    b1 = make_unit("b1", "b", deps=[unit_output("c", "c1")])
    c1 = make_unit("c1", "c", deps=[unit_output("a", "a1")])
    d1 = make_unit("d1", "d", deps=[unit_output("a", "a1")])
    e1 = make_unit("e1", "e")
    return {"a1": a1, "b1": b1, "c1": c1, "d1": d1, "e1": e1}


@pytest.fixture
def write_java(workspace_paths: WorkspacePaths) -> Callable[[str, str], str]:
    """Write a Java source file with a package line under the workspace, returning its relative path."""

    def writer(relative_path: str, package: str) -> str:
        path = workspace_paths.to_absolute_path(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        header = f"package {package};\n" if package else ""
        path.write_text(f"{header}\npublic class {path.stem} {{}}\n", encoding="utf-8")
        return relative_path

    return writer


@pytest.fixture
def write_descriptor(workspace_paths: WorkspacePaths) -> Callable[..., Path]:
    """Write a descriptor under bazel-bin, returning its absolute path.

    The descriptor is named after the label the way the aspect names it.
    """

    def writer(label: str, **fields: Any) -> Path:
        package, _, name = label.lstrip("/").partition(":")
        path = workspace_paths.bazel_bin / package / f"{name}-maven-info.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"kind": fields.pop("kind", "java_library"), "label": label}
        data.update(fields)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return writer


@pytest.fixture
def relative_to_exec_root(workspace_paths: WorkspacePaths) -> Callable[[Path], str]:
    """Convert an absolute descriptor path to the execution-root relative form used in otherInfos."""
    return lambda path: str(path.relative_to(workspace_paths.execution_root))


@pytest.fixture
def output_of() -> Callable[[str, str], str]:
    """Output id of the unit make_unit(name, module) builds."""
    return unit_output
