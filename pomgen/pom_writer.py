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
"""Serialization of resolved modules to pom.xml files."""

import re
import logging
from pathlib import Path
from typing import Iterable, List, Optional
import xml.etree.ElementTree as ET

from pomgen.color_utils import print_detail, print_info
from pomgen.config import PomGenConfig
from pomgen.constants import (
    BUILD_HELPER_PLUGIN_VERSION,
    COMPILER_PLUGIN_VERSION,
    GENERATED_GROUP_ID,
    GENERATED_VERSION,
    JAVA_RELEASE,
    MAVEN_BUILD_DIR,
    MVN_DIR,
    POM_NAMESPACE,
    POM_SCHEMA_LOCATION,
    RESOURCES_PLUGIN_VERSION,
    SOURCE_ENCODING,
    XSI_NAMESPACE,
)
from pomgen.coordinates import MavenCoordinate
from pomgen.generation import GenerationResult
from pomgen.scope_resolver import PomDependency, ResolvedModule

logger = logging.getLogger(__name__)

ET.register_namespace("", POM_NAMESPACE)
ET.register_namespace("xsi", XSI_NAMESPACE)


def _tag(name: str) -> str:
    return f"{{{POM_NAMESPACE}}}{name}"


def element(tag: str, text: Optional[str] = None, children: Iterable[Optional[ET.Element]] = ()) -> ET.Element:
    """Create a POM element with optional text and children (None children are skipped)."""
    node = ET.Element(_tag(tag))
    if text is not None:
        node.text = text
    for child in children:
        if child is not None:
            node.append(child)
    return node


def create_project(coordinate: MavenCoordinate, children: Iterable[ET.Element]) -> ET.Element:
    """Create the <project> root with the coordinate header followed by children."""
    project = element("project")
    project.set(f"{{{XSI_NAMESPACE}}}schemaLocation", f"{POM_NAMESPACE} {POM_SCHEMA_LOCATION}")
    project.append(element("modelVersion", "4.0.0"))
    project.append(element("groupId", coordinate.group_id))
    project.append(element("artifactId", coordinate.artifact_id))
    project.append(element("version", coordinate.version))
    project.append(element("packaging", coordinate.packaging))
    for child in children:
        project.append(child)
    return project


def repository_element(url: str) -> ET.Element:
    return element(
        "repository",
        children=[
            element("id", re.sub(r"\W+", "-", url)),
            element("url", url),
            element("releases", children=[element("enabled", "true"), element("updatePolicy", "never")]),
            element("snapshots", children=[element("enabled", "false"), element("updatePolicy", "never")]),
        ],
    )


def dependency_element(dependency: PomDependency, config: PomGenConfig) -> ET.Element:
    coordinate = dependency.coordinate
    exclusions = None
    if config.use_bazel_dependency_resolution and not coordinate.is_generated():
        # The full closure is listed explicitly, Maven must not add its own
        exclusions = element("exclusions", children=[element("exclusion", children=[element("groupId", "*"), element("artifactId", "*")])])
    return element(
        "dependency",
        children=[
            element("groupId", coordinate.group_id),
            element("artifactId", coordinate.artifact_id),
            element("version", coordinate.version),
            element("type", coordinate.packaging),
            element("scope", dependency.maven_scope),
            element("optional", "true" if dependency.optional else "false"),
            element("classifier", coordinate.classifier) if coordinate.classifier is not None else None,
            element("systemPath", str(dependency.system_path)) if dependency.system_path is not None else None,
            exclusions,
        ],
    )


def _compiler_execution(execution_id: str, phase: str, goal: str) -> ET.Element:
    return element(
        "execution",
        children=[
            element("id", execution_id),
            element("phase", phase),
            element("goals", children=[element("goal", goal)]),
            element("configuration", children=[element("compilerArgs")]),
        ],
    )


def _add_source_execution(execution_id: str, phase: str, goal: str, extra_dirs: List[Path]) -> ET.Element:
    return element(
        "execution",
        children=[
            element("id", execution_id),
            element("phase", phase),
            element("goals", children=[element("goal", goal)]),
            element("configuration", children=[element("sources", children=[element("source", str(d)) for d in extra_dirs])]),
        ],
    )


def _resource_element(tag: str, directory: Path) -> ET.Element:
    return element(
        tag,
        children=[
            element("directory", str(directory)),
            element("filtering", "false"),
            element("includes", children=[element("include", "**/*")]),
        ],
    )


def build_module_pom(resolved: ResolvedModule, config: PomGenConfig) -> ET.Element:
    """Build the pom.xml tree of one resolved module."""
    paths = config.require_paths()
    module = resolved.module
    source_dirs = module.source_directories(paths)
    test_source_dirs = module.test_source_directories(paths)
    resource_dirs = module.resource_directories(paths)
    test_resource_dirs = module.test_resource_directories(paths)

    properties = {
        "maven.compiler.source": JAVA_RELEASE,
        "maven.compiler.target": JAVA_RELEASE,
        "project.build.sourceEncoding": SOURCE_ENCODING,
        "project.reporting.outputEncoding": SOURCE_ENCODING,
    }

    plugins = element(
        "plugins",
        children=[
            element(
                "plugin",
                children=[
                    element("groupId", "org.apache.maven.plugins"),
                    element("artifactId", "maven-resources-plugin"),
                    element("version", RESOURCES_PLUGIN_VERSION),
                ],
            ),
            element(
                "plugin",
                children=[
                    element("groupId", "org.apache.maven.plugins"),
                    element("artifactId", "maven-compiler-plugin"),
                    element("version", COMPILER_PLUGIN_VERSION),
                    element(
                        "executions",
                        children=[
                            _compiler_execution("default-compile", "compile", "compile"),
                            _compiler_execution("default-testCompile", "test-compile", "testCompile"),
                        ],
                    ),
                ],
            ),
            element(
                "plugin",
                children=[
                    element("groupId", "org.codehaus.mojo"),
                    element("artifactId", "build-helper-maven-plugin"),
                    element("version", BUILD_HELPER_PLUGIN_VERSION),
                    element(
                        "executions",
                        children=[
                            _add_source_execution("add-source", "generate-sources", "add-source", source_dirs[1:]),
                            _add_source_execution("add-test-source", "generate-test-sources", "add-test-source", test_source_dirs[1:]),
                        ],
                    ),
                ],
            ),
        ],
    )

    build = element(
        "build",
        children=[
            element("directory", f"{paths.workspace}/{MAVEN_BUILD_DIR}/{module.path_prefix}target"),
            plugins,
            element("sourceDirectory", str(source_dirs[0]) if source_dirs else "no_sources"),
            element("testSourceDirectory", str(test_source_dirs[0]) if test_source_dirs else "no_test_sources"),
            element("resources", children=[_resource_element("resource", d) for d in resource_dirs]),
            element("testResources", children=[_resource_element("testResource", d) for d in test_resource_dirs]),
        ],
    )

    return create_project(
        resolved.coordinate,
        [
            element("repositories", children=[repository_element(url) for url in resolved.repositories]),
            element("properties", children=[element(key, value) for key, value in sorted(properties.items())]),
            build,
            element("dependencies", children=[dependency_element(d, config) for d in resolved.dependencies]),
        ],
    )


def build_root_pom(module_paths: List[str], config: PomGenConfig) -> ET.Element:
    """Build the aggregator pom listing the given module directories."""
    coordinate = MavenCoordinate(GENERATED_GROUP_ID, config.root_artifact_id, "pom", None, GENERATED_VERSION)
    return create_project(coordinate, [element("modules", children=[element("module", path) for path in sorted(module_paths)])])


def write_pom(project: ET.Element, path: Path, workspace: Path) -> None:
    """Write a pom tree to path as indented UTF-8 XML."""
    try:
        shown = path.relative_to(workspace)
    except ValueError:
        shown = path
    print_detail(f"Writing {shown}")
    tree = ET.ElementTree(project)
    ET.indent(tree, space="  ")
    path.parent.mkdir(parents=True, exist_ok=True)
    tree.write(path, encoding="UTF-8", xml_declaration=True)


def read_submodules(root_pom: Path) -> List[str]:
    """Module directories listed by an existing aggregator pom (empty if there is none)."""
    try:
        tree = ET.parse(root_pom)
    except FileNotFoundError:
        logger.debug("No pom.xml at %s", root_pom)
        return []
    return [node.text or "" for node in tree.getroot().iter(_tag("module"))]


def delete_stale_submodule_poms(workspace: Path, dry_run: bool = False) -> List[Path]:
    """Delete the poms of every module the previous aggregator pom listed.

    Modules that have since disappeared would otherwise keep a dangling pom.

    Returns:
        Paths of the deleted (or, for dry_run, to be deleted) poms
    """
    deleted = []
    for submodule in read_submodules(workspace / "pom.xml"):
        pom = workspace / submodule / "pom.xml"
        if pom.exists():
            print_detail(f"Deleting {pom.relative_to(workspace)}")
            if not dry_run:
                pom.unlink()
            deleted.append(pom)
    return deleted


def write_project(result: GenerationResult, config: PomGenConfig, dry_run: bool = False) -> List[Path]:
    """Write every resolved module's pom, plus the aggregator pom for multi-module projects.

    Returns:
        Paths of the poms written (or that would be written for dry_run)
    """
    workspace = config.require_paths().workspace
    delete_stale_submodule_poms(workspace, dry_run)

    written = []
    for resolved in result.resolved_modules:
        pom_path = workspace / resolved.module.path / "pom.xml"
        if not dry_run:
            write_pom(build_module_pom(resolved, config), pom_path, workspace)
        written.append(pom_path)

    if result.is_multi_module:
        root_pom = workspace / "pom.xml"
        if not dry_run:
            write_pom(build_root_pom([r.module.path for r in result.resolved_modules], config), root_pom, workspace)
        written.append(root_pom)

    if not dry_run:
        # Maven uses this directory to find the root of a multi-module project
        (workspace / MVN_DIR).mkdir(exist_ok=True)

    print_info(f"{'Would write' if dry_run else 'Wrote'} {len(written)} pom.xml files")
    return written
