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
"""Reading the per-target JSON descriptors written by the build aspect.

Each descriptor describes one Bazel target and lists the descriptors of its
dependencies under 'otherInfos', so the whole graph is reached by following
those links from the top-level targets.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple
from dataclasses import dataclass, field

from pomgen.color_utils import print_warning
from pomgen.config import PomGenConfig
from pomgen.constants import (
    InvalidPathError,
    ModuleSpanError,
    UnsupportedDescriptorError,
    JAVA_TEST_KIND,
)
from pomgen.coordinates import BazelLabel, MavenCoordinate, get_bazel_config
from pomgen.source_paths import parse_java_path, parse_resource_path
from pomgen.targets import AggregatorUnit, CompiledUnit, ExternalArtifact, ImportedJar, SourcePath, Target

logger = logging.getLogger(__name__)


@dataclass
class TargetDescriptor:
    """Raw contents of one '<target>-maven-info.json' file."""

    kind: str
    label: str
    compile_jars: List[str] = field(default_factory=list)
    jars: List[str] = field(default_factory=list)
    java_copts: List[str] = field(default_factory=list)
    maven_coords: Optional[str] = None
    maven_url: Optional[str] = None
    other_infos: List[str] = field(default_factory=list)
    output_jars: List[str] = field(default_factory=list)
    plugin_classes: List[str] = field(default_factory=list)
    plugin_jars: List[str] = field(default_factory=list)
    resource_strip_prefix: Optional[str] = None
    resources: List[str] = field(default_factory=list)
    runtime_jars: List[str] = field(default_factory=list)
    srcs: List[str] = field(default_factory=list)
    test_only: bool = False

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "TargetDescriptor":
        """Build from the decoded JSON object (camelCase keys)."""
        return TargetDescriptor(
            kind=data.get("kind") or "",
            label=data["label"],
            compile_jars=list(data.get("compileJars") or []),
            jars=list(data.get("jars") or []),
            java_copts=list(data.get("javaCopts") or []),
            maven_coords=data.get("mavenCoords"),
            maven_url=data.get("mavenUrl"),
            other_infos=list(data.get("otherInfos") or []),
            output_jars=list(data.get("outputJars") or []),
            plugin_classes=list(data.get("pluginClasses") or []),
            plugin_jars=list(data.get("pluginJars") or []),
            resource_strip_prefix=data.get("resourceStripPrefix"),
            resources=list(data.get("resources") or []),
            runtime_jars=list(data.get("runtimeJars") or []),
            srcs=list(data.get("srcs") or []),
            test_only=bool(data.get("testOnly", False)),
        )


def read_descriptor(path: Path) -> TargetDescriptor:
    """Read one descriptor file.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        return TargetDescriptor.from_dict(json.load(f))


def read_all_recursive(path: Path, seen: Set[Path], config: PomGenConfig) -> List[Tuple[Path, TargetDescriptor]]:
    """Read a descriptor and, depth first, every descriptor it links to.

    Descriptors already in seen are skipped. Reading is eager: if any linked
    descriptor cannot be read the whole call fails, and seen is restored to what
    it was on entry. Descriptors read along the way are dropped with the result,
    so a later root linking to them must read them again.

    Args:
        path: Descriptor to start from
        seen: Paths already read (updated in place)
        config: Run configuration (used to resolve linked paths)

    Returns:
        List of (path, descriptor) pairs, this descriptor first
    """
    if path in seen:
        return []
    seen_before = set(seen)
    seen.add(path)
    try:
        descriptor = read_descriptor(path)
        result = [(path, descriptor)]
        for other in descriptor.other_infos:
            other_path = config.require_paths().to_absolute_path(other)
            result.extend(read_all_recursive(other_path, seen, config))
        return result
    except Exception:
        seen.intersection_update(seen_before)
        raise


def _parse_paths(paths: List[str], parser: Any, what: str, config: PomGenConfig) -> List[SourcePath]:
    result = []
    for path in paths:
        try:
            result.append(parser(path, config))
        except InvalidPathError as e:
            print_warning(f"Skipping {what} file {path} ({e})")
    return result


def parse_descriptor(descriptor: TargetDescriptor, descriptor_path: Path, config: PomGenConfig) -> Target:
    """Turn a descriptor into the matching target variant.

    Args:
        descriptor: Raw descriptor
        descriptor_path: File the descriptor was read from
        config: Run configuration

    Returns:
        CompiledUnit if it has sources or resources, ExternalArtifact if it was
        fetched from a Maven repository, otherwise ImportedJar or AggregatorUnit

    Raises:
        ModuleSpanError: If sources/resources span more than one module
        CoordinateSyntaxError: If mavenCoords is malformed
        InvalidInputError: If the Maven URL does not match the coordinate
    """
    coordinate = MavenCoordinate.parse(descriptor.maven_coords) if descriptor.maven_coords is not None else None

    srcs = _parse_paths(descriptor.srcs, parse_java_path, "source", config)
    resources = _parse_paths(descriptor.resources, parse_resource_path, "resource", config)

    if srcs or resources:
        if descriptor.resource_strip_prefix:
            raise UnsupportedDescriptorError(f"Target {descriptor.label} uses resource_strip_prefix, which is not supported")

        modules = sorted({p.root.module_root for p in srcs + resources})
        if len(modules) != 1:
            raise ModuleSpanError(f"Target {descriptor.label} should be in one module, but it is in {modules}")

        return CompiledUnit(
            descriptor_path=descriptor_path,
            label=descriptor.label,
            module=modules[0],
            outputs=tuple(descriptor.output_jars),
            srcs=tuple(srcs),
            resources=tuple(resources),
            compile_deps=tuple(descriptor.compile_jars),
            runtime_deps=tuple(descriptor.runtime_jars),
            declared_coordinate=coordinate,
            is_test=descriptor.kind == JAVA_TEST_KIND,
        )

    if descriptor.maven_url is not None:
        if coordinate is None:
            raise UnsupportedDescriptorError(f"Target {descriptor.label} has a Maven URL but no coordinates")
        suffix = "/" + coordinate.to_url_path()
        if not descriptor.maven_url.endswith(suffix):
            raise UnsupportedDescriptorError(f"Maven URL {descriptor.maven_url} doesn't match coordinates {descriptor.maven_coords}")
        return ExternalArtifact(
            descriptor_path=descriptor_path,
            label=descriptor.label,
            outputs=tuple(descriptor.output_jars),
            coordinate=coordinate,
            repository=descriptor.maven_url[: -len(suffix)],
            compile_deps=tuple(descriptor.compile_jars),
            runtime_deps=tuple(descriptor.runtime_jars),
        )

    # No sources and no repository: a java_import, or a java_library that only
    # aggregates others. Maven can't see through either, so their deps are
    # merged into whatever depends on them.
    if coordinate is None:
        classifier = get_bazel_config(descriptor.output_jars[0]) if descriptor.output_jars else None
        coordinate = MavenCoordinate.from_path(BazelLabel.parse(descriptor.label).to_path(), classifier, config.root_artifact_id)

    if descriptor.jars:
        return ImportedJar(
            descriptor_path=descriptor_path,
            label=descriptor.label,
            outputs=tuple(descriptor.output_jars),
            jars=tuple(descriptor.jars),
            coordinate=coordinate,
            compile_deps=tuple(descriptor.compile_jars),
            runtime_deps=tuple(descriptor.runtime_jars),
        )
    return AggregatorUnit(
        descriptor_path=descriptor_path,
        label=descriptor.label,
        outputs=tuple(descriptor.output_jars),
        coordinate=coordinate,
        compile_deps=tuple(descriptor.compile_jars),
        runtime_deps=tuple(descriptor.runtime_jars),
    )


def load_targets(root_descriptors: List[Path], config: PomGenConfig) -> List[Target]:
    """Read every descriptor reachable from the roots and parse them into targets.

    A root whose descriptor does not exist is skipped with a warning; any other
    read failure propagates.

    Returns:
        Targets sorted by descriptor path
    """
    seen: Set[Path] = set()
    loaded: List[Tuple[Path, TargetDescriptor]] = []
    for root in root_descriptors:
        try:
            loaded.extend(read_all_recursive(root, seen, config))
        except FileNotFoundError as e:
            print_warning(f"Skipping target {root} ({e})")

    logger.info("Read %s target descriptors", len(loaded))
    targets = [parse_descriptor(descriptor, path, config) for path, descriptor in loaded]
    return sorted(targets, key=lambda t: str(t.descriptor_path))
