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
"""Classification of source and resource files into module and source roots.

A Java file's source root is its directory minus the package directory (read
from the file's package declaration). The module is whatever precedes one of
the known source-root layouts. Resources are matched against the known
resource-root layouts directly. In single-module mode everything belongs to the
root module and the whole directory becomes the source root.
"""

import re
import logging
from typing import Optional

from pomgen.config import PomGenConfig, WorkspacePaths
from pomgen.constants import InvalidPathError, RESOURCE_ROOTS, SOURCE_ROOTS
from pomgen.targets import SourcePath, SourceRoot

logger = logging.getLogger(__name__)

JAVA_PATH_PATTERN = re.compile(r"^(bazel-out/[^/]*/bin/|)(.*?)/([^/]*)$")
RESOURCE_PATH_PATTERN = re.compile(r"^(bazel-out/[^/]*/bin/|)(.*?)$")


def remove_suffix(text: str, suffix: str) -> Optional[str]:
    """Return text without suffix, or None if it does not end with it."""
    if suffix and text.endswith(suffix):
        return text[: len(text) - len(suffix)]
    return None


def get_java_package(path: str, paths: WorkspacePaths) -> str:
    """Read the package declaration of a Java source file.

    Args:
        path: Execution-root relative path of the file
        paths: Workspace locations used to find the file

    Returns:
        Dotted package name

    Raises:
        InvalidPathError: If the file is empty or has no package line
    """
    with open(paths.to_absolute_path(path), "r", encoding="utf-8") as f:
        lines = f.read().splitlines()

    if not lines:
        raise InvalidPathError("File is empty")
    for line in lines:
        if line.startswith("package ") and line.endswith(";"):
            return line[len("package ") : -1]
    raise InvalidPathError("No package line found")


def parse_java_path(path: str, config: PomGenConfig) -> SourcePath:
    """Split a Java source path into its source root and package-relative path.

    Args:
        path: Execution-root relative path (e.g. 'svc/src/main/java/com/x/A.java')
        config: Run configuration (workspace paths and module mode)

    Returns:
        SourcePath with the root's module and source-root parts filled in

    Raises:
        InvalidPathError: If the path does not match a recognised layout
    """
    match = JAVA_PATH_PATTERN.match(path)
    if not match:
        raise InvalidPathError("Invalid java source file path")
    prefix, directory, file_name = match.groups()

    package_path = get_java_package(path, config.require_paths()).replace(".", "/")

    source_root = None
    for candidate in (directory, directory.replace("/generated/", "/")):
        source_root = remove_suffix(candidate, "/" + package_path)
        if source_root is not None:
            break
    if source_root is None:
        raise InvalidPathError(f"Directory should end in {package_path}")

    relative = f"{package_path}/{file_name}"

    if config.single_module:
        return SourcePath(SourceRoot(prefix, "", source_root), relative)

    for root in SOURCE_ROOTS:
        module_root = remove_suffix(source_root, "/" + root)
        if module_root is not None:
            return SourcePath(SourceRoot(prefix, module_root, root), relative)
    raise InvalidPathError("Java file path is not a recognised pattern")


def parse_resource_path(path: str, config: PomGenConfig) -> SourcePath:
    """Split a resource path into its resource root and root-relative path.

    Raises:
        InvalidPathError: If the path is not inside a recognised resource root
    """
    match = RESOURCE_PATH_PATTERN.match(path)
    if not match:
        raise InvalidPathError("Invalid resource path")
    prefix, rest = match.groups()

    for root in RESOURCE_ROOTS:
        index = rest.find(f"/{root}/")
        if index == -1:
            continue
        module_path = rest[:index]
        relative = rest[index + len(root) + 2 :]
        if config.single_module:
            return SourcePath(SourceRoot(prefix, "", f"{module_path}/{root}"), relative)
        return SourcePath(SourceRoot(prefix, module_path, root), relative)
    raise InvalidPathError("Resource is not in a recognised resource root")
