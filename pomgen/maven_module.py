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
"""Maven modules: compiled units grouped by their module directory."""

import logging
from pathlib import Path
from typing import List, Set

from pomgen.config import PomGenConfig, TestRootDetection, WorkspacePaths
from pomgen.constants import TEST_RESOURCE_ROOT_SUFFIXES, TEST_SOURCE_ROOT_SUFFIXES
from pomgen.coordinates import MavenCoordinate
from pomgen.targets import CompiledUnit, SourceRoot

logger = logging.getLogger(__name__)


class MavenModule:
    """One Maven module and the compiled units it is built from.

    The module's source and resource roots are partitioned into main and test.
    A root is never both: if any unit makes it a test root it is a test root.

    Attributes:
        path: Module directory relative to the workspace ('' for the root module)
        targets: Compiled units of the module
        coordinate: Coordinate of the module (rewritten if not unique)
        main_source_roots / test_source_roots: Partitioned source roots
        main_resource_roots / test_resource_roots: Partitioned resource roots
    """

    def __init__(self, path: str, targets: List[CompiledUnit], config: PomGenConfig):
        self.path = path
        self.path_prefix = f"{path}/" if path else ""
        self.targets = targets
        self.config = config

        declared = [t.declared_coordinate for t in targets if t.declared_coordinate is not None]
        if len(declared) == 1:
            self.coordinate = declared[0]
        else:
            self.coordinate = MavenCoordinate.from_path(path.split("/")[-1], root_artifact_id=config.root_artifact_id)

        self.main_source_roots: Set[SourceRoot] = set()
        self.test_source_roots: Set[SourceRoot] = set()
        self.main_resource_roots: Set[SourceRoot] = set()
        self.test_resource_roots: Set[SourceRoot] = set()
        self._partition_roots(config.test_root_detection)

    def _partition_roots(self, detection: TestRootDetection) -> None:
        for target in self.targets:
            if detection is TestRootDetection.OFF:
                self.main_source_roots.update(target.source_roots())
                self.main_resource_roots.update(target.resource_roots())
            elif detection is TestRootDetection.SUFFIX:
                for root in target.source_roots():
                    (self.test_source_roots if root.has_suffix(TEST_SOURCE_ROOT_SUFFIXES) else self.main_source_roots).add(root)
                for root in target.resource_roots():
                    (self.test_resource_roots if root.has_suffix(TEST_RESOURCE_ROOT_SUFFIXES) else self.main_resource_roots).add(root)
            elif target.is_test:
                self.test_source_roots.update(target.source_roots())
                self.test_resource_roots.update(target.resource_roots())
            else:
                self.main_source_roots.update(target.source_roots())
                self.main_resource_roots.update(target.resource_roots())

        self.main_source_roots -= self.test_source_roots
        self.main_resource_roots -= self.test_resource_roots

    def make_coordinate_unique(self) -> None:
        """Replace the coordinate with one derived from the full module path."""
        self.coordinate = MavenCoordinate.from_path(self.path, root_artifact_id=self.config.root_artifact_id)
        logger.debug("Module '%s' now uses %s", self.path, self.coordinate)

    def is_unit_main(self, unit: CompiledUnit) -> bool:
        return bool(unit.source_roots() & self.main_source_roots or unit.resource_roots() & self.main_resource_roots)

    def is_unit_test(self, unit: CompiledUnit) -> bool:
        return bool(unit.source_roots() & self.test_source_roots or unit.resource_roots() & self.test_resource_roots)

    def source_directories(self, paths: WorkspacePaths) -> List[Path]:
        return sorted(root.absolute_path(paths) for root in self.main_source_roots)

    def test_source_directories(self, paths: WorkspacePaths) -> List[Path]:
        return sorted(root.absolute_path(paths) for root in self.test_source_roots)

    def resource_directories(self, paths: WorkspacePaths) -> List[Path]:
        return sorted(root.absolute_path(paths) for root in self.main_resource_roots)

    def test_resource_directories(self, paths: WorkspacePaths) -> List[Path]:
        return sorted(root.absolute_path(paths) for root in self.test_resource_roots)

    def __repr__(self) -> str:
        return f"MavenModule(path={self.path!r}, targets={len(self.targets)}, coordinate={self.coordinate})"

    def __str__(self) -> str:
        return self.path
