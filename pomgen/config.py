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
"""Run configuration for pom generation.

Every toggle that changes how the build graph is interpreted is carried by a
PomGenConfig value that is passed to the code that needs it, so that single and
multi module layouts (or both test-root strategies) can be exercised side by
side in one process.
"""

import os
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Mapping, Optional
from dataclasses import dataclass, field, replace

from pomgen.constants import DEFAULT_ROOT_ARTIFACT_ID

logger = logging.getLogger(__name__)

ENV_USE_MULTI_MODULE = "POMGEN_USE_MULTI_MODULE"
ENV_DEBUG = "POMGEN_DEBUG"


class TestRootDetection(Enum):
    """How source and resource roots are split into main and test."""

    __test__ = False  # not a pytest test class

    SUFFIX = "suffix"  # roots ending in a known test suffix are test roots
    TARGET = "target"  # roots hosting any java_test sources are test roots
    OFF = "off"  # everything is main


@dataclass(frozen=True)
class WorkspacePaths:
    """Locations reported by `bazel info`.

    Attributes:
        workspace: Workspace root (source files live here)
        execution_root: Execution root (generated files under bazel-out/ live here)
        output_base: Output base (external repositories live here)
        bazel_bin: bazel-bin directory (aspect descriptors live here)
    """

    workspace: Path
    execution_root: Path
    output_base: Path
    bazel_bin: Path

    @staticmethod
    def from_bazel_info(info: Mapping[str, str]) -> "WorkspacePaths":
        """Build from the key/value pairs printed by `bazel info`."""
        return WorkspacePaths(
            workspace=Path(info["workspace"]),
            execution_root=Path(info["execution_root"]),
            output_base=Path(info["output_base"]),
            bazel_bin=Path(info["bazel-bin"]),
        )

    @staticmethod
    def for_workspace(workspace: Path) -> "WorkspacePaths":
        """Guess the layout from the convenience symlinks Bazel leaves in a workspace."""
        workspace = Path(workspace)
        execution_root = workspace / f"bazel-{workspace.name}"
        return WorkspacePaths(
            workspace=workspace,
            execution_root=execution_root,
            output_base=execution_root / ".." / "..",
            bazel_bin=workspace / "bazel-bin",
        )

    def to_absolute_path(self, exec_root_path: str) -> Path:
        """Map an execution-root relative path to an absolute path.

        Args:
            exec_root_path: Path as reported by the aspect (e.g. 'external/maven/x.jar')

        Returns:
            Absolute path of the file
        """
        if exec_root_path.startswith("external/"):
            return self.output_base / exec_root_path
        if exec_root_path.startswith("bazel-out/"):
            return self.execution_root / exec_root_path
        return self.workspace / exec_root_path


@dataclass(frozen=True)
class PomGenConfig:
    """Options controlling how the build graph is mapped to Maven modules.

    Attributes:
        single_module: Put every source root into one module at the workspace root
        use_bazel_dependency_resolution: Inline the full transitive closure computed by
            Bazel (with wildcard exclusions) instead of letting Maven resolve it
        test_root_detection: Strategy used to split roots into main and test
        root_artifact_id: artifactId for the root module and the aggregator pom
        debug: Pass bazel stderr through and print extra detail
    """

    single_module: bool = True
    use_bazel_dependency_resolution: bool = True
    test_root_detection: TestRootDetection = TestRootDetection.SUFFIX
    root_artifact_id: str = DEFAULT_ROOT_ARTIFACT_ID
    debug: bool = False
    paths: Optional[WorkspacePaths] = field(default=None, compare=False)

    @staticmethod
    def from_environment(environ: Optional[Mapping[str, str]] = None) -> "PomGenConfig":
        """Read the toggles that may be set in the environment."""
        if environ is None:
            environ = os.environ
        config = PomGenConfig(
            single_module=not _parse_bool(environ.get(ENV_USE_MULTI_MODULE)),
            debug=_parse_bool(environ.get(ENV_DEBUG)),
        )
        logger.debug("Configuration from environment: %s", config)
        return config

    def with_overrides(self, **overrides: object) -> "PomGenConfig":
        """Return a copy with the given fields replaced (None values are ignored)."""
        changes: Dict[str, object] = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)  # type: ignore[arg-type]

    def require_paths(self) -> WorkspacePaths:
        """Return the workspace paths, which must have been configured."""
        if self.paths is None:
            raise ValueError("Workspace paths are not configured")
        return self.paths


def _parse_bool(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() == "true"
