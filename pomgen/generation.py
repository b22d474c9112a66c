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
"""Turn a target list into resolved modules.

This is the whole pipeline minus I/O: index the targets, look for module
cycles, leave out everything the cycles impact and resolve the rest.
"""

import logging
from typing import List, Set
from dataclasses import dataclass, field

from pomgen.config import PomGenConfig
from pomgen.constants import ModuleLayoutError
from pomgen.graph_index import BuildGraphIndex
from pomgen.module_graph import CycleReport, analyze_module_cycles
from pomgen.scope_resolver import ResolvedModule, resolve_module
from pomgen.targets import Target

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Output of generate().

    Attributes:
        index: The build graph index the result was computed from
        cycle_report: Detected cycles and their diagnostics
        resolved_modules: Modules to write, sorted by path
        excluded_modules: Modules left out because of cycles
    """

    index: BuildGraphIndex
    cycle_report: CycleReport
    resolved_modules: List[ResolvedModule] = field(default_factory=list)
    excluded_modules: Set[str] = field(default_factory=set)

    @property
    def is_multi_module(self) -> bool:
        """A project without a root module is written as modules under an aggregator pom."""
        return "" not in self.index.modules_by_path


def check_module_layout(index: BuildGraphIndex) -> None:
    """Reject a root module next to other modules.

    Raises:
        ModuleLayoutError: If the root module is not the only module
    """
    if "" in index.modules_by_path and len(index.modules_by_path) > 1:
        others = sorted(path for path in index.modules_by_path if path)[:5]
        raise ModuleLayoutError(f"Cannot create multi module project with sources or resources in root module (other modules: {others})")


def generate(targets: List[Target], config: PomGenConfig, skip_resolution: bool = False) -> GenerationResult:
    """Index the targets, detect cycles and resolve every module not impacted by one.

    Args:
        targets: Parsed targets
        config: Run configuration
        skip_resolution: Only build the index and the cycle report

    Returns:
        GenerationResult
    """
    index = BuildGraphIndex(targets, config)
    check_module_layout(index)

    report = analyze_module_cycles(index)
    result = GenerationResult(index=index, cycle_report=report, excluded_modules=set(report.impacted_modules))
    if skip_resolution:
        return result

    for path in sorted(index.modules_by_path):
        if path in result.excluded_modules:
            logger.debug("Skipping module '%s' impacted by a cycle", path)
            continue
        result.resolved_modules.append(resolve_module(index, index.modules_by_path[path]))

    logger.info("Resolved %s modules, excluded %s", len(result.resolved_modules), len(result.excluded_modules))
    return result
