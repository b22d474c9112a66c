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
"""Running bazel to discover Java targets and write their descriptors.

The descriptors are produced by a build aspect. The aspect file is copied into
a throw-away repository that is injected with --override_repository, so the
workspace being converted needs no changes.
"""

import os
import shutil
import logging
import tempfile
import subprocess
from pathlib import Path
from typing import Dict, List

from pomgen.config import PomGenConfig, WorkspacePaths
from pomgen.constants import (
    BazelError,
    ASPECT_FILE_NAME,
    ASPECT_OUTPUT_GROUP,
    ASPECT_REPOSITORY,
    ASPECT_SYMBOL,
    BAZEL_QUERY,
    DESCRIPTOR_SUFFIX,
)
from pomgen.coordinates import BazelLabel

logger = logging.getLogger(__name__)

# Bazel command variants to try (in order of preference)
BAZEL_COMMANDS = ["bazel", "bazelisk"]


def find_bazel() -> str:
    """Return the first bazel launcher found on PATH.

    Raises:
        BazelError: If none is installed
    """
    for command in BAZEL_COMMANDS:
        if shutil.which(command):
            return command
    raise BazelError(f"bazel not found (tried: {', '.join(BAZEL_COMMANDS)})")


def run_bazel(args: List[str], config: PomGenConfig) -> List[str]:
    """Run a bazel command and return its stdout lines.

    When started through `bazel run` the working directory is inside the
    runfiles tree, so BUILD_WORKING_DIRECTORY is used when it is set.

    Args:
        args: Arguments after the bazel command
        config: Run configuration (bazel stderr is shown only with debug)

    Returns:
        Lines printed to stdout

    Raises:
        BazelError: If bazel is missing or exits with a non-zero status
    """
    command = [find_bazel()] + args
    cwd = os.environ.get("BUILD_WORKING_DIRECTORY")
    logger.debug("Running %s (cwd=%s)", command, cwd)

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=None if config.debug else subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise BazelError(f"Failed to run bazel: {e}") from e

    if result.returncode != 0:
        raise BazelError(f"Bazel command failed (status {result.returncode}): {command}")
    return result.stdout.splitlines()


def parse_bazel_info(lines: List[str]) -> Dict[str, str]:
    """Parse the 'key: value' lines printed by `bazel info`."""
    info: Dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(": ")
        if sep:
            info[key] = value
    return info


def read_bazel_info(config: PomGenConfig) -> WorkspacePaths:
    """Ask bazel where the workspace, execution root, output base and bazel-bin are."""
    info = parse_bazel_info(run_bazel(["info"], config))
    try:
        return WorkspacePaths.from_bazel_info(info)
    except KeyError as e:
        raise BazelError(f"bazel info did not report {e}") from e


def run_bazel_query(config: PomGenConfig) -> List[BazelLabel]:
    """Find every Java target not tagged no-ide."""
    return [BazelLabel.parse(line) for line in run_bazel(["query", BAZEL_QUERY], config) if line.strip()]


def prepare_aspect_workspace(directory: Path, aspect_file: Path) -> None:
    """Lay out a minimal repository holding the aspect definition."""
    (directory / "WORKSPACE").write_text("", encoding="utf-8")
    (directory / "BUILD").write_text("", encoding="utf-8")
    shutil.copyfile(aspect_file, directory / ASPECT_FILE_NAME)


def aspect_build_args(aspect_dir: Path, target_list: Path) -> List[str]:
    """Arguments of the `bazel build` that runs the aspect over target_list."""
    return [
        "build",
        "--keep_going",
        f"--override_repository={ASPECT_REPOSITORY}={aspect_dir}",
        f"--output_groups={ASPECT_OUTPUT_GROUP}",
        f"--aspects=@@{ASPECT_REPOSITORY}//:{ASPECT_FILE_NAME}%{ASPECT_SYMBOL}",
        f"--target_pattern_file={target_list}",
        "--remote_download_outputs=toplevel",
    ]


def run_aspect(labels: List[BazelLabel], aspect_file: Path, config: PomGenConfig) -> None:
    """Build the descriptors of the given targets with the aspect.

    Raises:
        BazelError: If the build fails
        FileNotFoundError: If aspect_file does not exist
    """
    with tempfile.TemporaryDirectory(prefix="bazel-to-maven-aspect-workspace-") as temp:
        aspect_dir = Path(temp) / "aspect"
        aspect_dir.mkdir()
        prepare_aspect_workspace(aspect_dir, aspect_file)

        target_list = Path(temp) / "targets.txt"
        target_list.write_text("".join(f"{label}\n" for label in labels), encoding="utf-8")

        run_bazel(aspect_build_args(aspect_dir, target_list), config)


def descriptor_path_for(label: BazelLabel, paths: WorkspacePaths) -> Path:
    """Where the aspect writes the descriptor of a label."""
    return paths.bazel_bin / f"{label.to_path()}{DESCRIPTOR_SUFFIX}"
