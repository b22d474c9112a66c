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
"""Maven coordinates and Bazel labels."""

import re
from typing import Optional
from dataclasses import dataclass

from pomgen.constants import (
    CoordinateSyntaxError,
    LabelSyntaxError,
    DEFAULT_PACKAGING,
    DEFAULT_ROOT_ARTIFACT_ID,
    GENERATED_GROUP_ID,
    GENERATED_VERSION,
)

COORDINATE_PATTERN = re.compile(r"^([^:]*):([^:]*)(?::([^:]*))?(?::([^:]*))?:([^:]*)$")
LABEL_PATTERN = re.compile(r"^(?:@(.*?))?//(.*?):(.*?)$")
BAZEL_CONFIG_PATTERN = re.compile(r"^bazel-out/(.*?)/bin/")


@dataclass(frozen=True)
class MavenCoordinate:
    """A Maven coordinate (hashable, used as a dictionary key).

    Attributes:
        group_id: groupId
        artifact_id: artifactId
        packaging: Packaging type (defaults to 'jar')
        classifier: Optional classifier
        version: Version string
    """

    group_id: str
    artifact_id: str
    packaging: str = DEFAULT_PACKAGING
    classifier: Optional[str] = None
    version: str = GENERATED_VERSION

    @staticmethod
    def parse(coord: str) -> "MavenCoordinate":
        """Parse 'group:artifact[:packaging[:classifier]]:version'.

        Raises:
            CoordinateSyntaxError: If the string is not a coordinate
        """
        match = COORDINATE_PATTERN.match(coord)
        if not match:
            raise CoordinateSyntaxError(f"Invalid maven coordinate syntax: {coord}")
        group_id, artifact_id, packaging, classifier, version = match.groups()
        return MavenCoordinate(group_id, artifact_id, packaging or DEFAULT_PACKAGING, classifier, version)

    @staticmethod
    def from_path(path: str, classifier: Optional[str] = None, root_artifact_id: str = DEFAULT_ROOT_ARTIFACT_ID) -> "MavenCoordinate":
        """Derive a generated coordinate from a workspace path.

        Args:
            path: Module path or label path ('' for the workspace root)
            classifier: Optional classifier (e.g. the Bazel output configuration)
            root_artifact_id: artifactId used when path is empty

        Returns:
            Coordinate in the generated group
        """
        artifact_id = path.replace("/", "_") if path else root_artifact_id
        return MavenCoordinate(GENERATED_GROUP_ID, artifact_id, DEFAULT_PACKAGING, classifier, GENERATED_VERSION)

    def unparse(self) -> str:
        """Format back to the colon separated form, omitting an absent classifier."""
        parts = [self.group_id, self.artifact_id, self.packaging, self.classifier, self.version]
        return ":".join(p for p in parts if p is not None)

    def to_url_path(self) -> str:
        """Return the repository-relative path of this coordinate's jar."""
        suffix = f"-{self.classifier}" if self.classifier is not None else ""
        group_path = self.group_id.replace(".", "/")
        return f"{group_path}/{self.artifact_id}/{self.version}/{self.artifact_id}-{self.version}{suffix}.jar"

    def with_artifact_suffix(self, suffix: str) -> "MavenCoordinate":
        """Return a copy whose artifactId has '-<suffix>' appended."""
        return MavenCoordinate(self.group_id, f"{self.artifact_id}-{suffix}", self.packaging, self.classifier, self.version)

    def is_generated(self) -> bool:
        """True for coordinates derived from workspace paths."""
        return self.group_id == GENERATED_GROUP_ID

    def __str__(self) -> str:
        return self.unparse()


@dataclass(frozen=True)
class BazelLabel:
    """A parsed Bazel label '@repo//package:name'."""

    workspace_name: str
    package_name: str
    target_name: str

    @staticmethod
    def parse(label: str) -> "BazelLabel":
        """Parse a label string.

        Raises:
            LabelSyntaxError: If the string is not a label
        """
        match = LABEL_PATTERN.match(label)
        if not match:
            raise LabelSyntaxError(f"Invalid Bazel label: {label}")
        return BazelLabel(match.group(1) or "", match.group(2), match.group(3))

    def to_path(self) -> str:
        """Return the label as a path relative to the execution root."""
        result = self.target_name
        if self.package_name:
            result = f"{self.package_name}/{result}"
        if self.workspace_name:
            result = f"external/{self.workspace_name}/{result}"
        return result

    def __str__(self) -> str:
        return f"@{self.workspace_name}//{self.package_name}:{self.target_name}"


def get_bazel_config(path: str) -> Optional[str]:
    """Return the output configuration of a path under bazel-out/, or None."""
    match = BAZEL_CONFIG_PATTERN.match(path)
    return match.group(1) if match else None
