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
"""Shared constants for the pomgen tools.

This module provides centralized constants used across the generator so the
Maven defaults, the recognised Bazel source layouts and the exit codes live in
one place.
"""

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Maven Defaults
# =============================================================================

GENERATED_GROUP_ID = "bazel.generated"  # groupId of every coordinate derived from a path
GENERATED_VERSION = "1.0-SNAPSHOT"
DEFAULT_PACKAGING = "jar"
DEFAULT_ROOT_ARTIFACT_ID = "workspace"  # artifactId used for the root module and root pom

POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"
POM_SCHEMA_LOCATION = "http://maven.apache.org/xsd/maven-4.0.0.xsd"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

JAVA_RELEASE = "17"
SOURCE_ENCODING = "UTF-8"

# Plugin versions written into every module pom
RESOURCES_PLUGIN_VERSION = "2.7"  # MRESOURCES-237 regression in later versions
COMPILER_PLUGIN_VERSION = "3.10.1"
BUILD_HELPER_PLUGIN_VERSION = "3.3.0"

MAVEN_BUILD_DIR = "maven_build"  # Build output directory, relative to the workspace
MVN_DIR = ".mvn"  # Marks the root of a multi-module project

# =============================================================================
# Bazel Layout
# =============================================================================

DESCRIPTOR_SUFFIX = "-maven-info.json"  # Written next to each target by the aspect
ASPECT_OUTPUT_GROUP = "pom_info"
ASPECT_REPOSITORY = "bazel_to_maven_build_aspect"
ASPECT_FILE_NAME = "maven_pom.bzl"
ASPECT_SYMBOL = "maven_pom_aspect"

BAZEL_QUERY = """
let
  targets =
    //...
in
  kind(java_binary, $targets) +
  kind(java_library, $targets) +
  kind(java_test, $targets) +
  kind(java_plugin, $targets) -
  attr("tags", "[\\[ ]no-ide[,\\]]", $targets)
"""

JAVA_TEST_KIND = "java_test"

# Source roots recognised below a module directory (checked in order)
SOURCE_ROOTS = [
    "codegen/src/main/java",
    "codegen/src/test/java",
    "generated/src/main/java",
    "test_container/src/main/java",
    "test_container/src/test/java",
    "src/main/java",
    "src/test/java",
    "src/test-utils/java",
    "src/tools/java",
    "src/tools/test",
    "src/jmh/java",
    "src/test/java_generated",
    "src/main/generated",
    "java",
    "src",
]

# Resource roots recognised below a module directory (checked in order)
RESOURCE_ROOTS = [
    "codegen/src/main/resources",
    "codegen/src/test/resources",
    "test_container/src/main/resources",
    "test_container/src/test/resources",
    "src/main/dynamo",
    "src/test/dynamo",
    "src/dynamo",
    "src/jmh/resources",
    "src/main/resources",
    "src/test/resources",
    "src/test/java",
    "src/tools/resources",
    "src/resources",
    "resources",
    "src",
]

TEST_SOURCE_ROOT_SUFFIXES = ["src/test/java", "src/jmh/java"]
TEST_RESOURCE_ROOT_SUFFIXES = ["src/test/resources", "src/jmh/resources"]

# =============================================================================
# Display Limits
# =============================================================================

MAX_CYCLES_DISPLAY = 50  # Maximum cycles listed before truncating
MAX_TRIPLES_DISPLAY = 20  # Maximum ranked diagnostic triples to print

# =============================================================================
# Exception Classes
# =============================================================================


class PomGenError(Exception):
    """Base exception for all pomgen errors.

    All pomgen exceptions carry an exit_code attribute that indicates
    what exit code the program should use when this error is caught at the
    main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Input errors (EXIT_INVALID_ARGS)
class InvalidInputError(PomGenError):
    """Raised when the build graph snapshot is structurally unsound."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class ModuleSpanError(InvalidInputError):
    """Raised when a compiled unit has sources or resources in more than one module."""


class CoordinateSyntaxError(InvalidInputError):
    """Raised when a Maven coordinate string cannot be parsed."""


class LabelSyntaxError(InvalidInputError):
    """Raised when a Bazel label cannot be parsed."""


class UnknownOutputError(InvalidInputError):
    """Raised when a dependency edge names an output no target provides."""


class ModuleLayoutError(InvalidInputError):
    """Raised when the discovered modules cannot form a valid Maven project."""


class UnsupportedDescriptorError(InvalidInputError):
    """Raised when a target descriptor uses a feature the generator cannot map."""


class ArgumentError(InvalidInputError):
    """Raised when command-line arguments are invalid."""


# External tool errors
class BazelError(PomGenError):
    """Raised when a bazel command fails or is not found."""


class InvalidPathError(Exception):
    """Raised when a source or resource path is not in a recognised layout.

    Recoverable: the offending file is skipped with a warning.
    """
