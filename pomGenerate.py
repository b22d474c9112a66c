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
"""Generate Maven pom.xml files from a Bazel Java workspace.

PURPOSE:
    Lets Maven-based IDEs and tools open a Bazel workspace by writing one
    pom.xml per module (plus an aggregator pom) that mirrors the Bazel graph.

WHAT IT DOES:
    - Queries bazel for java_library/java_binary/java_test/java_plugin targets
    - Runs a build aspect that writes a JSON descriptor next to every target
    - Groups the targets into Maven modules by source root layout
    - Reports module dependency cycles, with the targets that carry each one
    - Writes a pom.xml for every module not affected by a cycle

METHOD:
    Dependencies that Maven cannot see through (local jar imports, pass-through
    libraries and, with Bazel dependency resolution, the transitive deps of
    external jars) are inlined into the consuming module. Each coordinate gets
    the union of the scopes it is needed in, projected onto one Maven scope.

REQUIREMENTS:
    - Python 3.9+
    - bazel (or bazelisk) on PATH, unless --descriptor is used
    - networkx, packaging, colorama

EXAMPLES:
    # Query bazel, run the aspect and write single module poms
    ./pomGenerate.py --aspect tools/maven_pom.bzl

    # One module per source root layout, test roots taken from java_test targets
    ./pomGenerate.py --aspect tools/maven_pom.bzl --multi-module --test-roots target

    # Only report cycles between already generated descriptors
    ./pomGenerate.py --workspace . --descriptor bazel-bin/svc/lib-maven-info.json --cycles-only
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional, TextIO

from pomgen.bazel_utils import descriptor_path_for, read_bazel_info, run_aspect, run_bazel_query
from pomgen.color_utils import Colors, configure_color, print_error, print_info, print_warning
from pomgen.config import PomGenConfig, TestRootDetection, WorkspacePaths
from pomgen.constants import (
    ArgumentError,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    MAX_CYCLES_DISPLAY,
    MAX_TRIPLES_DISPLAY,
    PomGenError,
)
from pomgen.descriptors import load_targets
from pomgen.generation import GenerationResult, generate
from pomgen.module_graph import CycleReport
from pomgen.package_verification import require_package
from pomgen.pom_writer import write_project

__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate Maven pom.xml files from a Bazel Java workspace.",
        epilog=f"Version {__version__}\n\nExamples:\n"
        "  %(prog)s --aspect tools/maven_pom.bzl\n"
        "  %(prog)s --aspect tools/maven_pom.bzl --multi-module --test-roots target\n"
        "  %(prog)s --workspace . --descriptor bazel-bin/svc/lib-maven-info.json --cycles-only\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    source = parser.add_argument_group("target discovery")
    source.add_argument("--aspect", type=Path, help="Aspect definition (maven_pom.bzl) used to write target descriptors")
    source.add_argument(
        "--descriptor", type=Path, action="append", default=[], help="Read this descriptor instead of running bazel (repeatable)"
    )

    layout = parser.add_argument_group("workspace layout (default: from `bazel info`)")
    layout.add_argument("--workspace", type=Path, help="Workspace root")
    layout.add_argument("--execution-root", type=Path, help="Bazel execution root")
    layout.add_argument("--output-base", type=Path, help="Bazel output base")
    layout.add_argument("--bazel-bin", type=Path, help="bazel-bin directory")

    generation = parser.add_argument_group("generation")
    generation.add_argument(
        "--multi-module", action="store_true", default=None, help="One module per source root layout instead of a single root module"
    )
    generation.add_argument(
        "--test-roots",
        choices=[d.value for d in TestRootDetection],
        help="How roots are split into main and test (default: suffix)",
    )
    generation.add_argument(
        "--no-bazel-resolution", action="store_true", help="Let Maven resolve transitive dependencies of external artifacts"
    )
    generation.add_argument("--root-artifact-id", help="artifactId of the root module and aggregator pom")
    generation.add_argument("--dry-run", action="store_true", help="Report what would be written without touching any file")
    generation.add_argument("--cycles-only", action="store_true", help="Only detect and report module cycles")

    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    if not args.descriptor and args.aspect is None:
        parser.error("either --aspect or --descriptor is required")
    return args


def build_config(args: argparse.Namespace) -> PomGenConfig:
    """Combine the environment toggles with the command line overrides."""
    config = PomGenConfig.from_environment().with_overrides(
        single_module=False if args.multi_module else None,
        use_bazel_dependency_resolution=False if args.no_bazel_resolution else None,
        test_root_detection=TestRootDetection(args.test_roots) if args.test_roots else None,
        root_artifact_id=args.root_artifact_id,
        debug=True if args.verbose else None,
    )
    return config.with_overrides(paths=resolve_workspace_paths(args, config))


def resolve_workspace_paths(args: argparse.Namespace, config: PomGenConfig) -> WorkspacePaths:
    """Workspace locations from the flags, falling back to `bazel info`.

    Raises:
        ArgumentError: If only some locations are given without --workspace
    """
    overrides = [args.execution_root, args.output_base, args.bazel_bin]
    if args.workspace is None:
        if any(o is not None for o in overrides):
            raise ArgumentError("--execution-root, --output-base and --bazel-bin require --workspace")
        print_info("Running bazel info...")
        return read_bazel_info(config)

    guessed = WorkspacePaths.for_workspace(args.workspace.resolve())
    return WorkspacePaths(
        workspace=guessed.workspace,
        execution_root=args.execution_root or guessed.execution_root,
        output_base=args.output_base or guessed.output_base,
        bazel_bin=args.bazel_bin or guessed.bazel_bin,
    )


def discover_descriptors(args: argparse.Namespace, config: PomGenConfig) -> List[Path]:
    """Root descriptors to read: the given ones, or those of every queried target after running the aspect."""
    if args.descriptor:
        return [d.resolve() for d in args.descriptor]

    print_info("Running query...")
    labels = run_bazel_query(config)
    print_info(f"Found {len(labels)} targets")

    print_info("Running aspect...")
    run_aspect(labels, args.aspect, config)

    paths = config.require_paths()
    return [descriptor_path_for(label, paths) for label in labels]


def print_cycle_report(report: CycleReport, file: Optional[TextIO] = None) -> None:
    """Print the cycles and the ranked triples with their target-level evidence."""
    if file is None:
        file = sys.stderr

    print(f"{Colors.RED}{Colors.BRIGHT}Cycles detected:{Colors.RESET}", file=file)
    for cycle in report.cycles[:MAX_CYCLES_DISPLAY]:
        print("  " + " -> ".join(cycle), file=file)
    if len(report.cycles) > MAX_CYCLES_DISPLAY:
        print(f"  ... and {len(report.cycles) - MAX_CYCLES_DISPLAY} more", file=file)

    for diagnostic in report.diagnostics[:MAX_TRIPLES_DISPLAY]:
        a, b, c = diagnostic.triple
        print(file=file)
        print(f"{Colors.BRIGHT}{a} -> {b} -> {c}{Colors.RESET} ({diagnostic.occurrences} cycles)", file=file)
        print(file=file)
        print(f'  transitive "{a} ->" in {b}', file=file)
        for label in diagnostic.forward_targets:
            print(f"    {label}", file=file)
        print(file=file)
        print(f'  transitive "-> {c}" in {b}', file=file)
        for label in diagnostic.reverse_targets:
            print(f"    {label}", file=file)
    if len(report.diagnostics) > MAX_TRIPLES_DISPLAY:
        print(f"\n  ... and {len(report.diagnostics) - MAX_TRIPLES_DISPLAY} more triples", file=file)
    print(file=file)


def print_summary(result: GenerationResult) -> None:
    if result.excluded_modules:
        print_warning(f"Skipped {len(result.excluded_modules)} modules impacted by cycles: {', '.join(sorted(result.excluded_modules))}")
    print_info(f"Resolved {len(result.resolved_modules)} of {len(result.index.modules_by_path)} modules")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_arguments(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s: %(message)s")
    configure_color(args.no_color)
    require_package("networkx", "module cycle detection")

    config = build_config(args)
    logger.debug("Configuration: %s", config)

    descriptors = discover_descriptors(args, config)
    print_info("Generating pom.xml files...")
    targets = load_targets(descriptors, config)

    result = generate(targets, config, skip_resolution=args.cycles_only)
    if result.cycle_report.has_cycles:
        print_cycle_report(result.cycle_report)

    if args.cycles_only:
        return EXIT_SUCCESS

    write_project(result, config, dry_run=args.dry_run)
    print_summary(result)
    return EXIT_SUCCESS


def run(argv: Optional[List[str]] = None) -> int:
    """Run main() and turn failures into a message and an exit code.

    Returns:
        Exit code of main(), the error's exit_code, or 130 when interrupted
    """
    try:
        return main(argv)
    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user", prefix=False)
        return EXIT_KEYBOARD_INTERRUPT
    except PomGenError as e:
        print_error(str(e))
        return e.exit_code
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        if logging.getLogger().level == logging.DEBUG:
            import traceback

            traceback.print_exc()
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(run())
