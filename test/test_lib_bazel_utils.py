#!/usr/bin/env python3
"""Tests for pomgen/bazel_utils.py"""

import subprocess
from pathlib import Path
from typing import Any, List

import pytest

from pomgen import bazel_utils
from pomgen.bazel_utils import (
    aspect_build_args,
    descriptor_path_for,
    parse_bazel_info,
    prepare_aspect_workspace,
    read_bazel_info,
    run_bazel,
    run_bazel_query,
)
from pomgen.config import PomGenConfig, WorkspacePaths
from pomgen.constants import BazelError
from pomgen.coordinates import BazelLabel


class FakeRun:
    """Stand-in for subprocess.run recording calls."""

    def __init__(self, stdout: str = "", returncode: int = 0):
        self.stdout = stdout
        self.returncode = returncode
        self.calls: List[Any] = []

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        return subprocess.CompletedProcess(command, self.returncode, stdout=self.stdout)


@pytest.fixture
def fake_bazel(monkeypatch):
    """Pretend bazel is installed and capture its invocations."""
    monkeypatch.setattr(bazel_utils.shutil, "which", lambda command: f"/usr/bin/{command}")
    monkeypatch.delenv("BUILD_WORKING_DIRECTORY", raising=False)

    def install(stdout: str = "", returncode: int = 0) -> FakeRun:
        fake = FakeRun(stdout, returncode)
        monkeypatch.setattr(bazel_utils.subprocess, "run", fake)
        return fake

    return install


class TestRunBazel:
    """Tests for run_bazel."""

    def test_stdout_lines(self, fake_bazel) -> None:
        """Test stdout is split into lines and stderr discarded without debug."""
        fake = fake_bazel("one\ntwo\n")
        assert run_bazel(["version"], PomGenConfig()) == ["one", "two"]
        command, kwargs = fake.calls[0]
        assert command == ["bazel", "version"]
        assert kwargs["stderr"] == subprocess.DEVNULL
        assert kwargs["cwd"] is None

    def test_debug_shows_stderr(self, fake_bazel) -> None:
        """Test stderr is inherited in debug mode."""
        fake = fake_bazel()
        run_bazel(["version"], PomGenConfig(debug=True))
        assert fake.calls[0][1]["stderr"] is None

    def test_build_working_directory(self, fake_bazel, monkeypatch) -> None:
        """Test the caller's directory is used under `bazel run`."""
        fake = fake_bazel()
        monkeypatch.setenv("BUILD_WORKING_DIRECTORY", "/home/user/repo")
        run_bazel(["info"], PomGenConfig())
        assert fake.calls[0][1]["cwd"] == "/home/user/repo"

    def test_failure(self, fake_bazel) -> None:
        """Test a non-zero exit status raises."""
        fake_bazel(returncode=1)
        with pytest.raises(BazelError, match="status 1"):
            run_bazel(["build"], PomGenConfig())

    def test_not_installed(self, monkeypatch) -> None:
        """Test a missing launcher raises."""
        monkeypatch.setattr(bazel_utils.shutil, "which", lambda command: None)
        with pytest.raises(BazelError, match="bazel not found"):
            run_bazel(["info"], PomGenConfig())


class TestBazelInfo:
    """Tests for bazel info parsing."""

    def test_parse(self) -> None:
        """Test key/value lines are split on the first ': '."""
        assert parse_bazel_info(["workspace: /ws", "release: release 7.0.0", "garbage"]) == {"workspace": "/ws", "release": "release 7.0.0"}

    def test_read(self, fake_bazel) -> None:
        """Test the reported locations become WorkspacePaths."""
        fake_bazel("bazel-bin: /out/bin\nexecution_root: /out/execroot\noutput_base: /out\nworkspace: /ws\n")
        paths = read_bazel_info(PomGenConfig())
        assert paths == WorkspacePaths(Path("/ws"), Path("/out/execroot"), Path("/out"), Path("/out/bin"))

    def test_read_incomplete(self, fake_bazel) -> None:
        """Test missing keys are reported as a bazel error."""
        fake_bazel("workspace: /ws\n")
        with pytest.raises(BazelError):
            read_bazel_info(PomGenConfig())


class TestQueryAndAspect:
    """Tests for the query and the aspect build."""

    def test_query(self, fake_bazel) -> None:
        """Test query output lines are parsed as labels."""
        fake_bazel("//svc:lib\n//core:core\n\n")
        assert run_bazel_query(PomGenConfig()) == [BazelLabel("", "svc", "lib"), BazelLabel("", "core", "core")]

    def test_aspect_build_args(self, tmp_path: Path) -> None:
        """Test the aspect repository override and output group."""
        args = aspect_build_args(tmp_path / "aspect", tmp_path / "targets.txt")
        assert args[0] == "build"
        assert "--keep_going" in args
        assert f"--override_repository=bazel_to_maven_build_aspect={tmp_path / 'aspect'}" in args
        assert "--aspects=@@bazel_to_maven_build_aspect//:maven_pom.bzl%maven_pom_aspect" in args
        assert f"--target_pattern_file={tmp_path / 'targets.txt'}" in args

    def test_prepare_aspect_workspace(self, tmp_path: Path) -> None:
        """Test the aspect repository is laid out."""
        aspect = tmp_path / "my_aspect.bzl"
        aspect.write_text("maven_pom_aspect = None\n", encoding="utf-8")
        repo = tmp_path / "repo"
        repo.mkdir()
        prepare_aspect_workspace(repo, aspect)
        assert (repo / "WORKSPACE").exists()
        assert (repo / "BUILD").exists()
        assert (repo / "maven_pom.bzl").read_text(encoding="utf-8") == "maven_pom_aspect = None\n"

    def test_descriptor_path(self, workspace_paths: WorkspacePaths) -> None:
        """Test descriptors live next to the target output in bazel-bin."""
        label = BazelLabel.parse("//svc:lib")
        assert descriptor_path_for(label, workspace_paths) == workspace_paths.bazel_bin / "svc/lib-maven-info.json"
