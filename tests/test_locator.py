"""Tests for build file discovery."""

from __future__ import annotations

from pathlib import Path

from buildtrigger.introspect.locator import BuildFileLocator, expand_macros
from buildtrigger.model import Project


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("<project/>", encoding="utf-8")
    return path


def test_expand_macros_substitutes_known_variables() -> None:
    env = {"WORKSPACE": "/ws", "MODULE": "core"}

    assert expand_macros("${WORKSPACE}/$MODULE/pom.xml", env) == "/ws/core/pom.xml"
    assert expand_macros("${UNKNOWN}/pom.xml", env) == "${UNKNOWN}/pom.xml"
    assert expand_macros("${WORKSPACE}", None) == "${WORKSPACE}"


def test_custom_build_file_wins(tmp_path: Path) -> None:
    """A configured build file takes precedence over the workspace default."""
    workspace = tmp_path / "ws"
    _touch(workspace / "pom.xml")
    custom = _touch(workspace / "build" / "pom.xml")
    project = Project("App", workspace=workspace, build_file="${SUBDIR}/pom.xml", environment={"SUBDIR": "build"})

    assert BuildFileLocator().locate(project) == custom


def test_missing_custom_build_file_falls_through(tmp_path: Path) -> None:
    workspace = tmp_path / "ws"
    default = _touch(workspace / "pom.xml")
    project = Project("App", workspace=workspace, build_file="missing/pom.xml")

    assert BuildFileLocator().locate(project) == default


def test_root_build_script_dir_is_normalized(tmp_path: Path) -> None:
    """Line breaks and tabs in the configured directory are collapsed."""
    workspace = tmp_path / "ws"
    expected = _touch(workspace / "sub dir" / "pom.xml")
    project = Project("App", workspace=workspace, root_build_script_dir="  sub\tdir\n")

    assert BuildFileLocator().locate(project) == expected


def test_falls_back_to_project_directory(tmp_path: Path) -> None:
    root_dir = tmp_path / "jobs" / "App"
    expected = _touch(root_dir / "pom.xml")
    project = Project("App", workspace=tmp_path / "empty-ws", root_dir=root_dir)

    assert BuildFileLocator().locate(project) == expected


def test_configured_file_name_is_used(tmp_path: Path) -> None:
    expected = _touch(tmp_path / "build.gradle")

    assert BuildFileLocator("build.gradle").locate(Project("App", workspace=tmp_path)) == expected


def test_nothing_found_returns_none(tmp_path: Path) -> None:
    project = Project("App", workspace=tmp_path, root_dir=tmp_path / "none")

    assert BuildFileLocator().locate(project) is None
    assert BuildFileLocator().locate(Project("Bare")) is None
