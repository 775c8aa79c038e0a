"""Orchestrator project handles and build records.

Projects are owned by the project registry. The core only reads them: it
never changes a project's configuration or live build state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple


class BuildResult(str, Enum):
    """Build outcome, ordered from best to worst."""

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"

    @property
    def ordinal(self) -> int:
        return _RESULT_ORDER[self]

    def is_worse_than(self, other: "BuildResult") -> bool:
        return self.ordinal > other.ordinal

    def is_better_or_equal(self, other: "BuildResult") -> bool:
        return self.ordinal <= other.ordinal

    @classmethod
    def parse(cls, value: str) -> "BuildResult":
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Invalid build result '{value}'. Valid results: {valid}") from exc


_RESULT_ORDER: Dict[BuildResult, int] = {
    BuildResult.SUCCESS: 0,
    BuildResult.UNSTABLE: 1,
    BuildResult.FAILURE: 2,
    BuildResult.NOT_BUILT: 3,
    BuildResult.ABORTED: 4,
}


@dataclass(frozen=True)
class Build:
    """A completed (or recorded) build of a project.

    Attributes:
        number: Build number, increasing per project.
        result: Build outcome; None while the build is still running.
        upstream_relationships: Upstream project name -> upstream build number
            this build was based on.
    """

    number: int
    result: Optional[BuildResult] = BuildResult.SUCCESS
    upstream_relationships: Dict[str, int] = field(default_factory=dict)

    def upstream_relationship(self, project_name: str) -> int:
        """Return the recorded upstream build number, or -1 when unrelated."""
        return self.upstream_relationships.get(project_name, -1)


@dataclass(eq=False)
class Project:
    """Handle to an orchestrator project.

    Identity is the project name; two handles with the same name refer to
    the same project.

    Attributes:
        name: Unique project name (also its display name).
        disabled: Disabled projects are never indexed nor triggered.
        tag: Optional partition name; None places the project in the global
            partition, compatible with every tag.
        template_project: Project to clone dependency metadata from when
            this project has none of its own.
        build_file: Custom build file path, may contain ``${VAR}`` macros.
        root_build_script_dir: Directory holding the root build file,
            relative to the workspace, may contain macros.
        workspace: Checkout directory of the project's last build.
        root_dir: Orchestrator-side project directory.
        upstream: Statically declared upstream project names.
        downstream: Statically declared downstream project names.
        building: A build of this project is running.
        queued: A build of this project is waiting in the queue.
        last_build: Most recent build, whatever its result.
        last_successful_build: Most recent build with a result of at least
            UNSTABLE.
        environment: Environment of the last build, when known.
    """

    name: str
    disabled: bool = False
    tag: Optional[str] = None
    template_project: Optional[str] = None
    build_file: Optional[str] = None
    root_build_script_dir: Optional[str] = None
    workspace: Optional[Path] = None
    root_dir: Optional[Path] = None
    upstream: Tuple[str, ...] = ()
    downstream: Tuple[str, ...] = ()
    building: bool = False
    queued: bool = False
    last_build: Optional[Build] = None
    last_successful_build: Optional[Build] = None
    environment: Optional[Dict[str, str]] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Project):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Project({self.name!r})"

    @property
    def enabled(self) -> bool:
        return not self.disabled

    @property
    def is_building_or_queued(self) -> bool:
        return self.building or self.queued


__all__ = ["BuildResult", "Build", "Project"]
