"""Configuration schema definitions using Pydantic for validation.

This module provides strongly-typed configuration classes for the trigger
core and for workspace descriptions consumed by the CLI. Using Pydantic
ensures configuration errors are caught early with clear error messages.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from buildtrigger.model import Build, BuildResult, Project


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class TriggerConfig(BaseModel):
    """Settings for snapshot handling and trigger evaluation.

    Attributes:
        build_file_name: File name looked up in workspace and project directories.
        snapshot_file_name: File name of a persisted snapshot.
        cache_dir: Root directory of the file snapshot store.
        trigger_threshold: Completed upstream builds worse than this never trigger.
        readiness_threshold: The completed build satisfies its own readiness
            requirement only when its result is at least this good.
        max_module_depth: Maximum nesting of sub-projects during introspection.
        check_upstream_relationships: Log when a downstream's recorded upstream
            build number is newer than the one being triggered from.
    """

    build_file_name: str = "pom.xml"
    snapshot_file_name: str = "dependency-snapshot.json"
    cache_dir: str = ".buildtrigger_cache/snapshots"
    trigger_threshold: BuildResult = BuildResult.SUCCESS
    readiness_threshold: BuildResult = BuildResult.UNSTABLE
    max_module_depth: int = Field(default=10, ge=1, le=100)
    check_upstream_relationships: bool = True

    model_config = {"extra": "forbid"}

    @field_validator("build_file_name", "snapshot_file_name")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """File names must be bare names, not paths."""
        v = v.strip()
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid file name '{v}'")
        return v

    @field_validator("trigger_threshold", "readiness_threshold", mode="before")
    @classmethod
    def normalize_result(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class BuildConfig(BaseModel):
    """A recorded build in a workspace description."""

    number: int = Field(ge=1)
    result: BuildResult = BuildResult.SUCCESS
    upstream: Dict[str, int] = Field(default_factory=dict)

    @field_validator("result", mode="before")
    @classmethod
    def normalize_result(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def to_build(self) -> Build:
        return Build(
            number=self.number,
            result=self.result,
            upstream_relationships=dict(self.upstream),
        )


class ProjectConfig(BaseModel):
    """One orchestrator project in a workspace description."""

    name: str
    disabled: bool = False
    tag: Optional[str] = None
    template_project: Optional[str] = None
    build_file: Optional[str] = None
    root_build_script_dir: Optional[str] = None
    workspace: Optional[str] = None
    root_dir: Optional[str] = None
    upstream: List[str] = Field(default_factory=list)
    downstream: List[str] = Field(default_factory=list)
    building: bool = False
    queued: bool = False
    last_build: Optional[BuildConfig] = None
    last_successful_build: Optional[BuildConfig] = None
    environment: Optional[Dict[str, str]] = None

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name must not be empty")
        return v

    @field_validator("tag", "template_project", "build_file", "root_build_script_dir")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    def to_project(self) -> Project:
        return Project(
            name=self.name,
            disabled=self.disabled,
            tag=self.tag,
            template_project=self.template_project,
            build_file=self.build_file,
            root_build_script_dir=self.root_build_script_dir,
            workspace=_to_path(self.workspace),
            root_dir=_to_path(self.root_dir),
            upstream=tuple(self.upstream),
            downstream=tuple(self.downstream),
            building=self.building,
            queued=self.queued,
            last_build=self.last_build.to_build() if self.last_build else None,
            last_successful_build=(
                self.last_successful_build.to_build() if self.last_successful_build else None
            ),
            environment=dict(self.environment) if self.environment is not None else None,
        )


class WorkspaceConfig(BaseModel):
    """Top-level workspace description: settings plus projects.

    Attributes:
        settings: Trigger settings.
        projects: Projects known to the orchestrator.
    """

    settings: TriggerConfig = Field(default_factory=TriggerConfig)
    projects: List[ProjectConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_names(self) -> "WorkspaceConfig":
        seen = set()
        for project in self.projects:
            if project.name in seen:
                raise ValueError(f"Duplicate project name '{project.name}'")
            seen.add(project.name)
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkspaceConfig":
        """Create configuration from dictionary.

        Raises:
            ValidationError: If configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def _to_path(value: Optional[str]) -> Optional[Path]:
    if value is None or not value.strip():
        return None
    return Path(value).expanduser()


__all__ = [
    "TriggerConfig",
    "BuildConfig",
    "ProjectConfig",
    "WorkspaceConfig",
]
