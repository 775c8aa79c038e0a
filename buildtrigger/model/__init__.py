"""Data model: artifacts, snapshots, projects and builds."""

from .artifact import ArtifactIdentity
from .project import Build, BuildResult, Project
from .snapshot import DependencySnapshot, ProjectKind

__all__ = [
    "ArtifactIdentity",
    "Build",
    "BuildResult",
    "DependencySnapshot",
    "Project",
    "ProjectKind",
]
