"""Buildtrigger - dependency-driven downstream build triggering.

Infers build-order edges between orchestrator projects from introspected
build metadata and decides, after an upstream build completes, which
downstream projects should be triggered next.
"""

from buildtrigger.core import (
    BuildTrigger,
    DependencyGraph,
    ProjectIndex,
    SnapshotService,
    TriggerEvaluator,
    build_dependency_graph,
    build_edges,
    is_dirty,
    is_matching_tag,
)
from buildtrigger.errors import (
    BuildTriggerError,
    ConfigurationError,
    IntrospectionError,
    RecoverableError,
    SnapshotStoreError,
)
from buildtrigger.model import (
    ArtifactIdentity,
    Build,
    BuildResult,
    DependencySnapshot,
    Project,
    ProjectKind,
)

__version__ = "0.3.0"

__all__ = [
    "ArtifactIdentity",
    "Build",
    "BuildResult",
    "BuildTrigger",
    "BuildTriggerError",
    "ConfigurationError",
    "DependencyGraph",
    "DependencySnapshot",
    "IntrospectionError",
    "Project",
    "ProjectIndex",
    "ProjectKind",
    "RecoverableError",
    "SnapshotService",
    "SnapshotStoreError",
    "TriggerEvaluator",
    "build_dependency_graph",
    "build_edges",
    "is_dirty",
    "is_matching_tag",
]
