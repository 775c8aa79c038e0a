"""Core algorithms: change detection, indexing, graph building and triggering."""

from .change_detector import build_file_changed, is_dirty
from .coordinator import BuildTrigger
from .graph_builder import (
    DependencyGraph,
    build_dependency_graph,
    build_edges,
    is_matching_tag,
)
from .project_index import ProjectIndex
from .snapshot_service import SnapshotService
from .trigger import TriggerEvaluator

__all__ = [
    "BuildTrigger",
    "DependencyGraph",
    "ProjectIndex",
    "SnapshotService",
    "TriggerEvaluator",
    "build_dependency_graph",
    "build_edges",
    "build_file_changed",
    "is_dirty",
    "is_matching_tag",
]
