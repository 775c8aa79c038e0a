"""Build trigger coordinator.

Ties the snapshot service, project index, graph builder and trigger
evaluator together behind the interface the build orchestrator calls.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional

from buildtrigger.config.schema import TriggerConfig, WorkspaceConfig
from buildtrigger.core.graph_builder import (
    DependencyGraph,
    Edge,
    build_dependency_graph,
    build_edges,
)
from buildtrigger.core.project_index import ProjectIndex
from buildtrigger.core.snapshot_service import SnapshotService
from buildtrigger.core.trigger import TriggerEvaluator
from buildtrigger.errors import IntrospectionError
from buildtrigger.introspect.base import MetadataIntrospector
from buildtrigger.introspect.locator import BuildFileLocator
from buildtrigger.introspect.maven import MavenPomIntrospector
from buildtrigger.model import Build, DependencySnapshot, Project
from buildtrigger.registry import InMemoryProjectRegistry, ProjectRegistry
from buildtrigger.storage.snapshot_store import FileSnapshotStore, SnapshotStore

logger = logging.getLogger("buildtrigger.core.coordinator")


class BuildTrigger:
    """Entry point for the orchestrator.

    The dependency graph is computed lazily on first use and cached until
    the index is invalidated, which happens whenever a completed build
    changes its project's snapshot.
    """

    def __init__(
        self,
        registry: ProjectRegistry,
        introspector: Optional[MetadataIntrospector] = None,
        store: Optional[SnapshotStore] = None,
        config: Optional[TriggerConfig] = None,
    ) -> None:
        self.config = config or TriggerConfig()
        self.registry = registry
        introspector = introspector or MavenPomIntrospector(max_depth=self.config.max_module_depth)
        store = store or FileSnapshotStore(
            Path(self.config.cache_dir), self.config.snapshot_file_name
        )
        self.snapshots = SnapshotService(
            registry, introspector, store, BuildFileLocator(self.config.build_file_name)
        )
        self.index = ProjectIndex(registry, self.snapshots.get_or_rebuild_snapshot)
        self._graph: Optional[DependencyGraph] = None
        self._graph_lock = threading.RLock()
        self.evaluator = TriggerEvaluator(registry, self.graph, self.config)

    @classmethod
    def from_workspace(
        cls,
        workspace: WorkspaceConfig,
        introspector: Optional[MetadataIntrospector] = None,
        store: Optional[SnapshotStore] = None,
    ) -> "BuildTrigger":
        registry = InMemoryProjectRegistry.from_config(workspace)
        return cls(registry, introspector=introspector, store=store, config=workspace.settings)

    def get_or_rebuild_snapshot(self, project: Project) -> DependencySnapshot:
        """Return the project's snapshot, or the empty snapshot when it cannot be read."""
        try:
            return self.snapshots.get_or_rebuild_snapshot(project)
        except IntrospectionError as e:
            logger.error(
                "Failed to get dependency snapshot for %s: %s", project.name, e, exc_info=True
            )
            return DependencySnapshot.empty()

    def build_edges(
        self, project: Project, snapshot: Optional[DependencySnapshot] = None
    ) -> List[Edge]:
        if snapshot is None:
            snapshot = self.get_or_rebuild_snapshot(project)
        return build_edges(project, snapshot, self.index)

    def graph(self) -> DependencyGraph:
        """Return the current dependency graph, rebuilding it when invalidated."""
        with self._graph_lock:
            if self._graph is None:
                self._graph = build_dependency_graph(
                    self.registry, self.snapshots.get_or_rebuild_snapshot, self.index
                )
            return self._graph

    def invalidate_index(self) -> None:
        self.index.invalidate()
        with self._graph_lock:
            self._graph = None

    def should_trigger(self, parent: Project, downstream: Project, build: Build) -> bool:
        return self.evaluator.should_trigger(parent, downstream, build)

    def on_build_completed(self, project: Project, build: Build) -> List[Project]:
        """Handle an upstream completion and return the projects to trigger."""
        logger.info(
            "Handling completion of %s #%d (%s)",
            project.name,
            build.number,
            build.result.value if build.result else "no result",
        )

        if self.snapshots.refresh_snapshot(project):
            self.invalidate_index()

        triggered: List[Project] = []
        for downstream in self.graph().downstream_projects(project):
            live = self.registry.get(downstream.name) or downstream
            if live.disabled:
                logger.debug("Skipping disabled downstream %s", live.name)
                continue
            if self.should_trigger(project, live, build):
                triggered.append(live)

        logger.info(
            "Finished handling %s #%d: triggering %s",
            project.name,
            build.number,
            ", ".join(p.name for p in triggered) or "nothing",
        )
        return triggered


__all__ = ["BuildTrigger"]
