"""Process-wide index from published artifacts to their producing projects.

The index is built from scratch on first lookup after an invalidation and
is never updated partially. Rebuild, invalidate and lookup are mutually
exclusive: concurrent lookups block while a rebuild is in flight and then
reuse its result, so a burst of completions triggers a single rebuild.
"""

# pylint: disable=broad-exception-caught

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from buildtrigger.model import ArtifactIdentity, DependencySnapshot, Project
from buildtrigger.registry import ProjectRegistry

logger = logging.getLogger("buildtrigger.core.project_index")

SnapshotProvider = Callable[[Project], DependencySnapshot]
IndexMapping = Dict[ArtifactIdentity, List[Project]]


class ProjectIndex:
    """Maps each published ArtifactIdentity to the projects publishing it.

    Sub-projects are collapsed onto the top-level orchestrator project that
    owns them. Several projects may publish the same artifact; all of them
    are kept, in registry order.
    """

    def __init__(self, registry: ProjectRegistry, snapshot_provider: SnapshotProvider) -> None:
        """Initialize an empty (not yet built) index.

        Args:
            registry: Source of all projects.
            snapshot_provider: Returns the current snapshot of a project,
                introspecting it when needed. May raise.
        """
        self._registry = registry
        self._snapshot_provider = snapshot_provider
        self._index: Optional[IndexMapping] = None
        self._lock = threading.RLock()
        self._rebuild_count = 0

    @property
    def is_built(self) -> bool:
        with self._lock:
            return self._index is not None

    @property
    def rebuild_count(self) -> int:
        """Number of rebuilds performed since creation."""
        with self._lock:
            return self._rebuild_count

    def rebuild(self) -> IndexMapping:
        """Rebuild the index from all enabled projects and return a copy."""
        with self._lock:
            self._index = self._calculate()
            self._rebuild_count += 1
            return _copy(self._index)

    def lookup(self, artifact: ArtifactIdentity) -> List[Project]:
        """Return the projects publishing ``artifact`` (empty when none)."""
        with self._lock:
            if self._index is None:
                self._index = self._calculate()
                self._rebuild_count += 1
            return list(self._index.get(artifact, ()))

    def entries(self) -> IndexMapping:
        """Return a copy of the full mapping, building it when needed."""
        with self._lock:
            if self._index is None:
                self._index = self._calculate()
                self._rebuild_count += 1
            return _copy(self._index)

    def invalidate(self) -> None:
        """Drop the index; the next lookup rebuilds it. Safe to call repeatedly."""
        with self._lock:
            if self._index is not None:
                logger.info("Project index invalidated")
            self._index = None

    def _calculate(self) -> IndexMapping:
        mapping: IndexMapping = {}
        indexed = 0

        for project in self._registry.all_projects():
            if project.disabled:
                continue

            logger.debug("Calculating published artifacts for %s", project.name)
            try:
                snapshot = self._snapshot_provider(project)
            except Exception as e:
                logger.error(
                    "Failed to get dependency snapshot for %s: %s", project.name, e, exc_info=True
                )
                continue

            _register_tree(mapping, project, snapshot)
            indexed += 1

        logger.info(
            "Built project index: %d artifact(s) from %d project(s)", len(mapping), indexed
        )
        return mapping


def _register_tree(mapping: IndexMapping, owner: Project, snapshot: DependencySnapshot) -> None:
    """Register a snapshot's publications, children first, under ``owner``."""
    for child in snapshot.children:
        _register_tree(mapping, owner, child)
    for artifact in snapshot.published_artifacts:
        producers = mapping.setdefault(artifact, [])
        if owner not in producers:
            producers.append(owner)
            logger.debug("Adding artifact %s for project %s", artifact, owner.name)


def _copy(mapping: IndexMapping) -> IndexMapping:
    return {artifact: list(projects) for artifact, projects in mapping.items()}


__all__ = ["ProjectIndex", "SnapshotProvider", "IndexMapping"]
