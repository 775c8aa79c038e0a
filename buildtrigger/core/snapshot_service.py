"""Per-project snapshot lifecycle.

Holds the in-memory snapshot of every project, backed by a snapshot store.
Each project has its own lock so that at most one introspect-and-persist
sequence runs per project, while different projects proceed in parallel.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, FrozenSet, Optional

from buildtrigger.core.change_detector import is_dirty
from buildtrigger.errors import IntrospectionError
from buildtrigger.introspect.base import MetadataIntrospector
from buildtrigger.introspect.locator import BuildFileLocator
from buildtrigger.model import DependencySnapshot, Project
from buildtrigger.registry import ProjectRegistry
from buildtrigger.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("buildtrigger.core.snapshot_service")


class SnapshotService:
    """Get-or-rebuild access to project snapshots."""

    def __init__(
        self,
        registry: ProjectRegistry,
        introspector: MetadataIntrospector,
        store: SnapshotStore,
        locator: Optional[BuildFileLocator] = None,
    ) -> None:
        self._registry = registry
        self._introspector = introspector
        self._store = store
        self._locator = locator or BuildFileLocator()
        self._cache: Dict[str, DependencySnapshot] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, project: Project) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(project.name)
            if lock is None:
                lock = threading.RLock()
                self._locks[project.name] = lock
            return lock

    def cached_snapshot(self, project: Project) -> Optional[DependencySnapshot]:
        """Return the in-memory snapshot without loading or introspecting."""
        with self._lock_for(project):
            return self._cache.get(project.name)

    def forget(self, project: Project) -> None:
        """Drop the in-memory snapshot; the persisted copy is kept."""
        with self._lock_for(project):
            self._cache.pop(project.name, None)

    def get_or_rebuild_snapshot(self, project: Project) -> DependencySnapshot:
        """Return the project's current snapshot, building it when needed.

        Falls back to the template project's snapshot when the project has
        no metadata of its own, and to the empty snapshot after that.

        Raises:
            IntrospectionError: If introspection fails and nothing was persisted.
        """
        return self._get_or_rebuild(project, frozenset())

    def _get_or_rebuild(self, project: Project, visiting: FrozenSet[str]) -> DependencySnapshot:
        with self._lock_for(project):
            snapshot = self._cache.get(project.name)
            if snapshot is None or snapshot.is_empty:
                snapshot = self._load_or_introspect(project)

        if not snapshot.is_empty:
            return snapshot

        cloned = self._clone_from_template(project, visiting | {project.name})
        if cloned is None or cloned.is_empty:
            return DependencySnapshot.empty()

        with self._lock_for(project):
            self._adopt(project, cloned)
        return cloned

    def _load_or_introspect(self, project: Project) -> DependencySnapshot:
        """Introspect afresh and reconcile with the persisted copy. Caller holds the lock."""
        persisted = self._store.load(project.name)
        if persisted is not None and persisted.is_empty:
            persisted = None

        try:
            fresh = self._introspect(project)
        except IntrospectionError as e:
            if persisted is None:
                raise
            logger.warning(
                "Introspection of %s failed, using persisted snapshot: %s", project.name, e
            )
            self._cache[project.name] = persisted
            return persisted

        if fresh is None or fresh.is_empty:
            if persisted is not None:
                self._cache[project.name] = persisted
                return persisted
            return DependencySnapshot.empty()

        if is_dirty(persisted, fresh):
            self._adopt(project, fresh)
            return fresh

        self._cache[project.name] = persisted
        return persisted

    def refresh_snapshot(self, project: Project) -> bool:
        """Re-introspect after a build and replace the snapshot when dirty.

        Returns:
            bool: True if the snapshot changed and the graph must be rebuilt.
        """
        with self._lock_for(project):
            try:
                fresh = self._introspect(project)
            except IntrospectionError as e:
                logger.error("Failed to introspect %s: %s", project.name, e, exc_info=True)
                return False

            if fresh is None or fresh.is_empty:
                logger.info("No dependency metadata found for %s", project.name)
                return False

            current = self._cache.get(project.name)
            if current is None:
                current = self._store.load(project.name)
            if current is not None and current.is_empty:
                current = None

            dirty = is_dirty(current, fresh)
            logger.info("Rebuilding (%s) %s", dirty, project.name)
            if dirty:
                self._adopt(project, fresh)
            return dirty

    def _introspect(self, project: Project) -> Optional[DependencySnapshot]:
        build_file = self._locator.locate(project)
        if build_file is None:
            return None
        return self._introspector.introspect(build_file)

    def _adopt(self, project: Project, snapshot: DependencySnapshot) -> None:
        self._cache[project.name] = snapshot
        self._store.store(project.name, snapshot)

    def _clone_from_template(
        self, project: Project, visiting: FrozenSet[str]
    ) -> Optional[DependencySnapshot]:
        if not project.template_project:
            return None

        template = self._registry.find_by_display_name(project.template_project)
        if template is None:
            logger.warning(
                "Template project %s of %s not found", project.template_project, project.name
            )
            return None
        if template.name in visiting:
            logger.warning("Template cycle through %s for %s", template.name, project.name)
            return None

        logger.info("Cloning dependencies from %s", template.name)
        return self._get_or_rebuild(template, visiting)


__all__ = ["SnapshotService"]
