"""Project registry: the orchestrator's view of all projects.

The registry owns project handles. Core components enumerate and resolve
projects through it but never modify them.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from buildtrigger.config.schema import WorkspaceConfig
from buildtrigger.model import Project

logger = logging.getLogger("buildtrigger.registry")


class ProjectRegistry(ABC):
    """Abstract project registry protocol."""

    @abstractmethod
    def all_projects(self) -> List[Project]:
        """Return every project, enabled or not, in registration order."""
        pass

    @abstractmethod
    def get(self, name: str) -> Optional[Project]:
        """Resolve a project by its exact name."""
        pass

    def find_by_display_name(self, display_name: str) -> Optional[Project]:
        """Resolve a project by display name, ignoring case."""
        wanted = display_name.strip().casefold()
        for project in self.all_projects():
            if project.name.casefold() == wanted:
                return project
        return None

    def resolve_all(self, names: Iterable[str]) -> List[Project]:
        """Resolve names to projects, skipping unknown ones."""
        resolved: List[Project] = []
        for name in names:
            project = self.get(name)
            if project is None:
                logger.debug("Unknown project reference: %s", name)
                continue
            resolved.append(project)
        return resolved


class InMemoryProjectRegistry(ProjectRegistry):
    """Thread-safe in-memory registry."""

    def __init__(self, projects: Optional[Iterable[Project]] = None) -> None:
        self._projects: Dict[str, Project] = {}
        self._lock = threading.RLock()
        for project in projects or ():
            self.add(project)

    @classmethod
    def from_config(cls, config: WorkspaceConfig) -> "InMemoryProjectRegistry":
        registry = cls(project.to_project() for project in config.projects)
        logger.info("Loaded %d project(s) into registry", len(config.projects))
        return registry

    def add(self, project: Project) -> None:
        with self._lock:
            if project.name in self._projects:
                logger.debug("Replacing project %s", project.name)
            self._projects[project.name] = project

    def remove(self, name: str) -> Optional[Project]:
        with self._lock:
            return self._projects.pop(name, None)

    def all_projects(self) -> List[Project]:
        with self._lock:
            return list(self._projects.values())

    def get(self, name: str) -> Optional[Project]:
        with self._lock:
            return self._projects.get(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._projects)


__all__ = ["ProjectRegistry", "InMemoryProjectRegistry"]
