"""Dependency snapshot tree.

A snapshot captures the dependency and publication metadata of one project
at one point in time. Snapshots are immutable: a newer introspection result
replaces the old snapshot wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .artifact import ArtifactIdentity


class ProjectKind(str, Enum):
    """Discriminator for snapshot variants."""

    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class DependencySnapshot:
    """Per-project dependency metadata.

    Attributes:
        project_name: Build-tool project name.
        build_file: Build file the metadata was read from (None when unknown).
        kind: SINGLE for a plain project, MULTI for a root with sub-projects.
        declared_dependencies: Artifacts this node depends on, in declaration order.
        published_artifacts: Artifacts this node publishes.
        children: Sub-project snapshots. Only a MULTI node may have children.
    """

    project_name: str
    build_file: Optional[Path] = None
    kind: ProjectKind = ProjectKind.SINGLE
    declared_dependencies: Tuple[ArtifactIdentity, ...] = ()
    published_artifacts: Tuple[ArtifactIdentity, ...] = ()
    children: Tuple["DependencySnapshot", ...] = field(default=())

    def __post_init__(self) -> None:
        if self.children and self.kind is not ProjectKind.MULTI:
            raise ValueError(
                f"Snapshot '{self.project_name}' has children but is not a multi-project root"
            )

    @classmethod
    def single(
        cls,
        project_name: str,
        build_file: Optional[Path] = None,
        dependencies: Tuple[ArtifactIdentity, ...] | List[ArtifactIdentity] = (),
        publications: Tuple[ArtifactIdentity, ...] | List[ArtifactIdentity] = (),
    ) -> "DependencySnapshot":
        return cls(
            project_name=project_name,
            build_file=build_file,
            kind=ProjectKind.SINGLE,
            declared_dependencies=tuple(dependencies),
            published_artifacts=tuple(publications),
        )

    @classmethod
    def multi(
        cls,
        project_name: str,
        children: Tuple["DependencySnapshot", ...] | List["DependencySnapshot"],
        build_file: Optional[Path] = None,
        dependencies: Tuple[ArtifactIdentity, ...] | List[ArtifactIdentity] = (),
        publications: Tuple[ArtifactIdentity, ...] | List[ArtifactIdentity] = (),
    ) -> "DependencySnapshot":
        return cls(
            project_name=project_name,
            build_file=build_file,
            kind=ProjectKind.MULTI,
            declared_dependencies=tuple(dependencies),
            published_artifacts=tuple(publications),
            children=tuple(children),
        )

    @classmethod
    def empty(cls) -> "DependencySnapshot":
        """Snapshot of a project with no known build metadata."""
        return cls(project_name="")

    @property
    def is_multi_project(self) -> bool:
        return self.kind is ProjectKind.MULTI

    @property
    def is_empty(self) -> bool:
        return (
            not self.project_name
            and self.build_file is None
            and not self.declared_dependencies
            and not self.published_artifacts
            and not self.children
        )

    def all_dependencies(self) -> List[ArtifactIdentity]:
        """Flatten declared dependencies of this node and every descendant.

        Duplicates are preserved. Published artifacts are not included.
        """
        collected: List[ArtifactIdentity] = list(self.declared_dependencies)
        for child in self.children:
            collected.extend(child.all_dependencies())
        return collected

    def walk(self) -> Iterator["DependencySnapshot"]:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_name": self.project_name,
            "build_file": str(self.build_file) if self.build_file is not None else None,
            "kind": self.kind.value,
            "declared_dependencies": [dep.to_dict() for dep in self.declared_dependencies],
            "published_artifacts": [pub.to_dict() for pub in self.published_artifacts],
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DependencySnapshot":
        """Rebuild a snapshot from ``to_dict`` output.

        Raises:
            KeyError, TypeError, ValueError: If the mapping is malformed.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Snapshot payload must be a mapping, got {type(data).__name__}")
        build_file = data.get("build_file")
        return cls(
            project_name=str(data["project_name"]),
            build_file=Path(build_file) if build_file else None,
            kind=ProjectKind(data.get("kind", ProjectKind.SINGLE.value)),
            declared_dependencies=tuple(
                ArtifactIdentity.from_dict(dep) for dep in data.get("declared_dependencies", [])
            ),
            published_artifacts=tuple(
                ArtifactIdentity.from_dict(pub) for pub in data.get("published_artifacts", [])
            ),
            children=tuple(cls.from_dict(child) for child in data.get("children", [])),
        )


__all__ = ["DependencySnapshot", "ProjectKind"]
