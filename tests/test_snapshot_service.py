"""Tests for the per-project snapshot lifecycle."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Union

import pytest

from buildtrigger.core.snapshot_service import SnapshotService
from buildtrigger.errors import IntrospectionError
from buildtrigger.introspect.base import MetadataIntrospector
from buildtrigger.introspect.locator import BuildFileLocator
from buildtrigger.model import ArtifactIdentity, DependencySnapshot, Project
from buildtrigger.registry import InMemoryProjectRegistry
from buildtrigger.storage.snapshot_store import MemorySnapshotStore

GUAVA = ArtifactIdentity("com.google", "guava")
JUNIT = ArtifactIdentity("junit", "junit")


class _NameLocator(BuildFileLocator):
    """Locates ``<name>/pom.xml`` for every project that has results."""

    def __init__(self, introspector: "_StubIntrospector") -> None:
        super().__init__()
        self._introspector = introspector

    def locate(self, project: Project) -> Optional[Path]:
        if project.name not in self._introspector.results:
            return None
        return Path(project.name) / "pom.xml"


class _StubIntrospector(MetadataIntrospector):
    def __init__(self) -> None:
        self.results: Dict[str, Union[DependencySnapshot, Exception]] = {}
        self.calls = 0

    def introspect(self, build_file: Path) -> DependencySnapshot:
        self.calls += 1
        result = self.results[build_file.parent.name]
        if isinstance(result, Exception):
            raise result
        return result


def _snapshot(name: str, *deps: ArtifactIdentity) -> DependencySnapshot:
    return DependencySnapshot.single(
        name,
        build_file=Path(name) / "pom.xml",
        dependencies=deps,
        publications=[ArtifactIdentity("org.example", name.lower())],
    )


@pytest.fixture
def introspector() -> _StubIntrospector:
    return _StubIntrospector()


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


def _service(introspector, store, *projects: Project) -> SnapshotService:
    registry = InMemoryProjectRegistry(projects)
    return SnapshotService(registry, introspector, store, _NameLocator(introspector))


def test_first_introspection_is_adopted_and_persisted(introspector, store) -> None:
    """Without a persisted copy the fresh snapshot is cached and stored."""
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)

    snapshot = service.get_or_rebuild_snapshot(project)

    assert snapshot.all_dependencies() == [GUAVA]
    assert service.cached_snapshot(project) == snapshot
    assert store.load("App") == snapshot


def test_cached_snapshot_is_returned_without_introspection(introspector, store) -> None:
    """Repeated lookups hit the in-memory cache."""
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)

    first = service.get_or_rebuild_snapshot(project)
    second = service.get_or_rebuild_snapshot(project)

    assert first is second
    assert introspector.calls == 1


def test_clean_persisted_snapshot_is_kept(introspector, store) -> None:
    """When nothing dependency-relevant changed, the persisted copy stays."""
    project = Project("App")
    persisted = DependencySnapshot.single("App", build_file=Path("App") / "pom.xml", dependencies=[GUAVA])
    store.store("App", persisted)
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)

    assert service.get_or_rebuild_snapshot(project) == persisted
    assert store.load("App").published_artifacts == ()


def test_dirty_persisted_snapshot_is_replaced(introspector, store) -> None:
    """A changed dependency list replaces and re-persists the snapshot."""
    project = Project("App")
    store.store("App", _snapshot("App", GUAVA))
    introspector.results["App"] = _snapshot("App", GUAVA, JUNIT)
    service = _service(introspector, store, project)

    snapshot = service.get_or_rebuild_snapshot(project)

    assert snapshot.all_dependencies() == [GUAVA, JUNIT]
    assert store.load("App").all_dependencies() == [GUAVA, JUNIT]


def test_introspection_failure_falls_back_to_persisted(introspector, store) -> None:
    """A broken build tool does not lose the last known snapshot."""
    project = Project("App")
    persisted = _snapshot("App", GUAVA)
    store.store("App", persisted)
    introspector.results["App"] = IntrospectionError("mvn exited with 1")
    service = _service(introspector, store, project)

    assert service.get_or_rebuild_snapshot(project) == persisted


def test_introspection_failure_without_persisted_copy_raises(introspector, store) -> None:
    """With nothing to fall back to, the failure propagates."""
    project = Project("App")
    introspector.results["App"] = IntrospectionError("mvn exited with 1")
    service = _service(introspector, store, project)

    with pytest.raises(IntrospectionError):
        service.get_or_rebuild_snapshot(project)


def test_corrupt_persisted_payload_is_treated_as_absent(introspector, store) -> None:
    """Undecodable store data behaves like a missing snapshot."""
    project = Project("App")
    store._payloads["App"] = "{not json"
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)

    assert service.get_or_rebuild_snapshot(project).all_dependencies() == [GUAVA]
    assert store.load("App").all_dependencies() == [GUAVA]


def test_project_without_metadata_gets_empty_snapshot(introspector, store) -> None:
    """No build file and no template yields the empty snapshot."""
    project = Project("Docs")
    service = _service(introspector, store, project)

    assert service.get_or_rebuild_snapshot(project).is_empty
    assert "Docs" not in store


def test_template_project_snapshot_is_cloned(introspector, store) -> None:
    """Projects without metadata borrow their template's snapshot."""
    base = Project("Base")
    child = Project("Child", template_project="base")
    introspector.results["Base"] = _snapshot("Base", GUAVA)
    service = _service(introspector, store, base, child)

    snapshot = service.get_or_rebuild_snapshot(child)

    assert snapshot == service.get_or_rebuild_snapshot(base)
    assert service.cached_snapshot(child) == snapshot
    assert store.load("Child") == snapshot


def test_template_cycle_yields_empty_snapshot(introspector, store) -> None:
    """Projects naming each other as template do not recurse forever."""
    a = Project("A", template_project="B")
    b = Project("B", template_project="A")
    service = _service(introspector, store, a, b)

    assert service.get_or_rebuild_snapshot(a).is_empty


def test_unknown_template_yields_empty_snapshot(introspector, store) -> None:
    project = Project("Child", template_project="Missing")
    service = _service(introspector, store, project)

    assert service.get_or_rebuild_snapshot(project).is_empty


def test_refresh_reports_dirty_and_replaces(introspector, store) -> None:
    """A new dependency after a build marks the snapshot dirty."""
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)
    service.get_or_rebuild_snapshot(project)

    introspector.results["App"] = _snapshot("App", GUAVA, JUNIT)

    assert service.refresh_snapshot(project) is True
    assert service.cached_snapshot(project).all_dependencies() == [GUAVA, JUNIT]
    assert store.load("App").all_dependencies() == [GUAVA, JUNIT]


def test_refresh_reports_clean_for_unchanged_dependencies(introspector, store) -> None:
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)
    service.get_or_rebuild_snapshot(project)

    assert service.refresh_snapshot(project) is False


def test_refresh_without_known_snapshot_is_dirty(introspector, store) -> None:
    """The first successful introspection always counts as a change."""
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)

    assert service.refresh_snapshot(project) is True
    assert "App" in store


def test_refresh_never_replaces_with_empty_result(introspector, store) -> None:
    """An empty introspection result keeps the known snapshot."""
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)
    known = service.get_or_rebuild_snapshot(project)

    introspector.results["App"] = DependencySnapshot.empty()

    assert service.refresh_snapshot(project) is False
    assert service.cached_snapshot(project) == known


def test_refresh_failure_is_contained(introspector, store) -> None:
    """Introspection errors during refresh report "not dirty"."""
    project = Project("App")
    introspector.results["App"] = IntrospectionError("boom")
    service = _service(introspector, store, project)

    assert service.refresh_snapshot(project) is False


def test_forget_drops_only_the_cached_copy(introspector, store) -> None:
    project = Project("App")
    introspector.results["App"] = _snapshot("App", GUAVA)
    service = _service(introspector, store, project)
    service.get_or_rebuild_snapshot(project)

    service.forget(project)

    assert service.cached_snapshot(project) is None
    assert "App" in store
