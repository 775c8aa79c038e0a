"""Tests for the artifact -> project index."""

from __future__ import annotations

import threading
from typing import Dict

from buildtrigger.core.project_index import ProjectIndex
from buildtrigger.errors import IntrospectionError
from buildtrigger.model import ArtifactIdentity, DependencySnapshot, Project
from buildtrigger.registry import InMemoryProjectRegistry

GA = ArtifactIdentity("g", "a")
GB = ArtifactIdentity("g", "b")


class _Provider:
    """Snapshot provider backed by a dict; raises for listed projects."""

    def __init__(self, snapshots: Dict[str, DependencySnapshot], failing: tuple = ()) -> None:
        self.snapshots = snapshots
        self.failing = set(failing)
        self.calls = []

    def __call__(self, project: Project) -> DependencySnapshot:
        self.calls.append(project.name)
        if project.name in self.failing:
            raise IntrospectionError(f"boom: {project.name}")
        return self.snapshots.get(project.name, DependencySnapshot.empty())


def test_lookup_maps_published_artifacts_to_projects() -> None:
    """Each published artifact resolves to its producer."""
    registry = InMemoryProjectRegistry([Project("A"), Project("B")])
    provider = _Provider(
        {
            "A": DependencySnapshot.single("a", publications=[GA]),
            "B": DependencySnapshot.single("b", dependencies=[GA], publications=[GB]),
        }
    )
    index = ProjectIndex(registry, provider)

    assert index.lookup(GA) == [Project("A")]
    assert index.lookup(ArtifactIdentity("G", "B")) == [Project("B")]
    assert index.lookup(ArtifactIdentity("g", "missing")) == []


def test_disabled_projects_are_not_indexed() -> None:
    """Disabled projects are skipped without asking for their snapshot."""
    registry = InMemoryProjectRegistry([Project("A", disabled=True), Project("B")])
    provider = _Provider({"A": DependencySnapshot.single("a", publications=[GA])})
    index = ProjectIndex(registry, provider)

    assert index.lookup(GA) == []
    assert provider.calls == ["B"]


def test_children_collapse_onto_owning_project() -> None:
    """Nested publications map to the top-level project, once."""
    grandchild = DependencySnapshot.single("deep", publications=[GB])
    child = DependencySnapshot.multi("child", children=[grandchild], publications=[GA])
    root = DependencySnapshot.multi("root", children=[child], publications=[GA])
    registry = InMemoryProjectRegistry([Project("Root")])
    index = ProjectIndex(registry, _Provider({"Root": root}))

    assert index.lookup(GA) == [Project("Root")]
    assert index.lookup(GB) == [Project("Root")]


def test_ambiguous_producers_are_all_kept_in_order() -> None:
    """Several projects may publish the same artifact."""
    registry = InMemoryProjectRegistry([Project("X"), Project("Y")])
    provider = _Provider(
        {
            "X": DependencySnapshot.single("x", publications=[GA]),
            "Y": DependencySnapshot.single("y", publications=[GA]),
        }
    )
    index = ProjectIndex(registry, provider)

    assert [p.name for p in index.lookup(GA)] == ["X", "Y"]


def test_failing_project_does_not_abort_rebuild() -> None:
    """One project's introspection failure only removes that project."""
    registry = InMemoryProjectRegistry([Project("A"), Project("Broken"), Project("C")])
    provider = _Provider(
        {
            "A": DependencySnapshot.single("a", publications=[GA]),
            "C": DependencySnapshot.single("c", publications=[GB]),
        },
        failing=("Broken",),
    )
    index = ProjectIndex(registry, provider)

    entries = index.rebuild()

    assert entries == {GA: [Project("A")], GB: [Project("C")]}
    assert provider.calls == ["A", "Broken", "C"]


def test_invalidate_forces_single_lazy_rebuild() -> None:
    """The index is built once per invalidation, on first lookup."""
    registry = InMemoryProjectRegistry([Project("A")])
    provider = _Provider({"A": DependencySnapshot.single("a", publications=[GA])})
    index = ProjectIndex(registry, provider)

    assert not index.is_built
    index.lookup(GA)
    index.lookup(GB)
    assert index.rebuild_count == 1

    index.invalidate()
    index.invalidate()
    assert not index.is_built

    provider.snapshots["A"] = DependencySnapshot.single("a", publications=[GB])
    assert index.lookup(GA) == []
    assert index.lookup(GB) == [Project("A")]
    assert index.rebuild_count == 2


def test_concurrent_lookups_share_one_rebuild() -> None:
    """Lookups racing on an invalidated index trigger a single rebuild."""
    registry = InMemoryProjectRegistry([Project("A")])
    release = threading.Event()

    def slow_provider(project: Project) -> DependencySnapshot:
        release.wait(timeout=5)
        return DependencySnapshot.single("a", publications=[GA])

    index = ProjectIndex(registry, slow_provider)
    results = []

    def worker() -> None:
        results.append(index.lookup(GA))

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert results == [[Project("A")]] * 4
    assert index.rebuild_count == 1
