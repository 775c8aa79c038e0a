"""Build-order graph construction.

Turns each project's declared dependencies into producer -> consumer edges
using the project index, honouring tag partitions, and assembles them with
statically declared relationships into a project-level dependency graph.
"""

# pylint: disable=broad-exception-caught

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional, Protocol, Set, Tuple

import networkx as nx

from buildtrigger.model import ArtifactIdentity, DependencySnapshot, Project
from buildtrigger.registry import ProjectRegistry

logger = logging.getLogger("buildtrigger.core.graph_builder")

Edge = Tuple[Project, Project]


class ArtifactLookup(Protocol):
    """Anything that resolves an artifact to its producing projects."""

    def lookup(self, artifact: ArtifactIdentity) -> List[Project]:
        ...


def is_matching_tag(producer: Project, consumer: Project) -> bool:
    """Return True when an edge between the two projects respects tag partitions.

    Projects without a tag belong to the global partition, which matches
    every tag. Tagged projects match only the same tag, ignoring case.
    """
    if producer.tag is None or consumer.tag is None:
        return True
    return producer.tag.casefold() == consumer.tag.casefold()


def build_edges(
    project: Project, snapshot: DependencySnapshot, index: ArtifactLookup
) -> List[Edge]:
    """Compute build-order edges ending at ``project``.

    Walks the declared dependencies of the root snapshot and, for a
    multi-project root, of its direct children. Every enabled producer
    found through the index yields an edge unless tags are incompatible or
    it would be a self-loop. Edges may repeat.

    Args:
        project: Consumer project owning ``snapshot``.
        snapshot: The consumer's current snapshot.
        index: Artifact to producer lookup.

    Returns:
        List[Edge]: (producer, consumer) pairs in discovery order.
    """
    nodes = [snapshot]
    if snapshot.is_multi_project:
        nodes.extend(snapshot.children)

    edges: List[Edge] = []
    for node in nodes:
        for dependency in node.declared_dependencies:
            candidates = index.lookup(dependency)
            if not candidates:
                logger.debug("No producer for %s declared by %s", dependency, project.name)
                continue

            for candidate in candidates:
                if candidate.disabled:
                    continue
                if not is_matching_tag(candidate, project):
                    logger.debug(
                        "Skipping %s -> %s: tags %r and %r differ",
                        candidate.name,
                        project.name,
                        candidate.tag,
                        project.tag,
                    )
                    continue
                if candidate == project:
                    continue
                logger.debug("Adding dependency %s -> %s", candidate.name, project.name)
                edges.append((candidate, project))

    return edges


class DependencyGraph:
    """Project-level build graph over networkx.

    Nodes are project names carrying the project handle; an edge points
    from the upstream (producer) to the downstream (consumer) project.
    """

    def __init__(self) -> None:
        self._graph = nx.DiGraph()

    @property
    def native_graph(self) -> nx.DiGraph:
        return self._graph

    def add_project(self, project: Project) -> None:
        if project.name in self._graph:
            self._graph.nodes[project.name]["project"] = project
        else:
            self._graph.add_node(project.name, project=project)

    def add_dependency(self, upstream: Project, downstream: Project, kind: str = "inferred") -> None:
        """Add an upstream -> downstream edge. Repeated edges are merged."""
        if upstream == downstream:
            return
        if upstream.name not in self._graph:
            self.add_project(upstream)
        if downstream.name not in self._graph:
            self.add_project(downstream)
        if self._graph.has_edge(upstream.name, downstream.name):
            self._graph.edges[upstream.name, downstream.name]["kinds"].add(kind)
        else:
            self._graph.add_edge(upstream.name, downstream.name, kinds={kind})

    def __contains__(self, project: object) -> bool:
        return isinstance(project, Project) and project.name in self._graph

    def projects(self) -> List[Project]:
        return [data["project"] for _, data in self._graph.nodes(data=True)]

    def edges(self) -> List[Edge]:
        return [(self._project(u), self._project(v)) for u, v in self._graph.edges()]

    def has_dependency(self, upstream: Project, downstream: Project) -> bool:
        return self._graph.has_edge(upstream.name, downstream.name)

    def edge_kinds(self, upstream: Project, downstream: Project) -> Set[str]:
        if not self.has_dependency(upstream, downstream):
            return set()
        return set(self._graph.edges[upstream.name, downstream.name]["kinds"])

    def upstream_projects(self, project: Project) -> List[Project]:
        if project.name not in self._graph:
            return []
        return [self._project(name) for name in self._graph.predecessors(project.name)]

    def downstream_projects(self, project: Project) -> List[Project]:
        if project.name not in self._graph:
            return []
        return [self._project(name) for name in self._graph.successors(project.name)]

    def transitive_upstream(self, project: Project) -> Set[Project]:
        """All projects reachable by following upstream edges, at any depth."""
        if project.name not in self._graph:
            return set()
        return {self._project(name) for name in nx.ancestors(self._graph, project.name)}

    def transitive_downstream(self, project: Project) -> Set[Project]:
        if project.name not in self._graph:
            return set()
        return {self._project(name) for name in nx.descendants(self._graph, project.name)}

    def find_cycles(self, limit: Optional[int] = None) -> List[List[str]]:
        """Return up to ``limit`` simple cycles of project names."""
        cycles: List[List[str]] = []
        for cycle in nx.simple_cycles(self._graph):
            cycles.append(list(cycle))
            if limit is not None and len(cycles) >= limit:
                break
        return cycles

    def _project(self, name: str) -> Project:
        return self._graph.nodes[name]["project"]

    def __len__(self) -> int:
        return self._graph.number_of_nodes()


def build_dependency_graph(
    registry: ProjectRegistry,
    snapshot_provider: Callable[[Project], DependencySnapshot],
    index: ArtifactLookup,
) -> DependencyGraph:
    """Assemble the project graph from inferred and declared relationships.

    Every registered project becomes a node. Enabled projects contribute
    edges inferred from their snapshots; statically declared upstream and
    downstream names contribute edges for every project.
    """
    graph = DependencyGraph()
    projects = registry.all_projects()
    for project in projects:
        graph.add_project(project)

    inferred = 0
    for project in projects:
        if project.enabled:
            try:
                snapshot = snapshot_provider(project)
            except Exception as e:
                logger.error(
                    "Failed to get dependency snapshot for %s: %s", project.name, e, exc_info=True
                )
            else:
                if snapshot.declared_dependencies or snapshot.children:
                    logger.info("Building graph for %s", project.name)
                for producer, consumer in build_edges(project, snapshot, index):
                    graph.add_dependency(producer, consumer, kind="inferred")
                    inferred += 1

        _add_declared(graph, project, registry.resolve_all(project.upstream), upstream=True)
        _add_declared(graph, project, registry.resolve_all(project.downstream), upstream=False)

    logger.info(
        "Built dependency graph: %d project(s), %d edge(s) (%d inferred)",
        len(graph),
        graph.native_graph.number_of_edges(),
        inferred,
    )
    return graph


def _add_declared(
    graph: DependencyGraph, project: Project, others: Iterable[Project], upstream: bool
) -> None:
    for other in others:
        if upstream:
            graph.add_dependency(other, project, kind="declared")
        else:
            graph.add_dependency(project, other, kind="declared")


__all__ = [
    "ArtifactLookup",
    "DependencyGraph",
    "Edge",
    "build_dependency_graph",
    "build_edges",
    "is_matching_tag",
]
