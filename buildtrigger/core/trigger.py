"""Downstream trigger decision.

Evaluated once per upstream completion for a single (upstream, downstream)
edge. Gates run in order and the first failing gate means "do not trigger".
There is no retry state: a later completion re-evaluates the same edge.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Set

from buildtrigger.config.schema import TriggerConfig
from buildtrigger.core.graph_builder import DependencyGraph
from buildtrigger.model import Build, Project
from buildtrigger.registry import ProjectRegistry

logger = logging.getLogger("buildtrigger.core.trigger")


class TriggerEvaluator:
    """Decide whether an upstream completion should trigger a downstream build.

    Live build and queue state is always read through the registry, so a
    slightly stale graph still sees current project state.
    """

    def __init__(
        self,
        registry: ProjectRegistry,
        graph_provider: Callable[[], DependencyGraph],
        config: Optional[TriggerConfig] = None,
    ) -> None:
        self._registry = registry
        self._graph_provider = graph_provider
        self.config = config or TriggerConfig()

    def should_trigger(self, parent: Project, downstream: Project, build: Build) -> bool:
        """Evaluate the trigger gates for one edge.

        Args:
            parent: Upstream project whose build just completed.
            downstream: Candidate downstream project.
            build: The completed upstream build.

        Returns:
            bool: True if the downstream build should be triggered.
        """
        if build.result is None or build.result.is_worse_than(self.config.trigger_threshold):
            logger.info(
                "Not triggering %s: %s #%d finished with %s",
                downstream.name,
                parent.name,
                build.number,
                build.result.value if build.result else "no result",
            )
            return False

        logger.info("Considering whether to trigger %s or not", downstream.name)

        graph = self._graph_provider()
        if downstream not in graph:
            logger.info(" -> No, because %s is not part of the build graph", downstream.name)
            return False

        upstream_closure = graph.transitive_upstream(downstream)

        if self._are_upstreams_building(upstream_closure, parent):
            logger.info(" -> No, because downstream has dependencies already building or in queue")
            return False

        if self._in_downstream_projects(graph, upstream_closure, parent, downstream):
            logger.info(" -> No, because downstream has dependencies in the downstream projects list")
            return False

        return self._are_upstreams_ready(graph, parent, downstream, build)

    def _live(self, project: Project) -> Project:
        return self._registry.get(project.name) or project

    def _are_upstreams_building(self, upstream_closure: Set[Project], parent: Project) -> bool:
        for upstream in upstream_closure:
            if upstream == parent:
                continue
            live = self._live(upstream)
            if live.is_building_or_queued:
                logger.debug("Upstream %s is building or queued", live.name)
                return True
        return False

    def _in_downstream_projects(
        self,
        graph: DependencyGraph,
        upstream_closure: Set[Project],
        parent: Project,
        downstream: Project,
    ) -> bool:
        """True when another direct downstream of ``parent`` also feeds ``downstream``."""
        for sibling in graph.downstream_projects(parent):
            if sibling == downstream:
                continue
            if sibling in upstream_closure:
                logger.debug("%s reaches %s through %s", parent.name, downstream.name, sibling.name)
                return True
        return False

    def _are_upstreams_ready(
        self, graph: DependencyGraph, parent: Project, downstream: Project, build: Build
    ) -> bool:
        downstream_last = self._live(downstream).last_build

        for upstream in graph.upstream_projects(downstream):
            live = self._live(upstream)
            if upstream == parent:
                if build.result is not None and build.result.is_worse_than(
                    self.config.readiness_threshold
                ):
                    required = live.last_successful_build
                else:
                    required = build
            else:
                required = live.last_successful_build

            if required is None:
                logger.info(
                    " -> No, because another upstream %s for %s has no successful build",
                    upstream.name,
                    downstream.name,
                )
                return False

            if downstream_last is not None and self.config.check_upstream_relationships:
                recorded = downstream_last.upstream_relationship(upstream.name)
                if recorded != -1 and required.number < recorded:
                    logger.warning(
                        "%s #%d was built from %s #%d, newer than required #%d",
                        downstream.name,
                        downstream_last.number,
                        upstream.name,
                        recorded,
                        required.number,
                    )

        return True


__all__ = ["TriggerEvaluator"]
