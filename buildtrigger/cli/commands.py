"""CLI commands operating on a workspace description.

Each command loads the workspace, builds a BuildTrigger over it and prints
its result with Rich. Commands return a process exit code.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from rich.console import Console
from rich.table import Table

from buildtrigger.config import load_workspace_config
from buildtrigger.core import BuildTrigger
from buildtrigger.errors import ConfigurationError
from buildtrigger.model import Build, BuildResult, Project

logger = logging.getLogger("buildtrigger.cli.commands")


def _console() -> Console:
    return Console()


def _load_trigger(args) -> Optional[BuildTrigger]:
    try:
        workspace = load_workspace_config(args.workspace)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return None

    cache_dir = getattr(args, "cache_dir", None)
    if cache_dir:
        workspace.settings.cache_dir = cache_dir

    return BuildTrigger.from_workspace(workspace)


def _resolve_project(trigger: BuildTrigger, name: str) -> Optional[Project]:
    project = trigger.registry.get(name) or trigger.registry.find_by_display_name(name)
    if project is None:
        logger.error("Unknown project: %s", name)
    return project


def index_command(args) -> int:
    """Print artifact -> producer projects."""
    trigger = _load_trigger(args)
    if trigger is None:
        return 1

    entries = trigger.index.entries()

    table = Table(title="Published artifacts")
    table.add_column("Artifact")
    table.add_column("Projects")
    for artifact in sorted(entries, key=lambda a: (a.group.casefold(), a.name.casefold())):
        table.add_row(str(artifact), ", ".join(p.name for p in entries[artifact]))

    _console().print(table)
    return 0


def edges_command(args) -> int:
    """Print project build-order edges."""
    trigger = _load_trigger(args)
    if trigger is None:
        return 1

    graph = trigger.graph()

    table = Table(title="Build order")
    table.add_column("Upstream")
    table.add_column("Downstream")
    table.add_column("Source")
    for upstream, downstream in sorted(graph.edges(), key=lambda e: (e[0].name, e[1].name)):
        kinds = ", ".join(sorted(graph.edge_kinds(upstream, downstream)))
        table.add_row(upstream.name, downstream.name, kinds)

    console = _console()
    console.print(table)

    cycles = graph.find_cycles(limit=20)
    if not cycles:
        return 0

    for idx, cycle in enumerate(cycles, start=1):
        logger.warning("Cycle %d: %s", idx, " -> ".join(cycle + [cycle[0]]))
    return 1 if getattr(args, "fail_on_cycle", False) else 0


def snapshot_command(args) -> int:
    """Print a project's snapshot as JSON."""
    trigger = _load_trigger(args)
    if trigger is None:
        return 1

    project = _resolve_project(trigger, args.project)
    if project is None:
        return 1

    snapshot = trigger.get_or_rebuild_snapshot(project)

    _console().print_json(json.dumps(snapshot.to_dict()))
    return 0


def trigger_command(args) -> int:
    """Evaluate downstream triggers for a completed build."""
    trigger = _load_trigger(args)
    if trigger is None:
        return 1

    project = _resolve_project(trigger, args.project)
    if project is None:
        return 1

    try:
        result = BuildResult.parse(args.result)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    number = args.number
    if number is None:
        number = project.last_build.number + 1 if project.last_build else 1

    build = Build(number=number, result=result)
    triggered = trigger.on_build_completed(project, build)

    console = _console()
    if not triggered:
        console.print(f"{project.name} #{number} ({result.value}): nothing to trigger")
        return 0

    console.print(f"{project.name} #{number} ({result.value}) triggers:")
    for downstream in triggered:
        console.print(f"  - {downstream.name}")
    return 0


__all__ = ["index_command", "edges_command", "snapshot_command", "trigger_command"]
