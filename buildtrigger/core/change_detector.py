"""Snapshot change detection.

Decides whether a freshly introspected snapshot differs from the last known
one in a way that requires the dependency graph to be recomputed. Only the
flattened declared dependencies, the root project name and the root build
file take part in the comparison; publications and nesting structure are ignored.
"""

from __future__ import annotations

import logging
from typing import Optional

from buildtrigger.model import DependencySnapshot

logger = logging.getLogger("buildtrigger.core.change_detector")


def is_dirty(old: Optional[DependencySnapshot], fresh: DependencySnapshot) -> bool:
    """Return True when ``fresh`` must replace ``old``.

    Args:
        old: Last known snapshot, None when there is none.
        fresh: Newly introspected snapshot.

    Returns:
        bool: True if the dependency graph must be rebuilt.
    """
    if old is None:
        logger.debug("No previous snapshot for %s", fresh.project_name)
        return True

    old_all = old.all_dependencies()
    new_all = fresh.all_dependencies()

    if len(old_all) != len(new_all):
        logger.debug(
            "Dependency count changed for %s: %d -> %d",
            fresh.project_name,
            len(old_all),
            len(new_all),
        )
        return True

    # One-directional: additions are only caught by the count check above.
    available = set(new_all)
    for dependency in old_all:
        if dependency not in available:
            logger.debug("Dependency %s no longer declared by %s", dependency, fresh.project_name)
            return True

    if old.project_name.casefold() != fresh.project_name.casefold():
        logger.debug("Root project renamed: %s -> %s", old.project_name, fresh.project_name)
        return True

    if build_file_changed(old, fresh):
        logger.debug(
            "Build file of %s moved: %s -> %s",
            fresh.project_name,
            old.build_file,
            fresh.build_file,
        )
        return True

    return False


def build_file_changed(old: DependencySnapshot, fresh: DependencySnapshot) -> bool:
    """Return True when both roots share a name but point at different build files."""
    if old.project_name.casefold() != fresh.project_name.casefold():
        return False
    return old.build_file != fresh.build_file


__all__ = ["is_dirty", "build_file_changed"]
