"""Metadata introspector interface.

An introspector turns a build file into a DependencySnapshot. How it does
so (invoking the build tool, reading the descriptor directly) is private
to the implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from buildtrigger.model import DependencySnapshot


class MetadataIntrospector(ABC):
    """Base class for metadata introspectors."""

    NAME = "base"

    @abstractmethod
    def introspect(self, build_file: Path) -> DependencySnapshot:
        """Read dependency and publication metadata for a build file.

        Args:
            build_file: Root build file of the project.

        Returns:
            DependencySnapshot: Snapshot rooted at the build file's project.

        Raises:
            IntrospectionError: If the build tool fails or the project
                structure is malformed.
        """
        pass


__all__ = ["MetadataIntrospector"]
