"""Artifact identity value type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True, eq=False)
class ArtifactIdentity:
    """Identifies a publishable unit by group and name.

    Equality and hashing ignore letter case on both fields, so
    ``ArtifactIdentity("Org.Example", "Core")`` and
    ``ArtifactIdentity("org.example", "core")`` are interchangeable as
    index keys.
    """

    group: str
    name: str

    def _key(self) -> tuple[str, str]:
        return (self.group.casefold(), self.name.casefold())

    def matches(self, other: "ArtifactIdentity") -> bool:
        """Return True when ``other`` names the same artifact, ignoring case."""
        return self._key() == other._key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArtifactIdentity):
            return NotImplemented
        return self.matches(other)

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return f"{self.group}:{self.name}"

    @classmethod
    def parse(cls, coordinate: str) -> "ArtifactIdentity":
        """Parse a ``group:name`` coordinate (trailing version parts are ignored)."""
        parts = [part.strip() for part in coordinate.split(":")]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid artifact coordinate '{coordinate}', expected group:name")
        return cls(group=parts[0], name=parts[1])

    def to_dict(self) -> Dict[str, str]:
        return {"group": self.group, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ArtifactIdentity":
        return cls(group=str(data["group"]), name=str(data["name"]))


__all__ = ["ArtifactIdentity"]
