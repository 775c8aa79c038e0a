"""Metadata introspection: locating build files and reading their metadata."""

from .base import MetadataIntrospector
from .locator import BuildFileLocator, expand_macros
from .maven import MavenPomIntrospector

__all__ = [
    "BuildFileLocator",
    "MavenPomIntrospector",
    "MetadataIntrospector",
    "expand_macros",
]
