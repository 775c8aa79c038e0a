"""Build file discovery for orchestrator projects."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from string import Template
from typing import Mapping, Optional

from buildtrigger.model import Project

logger = logging.getLogger("buildtrigger.introspect.locator")

_WHITESPACE_RUNS = re.compile(r"[\t\r\n]+")


def expand_macros(value: str, environment: Optional[Mapping[str, str]]) -> str:
    """Expand ``${VAR}`` and ``$VAR`` references.

    Unknown variables are left untouched, as is everything when no
    environment is available.
    """
    if not environment:
        return value
    return Template(value).safe_substitute(environment)


class BuildFileLocator:
    """Find the root build file of a project.

    Candidates are tried in order: the project's custom build file, the
    configured root build script directory, the workspace directory and
    finally the project's own directory. The first existing file wins.
    """

    def __init__(self, build_file_name: str = "pom.xml") -> None:
        self.build_file_name = build_file_name

    def locate(self, project: Project) -> Optional[Path]:
        environment = project.environment

        if project.build_file:
            custom = Path(expand_macros(project.build_file, environment)).expanduser()
            if not custom.is_absolute() and project.workspace is not None:
                custom = project.workspace / custom
            logger.debug("Custom build file %s", custom)
            if custom.is_file():
                return custom

        if project.root_build_script_dir:
            normalized = _WHITESPACE_RUNS.sub(" ", project.root_build_script_dir.strip())
            normalized = expand_macros(normalized.strip(), environment)
            script_dir = Path(normalized).expanduser()
            if not script_dir.is_absolute() and project.workspace is not None:
                script_dir = project.workspace / script_dir
            logger.debug("Root build script directory %s", script_dir)
            candidate = script_dir / self.build_file_name
            if candidate.is_file():
                return candidate

        if project.workspace is not None:
            candidate = project.workspace / self.build_file_name
            if candidate.is_file():
                return candidate

        if project.root_dir is not None:
            candidate = project.root_dir / self.build_file_name
            if candidate.is_file():
                return candidate

        logger.warning("Could not find a %s file for %s", self.build_file_name, project.name)
        return None


__all__ = ["BuildFileLocator", "expand_macros"]
