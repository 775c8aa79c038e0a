"""Maven POM introspector.

Reads ``pom.xml`` files directly: a module's own ``groupId:artifactId`` is
its published artifact, its ``<dependencies>`` are its declared
dependencies, and ``<modules>`` turn it into a multi-project root whose
children are read recursively.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

from buildtrigger.errors import IntrospectionError
from buildtrigger.introspect.base import MetadataIntrospector
from buildtrigger.model import ArtifactIdentity, DependencySnapshot

logger = logging.getLogger("buildtrigger.introspect.maven")

POM_FILE = "pom.xml"


class MavenPomIntrospector(MetadataIntrospector):
    """Build dependency snapshots from Maven POM files."""

    NAME = "maven"

    def __init__(self, max_depth: int = 10, include_test_scope: bool = False) -> None:
        self.max_depth = max_depth
        self.include_test_scope = include_test_scope

    def introspect(self, build_file: Path) -> DependencySnapshot:
        build_file = Path(build_file)
        if build_file.is_dir():
            build_file = build_file / POM_FILE
        if not build_file.is_file():
            raise IntrospectionError(f"Build file does not exist: {build_file}")
        snapshot = self._read_module(build_file, build_file.parent, depth=0, visited=frozenset())
        logger.info(
            "Introspected %s: %d dependencies, %d sub-project(s)",
            build_file,
            len(snapshot.all_dependencies()),
            len(snapshot.children),
        )
        return snapshot

    def _read_module(
        self,
        pom_path: Path,
        module_dir: Path,
        depth: int,
        visited: FrozenSet[Path],
    ) -> DependencySnapshot:
        """Read one module and, recursively, its sub-modules.

        Args:
            pom_path: POM file of this module.
            module_dir: Directory this module's ``<module>`` entries are relative to.
            depth: Nesting level of this module (root is 0).
            visited: Resolved POM paths on the path from the root, for cycle detection.
        """
        if depth > self.max_depth:
            raise IntrospectionError(
                f"Module nesting deeper than {self.max_depth} levels at {pom_path}"
            )
        resolved = pom_path.resolve()
        if resolved in visited:
            raise IntrospectionError(f"Module cycle detected at {pom_path}")
        visited = visited | {resolved}

        root, ns = _parse_pom(pom_path)
        group_id, artifact_id = _extract_coordinates(root, ns, pom_path)
        properties = _project_properties(root, ns, group_id, artifact_id)

        dependencies = self._read_dependencies(root, ns, properties)
        publications = [ArtifactIdentity(group_id, artifact_id)]

        module_names = [
            mod.text.strip()
            for mod in root.findall(_child_path("modules/module", ns))
            if mod.text and mod.text.strip()
        ]
        if not module_names:
            return DependencySnapshot.single(
                project_name=artifact_id,
                build_file=pom_path,
                dependencies=dependencies,
                publications=publications,
            )

        children: List[DependencySnapshot] = []
        for module_rel in module_names:
            child_dir = module_dir / module_rel
            child_pom = child_dir if child_dir.name == POM_FILE else child_dir / POM_FILE
            if child_pom.is_file():
                children.append(
                    self._read_module(child_pom, child_pom.parent, depth + 1, visited)
                )
            else:
                logger.warning("Module %s of %s has no %s", module_rel, pom_path, POM_FILE)
                children.append(DependencySnapshot.single(project_name=Path(module_rel).name))

        return DependencySnapshot.multi(
            project_name=artifact_id,
            children=children,
            build_file=pom_path,
            dependencies=dependencies,
            publications=publications,
        )

    def _read_dependencies(
        self, root: ET.Element, ns: str, properties: Dict[str, str]
    ) -> List[ArtifactIdentity]:
        dependencies: List[ArtifactIdentity] = []
        for dep in root.findall(_child_path("dependencies/dependency", ns)):
            group_id = _substitute(_find_text(dep, "groupId", ns) or "", properties)
            art_id = _substitute(_find_text(dep, "artifactId", ns) or "", properties)
            scope = (_find_text(dep, "scope", ns) or "compile").lower()

            if not group_id or not art_id:
                logger.debug("Skipping incomplete dependency %s:%s", group_id, art_id)
                continue
            if scope == "test" and not self.include_test_scope:
                continue

            dependencies.append(ArtifactIdentity(group_id, art_id))
        return dependencies


def _parse_pom(pom_path: Path) -> Tuple[ET.Element, str]:
    try:
        tree = ET.parse(pom_path)
    except (OSError, ET.ParseError) as exc:
        raise IntrospectionError(f"Failed to parse {pom_path}: {exc}") from exc
    root = tree.getroot()
    return root, _detect_namespace(root)


def _child_path(path: str, ns: str) -> str:
    if not ns:
        return path
    return "/".join(f"{{{ns}}}{part}" for part in path.split("/"))


def _find_text(elem: ET.Element, path: str, ns: str) -> Optional[str]:
    target = elem.find(_child_path(path, ns))
    if target is not None and target.text:
        return target.text.strip()
    return None


def _detect_namespace(root: ET.Element) -> str:
    if root.tag.startswith("{"):
        return root.tag.split("}")[0][1:]
    return ""


def _extract_coordinates(root: ET.Element, ns: str, pom_path: Path) -> Tuple[str, str]:
    artifact_id = _find_text(root, "artifactId", ns)
    group_id = _find_text(root, "groupId", ns) or _find_text(root, "parent/groupId", ns)
    if not artifact_id or not group_id:
        raise IntrospectionError(f"{pom_path} does not declare groupId and artifactId")
    return group_id, artifact_id


def _project_properties(
    root: ET.Element, ns: str, group_id: str, artifact_id: str
) -> Dict[str, str]:
    properties = {
        "project.groupId": group_id,
        "project.artifactId": artifact_id,
        "pom.groupId": group_id,
    }
    parent_group = _find_text(root, "parent/groupId", ns)
    if parent_group:
        properties["project.parent.groupId"] = parent_group
    props = root.find(_child_path("properties", ns))
    if props is not None:
        for prop in props:
            if prop.text is None:
                continue
            key = prop.tag.split("}", 1)[-1]
            properties.setdefault(key, prop.text.strip())
    return properties


def _substitute(value: str, properties: Dict[str, str]) -> str:
    if "${" not in value:
        return value
    for key, replacement in properties.items():
        value = value.replace(f"${{{key}}}", replacement)
    return value


__all__ = ["MavenPomIntrospector", "POM_FILE"]
