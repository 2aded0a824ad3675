"""
Builds project, directory, file and code-element nodes.

Filesystem probing (package.json, file size, directory listings) is best
effort: failures are logged and replaced with defaults.
"""
import json
import os
from collections import OrderedDict
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..types import CodeEntity, ElementType, GraphNode, NodeType
from ..utils.logger import app_logger
from .state import BuildState

PROJECT_NODE_ID = "project_root"

FILE_TYPES = {
    ".js": "javascript",
    ".ts": "typescript",
    ".vue": "vue",
    ".jsx": "jsx",
    ".tsx": "tsx",
    ".json": "json",
    ".md": "markdown",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".py": "python",
}

# (dependency name, tag). ``vue`` is handled separately because of versions.
TECH_STACK_DEPENDENCIES = [
    ("react", "react"),
    ("typescript", "typescript"),
    ("@types/node", "nodejs"),
    ("next", "nextjs"),
    ("nuxt", "nuxtjs"),
    ("svelte", "svelte"),
    ("@angular/core", "angular"),
    ("express", "express"),
]

# (substrings, tag) matched against lower-cased file names
FILE_NAME_TAGS = [
    (("test",), "test"),
    (("spec",), "spec"),
    (("config",), "config"),
    (("util", "helper"), "utility"),
    (("component",), "component"),
    (("service",), "service"),
    (("store",), "store"),
]

# (substrings, tag) matched against lower-cased directory names
DIRECTORY_NAME_TAGS = [
    (("component",), "components"),
    (("page", "view"), "pages"),
    (("util", "helper"), "utilities"),
    (("service", "api"), "services"),
    (("store", "state"), "state-management"),
    (("test", "spec"), "testing"),
    (("config",), "configuration"),
    (("asset", "static"), "assets"),
    (("doc",), "documentation"),
]


def keyword_tags(name: str, table: Sequence[Tuple[Tuple[str, ...], str]]) -> List[str]:
    lower = name.lower()
    return [tag for needles, tag in table if any(needle in lower for needle in needles)]


def unique(items) -> List[str]:
    """Drop duplicates and empty values, keeping first-seen order."""
    return [item for item in OrderedDict.fromkeys(items) if item]


def file_node_id(relative_path: str) -> str:
    return f"file:{relative_path}"


def directory_node_id(relative_path: str) -> str:
    return f"dir:{relative_path}"


def entity_node_id(relative_path: str, entity: CodeEntity) -> str:
    return f"entity:{relative_path}:{entity.element_type}:{entity.name}:{entity.start_line}"


def infer_tech_stack(dependencies: Dict[str, Any]) -> List[str]:
    """Map declared package dependencies onto tech-stack tags."""
    tech_stack = []
    vue_version = dependencies.get("vue")
    if vue_version:
        version = str(vue_version).lstrip("^~>=v ")
        tech_stack.append("vue3" if version.startswith("3") else "vue2")
    for dependency, tag in TECH_STACK_DEPENDENCIES:
        if dependency in dependencies:
            tech_stack.append(tag)
    return tech_stack


class NodeFactory:
    """Creates graph nodes into a build's working state."""

    def __init__(self, workspace_path: str, state: BuildState):
        self.logger = app_logger.bind(component="node_factory")
        self.workspace_path = os.path.abspath(workspace_path)
        self.state = state

    # Path helpers

    def absolute_path(self, file_path: str) -> str:
        """Normalize a file path to an absolute path inside the workspace."""
        if not os.path.isabs(file_path):
            file_path = os.path.join(self.workspace_path, file_path)
        return os.path.normpath(file_path)

    def relative_path(self, file_path: str) -> str:
        """Workspace-relative path using ``/`` separators."""
        relative = os.path.relpath(self.absolute_path(file_path), self.workspace_path)
        return relative.replace(os.sep, "/")

    def is_within_workspace(self, file_path: str) -> bool:
        try:
            relative = self.relative_path(file_path)
        except ValueError:
            # Different drive on Windows
            return False
        return relative != ".." and not relative.startswith("../")

    # Project

    def create_project_node(self) -> GraphNode:
        """Create the single project root node."""
        project_name = os.path.basename(self.workspace_path)
        package_info: Dict[str, Any] = {}
        tech_stack: List[str] = []

        package_json_path = Path(self.workspace_path) / "package.json"
        if package_json_path.is_file():
            try:
                with open(package_json_path, "r", encoding="utf-8") as f:
                    package_json = json.load(f)
                if not isinstance(package_json, dict):
                    raise ValueError("package.json is not an object")

                project_name = package_json.get("name") or project_name
                dependencies = package_json.get("dependencies") or {}
                dev_dependencies = package_json.get("devDependencies") or {}
                package_info = {
                    "dependencies": dependencies,
                    "devDependencies": dev_dependencies,
                    "scripts": package_json.get("scripts") or {},
                }
                tech_stack = infer_tech_stack({**dependencies, **dev_dependencies})
            except (OSError, ValueError, TypeError, AttributeError) as e:
                self.logger.warning(f"Could not read {package_json_path}: {e}")

        node = GraphNode(
            id=PROJECT_NODE_ID,
            type=NodeType.PROJECT,
            name=project_name,
            absolute_path=self.workspace_path,
            semantic_tags=unique(["project", "root", *tech_stack]),
            tech_stack=tech_stack,
            properties={
                "package_json": package_info,
                "workspace_path": self.workspace_path,
            },
        )
        self.state.add_node(node)
        return node

    # Files and directories

    def create_file_and_directory_nodes(self, entities: Sequence[CodeEntity]) -> Tuple[List[GraphNode], List[GraphNode]]:
        """Create one file node per distinct file and its directory chain."""
        entities_by_file: "OrderedDict[str, List[CodeEntity]]" = OrderedDict()
        for entity in entities:
            entities_by_file.setdefault(self.absolute_path(entity.file_path), []).append(entity)

        file_nodes = []
        directory_nodes = []
        for absolute_path, file_entities in entities_by_file.items():
            if absolute_path in self.state.file_ids_by_path:
                continue

            file_node = self._create_file_node(absolute_path, file_entities)
            self.state.add_node(file_node)
            self.state.file_ids_by_path[absolute_path] = file_node.id
            file_nodes.append(file_node)

            directory_nodes.extend(self._create_directory_hierarchy(file_node.relative_path))

        self.logger.debug(f"Created {len(file_nodes)} file nodes and {len(directory_nodes)} directory nodes")
        return file_nodes, directory_nodes

    def _create_file_node(self, absolute_path: str, file_entities: List[CodeEntity]) -> GraphNode:
        relative_path = self.relative_path(absolute_path)
        file_name = os.path.basename(absolute_path)
        extension = os.path.splitext(file_name)[1]
        language = next((e.language for e in file_entities if e.language), None)
        element_types = unique(e.element_type for e in file_entities)
        file_size, line_count = self._probe_file(absolute_path)

        tags = ["file", language, *element_types, *keyword_tags(file_name, FILE_NAME_TAGS)]

        return GraphNode(
            id=file_node_id(relative_path),
            type=NodeType.FILE,
            name=file_name,
            absolute_path=absolute_path,
            relative_path=relative_path,
            semantic_tags=unique(tags),
            file_type=FILE_TYPES.get(extension.lower(), "unknown"),
            file_size=file_size,
            line_count=line_count,
            imports=list(self.state.file_imports.get(absolute_path, [])),
            exports=list(self.state.file_exports.get(absolute_path, [])),
            properties={
                "extension": extension,
                "language": language or "unknown",
                "entities_count": len(file_entities),
                "element_types": element_types,
            },
        )

    def _probe_file(self, absolute_path: str) -> Tuple[int, int]:
        """Return (size in bytes, line count), (0, 1) when unreadable."""
        try:
            path = Path(absolute_path)
            size = path.stat().st_size
            content = path.read_text(encoding="utf-8", errors="ignore")
            return size, content.count("\n") + 1
        except OSError as e:
            self.logger.warning(f"Could not read file statistics for {absolute_path}: {e}")
            return 0, 1

    def _create_directory_hierarchy(self, relative_file_path: str) -> List[GraphNode]:
        """Create directory nodes from the workspace root down to the file."""
        created = []
        parts = PurePosixPath(relative_file_path).parent.parts

        current = ""
        for index, part in enumerate(parts):
            current = f"{current}/{part}" if current else part
            if current in self.state.directory_ids_by_path:
                continue

            absolute_path = os.path.join(self.workspace_path, *current.split("/"))
            node = GraphNode(
                id=directory_node_id(current),
                type=NodeType.DIRECTORY,
                name=part,
                absolute_path=absolute_path,
                relative_path=current,
                semantic_tags=unique(["directory", *keyword_tags(part, DIRECTORY_NAME_TAGS)]),
                level=index + 1,
                children_count=self._count_children(absolute_path),
                properties={
                    "depth": index + 1,
                    "full_path": absolute_path,
                },
            )
            self.state.add_node(node)
            self.state.directory_ids_by_path[current] = node.id
            created.append(node)

        return created

    def _count_children(self, absolute_path: str) -> int:
        try:
            return len(os.listdir(absolute_path))
        except OSError:
            self.logger.debug(f"Could not list directory: {absolute_path}")
            return 0

    # Code elements

    def create_entity_nodes(self, entities: Sequence[CodeEntity]) -> List[GraphNode]:
        """Create one node per entity and record its id in the build state."""
        created = []
        for entity in entities:
            absolute_path = self.absolute_path(entity.file_path)
            relative_path = self.relative_path(absolute_path)
            node_id = entity_node_id(relative_path, entity)

            node = GraphNode(
                id=node_id,
                type=NodeType.CODE_ELEMENT,
                name=entity.name,
                absolute_path=absolute_path,
                relative_path=relative_path,
                semantic_tags=unique(entity.semantic_tags),
                element_type=ElementType.from_raw(entity.element_type),
                start_line=entity.start_line,
                end_line=entity.end_line,
                code_snippet=entity.code_snippet,
                properties={
                    "language": entity.language or "unknown",
                    "file_name": entity.file_name,
                    "raw_element_type": entity.element_type,
                    "code_length": len(entity.code_snippet or ""),
                    "line_count": self._line_span(entity),
                },
            )
            if self.state.add_node(node):
                self.state.entities.append(entity)
                self.state.entity_node_ids.append(node_id)
                created.append(node)
            else:
                self.logger.debug(f"Duplicate entity node skipped: {node_id}")

        return created

    @staticmethod
    def _line_span(entity: CodeEntity) -> int:
        if entity.start_line and entity.end_line and entity.end_line >= entity.start_line:
            return entity.end_line - entity.start_line + 1
        return 1

    def file_id_for(self, file_path: str) -> Optional[str]:
        return self.state.file_ids_by_path.get(self.absolute_path(file_path))
