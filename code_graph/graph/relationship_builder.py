"""
Derives CONTAINS, DEFINED_IN, IMPORTS, CALLS and RELATED_TO edges.

Every relation type is gated by its own filter flag. Weighted relations
(IMPORTS, CALLS, RELATED_TO) additionally pass the ``min_relation_weight``
filter; structural containment edges always have weight 1.0 and are kept
so the containment forest stays intact. Nothing here raises for data
quality reasons: a miss means no edge.
"""
import os
import posixpath
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Optional, Set

from ..types import (
    CallProperties,
    CodeEntity,
    ContainmentProperties,
    DependencyType,
    EdgeProperties,
    GraphEdge,
    GraphNode,
    ImportProperties,
    NodeType,
    RelationType,
    SimilarityProperties,
)
from ..utils.logger import app_logger
from .call_extractor import extract_function_calls
from .import_resolver import ImportResolver
from .models import RelationshipFilters
from .node_factory import PROJECT_NODE_ID
from .similarity import SimilarityEngine, common_tags
from .state import BuildState

FRAMEWORK_TAGS = frozenset({"vue", "vue2", "vue3", "react"})

STRUCTURAL_WEIGHT = 1.0
IMPORT_WEIGHT = 1.0
CALL_WEIGHT = 1.0


class RelationshipBuilder:
    """Builds the edge set of one graph build."""

    def __init__(self, state: BuildState, filters: RelationshipFilters,
                 resolver: Optional[ImportResolver] = None,
                 similarity: Optional[SimilarityEngine] = None):
        self.logger = app_logger.bind(component="relationship_builder")
        self.state = state
        self.filters = filters
        self.resolver = resolver or ImportResolver()
        self.similarity = similarity or SimilarityEngine(state.workspace_path)

    def build_all(self) -> int:
        """Create every enabled relation type. Returns the number of edges."""
        if self.filters.enable_contains:
            self.create_contains_relationships()
        if self.filters.enable_defined_in:
            self.create_defined_in_relationships()
        if self.filters.enable_imports_exports:
            self.create_import_relationships()
        if self.filters.enable_calls:
            self.create_call_relationships()
        if self.filters.enable_semantic_related:
            self.create_semantic_relationships()
        return len(self.state.edges)

    def add_edge(self, source: str, target: str, relation: RelationType,
                 weight: float, properties: EdgeProperties) -> bool:
        """Add an edge if it clears the weight filter and is not a duplicate."""
        if not relation.is_structural and weight < self.filters.min_relation_weight:
            return False
        if source not in self.state.nodes or target not in self.state.nodes:
            return False
        return self.state.add_edge(GraphEdge(
            source=source,
            target=target,
            relation=relation,
            weight=weight,
            properties=properties,
        ))

    # CONTAINS

    def create_contains_relationships(self) -> int:
        """Project -> directories -> files -> code elements."""
        count = 0
        project = self.state.nodes.get(PROJECT_NODE_ID)

        for directory in self.state.nodes_of(NodeType.DIRECTORY):
            if directory.level == 1:
                if project is None:
                    continue
                count += self.add_edge(
                    project.id, directory.id, RelationType.CONTAINS, STRUCTURAL_WEIGHT,
                    ContainmentProperties(description=f"Project contains directory {directory.name}"),
                )
                continue

            parent = self._directory_for(posixpath.dirname(directory.relative_path))
            if parent is not None:
                count += self.add_edge(
                    parent.id, directory.id, RelationType.CONTAINS, STRUCTURAL_WEIGHT,
                    ContainmentProperties(
                        description=f"Directory {parent.name} contains subdirectory {directory.name}"
                    ),
                )

        for file_node in self.state.nodes_of(NodeType.FILE):
            dir_path = posixpath.dirname(file_node.relative_path)
            if dir_path:
                parent = self._directory_for(dir_path)
                if parent is not None:
                    count += self.add_edge(
                        parent.id, file_node.id, RelationType.CONTAINS, STRUCTURAL_WEIGHT,
                        ContainmentProperties(
                            description=f"Directory {parent.name} contains file {file_node.name}"
                        ),
                    )
            elif project is not None:
                count += self.add_edge(
                    project.id, file_node.id, RelationType.CONTAINS, STRUCTURAL_WEIGHT,
                    ContainmentProperties(description=f"Project root contains file {file_node.name}"),
                )

        for element in self.state.nodes_of(NodeType.CODE_ELEMENT):
            file_node = self.state.file_node_for(element.absolute_path)
            if file_node is not None:
                count += self.add_edge(
                    file_node.id, element.id, RelationType.CONTAINS, STRUCTURAL_WEIGHT,
                    ContainmentProperties(
                        description=f"File {file_node.name} contains {element.element_type.value} {element.name}",
                        line_number=element.start_line,
                    ),
                )

        self.logger.debug(f"Created {count} CONTAINS edges")
        return count

    def _directory_for(self, relative_path: str) -> Optional[GraphNode]:
        node_id = self.state.directory_ids_by_path.get(relative_path)
        return self.state.nodes.get(node_id) if node_id else None

    # DEFINED_IN

    def create_defined_in_relationships(self) -> int:
        """Code element -> the file it is defined in."""
        count = 0
        for element in self.state.nodes_of(NodeType.CODE_ELEMENT):
            file_node = self.state.file_node_for(element.absolute_path)
            if file_node is None:
                continue
            count += self.add_edge(
                element.id, file_node.id, RelationType.DEFINED_IN, STRUCTURAL_WEIGHT,
                ContainmentProperties(
                    description=f"{element.element_type.value} {element.name} is defined in file {file_node.name}",
                    line_number=element.start_line,
                ),
            )

        self.logger.debug(f"Created {count} DEFINED_IN edges")
        return count

    # IMPORTS

    def create_import_relationships(self) -> int:
        """File -> file edges for relative imports that resolve on disk."""
        count = 0
        for file_path, import_paths in self.state.file_imports.items():
            source = self.state.file_node_for(file_path)
            if source is None:
                continue

            for import_path in import_paths:
                resolved = self.resolver.resolve(file_path, import_path)
                if resolved is None:
                    continue
                target = self.state.file_node_for(os.path.normpath(resolved))
                if target is None:
                    self.logger.debug(f"Import target {resolved} is not part of the graph")
                    continue

                dependency_type = DependencyType.IMPORT if import_path.startswith(".") else DependencyType.REQUIRE
                count += self.add_edge(
                    source.id, target.id, RelationType.IMPORTS, IMPORT_WEIGHT,
                    ImportProperties(
                        description=f"{source.name} imports {target.name}",
                        import_path=import_path,
                        dependency_type=dependency_type,
                    ),
                )

        self.logger.debug(f"Created {count} IMPORTS edges")
        return count

    # CALLS

    def create_call_relationships(self) -> int:
        """Function -> function edges from call sites found in snippets.

        Callees are matched by bare name across the whole input, without any
        scope awareness.
        """
        functions: Dict[str, List[int]] = defaultdict(list)
        for index, entity in enumerate(self.state.entities):
            if entity.element_type == "function":
                functions[entity.name].append(index)

        count = 0
        for index, entity in enumerate(self.state.entities):
            if entity.element_type != "function":
                continue

            for call_name in extract_function_calls(entity.code_snippet):
                for target_index in functions.get(call_name, ()):
                    target = self.state.entities[target_index]
                    if target.file_path == entity.file_path and target.name == entity.name:
                        continue
                    count += self.add_edge(
                        self.state.entity_node_ids[index],
                        self.state.entity_node_ids[target_index],
                        RelationType.CALLS,
                        CALL_WEIGHT,
                        CallProperties(description=f"{entity.name} calls {target.name}", call_name=call_name),
                    )

        self.logger.debug(f"Created {count} CALLS edges")
        return count

    # RELATED_TO

    def create_semantic_relationships(self) -> int:
        """Similarity edges, bounded to keep large builds tractable."""
        by_file: Dict[str, List[int]] = defaultdict(list)
        for index, entity in enumerate(self.state.entities):
            by_file[entity.file_path].append(index)

        count = 0
        for indexes in by_file.values():
            for i, j in combinations(indexes, 2):
                count += self._relate_same_file(i, j)

        count += self._relate_cross_file(by_file)
        self.logger.debug(f"Created {count} RELATED_TO edges")
        return count

    def _should_compare_same_file(self, entity_a: CodeEntity, entity_b: CodeEntity) -> bool:
        if len(common_tags(entity_a.semantic_tags, entity_b.semantic_tags)) < 2:
            return False
        if entity_a.element_type == entity_b.element_type:
            return True
        shared_frameworks = FRAMEWORK_TAGS & set(entity_a.semantic_tags) & set(entity_b.semantic_tags)
        return bool(shared_frameworks)

    def _relate_same_file(self, i: int, j: int) -> bool:
        entity_a, entity_b = self.state.entities[i], self.state.entities[j]
        if not self._should_compare_same_file(entity_a, entity_b):
            return False

        similarity = self.similarity.calculate(entity_a, entity_b)
        if similarity <= self.filters.same_file_threshold:
            return False
        return self._add_related(i, j, similarity, cross_file=False)

    def _import_linked_files(self) -> Set[str]:
        """File node ids that are the source or target of any IMPORTS edge."""
        files = set()
        for edge in self.state.edges_of(RelationType.IMPORTS):
            files.add(edge.source)
            files.add(edge.target)
        return files

    def _relate_cross_file(self, by_file: Dict[str, List[int]]) -> int:
        linked = self._import_linked_files()
        if not linked:
            return 0

        limit = self.filters.max_cross_file_relations
        file_paths = list(by_file)
        count = 0
        for a, b in combinations(range(len(file_paths)), 2):
            if count >= limit:
                break
            file_a = self.state.file_ids_by_path.get(self._absolute(file_paths[a]))
            file_b = self.state.file_ids_by_path.get(self._absolute(file_paths[b]))
            if file_a not in linked or file_b not in linked:
                continue

            for i in by_file[file_paths[a]]:
                for j in by_file[file_paths[b]]:
                    if count >= limit:
                        break
                    entity_a, entity_b = self.state.entities[i], self.state.entities[j]
                    similarity = self.similarity.calculate(entity_a, entity_b)
                    if similarity > self.filters.cross_file_threshold:
                        count += self._add_related(i, j, similarity, cross_file=True)

        if count >= limit:
            self.logger.info(f"Cross-file RELATED_TO edges capped at {limit}")
        return count

    def _absolute(self, file_path: str) -> str:
        if not os.path.isabs(file_path):
            file_path = os.path.join(self.state.workspace_path, file_path)
        return os.path.normpath(file_path)

    def _add_related(self, i: int, j: int, similarity: float, cross_file: bool) -> bool:
        entity_a, entity_b = self.state.entities[i], self.state.entities[j]
        source, target = self.state.entity_node_ids[i], self.state.entity_node_ids[j]
        if source == target:
            return False
        weight = min(max(similarity, 0.0), 1.0)
        return self.add_edge(
            source, target, RelationType.RELATED_TO, weight,
            SimilarityProperties(
                description=f"{entity_a.name} is semantically related to {entity_b.name}",
                similarity_score=similarity,
                common_tags=common_tags(entity_a.semantic_tags, entity_b.semantic_tags),
                cross_file=cross_file,
            ),
        )
