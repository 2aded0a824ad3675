"""
Builds a knowledge graph from parsed code entities.
"""
import datetime
import os
from collections import Counter, OrderedDict
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..config import settings
from ..types import (
    CodeEntity,
    CommunityStrategy,
    GraphMetadata,
    KnowledgeGraph,
    NodeType,
)
from ..utils.logger import app_logger
from .community_detector import CommunityDetector
from .import_resolver import ImportResolver
from .models import RelationshipFilters
from .node_factory import NodeFactory
from .relationship_builder import RelationshipBuilder
from .state import BuildState

GRAPH_VERSION = "1.0.0"

EntityInput = Union[CodeEntity, Dict[str, Any]]


class GraphBuilder:
    """Turns entities and import/export maps into a graph with communities.

    Every call to :meth:`build_graph` works on its own :class:`BuildState`,
    so one builder can be reused and separate builders can run side by side.
    """

    def __init__(self, workspace_path: str, filters: Optional[RelationshipFilters] = None,
                 strategy: Union[CommunityStrategy, str, None] = None,
                 resolver: Optional[ImportResolver] = None):
        self.logger = app_logger.bind(component="graph_builder")
        self.workspace_path = os.path.abspath(workspace_path)
        self.filters = filters or RelationshipFilters.from_settings()
        self.strategy = self._resolve_strategy(strategy)
        self.resolver = resolver or ImportResolver()

    @staticmethod
    def _resolve_strategy(strategy: Union[CommunityStrategy, str, None]) -> CommunityStrategy:
        if strategy is None:
            strategy = settings.community_strategy
        if isinstance(strategy, CommunityStrategy):
            return strategy
        return CommunityStrategy(str(strategy).lower())

    def build_graph(self, entities: Iterable[EntityInput],
                    file_imports: Optional[Mapping[str, Sequence[str]]] = None,
                    file_exports: Optional[Mapping[str, Sequence[str]]] = None) -> KnowledgeGraph:
        """Run a full build and return the resulting graph."""
        state = BuildState(workspace_path=self.workspace_path)
        factory = NodeFactory(self.workspace_path, state)

        valid_entities = self._normalize_entities(entities, factory, state)
        state.file_imports = self._normalize_file_map(file_imports, factory)
        state.file_exports = self._normalize_file_map(file_exports, factory)

        self.logger.info(f"Building graph for {self.workspace_path} from {len(valid_entities)} entities")
        if not 0.0 <= self.filters.min_relation_weight <= 1.0:
            self.logger.warning(
                f"min_relation_weight={self.filters.min_relation_weight} is outside [0, 1]; "
                "weighted relations may all be filtered out"
            )

        # 1. Nodes
        factory.create_project_node()
        factory.create_file_and_directory_nodes(valid_entities)
        factory.create_entity_nodes(valid_entities)

        # 2. Relationships
        RelationshipBuilder(state, self.filters, resolver=self.resolver).build_all()

        # 3. Communities
        communities = CommunityDetector(state.nodes, state.edges.values()).detect(self.strategy)

        graph = KnowledgeGraph(
            nodes=list(state.nodes.values()),
            edges=list(state.edges.values()),
            communities=communities,
            metadata=self._create_metadata(state),
        )
        self.logger.info(
            f"Graph built: {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
            f"{len(graph.communities)} communities"
        )
        return graph

    def _normalize_entities(self, entities: Iterable[EntityInput], factory: NodeFactory,
                            state: BuildState) -> List[CodeEntity]:
        """Convert inputs to entities with absolute paths, skipping malformed ones."""
        valid = []
        for raw in entities or ():
            try:
                entity = raw if isinstance(raw, CodeEntity) else CodeEntity.from_dict(raw)
                if not entity.is_valid():
                    raise ValueError("incomplete entity record")
                if not factory.is_within_workspace(entity.file_path):
                    raise ValueError(f"{entity.file_path} is outside the workspace")
            except (TypeError, ValueError) as e:
                state.skipped_entities += 1
                self.logger.warning(f"Skipping entity: {e}")
                continue

            valid.append(replace(entity, file_path=factory.absolute_path(entity.file_path)))

        return valid

    def _normalize_file_map(self, file_map: Optional[Mapping[str, Sequence[str]]],
                            factory: NodeFactory) -> Dict[str, List[str]]:
        normalized: Dict[str, List[str]] = OrderedDict()
        for file_path, values in (file_map or {}).items():
            if not file_path or not values:
                continue
            if isinstance(values, str):
                values = [values]
            elif not isinstance(values, (list, tuple, set, frozenset)):
                self.logger.warning(f"Skipping import/export entry for {file_path}: expected a list, "
                                    f"got {type(values).__name__}")
                continue
            normalized.setdefault(factory.absolute_path(file_path), []).extend(str(v) for v in values)
        return normalized

    def _create_metadata(self, state: BuildState) -> GraphMetadata:
        now = datetime.datetime.now(datetime.timezone.utc).isoformat()
        file_count = len(state.nodes_of(NodeType.FILE))
        element_counts = Counter(entity.element_type for entity in state.entities)

        return GraphMetadata(
            version=GRAPH_VERSION,
            created_at=now,
            updated_at=now,
            workspace_path=self.workspace_path,
            total_files=file_count,
            total_entities=len(state.entities),
            total_relationships=len(state.edges),
            supported_languages=list(OrderedDict.fromkeys(
                entity.language for entity in state.entities if entity.language
            )),
            parsing_statistics={
                "successful_files": file_count,
                "failed_files": 0,
                "parsed_functions": element_counts.get("function", 0),
                "parsed_classes": element_counts.get("class", 0),
                "parsed_variables": element_counts.get("variable", 0),
                "parsed_components": element_counts.get("component", 0),
                "skipped_entities": state.skipped_entities,
            },
        )
