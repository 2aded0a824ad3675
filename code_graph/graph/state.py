"""
Working state owned by a single graph build.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..types import CodeEntity, GraphEdge, GraphNode, NodeType, RelationType


@dataclass
class BuildState:
    """Node and edge maps for one build call, keyed by id.

    A fresh instance is created per build and never shared.
    """
    workspace_path: str
    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: Dict[str, GraphEdge] = field(default_factory=dict)
    entities: List[CodeEntity] = field(default_factory=list)
    # Parallel to ``entities``
    entity_node_ids: List[str] = field(default_factory=list)
    # Normalized absolute file path -> file node id
    file_ids_by_path: Dict[str, str] = field(default_factory=dict)
    # Relative directory path -> directory node id
    directory_ids_by_path: Dict[str, str] = field(default_factory=dict)
    file_imports: Dict[str, List[str]] = field(default_factory=dict)
    file_exports: Dict[str, List[str]] = field(default_factory=dict)
    skipped_entities: int = 0

    def add_node(self, node: GraphNode) -> bool:
        """Add a node unless its id is already taken."""
        if node.id in self.nodes:
            return False
        self.nodes[node.id] = node
        return True

    def add_edge(self, edge: GraphEdge) -> bool:
        """Add an edge unless an edge with the same id exists."""
        edge_id = edge.id
        if edge_id in self.edges:
            return False
        self.edges[edge_id] = edge
        return True

    def nodes_of(self, node_type: NodeType) -> List[GraphNode]:
        return [node for node in self.nodes.values() if node.type == node_type]

    def edges_of(self, relation: RelationType) -> List[GraphEdge]:
        return [edge for edge in self.edges.values() if edge.relation == relation]

    def file_node_for(self, absolute_path: str) -> Optional[GraphNode]:
        node_id = self.file_ids_by_path.get(absolute_path)
        return self.nodes.get(node_id) if node_id else None
