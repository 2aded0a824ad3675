"""
Alternate serializations of a built graph.

Views read a :class:`KnowledgeGraph` and never modify it. Nodes and edges are
copied as built; ``legacy_view`` re-runs connectivity detection when the
graph's communities came from another strategy.
"""
from typing import Any, Dict

from ..types import DETECTION_METHODS, CommunityStrategy, KnowledgeGraph, NodeType
from .community_detector import CommunityDetector

# The older flat format only knew three node kinds
LEGACY_NODE_TYPES = {
    NodeType.PROJECT: "directory",
    NodeType.DIRECTORY: "directory",
    NodeType.FILE: "file",
    NodeType.CODE_ELEMENT: "entity",
}


def legacy_view(graph: KnowledgeGraph) -> Dict[str, Any]:
    """Project a graph onto the older flat ``kg.json`` shape."""
    nodes = []
    for node in graph.nodes:
        properties = dict(node.properties)
        properties["absolute_path"] = node.absolute_path
        properties["semantic_tags"] = list(node.semantic_tags)
        if node.type == NodeType.DIRECTORY:
            properties["level"] = node.level
        elif node.type == NodeType.FILE:
            properties["extension"] = node.properties.get("extension")
            properties["size"] = node.file_size
            if node.exports:
                properties["exports"] = list(node.exports)
        elif node.type == NodeType.CODE_ELEMENT:
            properties["element_type"] = node.element_type.value
            properties["start_line"] = node.start_line
            properties["end_line"] = node.end_line

        nodes.append({
            "id": node.id,
            "type": LEGACY_NODE_TYPES[node.type],
            "name": node.name,
            "path": node.relative_path or "",
            "properties": properties,
        })

    communities = graph.communities
    if any(c.detection_method != DETECTION_METHODS[CommunityStrategy.CONNECTIVITY] for c in communities):
        node_map = {node.id: node for node in graph.nodes}
        communities = CommunityDetector(node_map, graph.edges).detect(CommunityStrategy.CONNECTIVITY)

    return {
        "nodes": nodes,
        "edges": [edge.to_dict() for edge in graph.edges],
        "communities": [
            {
                "id": community.id,
                "nodes": list(community.member_node_ids),
                "score": community.score,
                "description": community.description,
                "tags": list(community.tags),
            }
            for community in communities
        ],
        "metadata": {
            "version": graph.metadata.version,
            "created_at": graph.metadata.created_at,
            "total_files": graph.metadata.total_files,
            "total_entities": graph.metadata.total_entities,
            "total_relationships": graph.metadata.total_relationships,
            "workspace_path": graph.metadata.workspace_path,
        },
    }


def summary_view(graph: KnowledgeGraph, top_n: int = 5) -> Dict[str, Any]:
    """Small preview of a graph: counts and the top communities."""
    return {
        "metadata": graph.metadata.to_dict(),
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
        "community_count": len(graph.communities),
        "top_communities": [community.to_dict() for community in graph.communities[:top_n]],
    }
