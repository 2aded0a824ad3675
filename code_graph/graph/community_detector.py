"""
Partitions a built graph into communities.

Two independent strategies are supported:

- connectivity: connected components of the undirected view of all edges,
  found with an explicit-stack depth-first search so deep graphs cannot hit
  the recursion limit;
- directory: code elements grouped by the directory that contains them.

Both score a community as ``(internal - external / 2) / total`` where
internal edges have both endpoints in the community and external edges one.
"""
import posixpath
from collections import Counter, OrderedDict, defaultdict
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from ..types import (
    DETECTION_METHODS,
    Community,
    CommunityStrategy,
    GraphEdge,
    GraphNode,
    NodeType,
)
from ..utils.logger import app_logger

TOP_TAG_COUNT = 5

# (substrings, functionality) matched against lower-cased directory paths
DIRECTORY_FUNCTIONALITY = [
    (("component",), "ui_components"),
    (("page", "view"), "page_routing"),
    (("service", "api"), "api_integration"),
    (("store", "state"), "state_management"),
    (("util", "helper"), "utilities"),
    (("test",), "testing"),
    (("config",), "configuration"),
]


def edge_counts(member_ids: Set[str], edges: Iterable[GraphEdge]) -> Tuple[int, int]:
    """Count (internal, external) edges relative to a node set."""
    internal = external = 0
    for edge in edges:
        source_in = edge.source in member_ids
        target_in = edge.target in member_ids
        if source_in and target_in:
            internal += 1
        elif source_in or target_in:
            external += 1
    return internal, external


def community_score(internal: int, external: int) -> float:
    """Simplified modularity: ``(internal - external / 2) / total``."""
    total = internal + external
    if total == 0:
        return 0.0
    return (internal - external / 2) / total


def top_tags(nodes: Sequence[GraphNode], limit: int = TOP_TAG_COUNT) -> List[str]:
    counter = Counter(tag for node in nodes for tag in node.semantic_tags)
    return [tag for tag, _ in counter.most_common(limit)]


def primary_language(nodes: Sequence[GraphNode]) -> str:
    counter = Counter(
        node.language for node in nodes
        if node.language and node.language != "unknown"
    )
    if not counter:
        return "unknown"
    return counter.most_common(1)[0][0]


def infer_functionality(dir_path: str, tags: Sequence[str]) -> List[str]:
    """Guess what a directory of code is for from its path and tags."""
    lower_path = dir_path.lower()
    functionality = [
        label for needles, label in DIRECTORY_FUNCTIONALITY
        if any(needle in lower_path for needle in needles)
    ]

    if "vue" in tags or "react" in tags:
        functionality.append("frontend_framework")
    if "function" in tags:
        functionality.append("business_logic")
    if "class" in tags:
        functionality.append("object_oriented")

    return functionality or ["general"]


class CommunityDetector:
    """Detects communities over a fixed node and edge set."""

    def __init__(self, nodes: Dict[str, GraphNode], edges: Sequence[GraphEdge]):
        self.logger = app_logger.bind(component="community_detector")
        self.nodes = nodes
        self.edges = list(edges)

    def detect(self, strategy: CommunityStrategy) -> List[Community]:
        if strategy == CommunityStrategy.CONNECTIVITY:
            communities = self.detect_connected_communities()
        else:
            communities = self.detect_directory_communities()
        self.logger.info(f"Detected {len(communities)} communities ({strategy.value})")
        return communities

    # Connectivity

    def _adjacency(self) -> Dict[str, List[str]]:
        adjacency: Dict[str, List[str]] = defaultdict(list)
        for edge in self.edges:
            adjacency[edge.source].append(edge.target)
            adjacency[edge.target].append(edge.source)
        return adjacency

    def find_connected_components(self) -> List[List[str]]:
        """All connected components, in node insertion order."""
        adjacency = self._adjacency()
        visited: Set[str] = set()
        components = []

        for start in self.nodes:
            if start in visited:
                continue
            component = []
            stack = [start]
            while stack:
                node_id = stack.pop()
                if node_id in visited:
                    continue
                visited.add(node_id)
                component.append(node_id)
                for neighbor in adjacency.get(node_id, ()):
                    if neighbor not in visited:
                        stack.append(neighbor)
            components.append(component)

        return components

    def detect_connected_communities(self) -> List[Community]:
        communities = []
        for component in self.find_connected_components():
            if len(component) < 2:
                continue

            members = [self.nodes[node_id] for node_id in component if node_id in self.nodes]
            internal, external = edge_counts(set(component), self.edges)
            total = internal + external
            label, description = self._describe_component(members)

            communities.append(Community(
                id=f"community_{len(communities) + 1}",
                label=label,
                description=description,
                member_node_ids=component,
                score=community_score(internal, external),
                tags=top_tags(members),
                primary_language=primary_language(members),
                cohesion_estimate=internal / total if total else 0.0,
                coupling_estimate=external / total if total else 0.0,
                detection_method=DETECTION_METHODS[CommunityStrategy.CONNECTIVITY],
            ))

        communities.sort(key=lambda community: community.score, reverse=True)
        return communities

    @staticmethod
    def _describe_component(members: Sequence[GraphNode]) -> Tuple[str, str]:
        elements = [node for node in members if node.type == NodeType.CODE_ELEMENT]
        if not elements:
            return "file structure", "Community of files and directories"

        element_type, count = Counter(node.element_type.value for node in elements).most_common(1)[0]
        return f"{element_type} community", f"Community mainly made of {count} {element_type} elements"

    # Directory

    def detect_directory_communities(self) -> List[Community]:
        groups: "OrderedDict[str, List[GraphNode]]" = OrderedDict()
        for node in self.nodes.values():
            if node.type == NodeType.CODE_ELEMENT and node.relative_path:
                groups.setdefault(posixpath.dirname(node.relative_path), []).append(node)

        communities = []
        for dir_path, members in groups.items():
            if len(members) <= 2:
                continue

            member_ids = [node.id for node in members]
            internal, external = edge_counts(set(member_ids), self.edges)
            total = internal + external
            tags = top_tags(members)
            name = posixpath.basename(dir_path) or "root"

            communities.append(Community(
                id=f"community_{len(communities) + 1}",
                label=f"{name} module",
                description=f"Functional module located in {dir_path or '.'}",
                member_node_ids=member_ids,
                score=community_score(internal, external),
                tags=tags,
                primary_language=primary_language(members),
                cohesion_estimate=internal / total if total else 0.0,
                coupling_estimate=external / total if total else 0.0,
                detection_method=DETECTION_METHODS[CommunityStrategy.DIRECTORY],
                functionality=infer_functionality(dir_path, tags),
            ))

        return communities
