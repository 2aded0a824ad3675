from typing import List, Dict, Any, Optional, Union
import json
from pathlib import Path
from ..types import KnowledgeGraph, RelationType
from ..utils.logger import app_logger
from .views import summary_view


class JsonGraphClient:
    """JSON-based storage for built knowledge graphs.

    Each save replaces the stored graph; the graph is always a full rebuild.
    """

    def __init__(self, storage_path: Union[str, Path] = ".huima/kg.json"):
        self.logger = app_logger.bind(component="json_graph_client")
        self.storage_path = Path(storage_path)
        self.data = self._initialize_data()
        self._node_index: Dict[str, Dict[str, Any]] = {}

        # Load existing data if file exists
        self._load_data()

    @property
    def summary_path(self) -> Path:
        """Path of the summary written next to the graph file."""
        return self.storage_path.with_name(f"{self.storage_path.stem}_summary.json")

    def _initialize_data(self) -> Dict[str, Any]:
        """Initialize empty data structure."""
        return {
            "metadata": {
                "version": "1.0.0",
                "created_at": None,
                "updated_at": None
            },
            "nodes": [],
            "edges": [],
            "communities": []
        }

    def _load_data(self):
        """Load data from JSON file."""
        if self.storage_path.exists():
            try:
                with open(self.storage_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
                    raise ValueError("unexpected graph layout")
                self.data = data
                self.logger.info(f"Loaded graph data from {self.storage_path}")
            except (OSError, ValueError) as e:
                self.logger.error(f"Error loading graph data: {e}")
                self.data = self._initialize_data()
        else:
            self.data = self._initialize_data()
        self._reindex()

    def _reindex(self):
        self._node_index = {node["id"]: node for node in self.data.get("nodes", [])}

    def _write_json(self, path: Path, payload: Dict[str, Any]):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    def save_graph(self, graph: Union[KnowledgeGraph, Dict[str, Any]]) -> Path:
        """Write the graph and its summary. Write failures are raised."""
        if isinstance(graph, KnowledgeGraph):
            data = graph.to_dict()
            summary = summary_view(graph)
        else:
            data = graph
            summary = {
                "metadata": data.get("metadata", {}),
                "node_count": len(data.get("nodes", [])),
                "edge_count": len(data.get("edges", [])),
                "community_count": len(data.get("communities", [])),
                "top_communities": data.get("communities", [])[:5],
            }

        try:
            self._write_json(self.storage_path, data)
            self._write_json(self.summary_path, summary)
        except (OSError, TypeError) as e:
            self.logger.error(f"Error saving graph data to {self.storage_path}: {e}")
            raise

        self.data = data
        self._reindex()
        self.logger.info(f"Saved graph data to {self.storage_path}")
        return self.storage_path

    def load_graph(self) -> Dict[str, Any]:
        """Reload and return the stored graph."""
        self._load_data()
        return self.data

    def get_all_nodes(self) -> List[Dict[str, Any]]:
        """Get all nodes in the graph."""
        return list(self.data.get("nodes", []))

    def get_all_edges(self) -> List[Dict[str, Any]]:
        """Get all edges in the graph."""
        return list(self.data.get("edges", []))

    def get_node(self, node_id: str) -> Optional[Dict[str, Any]]:
        return self._node_index.get(node_id)

    def get_node_details(self, node_id: str) -> Optional[Dict[str, Any]]:
        """Get detailed information about a specific node."""
        node_data = self._node_index.get(node_id)
        if node_data is None:
            return None

        related_edges = [
            edge for edge in self.data.get("edges", [])
            if edge["source"] == node_id or edge["target"] == node_id
        ]

        related_node_ids = []
        for edge in related_edges:
            for related_id in (edge["source"], edge["target"]):
                if related_id != node_id and related_id not in related_node_ids:
                    related_node_ids.append(related_id)

        related_nodes = [self._node_index[rid] for rid in related_node_ids if rid in self._node_index]

        return {
            "node": node_data,
            "related_edges": related_edges,
            "related_nodes": related_nodes
        }

    def find_function_dependencies(self, node_id: str) -> Dict[str, Any]:
        """Find what a function calls, following CALLS edges."""
        if node_id not in self._node_index:
            return {"nodes": [], "edges": [], "metadata": {"error": "Function not found"}}

        edges = [
            edge for edge in self.data.get("edges", [])
            if edge["source"] == node_id and edge["relation"] == RelationType.CALLS.value
        ]
        nodes = [self._node_index[node_id]]
        nodes.extend(self._node_index[edge["target"]] for edge in edges if edge["target"] in self._node_index)

        return {"nodes": nodes, "edges": edges, "metadata": {"query_type": "function_dependencies"}}

    def get_file_structure(self, file_id: str) -> Dict[str, Any]:
        """Get a file node with the code elements it contains."""
        if file_id not in self._node_index:
            return {"nodes": [], "edges": [], "metadata": {"error": "File not found"}}

        edges = [
            edge for edge in self.data.get("edges", [])
            if edge["source"] == file_id and edge["relation"] == RelationType.CONTAINS.value
        ]
        nodes = [self._node_index[file_id]]
        nodes.extend(self._node_index[edge["target"]] for edge in edges if edge["target"] in self._node_index)

        return {
            "nodes": nodes,
            "edges": edges,
            "metadata": {"query_type": "file_structure", "file_id": file_id},
        }

    def search_by_text(self, text: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Search code elements whose snippet contains the text."""
        matching_nodes = []
        needle = text.lower()

        for node in self.data.get("nodes", []):
            if node.get("type") != "code_element":
                continue
            if needle in (node.get("code_snippet") or "").lower():
                matching_nodes.append(node)
                if len(matching_nodes) >= limit:
                    break

        return matching_nodes

    def get_database_stats(self) -> Dict[str, Any]:
        """Get node and relationship counts by type."""
        node_counts: Dict[str, int] = {}
        for node in self.data.get("nodes", []):
            node_counts[node["type"]] = node_counts.get(node["type"], 0) + 1

        rel_counts: Dict[str, int] = {}
        for edge in self.data.get("edges", []):
            rel_counts[edge["relation"]] = rel_counts.get(edge["relation"], 0) + 1

        return {
            "nodes": node_counts,
            "relationships": rel_counts,
            "communities": len(self.data.get("communities", [])),
        }

    def clear_database(self):
        """Remove the stored graph and summary."""
        self.data = self._initialize_data()
        self._reindex()
        for path in (self.storage_path, self.summary_path):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
        self.logger.info("Cleared stored graph data")
