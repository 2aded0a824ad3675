import sys
from pathlib import Path

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from code_graph.graph.graph_builder import GraphBuilder
from code_graph.graph.views import legacy_view, summary_view
from code_graph.types import CommunityStrategy


class TestViews:
    """Test projections of a built graph."""

    def build(self, workspace, entities, filters, strategy):
        return GraphBuilder(str(workspace), filters=filters, strategy=strategy).build_graph(entities)

    def test_legacy_view_nodes(self, temp_workspace, sample_entities, structural_filters):
        graph = self.build(temp_workspace, sample_entities, structural_filters, CommunityStrategy.CONNECTIVITY)
        view = legacy_view(graph)
        nodes = {node["id"]: node for node in view["nodes"]}

        assert nodes["project_root"]["type"] == "directory"
        assert nodes["project_root"]["path"] == ""
        assert nodes["dir:src/service"]["type"] == "directory"
        assert nodes["dir:src/service"]["properties"]["level"] == 2
        assert nodes["file:b.ts"]["type"] == "file"
        assert nodes["file:b.ts"]["properties"]["extension"] == ".ts"

        entity = nodes["entity:src/service/y.ts:class:CartStore:5"]
        assert entity["type"] == "entity"
        assert entity["path"] == "src/service/y.ts"
        assert entity["properties"]["element_type"] == "class"
        assert entity["properties"]["start_line"] == 5

    def test_legacy_view_keeps_edges(self, temp_workspace, sample_entities, structural_filters):
        graph = self.build(temp_workspace, sample_entities, structural_filters, CommunityStrategy.CONNECTIVITY)
        view = legacy_view(graph)

        assert [edge["id"] for edge in view["edges"]] == [edge.id for edge in graph.edges]
        assert view["metadata"]["total_entities"] == 7

    def test_legacy_view_uses_connectivity_communities(self, temp_workspace, sample_entities, structural_filters):
        graph = self.build(temp_workspace, sample_entities, structural_filters, CommunityStrategy.DIRECTORY)
        view = legacy_view(graph)

        # Everything hangs off the project root, so there is one component
        assert len(view["communities"]) == 1
        assert len(view["communities"][0]["nodes"]) == len(graph.nodes)
        assert set(view["communities"][0]) == {"id", "nodes", "score", "description", "tags"}
        # The graph itself is left untouched
        assert graph.communities[0].detection_method == "dependency_based"

    def test_legacy_view_keeps_connectivity_communities(self, temp_workspace, sample_entities, structural_filters):
        graph = self.build(temp_workspace, sample_entities, structural_filters, CommunityStrategy.CONNECTIVITY)
        view = legacy_view(graph)

        assert [c["id"] for c in view["communities"]] == [c.id for c in graph.communities]
        assert view["communities"][0]["description"] == graph.communities[0].description

    def test_summary_view(self, temp_workspace, sample_entities, structural_filters):
        graph = self.build(temp_workspace, sample_entities, structural_filters, CommunityStrategy.DIRECTORY)
        summary = summary_view(graph, top_n=1)

        assert summary["node_count"] == 16
        assert summary["edge_count"] == len(graph.edges)
        assert summary["community_count"] == 1
        assert summary["top_communities"][0]["label"] == "service module"
        assert summary["metadata"]["total_files"] == 5
