import pytest
import sys
from pathlib import Path

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from code_graph.graph.node_factory import (
    PROJECT_NODE_ID,
    NodeFactory,
    infer_tech_stack,
    unique,
)
from code_graph.graph.state import BuildState
from code_graph.types import ElementType, NodeType


class TestTechStack:
    """Test tech-stack inference from package.json dependencies."""

    def test_vue_versions(self):
        assert infer_tech_stack({"vue": "^3.3.4"}) == ["vue3"]
        assert infer_tech_stack({"vue": "~2.6.14"}) == ["vue2"]
        assert infer_tech_stack({"vue": ">=v3.0.0"}) == ["vue3"]

    def test_other_frameworks(self):
        stack = infer_tech_stack({"react": "18", "@types/node": "20", "express": "4"})
        assert stack == ["react", "nodejs", "express"]

    def test_unique(self):
        assert unique(["a", None, "b", "a", ""]) == ["a", "b"]


class TestNodeFactory:
    """Test node creation into a build state."""

    def setup_factory(self, workspace: Path) -> NodeFactory:
        self.state = BuildState(workspace_path=str(workspace))
        return NodeFactory(str(workspace), self.state)

    def test_project_node(self, temp_workspace):
        factory = self.setup_factory(temp_workspace)
        node = factory.create_project_node()

        assert node.id == PROJECT_NODE_ID
        assert node.type == NodeType.PROJECT
        assert node.name == "shop-app"
        assert node.tech_stack == ["vue3", "typescript"]
        assert node.semantic_tags == ["project", "root", "vue3", "typescript"]
        assert node.properties["package_json"]["scripts"] == {"build": "vite build"}

    def test_project_node_without_package_json(self, temp_workspace):
        (temp_workspace / "package.json").unlink()
        factory = self.setup_factory(temp_workspace)
        node = factory.create_project_node()

        assert node.name == temp_workspace.name
        assert node.tech_stack == []
        assert node.semantic_tags == ["project", "root"]

    def test_project_node_with_broken_package_json(self, temp_workspace):
        (temp_workspace / "package.json").write_text("{ not json")
        factory = self.setup_factory(temp_workspace)
        node = factory.create_project_node()

        assert node.name == temp_workspace.name
        assert node.tech_stack == []

    def test_file_and_directory_nodes(self, temp_workspace, make_entity):
        factory = self.setup_factory(temp_workspace)
        entities = [
            make_entity("src/service/x.ts", "fetchCart"),
            make_entity("src/service/x.ts", "CartApi", element_type="class", start_line=8),
            make_entity("src/utils/index.ts", "VERSION", element_type="constant"),
        ]
        file_nodes, directory_nodes = factory.create_file_and_directory_nodes(entities)

        assert [n.id for n in file_nodes] == ["file:src/service/x.ts", "file:src/utils/index.ts"]
        assert [n.id for n in directory_nodes] == ["dir:src", "dir:src/service", "dir:src/utils"]

        x_file = self.state.nodes["file:src/service/x.ts"]
        assert x_file.file_type == "typescript"
        assert x_file.semantic_tags == ["file", "typescript", "function", "class"]
        assert x_file.line_count == 5
        assert x_file.file_size == (temp_workspace / "src" / "service" / "x.ts").stat().st_size
        assert x_file.properties["entities_count"] == 2

        service_dir = self.state.nodes["dir:src/service"]
        assert service_dir.level == 2
        assert service_dir.children_count == 2
        assert service_dir.semantic_tags == ["directory", "services"]

        utils_dir = self.state.nodes["dir:src/utils"]
        assert utils_dir.semantic_tags == ["directory", "utilities"]
        assert self.state.nodes["dir:src"].level == 1

    def test_file_name_tags(self, temp_workspace, make_entity):
        (temp_workspace / "user.service.spec.ts").write_text("")
        factory = self.setup_factory(temp_workspace)
        factory.create_file_and_directory_nodes([make_entity("user.service.spec.ts", "it")])

        node = self.state.nodes["file:user.service.spec.ts"]
        assert "spec" in node.semantic_tags
        assert "service" in node.semantic_tags

    def test_unreadable_file_gets_defaults(self, temp_workspace, make_entity):
        factory = self.setup_factory(temp_workspace)
        factory.create_file_and_directory_nodes([make_entity("ghost.ts", "phantom")])

        node = self.state.nodes["file:ghost.ts"]
        assert node.file_size == 0
        assert node.line_count == 1

    def test_file_imports_and_exports(self, temp_workspace, make_entity):
        factory = self.setup_factory(temp_workspace)
        self.state.file_imports[str(temp_workspace / "a.ts")] = ["./b"]
        self.state.file_exports[str(temp_workspace / "b.ts")] = ["bar"]
        factory.create_file_and_directory_nodes([make_entity("a.ts", "foo"), make_entity("b.ts", "bar")])

        assert self.state.nodes["file:a.ts"].imports == ["./b"]
        assert self.state.nodes["file:a.ts"].exports == []
        assert self.state.nodes["file:b.ts"].exports == ["bar"]

    def test_entity_nodes(self, temp_workspace, make_entity):
        factory = self.setup_factory(temp_workspace)
        entity = make_entity("src/service/y.ts", "total", element_type="computed",
                             start_line=4, end_line=6, code_snippet="total() {}",
                             semantic_tags=["vue", "vue"])
        created = factory.create_entity_nodes([entity])

        assert len(created) == 1
        node = created[0]
        assert node.id == "entity:src/service/y.ts:computed:total:4"
        assert node.element_type == ElementType.METHOD
        assert node.semantic_tags == ["vue"]
        assert node.properties["raw_element_type"] == "computed"
        assert node.properties["line_count"] == 3
        assert node.properties["code_length"] == len("total() {}")
        assert self.state.entity_node_ids == [node.id]

    def test_duplicate_entity_ids_are_skipped(self, temp_workspace, make_entity):
        factory = self.setup_factory(temp_workspace)
        entity = make_entity("a.ts", "foo")
        created = factory.create_entity_nodes([entity, entity])

        assert len(created) == 1
        assert len(self.state.nodes_of(NodeType.CODE_ELEMENT)) == 1
        assert self.state.entities == [entity]

    def test_workspace_boundary(self, temp_workspace):
        factory = self.setup_factory(temp_workspace)

        assert factory.is_within_workspace(str(temp_workspace / "src" / "service" / "x.ts"))
        assert factory.is_within_workspace("a.ts")
        assert not factory.is_within_workspace(str(temp_workspace.parent / "elsewhere.ts"))

    @pytest.mark.parametrize("path,expected", [
        ("a.ts", "a.ts"),
        ("src/service/../service/x.ts", "src/service/x.ts"),
    ])
    def test_relative_path(self, temp_workspace, path, expected):
        factory = self.setup_factory(temp_workspace)
        assert factory.relative_path(path) == expected
