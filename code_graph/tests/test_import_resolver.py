import sys
from pathlib import Path

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from code_graph.graph.import_resolver import ImportResolver


class TestImportResolver:
    """Test relative import resolution."""

    def setup_method(self):
        self.resolver = ImportResolver()

    def test_resolves_with_extension(self, temp_workspace: Path):
        resolved = self.resolver.resolve(str(temp_workspace / "a.ts"), "./b")
        assert resolved == str(temp_workspace / "b.ts")

    def test_resolves_parent_directory(self, temp_workspace: Path):
        resolved = self.resolver.resolve(str(temp_workspace / "src" / "service" / "x.ts"), "../../b")
        assert resolved == str(temp_workspace / "b.ts")

    def test_resolves_index_file(self, temp_workspace: Path):
        resolved = self.resolver.resolve(str(temp_workspace / "src" / "service" / "x.ts"), "../utils")
        assert resolved == str(temp_workspace / "src" / "utils" / "index.ts")

    def test_extension_order(self, temp_workspace: Path):
        (temp_workspace / "b.js").write_text("module.exports = {}\n")
        resolved = self.resolver.resolve(str(temp_workspace / "a.ts"), "./b")
        assert resolved == str(temp_workspace / "b.js")

    def test_missing_target(self, temp_workspace: Path):
        assert self.resolver.resolve(str(temp_workspace / "a.ts"), "./missing") is None

    def test_bare_specifier_is_external(self, temp_workspace: Path):
        (temp_workspace / "vue.ts").write_text("")
        assert self.resolver.resolve(str(temp_workspace / "a.ts"), "vue") is None

    def test_empty_specifier(self, temp_workspace: Path):
        assert self.resolver.resolve(str(temp_workspace / "a.ts"), "") is None

    def test_directory_is_not_a_file(self, temp_workspace: Path):
        (temp_workspace / "lib.ts").mkdir()
        assert self.resolver.resolve(str(temp_workspace / "a.ts"), "./lib") is None
