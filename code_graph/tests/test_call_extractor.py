import sys
from pathlib import Path

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from code_graph.graph.call_extractor import extract_function_calls


class TestCallExtractor:
    """Test lexical call extraction."""

    def test_simple_call(self):
        # The declaration name matches too; self-calls are dropped when edges are built
        assert extract_function_calls("function foo(){ bar(); }") == ["foo", "bar"]

    def test_keywords_are_ignored(self):
        snippet = "if (x) { for (;;) {} } while (y) {} switch (z) {} try {} catch (e) {}"
        assert extract_function_calls(snippet) == []

    def test_duplicates_are_removed_in_order(self):
        snippet = "a(); b (); a(); $store(); _priv()"
        assert extract_function_calls(snippet) == ["a", "b", "$store", "_priv"]

    def test_method_calls_yield_method_name(self):
        assert extract_function_calls("this.api.get(url)") == ["get"]

    def test_strings_and_comments_are_not_stripped(self):
        # Lexical approximation: calls inside comments still count
        assert extract_function_calls("// legacy(x)\nreturn 1") == ["legacy"]

    def test_empty_snippet(self):
        assert extract_function_calls("") == []
        assert extract_function_calls(None) == []
