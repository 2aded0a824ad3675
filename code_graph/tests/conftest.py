import pytest
import json
import tempfile
from pathlib import Path
from typing import Callable, Generator, List
import sys

# Add repository root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from code_graph.graph.models import RelationshipFilters
from code_graph.types import CodeEntity


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary frontend workspace for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir).resolve()

        (temp_path / "package.json").write_text(json.dumps({
            "name": "shop-app",
            "dependencies": {"vue": "^3.3.4", "axios": "^1.4.0"},
            "devDependencies": {"typescript": "^5.0.0"},
            "scripts": {"build": "vite build"},
        }))

        (temp_path / "a.ts").write_text("import { bar } from './b'\nfunction foo() { bar(); }\n")
        (temp_path / "b.ts").write_text("export function bar() {}\n")

        service_dir = temp_path / "src" / "service"
        service_dir.mkdir(parents=True)
        (service_dir / "x.ts").write_text(
            "import { loadCart } from './y'\n"
            "export function fetchCart() {\n"
            "  return loadCart();\n"
            "}\n"
        )
        (service_dir / "y.ts").write_text("export function loadCart() {\n  return [];\n}\n")

        utils_dir = temp_path / "src" / "utils"
        utils_dir.mkdir(parents=True)
        (utils_dir / "index.ts").write_text("export const VERSION = '1'\n")

        yield temp_path


@pytest.fixture
def make_entity(temp_workspace: Path) -> Callable[..., CodeEntity]:
    """Factory for entities located inside the temporary workspace."""
    def _make(relative_path: str, name: str, element_type: str = "function",
              start_line: int = 1, end_line: int = None, code_snippet: str = "",
              semantic_tags: List[str] = None, language: str = "typescript") -> CodeEntity:
        file_path = str(temp_workspace / relative_path)
        return CodeEntity(
            file_path=file_path,
            file_name=Path(file_path).name,
            start_line=start_line,
            end_line=end_line if end_line is not None else start_line + 2,
            element_type=element_type,
            name=name,
            code_snippet=code_snippet,
            semantic_tags=tuple(semantic_tags or ()),
            language=language,
        )
    return _make


@pytest.fixture
def sample_entities(make_entity) -> List[CodeEntity]:
    """A small mixed set of entities across the workspace."""
    return [
        make_entity("a.ts", "foo", code_snippet="function foo(){ bar(); }", semantic_tags=["function"]),
        make_entity("b.ts", "bar", code_snippet="function bar(){}", semantic_tags=["function"]),
        make_entity("src/service/x.ts", "fetchCart", start_line=2,
                    code_snippet="export function fetchCart() {\n  return loadCart();\n}",
                    semantic_tags=["service", "api", "function"]),
        make_entity("src/service/y.ts", "loadCart",
                    code_snippet="export function loadCart() {\n  return [];\n}",
                    semantic_tags=["service", "api", "function"]),
        make_entity("src/service/y.ts", "CartStore", element_type="class", start_line=5,
                    semantic_tags=["service", "class"]),
        make_entity("src/service/y.ts", "cartTotal", start_line=9,
                    code_snippet="function cartTotal(items) { return sum(items); }",
                    semantic_tags=["service", "function"]),
        make_entity("src/utils/index.ts", "VERSION", element_type="constant",
                    semantic_tags=["constant"]),
    ]


@pytest.fixture
def all_filters() -> RelationshipFilters:
    """Filters with every relation type enabled."""
    return RelationshipFilters.all_enabled(min_relation_weight=0.3)


@pytest.fixture
def structural_filters() -> RelationshipFilters:
    """Only CONTAINS and DEFINED_IN."""
    return RelationshipFilters()
