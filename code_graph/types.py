from typing import List, Dict, Any, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum


class NodeType(Enum):
    """Node type enumeration."""
    PROJECT = "project"
    DIRECTORY = "directory"
    FILE = "file"
    CODE_ELEMENT = "code_element"


class ElementType(Enum):
    """Code element type enumeration."""
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    COMPONENT = "component"
    INTERFACE = "interface"
    TYPE = "type"
    CONSTANT = "constant"
    METHOD = "method"
    PROPERTY = "property"

    @classmethod
    def from_raw(cls, raw: str) -> "ElementType":
        """Map a parser element type onto the graph vocabulary."""
        return ELEMENT_TYPE_MAP.get((raw or "").lower(), cls.FUNCTION)


# Parser vocabulary -> graph vocabulary. Unknown kinds fall back to FUNCTION.
ELEMENT_TYPE_MAP: Dict[str, ElementType] = {
    "function": ElementType.FUNCTION,
    "class": ElementType.CLASS,
    "variable": ElementType.VARIABLE,
    "component": ElementType.COMPONENT,
    "interface": ElementType.INTERFACE,
    "type": ElementType.TYPE,
    "constant": ElementType.CONSTANT,
    "method": ElementType.METHOD,
    "property": ElementType.PROPERTY,
    "computed": ElementType.METHOD,
    "watch": ElementType.METHOD,
    "lifecycle": ElementType.METHOD,
}


class RelationType(Enum):
    """Relation type enumeration."""
    CONTAINS = "CONTAINS"
    DEFINED_IN = "DEFINED_IN"
    IMPORTS = "IMPORTS"
    CALLS = "CALLS"
    RELATED_TO = "RELATED_TO"

    @property
    def is_structural(self) -> bool:
        return self in (RelationType.CONTAINS, RelationType.DEFINED_IN)


class DependencyType(Enum):
    """How a file pulls in another file."""
    IMPORT = "import"
    REQUIRE = "require"


class CommunityStrategy(Enum):
    """Community detection strategy."""
    CONNECTIVITY = "connectivity"
    DIRECTORY = "directory"


# Serialized ``detection_method`` per strategy
DETECTION_METHODS: Dict[CommunityStrategy, str] = {
    CommunityStrategy.CONNECTIVITY: "connected_components",
    CommunityStrategy.DIRECTORY: "dependency_based",
}


_ENTITY_REQUIRED_FIELDS = ("file_path", "name", "element_type", "start_line")


@dataclass(frozen=True)
class CodeEntity:
    """A parsed unit of source code, as produced by the parser."""
    file_path: str
    file_name: str
    start_line: int
    end_line: int
    element_type: str
    name: str
    code_snippet: str = ""
    semantic_tags: Tuple[str, ...] = ()
    language: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodeEntity":
        """Build an entity from a parser record.

        Raises ValueError when a required field is missing or a line
        number is not an integer.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Entity record must be a mapping, got {type(data).__name__}")

        missing = [key for key in _ENTITY_REQUIRED_FIELDS if data.get(key) in (None, "")]
        if missing:
            raise ValueError(f"Entity record missing fields: {missing}")

        try:
            start_line = int(data["start_line"])
            end_line = int(data.get("end_line") or start_line)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid line numbers in entity record: {e}")

        file_path = str(data["file_path"])
        tags = data.get("semantic_tags") or ()
        if isinstance(tags, str):
            tags = (tags,)
        elif not isinstance(tags, (list, tuple, set, frozenset)):
            raise ValueError(f"semantic_tags must be a list of strings, got {type(tags).__name__}")

        return cls(
            file_path=file_path,
            file_name=str(data.get("file_name") or file_path.replace("\\", "/").rsplit("/", 1)[-1]),
            start_line=start_line,
            end_line=end_line,
            element_type=str(data["element_type"]),
            name=str(data["name"]),
            code_snippet=str(data.get("code_snippet") or ""),
            semantic_tags=tuple(str(tag) for tag in tags),
            language=data.get("language") or None,
        )

    def is_valid(self) -> bool:
        """Check that the record can be placed in the graph."""
        return bool(
            self.file_path
            and self.name
            and self.element_type
            and isinstance(self.start_line, int)
            and isinstance(self.end_line, int)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "file_name": self.file_name,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "element_type": self.element_type,
            "name": self.name,
            "code_snippet": self.code_snippet,
            "semantic_tags": list(self.semantic_tags),
            "language": self.language,
        }


@dataclass
class GraphNode:
    """Represents a node in the knowledge graph.

    Only the fields that belong to the node's type are set; the rest stay
    None and are left out of the serialized form.
    """
    id: str
    type: NodeType
    name: str
    absolute_path: str
    relative_path: Optional[str] = None
    semantic_tags: List[str] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    # project
    tech_stack: Optional[List[str]] = None

    # directory
    level: Optional[int] = None
    children_count: Optional[int] = None

    # file
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    line_count: Optional[int] = None
    imports: Optional[List[str]] = None
    exports: Optional[List[str]] = None

    # code element
    element_type: Optional[ElementType] = None
    start_line: Optional[int] = None
    end_line: Optional[int] = None
    code_snippet: Optional[str] = None

    @property
    def language(self) -> Optional[str]:
        return self.properties.get("language")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "absolute_path": self.absolute_path,
            "relative_path": self.relative_path,
            "semantic_tags": list(self.semantic_tags),
            "tech_stack": self.tech_stack,
            "level": self.level,
            "children_count": self.children_count,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "line_count": self.line_count,
            "imports": self.imports,
            "exports": self.exports,
            "element_type": self.element_type.value if self.element_type else None,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "code_snippet": self.code_snippet,
            "properties": self.properties,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class ContainmentProperties:
    """Properties of CONTAINS and DEFINED_IN edges."""
    description: str
    line_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"description": self.description}
        if self.line_number is not None:
            data["line_number"] = self.line_number
        return data


@dataclass
class ImportProperties:
    """Properties of IMPORTS edges."""
    description: str
    import_path: str
    dependency_type: DependencyType

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "import_path": self.import_path,
            "dependency_type": self.dependency_type.value,
        }


@dataclass
class CallProperties:
    """Properties of CALLS edges."""
    description: str
    call_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "call_name": self.call_name}


@dataclass
class SimilarityProperties:
    """Properties of RELATED_TO edges."""
    description: str
    similarity_score: float
    common_tags: List[str] = field(default_factory=list)
    cross_file: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "similarity_score": self.similarity_score,
            "common_tags": list(self.common_tags),
            "cross_file": self.cross_file,
        }


EdgeProperties = Union[ContainmentProperties, ImportProperties, CallProperties, SimilarityProperties]


def make_edge_id(source: str, target: str, relation: RelationType) -> str:
    """Derive the edge id from its endpoints and relation."""
    return f"{source}->{target}:{relation.value}"


@dataclass
class GraphEdge:
    """Represents an edge in the knowledge graph."""
    source: str
    target: str
    relation: RelationType
    weight: float
    properties: EdgeProperties

    @property
    def id(self) -> str:
        return make_edge_id(self.source, self.target, self.relation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "relation": self.relation.value,
            "weight": self.weight,
            "properties": self.properties.to_dict(),
        }


@dataclass
class Community:
    """A cohesive group of at least two nodes."""
    id: str
    label: str
    description: str
    member_node_ids: List[str]
    score: float
    tags: List[str]
    primary_language: str
    cohesion_estimate: float
    coupling_estimate: float
    detection_method: str
    functionality: List[str] = field(default_factory=list)
    confidence: float = 0.8
    level: int = 1
    sub_communities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "nodes": list(self.member_node_ids),
            "score": self.score,
            "cohesion": self.cohesion_estimate,
            "coupling": self.coupling_estimate,
            "tags": list(self.tags),
            "primary_language": self.primary_language,
            "functionality": list(self.functionality),
            "detection_method": self.detection_method,
            "confidence": self.confidence,
            "level": self.level,
            "sub_communities": list(self.sub_communities),
        }


@dataclass
class GraphMetadata:
    """Summary information about a build."""
    version: str
    created_at: str
    updated_at: str
    workspace_path: str
    total_files: int
    total_entities: int
    total_relationships: int
    supported_languages: List[str] = field(default_factory=list)
    parsing_statistics: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "workspace_path": self.workspace_path,
            "total_files": self.total_files,
            "total_entities": self.total_entities,
            "total_relationships": self.total_relationships,
            "supported_languages": list(self.supported_languages),
            "parsing_statistics": dict(self.parsing_statistics),
        }


@dataclass
class KnowledgeGraph:
    """The output of one build."""
    nodes: List[GraphNode]
    edges: List[GraphEdge]
    communities: List[Community]
    metadata: GraphMetadata

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def edges_of(self, relation: RelationType) -> List[GraphEdge]:
        return [edge for edge in self.edges if edge.relation == relation]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metadata": self.metadata.to_dict(),
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "communities": [community.to_dict() for community in self.communities],
        }
