from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Relationship Filters
    enable_contains: bool = True
    enable_defined_in: bool = True
    enable_imports_exports: bool = False
    enable_calls: bool = False
    enable_semantic_related: bool = False
    min_relation_weight: float = 0.3

    # Semantic Relation Limits
    same_file_similarity_threshold: float = 0.5
    cross_file_similarity_threshold: float = 0.7
    max_cross_file_relations: int = 50

    # Community Detection
    community_strategy: str = "directory"

    # Output Configuration
    output_dir: str = ".huima"
    graph_file_name: str = "kg.json"

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/code_graph.log"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "KG_"
        case_sensitive = False
        extra = "ignore"

    @property
    def log_dir(self) -> Optional[Path]:
        """Get log directory path."""
        if not self.log_file:
            return None
        return Path(self.log_file).parent

    def graph_output_path(self, workspace_path: str) -> Path:
        """Get the default graph output path for a workspace."""
        return Path(workspace_path) / self.output_dir / self.graph_file_name

    def ensure_directories(self):
        """Ensure necessary directories exist."""
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)


settings = Settings()
settings.ensure_directories()
