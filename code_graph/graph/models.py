"""
Configuration models for graph construction.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config import Settings, settings


class RelationshipFilters(BaseModel):
    """Which relation types are built and the minimum weight an edge needs.

    ``min_relation_weight`` is deliberately left unvalidated: values of 1.0
    or more suppress every weighted relation.
    """
    model_config = ConfigDict(populate_by_name=True)

    enable_contains: bool = Field(default=True, alias="enableContains")
    enable_defined_in: bool = Field(default=True, alias="enableDefinedIn")
    enable_imports_exports: bool = Field(default=False, alias="enableImportsExports")
    enable_calls: bool = Field(default=False, alias="enableCalls")
    enable_semantic_related: bool = Field(default=False, alias="enableSemanticRelated")
    min_relation_weight: float = Field(default=0.3, alias="minRelationWeight")

    # Limits on RELATED_TO candidate evaluation
    same_file_threshold: float = 0.5
    cross_file_threshold: float = 0.7
    max_cross_file_relations: int = 50

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "RelationshipFilters":
        """Build filters from application settings."""
        config = config or settings
        return cls(
            enable_contains=config.enable_contains,
            enable_defined_in=config.enable_defined_in,
            enable_imports_exports=config.enable_imports_exports,
            enable_calls=config.enable_calls,
            enable_semantic_related=config.enable_semantic_related,
            min_relation_weight=config.min_relation_weight,
            same_file_threshold=config.same_file_similarity_threshold,
            cross_file_threshold=config.cross_file_similarity_threshold,
            max_cross_file_relations=config.max_cross_file_relations,
        )

    @classmethod
    def all_enabled(cls, min_relation_weight: float = 0.3) -> "RelationshipFilters":
        return cls(
            enable_contains=True,
            enable_defined_in=True,
            enable_imports_exports=True,
            enable_calls=True,
            enable_semantic_related=True,
            min_relation_weight=min_relation_weight,
        )


DEFAULT_RELATIONSHIP_FILTERS = RelationshipFilters()
