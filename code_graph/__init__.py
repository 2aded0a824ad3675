"""
Code knowledge graph engine.

Turns parsed code entities into a typed, weighted graph of projects,
directories, files and code elements, partitioned into communities.
"""

from .graph import GraphBuilder, JsonGraphClient, RelationshipFilters
from .types import CodeEntity, KnowledgeGraph, RelationType

__version__ = "1.0.0"

__all__ = [
    'GraphBuilder',
    'JsonGraphClient',
    'RelationshipFilters',
    'CodeEntity',
    'KnowledgeGraph',
    'RelationType',
]
