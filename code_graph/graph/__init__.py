"""
Graph module for building knowledge graphs from parsed code entities.
"""

from .community_detector import CommunityDetector
from .graph_builder import GraphBuilder
from .import_resolver import ImportResolver
from .json_graph_client import JsonGraphClient
from .models import DEFAULT_RELATIONSHIP_FILTERS, RelationshipFilters
from .node_factory import NodeFactory
from .relationship_builder import RelationshipBuilder
from .similarity import SimilarityEngine
from .views import legacy_view, summary_view

__all__ = [
    'CommunityDetector',
    'GraphBuilder',
    'ImportResolver',
    'JsonGraphClient',
    'DEFAULT_RELATIONSHIP_FILTERS',
    'RelationshipFilters',
    'NodeFactory',
    'RelationshipBuilder',
    'SimilarityEngine',
    'legacy_view',
    'summary_view',
]
