"""
Graph module - semantic dependency graph, reference resolution and build pipeline.

This module handles building and querying the typed dependency graph,
including node/edge models, storage backends, call resolution and
impact maps.
"""

from .relationships import (
    NodeKind,
    EdgeType,
    WRITE_EDGE_TYPES,
    UnitAttributes,
    MethodAttributes,
    FieldAttributes,
    RecordTypeAttributes,
    RecordFieldAttributes,
    EdgeAttributes,
    Node,
    Edge,
    node_id,
    edge_id
)

from .base_graph_store import BaseGraphStore
from .graph_store_factory import create_graph_store

from .semantic_graph import (
    SemanticGraph,
    Dependency,
    ImpactRadius,
    ContextRadius
)

from .resolver import (
    ReferenceResolver,
    ResolvedCall,
    RecordInteraction,
    MethodReferences,
    ImpactMap
)

from .builder import (
    GraphBuild,
    build_semantic_graph,
    load_units
)

__all__ = [
    # Relationships
    "NodeKind",
    "EdgeType",
    "WRITE_EDGE_TYPES",
    "UnitAttributes",
    "MethodAttributes",
    "FieldAttributes",
    "RecordTypeAttributes",
    "RecordFieldAttributes",
    "EdgeAttributes",
    "Node",
    "Edge",
    "node_id",
    "edge_id",
    # Storage
    "BaseGraphStore",
    "create_graph_store",
    # Graph
    "SemanticGraph",
    "Dependency",
    "ImpactRadius",
    "ContextRadius",
    # Resolver
    "ReferenceResolver",
    "ResolvedCall",
    "RecordInteraction",
    "MethodReferences",
    "ImpactMap",
    # Builder
    "GraphBuild",
    "build_semantic_graph",
    "load_units",
]
