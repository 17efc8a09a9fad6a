"""
apexgraph - semantic dependency graphs and code intelligence for parsed units.
"""

from .graph import SemanticGraph, ReferenceResolver, build_semantic_graph
from .analysis import GraphAnalyzer

__version__ = "0.1.0"

__all__ = [
    "SemanticGraph",
    "ReferenceResolver",
    "build_semantic_graph",
    "GraphAnalyzer",
]
