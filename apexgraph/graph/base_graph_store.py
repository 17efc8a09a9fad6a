"""
Abstract base class for graph stores.

Defines the contract that graph storage implementations must follow.
Stores hold typed Node and Edge objects in a flat table addressed by
string id, and keep outgoing/incoming indexes consistent with the edge
set on every insertion.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional

from .relationships import Edge, EdgeType, Node


class BaseGraphStore(ABC):
    """
    Abstract graph store interface.

    Edges are identified by (source, type, target): a store holds at
    most one edge of a given type between an ordered pair of nodes.
    """

    # ─────────────────────────────────────────────
    # Node Operations
    # ─────────────────────────────────────────────

    @abstractmethod
    def add_node(self, node: Node) -> None:
        """Insert a node. The caller guarantees the id is new."""
        ...

    @abstractmethod
    def has_node(self, node_id: str) -> bool:
        """Check if a node exists in the graph."""
        ...

    @abstractmethod
    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by id. Returns None if not found."""
        ...

    @abstractmethod
    def get_all_nodes(self) -> List[Node]:
        """Return all nodes in insertion order."""
        ...

    @abstractmethod
    def number_of_nodes(self) -> int:
        """Return total number of nodes."""
        ...

    # ─────────────────────────────────────────────
    # Edge Operations
    # ─────────────────────────────────────────────

    @abstractmethod
    def add_edge(self, edge: Edge) -> None:
        """Insert an edge between existing nodes. The caller guarantees it is new."""
        ...

    @abstractmethod
    def has_edge(self, source: str, target: str, edge_type: EdgeType) -> bool:
        """Check if an edge of this type exists."""
        ...

    @abstractmethod
    def get_edge(self, source: str, target: str, edge_type: EdgeType) -> Optional[Edge]:
        """Get an edge. Returns None if not found."""
        ...

    @abstractmethod
    def get_all_edges(self) -> List[Edge]:
        """Return every edge."""
        ...

    @abstractmethod
    def number_of_edges(self) -> int:
        """Return total number of edges."""
        ...

    # ─────────────────────────────────────────────
    # Adjacency
    # ─────────────────────────────────────────────

    @abstractmethod
    def out_edges(self, node_id: str) -> List[Edge]:
        """Edges leaving a node ([] if unknown)."""
        ...

    @abstractmethod
    def in_edges(self, node_id: str) -> List[Edge]:
        """Edges entering a node ([] if unknown)."""
        ...

    @abstractmethod
    def in_degree(self, node_id: str) -> int:
        """Number of incoming edges."""
        ...

    @abstractmethod
    def out_degree(self, node_id: str) -> int:
        """Number of outgoing edges."""
        ...

    # ─────────────────────────────────────────────
    # Graph Analysis
    # ─────────────────────────────────────────────

    @abstractmethod
    def simple_edge_paths(self, source: str, target: str, cutoff: int) -> Iterator[List[Edge]]:
        """All simple paths from source to target with at most `cutoff` edges."""
        ...

    @abstractmethod
    def density(self) -> float:
        """Calculate graph density."""
        ...

    # ─────────────────────────────────────────────
    # Bulk Operations
    # ─────────────────────────────────────────────

    @abstractmethod
    def clear(self) -> None:
        """Remove all nodes and edges."""
        ...
