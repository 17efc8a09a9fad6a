"""
NetworkX implementation of the graph store.

Wraps a NetworkX MultiDiGraph behind the BaseGraphStore interface. Edges
are keyed by their type, so NetworkX's own successor/predecessor maps act
as the outgoing/incoming indexes and cannot drift from the edge set.
"""

from typing import Iterator, List, Optional

import networkx as nx

from .base_graph_store import BaseGraphStore
from .relationships import Edge, EdgeType, Node


class NetworkXStore(BaseGraphStore):
    """Graph store backed by NetworkX (in-memory directed multigraph)."""

    def __init__(self):
        self._graph = nx.MultiDiGraph()

    # ─── Node Operations ──────────────────────────

    def add_node(self, node: Node) -> None:
        self._graph.add_node(node.id, node=node)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._graph

    def get_node(self, node_id: str) -> Optional[Node]:
        if node_id in self._graph:
            return self._graph.nodes[node_id]["node"]
        return None

    def get_all_nodes(self) -> List[Node]:
        return [data for _, data in self._graph.nodes(data="node")]

    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    # ─── Edge Operations ──────────────────────────

    def add_edge(self, edge: Edge) -> None:
        self._graph.add_edge(edge.source, edge.target, key=edge.edge_type.value, edge=edge)

    def has_edge(self, source: str, target: str, edge_type: EdgeType) -> bool:
        return self._graph.has_edge(source, target, key=edge_type.value)

    def get_edge(self, source: str, target: str, edge_type: EdgeType) -> Optional[Edge]:
        data = self._graph.get_edge_data(source, target, key=edge_type.value)
        return data["edge"] if data else None

    def get_all_edges(self) -> List[Edge]:
        return [edge for _, _, edge in self._graph.edges(data="edge")]

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    # ─── Adjacency ────────────────────────────────

    def out_edges(self, node_id: str) -> List[Edge]:
        if node_id not in self._graph:
            return []
        return [edge for _, _, edge in self._graph.out_edges(node_id, data="edge")]

    def in_edges(self, node_id: str) -> List[Edge]:
        if node_id not in self._graph:
            return []
        return [edge for _, _, edge in self._graph.in_edges(node_id, data="edge")]

    def in_degree(self, node_id: str) -> int:
        if node_id not in self._graph:
            return 0
        return self._graph.in_degree(node_id)

    def out_degree(self, node_id: str) -> int:
        if node_id not in self._graph:
            return 0
        return self._graph.out_degree(node_id)

    # ─── Analysis ─────────────────────────────────

    def simple_edge_paths(self, source: str, target: str, cutoff: int) -> Iterator[List[Edge]]:
        if cutoff < 1 or source not in self._graph or target not in self._graph:
            return
        for path in nx.all_simple_edge_paths(self._graph, source, target, cutoff=cutoff):
            yield [self._graph.edges[u, v, key]["edge"] for u, v, key in path]

    def density(self) -> float:
        if self._graph.number_of_nodes() == 0:
            return 0.0
        return nx.density(self._graph)

    # ─── Bulk Operations ──────────────────────────

    def clear(self) -> None:
        self._graph.clear()
