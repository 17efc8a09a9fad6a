"""
Semantic dependency graph.

Holds every unit, method, field and external record type of one
analysis session in a single flat store and answers:
- Forward dependencies: what does this node use?
- Backward dependencies: what uses this node?
- Impact radius: how much is touched if this node changes?
- Context radius: which subgraph is relevant for understanding it?

Construction happens in one build phase (single writer, guarded by a
lock). After freeze() the graph is read-only and may be queried from
any number of threads.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from .base_graph_store import BaseGraphStore
from .graph_store_factory import create_graph_store
from .relationships import (
    ATTRIBUTE_TYPES,
    Edge,
    EdgeAttributes,
    EdgeType,
    FieldAttributes,
    MethodAttributes,
    Node,
    NodeAttributes,
    NodeKind,
    RecordFieldAttributes,
    RecordTypeAttributes,
    UnitAttributes,
    node_id,
)
from ..core.entities import ParsedMethod, ParsedUnit
from ..errors import GraphFrozenError, MissingNodeError
from ..symbols.symbol_table import SymbolTable
from ..symbols.type_resolver import MutationAnnotation, TypeResolver

logger = logging.getLogger(__name__)


@dataclass
class Dependency:
    """A node reached by a traversal, and the edge it was reached through."""
    node: Node
    edge: Edge

    def to_dict(self) -> Dict[str, Any]:
        return {"node": self.node.to_dict(), "edge": self.edge.to_dict()}


@dataclass
class ImpactRadius:
    """
    Everything within N hops of a node in either direction.

    direct counts traversal entries (a node reached through two edges
    counts twice); scope counts distinct nodes.
    """
    node: Node
    depends_on: List[Dependency] = field(default_factory=list)
    dependents: List[Dependency] = field(default_factory=list)
    depth: int = 2

    @property
    def direct(self) -> int:
        return len(self.depends_on) + len(self.dependents)

    @property
    def scope(self) -> int:
        return len({d.node.id for d in self.depends_on + self.dependents})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node": self.node.to_dict(),
            "depends_on": [d.to_dict() for d in self.depends_on],
            "dependents": [d.to_dict() for d in self.dependents],
            "impact": {"direct": self.direct, "scope": self.scope},
            "depth": self.depth
        }


@dataclass
class ContextRadius:
    """The induced subgraph around a node: reached nodes plus the edges among them."""
    target: Node
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    depth: int = 2

    @property
    def size(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "context_size": self.size,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "depth": self.depth
        }


class SemanticGraph:
    """
    Typed dependency graph over parsed units.

    Uses a pluggable graph store backend (see create_graph_store).
    """

    def __init__(self, store: Optional[BaseGraphStore] = None):
        self.store = store if store is not None else create_graph_store()
        self._lock = threading.RLock()
        self._frozen = False

    # ─── Identity ─────────────────────────────────

    @staticmethod
    def node_id(kind: NodeKind, name: str) -> str:
        return node_id(kind, name)

    # ─── Build phase ──────────────────────────────

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Close the build phase. Later mutations raise GraphFrozenError."""
        with self._lock:
            self._frozen = True
        logger.info(
            "Graph frozen with %d nodes and %d edges",
            self.store.number_of_nodes(), self.store.number_of_edges()
        )

    def _check_writable(self) -> None:
        if self._frozen:
            raise GraphFrozenError("Graph is frozen; the build phase has ended")

    def add_node(self, kind: NodeKind, name: str,
                 attributes: Optional[NodeAttributes] = None) -> str:
        """
        Add a node and return its id.

        Re-adding an existing (kind, name) is a no-op; the first
        attribute bag is kept.
        """
        nid = node_id(kind, name)
        with self._lock:
            self._check_writable()
            if not self.store.has_node(nid):
                if attributes is None:
                    attributes = ATTRIBUTE_TYPES[kind]()
                self.store.add_node(Node(kind=kind, name=name, attributes=attributes))
        return nid

    def add_edge(self, from_id: str, to_id: str, edge_type: EdgeType,
                 attributes: Optional[EdgeAttributes] = None) -> str:
        """
        Add a directed edge between two existing nodes.

        Raises:
            MissingNodeError: if either endpoint has not been added
        """
        with self._lock:
            self._check_writable()
            if not self.store.has_node(from_id) or not self.store.has_node(to_id):
                raise MissingNodeError(from_id, to_id)
            edge = Edge(
                source=from_id,
                target=to_id,
                edge_type=edge_type,
                attributes=attributes or EdgeAttributes()
            )
            if not self.store.has_edge(from_id, to_id, edge_type):
                self.store.add_edge(edge)
        return edge.id

    # ─── Lookups ──────────────────────────────────

    def get_node(self, nid: str) -> Optional[Node]:
        return self.store.get_node(nid)

    def has_node(self, nid: str) -> bool:
        return self.store.has_node(nid)

    def get_edge(self, from_id: str, to_id: str, edge_type: EdgeType) -> Optional[Edge]:
        return self.store.get_edge(from_id, to_id, edge_type)

    def nodes(self, kind: Optional[NodeKind] = None) -> List[Node]:
        """All nodes in insertion order, optionally of one kind."""
        all_nodes = self.store.get_all_nodes()
        if kind is None:
            return all_nodes
        return [n for n in all_nodes if n.kind == kind]

    def edges(self, edge_type: Optional[EdgeType] = None) -> List[Edge]:
        all_edges = self.store.get_all_edges()
        if edge_type is None:
            return all_edges
        return [e for e in all_edges if e.edge_type == edge_type]

    def outgoing(self, nid: str) -> List[Edge]:
        return self.store.out_edges(nid)

    def incoming(self, nid: str) -> List[Edge]:
        return self.store.in_edges(nid)

    def get_edges_between(self, node_ids: Iterable[str]) -> List[Edge]:
        """Edges whose both endpoints are in the given set."""
        node_set = set(node_ids)
        return [
            e for e in self.store.get_all_edges()
            if e.source in node_set and e.target in node_set
        ]

    # ─── Traversal ────────────────────────────────

    def _traverse(self, start: str, depth: int, forward: bool) -> List[Dependency]:
        """
        Breadth-first walk up to `depth` hops.

        Every edge of an expanded node yields one entry. A node is
        expanded at most once per call, so cycles terminate.
        """
        if depth <= 0 or not self.store.has_node(start):
            return []

        results: List[Dependency] = []
        visited: Set[str] = {start}
        queue = deque([(start, depth)])

        while queue:
            current, remaining = queue.popleft()
            edges = self.store.out_edges(current) if forward else self.store.in_edges(current)
            for edge in edges:
                neighbour = edge.target if forward else edge.source
                results.append(Dependency(node=self.store.get_node(neighbour), edge=edge))
                if remaining > 1 and neighbour not in visited:
                    visited.add(neighbour)
                    queue.append((neighbour, remaining - 1))

        return results

    def get_forward_dependencies(self, nid: str, depth: int = 1) -> List[Dependency]:
        """What this node uses, up to `depth` hops along outgoing edges."""
        return self._traverse(nid, depth, forward=True)

    def get_backward_dependencies(self, nid: str, depth: int = 1) -> List[Dependency]:
        """What uses this node, up to `depth` hops along incoming edges."""
        return self._traverse(nid, depth, forward=False)

    def get_impact_radius(self, nid: str, depth: int = 2) -> Optional[ImpactRadius]:
        node = self.store.get_node(nid)
        if node is None:
            logger.debug("Impact radius requested for unknown node %s", nid)
            return None
        return ImpactRadius(
            node=node,
            depends_on=self.get_forward_dependencies(nid, depth),
            dependents=self.get_backward_dependencies(nid, depth),
            depth=depth
        )

    def get_context_radius(self, nid: str, depth: int = 2) -> Optional[ContextRadius]:
        """
        Scoped subgraph for a consumer that should not see the whole graph.

        Nodes are the target followed by every node reached forward or
        backward (first occurrence order); edges are those induced on
        that node set.
        """
        node = self.store.get_node(nid)
        if node is None:
            logger.debug("Context radius requested for unknown node %s", nid)
            return None

        context: Dict[str, Node] = {nid: node}
        for dep in self.get_forward_dependencies(nid, depth) + self.get_backward_dependencies(nid, depth):
            context.setdefault(dep.node.id, dep.node)

        return ContextRadius(
            target=node,
            nodes=list(context.values()),
            edges=self.get_edges_between(context),
            depth=depth
        )

    def find_paths(self, from_id: str, to_id: str, max_depth: int = 5) -> List[List[Edge]]:
        """
        All simple paths from one node to another with at most
        `max_depth` edges. A node's path to itself is the empty path.
        """
        if not self.store.has_node(from_id) or not self.store.has_node(to_id):
            return []
        if from_id == to_id:
            return [[]]
        return list(self.store.simple_edge_paths(from_id, to_id, max_depth))

    def detect_cycles(self) -> List[List[Edge]]:
        """
        Three-color depth-first search over all nodes in insertion order.

        One edge list per back edge found, starting at the node the back
        edge returns to. The same cycle can be reported once per entry
        point; results are not deduplicated.
        """
        gray, black = 1, 2
        color: Dict[str, int] = {}
        cycles: List[List[Edge]] = []

        for root in self.store.get_all_nodes():
            if root.id in color:
                continue
            color[root.id] = gray
            path: List[Edge] = []
            stack = [iter(self.store.out_edges(root.id))]

            while stack:
                edge = next(stack[-1], None)
                if edge is None:
                    stack.pop()
                    if path:
                        color[path.pop().target] = black
                    else:
                        color[root.id] = black
                    continue

                state = color.get(edge.target)
                if state is None:
                    color[edge.target] = gray
                    path.append(edge)
                    stack.append(iter(self.store.out_edges(edge.target)))
                elif state == gray:
                    cycles.append(self._close_cycle(path, edge))

        return cycles

    @staticmethod
    def _close_cycle(path: List[Edge], back_edge: Edge) -> List[Edge]:
        for index, edge in enumerate(path):
            if edge.source == back_edge.target:
                return path[index:] + [back_edge]
        # Self loop on the node being expanded
        return [back_edge]

    # ─── Unit ingestion ───────────────────────────

    def add_unit(self, unit: ParsedUnit,
                 type_resolver: Optional[TypeResolver] = None,
                 annotations: Optional[Dict[str, List[MutationAnnotation]]] = None) -> str:
        """
        Add a parsed unit with its members and data access.

        Args:
            unit: Parsed declaration record
            type_resolver: Resolver for mutation targets; one is built
                from the unit when omitted
            annotations: Pre-computed mutation annotations keyed by
                qualified member name (see TypeResolver.annotate_unit)

        Returns:
            The unit's node id
        """
        if annotations is None:
            if type_resolver is None:
                type_resolver = TypeResolver(SymbolTable(unit).build_from_unit())
            annotations = type_resolver.annotate_unit(unit)

        with self._lock:
            self._check_writable()
            unit_id = self.add_node(NodeKind.UNIT, unit.name, UnitAttributes(
                file=unit.file,
                unit_type=unit.unit_type,
                modifiers=list(unit.modifiers),
                implements=list(unit.implements),
                extends=unit.extends,
                line=unit.line
            ))

            referenced: Dict[str, None] = {}
            for member in list(unit.methods) + list(unit.constructors):
                member_id = self._add_member(unit_id, unit, member)
                for record_type in self._add_queries(member_id, member, type_resolver):
                    referenced.setdefault(record_type)
                notes = annotations.get(unit.qualified(member.name), [])
                for record_type in self._add_mutations(member_id, notes):
                    referenced.setdefault(record_type)

            for parsed_field in unit.fields:
                field_id = self.add_node(NodeKind.FIELD, unit.qualified(parsed_field.name), FieldAttributes(
                    type=parsed_field.type,
                    modifiers=list(parsed_field.modifiers),
                    initial_value=parsed_field.initial_value,
                    line=parsed_field.line
                ))
                self.add_edge(unit_id, field_id, EdgeType.CONTAINS, EdgeAttributes(member_kind="field"))

            for record_type in referenced:
                record_id = self.add_node(NodeKind.RECORD_TYPE, record_type)
                self.add_edge(unit_id, record_id, EdgeType.ACCESSES)

        logger.debug("Added unit %s (%d record types)", unit.name, len(referenced))
        return unit_id

    def _add_member(self, unit_id: str, unit: ParsedUnit, member: ParsedMethod) -> str:
        member_id = self.add_node(NodeKind.METHOD, unit.qualified(member.name), MethodAttributes(
            return_type=member.return_type,
            parameters=[p.to_dict() for p in member.parameters],
            modifiers=list(member.modifiers),
            complexity=member.complexity,
            line=member.line,
            end_line=member.end_line,
            is_constructor=member.is_constructor
        ))
        kind = "constructor" if member.is_constructor else "method"
        self.add_edge(unit_id, member_id, EdgeType.CONTAINS, EdgeAttributes(member_kind=kind))
        return member_id

    @staticmethod
    def _record_type_attributes(constraints: Optional[Dict[str, Any]]) -> RecordTypeAttributes:
        if not constraints:
            return RecordTypeAttributes()
        return RecordTypeAttributes(label=constraints.get("label"),
                                    is_standard=constraints.get("is_standard"))

    def _add_queries(self, member_id: str, member: ParsedMethod,
                     type_resolver: Optional[TypeResolver]) -> List[str]:
        record_types = []
        for query in member.queries:
            if not query.record_type:
                continue
            constraints = None
            if type_resolver is not None:
                constraints = type_resolver.get_object_constraints(query.record_type)
            record_id = self.add_node(NodeKind.RECORD_TYPE, query.record_type,
                                      self._record_type_attributes(constraints))
            self.add_edge(member_id, record_id, EdgeType.READS,
                          EdgeAttributes(fields=list(query.fields), line=query.line))

            for field_name in query.fields:
                field_type = None
                if type_resolver is not None:
                    field_constraints = type_resolver.get_field_constraints(query.record_type, field_name)
                    field_type = field_constraints["type"] if field_constraints else None
                field_id = self.add_node(
                    NodeKind.RECORD_FIELD,
                    f"{query.record_type}.{field_name}",
                    RecordFieldAttributes(record_type=query.record_type, field_name=field_name,
                                          type=field_type)
                )
                self.add_edge(member_id, field_id, EdgeType.ACCESSES_FIELD, EdgeAttributes(mode="read"))
            record_types.append(query.record_type)
        return record_types

    def _add_mutations(self, member_id: str, notes: List[MutationAnnotation]) -> List[str]:
        record_types = []
        for note in notes:
            if not note.resolved:
                logger.debug("Skipping unresolved %s of '%s'", note.operation, note.target)
                continue
            record_id = self.add_node(NodeKind.RECORD_TYPE, note.record_type,
                                      self._record_type_attributes(note.constraints))
            self.add_edge(member_id, record_id, EdgeType.for_mutation(note.operation), EdgeAttributes(
                target=note.target,
                target_type=note.target_type,
                inferred=note.inferred,
                line=note.line
            ))
            record_types.append(note.record_type)
        return record_types

    # ─── Summaries ────────────────────────────────

    def _find_self_loops(self) -> List[Edge]:
        return [e for e in self.store.get_all_edges() if e.source == e.target]

    def get_stats(self) -> Dict[str, Any]:
        """Get graph statistics."""
        nodes_by_kind: Dict[str, int] = {}
        for node in self.store.get_all_nodes():
            nodes_by_kind[node.kind.value] = nodes_by_kind.get(node.kind.value, 0) + 1

        edges_by_type: Dict[str, int] = {}
        for edge in self.store.get_all_edges():
            edges_by_type[edge.edge_type.value] = edges_by_type.get(edge.edge_type.value, 0) + 1

        return {
            "total_nodes": self.store.number_of_nodes(),
            "nodes_by_kind": nodes_by_kind,
            "total_edges": self.store.number_of_edges(),
            "edges_by_type": edges_by_type,
            "density": self.store.density(),
            "cycle_count": len(self.detect_cycles()),
            "self_loops": len(self._find_self_loops()),
        }

    def to_dict(self, context_node_id: Optional[str] = None,
                context_depth: int = 2) -> Dict[str, Any]:
        """Serialize nodes and edges, optionally with one node's context radius."""
        data = {
            "nodes": [n.to_dict() for n in self.store.get_all_nodes()],
            "edges": [e.to_dict() for e in self.store.get_all_edges()],
            "stats": {
                "node_count": self.store.number_of_nodes(),
                "edge_count": self.store.number_of_edges(),
                "cycles": len(self.detect_cycles()),
            },
        }
        if context_node_id:
            radius = self.get_context_radius(context_node_id, context_depth)
            data["context_radius"] = radius.to_dict() if radius else None
        return data
