"""
Node and edge models for the semantic dependency graph.

This module defines the node kinds and relationship types that can exist
between program elements, plus the typed attribute bag each one carries.
"""

import time
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List, Union
from enum import Enum


class NodeKind(Enum):
    """Kinds of program elements in the graph."""
    UNIT = "unit"                   # Class, interface or trigger
    METHOD = "method"
    FIELD = "field"
    RECORD_TYPE = "record_type"     # External data-model entity (e.g. Account)
    RECORD_FIELD = "record_field"   # A field of an external record type


class EdgeType(Enum):
    """
    Types of relationships between program elements.

    These are the edges of the graph. At most one edge of each type
    exists between an ordered pair of nodes.
    """

    # === Structural ===
    CONTAINS = "contains"               # Unit contains Method/Field

    # === Calls ===
    CALLS = "calls"                     # Method calls Method

    # === Data access ===
    READS = "reads"                     # Method queries a record type
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UPSERT = "upsert"
    UNDELETE = "undelete"
    MERGE = "merge"
    WRITES = "writes"                   # Mutation of an unrecognised kind
    ACCESSES = "accesses"               # Unit touches a record type
    ACCESSES_FIELD = "accesses_field"   # Method touches a record field or unit field

    @classmethod
    def for_mutation(cls, operation: str) -> "EdgeType":
        """Edge type for a mutation kind, falling back to WRITES."""
        try:
            edge_type = cls(operation.lower())
        except ValueError:
            return cls.WRITES
        return edge_type if edge_type in WRITE_EDGE_TYPES else cls.WRITES


WRITE_EDGE_TYPES = frozenset({
    EdgeType.INSERT,
    EdgeType.UPDATE,
    EdgeType.DELETE,
    EdgeType.UPSERT,
    EdgeType.UNDELETE,
    EdgeType.MERGE,
    EdgeType.WRITES,
})


# ─────────────────────────────────────────────
# Node attribute bags, one per kind
# ─────────────────────────────────────────────

@dataclass
class UnitAttributes:
    file: Optional[str] = None
    unit_type: str = "class"
    modifiers: List[str] = field(default_factory=list)
    implements: List[str] = field(default_factory=list)
    extends: Optional[str] = None
    line: Optional[int] = None


@dataclass
class MethodAttributes:
    return_type: Optional[str] = None
    parameters: List[Dict[str, Optional[str]]] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    complexity: int = 0
    line: Optional[int] = None
    end_line: Optional[int] = None
    is_constructor: bool = False


@dataclass
class FieldAttributes:
    type: Optional[str] = None
    modifiers: List[str] = field(default_factory=list)
    initial_value: Optional[str] = None
    line: Optional[int] = None


@dataclass
class RecordTypeAttributes:
    label: Optional[str] = None
    is_standard: Optional[bool] = None


@dataclass
class RecordFieldAttributes:
    record_type: str = ""
    field_name: str = ""
    type: Optional[str] = None


NodeAttributes = Union[
    UnitAttributes,
    MethodAttributes,
    FieldAttributes,
    RecordTypeAttributes,
    RecordFieldAttributes,
]

ATTRIBUTE_TYPES = {
    NodeKind.UNIT: UnitAttributes,
    NodeKind.METHOD: MethodAttributes,
    NodeKind.FIELD: FieldAttributes,
    NodeKind.RECORD_TYPE: RecordTypeAttributes,
    NodeKind.RECORD_FIELD: RecordFieldAttributes,
}


@dataclass
class EdgeAttributes:
    """
    Optional metadata on an edge. Which fields are set depends on type:
    contains -> member_kind; reads -> fields, line; writes -> target,
    target_type, inferred, line; calls -> line, arguments, resolution;
    accesses_field -> mode.
    """
    member_kind: Optional[str] = None
    fields: Optional[List[str]] = None
    line: Optional[int] = None
    target: Optional[str] = None
    target_type: Optional[str] = None
    inferred: Optional[bool] = None
    arguments: Optional[str] = None
    resolution: Optional[str] = None
    mode: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def node_id(kind: NodeKind, name: str) -> str:
    """Unique node identifier: '<kind>:<qualified name>'."""
    return f"{kind.value}:{name}"


def edge_id(from_id: str, to_id: str, edge_type: EdgeType) -> str:
    """Unique edge identifier: '<from>-<type>-><to>'."""
    return f"{from_id}-{edge_type.value}->{to_id}"


@dataclass
class Node:
    """
    A declared or referenced program element.

    Identity is (kind, name); the attribute bag is whatever was supplied
    when the node was first added.
    """
    kind: NodeKind
    name: str
    attributes: NodeAttributes
    created_at: float = field(default_factory=time.time)

    @property
    def id(self) -> str:
        return node_id(self.kind, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "attributes": asdict(self.attributes),
            "created_at": self.created_at
        }


@dataclass
class Edge:
    """
    A directed, typed relationship between two nodes.

    Attributes:
        source: Node id the edge leaves
        target: Node id the edge enters
        edge_type: Type of relationship
        attributes: Edge metadata
    """
    source: str
    target: str
    edge_type: EdgeType
    attributes: EdgeAttributes = field(default_factory=EdgeAttributes)
    weight: float = 1.0

    @property
    def id(self) -> str:
        return edge_id(self.source, self.target, self.edge_type)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize edge to dictionary."""
        return {
            "id": self.id,
            "from": self.source,
            "to": self.target,
            "type": self.edge_type.value,
            "weight": self.weight,
            "attributes": self.attributes.to_dict()
        }
