"""
Report models produced by the graph analyzer.

Every report is a plain dataclass with to_dict() so formatters and
serializers can consume it without knowing the graph.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.complexity import ComplexityRating
from ..graph.relationships import Edge, Node


@dataclass
class NodeSummary:
    """Id, kind and name of a node, plus the edge type it was reached by."""
    id: str
    kind: str
    name: str
    edge_type: Optional[str] = None

    @classmethod
    def from_node(cls, node: Node, edge: Optional[Edge] = None) -> "NodeSummary":
        return cls(
            id=node.id,
            kind=node.kind.value,
            name=node.name,
            edge_type=edge.edge_type.value if edge is not None else None
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "kind": self.kind, "name": self.name}
        if self.edge_type is not None:
            data["edge_type"] = self.edge_type
        return data


@dataclass
class ImpactAnalysis:
    """
    Risk of changing one node.

    Attributes:
        direct_dependents: Backward traversal entries within the depth
        direct_dependencies: Forward traversal entries within the depth
        risk_score: base weight of the kind x min(affected / 5, 3)
        dependents/dependencies: First ten entries of each traversal
    """
    target: NodeSummary
    direct_dependents: int
    direct_dependencies: int
    risk_score: int
    risk_level: str
    dependents: List[NodeSummary] = field(default_factory=list)
    dependencies: List[NodeSummary] = field(default_factory=list)

    @property
    def total_affected(self) -> int:
        return self.direct_dependents + self.direct_dependencies

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target.to_dict(),
            "impact": {
                "direct_dependents": self.direct_dependents,
                "direct_dependencies": self.direct_dependencies,
                "total_affected": self.total_affected,
                "risk_score": self.risk_score,
                "risk_level": self.risk_level,
            },
            "dependents": [d.to_dict() for d in self.dependents],
            "dependencies": [d.to_dict() for d in self.dependencies],
        }


@dataclass
class Hotspot:
    node: NodeSummary
    in_degree: int
    out_degree: int
    dependent_count: int
    criticality: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.node.to_dict(),
            "in_degree": self.in_degree,
            "out_degree": self.out_degree,
            "dependent_count": self.dependent_count,
            "criticality": self.criticality
        }


@dataclass
class FieldUsage:
    field_name: str
    used_by_methods: int

    def to_dict(self) -> Dict[str, Any]:
        return {"field_name": self.field_name, "used_by_methods": self.used_by_methods}


@dataclass
class CohesionReport:
    """How strongly a unit's methods share its fields."""
    unit_name: str
    method_count: int
    field_count: int
    cohesion: float
    level: str
    field_usage: List[FieldUsage] = field(default_factory=list)
    method_interdependency: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unit_name": self.unit_name,
            "method_count": self.method_count,
            "field_count": self.field_count,
            "cohesion": self.cohesion,
            "level": self.level,
            "field_usage": [u.to_dict() for u in self.field_usage],
            "method_interdependency": self.method_interdependency
        }


@dataclass
class CouplingReport:
    unit_name: str
    coupled_to: List[str] = field(default_factory=list)

    @property
    def coupling_count(self) -> int:
        return len(self.coupled_to)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "unit_name": self.unit_name,
            "coupled_to": self.coupled_to,
            "coupling_count": self.coupling_count
        }


@dataclass
class MethodComplexity:
    """One method's complexity score and its rating band."""
    id: str
    name: str
    complexity: int
    parameter_count: int
    rating: ComplexityRating

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "complexity": self.complexity,
            "parameter_count": self.parameter_count,
            "rating": self.rating.to_dict()
        }


@dataclass
class IssueReport:
    """
    Structural smells.

    A method or field is reported when its only incoming edge is the
    containment edge from its own unit, so public entry points of a unit
    analysed alone are always listed.
    """
    dead_methods: List[NodeSummary] = field(default_factory=list)
    unused_fields: List[NodeSummary] = field(default_factory=list)
    cycles: List[List[Edge]] = field(default_factory=list)
    high_complexity: List[MethodComplexity] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (len(self.dead_methods) + len(self.unused_fields)
                + len(self.cycles) + len(self.high_complexity))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dead_methods": [m.to_dict() for m in self.dead_methods],
            "unused_fields": [f.to_dict() for f in self.unused_fields],
            "cycles": [[e.to_dict() for e in cycle] for cycle in self.cycles],
            "high_complexity": [m.to_dict() for m in self.high_complexity]
        }


@dataclass
class ComplexityReport:
    method_count: int
    average: float
    maximum: int
    most_complex: List[MethodComplexity] = field(default_factory=list)
    distribution: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method_count": self.method_count,
            "average": self.average,
            "maximum": self.maximum,
            "most_complex": [m.to_dict() for m in self.most_complex],
            "distribution": self.distribution
        }


@dataclass
class CallPathReport:
    """Shortest of all bounded paths between two nodes, if any."""
    found: bool
    from_node: NodeSummary
    to_node: NodeSummary
    all_paths_count: int = 0
    path: List[NodeSummary] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.edges)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "found": self.found,
            "from_node": self.from_node.to_dict(),
            "to_node": self.to_node.to_dict(),
        }
        if self.found:
            data.update({
                "shortest_path_length": self.length,
                "all_paths_count": self.all_paths_count,
                "path": [n.to_dict() for n in self.path],
                "edges": [
                    {"from": e.source, "to": e.target, "type": e.edge_type.value}
                    for e in self.edges
                ],
            })
        return data
