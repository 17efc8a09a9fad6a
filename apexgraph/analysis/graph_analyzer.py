"""
Graph analysis over a built semantic graph.

Provides:
1. Impact analysis: what breaks if I change this?
2. Hotspot detection: which nodes are most critical?
3. Call path tracing: how does flow get from A to B?
4. Cohesion and coupling per unit
5. Issue detection and complexity reporting

All analyses are read-only and assume the build phase has finished.
"""

import logging
import math
from typing import List, Optional

from .models import (
    CallPathReport,
    CohesionReport,
    ComplexityReport,
    CouplingReport,
    FieldUsage,
    Hotspot,
    ImpactAnalysis,
    IssueReport,
    MethodComplexity,
    NodeSummary,
)
from ..core.complexity import get_complexity_rating, is_high_complexity
from ..graph.relationships import EdgeType, Node, NodeKind
from ..graph.resolver import ImpactMap, ReferenceResolver
from ..graph.semantic_graph import SemanticGraph

logger = logging.getLogger(__name__)


# Risk scoring: base weight per node kind
RISK_BASE_WEIGHTS = {
    NodeKind.RECORD_TYPE: 20,
    NodeKind.UNIT: 10,
    NodeKind.METHOD: 5,
    NodeKind.RECORD_FIELD: 5,
    NodeKind.FIELD: 3,
}
DEFAULT_RISK_WEIGHT = 5
MAX_IMPACT_MULTIPLIER = 3

# Hotspot scoring: multiplier per node kind
CRITICALITY_WEIGHTS = {
    NodeKind.RECORD_TYPE: 4,
    NodeKind.UNIT: 3,
    NodeKind.METHOD: 2,
    NodeKind.FIELD: 1,
    NodeKind.RECORD_FIELD: 1,
}

MAX_LISTED = 10
MAX_CYCLES_REPORTED = 5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def risk_level(score: int) -> str:
    if score >= 30:
        return "critical"
    if score >= 15:
        return "high"
    if score >= 5:
        return "medium"
    return "low"


def cohesion_level(score: float) -> str:
    if score < 33:
        return "low"
    if score < 66:
        return "medium"
    return "high"


def five_number_summary(values: List[int]) -> dict:
    """min, q1, median, q3, max by position in the sorted list (no interpolation)."""
    if not values:
        return {}
    ordered = sorted(values)
    n = len(ordered)
    return {
        "min": ordered[0],
        "q1": ordered[n // 4],
        "median": ordered[n // 2],
        "q3": ordered[(n * 3) // 4],
        "max": ordered[-1],
    }


class GraphAnalyzer:
    """
    Insight reports over a SemanticGraph.

    Args:
        graph: A built (ideally frozen) graph
        resolver: Optional reference resolver for the same build
    """

    def __init__(self, graph: SemanticGraph, resolver: Optional[ReferenceResolver] = None):
        self.graph = graph
        self.resolver = resolver

    # ─── Impact ───────────────────────────────────

    def calculate_risk_score(self, kind: NodeKind, affected_count: int) -> int:
        base = RISK_BASE_WEIGHTS.get(kind, DEFAULT_RISK_WEIGHT)
        multiplier = min(affected_count / 5, MAX_IMPACT_MULTIPLIER)
        return round_half_up(base * multiplier)

    def analyze_impact(self, nid: str, depth: int = 3) -> Optional[ImpactAnalysis]:
        """Risk of changing a node, from its dependents and dependencies."""
        node = self.graph.get_node(nid)
        if node is None:
            logger.debug("Impact analysis requested for unknown node %s", nid)
            return None

        backward = self.graph.get_backward_dependencies(nid, depth)
        forward = self.graph.get_forward_dependencies(nid, depth)
        score = self.calculate_risk_score(node.kind, len(backward) + len(forward))

        return ImpactAnalysis(
            target=NodeSummary.from_node(node),
            direct_dependents=len(backward),
            direct_dependencies=len(forward),
            risk_score=score,
            risk_level=risk_level(score),
            dependents=[NodeSummary.from_node(d.node, d.edge) for d in backward[:MAX_LISTED]],
            dependencies=[NodeSummary.from_node(d.node, d.edge) for d in forward[:MAX_LISTED]],
        )

    # ─── Hotspots ─────────────────────────────────

    def find_hotspots(self, limit: int = 10) -> List[Hotspot]:
        """
        Nodes ranked by (in_degree x 2 + out_degree) x kind weight.

        Ties keep insertion order.
        """
        hotspots = []
        for node in self.graph.nodes():
            in_degree = len(self.graph.incoming(node.id))
            out_degree = len(self.graph.outgoing(node.id))
            weight = CRITICALITY_WEIGHTS.get(node.kind, 1)
            hotspots.append(Hotspot(
                node=NodeSummary.from_node(node),
                in_degree=in_degree,
                out_degree=out_degree,
                dependent_count=len(self.graph.get_backward_dependencies(node.id, 1)),
                criticality=(in_degree * 2 + out_degree) * weight
            ))

        hotspots.sort(key=lambda h: h.criticality, reverse=True)
        return hotspots[:limit]

    # ─── Call paths ───────────────────────────────

    def trace_call_path(self, from_id: str, to_id: str,
                        max_depth: int = 5) -> Optional[CallPathReport]:
        """Shortest bounded path between two nodes (first found on ties)."""
        from_node = self.graph.get_node(from_id)
        to_node = self.graph.get_node(to_id)
        if from_node is None or to_node is None:
            return None

        paths = self.graph.find_paths(from_id, to_id, max_depth)
        report = CallPathReport(
            found=bool(paths),
            from_node=NodeSummary.from_node(from_node),
            to_node=NodeSummary.from_node(to_node),
            all_paths_count=len(paths)
        )
        if not paths:
            return report

        shortest = paths[0]
        for path in paths[1:]:
            if len(path) < len(shortest):
                shortest = path

        report.edges = shortest
        report.path = [report.from_node] + [
            NodeSummary.from_node(self.graph.get_node(e.target)) for e in shortest
        ]
        return report

    # ─── Units ────────────────────────────────────

    def _members(self, unit_id: str, kind: NodeKind) -> List[Node]:
        members = []
        for edge in self.graph.outgoing(unit_id):
            if edge.edge_type != EdgeType.CONTAINS:
                continue
            member = self.graph.get_node(edge.target)
            if member is not None and member.kind == kind:
                members.append(member)
        return members

    def _method_interdependency(self, methods: List[Node]) -> int:
        count = len(methods)
        if count < 2:
            return 0
        calls = sum(
            1 for m in methods for e in self.graph.outgoing(m.id)
            if e.edge_type == EdgeType.CALLS
        )
        return round_half_up(calls / (count * (count - 1)) * 100)

    def analyze_class_cohesion(self, unit_name: str) -> Optional[CohesionReport]:
        """
        How many of a unit's methods use each of its fields.

        cohesion = min(100, average usage per field / method count x 100),
        0 when the unit has no methods or no fields.
        """
        unit_id = self.graph.node_id(NodeKind.UNIT, unit_name)
        if not self.graph.has_node(unit_id):
            logger.debug("Cohesion requested for unknown unit %s", unit_name)
            return None

        methods = self._members(unit_id, NodeKind.METHOD)
        fields = self._members(unit_id, NodeKind.FIELD)

        usage = []
        for field_node in fields:
            used_by = sum(
                1 for m in methods
                if any(e.target == field_node.id for e in self.graph.outgoing(m.id))
            )
            usage.append(FieldUsage(field_name=field_node.name, used_by_methods=used_by))
        usage.sort(key=lambda u: u.used_by_methods, reverse=True)

        if not methods or not usage:
            cohesion = 0
        else:
            average = sum(u.used_by_methods for u in usage) / len(usage)
            cohesion = min(100, average / len(methods) * 100)

        return CohesionReport(
            unit_name=unit_name,
            method_count=len(methods),
            field_count=len(fields),
            cohesion=cohesion,
            level=cohesion_level(cohesion),
            field_usage=usage[:MAX_LISTED],
            method_interdependency=self._method_interdependency(methods)
        )

    def find_class_coupling(self, limit: int = 10) -> List[CouplingReport]:
        """Units ranked by how many distinct record types they access."""
        reports = []
        for unit in self.graph.nodes(NodeKind.UNIT):
            coupled = {}
            for edge in self.graph.outgoing(unit.id):
                if edge.edge_type != EdgeType.ACCESSES:
                    continue
                target = self.graph.get_node(edge.target)
                if target is not None and target.kind == NodeKind.RECORD_TYPE:
                    coupled.setdefault(target.name)
            reports.append(CouplingReport(unit_name=unit.name, coupled_to=list(coupled)))

        reports.sort(key=lambda r: r.coupling_count, reverse=True)
        return reports[:limit]

    # ─── Issues ───────────────────────────────────

    def _method_complexity(self, node: Node) -> MethodComplexity:
        complexity = node.attributes.complexity or 0
        return MethodComplexity(
            id=node.id,
            name=node.name,
            complexity=complexity,
            parameter_count=len(node.attributes.parameters),
            rating=get_complexity_rating(complexity)
        )

    def detect_issues(self) -> IssueReport:
        """Dead methods, unused fields, the first cycles and complex methods."""
        report = IssueReport()

        for method in self.graph.nodes(NodeKind.METHOD):
            incoming = self.graph.incoming(method.id)
            has_callers = any(e.edge_type == EdgeType.CALLS for e in incoming)
            if not has_callers and len(incoming) == 1:
                report.dead_methods.append(NodeSummary.from_node(method))
            entry = self._method_complexity(method)
            if is_high_complexity(entry.complexity):
                report.high_complexity.append(entry)

        for field_node in self.graph.nodes(NodeKind.FIELD):
            if len(self.graph.incoming(field_node.id)) == 1:
                report.unused_fields.append(NodeSummary.from_node(field_node))

        report.cycles = self.graph.detect_cycles()[:MAX_CYCLES_REPORTED]
        return report

    # ─── Complexity ───────────────────────────────

    def generate_complexity_report(self) -> ComplexityReport:
        methods = [self._method_complexity(m) for m in self.graph.nodes(NodeKind.METHOD)]
        methods.sort(key=lambda m: m.complexity, reverse=True)

        if not methods:
            return ComplexityReport(method_count=0, average=0.0, maximum=0)

        scores = [m.complexity for m in methods]
        return ComplexityReport(
            method_count=len(methods),
            average=math.floor(sum(scores) / len(scores) * 100 + 0.5) / 100,
            maximum=methods[0].complexity,
            most_complex=methods[:MAX_LISTED],
            distribution=five_number_summary(scores)
        )

    # ─── Call impact ──────────────────────────────

    def call_impact(self, method_key: str) -> Optional[ImpactMap]:
        """Caller-based impact map for "Unit.method", when a resolver was given."""
        if self.resolver is None:
            return None
        return self.resolver.build_impact_map(method_key)
