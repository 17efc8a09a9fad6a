"""
Reference resolution over raw method source.

Reconstructs relationships the structural parse does not provide:
- Method calls (same-unit instance calls, other-unit static calls,
  unqualified local calls)
- Reads and writes of the unit's own fields
- Record-type interactions per method, for user lookups

Calls are found by ordered text heuristics, so every resolved call
carries the pass that produced it ("instance", "static" or "local").
The resolver is permissive and keeps calls the graph cannot place; the
graph only receives edges whose endpoints already exist.

The maps are computed once from the full unit set. Adding units later
requires building a new resolver.
"""

import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .relationships import EdgeAttributes, EdgeType, NodeKind
from .semantic_graph import SemanticGraph
from ..config import get_settings
from ..core.entities import ParsedMethod, ParsedUnit
from ..symbols.symbol_table import SymbolTable
from ..symbols.type_resolver import MutationAnnotation, TypeResolver

logger = logging.getLogger(__name__)


# --- CALL PATTERNS (in precedence order) ---
INSTANCE_CALL_PATTERN = re.compile(r"\b(?:this|self)\.(\w+)\s*\(")
STATIC_CALL_PATTERN = re.compile(r"(\w+)\.(\w+)\s*\(")
LOCAL_CALL_PATTERN = re.compile(r"(?<![\w.])(\w+)\s*\(")

# Assignment (but not comparison) or increment right after a name
WRITE_SUFFIX_PATTERN = re.compile(r"\s*(?:[-+*/]?=(?!=)|\+\+|--)")

# Language and collection intrinsics never treated as local calls
BUILT_IN_METHODS = frozenset(name.lower() for name in (
    "system", "debug", "assert", "assertEquals", "assertNotEquals",
    "print", "println", "valueOf", "parse", "format",
    "add", "remove", "get", "set", "size", "contains", "clear", "sort",
    "substring", "length", "trim", "split", "replace", "toUpperCase", "toLowerCase",
    "toString", "equals", "hashCode", "clone", "wait", "notify",
))

# Impact risk thresholds on total caller count (inclusive upper bounds)
IMPACT_RISK_LEVELS = (
    (2, "low"),
    (5, "medium"),
    (10, "high"),
)


def is_built_in_method(name: str) -> bool:
    return name.lower() in BUILT_IN_METHODS


def extract_call_arguments(text: str, call_index: int) -> str:
    """Argument text between the first '(' at or after call_index and its matching ')'."""
    open_paren = text.find("(", call_index)
    if open_paren == -1:
        return ""

    depth = 1
    index = open_paren + 1
    chars = []
    while index < len(text) and depth > 0:
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if depth > 0:
            chars.append(char)
        index += 1
    return "".join(chars).strip()


def classify_impact(total: int) -> str:
    for limit, level in IMPACT_RISK_LEVELS:
        if total <= limit:
            return level
    return "critical"


@dataclass
class ResolvedCall:
    """One call found in a method body."""
    target: str          # "Unit.method"
    resolution: str      # instance, static or local
    line: int
    arguments: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "resolution": self.resolution,
            "line": self.line,
            "arguments": self.arguments
        }


@dataclass
class RecordInteraction:
    """A read or write of an external record type inside a method."""
    record_type: Optional[str]
    operation: str               # "read" for queries, the mutation kind otherwise
    fields: List[str] = field(default_factory=list)
    line: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_type": self.record_type,
            "operation": self.operation,
            "fields": self.fields,
            "line": self.line
        }


@dataclass
class MethodReferences:
    """Per-method summary of field accesses and record interactions."""
    method: str
    field_reads: List[str] = field(default_factory=list)
    field_writes: List[str] = field(default_factory=list)
    queries: List[RecordInteraction] = field(default_factory=list)
    mutations: List[RecordInteraction] = field(default_factory=list)

    @property
    def record_interactions(self) -> List[RecordInteraction]:
        return self.queries + self.mutations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "field_accesses": {"reads": self.field_reads, "writes": self.field_writes},
            "record_interactions": {
                "queries": [q.to_dict() for q in self.queries],
                "mutations": [m.to_dict() for m in self.mutations],
            }
        }


@dataclass
class ImpactMap:
    """Callers of a method (direct) and their callers (indirect)."""
    target: str
    direct_impact: List[str] = field(default_factory=list)
    indirect_impact: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.direct_impact) + len(self.indirect_impact)

    @property
    def risk_level(self) -> str:
        return classify_impact(self.total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "direct_impact": self.direct_impact,
            "indirect_impact": self.indirect_impact,
            "risk_level": self.risk_level
        }


class ReferenceResolver:
    """
    Call, field and record-type references for a set of units.

    Args:
        graph: Graph that receives `calls` and field `accesses_field` edges
        units: Every unit analysed together
        sources: Raw source text keyed by unit file (or unit name when
                 the unit has no file)
        method_scan_lines: Lines scanned for a method without an end line
        annotations: Mutation annotations keyed by qualified member name;
                     units missing from it are annotated here
    """

    def __init__(self, graph: SemanticGraph, units: Sequence[ParsedUnit],
                 sources: Optional[Mapping[str, str]] = None,
                 method_scan_lines: Optional[int] = None,
                 annotations: Optional[Mapping[str, List[MutationAnnotation]]] = None):
        self.graph = graph
        self.units: Dict[str, ParsedUnit] = {u.name: u for u in units}
        self.sources = dict(sources or {})
        self.method_scan_lines = method_scan_lines or get_settings().method_scan_lines
        self.annotations: Dict[str, List[MutationAnnotation]] = dict(annotations or {})

        self.call_graph: Dict[str, List[str]] = {}
        self.reverse_call_graph: Dict[str, List[str]] = {}
        self.calls: Dict[str, List[ResolvedCall]] = {}
        self.references: Dict[str, MethodReferences] = {}

        self._resolve_all_references()

    # ─── Resolution ───────────────────────────────

    def _resolve_all_references(self) -> None:
        for unit in self.units.values():
            source_lines = self._source_lines(unit)
            pending = self._pending_annotations(unit)
            for member in list(unit.methods) + list(unit.constructors):
                body = self._method_body(member, source_lines)
                self._resolve_method_calls(unit, member, body)
                self._resolve_field_accesses(unit, member, body)
                self._resolve_record_interactions(unit, member, pending)

        logger.info(
            "Resolved %d calls across %d methods",
            sum(len(c) for c in self.call_graph.values()), len(self.call_graph)
        )

    def _source_lines(self, unit: ParsedUnit) -> Optional[List[str]]:
        source = self.sources.get(unit.file or unit.name)
        if source is None:
            logger.debug("No source text for unit %s", unit.name)
            return None
        return source.split("\n")

    def _method_body(self, method: ParsedMethod,
                     source_lines: Optional[List[str]]) -> Optional[str]:
        """Lines line..end_line (1-based, inclusive) of the method."""
        if source_lines is None or method.line is None:
            return None
        start = max(0, method.line - 1)
        if method.end_line is not None:
            end = method.end_line
        else:
            end = start + self.method_scan_lines
        return "\n".join(source_lines[start:min(len(source_lines), end)])

    def _extract_calls(self, unit: ParsedUnit, method: ParsedMethod,
                       body: str) -> List[ResolvedCall]:
        found: List[ResolvedCall] = []

        def record(target: str, resolution: str, match: "re.Match", group: int):
            found.append(ResolvedCall(
                target=target,
                resolution=resolution,
                line=method.line + body.count("\n", 0, match.start(group)),
                arguments=extract_call_arguments(body, match.start(group))
            ))

        # 1. this.method(...) against the same unit
        for match in INSTANCE_CALL_PATTERN.finditer(body):
            name = match.group(1)
            if name != method.name and unit.declares_method(name):
                record(unit.qualified(name), "instance", match, 1)

        # 2. OtherUnit.method(...) against known units
        for match in STATIC_CALL_PATTERN.finditer(body):
            callee_unit, name = match.group(1), match.group(2)
            if callee_unit in (unit.name, "this", "self"):
                continue
            other = self.units.get(callee_unit)
            if other is not None and other.declares_method(name):
                record(other.qualified(name), "static", match, 1)

        # 3. bare method(...) against the same unit
        for match in LOCAL_CALL_PATTERN.finditer(body):
            name = match.group(1)
            if name == method.name or is_built_in_method(name):
                continue
            if unit.declares_method(name):
                record(unit.qualified(name), "local", match, 1)

        self_key = unit.qualified(method.name)
        seen = set()
        calls = []
        for call in found:
            if call.target in seen or call.target == self_key:
                continue
            seen.add(call.target)
            calls.append(call)
        return calls

    def _resolve_method_calls(self, unit: ParsedUnit, method: ParsedMethod,
                              body: Optional[str]) -> None:
        method_key = unit.qualified(method.name)
        callees = self.call_graph.setdefault(method_key, [])
        self.reverse_call_graph.setdefault(method_key, [])
        details = self.calls.setdefault(method_key, [])

        if body is None:
            return

        from_id = self.graph.node_id(NodeKind.METHOD, method_key)
        for call in self._extract_calls(unit, method, body):
            # Overloads share a key; keep each target once
            if call.target in callees:
                continue
            callees.append(call.target)
            details.append(call)
            self.reverse_call_graph.setdefault(call.target, []).append(method_key)

            to_id = self.graph.node_id(NodeKind.METHOD, call.target)
            if self.graph.has_node(from_id) and self.graph.has_node(to_id):
                self.graph.add_edge(from_id, to_id, EdgeType.CALLS, EdgeAttributes(
                    line=call.line,
                    arguments=call.arguments,
                    resolution=call.resolution
                ))

    def _resolve_field_accesses(self, unit: ParsedUnit, method: ParsedMethod,
                                body: Optional[str]) -> None:
        method_key = unit.qualified(method.name)
        refs = self.references.setdefault(method_key, MethodReferences(method=method_key))
        if body is None:
            return

        from_id = self.graph.node_id(NodeKind.METHOD, method_key)
        for parsed_field in unit.fields:
            pattern = re.compile(
                r"(?:\b(?:this|self)\.|(?<![\w.]))(" + re.escape(parsed_field.name) + r")\b(?!\s*\()"
            )
            mode = None
            for match in pattern.finditer(body):
                if WRITE_SUFFIX_PATTERN.match(body, match.end(1)):
                    mode = "write"
                    break
                mode = "read"
            if mode is None:
                continue

            target = refs.field_writes if mode == "write" else refs.field_reads
            if parsed_field.name not in target:
                target.append(parsed_field.name)

            field_id = self.graph.node_id(NodeKind.FIELD, unit.qualified(parsed_field.name))
            if self.graph.has_node(from_id) and self.graph.has_node(field_id):
                self.graph.add_edge(from_id, field_id, EdgeType.ACCESSES_FIELD,
                                    EdgeAttributes(mode=mode))

    def _pending_annotations(self, unit: ParsedUnit) -> Dict[str, deque]:
        """
        Per-member queues of mutation annotations, in mutation order.

        Overloads share a key, so their annotations are consumed in the
        same member order they were produced in.
        """
        members = list(unit.methods) + list(unit.constructors)
        keys = {unit.qualified(m.name) for m in members if m.mutations}
        if any(key not in self.annotations for key in keys):
            typed = TypeResolver(SymbolTable(unit).build_from_unit()).annotate_unit(unit)
            self.annotations.update(typed)
        return {key: deque(self.annotations.get(key, [])) for key in keys}

    def _resolve_record_interactions(self, unit: ParsedUnit, method: ParsedMethod,
                                     pending: Dict[str, deque]) -> None:
        method_key = unit.qualified(method.name)
        refs = self.references.setdefault(method_key, MethodReferences(method=method_key))
        notes = pending.get(method_key, deque())

        for query in method.queries:
            refs.queries.append(RecordInteraction(
                record_type=query.record_type,
                operation="read",
                fields=list(query.fields),
                line=query.line
            ))
        for mutation in method.mutations:
            note = notes.popleft() if notes else None
            record_type = note.record_type if note else None
            refs.mutations.append(RecordInteraction(
                record_type=record_type or mutation.target,
                operation=mutation.operation,
                line=mutation.line
            ))

    # ─── Queries ──────────────────────────────────

    def get_callers(self, method_key: str) -> List[str]:
        """Methods that call "Unit.method"."""
        return list(self.reverse_call_graph.get(method_key, []))

    def get_callees(self, method_key: str) -> List[str]:
        """Methods called by "Unit.method"."""
        return list(self.call_graph.get(method_key, []))

    def get_method_references(self, method_key: str) -> Optional[MethodReferences]:
        return self.references.get(method_key)

    def find_field_accessors(self, unit_name: str, field_name: str) -> List[Dict[str, str]]:
        """Methods of a unit that read or write one of its fields."""
        prefix = f"{unit_name}."
        accessors = []
        for method_key, refs in self.references.items():
            if not method_key.startswith(prefix):
                continue
            if field_name in refs.field_writes:
                accessors.append({"method": method_key, "mode": "write"})
            elif field_name in refs.field_reads:
                accessors.append({"method": method_key, "mode": "read"})
        return accessors

    def find_record_type_users(self, record_type: str) -> List[Dict[str, str]]:
        """Every method that reads or writes a record type."""
        users = []
        for method_key, refs in self.references.items():
            for interaction in refs.record_interactions:
                if interaction.record_type == record_type:
                    users.append({
                        "method": method_key,
                        "type": interaction.operation,
                        "record_type": record_type
                    })
        return users

    def build_impact_map(self, target: str) -> ImpactMap:
        """
        What is affected if "Unit.method" changes.

        Direct impact is its callers; indirect impact is their callers,
        each listed once in first-seen order.
        """
        direct = self.get_callers(target)
        indirect: Dict[str, None] = {}
        for caller in direct:
            for caller_of_caller in self.get_callers(caller):
                indirect.setdefault(caller_of_caller)
        return ImpactMap(target=target, direct_impact=direct, indirect_impact=list(indirect))

    def trace_call_path(self, from_method: str, to_method: str) -> Optional[List[str]]:
        """Shortest chain of calls between two methods, or None."""
        if from_method not in self.call_graph:
            return None

        queue = deque([[from_method]])
        visited = set()
        while queue:
            path = queue.popleft()
            current = path[-1]
            if current == to_method:
                return path
            if current in visited:
                continue
            visited.add(current)
            for callee in self.call_graph.get(current, []):
                if callee not in visited:
                    queue.append(path + [callee])
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "call_graph": {k: list(v) for k, v in self.call_graph.items()},
            "reverse_call_graph": {k: list(v) for k, v in self.reverse_call_graph.items()},
            "calls": {k: [c.to_dict() for c in v] for k, v in self.calls.items()},
            "references": {k: v.to_dict() for k, v in self.references.items()},
            "stats": {
                "method_count": len(self.references),
                "call_edges": sum(len(v) for v in self.call_graph.values()),
            },
        }
