"""
Graph build pipeline.

Parsed units go through four stages:
1. Symbol table + type resolver per unit (independent, may run in a pool)
2. Graph population through a single writer
3. Reference resolution over raw source (calls, field accesses)
4. Freeze: the graph becomes read-only for analysis
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .resolver import ReferenceResolver
from .semantic_graph import SemanticGraph
from ..config import get_settings
from ..core.entities import ParsedUnit
from ..errors import SchemaNotLoadedError
from ..schema.base_registry import BaseSchemaRegistry
from ..symbols.symbol_table import SymbolTable
from ..symbols.type_resolver import MutationAnnotation, TypeResolver

logger = logging.getLogger(__name__)


# --- CONFIGURATION ---
INPUT_FILE = "parsed_units.json"


@dataclass
class GraphBuild:
    """A frozen graph and the resolver that enriched it."""
    graph: SemanticGraph
    resolver: ReferenceResolver

    def to_dict(self) -> Dict[str, Any]:
        return {
            "graph": self.graph.to_dict(),
            "references": self.resolver.to_dict()
        }


UnitTyping = Tuple[TypeResolver, Dict[str, List[MutationAnnotation]]]


def type_unit(unit: ParsedUnit,
              schema_registry: Optional[BaseSchemaRegistry] = None) -> UnitTyping:
    """Build a unit's symbol table and resolve its mutation targets."""
    resolver = TypeResolver(SymbolTable(unit).build_from_unit(), schema_registry)
    return resolver, resolver.annotate_unit(unit)


def build_semantic_graph(units: Sequence[Union[ParsedUnit, Dict[str, Any]]],
                         sources: Optional[Mapping[str, str]] = None,
                         schema_registry: Optional[BaseSchemaRegistry] = None,
                         max_workers: Optional[int] = None) -> GraphBuild:
    """
    Build and freeze the semantic graph for a batch of units.

    Args:
        units: Parsed units (or their dict form as emitted by the parser)
        sources: Raw source text keyed by unit file
        schema_registry: Loaded registry used for record-type metadata
        max_workers: Threads for per-unit typing (default: APEXGRAPH_BUILD_WORKERS)

    Returns:
        GraphBuild with the frozen graph and its reference resolver

    Raises:
        SchemaNotLoadedError: if a registry is passed before load()
        MissingNodeError: if population breaks the graph's edge precondition
    """
    if schema_registry is not None and not schema_registry.is_loaded:
        raise SchemaNotLoadedError("Schema registry must be loaded before building a graph")

    parsed = [u if isinstance(u, ParsedUnit) else ParsedUnit.from_dict(u) for u in units]
    workers = max_workers or get_settings().build_workers

    logger.info("Building graph for %d units with %d worker(s)", len(parsed), workers)

    if workers > 1 and len(parsed) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            typings = list(executor.map(lambda u: type_unit(u, schema_registry), parsed))
    else:
        typings = [type_unit(u, schema_registry) for u in parsed]

    # Single writer: every node and edge goes in from this thread
    graph = SemanticGraph()
    merged: Dict[str, List[MutationAnnotation]] = {}
    for unit, (type_resolver, annotations) in zip(parsed, typings):
        graph.add_unit(unit, type_resolver=type_resolver, annotations=annotations)
        merged.update(annotations)

    resolver = ReferenceResolver(graph, parsed, sources, annotations=merged)
    graph.freeze()

    return GraphBuild(graph=graph, resolver=resolver)


def load_units(path: str) -> Tuple[List[ParsedUnit], Dict[str, str]]:
    """
    Read parser output from a JSON file.

    Each entry is a unit dict; an optional "source" key carries the
    unit's raw text.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    units = []
    sources = {}
    for entry in data:
        unit = ParsedUnit.from_dict(entry)
        units.append(unit)
        if entry.get("source") is not None:
            sources[unit.file or unit.name] = entry["source"]
    return units, sources


if __name__ == "__main__":
    from ..config import configure_logging
    from ..analysis.graph_analyzer import GraphAnalyzer

    configure_logging()

    # 1. Load Data
    units, sources = load_units(INPUT_FILE)

    # 2. Build Graph
    print("[*] Building semantic graph...")
    build = build_semantic_graph(units, sources)

    stats = build.graph.get_stats()
    print(f"\n[INFO] Graph Stats: {stats['total_nodes']} nodes, {stats['total_edges']} edges")
    print(f"[INFO] Edge types: {stats['edges_by_type']}")
    print(f"[INFO] Cycles: {stats['cycle_count']}")

    # 3. Report
    analyzer = GraphAnalyzer(build.graph)
    print("\n[*] Top hotspots:")
    for hotspot in analyzer.find_hotspots(5):
        print(f"  [HOT] {hotspot.node.id} (criticality {hotspot.criticality})")

    issues = analyzer.detect_issues()
    print(f"\n[INFO] Dead methods: {len(issues.dead_methods)}, "
          f"unused fields: {len(issues.unused_fields)}, "
          f"high complexity: {len(issues.high_complexity)}")
