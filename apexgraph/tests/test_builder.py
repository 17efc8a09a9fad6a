"""
End-to-end tests for the graph build pipeline.

Run with: python -m apexgraph.tests.test_builder
"""

import json
import os
import tempfile

from apexgraph.analysis.graph_analyzer import GraphAnalyzer
from apexgraph.core.entities import (
    MutationOperation,
    Parameter,
    ParsedField,
    ParsedMethod,
    ParsedUnit,
    QueryOperation,
)
from apexgraph.errors import GraphFrozenError, SchemaNotLoadedError
from apexgraph.graph.builder import build_semantic_graph, load_units
from apexgraph.graph.relationships import EdgeType, NodeKind
from apexgraph.schema.memory_registry import InMemorySchemaRegistry


HANDLER_SOURCE = "\n".join([
    "public class Handler {",
    "    public void save(List<Account> records) {",
    "        List<Account> rows = [SELECT Id, Name FROM Account];",
    "        update records;",
    "    }",
    "}",
])


def handler_unit() -> ParsedUnit:
    return ParsedUnit(
        name="Handler",
        file="Handler.cls",
        methods=[
            ParsedMethod(
                name="save",
                return_type="void",
                parameters=[Parameter("records", "List<Account>")],
                line=2,
                end_line=5,
                queries=[QueryOperation("Account", ["Id", "Name"], line=3)],
                mutations=[MutationOperation("update", "records", line=4)],
            )
        ],
    )


def test_handler_scenario():
    build = build_semantic_graph([handler_unit()], {"Handler.cls": HANDLER_SOURCE})
    graph = build.graph
    save = graph.node_id(NodeKind.METHOD, "Handler.save")
    account = graph.node_id(NodeKind.RECORD_TYPE, "Account")

    reads = graph.get_edge(save, account, EdgeType.READS)
    assert reads is not None
    assert reads.attributes.fields == ["Id", "Name"]
    assert reads.attributes.line == 3

    update = graph.get_edge(save, account, EdgeType.UPDATE)
    assert update is not None
    assert update.attributes.target == "records"
    assert update.attributes.target_type == "List<Account>"
    assert update.attributes.inferred is False
    assert len(graph.get_edges_between([save, account])) == 2

    assert graph.has_node("record_field:Account.Id")
    assert graph.has_node("record_field:Account.Name")

    analyzer = GraphAnalyzer(graph, build.resolver)
    coupling = analyzer.find_class_coupling()
    assert [(r.unit_name, r.coupled_to, r.coupling_count) for r in coupling] == [
        ("Handler", ["Account"], 1)
    ]

    # Only the containment edge points at save, so it is flagged
    issues = analyzer.detect_issues()
    assert [m.name for m in issues.dead_methods] == ["Handler.save"]

    print("Handler scenario: PASSED")


def test_build_freezes_graph():
    build = build_semantic_graph([handler_unit()])
    assert build.graph.is_frozen

    try:
        build.graph.add_node(NodeKind.UNIT, "Late")
        assert False, "Expected GraphFrozenError"
    except GraphFrozenError:
        pass

    print("Frozen after build: PASSED")


def test_registry_enriches_record_types():
    registry = InMemorySchemaRegistry()
    registry.load()
    build = build_semantic_graph([handler_unit()], schema_registry=registry)

    account = build.graph.get_node("record_type:Account")
    assert account.attributes.label == "Account"
    assert account.attributes.is_standard is True
    assert build.graph.get_node("record_field:Account.Id").attributes.type == "Id"

    # Without a registry the attributes stay empty
    bare = build_semantic_graph([handler_unit()])
    assert bare.graph.get_node("record_type:Account").attributes.is_standard is None

    print("Registry enrichment: PASSED")


def test_unloaded_registry_is_rejected():
    try:
        build_semantic_graph([handler_unit()], schema_registry=InMemorySchemaRegistry())
        assert False, "Expected SchemaNotLoadedError"
    except SchemaNotLoadedError:
        pass

    print("Unloaded registry: PASSED")


def batch():
    units = []
    for i in range(4):
        units.append(ParsedUnit(
            name=f"Service{i}",
            file=f"Service{i}.cls",
            methods=[
                ParsedMethod(
                    name="load",
                    queries=[QueryOperation("Contact", ["Id", "Email"])],
                    mutations=[MutationOperation("insert", "contacts")],
                ),
                ParsedMethod(name="helper", complexity=4),
            ],
            fields=[ParsedField(name="cache", type="Map<Id, Contact>")],
        ))
    return units


def test_parallel_build_matches_sequential():
    sequential = build_semantic_graph(batch(), max_workers=1).graph
    parallel = build_semantic_graph(batch(), max_workers=4).graph

    assert [n.id for n in parallel.nodes()] == [n.id for n in sequential.nodes()]
    assert [e.id for e in parallel.edges()] == [e.id for e in sequential.edges()]
    assert parallel.get_stats() == sequential.get_stats()

    print("Parallel build: PASSED")


def test_dict_input_in_parser_format():
    raw = {
        "name": "Sync",
        "file": "Sync.cls",
        "fileType": "class",
        "methods": [{
            "name": "run",
            "returnType": "void",
            "line": 2,
            "endLine": 6,
            "soql": [{"object": "Contact", "fields": ["Id", {"subquery": "x"}]}],
            "dml": [
                {"type": "INSERT", "target": "contacts"},
                {"type": "update", "target": "mystery"},
            ],
        }],
    }
    build = build_semantic_graph([raw])
    graph = build.graph

    insert = graph.get_edge("method:Sync.run", "record_type:Contact", EdgeType.INSERT)
    assert insert is not None
    assert insert.attributes.inferred is True
    assert insert.attributes.target_type == "List<Contact>"

    # The unresolved mutation leaves no trace in the graph
    assert graph.edges(EdgeType.UPDATE) == []
    assert not graph.has_node("record_type:mystery")
    assert graph.get_edge("method:Sync.run", "record_type:Contact", EdgeType.READS).attributes.fields == ["Id"]

    users = build.resolver.find_record_type_users("Contact")
    assert users == [
        {"method": "Sync.run", "type": "read", "record_type": "Contact"},
        {"method": "Sync.run", "type": "insert", "record_type": "Contact"},
    ]

    print("Parser-format input: PASSED")


def test_each_write_keeps_its_record_type():
    unit = ParsedUnit(name="Pair", methods=[
        ParsedMethod(
            name="saveBoth",
            parameters=[Parameter("a", "List<Account>"), Parameter("b", "List<Account>")],
            mutations=[MutationOperation("insert", "a"), MutationOperation("insert", "b")],
        )
    ])
    build = build_semantic_graph([unit])

    refs = build.resolver.get_method_references("Pair.saveBoth")
    assert [m.record_type for m in refs.mutations] == ["Account", "Account"]
    assert len(build.resolver.find_record_type_users("Account")) == 2
    assert len(build.graph.edges(EdgeType.INSERT)) == 1

    print("Per-write record types: PASSED")


def test_mutation_edge_types():
    assert EdgeType.for_mutation("insert") == EdgeType.INSERT
    assert EdgeType.for_mutation("MERGE") == EdgeType.MERGE
    assert EdgeType.for_mutation("calls") == EdgeType.WRITES
    assert EdgeType.for_mutation("truncate") == EdgeType.WRITES

    print("Mutation edge types: PASSED")


def test_load_units():
    entries = [
        dict(handler_unit().to_dict(), source=HANDLER_SOURCE),
        {"name": "NoFile", "methods": [{"name": "x"}], "source": "class NoFile {}"},
        {"name": "NoSource"},
    ]
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "units.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(entries, f)

        units, sources = load_units(path)

    assert [u.name for u in units] == ["Handler", "NoFile", "NoSource"]
    assert units[0].methods[0].queries[0].fields == ["Id", "Name"]
    assert sources == {"Handler.cls": HANDLER_SOURCE, "NoFile": "class NoFile {}"}

    print("load_units: PASSED")


def test_build_serialization():
    build = build_semantic_graph([handler_unit()], {"Handler.cls": HANDLER_SOURCE})
    data = build.to_dict()

    assert data["graph"]["stats"]["node_count"] == build.graph.get_stats()["total_nodes"]
    assert data["references"]["stats"]["method_count"] == 1
    assert data["references"]["call_graph"] == {"Handler.save": []}

    print("Build serialization: PASSED")


def run_tests():
    """Run all tests."""
    print("=" * 60)
    print("GRAPH BUILD PIPELINE TESTS")
    print("=" * 60)
    print()

    test_handler_scenario()
    test_build_freezes_graph()
    test_registry_enriches_record_types()
    test_unloaded_registry_is_rejected()
    test_parallel_build_matches_sequential()
    test_dict_input_in_parser_format()
    test_each_write_keeps_its_record_type()
    test_mutation_edge_types()
    test_load_units()
    test_build_serialization()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    run_tests()
