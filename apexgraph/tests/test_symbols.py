"""
Tests for symbol tables and type resolution.

Run with: python -m apexgraph.tests.test_symbols
"""

from apexgraph.core.entities import (
    MutationOperation,
    Parameter,
    ParsedField,
    ParsedMethod,
    ParsedUnit,
    QueryOperation,
)
from apexgraph.schema.memory_registry import InMemorySchemaRegistry
from apexgraph.symbols.symbol_table import SymbolKind, SymbolTable, extract_base_type
from apexgraph.symbols.type_resolver import (
    UNKNOWN_TYPE,
    RhsDescriptor,
    RhsKind,
    TypeResolver,
)


def sample_unit() -> ParsedUnit:
    return ParsedUnit(
        name="AccountService",
        methods=[
            ParsedMethod(
                name="save",
                return_type="void",
                parameters=[Parameter("accounts", "List<Account>")],
                queries=[QueryOperation("Account", ["Id", "Name"], line=4)],
                mutations=[MutationOperation("update", "accounts", line=5)],
            ),
            ParsedMethod(name="count", return_type="Integer"),
        ],
        constructors=[ParsedMethod(name="AccountService", is_constructor=True)],
        fields=[
            ParsedField(name="cache", type="Map<Id, Account>"),
            ParsedField(name="label", type="String"),
        ],
    )


def test_extract_base_type():
    assert extract_base_type("List<Account>") == "Account"
    assert extract_base_type("Account[]") == "Account"
    assert extract_base_type("Account") == "Account"
    assert extract_base_type("Set<Id>") == "Id"
    assert extract_base_type("Map<Id, Account>") == "Account"
    assert extract_base_type("List<List<Account>>") == "List<Account>"
    assert extract_base_type("Map<Id, List<Contact>>") == "List<Contact>"
    assert extract_base_type("List<Account>[]") == "Account"
    # Malformed generics come back untouched
    assert extract_base_type("List<Account") == "List<Account"
    assert extract_base_type("List<>") == "List<>"
    assert extract_base_type("") is None
    assert extract_base_type(None) is None

    print("extract_base_type: PASSED")


def test_scope_stack():
    table = SymbolTable()
    assert table.depth == 1

    table.add_symbol("x", "String")
    table.push_scope()
    table.add_symbol("x", "Integer")
    assert table.resolve_symbol("x").type == "Integer"

    table.pop_scope()
    assert table.resolve_symbol("x").type == "String"

    # The bottom scope is never popped
    table.pop_scope()
    table.pop_scope()
    assert table.depth == 1
    assert table.resolve_symbol("x") is not None
    assert table.resolve_symbol("missing") is None
    assert table.resolve_symbol("") is None

    print("Scope stack: PASSED")


def test_build_from_unit():
    table = SymbolTable(sample_unit()).build_from_unit()

    assert table.resolve_symbol("cache").kind == SymbolKind.FIELD
    assert table.resolve_symbol("save").kind == SymbolKind.METHOD
    assert table.resolve_symbol("count").type == "Integer"
    ctor = table.resolve_symbol("AccountService")
    assert ctor.kind == SymbolKind.CONSTRUCTOR
    assert ctor.type == "AccountService"

    summary = table.get_type_summary()
    assert [f["name"] for f in summary["unit_fields"]] == ["cache", "label"]
    assert len(summary["unit_methods"]) == 3

    print("build_from_unit: PASSED")


def test_locals_shadow_unit_fields():
    unit = sample_unit()
    table = SymbolTable(unit).build_from_unit()

    table.enter_method(ParsedMethod(name="m", parameters=[Parameter("label", "Integer")]))
    assert table.resolve_symbol("label").type == "Integer"
    assert table.resolve_symbol("label").kind == SymbolKind.PARAMETER
    table.exit_method()

    assert table.resolve_symbol("label").type == "String"

    print("Shadowing: PASSED")


def test_resolve_field_access():
    table = SymbolTable(sample_unit()).build_from_unit()
    table.add_symbol("acc", "Account")
    table.add_symbol("accs", "List<Account>")

    two = table.resolve_field_access("acc.Industry")
    assert two.variable == "acc"
    assert two.variable_type == "Account"
    assert two.base_type == "Account"
    assert two.field == "Industry"
    assert two.nested_path is None

    three = table.resolve_field_access("accs.Parent.Industry")
    assert three.base_type == "Account"
    assert three.field is None
    assert three.nested_path == "Parent.Industry"

    # Single segment: context first, then declared names
    bare = table.resolve_field_access("Industry", context="Account")
    assert bare.base_type == "Account" and bare.field == "Industry"
    assert table.resolve_field_access("cache").base_type == "Account"
    assert table.resolve_field_access("Nothing") is None

    assert table.resolve_field_access("ghost.Name") is None
    assert table.resolve_field_access("") is None

    print("Field access: PASSED")


def test_field_access_cache():
    table = SymbolTable()
    table.add_symbol("acc", "Account")

    first = table.resolve_field_access("acc.Name")
    assert table.resolve_field_access("acc.Name") is first
    assert table.resolve_field_access("acc.Name", context="Contact") is not first

    print("Field access cache: PASSED")


def test_method_call_types():
    resolver = TypeResolver(SymbolTable())
    assert resolver.resolve_method_call_type("insert", "Database") == "List<Database.SaveResult>"
    assert resolver.resolve_method_call_type("today", "System") == "Date"
    assert resolver.resolve_method_call_type("whatever", "Custom") == UNKNOWN_TYPE
    assert resolver.resolve_method_call_type("whatever") == UNKNOWN_TYPE

    print("Method call types: PASSED")


def test_infer_assignment_type():
    table = SymbolTable()
    table.add_symbol("accounts", "List<Account>")
    table.add_symbol("name", "String")
    resolver = TypeResolver(table)

    assert resolver.infer_assignment_type(RhsDescriptor(RhsKind.QUERY, record_type="Contact")) == "List<Contact>"
    assert resolver.infer_assignment_type(RhsDescriptor(RhsKind.QUERY)) == "List<SObject>"
    assert resolver.infer_assignment_type(
        RhsDescriptor(RhsKind.INSTANTIATION, type_name="Map<Id, Account>")
    ) == "Map<Id, Account>"
    assert resolver.infer_assignment_type(
        RhsDescriptor(RhsKind.METHOD_CALL, method_name="query", receiver_type="Database")
    ) == "List<SObject>"
    assert resolver.infer_assignment_type(RhsDescriptor(RhsKind.INDEX_ACCESS, variable="accounts")) == "Account"
    assert resolver.infer_assignment_type(RhsDescriptor(RhsKind.INDEX_ACCESS, variable="name")) == UNKNOWN_TYPE
    assert resolver.infer_assignment_type(
        RhsDescriptor(RhsKind.DECLARED, declared_type="Decimal")
    ) == "Decimal"
    assert resolver.infer_assignment_type(RhsDescriptor(RhsKind.DECLARED)) == UNKNOWN_TYPE

    print("Assignment inference: PASSED")


def test_recorded_assignments_feed_later_lookups():
    resolver = TypeResolver(SymbolTable())
    resolver.record_assignment("rows", RhsDescriptor(RhsKind.QUERY, record_type="Lead"))
    assert resolver.infer_assignment_type(RhsDescriptor(RhsKind.INDEX_ACCESS, variable="rows")) == "Lead"

    method = ParsedMethod(name="m", parameters=[Parameter("ids", "Set<Id>")])
    assert resolver.build_method_type_map(method) == {"ids": "Set<Id>", "rows": "List<Lead>"}

    resolver.clear_inferences()
    assert resolver.type_inferences == {}

    print("Recorded assignments: PASSED")


def test_dml_target_resolution():
    unit = sample_unit()
    resolver = TypeResolver(SymbolTable(unit).build_from_unit())

    assert resolver.resolve_dml_target_type("accounts", {"accounts": "List<Account>"}) == "List<Account>"
    # Falls back to the symbol table
    assert resolver.resolve_dml_target_type("cache", {}) == "Map<Id, Account>"
    assert resolver.resolve_dml_target_type("unknown", {}) is None
    assert resolver.resolve_dml_target_type(None) is None

    print("DML target resolution: PASSED")


def test_annotate_mutation():
    unit = sample_unit()
    resolver = TypeResolver(SymbolTable(unit).build_from_unit())
    save = unit.methods[0]

    declared = resolver.annotate_mutation(save.mutations[0], save)
    assert declared.resolved
    assert declared.record_type == "Account"
    assert declared.target_type == "List<Account>"
    assert declared.inferred is False
    assert declared.constraints is None

    by_name = ParsedMethod(
        name="sync",
        queries=[QueryOperation("Opportunity", ["Id"])],
        mutations=[MutationOperation("upsert", "opportunitiesToSync")],
    )
    inferred = resolver.annotate_mutation(by_name.mutations[0], by_name)
    assert inferred.record_type == "Opportunity"
    assert inferred.target_type == "List<Opportunity>"
    assert inferred.inferred is True

    lost = resolver.annotate_mutation(MutationOperation("delete", "things"), ParsedMethod(name="x"))
    assert not lost.resolved
    assert lost.to_dict()["record_type"] is None

    print("Mutation annotation: PASSED")


def test_infer_from_plural_names():
    resolver = TypeResolver(SymbolTable(sample_unit()).build_from_unit())
    queries = [QueryOperation("Case", ["Id"]), QueryOperation("Opportunity", ["Id"]),
               QueryOperation("Address__c", ["Id"])]

    assert resolver.infer_from_queries("caseList", queries) == "Case"
    assert resolver.infer_from_queries("casesToClose", queries) == "Case"
    assert resolver.infer_from_queries("opportunitiesToSync", queries) == "Opportunity"
    assert resolver.infer_from_queries("address__cs", queries) == "Address__c"
    assert resolver.infer_from_queries("widgets", queries) is None
    assert resolver.infer_from_queries(None, queries) is None

    print("Plural name inference: PASSED")


def test_annotate_unit_keys_by_member():
    unit = sample_unit()
    resolver = TypeResolver(SymbolTable(unit).build_from_unit())
    annotations = resolver.annotate_unit(unit)

    assert set(annotations) == {"AccountService.save", "AccountService.count",
                                "AccountService.AccountService"}
    assert [a.record_type for a in annotations["AccountService.save"]] == ["Account"]
    assert annotations["AccountService.count"] == []
    assert resolver.symbol_table.depth == 1

    print("Unit annotation: PASSED")


def test_schema_constraints():
    registry = InMemorySchemaRegistry()
    registry.load()
    unit = sample_unit()
    resolver = TypeResolver(SymbolTable(unit).build_from_unit(), registry)

    annotation = resolver.annotate_mutation(unit.methods[0].mutations[0], unit.methods[0])
    assert annotation.constraints["name"] == "Account"
    assert annotation.constraints["is_standard"] is True
    assert "Industry" in annotation.constraints["fields"]

    id_field = resolver.get_field_constraints("Account", "Id")
    assert id_field["type"] == "Id"
    assert id_field["required"] is True
    assert resolver.get_field_constraints("Account", "Nope") is None
    assert resolver.get_object_constraints("Custom__c") is None

    # Without a loaded registry there is nothing to report
    assert TypeResolver(SymbolTable(), InMemorySchemaRegistry()).get_object_constraints("Account") is None

    print("Schema constraints: PASSED")


def run_tests():
    """Run all tests."""
    print("=" * 60)
    print("SYMBOL AND TYPE RESOLUTION TESTS")
    print("=" * 60)
    print()

    print("--- Symbol Table ---")
    test_extract_base_type()
    test_scope_stack()
    test_build_from_unit()
    test_locals_shadow_unit_fields()
    test_resolve_field_access()
    test_field_access_cache()

    print("\n--- Type Resolver ---")
    test_method_call_types()
    test_infer_assignment_type()
    test_recorded_assignments_feed_later_lookups()
    test_dml_target_resolution()
    test_annotate_mutation()
    test_infer_from_plural_names()
    test_annotate_unit_keys_by_member()
    test_schema_constraints()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    run_tests()
