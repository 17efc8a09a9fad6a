import unittest

from apexgraph.errors import SchemaNotLoadedError
from apexgraph.schema import (
    CORE_RECORD_TYPES,
    FieldSchema,
    InMemorySchemaRegistry,
    RecordSchema,
    ValidationRule,
    create_standard_stub,
    infer_field_type,
)


def invoice_schema() -> RecordSchema:
    schema = RecordSchema(
        name="Invoice__c",
        label="Invoice",
        validation_rules=[
            ValidationRule(name="AmountPositive", error_condition="Amount__c < 0",
                           error_message="Amount must be positive"),
            ValidationRule(name="Retired", active=False),
        ],
    )
    schema.add_field(FieldSchema(name="Amount__c", type="Currency", required=True))
    schema.add_field(FieldSchema(name="Account__c", type="Lookup", reference_to="Account"))
    return schema


class RegistryLifecycleTests(unittest.TestCase):
    def test_lookups_before_load_raise(self) -> None:
        registry = InMemorySchemaRegistry()
        self.assertFalse(registry.is_loaded)
        with self.assertRaises(SchemaNotLoadedError):
            registry.get_object("Account")
        with self.assertRaises(SchemaNotLoadedError):
            registry.get_all_objects()

    def test_load_registers_standard_stubs(self) -> None:
        registry = InMemorySchemaRegistry()
        registry.load()
        self.assertTrue(registry.is_loaded)
        self.assertEqual(sorted(registry.get_all_objects()), sorted(CORE_RECORD_TYPES))

        account = registry.get_object("Account")
        self.assertTrue(account.is_standard)
        self.assertEqual(account.fields["ParentId"].reference_to, "Account")

    def test_stubs_can_be_disabled(self) -> None:
        registry = InMemorySchemaRegistry([invoice_schema()], include_standard_stubs=False)
        registry.load()
        self.assertEqual(registry.get_all_objects(), ["Invoice__c"])
        self.assertIsNone(registry.get_object("Account"))

    def test_supplied_schema_wins_over_stub(self) -> None:
        custom_account = RecordSchema(name="Account", label="Customer")
        registry = InMemorySchemaRegistry([custom_account])
        registry.load()
        self.assertEqual(registry.get_object("Account").label, "Customer")

    def test_register_after_load(self) -> None:
        registry = InMemorySchemaRegistry(include_standard_stubs=False)
        registry.load()
        registry.register(invoice_schema())
        self.assertIsNotNone(registry.get_object("Invoice__c"))


class RegistryLookupTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = InMemorySchemaRegistry([invoice_schema()])
        self.registry.load()

    def test_field_lookup(self) -> None:
        amount = self.registry.get_field("Invoice__c", "Amount__c")
        self.assertEqual(amount.type, "Currency")
        self.assertTrue(amount.required)
        self.assertIsNone(self.registry.get_field("Invoice__c", "Missing__c"))
        self.assertIsNone(self.registry.get_field("Nope__c", "Name"))

    def test_only_active_validation_rules(self) -> None:
        rules = self.registry.get_validation_rules("Invoice__c")
        self.assertEqual([r.name for r in rules], ["AmountPositive"])
        self.assertEqual(self.registry.get_validation_rules("Nope__c"), [])

    def test_resolve_field_path_follows_references(self) -> None:
        hops = self.registry.resolve_field_path("Contact.AccountId.Industry")
        self.assertEqual([(h["object"], h["field"]) for h in hops],
                         [("Contact", "AccountId"), ("Account", "Industry")])
        self.assertIsNone(self.registry.resolve_field_path("Account"))
        self.assertIsNone(self.registry.resolve_field_path("Nope__c.Name"))

    def test_core_objects(self) -> None:
        self.assertTrue(self.registry.is_core_object("Opportunity"))
        self.assertFalse(self.registry.is_core_object("Invoice__c"))

    def test_serialization(self) -> None:
        data = self.registry.get_object("Invoice__c").to_dict()
        self.assertEqual(data["label"], "Invoice")
        self.assertEqual([f["name"] for f in data["fields"]], ["Amount__c", "Account__c"])


class FieldTypeInferenceTests(unittest.TestCase):
    def test_infer_field_type(self) -> None:
        cases = {
            "Id": "Id",
            "AccountId": "Id",
            "CloseDate": "DateTime",
            "Email": "Email",
            "Phone": "Phone",
            "AnnualRevenue": "Currency",
            "NumberOfEmployees": "Integer",
            "Probability": "Percent",
            "IsActive": "Boolean",
            "Name": "String",
        }
        for name, expected in cases.items():
            self.assertEqual(infer_field_type(name), expected, name)

    def test_stub_without_known_fields_gets_defaults(self) -> None:
        stub = create_standard_stub("Asset")
        self.assertEqual(list(stub.fields), ["Id", "Name", "OwnerId", "CreatedDate", "LastModifiedDate"])
        self.assertTrue(stub.fields["Id"].unique)


if __name__ == "__main__":
    unittest.main()
