"""
In-memory schema registry implementation.

Holds record schemas supplied by the caller and, by default, stub
schemas for the core standard record types so that common objects
resolve even without retrieved metadata.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .base_registry import BaseSchemaRegistry
from .models import FieldSchema, RecordSchema
from ..errors import SchemaNotLoadedError

logger = logging.getLogger(__name__)


CORE_RECORD_TYPES = [
    "Account",
    "Contact",
    "Lead",
    "Opportunity",
    "Case",
    "Campaign",
    "Task",
    "Event",
    "User",
    "Product2",
    "Pricebook2",
    "PricebookEntry",
    "OpportunityLineItem",
    "Quote",
    "QuoteLineItem",
    "Contract",
    "Order",
    "OrderItem",
    "Asset",
]

# Field names known for the most common standard objects
STANDARD_FIELDS: Dict[str, List[str]] = {
    "Account": ["Id", "Name", "Industry", "Type", "ParentId", "OwnerId", "AnnualRevenue",
                "NumberOfEmployees", "BillingCity", "BillingState", "BillingCountry"],
    "Contact": ["Id", "FirstName", "LastName", "Name", "Email", "Phone", "AccountId",
                "OwnerId", "MailingCity", "MailingState"],
    "Lead": ["Id", "FirstName", "LastName", "Name", "Email", "Phone", "Company", "Status",
             "OwnerId", "ConvertedAccountId", "ConvertedContactId"],
    "Opportunity": ["Id", "Name", "Amount", "StageName", "CloseDate", "AccountId", "OwnerId",
                    "Probability", "IsClosed", "IsWon"],
    "Case": ["Id", "Subject", "Description", "Status", "Priority", "AccountId", "ContactId",
             "OwnerId", "IsClosed"],
    "Campaign": ["Id", "Name", "Status", "Type", "StartDate", "EndDate", "OwnerId", "IsActive"],
    "Task": ["Id", "Subject", "Description", "Status", "Priority", "WhatId", "WhoId", "OwnerId",
             "ActivityDate", "IsClosed"],
    "Event": ["Id", "Subject", "Description", "StartDateTime", "EndDateTime", "WhatId", "WhoId",
              "OwnerId"],
    "User": ["Id", "Username", "Email", "FirstName", "LastName", "Name", "IsActive", "ProfileId",
             "UserRoleId"],
    "Product2": ["Id", "Name", "ProductCode", "Description", "IsActive", "Family"],
}

DEFAULT_STANDARD_FIELDS = ["Id", "Name", "OwnerId", "CreatedDate", "LastModifiedDate"]

# Lookup fields on standard objects and the record type they point at
STANDARD_REFERENCES = {
    "ParentId": "Account",
    "AccountId": "Account",
    "ContactId": "Contact",
    "OwnerId": "User",
    "ProfileId": None,
    "UserRoleId": None,
}


def infer_field_type(field_name: str) -> str:
    """Guess a field's type from its API name."""
    if field_name == "Id" or field_name.endswith("Id"):
        return "Id"
    if "Date" in field_name or "Time" in field_name:
        return "DateTime"
    if "Email" in field_name:
        return "Email"
    if "Phone" in field_name:
        return "Phone"
    if any(word in field_name for word in ("Amount", "Revenue", "Price")):
        return "Currency"
    if "Number" in field_name or "Count" in field_name:
        return "Integer"
    if "Probability" in field_name or "Percent" in field_name:
        return "Percent"
    if field_name.startswith("Is") or field_name.startswith("Has"):
        return "Boolean"
    return "String"


def create_standard_stub(name: str) -> RecordSchema:
    """Build a stub schema for a standard record type."""
    schema = RecordSchema(name=name, label=name, is_standard=True)
    for field_name in STANDARD_FIELDS.get(name, DEFAULT_STANDARD_FIELDS):
        schema.add_field(FieldSchema(
            name=field_name,
            label=field_name,
            type=infer_field_type(field_name),
            required=field_name == "Id",
            unique=field_name == "Id",
            reference_to=STANDARD_REFERENCES.get(field_name),
            is_standard=True
        ))
    return schema


class InMemorySchemaRegistry(BaseSchemaRegistry):
    """
    Schema registry backed by a dictionary.

    Suitable for:
    - Tests
    - Callers that already retrieved metadata and hold it in memory
    """

    def __init__(self, objects: Optional[Iterable[RecordSchema]] = None,
                 include_standard_stubs: bool = True):
        self._pending: List[RecordSchema] = list(objects or [])
        self._include_standard_stubs = include_standard_stubs
        self._objects: Dict[str, RecordSchema] = {}
        self._loaded = False

    # ─── Lifecycle ────────────────────────────────

    def load(self) -> None:
        if self._loaded:
            return

        for schema in self._pending:
            self._objects[schema.name] = schema
        self._pending = []

        if self._include_standard_stubs:
            for name in CORE_RECORD_TYPES:
                if name not in self._objects:
                    self._objects[name] = create_standard_stub(name)

        self._loaded = True
        logger.info("Schema registry loaded with %d record types", len(self._objects))

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def register(self, schema: RecordSchema) -> None:
        """Add or replace a record schema (allowed before or after load)."""
        if self._loaded:
            self._objects[schema.name] = schema
        else:
            self._pending.append(schema)

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise SchemaNotLoadedError("Schema registry queried before load()")

    # ─── Lookups ──────────────────────────────────

    def get_object(self, name: str) -> Optional[RecordSchema]:
        self._require_loaded()
        return self._objects.get(name)

    def get_field(self, record_type: str, field_name: str) -> Optional[FieldSchema]:
        schema = self.get_object(record_type)
        if schema is None:
            return None
        return schema.fields.get(field_name)

    def get_all_objects(self) -> List[str]:
        self._require_loaded()
        return list(self._objects)

    def is_core_object(self, name: str) -> bool:
        return name in CORE_RECORD_TYPES

    def resolve_field_path(self, path: str) -> Optional[List[Dict]]:
        """
        Resolve a dotted path like 'Contact.AccountId.Industry'.

        Each hop follows the previous field's reference_to. Returns one
        entry per resolved segment, or None if nothing resolved.
        """
        parts = path.split(".")
        if len(parts) < 2:
            return None

        current = self.get_object(parts[0])
        resolved = []

        for index, field_name in enumerate(parts[1:]):
            if current is None:
                break
            field_schema = current.fields.get(field_name)
            if field_schema is None:
                continue
            resolved.append({
                "object": current.name,
                "field": field_name,
                "type": field_schema.type,
                "info": field_schema
            })
            # Follow relationships to the next hop
            if field_schema.reference_to and index < len(parts) - 2:
                current = self._objects.get(field_schema.reference_to)

        return resolved or None
