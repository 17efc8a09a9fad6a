"""
Schema metadata models for external record types.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


@dataclass
class FieldSchema:
    """
    Declared metadata for one field of a record type.

    Attributes:
        name: API name of the field
        type: Declared data type ('Id', 'String', 'Lookup', ...)
        reference_to: Target record type for lookup/master-detail fields
    """
    name: str
    label: Optional[str] = None
    type: str = "String"
    required: bool = False
    unique: bool = False
    length: Optional[int] = None
    reference_to: Optional[str] = None
    picklist_values: List[str] = field(default_factory=list)
    description: Optional[str] = None
    is_standard: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label or self.name,
            "type": self.type,
            "required": self.required,
            "unique": self.unique,
            "length": self.length,
            "reference_to": self.reference_to,
            "picklist_values": self.picklist_values,
            "description": self.description,
            "is_standard": self.is_standard
        }


@dataclass
class ValidationRule:
    """An active or inactive validation rule on a record type."""
    name: str
    active: bool = True
    error_condition: str = ""
    error_message: str = ""
    error_display_field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "active": self.active,
            "error_condition": self.error_condition,
            "error_message": self.error_message,
            "error_display_field": self.error_display_field
        }


@dataclass
class RecordSchema:
    """
    Schema of an external record type.

    Fields are keyed by API name in declaration order.
    """
    name: str
    label: Optional[str] = None
    is_standard: bool = False
    fields: Dict[str, FieldSchema] = field(default_factory=dict)
    validation_rules: List[ValidationRule] = field(default_factory=list)

    def add_field(self, field_schema: FieldSchema) -> None:
        self.fields[field_schema.name] = field_schema

    @property
    def active_validation_rules(self) -> List[ValidationRule]:
        return [rule for rule in self.validation_rules if rule.active]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label or self.name,
            "is_standard": self.is_standard,
            "fields": [f.to_dict() for f in self.fields.values()],
            "validation_rules": [r.to_dict() for r in self.validation_rules]
        }
