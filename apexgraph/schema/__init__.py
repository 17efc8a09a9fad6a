"""
Schema module - metadata for external record types.

The registry is an explicit collaborator: construct one, call load(),
and pass it to the type resolver and graph builder.
"""

from .models import (
    FieldSchema,
    ValidationRule,
    RecordSchema
)

from .base_registry import BaseSchemaRegistry

from .memory_registry import (
    CORE_RECORD_TYPES,
    InMemorySchemaRegistry,
    create_standard_stub,
    infer_field_type
)

__all__ = [
    "FieldSchema",
    "ValidationRule",
    "RecordSchema",
    "BaseSchemaRegistry",
    "CORE_RECORD_TYPES",
    "InMemorySchemaRegistry",
    "create_standard_stub",
    "infer_field_type",
]
