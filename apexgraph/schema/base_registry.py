"""
Abstract base class for schema registries.

A schema registry answers metadata questions about external record
types (labels, fields, validation rules). It is constructed explicitly
and passed to the components that need it; callers run ``load()`` once
before building any graph.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import FieldSchema, RecordSchema, ValidationRule


class BaseSchemaRegistry(ABC):
    """
    Abstract schema registry interface.

    Lookups of unknown names return None. Lookups made before ``load()``
    raise SchemaNotLoadedError.
    """

    # ─────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────

    @abstractmethod
    def load(self) -> None:
        """Populate the registry. Calling it again is a no-op."""
        ...

    @property
    @abstractmethod
    def is_loaded(self) -> bool:
        """Whether ``load()`` has completed."""
        ...

    # ─────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────

    @abstractmethod
    def get_object(self, name: str) -> Optional[RecordSchema]:
        """Get a record type's schema by name."""
        ...

    @abstractmethod
    def get_field(self, record_type: str, field_name: str) -> Optional[FieldSchema]:
        """Get one field of a record type."""
        ...

    @abstractmethod
    def get_all_objects(self) -> List[str]:
        """Names of all known record types."""
        ...

    def get_validation_rules(self, name: str) -> List[ValidationRule]:
        """Active validation rules for a record type ([] if unknown)."""
        schema = self.get_object(name)
        if schema is None:
            return []
        return schema.active_validation_rules
