"""
Symbols module - per-unit symbol and type resolution.
"""

from .symbol_table import (
    SymbolKind,
    Symbol,
    FieldResolution,
    SymbolTable,
    extract_base_type
)

from .type_resolver import (
    UNKNOWN_TYPE,
    KNOWN_METHOD_TYPES,
    RhsKind,
    RhsDescriptor,
    MutationAnnotation,
    TypeResolver
)

__all__ = [
    "SymbolKind",
    "Symbol",
    "FieldResolution",
    "SymbolTable",
    "extract_base_type",
    "UNKNOWN_TYPE",
    "KNOWN_METHOD_TYPES",
    "RhsKind",
    "RhsDescriptor",
    "MutationAnnotation",
    "TypeResolver",
]
