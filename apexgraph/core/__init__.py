"""
Core module - parsed declaration records and complexity ratings.
"""

from .entities import (
    MUTATION_OPERATIONS,
    Parameter,
    QueryOperation,
    MutationOperation,
    ParsedMethod,
    ParsedField,
    ParsedUnit
)

from .complexity import (
    HIGH_COMPLEXITY_THRESHOLD,
    ComplexityRating,
    get_complexity_rating,
    is_high_complexity
)

__all__ = [
    # Entities
    "MUTATION_OPERATIONS",
    "Parameter",
    "QueryOperation",
    "MutationOperation",
    "ParsedMethod",
    "ParsedField",
    "ParsedUnit",
    # Complexity
    "HIGH_COMPLEXITY_THRESHOLD",
    "ComplexityRating",
    "get_complexity_rating",
    "is_high_complexity",
]
