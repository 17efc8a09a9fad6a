"""
Exception taxonomy for the graph engine.

Usage errors raise. Unresolved lookups return ``None`` and heuristic
misses are logged and skipped, so neither appears here.
"""


class ApexGraphError(Exception):
    """Base class for all engine errors."""


class MissingNodeError(ApexGraphError, ValueError):
    """An edge was added whose endpoint node does not exist."""

    def __init__(self, from_id: str, to_id: str):
        self.from_id = from_id
        self.to_id = to_id
        super().__init__(
            f"Cannot add edge: nodes {from_id} or {to_id} do not exist"
        )


class GraphFrozenError(ApexGraphError, RuntimeError):
    """The graph was mutated after its build phase was closed."""


class SchemaNotLoadedError(ApexGraphError, RuntimeError):
    """A schema registry was queried before ``load()`` was called."""
