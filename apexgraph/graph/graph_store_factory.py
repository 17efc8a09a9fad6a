"""
Graph store factory.

Returns the appropriate graph store backend based on configuration.

Set GRAPH_STORE_BACKEND env var to choose:
    - "networkx" → NetworkX in-memory (default, and currently the only backend)
"""

import logging
from typing import Optional

from .base_graph_store import BaseGraphStore
from ..config import get_settings

logger = logging.getLogger(__name__)


def create_graph_store(backend: Optional[str] = None) -> BaseGraphStore:
    """
    Create and return a graph store instance.

    Args:
        backend: "networkx". If None, reads GRAPH_STORE_BACKEND
                 (default: "networkx").

    Returns:
        A BaseGraphStore implementation.
    """
    backend = (backend or get_settings().graph_store_backend).lower()

    if backend == "networkx":
        from .networkx_store import NetworkXStore
        logger.debug("Using NetworkX graph store")
        return NetworkXStore()

    raise ValueError(
        f"Unknown graph store backend: '{backend}'. "
        f"Supported: 'networkx'"
    )
