"""
Database helpers for CineGraph backend scripts/services.
"""

from cinegraph_backend.db.neo4j import (
    GraphConnectionError,
    create_neo4j_driver,
    ensure_graph_constraints,
    get_neo4j_driver,
    open_session,
    verify_graph_connectivity,
)

__all__ = [
    "GraphConnectionError",
    "create_neo4j_driver",
    "ensure_graph_constraints",
    "get_neo4j_driver",
    "open_session",
    "verify_graph_connectivity",
]
