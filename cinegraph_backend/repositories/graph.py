from __future__ import annotations

from typing import Any, Mapping

from neo4j import ManagedTransaction, Session, unit_of_work
from neo4j.exceptions import DriverError, Neo4jError

from cinegraph_backend.db.neo4j import get_transaction_timeout


class GraphRepositoryError(RuntimeError):
    pass


def _collect_rows(tx: ManagedTransaction, query: str, params: Mapping[str, Any]) -> list[dict[str, Any]]:
    result = tx.run(query, dict(params))
    return [record.data() for record in result]


def run_write(session: Session, query: str, params: Mapping[str, Any], *, context: str) -> list[dict[str, Any]]:
    """
    Run one Cypher statement inside a managed write transaction.

    The driver retries the whole transaction on transient cluster errors, so a
    statement either applies completely or not at all.
    """

    work = unit_of_work(timeout=get_transaction_timeout())(_collect_rows)
    try:
        return session.execute_write(work, query, params)
    except (Neo4jError, DriverError) as exc:
        raise GraphRepositoryError(f"Neo4j error during {context}: {exc}") from exc


def run_read(session: Session, query: str, params: Mapping[str, Any], *, context: str) -> list[dict[str, Any]]:
    work = unit_of_work(timeout=get_transaction_timeout())(_collect_rows)
    try:
        return session.execute_read(work, query, params)
    except (Neo4jError, DriverError) as exc:
        raise GraphRepositoryError(f"Neo4j error during {context}: {exc}") from exc
