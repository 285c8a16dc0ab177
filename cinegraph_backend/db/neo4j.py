from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from neo4j import Driver, GraphDatabase, Session
from neo4j.exceptions import Neo4jError, ServiceUnavailable

from cinegraph_backend.utils.env import env_float

logger = logging.getLogger(__name__)

GRAPH_CONSTRAINTS = (
    "CREATE CONSTRAINT movie_id IF NOT EXISTS FOR (m:Movie) REQUIRE m.id IS UNIQUE",
    "CREATE CONSTRAINT genre_id IF NOT EXISTS FOR (g:Genre) REQUIRE g.id IS UNIQUE",
    "CREATE CONSTRAINT actor_id IF NOT EXISTS FOR (a:Actor) REQUIRE a.id IS UNIQUE",
    "CREATE CONSTRAINT user_username IF NOT EXISTS FOR (u:User) REQUIRE u.username IS UNIQUE",
    "CREATE CONSTRAINT country_name IF NOT EXISTS FOR (c:Country) REQUIRE c.name IS UNIQUE",
)


class GraphConnectionError(RuntimeError):
    """Raised when the Neo4j driver cannot reach the database."""


def _require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise RuntimeError(f"{name} environment variable is not set")
    return value


@lru_cache
def get_neo4j_uri() -> str:
    return _require_env("NEO4J_URI")


@lru_cache
def get_neo4j_auth() -> tuple[str, str]:
    return _require_env("NEO4J_USERNAME"), _require_env("NEO4J_PASSWORD")


def get_neo4j_database() -> str | None:
    return (os.getenv("NEO4J_DATABASE") or "").strip() or None


def get_transaction_timeout() -> float:
    return env_float("NEO4J_TX_TIMEOUT_SECONDS", 30.0)


def create_neo4j_driver(
    *,
    uri: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> Driver:
    """
    Create a Neo4j driver from explicit credentials or the NEO4J_* environment.

    The driver owns the connection pool; callers close it on shutdown.
    """

    if username is None or password is None:
        username, password = get_neo4j_auth()
    return GraphDatabase.driver(uri or get_neo4j_uri(), auth=(username, password))


@lru_cache(maxsize=1)
def get_neo4j_driver() -> Driver:
    """Process-wide driver for scripts that do not manage their own."""
    return create_neo4j_driver()


def verify_graph_connectivity(driver: Driver) -> None:
    try:
        driver.verify_connectivity()
    except (ServiceUnavailable, Neo4jError, OSError) as exc:
        raise GraphConnectionError(f"Could not establish connection to Neo4j: {exc}") from exc
    logger.info("Connected to Neo4j successfully")


@contextmanager
def open_session(driver: Driver) -> Iterator[Session]:
    """
    Yield one session for a single unit of work.

    The session is closed on every exit path, including errors raised by the caller.
    """

    session = driver.session(database=get_neo4j_database())
    try:
        yield session
    finally:
        session.close()


def ensure_graph_constraints(driver: Driver) -> None:
    with open_session(driver) as session:
        for statement in GRAPH_CONSTRAINTS:
            session.run(statement).consume()
