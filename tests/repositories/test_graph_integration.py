"""
Runs the repository Cypher against a live Neo4j instance.

Skipped unless NEO4J_URI is set, e.g.:

    NEO4J_URI=bolt://localhost:7687 NEO4J_USERNAME=neo4j NEO4J_PASSWORD=secret pytest tests/repositories
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from neo4j import Driver

from cinegraph_backend.db.neo4j import create_neo4j_driver, ensure_graph_constraints, open_session
from cinegraph_backend.models.movies import CastCredit, GenreRef, MovieUpsert
from cinegraph_backend.repositories.favorites import add_favorite, is_favorite, remove_favorite
from cinegraph_backend.repositories.movies import upsert_movie

pytestmark = pytest.mark.skipif(not os.getenv("NEO4J_URI"), reason="NEO4J_URI is not set")

# Negative ids never collide with TMDb data already in the graph.
MOVIE_ID = -910001
GENRE_ID = -910002
ACTOR_ID = -910003
USERNAME = "cinegraph-integration@example.com"

CLEANUP_QUERY = """
MATCH (n)
WHERE (n:Movie AND n.id = $movie_id)
   OR (n:Genre AND n.id = $genre_id)
   OR (n:Actor AND n.id = $actor_id)
   OR (n:User AND n.username = $username)
DETACH DELETE n
"""


def _cleanup(driver: Driver) -> None:
    with open_session(driver) as session:
        session.run(
            CLEANUP_QUERY, movie_id=MOVIE_ID, genre_id=GENRE_ID, actor_id=ACTOR_ID, username=USERNAME
        ).consume()


@pytest.fixture
def graph_driver() -> Iterator[Driver]:
    driver = create_neo4j_driver()
    try:
        ensure_graph_constraints(driver)
        _cleanup(driver)
        yield driver
        _cleanup(driver)
    finally:
        driver.close()


def _movie(title: str) -> MovieUpsert:
    return MovieUpsert(
        id=MOVIE_ID,
        title=title,
        overview="Integration fixture.",
        release_date="2010-07-15",
        duration=148,
        director="Test Director",
        cast=["Test Actor"],
        score=8.4,
        genres=[GenreRef(id=GENRE_ID, name="Integration Genre")],
        credits=[CastCredit(id=ACTOR_ID, name="Test Actor")],
    )


def _count(driver: Driver, query: str) -> int:
    with open_session(driver) as session:
        record = session.run(query, movie_id=MOVIE_ID, genre_id=GENRE_ID, actor_id=ACTOR_ID, username=USERNAME).single()
    return int(record["n"])


def test_upsert_movie_twice_keeps_one_node_and_edge_set(graph_driver) -> None:
    with open_session(graph_driver) as session:
        assert upsert_movie(session, _movie("First Title")) == MOVIE_ID
        assert upsert_movie(session, _movie("Second Title")) == MOVIE_ID

    assert _count(graph_driver, "MATCH (m:Movie {id: $movie_id}) RETURN count(m) AS n") == 1
    assert _count(graph_driver, "MATCH (g:Genre {id: $genre_id}) RETURN count(g) AS n") == 1
    assert _count(graph_driver, "MATCH (:Movie {id: $movie_id})-[r:BELONGS_TO]->(:Genre) RETURN count(r) AS n") == 1
    assert _count(graph_driver, "MATCH (:Actor {id: $actor_id})-[r:APPEARS_IN]->(:Movie) RETURN count(r) AS n") == 1

    with open_session(graph_driver) as session:
        title = session.run("MATCH (m:Movie {id: $movie_id}) RETURN m.title AS title", movie_id=MOVIE_ID).single()
    assert title["title"] == "Second Title"


def test_favorite_edge_add_and_remove(graph_driver) -> None:
    with open_session(graph_driver) as session:
        upsert_movie(session, _movie("Favorite Fixture"))
        session.run("MERGE (:User {username: $username})", username=USERNAME).consume()

        add_favorite(session, USERNAME, MOVIE_ID)
        add_favorite(session, USERNAME, MOVIE_ID)

    assert _count(graph_driver, "MATCH (:User {username: $username})-[r:FAVORITES]->(:Movie) RETURN count(r) AS n") == 1

    with open_session(graph_driver) as session:
        assert is_favorite(session, USERNAME, MOVIE_ID) is True
        assert remove_favorite(session, USERNAME, MOVIE_ID) is True
        assert remove_favorite(session, USERNAME, MOVIE_ID) is False
        assert is_favorite(session, USERNAME, MOVIE_ID) is False
