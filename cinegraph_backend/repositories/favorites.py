from __future__ import annotations

from typing import Any

from neo4j import Session

from cinegraph_backend.repositories.graph import GraphRepositoryError, run_read, run_write

ADD_FAVORITE_QUERY = """
MATCH (u:User {username: $username}), (m:Movie {id: $movie_id})
MERGE (u)-[:FAVORITES]->(m)
RETURN m.id AS id
"""

REMOVE_FAVORITE_QUERY = """
MATCH (u:User {username: $username}), (m:Movie {id: $movie_id})
OPTIONAL MATCH (u)-[r:FAVORITES]->(m)
WITH m, collect(r) AS edges
FOREACH (edge IN edges | DELETE edge)
RETURN m.id AS id, size(edges) AS removed
"""

IS_FAVORITE_QUERY = """
OPTIONAL MATCH (u:User {username: $username})-[:FAVORITES]->(m:Movie {id: $movie_id})
RETURN count(m) > 0 AS favorite
"""

LIST_FAVORITES_QUERY = """
MATCH (:User {username: $username})-[:FAVORITES]->(m:Movie)
RETURN m
ORDER BY m.title
"""


class FavoriteNotFoundError(GraphRepositoryError):
    """The user or the movie of a favorite edge does not exist."""

    def __init__(self, username: str, movie_id: int) -> None:
        super().__init__(f"Movie or User not found (username={username!r}, movie_id={movie_id}).")
        self.username = username
        self.movie_id = movie_id


def add_favorite(session: Session, username: str, movie_id: int) -> None:
    rows = run_write(
        session,
        ADD_FAVORITE_QUERY,
        {"username": username, "movie_id": movie_id},
        context=f"adding favorite movie {movie_id}",
    )
    if not rows:
        raise FavoriteNotFoundError(username, movie_id)


def remove_favorite(session: Session, username: str, movie_id: int) -> bool:
    """Delete the FAVORITES edge. Returns False when the pair was not a favorite."""
    rows = run_write(
        session,
        REMOVE_FAVORITE_QUERY,
        {"username": username, "movie_id": movie_id},
        context=f"removing favorite movie {movie_id}",
    )
    if not rows:
        raise FavoriteNotFoundError(username, movie_id)
    return int(rows[0].get("removed") or 0) > 0


def is_favorite(session: Session, username: str, movie_id: int) -> bool:
    rows = run_read(
        session,
        IS_FAVORITE_QUERY,
        {"username": username, "movie_id": movie_id},
        context=f"checking favorite movie {movie_id}",
    )
    return bool(rows and rows[0].get("favorite"))


def list_favorites(session: Session, username: str) -> list[dict[str, Any]]:
    rows = run_read(session, LIST_FAVORITES_QUERY, {"username": username}, context="listing favorites")
    return [dict(row["m"]) for row in rows if isinstance(row.get("m"), dict)]
