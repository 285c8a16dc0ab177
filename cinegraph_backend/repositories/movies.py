from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from neo4j import Session

from cinegraph_backend.models.movies import MovieUpsert
from cinegraph_backend.repositories.graph import GraphRepositoryError, run_read, run_write

MOVIE_QUERY_LIMIT = 30
TOP_ACTORS_PER_MOVIE = 2

UPSERT_MOVIE_QUERY = """
MERGE (m:Movie {id: $id})
SET m.title = $title,
    m.overview = $overview,
    m.release_date = $release_date,
    m.duration = $duration,
    m.director = $director,
    m.cast = $cast,
    m.original_language = $original_language,
    m.subtitles = $subtitles,
    m.age_rating = $age_rating,
    m.score = $score,
    m.cover_image = $cover_image,
    m.trailer_url = $trailer_url,
    m.tags = $tags
FOREACH (genre IN $genres |
    MERGE (g:Genre {id: genre.id})
    ON CREATE SET g.name = genre.name
    MERGE (m)-[:BELONGS_TO]->(g)
)
FOREACH (credit IN $credits |
    MERGE (a:Actor {id: credit.id})
    ON CREATE SET a.name = credit.name
    MERGE (a)-[:APPEARS_IN]->(m)
)
RETURN m.id AS id
"""

MOVIES_BY_GENRE_QUERY = """
MATCH (m:Movie)-[:BELONGS_TO]->(:Genre {name: $genre})
RETURN DISTINCT m
LIMIT $limit
"""

MOVIES_BY_TITLE_QUERY = """
MATCH (m:Movie)
WHERE toLower(m.title) CONTAINS toLower($name)
RETURN m
ORDER BY m.title
LIMIT $limit
"""

TOP_ACTORS_QUERY = """
MATCH (a:Actor)-[:APPEARS_IN]->(m:Movie)
WHERE m.id IN $movie_ids AND a.name IS NOT NULL
WITH m.id AS movie_id, a.name AS actor_name
ORDER BY movie_id, actor_name
WITH movie_id, collect(DISTINCT actor_name)[..$per_movie] AS top_actors
RETURN movie_id, top_actors
"""

MOVIES_BY_ACTORS_QUERY = """
MATCH (a:Actor)-[:APPEARS_IN]->(m:Movie)
WHERE a.name IN $actor_names AND NOT m.id IN $exclude_ids
RETURN DISTINCT m
LIMIT $limit
"""


def upsert_movie(session: Session, movie: MovieUpsert) -> int:
    """
    Create or replace a Movie node together with its genre and cast edges.

    Runs as a single statement in one write transaction, so the node never exists
    without the edges supplied alongside it.
    """

    rows = run_write(session, UPSERT_MOVIE_QUERY, movie.to_params(), context=f"upserting movie {movie.id}")
    if not rows:
        raise GraphRepositoryError(f"Neo4j upsert returned no row for movie {movie.id}.")
    return int(rows[0]["id"])


def _movie_nodes(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [dict(row["m"]) for row in rows if isinstance(row.get("m"), dict)]


def find_movies_by_genre(session: Session, genre: str, *, limit: int = MOVIE_QUERY_LIMIT) -> list[dict[str, Any]]:
    rows = run_read(
        session,
        MOVIES_BY_GENRE_QUERY,
        {"genre": genre, "limit": int(limit)},
        context=f"listing movies for genre {genre!r}",
    )
    return _movie_nodes(rows)


def search_movies_by_title(session: Session, name: str, *, limit: int = MOVIE_QUERY_LIMIT) -> list[dict[str, Any]]:
    rows = run_read(
        session,
        MOVIES_BY_TITLE_QUERY,
        {"name": name, "limit": int(limit)},
        context=f"searching movies by title {name!r}",
    )
    return _movie_nodes(rows)


def find_top_actor_names(
    session: Session,
    movie_ids: Iterable[int],
    *,
    per_movie: int = TOP_ACTORS_PER_MOVIE,
) -> dict[int, list[str]]:
    """Map each movie id to the alphabetically-first names of the actors credited in it."""

    ids = [int(i) for i in movie_ids]
    if not ids:
        return {}
    rows = run_read(
        session,
        TOP_ACTORS_QUERY,
        {"movie_ids": ids, "per_movie": int(per_movie)},
        context="collecting top actors",
    )
    return {int(row["movie_id"]): list(row.get("top_actors") or []) for row in rows}


def find_movies_by_actor_names(
    session: Session,
    actor_names: Iterable[str],
    *,
    exclude_ids: Iterable[int] = (),
    limit: int = MOVIE_QUERY_LIMIT,
) -> list[dict[str, Any]]:
    names = sorted({n for n in actor_names if n})
    if not names:
        return []
    rows = run_read(
        session,
        MOVIES_BY_ACTORS_QUERY,
        {"actor_names": names, "exclude_ids": [int(i) for i in exclude_ids], "limit": int(limit)},
        context="listing movies by actors",
    )
    return _movie_nodes(rows)
