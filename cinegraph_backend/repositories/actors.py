from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from neo4j import Session

from cinegraph_backend.models.movies import ActorUpsert
from cinegraph_backend.repositories.graph import GraphRepositoryError, run_write

# `credited_movies` come from the running import and are created as stubs when absent;
# `known_movie_ids` come from the person's own credits and are linked only if already stored.
UPSERT_ACTOR_QUERY = """
MERGE (a:Actor {id: $id})
SET a.name = $name,
    a.profilePath = $profilePath,
    a.biography = $biography,
    a.birthDate = $birthDate,
    a.birthPlace = $birthPlace,
    a.popularity = $popularity
FOREACH (movie IN $credited_movies |
    MERGE (m:Movie {id: movie.id})
    ON CREATE SET m.title = movie.title
    MERGE (a)-[:APPEARS_IN]->(m)
)
WITH a
OPTIONAL MATCH (known:Movie)
WHERE known.id IN $known_movie_ids
FOREACH (_ IN CASE WHEN known IS NULL THEN [] ELSE [1] END |
    MERGE (a)-[:APPEARS_IN]->(known)
)
RETURN a.id AS id, count(known) AS linked_known
"""

LINK_ACTOR_QUERY = """
MERGE (a:Actor {id: $actor_id})
ON CREATE SET a.name = $actor_name
MERGE (m:Movie {id: $movie_id})
ON CREATE SET m.title = $movie_title
MERGE (a)-[:APPEARS_IN]->(m)
RETURN a.id AS id
"""


def _movie_refs(movies: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    refs: dict[int, dict[str, Any]] = {}
    for movie in movies:
        movie_id = int(movie["id"])
        refs[movie_id] = {"id": movie_id, "title": movie.get("title")}
    return list(refs.values())


def upsert_actor(
    session: Session,
    actor: ActorUpsert,
    *,
    credited_movies: Iterable[Mapping[str, Any]] = (),
) -> int:
    """
    Create or replace an Actor node and link it to every movie it is credited in.

    Returns how many already-stored movies from the actor's own credits were linked.
    """

    params = actor.to_params()
    params["credited_movies"] = _movie_refs(credited_movies)
    params["known_movie_ids"] = sorted({int(i) for i in actor.credited_movie_ids})
    rows = run_write(session, UPSERT_ACTOR_QUERY, params, context=f"upserting actor {actor.id}")
    if not rows:
        raise GraphRepositoryError(f"Neo4j upsert returned no row for actor {actor.id}.")
    return int(rows[0].get("linked_known") or 0)


def link_actor_to_movie(
    session: Session,
    *,
    actor_id: int,
    actor_name: str | None,
    movie_id: int,
    movie_title: str | None,
) -> None:
    run_write(
        session,
        LINK_ACTOR_QUERY,
        {
            "actor_id": int(actor_id),
            "actor_name": actor_name,
            "movie_id": int(movie_id),
            "movie_title": movie_title,
        },
        context=f"linking actor {actor_id} to movie {movie_id}",
    )
