from __future__ import annotations

from neo4j import Session

from cinegraph_backend.repositories.graph import run_write

UPSERT_GENRE_QUERY = """
MERGE (g:Genre {id: $id})
ON CREATE SET g.name = $name
RETURN g.id AS id
"""


def upsert_genre(session: Session, genre_id: int, name: str) -> None:
    """Create the genre if absent; an existing genre keeps its stored name."""
    run_write(session, UPSERT_GENRE_QUERY, {"id": int(genre_id), "name": name}, context=f"upserting genre {genre_id}")
