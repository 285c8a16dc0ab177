"""
Domain models shared across scripts and services.
"""

from cinegraph_backend.models.movies import (
    ActorUpsert,
    CastCredit,
    GenreRef,
    MovieCard,
    MovieUpsert,
    SearchResult,
    normalize_movie_id,
)

__all__ = [
    "ActorUpsert",
    "CastCredit",
    "GenreRef",
    "MovieCard",
    "MovieUpsert",
    "SearchResult",
    "normalize_movie_id",
]
