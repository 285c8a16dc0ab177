"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cinegraph_backend.integrations.tmdb.client import (
        TmdbClientError,
        TmdbPayloadError,
        fetch_genres,
        fetch_movie_details,
        fetch_now_playing_movies,
        fetch_person_details,
        fetch_popular_movies,
        iter_popular_movie_pages,
        search_movies,
        tmdb_session,
    )

__all__ = [
    "TmdbClientError",
    "TmdbPayloadError",
    "fetch_genres",
    "fetch_movie_details",
    "fetch_now_playing_movies",
    "fetch_person_details",
    "fetch_popular_movies",
    "iter_popular_movie_pages",
    "search_movies",
    "tmdb_session",
]


def __getattr__(name: str):
    if name in __all__:
        from cinegraph_backend.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
