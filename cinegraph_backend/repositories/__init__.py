"""
Repository layer for graph access patterns.
"""

from cinegraph_backend.repositories.favorites import FavoriteNotFoundError
from cinegraph_backend.repositories.graph import GraphRepositoryError
from cinegraph_backend.repositories.movies import (
    find_movies_by_actor_names,
    find_movies_by_genre,
    find_top_actor_names,
    search_movies_by_title,
    upsert_movie,
)

__all__ = [
    "FavoriteNotFoundError",
    "GraphRepositoryError",
    "find_movies_by_actor_names",
    "find_movies_by_genre",
    "find_top_actor_names",
    "search_movies_by_title",
    "upsert_movie",
]
