"""
Read-side queries: title search, genre listing, actor-based suggestions and favorites.
"""

from cinegraph_backend.discovery.favorites import (
    add_movie_to_favorites,
    get_user_favorites,
    is_movie_favorite,
    remove_movie_from_favorites,
)
from cinegraph_backend.discovery.movies import (
    DiscoveryError,
    get_latest_movies,
    get_movies_by_genre,
    search_movies_by_name,
)

__all__ = [
    "DiscoveryError",
    "add_movie_to_favorites",
    "get_latest_movies",
    "get_movies_by_genre",
    "get_user_favorites",
    "is_movie_favorite",
    "remove_movie_from_favorites",
    "search_movies_by_name",
]
