from __future__ import annotations

from typing import Any

import requests
from neo4j import Driver

from cinegraph_backend.db.neo4j import get_neo4j_driver, open_session
from cinegraph_backend.discovery.movies import DiscoveryError, enrich_movie_nodes
from cinegraph_backend.models.movies import MovieCard, normalize_movie_id
from cinegraph_backend.repositories import favorites as favorites_repo
from cinegraph_backend.repositories.favorites import FavoriteNotFoundError
from cinegraph_backend.repositories.graph import GraphRepositoryError


def _require_username(username: str) -> str:
    value = (username or "").strip()
    if not value:
        raise ValueError("username is required")
    return value


def add_movie_to_favorites(username: str, movie_id: Any, *, driver: Driver | None = None) -> None:
    """
    Mark a movie as a user's favorite. Adding an existing favorite is a no-op.

    Raises FavoriteNotFoundError when the user or the movie does not exist.
    """

    user = _require_username(username)
    movie_id_int = normalize_movie_id(movie_id)
    driver = driver or get_neo4j_driver()
    try:
        with open_session(driver) as session:
            favorites_repo.add_favorite(session, user, movie_id_int)
    except FavoriteNotFoundError:
        raise
    except GraphRepositoryError as exc:
        raise DiscoveryError("add_movie_to_favorites", str(exc)) from exc


def remove_movie_from_favorites(username: str, movie_id: Any, *, driver: Driver | None = None) -> bool:
    """Returns False when the movie was not a favorite; raises FavoriteNotFoundError for unknown user/movie."""

    user = _require_username(username)
    movie_id_int = normalize_movie_id(movie_id)
    driver = driver or get_neo4j_driver()
    try:
        with open_session(driver) as session:
            return favorites_repo.remove_favorite(session, user, movie_id_int)
    except FavoriteNotFoundError:
        raise
    except GraphRepositoryError as exc:
        raise DiscoveryError("remove_movie_from_favorites", str(exc)) from exc


def is_movie_favorite(username: str, movie_id: Any, *, driver: Driver | None = None) -> bool:
    user = _require_username(username)
    movie_id_int = normalize_movie_id(movie_id)
    driver = driver or get_neo4j_driver()
    try:
        with open_session(driver) as session:
            return favorites_repo.is_favorite(session, user, movie_id_int)
    except GraphRepositoryError as exc:
        raise DiscoveryError("is_movie_favorite", str(exc)) from exc


def get_user_favorites(
    username: str,
    *,
    driver: Driver | None = None,
    enrichment: str | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> list[MovieCard]:
    user = _require_username(username)
    driver = driver or get_neo4j_driver()
    try:
        with open_session(driver) as session:
            nodes = favorites_repo.list_favorites(session, user)
    except GraphRepositoryError as exc:
        raise DiscoveryError("get_user_favorites", str(exc)) from exc

    return enrich_movie_nodes(nodes, enrichment=enrichment, tmdb_api_key=tmdb_api_key, http_session=http_session)
