from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any

import requests
from neo4j import Driver

from cinegraph_backend.db.neo4j import get_neo4j_driver, open_session
from cinegraph_backend.ingestion.tmdb_mapping import build_movie_card_from_details, build_movie_card_from_node
from cinegraph_backend.integrations.tmdb.client import (
    TmdbClientError,
    TmdbPayloadError,
    fetch_movie_details,
    fetch_now_playing_movies,
    tmdb_session,
)
from cinegraph_backend.models.movies import MovieCard, SearchResult
from cinegraph_backend.repositories.graph import GraphRepositoryError
from cinegraph_backend.repositories.movies import (
    find_movies_by_actor_names,
    find_movies_by_genre,
    find_top_actor_names,
    search_movies_by_title,
)

logger = logging.getLogger(__name__)

ENRICHMENT_LIVE = "live"
ENRICHMENT_SNAPSHOT = "snapshot"
ENRICHMENT_MODES = (ENRICHMENT_LIVE, ENRICHMENT_SNAPSHOT)


class DiscoveryError(RuntimeError):
    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


def get_enrichment_mode(mode: str | None = None) -> str:
    """
    Resolve how read paths fill movie cards.

    `live` re-fetches each result from TMDb; `snapshot` projects the stored node.
    """

    resolved = (mode or os.getenv("DISCOVERY_ENRICHMENT_MODE") or ENRICHMENT_LIVE).strip().lower()
    if resolved not in ENRICHMENT_MODES:
        raise RuntimeError(f"DISCOVERY_ENRICHMENT_MODE must be one of {ENRICHMENT_MODES}, got {resolved!r}")
    return resolved


def enrich_movie_nodes(
    nodes: Iterable[Mapping[str, Any]],
    *,
    enrichment: str | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> list[MovieCard]:
    """
    Turn stored Movie nodes into cards, one TMDb detail fetch per node in live mode.

    A node whose live fetch fails falls back to its stored snapshot.
    """

    mode = get_enrichment_mode(enrichment)
    if mode == ENRICHMENT_SNAPSHOT:
        return [build_movie_card_from_node(node) for node in nodes]

    cards: list[MovieCard] = []
    with tmdb_session(http_session) as http:
        for node in nodes:
            movie_id = node.get("id")
            try:
                details = fetch_movie_details(int(movie_id), api_key=tmdb_api_key, session=http)
                cards.append(build_movie_card_from_details(details, fallback_id=movie_id))
            except (TmdbClientError, TypeError, ValueError) as exc:
                logger.warning(f"Live enrichment failed for movie {movie_id}; using stored snapshot: {exc}")
                cards.append(build_movie_card_from_node(node))
    return cards


def get_latest_movies(
    *,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> list[MovieCard]:
    """Now-playing movies with live detail; movies whose detail fetch fails are dropped."""

    with tmdb_session(http_session) as http:
        try:
            payload = fetch_now_playing_movies(api_key=tmdb_api_key, session=http)
        except TmdbPayloadError as exc:
            logger.warning(f"Unexpected now-playing response format: {exc}")
            return []
        except TmdbClientError as exc:
            raise DiscoveryError("get_latest_movies", str(exc)) from exc

        results = payload.get("results")
        if not isinstance(results, list):
            logger.warning("Unexpected now-playing response format: missing `results`")
            return []

        cards: list[MovieCard] = []
        for summary in results:
            if not isinstance(summary, dict):
                continue
            movie_id = summary.get("id")
            try:
                details = fetch_movie_details(int(movie_id), api_key=tmdb_api_key, session=http)
                cards.append(build_movie_card_from_details(details, fallback_id=movie_id))
            except (TmdbClientError, TypeError, ValueError) as exc:
                logger.warning(f"Failed to fetch details for movie ID {movie_id}: {exc}")
    return cards


def get_movies_by_genre(
    genre: str,
    *,
    driver: Driver | None = None,
    enrichment: str | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> list[MovieCard]:
    """Up to 30 stored movies in `genre`; an unknown genre yields an empty list."""

    driver = driver or get_neo4j_driver()
    try:
        with open_session(driver) as session:
            nodes = find_movies_by_genre(session, genre)
    except GraphRepositoryError as exc:
        raise DiscoveryError("get_movies_by_genre", str(exc)) from exc

    return enrich_movie_nodes(nodes, enrichment=enrichment, tmdb_api_key=tmdb_api_key, http_session=http_session)


def search_movies_by_name(name: str, *, driver: Driver | None = None) -> SearchResult:
    """
    Case-insensitive title search plus actor-based suggestions.

    Suggestions are other movies featuring the two alphabetically-first actors
    of each matched movie. Both lists come from the stored graph.
    """

    query = (name or "").strip()
    if not query:
        return SearchResult()

    driver = driver or get_neo4j_driver()
    try:
        with open_session(driver) as session:
            matches = search_movies_by_title(session, query)
            movie_ids = [int(m["id"]) for m in matches if m.get("id") is not None]
            top_actors = find_top_actor_names(session, movie_ids)
            actor_names = {actor for names in top_actors.values() for actor in names}
            suggestions = find_movies_by_actor_names(session, actor_names, exclude_ids=movie_ids)
    except GraphRepositoryError as exc:
        raise DiscoveryError("search_movies_by_name", str(exc)) from exc

    return SearchResult(
        movies=[build_movie_card_from_node(m) for m in matches],
        actorMovies=[build_movie_card_from_node(m) for m in suggestions],
    )
