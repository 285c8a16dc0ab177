"""
Thin TMDb passthrough endpoints.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from api.deps import raise_http_error
from cinegraph_backend.integrations.tmdb.client import (
    TmdbClientError,
    fetch_person_details,
    fetch_popular_movies,
    search_movies,
)

router = APIRouter(prefix="/tmdb", tags=["tmdb"])


@router.get("/popular")
def popular_movies(page: int = Query(default=1, ge=1, le=500)) -> dict[str, Any]:
    try:
        return fetch_popular_movies(page)
    except TmdbClientError as exc:
        raise_http_error(exc, "fetching popular movies")


@router.get("/search")
def search(query: str = Query(min_length=1)) -> dict[str, Any]:
    try:
        return search_movies(query)
    except TmdbClientError as exc:
        raise_http_error(exc, "searching TMDb")


@router.get("/actor/{actor_id}")
def actor_details(actor_id: int) -> dict[str, Any]:
    """Person detail with movie and TV credits."""
    try:
        return fetch_person_details(actor_id)
    except TmdbClientError as exc:
        raise_http_error(exc, "fetching actor details")
