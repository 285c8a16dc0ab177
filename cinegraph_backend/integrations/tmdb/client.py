from __future__ import annotations

import logging
import os
import random
import time
from contextlib import contextmanager
from typing import Any, Iterator, Mapping

import requests

from cinegraph_backend.utils.env import env_float

logger = logging.getLogger(__name__)

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"
TMDB_MAX_POPULAR_PAGES = 500

MOVIE_DETAIL_APPENDS = ("credits", "videos", "release_dates", "keywords")
PERSON_DETAIL_APPENDS = ("movie_credits", "tv_credits")


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class TmdbPayloadError(TmdbClientError):
    """TMDb answered, but the payload is missing fields the caller depends on."""


def _require_api_key(api_key: str | None) -> str:
    resolved = (api_key or os.getenv("TMDB_API_KEY") or "").strip()
    if not resolved:
        raise TmdbClientError("TMDB_API_KEY is not set.")
    return resolved


@contextmanager
def tmdb_session(session: requests.Session | None = None) -> Iterator[requests.Session]:
    """
    Yield `session`, or a fresh session for the duration of the block.

    A session created here is closed on exit; a caller-supplied one is left open.
    """

    if session is not None:
        yield session
        return
    owned = requests.Session()
    try:
        yield owned
    finally:
        owned.close()


def resolve_base_url(base_url: str | None = None) -> str:
    resolved = (base_url or os.getenv("TMDB_BASE_URL") or "").strip()
    return (resolved or TMDB_API_BASE_URL).rstrip("/")


def _request_json(
    session: requests.Session,
    url: str,
    *,
    params: Mapping[str, Any] | None = None,
    timeout_seconds: float | None = None,
) -> dict[str, Any]:
    headers = {
        "accept": "application/json",
        "user-agent": "cinegraph-backend/0.1",
    }
    if timeout_seconds is None:
        timeout_seconds = env_float("TMDB_TIMEOUT_SECONDS", 20.0)
    max_attempts = 3

    last_response: requests.Response | None = None
    for attempt in range(max_attempts):
        try:
            resp = session.get(url, params=params, headers=headers, timeout=timeout_seconds)
        except requests.RequestException as exc:
            if attempt < max_attempts - 1:
                delay = 1.0 * (2**attempt)
                jitter = random.uniform(0.0, delay * 0.25)
                logger.debug(f"TMDb request to {url} failed ({exc}); retrying in {delay + jitter:.2f}s")
                time.sleep(delay + jitter)
                continue
            raise TmdbClientError(f"TMDb request failed: {exc}") from exc

        last_response = resp
        if resp.status_code == 200:
            break

        retryable = resp.status_code == 429 or 500 <= resp.status_code < 600
        if retryable and attempt < max_attempts - 1:
            delay = 1.0 * (2**attempt)
            retry_after = (resp.headers.get("Retry-After") or "").strip()
            if retry_after.isdigit():
                delay = max(delay, float(retry_after))
            jitter = random.uniform(0.0, delay * 0.25)
            logger.debug(f"TMDb returned HTTP {resp.status_code} for {url}; retrying in {delay + jitter:.2f}s")
            time.sleep(delay + jitter)
            continue

        raise TmdbClientError(
            f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        )

    if last_response is None:
        raise TmdbClientError("TMDb request failed (no response).")
    resp = last_response

    try:
        payload = resp.json()
    except ValueError as exc:
        raise TmdbPayloadError(
            "TMDb returned non-JSON response.",
            status_code=resp.status_code,
            body_snippet=(resp.text or "")[:400],
        ) from exc

    if not isinstance(payload, dict):
        raise TmdbPayloadError("TMDb returned unexpected JSON shape (not an object).")
    return payload


def _get(
    path: str,
    *,
    api_key: str | None,
    session: requests.Session | None,
    base_url: str | None,
    params: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    api_key = _require_api_key(api_key)
    query: dict[str, Any] = {"api_key": api_key}
    if params:
        query.update(params)
    with tmdb_session(session) as http:
        return _request_json(http, f"{resolve_base_url(base_url)}{path}", params=query)


def fetch_genres(
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> list[dict[str, Any]]:
    """Fetch the TMDb movie genre list (`/genre/movie/list`)."""

    payload = _get("/genre/movie/list", api_key=api_key, session=session, base_url=base_url)
    genres = payload.get("genres")
    if not isinstance(genres, list):
        raise TmdbPayloadError("TMDb genre list response missing `genres`.")
    return [g for g in genres if isinstance(g, dict)]


def fetch_popular_movies(
    page: int = 1,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> dict[str, Any]:
    """
    Fetch one page of `/movie/popular`.

    Returns the raw payload; callers read `results` and `total_pages`.
    """

    return _get(
        "/movie/popular",
        api_key=api_key,
        session=session,
        base_url=base_url,
        params={"page": int(page)},
    )


def iter_popular_movie_pages(
    *,
    max_pages: int = TMDB_MAX_POPULAR_PAGES,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> Iterator[tuple[int, list[dict[str, Any]]]]:
    """
    Yield `(page, results)` for each popular-movie page, one request per page.

    Stops after the page TMDb reports as its last, or at `max_pages` (TMDb refuses
    pages past 500). A request failure propagates from the page that failed, so the
    consumer has already processed every earlier page.
    """

    with tmdb_session(session) as http:
        page = 1
        while page <= max_pages:
            payload = fetch_popular_movies(page, api_key=api_key, session=http, base_url=base_url)
            results = payload.get("results")
            page_items = [r for r in results if isinstance(r, dict)] if isinstance(results, list) else []
            yield page, page_items

            total_pages = payload.get("total_pages")
            if not isinstance(total_pages, int) or page >= total_pages:
                break
            page += 1


def fetch_now_playing_movies(
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> dict[str, Any]:
    return _get("/movie/now_playing", api_key=api_key, session=session, base_url=base_url)


def search_movies(
    query: str,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> dict[str, Any]:
    return _get(
        "/search/movie",
        api_key=api_key,
        session=session,
        base_url=base_url,
        params={"query": query},
    )


def fetch_movie_details(
    movie_id: int,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> dict[str, Any]:
    """Fetch `/movie/{id}` with credits, videos, release dates and keywords appended."""

    return _get(
        f"/movie/{int(movie_id)}",
        api_key=api_key,
        session=session,
        base_url=base_url,
        params={"append_to_response": ",".join(MOVIE_DETAIL_APPENDS)},
    )


def fetch_person_details(
    person_id: int,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    base_url: str | None = None,
) -> dict[str, Any]:
    """Fetch `/person/{id}` with movie and TV credits appended."""

    return _get(
        f"/person/{int(person_id)}",
        api_key=api_key,
        session=session,
        base_url=base_url,
        params={"append_to_response": ",".join(PERSON_DETAIL_APPENDS)},
    )
