from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Iterator, Mapping

import requests
from neo4j import Driver

from cinegraph_backend.db.neo4j import get_neo4j_driver, open_session
from cinegraph_backend.ingestion.tmdb_mapping import (
    build_actor_upsert,
    build_genre_lookup,
    build_movie_upsert,
    pick_cast_credits,
    resolve_genres,
)
from cinegraph_backend.integrations.tmdb.client import (
    TMDB_MAX_POPULAR_PAGES,
    TmdbClientError,
    TmdbPayloadError,
    fetch_genres,
    fetch_movie_details,
    fetch_now_playing_movies,
    fetch_person_details,
    fetch_popular_movies,
    iter_popular_movie_pages,
    tmdb_session,
)
from cinegraph_backend.models.movies import normalize_movie_id
from cinegraph_backend.repositories.actors import link_actor_to_movie, upsert_actor
from cinegraph_backend.repositories.genres import upsert_genre
from cinegraph_backend.repositories.graph import GraphRepositoryError
from cinegraph_backend.repositories.movies import upsert_movie

logger = logging.getLogger(__name__)

MODE_GENRES = "genres"
MODE_MOVIES = "movies"
MODE_MOVIES_ALL = "movies-all"
MODE_LATEST = "latest"
MODE_ACTORS = "actors"

# Errors that only cost the current item; anything else aborts the run.
ITEM_ERRORS = (TmdbClientError, GraphRepositoryError, ValueError)


class ImportRunError(RuntimeError):
    def __init__(self, mode: str, message: str) -> None:
        super().__init__(f"{mode} import failed: {message}")
        self.mode = mode


@dataclass(frozen=True)
class ImportFailure:
    item_id: int | None
    stage: str
    message: str


@dataclass
class ImportRunResult:
    mode: str
    pages: int = 0
    fetched: int = 0
    upserted: int = 0
    linked: int = 0
    skipped: int = 0
    failures: list[ImportFailure] = field(default_factory=list)

    def record_failure(self, item_id: int | None, stage: str, exc: BaseException | str) -> None:
        message = str(exc)
        logger.warning(f"[{self.mode}] skipping {stage} for id={item_id}: {message}")
        self.failures.append(ImportFailure(item_id=item_id, stage=stage, message=message))
        self.skipped += 1

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["failed"] = self.failed
        return payload


def _summary_id(summary: Mapping[str, Any]) -> int | None:
    try:
        return normalize_movie_id(summary.get("id"))
    except ValueError:
        return None


def _load_genre_lookup(
    mode: str,
    *,
    api_key: str | None,
    http_session: requests.Session | None,
) -> dict[int, str]:
    try:
        genres = fetch_genres(api_key=api_key, session=http_session)
    except TmdbClientError as exc:
        raise ImportRunError(mode, f"could not fetch the genre list: {exc}") from exc
    return build_genre_lookup(genres)


def _iter_catalog_movies(
    result: ImportRunResult,
    *,
    max_pages: int,
    api_key: str | None,
    http_session: requests.Session | None,
) -> Iterator[dict[str, Any]]:
    """
    Stream popular-movie summaries page by page.

    The next page is requested only once the consumer has finished the previous one.
    Failing on page 1 aborts the run; a later page failure ends paging and keeps
    everything already imported.
    """

    pages = iter_popular_movie_pages(max_pages=max_pages, api_key=api_key, session=http_session)
    while True:
        try:
            page, items = next(pages)
        except StopIteration:
            return
        except TmdbClientError as exc:
            if result.pages == 0:
                raise ImportRunError(result.mode, f"could not fetch popular movies page 1: {exc}") from exc
            logger.error(f"[{result.mode}] stopping pagination after page {result.pages}: {exc}")
            result.failures.append(ImportFailure(item_id=None, stage=f"page {result.pages + 1}", message=str(exc)))
            return

        result.pages += 1
        logger.info(f"[{result.mode}] fetched page {page} with {len(items)} movies")
        yield from items


def _import_movie(
    summary: Mapping[str, Any],
    genre_lookup: Mapping[int, str],
    result: ImportRunResult,
    *,
    driver: Driver,
    api_key: str | None,
    http_session: requests.Session | None,
) -> None:
    result.fetched += 1
    movie_id = _summary_id(summary)
    if movie_id is None:
        result.record_failure(None, "movie id", f"unusable movie id {summary.get('id')!r}")
        return

    logger.info(f"[{result.mode}] importing movie {movie_id}: {summary.get('title')!r}")
    try:
        details = fetch_movie_details(movie_id, api_key=api_key, session=http_session)
    except TmdbClientError as exc:
        result.record_failure(movie_id, "movie details", exc)
        return

    try:
        movie = build_movie_upsert(summary, details, resolve_genres(summary.get("genre_ids"), genre_lookup))
        with open_session(driver) as session:
            upsert_movie(session, movie)
    except ITEM_ERRORS as exc:
        result.record_failure(movie_id, "movie upsert", exc)
        return
    result.upserted += 1


def import_genres(
    *,
    driver: Driver | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> ImportRunResult:
    """
    Import the TMDb genre list.

    Genres are created if absent and never renamed. One failed upsert is recorded
    and the remaining genres still run.
    """

    logger.info("Starting to import genres...")
    driver = driver or get_neo4j_driver()
    result = ImportRunResult(mode=MODE_GENRES)

    with tmdb_session(http_session) as http:
        try:
            genres = fetch_genres(api_key=tmdb_api_key, session=http)
        except TmdbClientError as exc:
            raise ImportRunError(MODE_GENRES, f"could not fetch the genre list: {exc}") from exc
    logger.info(f"Fetched {len(genres)} genres from TMDb")

    for genre in genres:
        result.fetched += 1
        genre_id = genre.get("id")
        name = genre.get("name")
        if not isinstance(genre_id, int) or not isinstance(name, str) or not name.strip():
            result.record_failure(None, "genre payload", f"malformed genre {genre!r}")
            continue
        try:
            with open_session(driver) as session:
                upsert_genre(session, genre_id, name)
        except GraphRepositoryError as exc:
            result.record_failure(genre_id, "genre upsert", exc)
            continue
        result.upserted += 1

    logger.info(f"Genres imported: upserted={result.upserted} failed={result.failed}")
    return result


def import_movies(
    fetch_all: bool = False,
    *,
    max_pages: int = TMDB_MAX_POPULAR_PAGES,
    driver: Driver | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> ImportRunResult:
    """
    Import popular movies with their genre and top-billed cast edges.

    `fetch_all` walks every popular page (capped at `max_pages`) and processes each
    page before requesting the next; otherwise only page 1 is imported. Every TMDb
    call of the run shares one HTTP session.
    """

    mode = MODE_MOVIES_ALL if fetch_all else MODE_MOVIES
    logger.info(f"Starting to import movies (fetch_all={fetch_all})...")
    driver = driver or get_neo4j_driver()
    result = ImportRunResult(mode=mode)

    with tmdb_session(http_session) as http:
        genre_lookup = _load_genre_lookup(mode, api_key=tmdb_api_key, http_session=http)

        if fetch_all:
            movies: Iterator[dict[str, Any]] = _iter_catalog_movies(
                result,
                max_pages=max_pages,
                api_key=tmdb_api_key,
                http_session=http,
            )
        else:
            try:
                payload = fetch_popular_movies(1, api_key=tmdb_api_key, session=http)
            except TmdbClientError as exc:
                raise ImportRunError(mode, f"could not fetch popular movies page 1: {exc}") from exc
            results = payload.get("results")
            result.pages = 1
            movies = iter([m for m in results if isinstance(m, dict)] if isinstance(results, list) else [])

        for summary in movies:
            _import_movie(
                summary,
                genre_lookup,
                result,
                driver=driver,
                api_key=tmdb_api_key,
                http_session=http,
            )

    logger.info(
        f"Movies imported: pages={result.pages} fetched={result.fetched} "
        f"upserted={result.upserted} failed={result.failed}"
    )
    return result


def import_latest_movies(
    *,
    driver: Driver | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> ImportRunResult:
    """
    Import the now-playing window.

    An empty or malformed now-playing payload ends the run quietly with nothing written.
    """

    logger.info("Starting to import latest movies...")
    driver = driver or get_neo4j_driver()
    result = ImportRunResult(mode=MODE_LATEST)

    with tmdb_session(http_session) as http:
        try:
            payload = fetch_now_playing_movies(api_key=tmdb_api_key, session=http)
        except TmdbPayloadError as exc:
            logger.error(f"No latest movies found or invalid response format: {exc}")
            return result
        except TmdbClientError as exc:
            raise ImportRunError(MODE_LATEST, f"could not fetch now-playing movies: {exc}") from exc

        latest = payload.get("results")
        if not isinstance(latest, list) or not latest:
            logger.error("No latest movies found or invalid response format")
            return result
        result.pages = 1
        logger.info(f"Fetched {len(latest)} latest movies from TMDb")

        genre_lookup = _load_genre_lookup(MODE_LATEST, api_key=tmdb_api_key, http_session=http)
        for summary in latest:
            if not isinstance(summary, dict):
                result.record_failure(None, "movie payload", f"malformed movie entry {summary!r}")
                continue
            _import_movie(
                summary,
                genre_lookup,
                result,
                driver=driver,
                api_key=tmdb_api_key,
                http_session=http,
            )

    logger.info(f"Latest movies imported: upserted={result.upserted} failed={result.failed}")
    return result


def _import_cast(
    movie_id: int,
    movie_title: str | None,
    details: Mapping[str, Any],
    seen_actor_ids: set[int],
    result: ImportRunResult,
    *,
    driver: Driver,
    api_key: str | None,
    http_session: requests.Session,
) -> None:
    movie_ref = {"id": movie_id, "title": movie_title}
    for credit in pick_cast_credits(details, top_billed_only=False):
        if credit.id not in seen_actor_ids:
            seen_actor_ids.add(credit.id)
            logger.info(f"[{result.mode}] fetching actor details for {credit.name!r} ({credit.id})")
            try:
                actor = build_actor_upsert(fetch_person_details(credit.id, api_key=api_key, session=http_session))
                with open_session(driver) as session:
                    upsert_actor(session, actor, credited_movies=[movie_ref])
            except ITEM_ERRORS as exc:
                result.record_failure(credit.id, "actor upsert", exc)
            else:
                result.upserted += 1
                continue

        try:
            with open_session(driver) as session:
                link_actor_to_movie(
                    session,
                    actor_id=credit.id,
                    actor_name=credit.name,
                    movie_id=movie_id,
                    movie_title=movie_title,
                )
        except GraphRepositoryError as exc:
            result.record_failure(credit.id, "actor link", exc)
            continue
        result.linked += 1


def import_actors(
    *,
    max_pages: int = TMDB_MAX_POPULAR_PAGES,
    driver: Driver | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> ImportRunResult:
    """
    Import every actor credited in the popular catalog.

    Each actor's TMDb detail is fetched once per run. Every credit still gets its
    APPEARS_IN edge, including repeat appearances and actors whose detail fetch
    failed, so no imported actor is left without a movie.
    """

    logger.info("Starting to import actors...")
    driver = driver or get_neo4j_driver()
    result = ImportRunResult(mode=MODE_ACTORS)
    seen_actor_ids: set[int] = set()

    with tmdb_session(http_session) as http:
        for summary in _iter_catalog_movies(result, max_pages=max_pages, api_key=tmdb_api_key, http_session=http):
            result.fetched += 1
            movie_id = _summary_id(summary)
            if movie_id is None:
                result.record_failure(None, "movie id", f"unusable movie id {summary.get('id')!r}")
                continue
            try:
                details = fetch_movie_details(movie_id, api_key=tmdb_api_key, session=http)
            except TmdbClientError as exc:
                result.record_failure(movie_id, "movie details", exc)
                continue

            _import_cast(
                movie_id,
                summary.get("title") or details.get("title"),
                details,
                seen_actor_ids,
                result,
                driver=driver,
                api_key=tmdb_api_key,
                http_session=http,
            )

    logger.info(
        f"Actors imported: movies={result.fetched} actors={result.upserted} "
        f"links={result.linked} failed={result.failed}"
    )
    return result


def import_all(
    *,
    driver: Driver | None = None,
    tmdb_api_key: str | None = None,
    http_session: requests.Session | None = None,
) -> list[ImportRunResult]:
    """Genres first, then the first page of popular movies."""

    with tmdb_session(http_session) as http:
        return [
            import_genres(driver=driver, tmdb_api_key=tmdb_api_key, http_session=http),
            import_movies(False, driver=driver, tmdb_api_key=tmdb_api_key, http_session=http),
        ]
