"""
Import triggers. Each call runs one ingestion mode to completion.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from api.deps import GraphDriver, raise_http_error
from cinegraph_backend.ingestion.movie_importer import (
    ImportRunError,
    ImportRunResult,
    import_actors,
    import_all,
    import_genres,
    import_latest_movies,
    import_movies,
)

router = APIRouter(prefix="/import", tags=["import"])


class ImportResponse(BaseModel):
    message: str
    runs: list[dict[str, Any]]


def _response(message: str, *runs: ImportRunResult) -> dict:
    return {"message": message, "runs": [run.to_dict() for run in runs]}


@router.get("/movies", response_model=ImportResponse)
def run_movies_import(driver: GraphDriver, fetch_all: bool = Query(default=True, alias="all")) -> dict:
    """Import popular movies; `all=false` limits the run to the first page."""
    try:
        result = import_movies(fetch_all, driver=driver)
    except ImportRunError as exc:
        raise_http_error(exc, "importing movies")
    return _response("Movies import completed", result)


@router.get("/genres", response_model=ImportResponse)
def run_genres_import(driver: GraphDriver) -> dict:
    try:
        result = import_genres(driver=driver)
    except ImportRunError as exc:
        raise_http_error(exc, "importing genres")
    return _response("Genres import completed", result)


@router.get("/all", response_model=ImportResponse)
def run_full_import(driver: GraphDriver) -> dict:
    try:
        results = import_all(driver=driver)
    except ImportRunError as exc:
        raise_http_error(exc, "importing all data")
    return _response("All data import completed", *results)


@router.get("/latest", response_model=ImportResponse)
def run_latest_import(driver: GraphDriver) -> dict:
    try:
        result = import_latest_movies(driver=driver)
    except ImportRunError as exc:
        raise_http_error(exc, "importing latest movies")
    return _response("Latest movies import completed", result)


@router.get("/actors", response_model=ImportResponse)
def run_actors_import(driver: GraphDriver) -> dict:
    try:
        result = import_actors(driver=driver)
    except ImportRunError as exc:
        raise_http_error(exc, "importing actors")
    return _response("Actors import completed", result)
