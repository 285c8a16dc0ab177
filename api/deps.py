"""
Dependency injection for the Neo4j driver and shared error translation.
"""
from __future__ import annotations

import logging
from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException
from neo4j import Driver

from cinegraph_backend.db.neo4j import get_neo4j_driver
from cinegraph_backend.discovery.movies import DiscoveryError
from cinegraph_backend.ingestion.movie_importer import ImportRunError
from cinegraph_backend.integrations.tmdb.client import TmdbClientError
from cinegraph_backend.repositories.favorites import FavoriteNotFoundError
from cinegraph_backend.utils.env import load_env

load_env()

logger = logging.getLogger(__name__)


def get_graph_driver() -> Driver:
    """
    Returns the process-wide Neo4j driver.

    Sessions are opened per unit of work by the library functions themselves.
    """
    return get_neo4j_driver()


# Type alias for dependency injection
GraphDriver = Annotated[Driver, Depends(get_graph_driver)]


def raise_http_error(exc: Exception, context: str) -> NoReturn:
    """
    Translate a library exception into an HTTP error.

    Args:
        exc: The exception raised by a core operation
        context: Description of the operation for error messages

    Raises:
        HTTPException: 404 for missing user/movie, 400 for invalid input,
            502 for TMDb or graph failures
    """
    if isinstance(exc, FavoriteNotFoundError):
        raise HTTPException(status_code=404, detail="Movie or User not found") from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if isinstance(exc, (DiscoveryError, ImportRunError, TmdbClientError)):
        logger.error(f"Upstream error during {context}: {exc}")
        # Don't leak internal error details to client
        raise HTTPException(status_code=502, detail=f"Upstream error during {context}") from exc
    raise exc
