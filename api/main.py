"""
CineGraph Backend API - FastAPI application.

Provides endpoints for:
- Triggering TMDb imports into the movie graph
- Browsing movies by genre and searching by title
- Actor-based movie suggestions
- Per-user favorites
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import imports, movies, tmdb
from cinegraph_backend.db.neo4j import ensure_graph_constraints, get_neo4j_driver, verify_graph_connectivity

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """
    Get CORS allowed origins from environment.
    Set CORS_ALLOW_ORIGINS as comma-separated list of origins.
    Example: CORS_ALLOW_ORIGINS=http://localhost:3000,https://app.example.com
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "")
    if not origins_str:
        return []
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    logger.info("Starting up CineGraph Backend API...")
    driver = get_neo4j_driver()
    verify_graph_connectivity(driver)
    ensure_graph_constraints(driver)
    yield
    # Shutdown
    logger.info("Shutting down CineGraph Backend API...")
    driver.close()
    get_neo4j_driver.cache_clear()


app = FastAPI(
    title="CineGraph API",
    description="Movie, genre and actor graph built from TMDb",
    version="0.1.0",
    lifespan=lifespan,
)

# If no origins configured, allows all origins but disables credentials
cors_origins = get_cors_origins()
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(imports.router, prefix="/api/v1")
app.include_router(movies.router, prefix="/api/v1")
app.include_router(tmdb.router, prefix="/api/v1")


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "cinegraph-backend"}


@app.get("/health")
def health():
    return {"status": "healthy"}
