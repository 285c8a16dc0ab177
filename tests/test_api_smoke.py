"""
Smoke tests for the CineGraph API.

These tests verify routing, auth and error mapping without a live Neo4j or TMDb.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api import deps
from api.main import app
from api.routers import imports as imports_router
from api.routers import tmdb as tmdb_router
from cinegraph_backend.discovery.movies import DiscoveryError
from cinegraph_backend.ingestion.movie_importer import ImportRunError, ImportRunResult
from cinegraph_backend.integrations.tmdb.client import TmdbClientError

USER_HEADERS = {"X-Authenticated-User": "ana@example.com"}


@pytest.fixture
def client(wired_graph, fake_driver):
    """Create a test client backed by the in-memory graph."""
    wired_graph.users.add("ana@example.com")
    wired_graph.genres[28] = "Action"
    wired_graph.movies[27205] = {"id": 27205, "title": "Inception", "score": 8.4, "tags": ["dream"], "cast": ["Leo"]}
    wired_graph.belongs_to.add((27205, 28))
    wired_graph.actors[10] = {"id": 10, "name": "Leo"}
    wired_graph.appears_in.add((10, 27205))

    app.dependency_overrides[deps.get_graph_driver] = lambda: fake_driver
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_root_returns_ok(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "cinegraph-backend"}

    def test_health_returns_healthy(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMovieEndpoints:
    def test_search_returns_both_lists(self, client: TestClient):
        response = client.get("/api/v1/movies/search", params={"name": "incep"})
        assert response.status_code == 200
        data = response.json()
        assert [m["id"] for m in data["movies"]] == [27205]
        assert data["actorMovies"] == []

    def test_search_requires_name(self, client: TestClient):
        response = client.get("/api/v1/movies/search")
        assert response.status_code == 422

    def test_by_genre_snapshot(self, client: TestClient, monkeypatch):
        monkeypatch.setenv("DISCOVERY_ENRICHMENT_MODE", "snapshot")
        response = client.get("/api/v1/movies/by-genre", params={"genre": "Action"})
        assert response.status_code == 200
        assert response.json()[0]["title"] == "Inception"

    def test_latest_upstream_failure_is_502(self, client: TestClient, monkeypatch):
        from api.routers import movies as movies_router

        monkeypatch.setattr(
            movies_router,
            "get_latest_movies",
            MagicMock(side_effect=DiscoveryError("get_latest_movies", "timeout")),
        )
        response = client.get("/api/v1/movies/latest")
        assert response.status_code == 502


class TestFavoriteEndpoints:
    def test_favorites_require_authenticated_user(self, client: TestClient):
        response = client.get("/api/v1/movies/favorites")
        assert response.status_code == 401

    def test_favorite_round_trip(self, client: TestClient):
        response = client.post("/api/v1/movies/favorite", json={"id": "27205"}, headers=USER_HEADERS)
        assert response.status_code == 200

        response = client.get("/api/v1/movies/check-favorite/27205", headers=USER_HEADERS)
        assert response.json() == {"isFavorite": True}

        response = client.post("/api/v1/movies/unfavorite", json={"id": 27205}, headers=USER_HEADERS)
        assert response.json() == {"message": "Movie removed from favorites"}

        response = client.post("/api/v1/movies/unfavorite", json={"id": 27205}, headers=USER_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"message": "Movie was not in favorites"}

    def test_favorite_unknown_movie_is_404(self, client: TestClient):
        response = client.post("/api/v1/movies/favorite", json={"id": 424242}, headers=USER_HEADERS)
        assert response.status_code == 404
        assert response.json()["detail"] == "Movie or User not found"

    def test_favorite_invalid_id_is_400(self, client: TestClient):
        response = client.post("/api/v1/movies/favorite", json={"id": "abc"}, headers=USER_HEADERS)
        assert response.status_code == 400


class TestImportEndpoints:
    def test_movies_import_defaults_to_all_pages(self, client: TestClient, monkeypatch):
        import_movies = MagicMock(return_value=ImportRunResult(mode="movies-all", pages=2, upserted=40))
        monkeypatch.setattr(imports_router, "import_movies", import_movies)

        response = client.get("/api/v1/import/movies")

        assert response.status_code == 200
        assert import_movies.call_args.args[0] is True
        run = response.json()["runs"][0]
        assert run["upserted"] == 40
        assert run["failed"] == 0

    def test_import_failure_is_502(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(
            imports_router,
            "import_genres",
            MagicMock(side_effect=ImportRunError("genres", "could not fetch the genre list")),
        )
        response = client.get("/api/v1/import/genres")
        assert response.status_code == 502


class TestTmdbEndpoints:
    def test_popular_passthrough(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(tmdb_router, "fetch_popular_movies", lambda page: {"page": page, "results": []})
        response = client.get("/api/v1/tmdb/popular", params={"page": 3})
        assert response.json() == {"page": 3, "results": []}

    def test_actor_upstream_error_is_502(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(
            tmdb_router,
            "fetch_person_details",
            MagicMock(side_effect=TmdbClientError("TMDb request failed with HTTP 404.", status_code=404)),
        )
        response = client.get("/api/v1/tmdb/actor/1")
        assert response.status_code == 502
