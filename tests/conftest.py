from __future__ import annotations

from typing import Any, Iterable
from unittest.mock import MagicMock

import pytest

from cinegraph_backend.models.movies import ActorUpsert, MovieUpsert
from cinegraph_backend.repositories.favorites import FavoriteNotFoundError
from cinegraph_backend.repositories.graph import GraphRepositoryError


class FakeGraph:
    """
    In-memory stand-in for the Neo4j repositories.

    Methods mirror the repository function signatures (session first) and follow
    MERGE semantics, so importer and discovery code can run against it unchanged.
    """

    def __init__(self) -> None:
        self.movies: dict[int, dict[str, Any]] = {}
        self.genres: dict[int, str] = {}
        self.actors: dict[int, dict[str, Any]] = {}
        self.users: set[str] = set()
        self.belongs_to: set[tuple[int, int]] = set()
        self.appears_in: set[tuple[int, int]] = set()
        self.favorites: set[tuple[str, int]] = set()
        self.fail_movie_ids: set[int] = set()
        self.calls: list[str] = []

    # --- writes ---

    def upsert_genre(self, _session, genre_id: int, name: str) -> None:
        self.calls.append("upsert_genre")
        self.genres.setdefault(int(genre_id), name)

    def upsert_movie(self, _session, movie: MovieUpsert) -> int:
        self.calls.append("upsert_movie")
        if movie.id in self.fail_movie_ids:
            raise GraphRepositoryError(f"Neo4j error during upserting movie {movie.id}: boom")
        params = movie.to_params()
        genres = params.pop("genres")
        credits = params.pop("credits")
        self.movies[movie.id] = params
        for genre in genres:
            self.genres.setdefault(genre["id"], genre["name"])
            self.belongs_to.add((movie.id, genre["id"]))
        for credit in credits:
            self.actors.setdefault(credit["id"], {"id": credit["id"], "name": credit["name"]})
            self.appears_in.add((credit["id"], movie.id))
        return movie.id

    def upsert_actor(self, _session, actor: ActorUpsert, *, credited_movies: Iterable[dict] = ()) -> int:
        self.calls.append("upsert_actor")
        self.actors[actor.id] = actor.to_params()
        for movie in credited_movies:
            self.movies.setdefault(int(movie["id"]), {"id": int(movie["id"]), "title": movie.get("title")})
            self.appears_in.add((actor.id, int(movie["id"])))
        linked = 0
        for movie_id in actor.credited_movie_ids:
            if movie_id in self.movies:
                self.appears_in.add((actor.id, movie_id))
                linked += 1
        return linked

    def link_actor_to_movie(self, _session, *, actor_id, actor_name, movie_id, movie_title) -> None:
        self.calls.append("link_actor_to_movie")
        self.actors.setdefault(actor_id, {"id": actor_id, "name": actor_name})
        self.movies.setdefault(movie_id, {"id": movie_id, "title": movie_title})
        self.appears_in.add((actor_id, movie_id))

    def add_favorite(self, _session, username: str, movie_id: int) -> None:
        if username not in self.users or movie_id not in self.movies:
            raise FavoriteNotFoundError(username, movie_id)
        self.favorites.add((username, movie_id))

    def remove_favorite(self, _session, username: str, movie_id: int) -> bool:
        if username not in self.users or movie_id not in self.movies:
            raise FavoriteNotFoundError(username, movie_id)
        if (username, movie_id) not in self.favorites:
            return False
        self.favorites.discard((username, movie_id))
        return True

    # --- reads ---

    def is_favorite(self, _session, username: str, movie_id: int) -> bool:
        return (username, movie_id) in self.favorites

    def list_favorites(self, _session, username: str) -> list[dict[str, Any]]:
        nodes = [dict(self.movies[m]) for (u, m) in self.favorites if u == username]
        return sorted(nodes, key=lambda n: n.get("title") or "")

    def find_movies_by_genre(self, _session, genre: str, *, limit: int = 30) -> list[dict[str, Any]]:
        genre_ids = {gid for gid, name in self.genres.items() if name == genre}
        movie_ids = sorted({m for (m, g) in self.belongs_to if g in genre_ids})
        return [dict(self.movies[m]) for m in movie_ids][:limit]

    def search_movies_by_title(self, _session, name: str, *, limit: int = 30) -> list[dict[str, Any]]:
        needle = name.lower()
        nodes = [dict(m) for m in self.movies.values() if needle in (m.get("title") or "").lower()]
        return sorted(nodes, key=lambda n: n.get("title") or "")[:limit]

    def find_top_actor_names(self, _session, movie_ids, *, per_movie: int = 2) -> dict[int, list[str]]:
        top: dict[int, list[str]] = {}
        for movie_id in movie_ids:
            names = sorted(
                {self.actors[a]["name"] for (a, m) in self.appears_in if m == movie_id and self.actors[a].get("name")}
            )
            if names:
                top[movie_id] = names[:per_movie]
        return top

    def find_movies_by_actor_names(self, _session, actor_names, *, exclude_ids=(), limit: int = 30):
        names = set(actor_names)
        excluded = set(exclude_ids)
        movie_ids = sorted(
            {m for (a, m) in self.appears_in if self.actors[a].get("name") in names and m not in excluded}
        )
        return [dict(self.movies[m]) for m in movie_ids][:limit]


@pytest.fixture
def fake_graph() -> FakeGraph:
    return FakeGraph()


@pytest.fixture
def fake_driver() -> MagicMock:
    """Driver whose sessions accept anything; graph state lives in `fake_graph`."""
    return MagicMock(name="neo4j_driver")


@pytest.fixture
def wired_graph(monkeypatch: pytest.MonkeyPatch, fake_graph: FakeGraph) -> FakeGraph:
    """Route importer and discovery repository calls into `fake_graph`."""
    from cinegraph_backend.discovery import movies as discovery_movies
    from cinegraph_backend.ingestion import movie_importer
    from cinegraph_backend.repositories import favorites as favorites_repo

    for name in ("upsert_genre", "upsert_movie", "upsert_actor", "link_actor_to_movie"):
        monkeypatch.setattr(movie_importer, name, getattr(fake_graph, name))
    for name in (
        "find_movies_by_genre",
        "search_movies_by_title",
        "find_top_actor_names",
        "find_movies_by_actor_names",
    ):
        monkeypatch.setattr(discovery_movies, name, getattr(fake_graph, name))
    for name in ("add_favorite", "remove_favorite", "is_favorite", "list_favorites"):
        monkeypatch.setattr(favorites_repo, name, getattr(fake_graph, name))
    return fake_graph


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "test-key")
    monkeypatch.delenv("TMDB_BASE_URL", raising=False)
    monkeypatch.delenv("DISCOVERY_ENRICHMENT_MODE", raising=False)
    monkeypatch.delenv("NEO4J_DATABASE", raising=False)
