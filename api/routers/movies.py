"""
Movie discovery endpoints: latest, by genre, title search and favorites.
"""
from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel

from api.auth import CurrentUsername
from api.deps import GraphDriver, raise_http_error
from cinegraph_backend.discovery.favorites import (
    add_movie_to_favorites,
    get_user_favorites,
    is_movie_favorite,
    remove_movie_from_favorites,
)
from cinegraph_backend.discovery.movies import (
    DiscoveryError,
    get_latest_movies,
    get_movies_by_genre,
    search_movies_by_name,
)
from cinegraph_backend.repositories.favorites import FavoriteNotFoundError

router = APIRouter(prefix="/movies", tags=["movies"])


# --- Pydantic models ---

class Movie(BaseModel):
    id: int
    title: str | None
    description: str | None
    releaseDate: str | None
    rating: float | None
    cover: str | None
    genre: str | list[str] | None
    trailerUrl: str
    actors: list[str]
    classification: str | None
    subtitles: str | list[str] | None


class SearchMoviesResponse(BaseModel):
    movies: list[Movie]
    actorMovies: list[Movie]


class FavoriteRequest(BaseModel):
    id: int | str


class FavoriteStatus(BaseModel):
    isFavorite: bool


class MessageResponse(BaseModel):
    message: str


# --- Endpoints ---

@router.get("/latest", response_model=list[Movie])
def latest_movies() -> list[dict]:
    """Now-playing movies from TMDb."""
    try:
        return [card.to_dict() for card in get_latest_movies()]
    except DiscoveryError as exc:
        raise_http_error(exc, "fetching latest movies")


@router.get("/by-genre", response_model=list[Movie])
def movies_by_genre(driver: GraphDriver, genre: str = Query(min_length=1)) -> list[dict]:
    """Up to 30 movies in a genre."""
    try:
        return [card.to_dict() for card in get_movies_by_genre(genre, driver=driver)]
    except DiscoveryError as exc:
        raise_http_error(exc, "fetching movies by genre")


@router.get("/search", response_model=SearchMoviesResponse)
def search_movies(driver: GraphDriver, name: str = Query(min_length=1)) -> dict:
    """Title matches plus movies sharing their leading actors."""
    try:
        return search_movies_by_name(name, driver=driver).to_dict()
    except DiscoveryError as exc:
        raise_http_error(exc, "searching movies")


@router.post("/favorite", response_model=MessageResponse)
def add_favorite(driver: GraphDriver, username: CurrentUsername, body: FavoriteRequest) -> dict:
    try:
        add_movie_to_favorites(username, body.id, driver=driver)
    except (FavoriteNotFoundError, DiscoveryError, ValueError) as exc:
        raise_http_error(exc, "adding favorite")
    return {"message": "Movie added to favorites"}


@router.post("/unfavorite", response_model=MessageResponse)
def remove_favorite(driver: GraphDriver, username: CurrentUsername, body: FavoriteRequest) -> dict:
    try:
        removed = remove_movie_from_favorites(username, body.id, driver=driver)
    except (FavoriteNotFoundError, DiscoveryError, ValueError) as exc:
        raise_http_error(exc, "removing favorite")
    if not removed:
        return {"message": "Movie was not in favorites"}
    return {"message": "Movie removed from favorites"}


@router.get("/check-favorite/{movie_id}", response_model=FavoriteStatus)
def check_favorite(driver: GraphDriver, username: CurrentUsername, movie_id: str) -> dict:
    try:
        return {"isFavorite": is_movie_favorite(username, movie_id, driver=driver)}
    except (DiscoveryError, ValueError) as exc:
        raise_http_error(exc, "checking favorite")


@router.get("/favorites", response_model=list[Movie])
def list_favorites(driver: GraphDriver, username: CurrentUsername) -> list[dict]:
    try:
        return [card.to_dict() for card in get_user_favorites(username, driver=driver)]
    except (DiscoveryError, ValueError) as exc:
        raise_http_error(exc, "fetching favorites")
