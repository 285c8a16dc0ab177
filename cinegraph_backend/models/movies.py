from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any


def normalize_movie_id(value: Any) -> int:
    """
    Coerce a TMDb movie id to `int`.

    Accepts ints, integral floats and numeric strings ("27205", " 27205.0 ") so the same
    movie never ends up matched under two different property types in the graph.
    """

    if isinstance(value, bool):
        raise ValueError(f"Invalid movie id: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        raise ValueError(f"Invalid movie id: {value!r}")
    if isinstance(value, str):
        raw = value.strip()
        if raw.isdigit():
            return int(raw)
        try:
            parsed = float(raw)
        except ValueError:
            raise ValueError(f"Invalid movie id: {value!r}") from None
        if math.isfinite(parsed) and parsed.is_integer():
            return int(parsed)
    raise ValueError(f"Invalid movie id: {value!r}")


@dataclass(frozen=True)
class GenreRef:
    id: int
    name: str


@dataclass(frozen=True)
class CastCredit:
    id: int
    name: str


@dataclass(frozen=True)
class MovieUpsert:
    """
    Full property set written to a `Movie` node on every import.

    Every field is overwritten on re-import; `genres` and `credits` drive the
    BELONGS_TO and APPEARS_IN edges created in the same write.
    """

    id: int
    title: str
    overview: str
    release_date: str
    duration: int
    director: str
    cast: list[str] = field(default_factory=list)
    original_language: str = "Unknown"
    subtitles: list[str] = field(default_factory=list)
    age_rating: str = "NR"
    score: float = 0.0
    cover_image: str | None = None
    trailer_url: str | None = None
    tags: list[str] = field(default_factory=list)
    genres: list[GenreRef] = field(default_factory=list)
    credits: list[CastCredit] = field(default_factory=list)

    def to_params(self) -> dict[str, Any]:
        params = asdict(self)
        params["genres"] = [asdict(g) for g in self.genres]
        params["credits"] = [asdict(c) for c in self.credits]
        return params


@dataclass(frozen=True)
class ActorUpsert:
    id: int
    name: str | None = None
    profile_path: str | None = None
    biography: str | None = None
    birth_date: str | None = None
    birth_place: str | None = None
    popularity: float = 0.0
    # TMDb ids from the person's movie credits; only movies already in the graph get linked.
    credited_movie_ids: list[int] = field(default_factory=list)

    def to_params(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "profilePath": self.profile_path,
            "biography": self.biography,
            "birthDate": self.birth_date,
            "birthPlace": self.birth_place,
            "popularity": self.popularity,
        }


@dataclass(frozen=True)
class MovieCard:
    """Flat movie projection returned by discovery queries."""

    id: int
    title: str | None
    description: str | None
    releaseDate: str | None
    rating: float | None
    cover: str | None
    genre: str | list[str] | None
    trailerUrl: str
    actors: list[str] = field(default_factory=list)
    classification: str | None = None
    subtitles: str | list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SearchResult:
    movies: list[MovieCard] = field(default_factory=list)
    actorMovies: list[MovieCard] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "movies": [m.to_dict() for m in self.movies],
            "actorMovies": [m.to_dict() for m in self.actorMovies],
        }
