"""Map TMDb payloads onto graph upserts and flat movie cards."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from cinegraph_backend.models.movies import (
    ActorUpsert,
    CastCredit,
    GenreRef,
    MovieCard,
    MovieUpsert,
    normalize_movie_id,
)

TMDB_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v="

TOP_BILLED_CAST = 10
UNKNOWN_GENRE_NAME = "unknown"
DEFAULT_CERTIFICATION = "NR"


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def build_image_url(path: Any) -> str | None:
    path_str = _as_str(path)
    if path_str is None:
        return None
    return f"{TMDB_IMAGE_BASE_URL}{path_str}"


def build_genre_lookup(genres: Iterable[Mapping[str, Any]]) -> dict[int, str]:
    lookup: dict[int, str] = {}
    for genre in genres:
        genre_id = genre.get("id")
        name = _as_str(genre.get("name"))
        if isinstance(genre_id, int) and name:
            lookup[genre_id] = name
    return lookup


def resolve_genres(genre_ids: Any, lookup: Mapping[int, str]) -> list[GenreRef]:
    """Pair each genre id with its name; ids missing from the lookup are kept as "unknown"."""

    refs: list[GenreRef] = []
    seen: set[int] = set()
    for raw in _as_list(genre_ids):
        if not isinstance(raw, int) or isinstance(raw, bool) or raw in seen:
            continue
        seen.add(raw)
        refs.append(GenreRef(id=raw, name=lookup.get(raw, UNKNOWN_GENRE_NAME)))
    return refs


def pick_director(details: Mapping[str, Any]) -> str:
    for member in _as_list(_as_mapping(details.get("credits")).get("crew")):
        if isinstance(member, Mapping) and member.get("job") == "Director":
            name = _as_str(member.get("name"))
            if name:
                return name
    return "Unknown"


def pick_cast_credits(details: Mapping[str, Any], *, top_billed_only: bool = True) -> list[CastCredit]:
    """
    Cast members of a movie detail payload, in billing order.

    With `top_billed_only`, keeps only TMDb billing positions below 10.
    """

    members = [m for m in _as_list(_as_mapping(details.get("credits")).get("cast")) if isinstance(m, Mapping)]
    members.sort(key=lambda m: m.get("order") if isinstance(m.get("order"), int) else 10_000)

    credits: list[CastCredit] = []
    seen: set[int] = set()
    for member in members:
        order = member.get("order")
        if top_billed_only and not (isinstance(order, int) and order < TOP_BILLED_CAST):
            continue
        actor_id = member.get("id")
        name = _as_str(member.get("name"))
        if not isinstance(actor_id, int) or name is None or actor_id in seen:
            continue
        seen.add(actor_id)
        credits.append(CastCredit(id=actor_id, name=name))
    return credits


def pick_trailer_url(details: Mapping[str, Any]) -> str | None:
    videos = [v for v in _as_list(_as_mapping(details.get("videos")).get("results")) if isinstance(v, Mapping)]
    trailers = [v for v in videos if v.get("type") == "Trailer" and _as_str(v.get("key"))]
    if not trailers:
        return None
    youtube = [v for v in trailers if str(v.get("site") or "YouTube") == "YouTube"]
    key = (youtube or trailers)[0]["key"]
    return f"{YOUTUBE_WATCH_URL}{key}"


def pick_certification(details: Mapping[str, Any], *, region: str = "US") -> str:
    """
    Age certification from `release_dates`.

    Prefers the first non-empty certification for `region`, then any region's.
    """

    countries = [c for c in _as_list(_as_mapping(details.get("release_dates")).get("results")) if isinstance(c, Mapping)]
    ordered = [c for c in countries if c.get("iso_3166_1") == region]
    ordered += [c for c in countries if c.get("iso_3166_1") != region]
    for country in ordered:
        for release in _as_list(country.get("release_dates")):
            if isinstance(release, Mapping):
                certification = _as_str(release.get("certification"))
                if certification:
                    return certification.strip()
    return DEFAULT_CERTIFICATION


def spoken_language_names(details: Mapping[str, Any]) -> list[str]:
    names: list[str] = []
    for lang in _as_list(details.get("spoken_languages")):
        if isinstance(lang, Mapping):
            name = _as_str(lang.get("english_name")) or _as_str(lang.get("name"))
            if name:
                names.append(name)
    return names


def keyword_names(details: Mapping[str, Any]) -> list[str]:
    keywords = _as_list(_as_mapping(details.get("keywords")).get("keywords"))
    return [k["name"] for k in keywords if isinstance(k, Mapping) and _as_str(k.get("name"))]


def _as_float(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return 0.0


def build_movie_upsert(
    summary: Mapping[str, Any],
    details: Mapping[str, Any],
    genres: list[GenreRef],
) -> MovieUpsert:
    """
    Build the full Movie property set from a listing entry and its detail payload.

    Missing fields fall back to fixed placeholders so a re-import always writes
    every property.
    """

    movie_id = normalize_movie_id(summary.get("id", details.get("id")))
    credits = pick_cast_credits(details)
    runtime = details.get("runtime")
    return MovieUpsert(
        id=movie_id,
        title=_as_str(summary.get("title")) or _as_str(details.get("title")) or "Unknown Title",
        overview=_as_str(summary.get("overview")) or _as_str(details.get("overview")) or "No overview available",
        release_date=_as_str(summary.get("release_date")) or _as_str(details.get("release_date")) or "Unknown",
        duration=runtime if isinstance(runtime, int) else 0,
        director=pick_director(details),
        cast=[c.name for c in credits],
        original_language=_as_str(details.get("original_language")) or "Unknown",
        subtitles=spoken_language_names(details),
        age_rating=pick_certification(details),
        score=_as_float(details.get("vote_average")),
        cover_image=build_image_url(details.get("poster_path")),
        trailer_url=pick_trailer_url(details),
        tags=keyword_names(details),
        genres=genres,
        credits=credits,
    )


def build_actor_upsert(person: Mapping[str, Any]) -> ActorUpsert:
    person_id = person.get("id")
    if not isinstance(person_id, int):
        raise ValueError(f"TMDb person payload has no integer id: {person_id!r}")

    credited: list[int] = []
    for credit in _as_list(_as_mapping(person.get("movie_credits")).get("cast")):
        if isinstance(credit, Mapping) and isinstance(credit.get("id"), int):
            credited.append(credit["id"])

    return ActorUpsert(
        id=person_id,
        name=_as_str(person.get("name")),
        profile_path=build_image_url(person.get("profile_path")),
        biography=_as_str(person.get("biography")),
        birth_date=_as_str(person.get("birthday")),
        birth_place=_as_str(person.get("place_of_birth")),
        popularity=_as_float(person.get("popularity")),
        credited_movie_ids=sorted(set(credited)),
    )


def build_movie_card_from_details(details: Mapping[str, Any], *, fallback_id: Any = None) -> MovieCard:
    """Flat projection of a live TMDb detail payload."""

    genres = [g.get("name") for g in _as_list(details.get("genres")) if isinstance(g, Mapping) and g.get("name")]
    return MovieCard(
        id=normalize_movie_id(details.get("id", fallback_id)),
        title=_as_str(details.get("title")) or _as_str(details.get("original_title")),
        description=_as_str(details.get("overview")) or "No description available",
        releaseDate=_as_str(details.get("release_date")) or "Unknown",
        rating=_as_float(details.get("vote_average")),
        cover=build_image_url(details.get("poster_path")),
        genre=", ".join(genres),
        trailerUrl=pick_trailer_url(details) or "",
        actors=[c.name for c in pick_cast_credits(details)],
        classification=pick_certification(details),
        subtitles=", ".join(spoken_language_names(details)),
    )


def build_movie_card_from_node(node: Mapping[str, Any]) -> MovieCard:
    """Flat projection of a stored Movie node snapshot."""

    score = node.get("score")
    return MovieCard(
        id=normalize_movie_id(node.get("id")),
        title=_as_str(node.get("title")),
        description=_as_str(node.get("overview")),
        releaseDate=_as_str(node.get("release_date")),
        rating=_as_float(score) if score is not None else None,
        cover=_as_str(node.get("cover_image")),
        genre=list(_as_list(node.get("tags"))),
        trailerUrl=_as_str(node.get("trailer_url")) or "",
        actors=list(_as_list(node.get("cast"))),
        classification=_as_str(node.get("age_rating")),
        subtitles=list(_as_list(node.get("subtitles"))),
    )
