"""
Ingestion helpers for importing TMDb data into the movie graph.
"""

from cinegraph_backend.ingestion.movie_importer import (
    ImportFailure,
    ImportRunError,
    ImportRunResult,
    import_actors,
    import_all,
    import_genres,
    import_latest_movies,
    import_movies,
)

__all__ = [
    "ImportFailure",
    "ImportRunError",
    "ImportRunResult",
    "import_actors",
    "import_all",
    "import_genres",
    "import_latest_movies",
    "import_movies",
]
