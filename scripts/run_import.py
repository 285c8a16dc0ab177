#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cinegraph_backend.db.neo4j import (  # noqa: E402
    GraphConnectionError,
    create_neo4j_driver,
    ensure_graph_constraints,
    verify_graph_connectivity,
)
from cinegraph_backend.ingestion.movie_importer import (  # noqa: E402
    ImportRunError,
    ImportRunResult,
    import_actors,
    import_all,
    import_genres,
    import_latest_movies,
    import_movies,
)
from cinegraph_backend.integrations.tmdb.client import TMDB_MAX_POPULAR_PAGES  # noqa: E402
from cinegraph_backend.utils.env import load_env  # noqa: E402

logger = logging.getLogger("run_import")

MODES = ("genres", "movies", "latest", "actors", "all")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="run_import.py",
        description="Import TMDb genres, movies and actors into the Neo4j movie graph.",
    )
    parser.add_argument("mode", choices=MODES, help="Which import to run.")
    parser.add_argument(
        "--all",
        dest="fetch_all",
        action="store_true",
        help="movies: walk every popular page instead of page 1 only.",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=TMDB_MAX_POPULAR_PAGES,
        help=f"Cap on popular pages for `movies --all` and `actors` (default: {TMDB_MAX_POPULAR_PAGES}).",
    )
    parser.add_argument(
        "--skip-constraints",
        action="store_true",
        help="Do not create the graph uniqueness constraints before importing.",
    )
    parser.add_argument("--json", action="store_true", help="Print run summaries as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)
    if args.max_pages < 1:
        parser.error("--max-pages must be >= 1")
    return args


def _run(args: argparse.Namespace, driver) -> list[ImportRunResult]:
    if args.mode == "genres":
        return [import_genres(driver=driver)]
    if args.mode == "movies":
        return [import_movies(args.fetch_all, max_pages=args.max_pages, driver=driver)]
    if args.mode == "latest":
        return [import_latest_movies(driver=driver)]
    if args.mode == "actors":
        return [import_actors(max_pages=args.max_pages, driver=driver)]
    return import_all(driver=driver)


def _print_summary(results: list[ImportRunResult], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
        return
    for r in results:
        print(
            f"{r.mode}: pages={r.pages} fetched={r.fetched} upserted={r.upserted} "
            f"linked={r.linked} failed={r.failed}"
        )
        for failure in r.failures[:20]:
            print(f"  - {failure.stage} id={failure.item_id}: {failure.message}")
        if r.failed > 20:
            print(f"  ... {r.failed - 20} more")


def main(argv: list[str]) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_env()

    driver = None
    try:
        driver = create_neo4j_driver()
        verify_graph_connectivity(driver)
        if not args.skip_constraints:
            ensure_graph_constraints(driver)
        results = _run(args, driver)
    except (GraphConnectionError, ImportRunError) as exc:
        logger.error(str(exc))
        return 1
    except RuntimeError as exc:
        # Missing NEO4J_* or TMDB_* settings.
        logger.error(f"Configuration error: {exc}")
        return 1
    finally:
        if driver is not None:
            driver.close()

    _print_summary(results, as_json=args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
