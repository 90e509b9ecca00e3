"""Search the corpus from the command line.

Usage:
    python -m tools search keyword "attention heads" --max-papers 5 --since 2023-01-01
    python -m tools search embedding query.json --limit 20
    python -m tools search abstract 2301.00001
    python -m tools search page 2301.00001 3
"""

from __future__ import annotations

import argparse
import json
import sqlite3
import sys
from datetime import date

from loguru import logger

from config import settings
from corpus.errors import PaperscopeError
from corpus.repositories import CorpusStore
from retrieval.services import (
    render_abstract,
    render_embedding_results,
    render_keyword_results,
    render_page,
    search_by_embedding,
    search_by_keyword,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m tools search", description="Search papers in the corpus")
    parser.add_argument("--db", default=None, help="Corpus SQLite file (default: settings.db.path)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")
    sub = parser.add_subparsers(dest="command", required=True)

    kw = sub.add_parser("keyword", help="Full-text keyword search with page snippets")
    kw.add_argument("query", help="Keywords (ANDed); supports \"phrases\" and -negation")
    kw.add_argument("--max-papers", type=int, default=None, help="Maximum papers to return")
    kw.add_argument("--max-snippets", type=int, default=None, help="Maximum snippets per paper")
    kw.add_argument("--since", type=date.fromisoformat, default=None, help="Minimum publication date (YYYY-MM-DD)")
    kw.add_argument("--json", action="store_true", help="Print JSON instead of text")

    emb = sub.add_parser("embedding", help="Nearest abstracts to an embedding read from a JSON file ('-' = stdin)")
    emb.add_argument("vector_file", help="JSON array of floats")
    emb.add_argument("--limit", type=int, default=None, help="Maximum papers to return")
    emb.add_argument("--since", type=date.fromisoformat, default=None, help="Minimum publication date (YYYY-MM-DD)")
    emb.add_argument("--ef-search", type=int, default=None, help="ANN recall width for this query")
    emb.add_argument("--json", action="store_true", help="Print JSON instead of text")

    ab = sub.add_parser("abstract", help="Print a paper's abstract")
    ab.add_argument("universal_id")

    pg = sub.add_parser("page", help="Print one page of a paper")
    pg.add_argument("universal_id")
    pg.add_argument("page_number", type=int)
    return parser


def _read_vector(path: str) -> list[float]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def run(args: argparse.Namespace, store: CorpusStore) -> str:
    if args.command == "keyword":
        results = search_by_keyword(
            store,
            args.query,
            max_papers=args.max_papers,
            max_snippets_per_paper=args.max_snippets,
            min_publication_date=args.since,
        )
        if args.json:
            return json.dumps([r.to_api() for r in results], ensure_ascii=False, indent=2)
        return render_keyword_results(results, args.query)

    if args.command == "embedding":
        results = search_by_embedding(
            store,
            _read_vector(args.vector_file),
            limit=args.limit,
            min_publication_date=args.since,
            ef_search=args.ef_search,
        )
        if args.json:
            return json.dumps([r.to_api() for r in results], ensure_ascii=False, indent=2)
        return render_embedding_results(results)

    if args.command == "abstract":
        return render_abstract(store.get_paper_abstract(args.universal_id), args.universal_id)

    return render_page(store.get_page(args.universal_id, args.page_number), args.universal_id, args.page_number)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if args.verbose else settings.log_level.upper(),
        serialize=settings.log_format == "json",
    )

    try:
        output = run(args, CorpusStore(args.db))
    except PaperscopeError as exc:
        logger.error(str(exc))
        return 1
    except (OSError, ValueError, sqlite3.Error) as exc:
        # bad vector file or unreadable corpus
        logger.error(f"{args.command} failed: {exc}")
        return 1
    sys.stdout.write(output.rstrip("\n") + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
