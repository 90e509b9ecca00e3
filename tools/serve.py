"""Run the search API with Flask's built-in server.

Usage:
    python -m tools serve [--port 56000] [--db data/corpus.db]
"""

from __future__ import annotations

import argparse

from config import settings
from corpus.repositories import CorpusStore
from retrieval import create_app


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="python -m tools serve", description="Serve the search API")
    parser.add_argument("--port", type=int, default=settings.serve_port, help="Port to listen on")
    parser.add_argument("--bind", default="127.0.0.1", help="Address to bind")
    parser.add_argument("--db", default=None, help="Corpus SQLite file (default: settings.db.path)")
    args = parser.parse_args(argv)

    app = create_app(CorpusStore(args.db))
    app.run(host=args.bind, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
