"""Flask application factory."""

from __future__ import annotations

import logging
import sqlite3
import sys

from flask import Flask, request
from loguru import logger
from pydantic import ValidationError

from config import settings
from corpus.errors import RetrievalError, SearchValidationError
from corpus.repositories import CorpusStore

from .blueprints import api_papers, api_search
from .services import api_error


def configure_logging(sink=sys.stdout) -> None:
    logger.remove()
    serialize = str(settings.log_format or "text").strip().lower() == "json"
    logger.add(sink, level=settings.log_level.upper(), serialize=serialize)

    if not settings.web.access_log:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


def create_app(store: CorpusStore | None = None) -> Flask:
    """Build the API app around `store` (default: a store on settings.db.path)."""
    configure_logging()

    app = Flask(__name__)
    app.config.update(MAX_CONTENT_LENGTH=settings.web.max_content_length)
    app.extensions["corpus_store"] = store if store is not None else CorpusStore()

    @app.errorhandler(ValidationError)
    def _handle_request_validation(exc: ValidationError):
        # Convert Pydantic errors to JSON-serializable format
        errors = [
            {"loc": list(err.get("loc", [])), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return api_error("Invalid request data", 400, details=errors)

    @app.errorhandler(SearchValidationError)
    def _handle_search_validation(exc: SearchValidationError):
        logger.debug(f"Rejected search request: {exc}")
        return api_error(exc.message, 400)

    @app.errorhandler(RetrievalError)
    def _handle_retrieval(exc: RetrievalError):
        return api_error("Corpus store unavailable", 503, stage=exc.stage)

    @app.errorhandler(sqlite3.Error)
    def _handle_store_failure(exc: sqlite3.Error):
        # Paper lookups call the store directly.
        logger.error(f"Corpus lookup failed on {request.path}: {exc}")
        return api_error("Corpus store unavailable", 503, stage="lookup")

    @app.errorhandler(404)
    def _handle_404(_err):
        return api_error("Not Found", 404)

    @app.errorhandler(405)
    def _handle_405(_err):
        return api_error("Method Not Allowed", 405)

    @app.errorhandler(500)
    def _handle_500(_err):
        return api_error("Internal Server Error", 500)

    @app.after_request
    def add_security_headers(resp):
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Cache-Control", "no-store")
        return resp

    app.register_blueprint(api_search.bp)
    app.register_blueprint(api_papers.bp)

    logger.debug(f"App ready on corpus {app.extensions['corpus_store'].db_path}")
    return app
