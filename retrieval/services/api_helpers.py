"""API response helpers and request parsing utilities."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request
from pydantic import BaseModel

from corpus.repositories import CorpusStore


def api_error(error: str, status: int = 400, **extra) -> tuple[Any, int]:
    """Return a standardized JSON error response."""
    resp = {"success": False, "error": error}
    resp.update(extra)
    return jsonify(resp), status


def api_success(**data) -> Any:
    """Return a standardized JSON success response."""
    resp = {"success": True}
    resp.update(data)
    return jsonify(resp)


def get_store() -> CorpusStore:
    """The CorpusStore injected into the running app."""
    return current_app.extensions["corpus_store"]


def parse_query_args(model: type[BaseModel]):
    """Validate the query string against `model` (pydantic errors propagate)."""
    return model.model_validate(request.args.to_dict())


def parse_json_body(model: type[BaseModel]):
    """Validate the JSON body against `model`; a missing body validates as {}."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    return model.model_validate(data)
