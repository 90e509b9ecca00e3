"""Services package initialization."""

from .api_helpers import api_error, api_success, get_store, parse_json_body, parse_query_args
from .keyword_service import search_by_keyword
from .render_service import (
    render_abstract,
    render_embedding_results,
    render_keyword_results,
    render_page,
    sanitize_text,
)
from .semantic_service import search_by_embedding
from .snippet_service import extract_snippets

__all__ = [
    "api_error",
    "api_success",
    "extract_snippets",
    "get_store",
    "parse_json_body",
    "parse_query_args",
    "render_abstract",
    "render_embedding_results",
    "render_keyword_results",
    "render_page",
    "sanitize_text",
    "search_by_embedding",
    "search_by_keyword",
]
