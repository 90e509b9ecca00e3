"""Pydantic schemas."""

from .search import (
    EmbeddingSearchRequest,
    EmbeddingSearchResult,
    KeywordSearchRequest,
    KeywordSearchResult,
    Occurrence,
    PageRequest,
    PaperLookupRequest,
)

__all__ = [
    "EmbeddingSearchRequest",
    "EmbeddingSearchResult",
    "KeywordSearchRequest",
    "KeywordSearchResult",
    "Occurrence",
    "PageRequest",
    "PaperLookupRequest",
]
