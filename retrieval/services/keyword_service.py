"""Keyword search over paper pages.

Three stages, none of which sorts the full set of matching pages:

1. Candidates: distinct paper ids whose pages match the token query, capped
   at max_papers * overfetch_factor and answered from the FTS index alone.
2. Rank: metadata for exactly those candidates, minimum-publication-date
   filter, votes descending, top max_papers.
3. Snippets: matching pages of the selected papers only, at most
   max_snippets_per_paper occurrences per paper.

Because the candidate cap applies before the date filter, a selective date
filter can return fewer than max_papers papers even when more matches exist
beyond the candidate window. That shortfall is accepted behavior.
"""

from __future__ import annotations

import sqlite3
import time
from datetime import date, datetime
from typing import Callable, TypeVar

from loguru import logger

from config import settings
from corpus.errors import RetrievalError, SearchValidationError
from corpus.repositories import CorpusStore
from corpus.tokens import parse_keyword_query

from ..schemas.search import KeywordSearchResult, Occurrence
from .snippet_service import extract_snippets

T = TypeVar("T")


def _require_positive(name: str, value, query: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SearchValidationError(f"{name} must be a positive integer, got {value!r}", stage="keyword", query=query)
    return value


def _store_call(stage: str, query: str, fn: Callable[..., T], *args, **kwargs) -> T:
    try:
        return fn(*args, **kwargs)
    except sqlite3.Error as exc:
        logger.error(f"Keyword search failed at {stage} for {query!r}: {exc}")
        raise RetrievalError(f"Corpus store failure: {exc}", stage=stage, query=query) from exc


def search_by_keyword(
    store: CorpusStore,
    query: str,
    max_papers: int | None = None,
    max_snippets_per_paper: int | None = None,
    min_publication_date: datetime | date | None = None,
    *,
    overfetch_factor: int | None = None,
    snippet_window: int | None = None,
) -> list[KeywordSearchResult]:
    """Search page text for `query` and return papers with snippets.

    Args:
        store: corpus store handle
        query: whitespace-separated keywords, ANDed ("phrases" and -negations allowed)
        max_papers: maximum papers returned (default from settings)
        max_snippets_per_paper: maximum occurrences per paper (default from settings)
        min_publication_date: only papers published on or after this date
        overfetch_factor: candidate cap multiplier (default from settings)
        snippet_window: snippet width in characters (default from settings)

    Returns:
        Papers by votes descending, each with its occurrences in page order.
        An empty list when nothing matches.

    Raises:
        SearchValidationError: non-positive limits
        RetrievalError: the store failed
    """
    query = query or ""
    max_papers = _require_positive(
        "max_papers", settings.search.max_papers if max_papers is None else max_papers, query
    )
    max_snippets = _require_positive(
        "max_snippets_per_paper",
        settings.search.max_snippets_per_paper if max_snippets_per_paper is None else max_snippets_per_paper,
        query,
    )
    overfetch = _require_positive(
        "overfetch_factor", settings.search.overfetch_factor if overfetch_factor is None else overfetch_factor, query
    )
    window = _require_positive(
        "snippet_window", settings.search.snippet_window if snippet_window is None else snippet_window, query
    )

    parsed = parse_keyword_query(query)
    if parsed.is_empty:
        logger.debug(f"Keyword query {query!r} has no searchable tokens")
        return []
    match = parsed.match_expression

    t0 = time.time()
    candidate_ids = _store_call(
        "candidates", query, store.find_matching_paper_ids, match, limit=max_papers * overfetch
    )
    if not candidate_ids:
        logger.debug(f"Keyword search {query!r}: no candidates ({time.time() - t0:.3f}s)")
        return []

    top_papers = _store_call(
        "rank", query, store.find_papers, candidate_ids, min_publication_date=min_publication_date, limit=max_papers
    )
    if not top_papers:
        logger.debug(f"Keyword search {query!r}: {len(candidate_ids)} candidates, none passed the date filter")
        return []

    pages = _store_call("snippets", query, store.fetch_matching_pages, [p.id for p in top_papers], match)

    # Papers keep the rank order from stage 2; pages fill them in fetch order.
    results: dict[int, KeywordSearchResult] = {}
    for paper in top_papers:
        results[paper.id] = KeywordSearchResult(
            universal_id=paper.universal_id,
            paper_title=paper.title,
            votes=paper.votes,
            publication_date=paper.publication_date,
            occurrences=[],
        )

    snippet_query = parsed.snippet_query
    for page in pages:
        result = results.get(page.paper_id)
        if result is None or len(result.occurrences) >= max_snippets:
            continue
        for snippet in extract_snippets(page.text, snippet_query, window):
            if len(result.occurrences) >= max_snippets:
                break
            result.occurrences.append(Occurrence(page_number=page.page_number, snippet=snippet))

    logger.debug(
        f"Keyword search {query!r}: {len(candidate_ids)} candidates, {len(top_papers)} papers, "
        f"{len(pages)} pages in {time.time() - t0:.3f}s"
    )
    return list(results.values())
