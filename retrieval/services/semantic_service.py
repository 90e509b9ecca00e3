"""Embedding similarity search over paper abstracts."""

from __future__ import annotations

import sqlite3
import time
from datetime import date, datetime
from typing import Sequence

import numpy as np
from loguru import logger

from config import settings
from corpus.errors import RetrievalError, SearchValidationError
from corpus.repositories import CorpusStore
from corpus.vectors import validate_embedding

from ..schemas.search import EmbeddingSearchResult


def search_by_embedding(
    store: CorpusStore,
    query_vector: Sequence[float] | np.ndarray,
    limit: int | None = None,
    min_publication_date: datetime | date | None = None,
    *,
    ef_search: int | None = None,
) -> list[EmbeddingSearchResult]:
    """Papers whose abstract embeddings are nearest to `query_vector`.

    The ANN recall width is raised for this query only, inside one store
    session. Candidates are then filtered by publication date and emitted
    in ANN distance order; filtered-out candidates are not replaced, so the
    result may hold fewer than `limit` papers.

    Raises:
        SearchValidationError: wrong dimension or non-positive limit, before any store access
        RetrievalError: the store or the index failed
    """
    limit = settings.search.embedding_limit if limit is None else limit
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise SearchValidationError(f"limit must be a positive integer, got {limit!r}", stage="embedding")
    ef_search = settings.ann.ef_search if ef_search is None else ef_search
    if isinstance(ef_search, bool) or not isinstance(ef_search, int) or ef_search <= 0:
        raise SearchValidationError(f"ef_search must be a positive integer, got {ef_search!r}", stage="embedding")
    vector = validate_embedding(query_vector, stage="embedding")

    t0 = time.time()
    stage = "ann"
    try:
        with store.session() as session:
            session.set_local("ann.ef_search", ef_search)
            hits = store.nearest_embeddings(session, vector, limit)
            if not hits:
                return []

            order = [paper_id for paper_id, _ in hits]
            distance_by_id = dict(hits)

            stage = "metadata"
            papers = store.find_papers(order, min_publication_date=min_publication_date, session=session)
    except sqlite3.Error as exc:
        logger.error(f"Embedding search failed at {stage}: {exc}")
        raise RetrievalError(f"Corpus store failure: {exc}", stage=stage) from exc

    # Re-assemble in ANN order; the metadata query's own order is ignored.
    by_id = {p.id: p for p in papers}
    results: list[EmbeddingSearchResult] = []
    for paper_id in order:
        paper = by_id.get(paper_id)
        if paper is None:
            continue
        results.append(
            EmbeddingSearchResult(
                universal_id=paper.universal_id,
                title=paper.title,
                abstract=paper.abstract,
                publication_date=paper.publication_date,
                votes=paper.votes,
                similarity_distance=distance_by_id[paper_id],
            )
        )

    logger.debug(
        f"Embedding search: {len(hits)} neighbours, {len(results)} after filtering, "
        f"ef_search={ef_search} in {time.time() - t0:.3f}s"
    )
    return results[:limit]
