"""Helpers for building test corpora and embeddings."""

from __future__ import annotations

from datetime import datetime, timezone

import numpy as np

EMBEDDING_DIM = 3072


def unit_vector(*components: tuple[int, float]) -> np.ndarray:
    """A 3072-dim vector with the given (axis, value) components set."""
    vec = np.zeros(EMBEDDING_DIM, dtype=np.float32)
    for axis, value in components:
        vec[axis] = value
    return vec


def utc(year: int, month: int = 1, day: int = 1) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def seed_embedding_corpus(store, dates: list[datetime]) -> list[int]:
    """One paper per date; paper k's embedding is k steps away from unit_vector((0, 1.0)).

    Returns paper ids in nearest-first order for that query vector.
    """
    from corpus.models import NewPage, NewPaper

    papers = store.create_papers_with_pages(
        [
            NewPaper(
                universal_id=f"2402.{k:05d}",
                title=f"Paper {k}",
                abstract=f"Abstract {k}",
                publication_date=d,
                votes=k,
                pages=[NewPage(1, f"Body of paper {k}.")],
            )
            for k, d in enumerate(dates)
        ]
    )
    for k, paper in enumerate(papers):
        store.insert_paper_abstract_embedding(paper.id, unit_vector((0, 1.0), (1, 0.2 * k)))
    return [p.id for p in papers]
