"""Abstract embedding vectors and the approximate nearest neighbor index.

Every embedding has a fixed dimension (EMBEDDING_DIM). The store keeps the
full float32 vector and a float16 copy; the index is built from the float16
copies only, which halves its memory footprint at a precision loss that does
not matter for ranking.

The index is an inverted file (IVF): paper vectors are grouped under k-means
centroids, and a query scans whole clusters, nearest centroid first, until it
has gathered `ef_search` candidates. Candidates are then ranked by exact
cosine distance. Corpora smaller than the training threshold, or no larger
than `ef_search`, are scanned exhaustively.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from loguru import logger
from sklearn.cluster import KMeans

from .errors import SearchValidationError

EMBEDDING_DIM = 3072


def validate_embedding(
    vector: Sequence[float] | np.ndarray,
    *,
    stage: str = "embedding",
    query: str | None = None,
) -> np.ndarray:
    """Return `vector` as float32, or raise SearchValidationError.

    The dimension must be exactly EMBEDDING_DIM; vectors are never truncated
    or padded. Non-finite values and the zero vector are rejected as well.
    """
    try:
        arr = np.asarray(vector, dtype=np.float32)
    except (TypeError, ValueError) as exc:
        raise SearchValidationError("Embedding must be a sequence of numbers", stage=stage, query=query) from exc
    if arr.ndim != 1 or arr.shape[0] != EMBEDDING_DIM:
        got = arr.shape[0] if arr.ndim == 1 else f"shape {arr.shape}"
        raise SearchValidationError(
            f"Invalid embedding dimensions: expected {EMBEDDING_DIM}, got {got}",
            stage=stage,
            query=query,
        )
    if not np.all(np.isfinite(arr)):
        raise SearchValidationError("Embedding contains non-finite values", stage=stage, query=query)
    if not np.any(arr):
        raise SearchValidationError("Embedding is the zero vector", stage=stage, query=query)
    return arr


def to_blob(arr: np.ndarray, dtype=np.float32) -> bytes:
    return np.ascontiguousarray(arr, dtype=dtype).tobytes()


def from_blob(data: bytes, dtype=np.float32) -> np.ndarray:
    return np.frombuffer(data, dtype=dtype)


def _normalize_rows(mat: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(mat, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return mat / norms


class IvfIndex:
    """Cosine-distance IVF index over float16 vectors keyed by paper id."""

    def __init__(self, paper_ids: np.ndarray, vectors: np.ndarray, nlist: int = 0, min_train_size: int = 2000):
        """
        Args:
            paper_ids: int64 array of paper ids, one per row of `vectors`
            vectors: (N, EMBEDDING_DIM) float16 matrix
            nlist: cluster count (0 = about sqrt(N))
            min_train_size: below this many rows no clustering is done
        """
        order = np.argsort(paper_ids, kind="stable")
        self.paper_ids = np.asarray(paper_ids, dtype=np.int64)[order]
        unit = _normalize_rows(np.asarray(vectors, dtype=np.float32)[order])
        self.vectors = unit.astype(np.float16)
        self.centroids: np.ndarray | None = None
        self.lists: list[np.ndarray] = []

        n = len(self.paper_ids)
        if n >= min_train_size:
            k = nlist or int(round(math.sqrt(n)))
            k = max(1, min(k, n))
            if k > 1:
                self._train(unit, k)

    def __len__(self) -> int:
        return len(self.paper_ids)

    @property
    def is_flat(self) -> bool:
        return self.centroids is None

    def _train(self, unit: np.ndarray, k: int) -> None:
        logger.debug(f"Training IVF index: {len(unit)} vectors, {k} lists")
        km = KMeans(n_clusters=k, n_init=1, random_state=0)
        labels = km.fit_predict(unit)
        self.centroids = _normalize_rows(km.cluster_centers_.astype(np.float32))
        # Row indices within each list stay ascending, i.e. in paper id order.
        self.lists = [np.flatnonzero(labels == c) for c in range(k)]

    def _candidates(self, q: np.ndarray, want: int) -> np.ndarray:
        if self.is_flat or want >= len(self):
            return np.arange(len(self))
        centroid_dist = 1.0 - self.centroids @ q
        picked: list[np.ndarray] = []
        total = 0
        for c in np.argsort(centroid_dist, kind="stable"):
            rows = self.lists[c]
            if not len(rows):
                continue
            picked.append(rows)
            total += len(rows)
            if total >= want:
                break
        return np.sort(np.concatenate(picked))

    def search(self, query: np.ndarray, k: int, ef_search: int) -> list[tuple[int, float]]:
        """Return up to `k` (paper_id, cosine distance) pairs, nearest first.

        Ties are broken by ascending paper id, so results are deterministic.
        """
        if k <= 0 or not len(self):
            return []
        q = np.asarray(query, dtype=np.float32)
        q = q / (np.linalg.norm(q) or 1.0)

        rows = self._candidates(q, max(int(ef_search), k))
        sims = self.vectors[rows].astype(np.float32) @ q
        dist = 1.0 - sims
        top = np.argsort(dist, kind="stable")[:k]
        return [(int(self.paper_ids[rows[i]]), float(dist[i])) for i in top]
