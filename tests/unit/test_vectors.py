"""Unit tests for embedding validation and the IVF index."""

from __future__ import annotations

import numpy as np
import pytest

from tests.corpus_helpers import EMBEDDING_DIM, unit_vector


class TestValidateEmbedding:
    def test_returns_float32(self):
        from corpus.vectors import validate_embedding

        arr = validate_embedding([1.0] * EMBEDDING_DIM)
        assert arr.dtype == np.float32
        assert arr.shape == (EMBEDDING_DIM,)

    def test_wrong_dimension_rejected(self):
        from corpus.errors import SearchValidationError
        from corpus.vectors import validate_embedding

        with pytest.raises(SearchValidationError) as exc_info:
            validate_embedding([0.1, 0.2, 0.3], stage="embedding")
        assert "expected 3072, got 3" in str(exc_info.value)
        assert exc_info.value.stage == "embedding"

    def test_never_truncates_or_pads(self):
        from corpus.errors import SearchValidationError
        from corpus.vectors import validate_embedding

        for n in (EMBEDDING_DIM - 1, EMBEDDING_DIM + 1):
            with pytest.raises(SearchValidationError):
                validate_embedding(np.ones(n))

    def test_non_finite_and_zero_rejected(self):
        from corpus.errors import SearchValidationError
        from corpus.vectors import validate_embedding

        bad = unit_vector((0, 1.0))
        bad[5] = np.nan
        with pytest.raises(SearchValidationError):
            validate_embedding(bad)
        with pytest.raises(SearchValidationError):
            validate_embedding(np.zeros(EMBEDDING_DIM))

    def test_non_numeric_rejected(self):
        from corpus.errors import SearchValidationError
        from corpus.vectors import validate_embedding

        with pytest.raises(SearchValidationError):
            validate_embedding(["a"] * EMBEDDING_DIM)


class TestBlobs:
    def test_float16_copy_halves_size(self):
        from corpus.vectors import from_blob, to_blob

        vec = unit_vector((0, 0.5), (1, 0.25))
        full = to_blob(vec, np.float32)
        half = to_blob(vec, np.float16)
        assert len(half) * 2 == len(full)
        np.testing.assert_allclose(from_blob(half, np.float16).astype(np.float32), vec)


def _clustered(n_per_cluster: int = 20, seed: int = 7):
    rng = np.random.default_rng(seed)
    ids, vecs = [], []
    for c in range(3):
        for i in range(n_per_cluster):
            v = np.zeros(EMBEDDING_DIM, dtype=np.float32)
            v[c * 100] = 1.0
            v[c * 100 + 1 + (i % 10)] = 0.05 + 0.01 * rng.random()
            vecs.append(v)
            ids.append(c * 1000 + i)
    return np.asarray(ids, dtype=np.int64), np.vstack(vecs).astype(np.float16)


class TestIvfIndex:
    def test_small_corpus_is_flat(self):
        from corpus.vectors import IvfIndex

        ids, vecs = _clustered()
        index = IvfIndex(ids, vecs, min_train_size=2000)
        assert index.is_flat
        assert len(index) == len(ids)

    def test_flat_search_orders_by_distance(self):
        from corpus.vectors import IvfIndex

        vecs = np.vstack([unit_vector((0, 1.0), (1, 0.2 * k)) for k in range(4)]).astype(np.float16)
        index = IvfIndex(np.array([10, 11, 12, 13]), vecs)

        hits = index.search(unit_vector((0, 1.0)), k=3, ef_search=1000)

        assert [pid for pid, _ in hits] == [10, 11, 12]
        distances = [d for _, d in hits]
        assert distances == sorted(distances)
        assert distances[0] == pytest.approx(0.0, abs=1e-3)

    def test_ties_broken_by_lower_paper_id(self):
        from corpus.vectors import IvfIndex

        same = unit_vector((0, 1.0))
        vecs = np.vstack([same, same, same]).astype(np.float16)
        index = IvfIndex(np.array([30, 10, 20]), vecs)

        assert [pid for pid, _ in index.search(same, k=3, ef_search=10)] == [10, 20, 30]

    def test_trained_index_scans_nearest_cluster_first(self):
        from corpus.vectors import IvfIndex

        ids, vecs = _clustered()
        index = IvfIndex(ids, vecs, nlist=3, min_train_size=10)
        assert not index.is_flat

        hits = index.search(unit_vector((100, 1.0)), k=5, ef_search=5)

        assert len(hits) == 5
        assert all(1000 <= pid < 2000 for pid, _ in hits)

    def test_full_recall_matches_exhaustive_scan(self):
        from corpus.vectors import IvfIndex

        ids, vecs = _clustered()
        trained = IvfIndex(ids, vecs, nlist=3, min_train_size=10)
        flat = IvfIndex(ids, vecs, min_train_size=2000)
        query = unit_vector((0, 1.0), (100, 0.5))

        assert trained.search(query, k=10, ef_search=len(ids)) == flat.search(query, k=10, ef_search=len(ids))

    def test_search_is_deterministic(self):
        from corpus.vectors import IvfIndex

        ids, vecs = _clustered()
        query = unit_vector((200, 1.0), (201, 0.1))
        first = IvfIndex(ids, vecs, nlist=3, min_train_size=10).search(query, k=7, ef_search=8)
        second = IvfIndex(ids, vecs, nlist=3, min_train_size=10).search(query, k=7, ef_search=8)
        assert first == second

    def test_empty_index(self):
        from corpus.vectors import IvfIndex

        index = IvfIndex(np.array([], dtype=np.int64), np.zeros((0, EMBEDDING_DIM), dtype=np.float16))
        assert index.search(unit_vector((0, 1.0)), k=5, ef_search=10) == []
