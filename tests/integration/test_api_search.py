"""Integration tests for search APIs."""

from __future__ import annotations

from tests.corpus_helpers import seed_embedding_corpus, unit_vector, utc


class TestKeywordSearchApi:
    """Tests for keyword search API."""

    def test_keyword_search_returns_ranked_papers(self, client):
        resp = client.get("/api/search/keyword?keyword=transformer&maxPapers=2")
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["success"] is True
        assert [r["universalId"] for r in data["results"]] == ["2301.00003", "2301.00001"]
        assert data["totalPapers"] == 2
        assert data["totalOccurrences"] == sum(len(r["occurrences"]) for r in data["results"])

    def test_keyword_search_result_shape(self, client):
        data = client.get("/api/search/keyword?keyword=attention").get_json()
        result = data["results"][0]
        assert set(result) == {"universalId", "paperTitle", "votes", "publicationDate", "occurrences"}
        assert set(result["occurrences"][0]) == {"pageNumber", "snippet"}

    def test_keyword_search_snippet_cap(self, client):
        data = client.get("/api/search/keyword?keyword=transformer&maxSnippetsPerPaper=1").get_json()
        assert all(len(r["occurrences"]) <= 1 for r in data["results"])

    def test_keyword_search_date_filter(self, client):
        data = client.get("/api/search/keyword?keyword=transformer&minPublicationDate=2024-01-01").get_json()
        assert [r["universalId"] for r in data["results"]] == ["2301.00003"]

    def test_keyword_search_no_match_returns_empty_list(self, client):
        data = client.get("/api/search/keyword?keyword=quantum").get_json()
        assert data["success"] is True
        assert data["results"] == []
        assert data["totalPapers"] == 0

    def test_keyword_search_missing_keyword_returns_400(self, client):
        resp = client.get("/api/search/keyword")
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_keyword_search_invalid_limit_returns_400(self, client):
        resp = client.get("/api/search/keyword?keyword=transformer&maxPapers=0")
        assert resp.status_code == 400


class TestEmbeddingSearchApi:
    """Tests for embedding search API."""

    def test_embedding_search(self, client, seeded_store):
        seed_embedding_corpus(seeded_store, [utc(2024), utc(2020), utc(2024)])

        resp = client.post(
            "/api/search/embedding",
            json={"embedding": unit_vector((0, 1.0)).tolist(), "limit": 3, "minPublicationDate": "2023-06-01"},
        )
        assert resp.status_code == 200

        data = resp.get_json()
        assert [r["universalId"] for r in data["results"]] == ["2402.00000", "2402.00002"]
        assert data["totalPapers"] == 2
        distances = [r["similarityDistance"] for r in data["results"]]
        assert distances == sorted(distances)

    def test_embedding_search_missing_body_returns_400(self, client):
        resp = client.post("/api/search/embedding")
        assert resp.status_code == 400

    def test_embedding_search_get_not_allowed(self, client):
        resp = client.get("/api/search/embedding")
        assert resp.status_code == 405
