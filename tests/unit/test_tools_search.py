"""Tests for the command line search tool."""

from __future__ import annotations

import json


class TestSearchCli:
    def test_keyword_text_output(self, seeded_store, capsys):
        from tools.search import main

        rc = main(["--db", seeded_store.db_path, "keyword", "transformer", "--max-papers", "2"])

        out = capsys.readouterr().out
        assert rc == 0
        assert '**Found 2 paper(s)' in out
        assert out.index("2301.00003") < out.index("2301.00001")
        assert "2301.00002" not in out

    def test_keyword_json_output(self, seeded_store, capsys):
        from tools.search import main

        rc = main(["--db", seeded_store.db_path, "keyword", "transformer", "--since", "2024-01-01", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert rc == 0
        assert [r["universalId"] for r in data] == ["2301.00003"]
        assert data[0]["occurrences"][0]["pageNumber"] == 1

    def test_keyword_no_results(self, seeded_store, capsys):
        from tools.search import main

        main(["--db", seeded_store.db_path, "keyword", "quantum"])
        assert capsys.readouterr().out.strip() == 'No papers found matching keyword: "quantum"'

    def test_page_and_abstract(self, seeded_store, capsys):
        from tools.search import main

        main(["--db", seeded_store.db_path, "page", "2301.00003", "3"])
        assert "sharded across devices" in capsys.readouterr().out

        main(["--db", seeded_store.db_path, "abstract", "2301.00001"])
        assert "We study attention" in capsys.readouterr().out

    def test_embedding_from_file(self, store, tmp_path, capsys):
        from tests.corpus_helpers import seed_embedding_corpus, unit_vector, utc
        from tools.search import main

        seed_embedding_corpus(store, [utc(2024)] * 2)
        vector_file = tmp_path / "q.json"
        vector_file.write_text(json.dumps(unit_vector((0, 1.0)).tolist()))

        rc = main(["--db", store.db_path, "embedding", str(vector_file), "--limit", "1", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert rc == 0
        assert [r["universalId"] for r in data] == ["2402.00000"]

    def test_validation_error_exit_code(self, store, tmp_path):
        from tools.search import main

        vector_file = tmp_path / "q.json"
        vector_file.write_text("[0.1, 0.2]")
        assert main(["--db", store.db_path, "embedding", str(vector_file)]) == 1

    def test_missing_vector_file_exit_code(self, store, tmp_path):
        from tools.search import main

        assert main(["--db", store.db_path, "embedding", str(tmp_path / "nope.json")]) == 1

    def test_malformed_vector_file_exit_code(self, store, tmp_path):
        from tools.search import main

        vector_file = tmp_path / "q.json"
        vector_file.write_text("not json")
        assert main(["--db", store.db_path, "embedding", str(vector_file)]) == 1

    def test_store_failure_exit_code(self, seeded_store, monkeypatch):
        import sqlite3

        from corpus.repositories import CorpusStore
        from tools.search import main

        def failing(self, *args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(CorpusStore, "get_paper_abstract", failing)
        assert main(["--db", seeded_store.db_path, "abstract", "2301.00001"]) == 1


class TestToolsEntrypoint:
    def test_dispatches_to_search(self, seeded_store, capsys):
        from tools.__main__ import main

        rc = main(["search", "--db", seeded_store.db_path, "abstract", "2301.00001"])

        assert rc == 0
        assert "We study attention" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        from tools.__main__ import main

        assert main(["compute"]) == 2
        err = capsys.readouterr().err
        assert "Unknown command: compute" in err
        assert "search" in err

    def test_help(self, capsys):
        from tools.__main__ import main

        assert main([]) == 0
        assert "serve" in capsys.readouterr().err
