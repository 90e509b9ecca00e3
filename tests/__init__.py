"""Test package for paperscope.

- **unit/**: Unit tests for individual functions and classes
  - test_tokens.py: Keyword query parsing and search vectors
  - test_snippet_service.py: Snippet extraction
  - test_vectors.py: Embedding validation and the IVF index
  - test_db.py: Connections, transactions and lock retries
  - test_repositories.py: CorpusStore reads, writes and sessions
  - test_keyword_service.py: Keyword search stages
  - test_semantic_service.py: Embedding search and session-scoped recall
  - test_render_service.py: Text rendering for agents and the CLI
  - test_schemas.py: Pydantic request/result models
  - test_config.py: Settings validation and reload
  - test_tools_search.py: Command line search tool

- **integration/**: Integration tests using Flask test client
  - test_app.py: Application setup and error mapping
  - test_api_search.py: Search APIs
  - test_api_papers.py: Paper lookup APIs

Running tests:
    pytest tests/
    pytest tests/unit/
"""
