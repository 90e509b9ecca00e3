"""Shared pytest fixtures and test configuration.

This module provides common fixtures and utilities for all tests.
"""

from __future__ import annotations

import os
import sys
import tempfile

import pytest

# Ensure repo root is on sys.path
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


def configure_test_env() -> None:
    """Configure environment variables for testing.

    Settings are read once at import time, so this must run before anything
    imports `config`. The data directory defaults to an isolated temporary
    directory unless PAPERSCOPE_DATA_DIR is already set.
    """
    if "PAPERSCOPE_DATA_DIR" not in os.environ:
        os.environ["PAPERSCOPE_DATA_DIR"] = tempfile.mkdtemp(prefix="paperscope_test_")
    os.environ.setdefault("PAPERSCOPE_LOG_LEVEL", "ERROR")


# Configure test environment on import
configure_test_env()


@pytest.fixture
def store(tmp_path):
    """An empty corpus store on a fresh database file."""
    from corpus.repositories import CorpusStore

    return CorpusStore(str(tmp_path / "corpus.db"), default_ef_search=1000, ann_nlist=0, ann_min_train_size=2000)


@pytest.fixture
def seeded_store(store):
    """Three papers that all mention "transformer", with votes A=50, B=10, C=90.

    - 2301.00001 (A): page 1 mentions transformer and attention; page 2 mentions diffusion
    - 2301.00002 (B): page 1 mentions transformer
    - 2301.00003 (C): pages 1 and 3 mention transformer; page 2 does not
    """
    from corpus.models import NewPage, NewPaper
    from tests.corpus_helpers import utc

    store.create_papers_with_pages(
        [
            NewPaper(
                universal_id="2301.00001",
                title="Attention Is Useful",
                abstract="We study attention in transformer models.",
                publication_date=utc(2023, 1, 15),
                votes=50,
                pages=[
                    NewPage(1, "The Transformer architecture relies on attention heads."),
                    NewPage(2, "Diffusion models are a different family."),
                ],
            ),
            NewPaper(
                universal_id="2301.00002",
                title="Small Transformers",
                abstract="Tiny models.",
                publication_date=utc(2021, 6, 1),
                votes=10,
                pages=[NewPage(1, "A small transformer trained on toy data.")],
            ),
            NewPaper(
                universal_id="2301.00003",
                title="Scaling Laws",
                abstract="Bigger is better.",
                publication_date=utc(2024, 3, 10),
                votes=90,
                pages=[
                    NewPage(1, "We scale the transformer to billions of parameters."),
                    NewPage(2, "Optimizer details and learning rate schedules."),
                    NewPage(3, "Every transformer layer is sharded across devices."),
                ],
            ),
        ]
    )
    return store


@pytest.fixture
def app(seeded_store):
    """Create Flask application for testing around the seeded store."""
    from retrieval import create_app

    application = create_app(seeded_store)
    application.testing = True
    return application


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
