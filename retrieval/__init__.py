"""Search service package.

This package provides the Flask application factory, blueprints and the
keyword / embedding search services over a `corpus.CorpusStore`.

Modules:
- app: Flask application factory
- blueprints/: Route handlers organized by feature
- schemas/: Pydantic request and result models
- services/: Search, snippet and rendering services
"""

from .app import create_app

__all__ = ["create_app"]
