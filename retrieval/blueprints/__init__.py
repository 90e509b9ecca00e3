"""Blueprint modules for app routes."""

from . import api_papers, api_search

__all__ = ["api_papers", "api_search"]
