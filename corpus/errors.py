"""Error types shared by the corpus store and the search services."""

from __future__ import annotations


class PaperscopeError(Exception):
    """Base error. Carries the failing stage and query for callers and logs."""

    def __init__(self, message: str, *, stage: str | None = None, query: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.query = query

    def __str__(self) -> str:
        parts = [self.message]
        if self.stage:
            parts.append(f"stage={self.stage}")
        if self.query is not None:
            q = self.query if len(self.query) <= 80 else self.query[:77] + "..."
            parts.append(f"query={q!r}")
        return " | ".join(parts)


class SearchValidationError(PaperscopeError, ValueError):
    """Malformed input, rejected before the store is touched."""


class RetrievalError(PaperscopeError):
    """The store was unreachable or a store query failed."""
