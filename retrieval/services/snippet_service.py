"""Snippet extraction around keyword occurrences in page text."""

from __future__ import annotations

from corpus.errors import SearchValidationError

DEFAULT_WINDOW_SIZE = 400
ELLIPSIS = "..."


def extract_snippets(text: str, query: str, window_size: int = DEFAULT_WINDOW_SIZE) -> list[str]:
    """Return excerpts of `text` around the keywords of `query`.

    Each whitespace-separated keyword (case-insensitive) contributes one
    window of `window_size` characters around its first occurrence, clamped
    to the text and marked with an ellipsis on any truncated side. Snippets
    follow keyword order; overlapping windows are kept as they are.

    When no keyword occurs, the result is the first `window_size` characters
    of `text`, so the list is never empty.
    """
    if window_size <= 0:
        raise SearchValidationError("window_size must be positive", stage="snippet", query=query)

    text = text or ""
    lower_text = text.lower()
    snippets: list[str] = []

    for kw in (query or "").lower().split():
        index = lower_text.find(kw)
        if index == -1:
            continue

        start = max(0, index - window_size // 2)
        end = min(len(text), start + window_size)

        snippet = text[start:end]
        if start > 0:
            snippet = ELLIPSIS + snippet
        if end < len(text):
            snippet = snippet + ELLIPSIS
        snippets.append(snippet)

    if not snippets:
        return [text[:window_size] + (ELLIPSIS if len(text) > window_size else "")]

    return snippets
