"""Plain-text rendering of search results for agents and the CLI."""

from __future__ import annotations

import re
from typing import Sequence

from corpus.models import PaperAbstract, PaperPage

from ..schemas.search import EmbeddingSearchResult, KeywordSearchResult

SNIPPET_PREVIEW_CHARS = 200
SNIPPETS_SHOWN = 3
PAGE_PREVIEW_CHARS = 2000

# Lone surrogates, the replacement character, and C0 controls other than \t \n \r.
_UNPRINTABLE_RE = re.compile("[\ud800-\udfff\ufffd\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_text(text: str | None) -> str:
    """Strip characters that break downstream JSON or terminal output."""
    return _UNPRINTABLE_RE.sub("", text or "")


def _date(result) -> str:
    return result.publication_date.date().isoformat()


def render_keyword_results(results: Sequence[KeywordSearchResult], query: str) -> str:
    if not results:
        return f'No papers found matching keyword: "{query}"'

    total = sum(len(r.occurrences) for r in results)
    lines = [f'**Found {len(results)} paper(s) with {total} occurrence(s) for "{query}":**', ""]
    for r in results:
        lines.append(f"**{sanitize_text(r.paper_title)}**")
        lines.append(f"   - arXiv ID: {r.universal_id}")
        lines.append(f"   - Publication Date: {_date(r)}")
        lines.append(f"   - Votes: {r.votes}")
        lines.append(f"   - Occurrences: {len(r.occurrences)}")
        lines.append("")
        for occ in r.occurrences[:SNIPPETS_SHOWN]:
            snippet = sanitize_text(occ.snippet)
            more = "..." if len(occ.snippet) > SNIPPET_PREVIEW_CHARS else ""
            lines.append(f'   Page {occ.page_number}: "{snippet[:SNIPPET_PREVIEW_CHARS]}{more}"')
            lines.append("")
        if len(r.occurrences) > SNIPPETS_SHOWN:
            lines.append(f"   ... and {len(r.occurrences) - SNIPPETS_SHOWN} more occurrence(s)")
            lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def render_embedding_results(results: Sequence[EmbeddingSearchResult]) -> str:
    if not results:
        return "No similar papers found."
    lines = [f"**Found {len(results)} similar paper(s):**", ""]
    for i, r in enumerate(results, 1):
        lines.append(f"{i}. **{sanitize_text(r.title)}** ({r.universal_id}, {_date(r)})")
        lines.append(f"   distance={r.similarity_distance:.4f} votes={r.votes}")
    return "\n".join(lines) + "\n"


def render_abstract(abstract: PaperAbstract | None, universal_id: str = "") -> str:
    if abstract is None:
        return f"Paper not found with universal ID: {universal_id}"
    return (
        f"**{sanitize_text(abstract.title)}**\n\n"
        f"**arXiv ID**: {abstract.universal_id}\n\n"
        f"**Abstract**:\n{sanitize_text(abstract.abstract)}"
    )


def render_page(page: PaperPage | None, universal_id: str, page_number: int) -> str:
    if page is None:
        return (
            f"Page {page_number} not found for paper {universal_id}. "
            "The paper may not exist or may not have this page number."
        )
    text = sanitize_text(page.text)
    if len(text) > PAGE_PREVIEW_CHARS:
        text = text[:PAGE_PREVIEW_CHARS] + "\n\n... [Content truncated]"
    return f"**Paper**: {universal_id}\n**Page Number**: {page_number}\n\n**Content**:\n{text}"
