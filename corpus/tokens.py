"""Lexical index values and token-match query construction.

Pages carry a derived `search_vector`: the page text lower-cased and reduced
to a space-separated sequence of word tokens. The FTS5 table indexes that
column (porter stemming on top), and keyword queries are compiled into an
FTS5 match expression in which every user token is a quoted string, so user
input can never inject FTS5 syntax of its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_WORD_RE = re.compile(r"\w+", re.UNICODE)
_PHRASE_RE = re.compile(r"\"([^\"]*)\"")


def normalize_tokens(text: str) -> list[str]:
    """Lower-case word tokens of `text`, in order."""
    return _WORD_RE.findall((text or "").lower())


def build_search_vector(text: str) -> str:
    """Derived lexical index value for a page text."""
    return " ".join(normalize_tokens(text))


def _fts_string(tokens: list[str]) -> str:
    # Tokens are \w+ only, so they never contain a double quote.
    return '"' + " ".join(tokens) + '"'


@dataclass
class KeywordQuery:
    """A whitespace-tokenized keyword query.

    terms: bare tokens (ANDed); phrases: quoted runs matched as phrases;
    negated: `-token` entries excluded with NOT.
    """

    raw: str
    terms: list[str] = field(default_factory=list)
    phrases: list[str] = field(default_factory=list)
    negated: list[str] = field(default_factory=list)
    _positive: list[str] = field(default_factory=list, repr=False)
    _negative: list[str] = field(default_factory=list, repr=False)

    @property
    def is_empty(self) -> bool:
        """True when nothing positive is left to match."""
        return not self._positive

    @property
    def match_expression(self) -> str:
        """FTS5 MATCH expression, bound as a parameter by the store."""
        if self.is_empty:
            return ""
        expr = " AND ".join(self._positive)
        if self._negative:
            if len(self._positive) > 1:
                expr = f"({expr})"
            expr = f"{expr} NOT ({' OR '.join(self._negative)})"
        return expr

    @property
    def snippet_query(self) -> str:
        """Positive keywords, space-joined, for snippet extraction."""
        return " ".join(self.terms + self.phrases)


def parse_keyword_query(q: str) -> KeywordQuery:
    """Split a keyword query on whitespace into AND-ed tokens.

    `"quoted text"` becomes a phrase match and `-token` a negation. Tokens
    that normalize to nothing (pure punctuation) are dropped.
    """
    raw = (q or "").strip()
    parsed = KeywordQuery(raw=raw)
    if not raw:
        return parsed

    work = raw
    for m in _PHRASE_RE.finditer(raw):
        phrase = m.group(1).strip()
        tokens = normalize_tokens(phrase)
        if tokens:
            parsed.phrases.append(phrase)
            parsed._positive.append(_fts_string(tokens))
    work = _PHRASE_RE.sub(" ", work)

    for tok in work.split():
        negate = tok.startswith("-") and len(tok) > 1
        body = (tok[1:] if negate else tok).strip('"')
        tokens = normalize_tokens(body)
        if not tokens:
            continue
        if negate:
            parsed.negated.append(body)
            parsed._negative.append(_fts_string(tokens))
        else:
            parsed.terms.append(body)
            parsed._positive.append(_fts_string(tokens))
    return parsed
