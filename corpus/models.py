"""Corpus record types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

import numpy as np


@dataclass
class Paper:
    """A paper row. `id` is internal; `universal_id` is the external key."""

    id: int
    universal_id: str
    title: str
    abstract: str
    publication_date: datetime
    votes: int = 0


@dataclass
class PaperPage:
    """One page of extracted paper text."""

    id: int
    paper_id: int
    page_number: int
    text: str


@dataclass
class PaperAbstractEmbedding:
    """A paper's abstract embedding and its reduced-precision copy."""

    id: int
    paper_id: int
    embedding: np.ndarray
    embedding_half: np.ndarray


@dataclass
class PaperAbstract:
    id: int
    universal_id: str
    title: str
    abstract: str


@dataclass
class FullPaper:
    universal_id: str
    title: str
    pages: list[PaperPage] = field(default_factory=list)


@dataclass
class NewPage:
    page_number: int
    text: str


@dataclass
class NewPaper:
    """Input record for ingestion: a paper together with its pages."""

    universal_id: str
    title: str
    abstract: str
    publication_date: datetime | date
    votes: int = 0
    pages: list[NewPage] = field(default_factory=list)


# -----------------------------------------------------------------------------
# Timestamps are stored as ISO-8601 UTC strings so that string comparison in
# SQL orders them chronologically.


def to_utc(value: datetime | date) -> datetime:
    """Coerce a date or datetime to an aware UTC datetime (naive values are UTC)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def to_db_timestamp(value: datetime | date) -> str:
    return to_utc(value).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def from_db_timestamp(value: str) -> datetime:
    return to_utc(datetime.fromisoformat(value))
