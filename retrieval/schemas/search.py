"""Pydantic schemas for search requests and results."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic.alias_generators import to_camel

from config import settings


class SearchBaseModel(BaseModel):
    """camelCase on the wire, snake_case in Python; extra fields ignored."""

    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# -----------------------------------------------------------------------------
# Results


class Occurrence(SearchBaseModel):
    page_number: int
    snippet: str


class KeywordSearchResult(SearchBaseModel):
    universal_id: str
    paper_title: str
    votes: int
    publication_date: datetime
    occurrences: list[Occurrence] = Field(default_factory=list)


class EmbeddingSearchResult(SearchBaseModel):
    universal_id: str
    title: str
    abstract: str
    publication_date: datetime
    votes: int
    similarity_distance: float


# -----------------------------------------------------------------------------
# Requests


class KeywordSearchRequest(SearchBaseModel):
    keyword: str
    max_papers: PositiveInt = Field(default_factory=lambda: settings.search.max_papers)
    max_snippets_per_paper: PositiveInt = Field(default_factory=lambda: settings.search.max_snippets_per_paper)
    min_publication_date: datetime | date | None = None

    @field_validator("keyword")
    @classmethod
    def validate_keyword(cls, v: str) -> str:
        if not v:
            raise ValueError("keyword must not be empty")
        return v


class EmbeddingSearchRequest(SearchBaseModel):
    # Dimension is checked by the search service, which owns the contract.
    embedding: list[float]
    limit: PositiveInt = Field(default_factory=lambda: settings.search.embedding_limit)
    min_publication_date: datetime | date | None = None


class PaperLookupRequest(SearchBaseModel):
    universal_id: str

    @field_validator("universal_id")
    @classmethod
    def validate_universal_id(cls, v: str) -> str:
        if not v:
            raise ValueError("universalId must not be empty")
        return v


class PageRequest(PaperLookupRequest):
    page_number: PositiveInt
