"""Search API routes."""

from __future__ import annotations

from flask import Blueprint

from ..schemas import EmbeddingSearchRequest, KeywordSearchRequest
from ..services import api_success, get_store, parse_json_body, parse_query_args, search_by_embedding, search_by_keyword

bp = Blueprint("search", __name__)


@bp.route("/api/search/keyword", methods=["GET"])
def api_keyword_search():
    """Search page text by keyword
    ---
    tags:
      - Search
    parameters:
      - in: query
        name: keyword
        type: string
        required: true
      - in: query
        name: maxPapers
        type: integer
      - in: query
        name: maxSnippetsPerPaper
        type: integer
      - in: query
        name: minPublicationDate
        type: string
        format: date-time
    responses:
      200:
        description: Papers ordered by votes, with page snippets
      400:
        description: Invalid parameters
      503:
        description: Corpus store unavailable
    """
    req = parse_query_args(KeywordSearchRequest)
    results = search_by_keyword(
        get_store(),
        req.keyword,
        max_papers=req.max_papers,
        max_snippets_per_paper=req.max_snippets_per_paper,
        min_publication_date=req.min_publication_date,
    )
    return api_success(
        results=[r.to_api() for r in results],
        totalPapers=len(results),
        totalOccurrences=sum(len(r.occurrences) for r in results),
    )


@bp.route("/api/search/embedding", methods=["POST"])
def api_embedding_search():
    """Search abstracts by embedding similarity
    ---
    tags:
      - Search
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            embedding:
              type: array
              items:
                type: number
            limit:
              type: integer
            minPublicationDate:
              type: string
              format: date-time
    responses:
      200:
        description: Papers ordered by distance ascending
      400:
        description: Invalid embedding or parameters
      503:
        description: Corpus store unavailable
    """
    req = parse_json_body(EmbeddingSearchRequest)
    results = search_by_embedding(
        get_store(),
        req.embedding,
        limit=req.limit,
        min_publication_date=req.min_publication_date,
    )
    return api_success(results=[r.to_api() for r in results], totalPapers=len(results))
