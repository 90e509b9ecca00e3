"""Paper lookup API routes."""

from __future__ import annotations

from flask import Blueprint

from ..schemas import PageRequest, PaperLookupRequest
from ..services import api_error, api_success, get_store, parse_query_args

bp = Blueprint("papers", __name__)


@bp.route("/api/papers/title", methods=["GET"])
def api_paper_title():
    """Get a paper's title and publication date
    ---
    tags:
      - Papers
    parameters:
      - in: query
        name: universalId
        type: string
        required: true
    responses:
      200:
        description: Title and publication date
      404:
        description: Paper not found
    """
    req = parse_query_args(PaperLookupRequest)
    paper = get_store().get_paper_by_universal_id(req.universal_id)
    if paper is None:
        return api_error("Paper not found", 404)
    return api_success(title=paper.title, publicationDate=paper.publication_date.isoformat())


@bp.route("/api/papers/abstract", methods=["GET"])
def api_paper_abstract():
    """Get a paper's abstract
    ---
    tags:
      - Papers
    parameters:
      - in: query
        name: universalId
        type: string
        required: true
    responses:
      200:
        description: Universal id, title and abstract
      404:
        description: Paper not found
    """
    req = parse_query_args(PaperLookupRequest)
    abstract = get_store().get_paper_abstract(req.universal_id)
    if abstract is None:
        return api_error("Paper not found", 404)
    return api_success(universalId=abstract.universal_id, title=abstract.title, abstract=abstract.abstract)


@bp.route("/api/papers/page", methods=["GET"])
def api_paper_page():
    """Get the text of one page
    ---
    tags:
      - Papers
    parameters:
      - in: query
        name: universalId
        type: string
        required: true
      - in: query
        name: pageNumber
        type: integer
        required: true
    responses:
      200:
        description: Page text
      404:
        description: Paper or page not found
    """
    req = parse_query_args(PageRequest)
    page = get_store().get_page(req.universal_id, req.page_number)
    if page is None:
        return api_error(f"Page {req.page_number} not found for paper {req.universal_id}", 404)
    return api_success(pageId=page.id, paperId=page.paper_id, pageNumber=page.page_number, text=page.text)


@bp.route("/api/papers/full", methods=["GET"])
def api_paper_full():
    """Get all pages of a paper in page order
    ---
    tags:
      - Papers
    parameters:
      - in: query
        name: universalId
        type: string
        required: true
    responses:
      200:
        description: Title and pages
      404:
        description: Paper not found
    """
    req = parse_query_args(PaperLookupRequest)
    full = get_store().get_full_paper(req.universal_id)
    if full is None:
        return api_error("Paper not found", 404)
    return api_success(
        universalId=full.universal_id,
        title=full.title,
        pages=[{"pageNumber": p.page_number, "text": p.text} for p in full.pages],
    )
