"""Query/Search Composer for document listings.

Both queries are one SQL statement each (plus a count): the access filter,
the optional tag/text predicate and the "current version is available" gate
are ANDed together, so pagination counts only rows the caller may see.
A document whose current version is still pending or quarantined never
appears, not even to its owner.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import case, exists, func, or_, select
from sqlalchemy.orm import Session, contains_eager, joinedload, selectinload

from ..domain.access import Principal, build_access_filter
from ..domain.documents.version_status import VersionStatus
from ..models.document import Document, DocumentTag
from ..models.document_version import DocumentVersion
from ..pagination import offset_for, paginate

logger = logging.getLogger(__name__)

# Relevance weights per search term
FILENAME_MATCH_WEIGHT = 1
TAG_MATCH_WEIGHT = 2


def _visible_documents(principal: Principal):
    return (
        select(Document)
        .join(DocumentVersion, DocumentVersion.id == Document.current_version_id)
        .where(
            build_access_filter(principal),
            DocumentVersion.status == VersionStatus.AVAILABLE,
        )
    )


def _with_presentation(query):
    return query.options(
        contains_eager(Document.current_version).joinedload(DocumentVersion.uploaded_by),
        joinedload(Document.owner),
        selectinload(Document.tag_rows),
    )


def _count(db: Session, query) -> int:
    return db.execute(select(func.count()).select_from(query.order_by(None).subquery())).scalar_one()


def present_document(document: Document, score: Optional[int] = None) -> Dict[str, Any]:
    """Listing representation: document fields, owner and current version."""
    version = document.current_version
    item = {
        "id": str(document.id),
        "original_filename": document.original_filename,
        "access_level": document.access_level.value,
        "tags": document.tags,
        "created_at": document.created_at.isoformat() if document.created_at else None,
        "updated_at": document.updated_at.isoformat() if document.updated_at else None,
        "owner": document.owner.to_summary() if document.owner else None,
        "current_version": {
            "id": str(version.id),
            "version_number": version.version_number,
            "size_bytes": version.size_bytes,
            "mime_type": version.mime_type,
            "status": version.status.value,
            "created_at": version.created_at.isoformat() if version.created_at else None,
            "uploaded_by": version.uploaded_by.to_summary() if version.uploaded_by else None,
        } if version is not None else None,
    }
    if score is not None:
        item["score"] = score
    return item


def list_documents(
    db: Session,
    principal: Principal,
    page: int,
    limit: int,
    tag: Optional[str] = None,
) -> Dict[str, Any]:
    """Visible, available documents, newest first, optionally filtered by tag."""
    query = _visible_documents(principal)
    if tag:
        query = query.where(
            exists().where(DocumentTag.document_id == Document.id, DocumentTag.tag == tag.strip())
        )

    total = _count(db, query)
    rows = db.execute(
        _with_presentation(query)
        .order_by(Document.created_at.desc(), Document.id)
        .offset(offset_for(page, limit))
        .limit(limit)
    ).unique().scalars().all()

    return paginate([present_document(d) for d in rows], total, page, limit)


def search_terms(q: str) -> List[str]:
    """Lower-cased, de-duplicated whitespace-separated terms.

    Example:
        >>> search_terms("  Invoice  q3 invoice ")
        ['invoice', 'q3']
    """
    terms: List[str] = []
    for term in q.lower().split():
        if term not in terms:
            terms.append(term)
    return terms


def search_documents(
    db: Session,
    principal: Principal,
    q: str,
    page: int,
    limit: int,
) -> Dict[str, Any]:
    """Visible, available documents matching any term, by relevance.

    Per term, a filename substring match scores FILENAME_MATCH_WEIGHT and an
    exact (case-insensitive) tag match scores TAG_MATCH_WEIGHT; the score is
    the sum over all terms. Ties are broken by recency.

    Raises:
        ValueError: If q contains no terms
    """
    terms = search_terms(q)
    if not terms:
        raise ValueError("Search query must contain at least one term")

    filename = func.lower(Document.original_filename)
    matches = []
    weights = []
    for term in terms:
        in_filename = filename.contains(term, autoescape=True)
        in_tags = exists().where(
            DocumentTag.document_id == Document.id,
            func.lower(DocumentTag.tag) == term,
        )
        matches.append(or_(in_filename, in_tags))
        weights.append(case((in_filename, FILENAME_MATCH_WEIGHT), else_=0))
        weights.append(case((in_tags, TAG_MATCH_WEIGHT), else_=0))

    score = sum(weights[1:], weights[0]).label("score")
    query = _visible_documents(principal).where(or_(*matches))

    total = _count(db, query)
    rows = db.execute(
        _with_presentation(query.add_columns(score))
        .order_by(score.desc(), Document.created_at.desc(), Document.id)
        .offset(offset_for(page, limit))
        .limit(limit)
    ).unique().all()

    items = [present_document(document, int(row_score)) for document, row_score in rows]
    logger.debug(f"Search matched {total} documents", extra={"user_id": str(principal.user_id)})
    return paginate(items, total, page, limit)
