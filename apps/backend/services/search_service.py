"""
Keyword search over a user's saved articles.

Matching is case- and accent-insensitive substring matching of every query
term against a fixed set of fields. Each field that contains a term adds its
weight to the article's score; articles with no matching term are dropped.
"""

from typing import Any, Dict, List, Optional

from infrastructure.document_store import DocumentStore
from services.article_service import ARTICLES_COLLECTION
from services.ownership import OWNER_FIELD
from utils.logger import get_logger
from utils.tag_utils import dedupe_tags, sort_tags
from utils.text_utils import excerpt_around, html_to_text, normalize_text

logger = get_logger("search_service")

MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 50
SNIPPET_LENGTH = 160

FIELD_WEIGHTS = {
    "title": 5,
    "tags": 4,
    "byline": 2,
    "notes": 2,
    "url": 1,
    "content": 1,
}


def _query_terms(query: str) -> List[str]:
    terms = []
    for raw in normalize_text(query).split():
        if raw not in terms:
            terms.append(raw)
    return terms


def _searchable_fields(record: Dict[str, Any], plain_content: str) -> Dict[str, str]:
    tags = record.get("tags") if isinstance(record.get("tags"), list) else []
    notes = record.get("notes") if isinstance(record.get("notes"), list) else []
    note_texts = [n.get("text", "") for n in notes if isinstance(n, dict) and isinstance(n.get("text"), str)]
    return {
        "title": normalize_text(record.get("title") or ""),
        "tags": normalize_text(" ".join(t for t in tags if isinstance(t, str))),
        "byline": normalize_text(record.get("byline") or ""),
        "notes": normalize_text(" ".join(note_texts)),
        "url": normalize_text(record.get("url") or ""),
        "content": normalize_text(plain_content),
    }


def score_article(record: Dict[str, Any], terms: List[str]) -> Optional[Dict[str, Any]]:
    plain_content = html_to_text(record.get("content") or "")
    fields = _searchable_fields(record, plain_content)

    score = 0
    matched_fields: List[str] = []
    for term in terms:
        for field, weight in FIELD_WEIGHTS.items():
            if term in fields[field]:
                score += weight
                if field not in matched_fields:
                    matched_fields.append(field)
    if score == 0:
        return None

    first_term = next((t for t in terms if t in fields["content"]), terms[0])
    return {
        "id": record["id"],
        "title": record.get("title") or record.get("url") or "",
        "url": record.get("url") or "",
        "byline": record.get("byline") or "",
        "projectId": record.get("projectId"),
        "tags": record.get("tags") if isinstance(record.get("tags"), list) else [],
        "score": score,
        "matchedFields": matched_fields,
        "snippet": excerpt_around(plain_content, first_term, SNIPPET_LENGTH),
        "createdAt": record.get("createdAt"),
    }


def search_articles(
    store: DocumentStore,
    uid: str,
    query: Any,
    project_id: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[Dict[str, Any]]:
    if not isinstance(query, str) or len(query.strip()) < MIN_QUERY_LENGTH:
        return []
    terms = _query_terms(query)
    if not terms:
        return []

    filters = [(OWNER_FIELD, "==", uid)]
    if project_id:
        filters.append(("projectId", "==", project_id))
    records = store.query(ARTICLES_COLLECTION, filters)

    results = [hit for hit in (score_article(record, terms) for record in records) if hit]
    # Newest first within a score, then the stable sort on score puts best matches on top.
    results.sort(key=lambda hit: hit.get("createdAt") or "", reverse=True)
    results.sort(key=lambda hit: hit["score"], reverse=True)
    logger.info("Search completed", extra={"terms": len(terms), "hits": len(results)})
    return results[:max(0, limit)]


def fetch_all_tags(store: DocumentStore, uid: str) -> List[str]:
    tags: List[str] = []
    for record in store.query(ARTICLES_COLLECTION, [(OWNER_FIELD, "==", uid)]):
        for tag in record.get("tags") or []:
            if isinstance(tag, str) and tag.strip():
                tags.append(tag.strip())
    return sort_tags(dedupe_tags(tags))
