"""
Saved articles (and uploaded PDFs, which are articles of type ``pdf``).

Articles live in the ``annotations`` collection. Updates are lenient: a field
with an unusable value is skipped rather than failing the request.
"""

import logging
from typing import Any, Dict, List, Optional

from infrastructure.document_store import ArrayRemove, ArrayUnion, DocumentStore
from models.entity_models import (
    normalize_chat_messages,
    normalize_key_points,
    normalize_notes,
    normalize_status,
    normalize_summary,
    normalize_tags,
    sanitize_article_payload,
)
from services.errors import InvalidRequestError
from services.list_service import LISTS_COLLECTION, default_list_ids, ensure_default_lists
from services.ownership import OWNER_FIELD, load_owned
from services.project_service import resolve_project_id
from utils.sanitizer import is_safe_url, sanitize_title
from utils.text_utils import reading_time_minutes

logger = logging.getLogger(__name__)

ARTICLES_COLLECTION = "annotations"

ARTICLE_TYPES = ("article", "pdf")
_SUMMARY_EXCLUDED_FIELDS = ("content", "notes", "aiChat")


def _notes_count(record: Dict[str, Any]) -> int:
    count = record.get("notesCount")
    if isinstance(count, int) and not isinstance(count, bool):
        return count
    notes = record.get("notes")
    return len(notes) if isinstance(notes, list) else 0


def article_view(record: Dict[str, Any]) -> Dict[str, Any]:
    view = {
        "id": record["id"],
        "url": record.get("url") or "",
        "title": record.get("title") or record.get("url") or "",
        "byline": record.get("byline") or "",
        "content": record.get("content") or "",
        "type": record.get("type") if record.get("type") in ARTICLE_TYPES else "article",
        "notes": record.get("notes") if isinstance(record.get("notes"), list) else [],
        "notesCount": _notes_count(record),
        "status": normalize_status(record.get("status")),
        "projectId": record.get("projectId"),
        "listIds": record.get("listIds") if isinstance(record.get("listIds"), list) else [],
        "tags": record.get("tags") if isinstance(record.get("tags"), list) else [],
        "userId": record.get(OWNER_FIELD),
        "readingTimeMinutes": record.get("readingTimeMinutes"),
        "aiChat": record.get("aiChat") if isinstance(record.get("aiChat"), list) else [],
        "aiSummary": record.get("aiSummary"),
        "keyPoints": record.get("keyPoints") if isinstance(record.get("keyPoints"), list) else [],
        "createdAt": record.get("createdAt"),
        "updatedAt": record.get("updatedAt"),
    }
    if record.get("pdfUrl") and is_safe_url(record["pdfUrl"]):
        view["pdfUrl"] = record["pdfUrl"]
    if isinstance(record.get("pdfMetadata"), dict):
        view["pdfMetadata"] = record["pdfMetadata"]
    if view["readingTimeMinutes"] is None:
        view["readingTimeMinutes"] = reading_time_minutes(view["content"])
    return view


def article_summary(record: Dict[str, Any]) -> Dict[str, Any]:
    view = article_view(record)
    for field in _SUMMARY_EXCLUDED_FIELDS:
        view.pop(field, None)
    return view


def create_article(
    store: DocumentStore,
    uid: str,
    payload: Any,
    pdf_url: Optional[str] = None,
    pdf_metadata: Optional[Dict[str, int]] = None,
) -> str:
    """
    Save a new article for ``uid``.

    ``pdf_url`` and ``pdf_metadata`` are only supplied by the PDF upload
    pipeline; the same keys in a client payload are ignored.
    """
    payload = payload if isinstance(payload, dict) else {}
    if not payload.get("url") or not payload.get("content"):
        raise InvalidRequestError("URL and content are required")

    try:
        sanitized = sanitize_article_payload(payload)
    except InvalidRequestError:
        raise InvalidRequestError("URL and content are required")

    article_type = "pdf" if pdf_url else "article"
    record: Dict[str, Any] = {
        **sanitized,
        "type": article_type,
        OWNER_FIELD: uid,
        "projectId": resolve_project_id(store, uid, payload.get("projectId")),
        "notes": [],
        "notesCount": 0,
        "listIds": [],
        "tags": normalize_tags(payload.get("tags")),
        "readingTimeMinutes": reading_time_minutes(sanitized["content"]),
    }
    if pdf_url:
        record["pdfUrl"] = pdf_url
        record["pdfMetadata"] = dict(pdf_metadata or {})

    article_id = store.add(ARTICLES_COLLECTION, record)
    logger.info("Created article", extra={"article_id": article_id, "type": article_type})
    return article_id


def list_article_summaries(
    store: DocumentStore,
    uid: str,
    project_id: Optional[str] = None,
    list_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    filters = [(OWNER_FIELD, "==", uid)]
    if project_id:
        filters.append(("projectId", "==", project_id))
    if list_id:
        filters.append(("listIds", "array_contains", list_id))
    records = store.query(ARTICLES_COLLECTION, filters, order_by="createdAt", descending=True)
    return [article_summary(record) for record in records]


def get_article(store: DocumentStore, uid: str, article_id: str) -> Dict[str, Any]:
    return article_view(load_owned(store, ARTICLES_COLLECTION, article_id, uid, "Article"))


def build_article_update(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Translate an update body into stored fields, skipping unusable values."""
    changes: Dict[str, Any] = {}

    if "notes" in payload and payload["notes"] is not None:
        notes = normalize_notes(payload["notes"])
        changes["notes"] = notes
        changes["notesCount"] = len(notes)

    if isinstance(payload.get("title"), str):
        title = sanitize_title(payload["title"])
        if title:
            changes["title"] = title

    status = normalize_status(payload.get("status"))
    if status:
        changes["status"] = status

    project_id = payload.get("projectId")
    if isinstance(project_id, str) and project_id.strip():
        changes["projectId"] = project_id.strip()

    if isinstance(payload.get("tags"), list):
        changes["tags"] = normalize_tags(payload["tags"])

    if isinstance(payload.get("aiChat"), list):
        changes["aiChat"] = normalize_chat_messages(payload["aiChat"])

    summary = normalize_summary(payload.get("aiSummary"))
    if summary is not None:
        changes["aiSummary"] = summary

    if isinstance(payload.get("keyPoints"), list):
        changes["keyPoints"] = normalize_key_points(payload["keyPoints"])

    return changes


def update_article(store: DocumentStore, uid: str, article_id: str, payload: Any) -> Dict[str, Any]:
    load_owned(store, ARTICLES_COLLECTION, article_id, uid, "Article")
    changes = build_article_update(payload if isinstance(payload, dict) else {})
    store.update(ARTICLES_COLLECTION, article_id, changes)
    return changes


def delete_article(store: DocumentStore, uid: str, article_id: str) -> None:
    load_owned(store, ARTICLES_COLLECTION, article_id, uid, "Article")
    store.delete(ARTICLES_COLLECTION, article_id)
    logger.info("Deleted article", extra={"article_id": article_id})


def _require_list_id(list_id: Any) -> str:
    if not isinstance(list_id, str) or not list_id.strip():
        raise InvalidRequestError("List id is required")
    return list_id.strip()


def add_article_to_list(store: DocumentStore, uid: str, article_id: str, list_id: Any) -> None:
    list_id = _require_list_id(list_id)
    load_owned(store, ARTICLES_COLLECTION, article_id, uid, "Article")
    if list_id in default_list_ids(uid):
        ensure_default_lists(store, uid)
    load_owned(store, LISTS_COLLECTION, list_id, uid, "List", allow_ownerless=False)
    store.update(ARTICLES_COLLECTION, article_id, {"listIds": ArrayUnion([list_id])})


def remove_article_from_list(store: DocumentStore, uid: str, article_id: str, list_id: Any) -> None:
    list_id = _require_list_id(list_id)
    load_owned(store, ARTICLES_COLLECTION, article_id, uid, "Article")
    store.update(ARTICLES_COLLECTION, article_id, {"listIds": ArrayRemove([list_id])})
