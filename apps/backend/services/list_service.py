"""
Reading lists.

Every user has two default lists with deterministic ids that are created on
first access and can be neither renamed nor deleted. Article membership is
stored on the article as ``listIds``.
"""

import logging
from typing import Any, Dict, List, Optional

from infrastructure.document_store import ArrayRemove, DocumentStore
from services.errors import InvalidRequestError
from services.monitoring import CASCADE_DOCUMENTS_TOTAL
from services.ownership import OWNER_FIELD, is_default_entity, load_owned
from utils.sanitizer import clamp, sanitize_plain_text

logger = logging.getLogger(__name__)

LISTS_COLLECTION = "lists"
ARTICLES_COLLECTION = "annotations"

MAX_LIST_NAME_LENGTH = 100
MAX_COLOR_LENGTH = 32
DEFAULT_COLOR = "blue"
CUSTOM_ICON = "dot"

# (suffix, name, icon)
DEFAULT_LISTS = (
    ("favourites", "Favourites", "heart"),
    ("read-later", "Read Later", "clock"),
)


def favourites_list_id(uid: str) -> str:
    return f"{uid}_favourites"


def default_list_ids(uid: str) -> List[str]:
    return [f"{uid}_{suffix}" for suffix, _, _ in DEFAULT_LISTS]


def _list_view(record: Dict[str, Any]) -> Dict[str, Any]:
    is_default = is_default_entity(record)
    view = {
        "id": record["id"],
        "name": record.get("name") or "",
        "userId": record.get(OWNER_FIELD),
        "icon": record.get("icon") or CUSTOM_ICON,
        "isDefault": is_default,
        "createdAt": record.get("createdAt"),
        "updatedAt": record.get("updatedAt"),
    }
    if record.get("color"):
        view["color"] = record["color"]
    return view


def _clean_name(value: Any) -> str:
    name = clamp(sanitize_plain_text(value), MAX_LIST_NAME_LENGTH) if isinstance(value, str) else ""
    if not name:
        raise InvalidRequestError("List name is required")
    return name


def _clean_color(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return clamp(sanitize_plain_text(value), MAX_COLOR_LENGTH) or None


def ensure_default_lists(store: DocumentStore, uid: str) -> List[Dict[str, Any]]:
    lists = []
    for suffix, name, icon in DEFAULT_LISTS:
        list_id = f"{uid}_{suffix}"
        record = store.get(LISTS_COLLECTION, list_id)
        if record is None:
            store.set(LISTS_COLLECTION, list_id, {
                "name": name,
                OWNER_FIELD: uid,
                "icon": icon,
                "isDefault": True,
            })
            logger.info("Created default list", extra={"list_id": list_id})
            record = store.get(LISTS_COLLECTION, list_id) or {"id": list_id}
        view = _list_view({**record, "isDefault": True})
        view["name"] = view["name"] or name
        view["icon"] = icon
        lists.append(view)
    return lists


def fetch_lists(store: DocumentStore, uid: str) -> List[Dict[str, Any]]:
    defaults = ensure_default_lists(store, uid)
    custom = store.query(
        LISTS_COLLECTION,
        [(OWNER_FIELD, "==", uid), ("isDefault", "==", False)],
        order_by="createdAt",
        descending=True,
    )
    return defaults + [_list_view(record) for record in custom]


def create_list(store: DocumentStore, uid: str, name: Any, color: Any = None) -> str:
    record = {
        "name": _clean_name(name),
        OWNER_FIELD: uid,
        "color": _clean_color(color) or DEFAULT_COLOR,
        "icon": CUSTOM_ICON,
        "isDefault": False,
    }
    list_id = store.add(LISTS_COLLECTION, record)
    logger.info("Created list", extra={"list_id": list_id})
    return list_id


def update_list(store: DocumentStore, uid: str, list_id: str, updates: Any) -> None:
    if list_id in default_list_ids(uid):
        raise InvalidRequestError("Cannot edit default lists")

    record = load_owned(store, LISTS_COLLECTION, list_id, uid, "List")
    if is_default_entity(record):
        raise InvalidRequestError("Cannot edit default lists")

    updates = updates if isinstance(updates, dict) else {}
    changes: Dict[str, Any] = {}
    if "name" in updates:
        changes["name"] = _clean_name(updates.get("name"))
    if "color" in updates:
        color = _clean_color(updates.get("color"))
        if color:
            changes["color"] = color
    if not changes:
        raise InvalidRequestError("No updates provided")

    store.update(LISTS_COLLECTION, list_id, changes)


def remove_list_from_articles(store: DocumentStore, list_id: str) -> int:
    """
    Strip ``list_id`` from every article that references it.

    Safe to repeat: a second run finds no referencing articles.
    """
    articles = store.query(ARTICLES_COLLECTION, [("listIds", "array_contains", list_id)])
    if not articles:
        return 0
    updates = [(article["id"], {"listIds": ArrayRemove([list_id])}) for article in articles]
    return store.batch_update(ARTICLES_COLLECTION, updates)


def delete_list(store: DocumentStore, uid: str, list_id: str) -> int:
    if list_id in default_list_ids(uid):
        raise InvalidRequestError("Cannot delete default lists")

    record = load_owned(store, LISTS_COLLECTION, list_id, uid, "List")
    if is_default_entity(record):
        raise InvalidRequestError("Cannot delete default lists")

    updated = remove_list_from_articles(store, list_id)
    CASCADE_DOCUMENTS_TOTAL.labels(operation="delete_list").inc(updated)
    store.delete(LISTS_COLLECTION, list_id)
    logger.info("Deleted list", extra={"list_id": list_id, "articles_updated": updated})
    return updated
