"""
Ownership checks shared by every mutation path.

A missing record and a record owned by someone else look the same to the
caller: both surface as ``NotFoundError``. Records written before ownership
was tracked have no owner field; any authenticated caller may act on those.
"""

import logging
from typing import Any, Dict, Optional

from infrastructure.document_store import DocumentStore
from services.errors import NotFoundError

logger = logging.getLogger(__name__)

OWNER_FIELD = "userId"


def owner_of(record: Optional[Dict[str, Any]]) -> Optional[str]:
    if not record:
        return None
    owner = record.get(OWNER_FIELD)
    return owner if isinstance(owner, str) and owner else None


def can_access(record: Optional[Dict[str, Any]], uid: str, allow_ownerless: bool = True) -> bool:
    if record is None:
        return False
    owner = owner_of(record)
    if owner is None:
        return allow_ownerless
    return owner == uid


def load_owned(
    store: DocumentStore,
    collection: str,
    doc_id: str,
    uid: str,
    entity: str,
    allow_ownerless: bool = True,
) -> Dict[str, Any]:
    """Fetch ``doc_id`` for ``uid`` or raise ``NotFoundError("<entity> not found")``."""
    record = store.get(collection, doc_id) if doc_id else None
    if not can_access(record, uid, allow_ownerless=allow_ownerless):
        if record is not None:
            logger.warning(
                "Ownership check rejected",
                extra={"collection": collection, "doc_id": doc_id, "uid": uid},
            )
        raise NotFoundError(f"{entity} not found")
    return record


def is_default_entity(record: Optional[Dict[str, Any]]) -> bool:
    return bool(record) and record.get("isDefault") is True
