"""
Document persistence
====================
Every service function receives a ``DocumentStore`` as its first argument.
Production wires a ``FirestoreDocumentStore`` into ``app.state.store`` during
startup; tests put an in-memory implementation there instead.

Timestamps (``createdAt`` / ``updatedAt``) are stamped here at write time and
are never taken from the client. Records come back as plain dicts carrying
their document id under ``"id"``, with timestamps as ISO-8601 strings.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from fastapi import Request

from services.errors import AppError

logger = logging.getLogger(__name__)

# Firestore rejects write batches with more than 500 operations.
BATCH_LIMIT = 500

Filter = Tuple[str, str, Any]
SUPPORTED_FILTER_OPS = ("==", "array_contains")


class ArrayUnion:
    """Update marker: add ``values`` to an array field, skipping ones already present."""

    def __init__(self, values: Iterable[Any]):
        self.values = list(values)

    def __eq__(self, other):
        return isinstance(other, ArrayUnion) and other.values == self.values

    def __repr__(self):
        return f"ArrayUnion({self.values!r})"


class ArrayRemove:
    """Update marker: remove every occurrence of ``values`` from an array field."""

    def __init__(self, values: Iterable[Any]):
        self.values = list(values)

    def __eq__(self, other):
        return isinstance(other, ArrayRemove) and other.values == self.values

    def __repr__(self):
        return f"ArrayRemove({self.values!r})"


def to_plain(value: Any) -> Any:
    """Convert store-native values (timestamps, nested maps) into JSON-ready ones."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def chunked(items: Sequence[Any], size: int = BATCH_LIMIT) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class DocumentStore(ABC):
    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def add(self, collection: str, record: Dict[str, Any]) -> str:
        ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, record: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, partial: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    def batch_update(self, collection: str, updates: Sequence[Tuple[str, Dict[str, Any]]]) -> int:
        """Apply ``(doc_id, partial)`` updates in sequential batches of at most BATCH_LIMIT.

        Batches are committed one after another; an earlier batch stays
        committed if a later one fails. Returns the number of documents written.
        """


class FirestoreDocumentStore(DocumentStore):
    def __init__(self, client=None):
        from firebase_admin import firestore

        self._firestore = firestore
        self._db = client if client is not None else firestore.client()

    def _translate(self, partial: Dict[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, value in partial.items():
            if isinstance(value, ArrayUnion):
                out[key] = self._firestore.ArrayUnion(value.values)
            elif isinstance(value, ArrayRemove):
                out[key] = self._firestore.ArrayRemove(value.values)
            else:
                out[key] = value
        return out

    @staticmethod
    def _snapshot_to_dict(snapshot) -> Dict[str, Any]:
        data = to_plain(snapshot.to_dict() or {})
        data["id"] = snapshot.id
        return data

    def get(self, collection, doc_id):
        if not doc_id:
            return None
        snapshot = self._db.collection(collection).document(doc_id).get()
        if not snapshot.exists:
            return None
        return self._snapshot_to_dict(snapshot)

    def query(self, collection, filters=(), order_by=None, descending=False, limit=None):
        from google.cloud.firestore_v1.base_query import FieldFilter

        ref = self._db.collection(collection)
        for field, op, value in filters:
            if op not in SUPPORTED_FILTER_OPS:
                raise ValueError(f"Unsupported filter operator: {op}")
            firestore_op = "array_contains" if op == "array_contains" else "=="
            ref = ref.where(filter=FieldFilter(field, firestore_op, value))
        if order_by:
            direction = self._firestore.Query.DESCENDING if descending else self._firestore.Query.ASCENDING
            ref = ref.order_by(order_by, direction=direction)
        if limit:
            ref = ref.limit(limit)
        return [self._snapshot_to_dict(doc) for doc in ref.stream()]

    def add(self, collection, record):
        now = self._firestore.SERVER_TIMESTAMP
        payload = {**self._translate(record), "createdAt": now, "updatedAt": now}
        _, ref = self._db.collection(collection).add(payload)
        return ref.id

    def set(self, collection, doc_id, record):
        now = self._firestore.SERVER_TIMESTAMP
        payload = {**self._translate(record), "createdAt": now, "updatedAt": now}
        self._db.collection(collection).document(doc_id).set(payload)

    def update(self, collection, doc_id, partial):
        payload = {**self._translate(partial), "updatedAt": self._firestore.SERVER_TIMESTAMP}
        self._db.collection(collection).document(doc_id).update(payload)

    def delete(self, collection, doc_id):
        self._db.collection(collection).document(doc_id).delete()

    def batch_update(self, collection, updates):
        written = 0
        updates = list(updates)
        for chunk in chunked(updates):
            batch = self._db.batch()
            for doc_id, partial in chunk:
                payload = {**self._translate(partial), "updatedAt": self._firestore.SERVER_TIMESTAMP}
                batch.update(self._db.collection(collection).document(doc_id), payload)
            batch.commit()
            written += len(chunk)
            logger.info(
                "Committed write batch",
                extra={"collection": collection, "batch_size": len(chunk), "written": written},
            )
        return written


def get_document_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise AppError("Document store is not configured", status_code=503)
    return store
