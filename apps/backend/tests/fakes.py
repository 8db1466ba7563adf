"""In-memory stand-ins for the Firestore document store and the storage bucket."""

import copy
import itertools
from datetime import datetime, timedelta, timezone

from infrastructure.document_store import (
    BATCH_LIMIT,
    ArrayRemove,
    ArrayUnion,
    DocumentStore,
    chunked,
)
from infrastructure.file_storage import FileStorage


class InMemoryDocumentStore(DocumentStore):
    def __init__(self):
        self.collections = {}
        self.batch_sizes = []
        self._ids = itertools.count(1)
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self):
        # Strictly increasing so ordering by timestamp is deterministic.
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _docs(self, collection):
        return self.collections.setdefault(collection, {})

    @staticmethod
    def _apply(current, partial):
        for key, value in partial.items():
            if isinstance(value, ArrayUnion):
                existing = list(current.get(key) or [])
                existing.extend(v for v in value.values if v not in existing)
                current[key] = existing
            elif isinstance(value, ArrayRemove):
                current[key] = [v for v in (current.get(key) or []) if v not in value.values]
            else:
                current[key] = copy.deepcopy(value)

    @staticmethod
    def _matches(record, filters):
        for field, op, value in filters:
            if op == "==":
                if record.get(field) != value:
                    return False
            elif op == "array_contains":
                if value not in (record.get(field) or []):
                    return False
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
        return True

    def seed(self, collection, doc_id, record):
        """Insert a record verbatim (no timestamps added), e.g. legacy data."""
        self._docs(collection)[doc_id] = copy.deepcopy(record)

    def get(self, collection, doc_id):
        record = self._docs(collection).get(doc_id)
        if record is None:
            return None
        return {**copy.deepcopy(record), "id": doc_id}

    def query(self, collection, filters=(), order_by=None, descending=False, limit=None):
        rows = [
            {**copy.deepcopy(record), "id": doc_id}
            for doc_id, record in self._docs(collection).items()
            if self._matches(record, filters)
        ]
        if order_by:
            rows = [row for row in rows if order_by in row]
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        if limit:
            rows = rows[:limit]
        return rows

    def add(self, collection, record):
        doc_id = f"{collection}-{next(self._ids)}"
        self.set(collection, doc_id, record)
        return doc_id

    def set(self, collection, doc_id, record):
        now = self._now()
        stored = {}
        self._apply(stored, record)
        stored["createdAt"] = now
        stored["updatedAt"] = now
        self._docs(collection)[doc_id] = stored

    def update(self, collection, doc_id, partial):
        docs = self._docs(collection)
        if doc_id not in docs:
            raise KeyError(f"No document to update: {collection}/{doc_id}")
        self._apply(docs[doc_id], partial)
        docs[doc_id]["updatedAt"] = self._now()

    def delete(self, collection, doc_id):
        self._docs(collection).pop(doc_id, None)

    def batch_update(self, collection, updates):
        written = 0
        for chunk in chunked(list(updates), BATCH_LIMIT):
            for doc_id, partial in chunk:
                self.update(collection, doc_id, partial)
            self.batch_sizes.append(len(chunk))
            written += len(chunk)
        return written


class InMemoryFileStorage(FileStorage):
    def __init__(self):
        self.files = {}

    def upload(self, path, data, content_type, metadata=None):
        self.files[path] = {"data": data, "content_type": content_type, "metadata": metadata}
        return f"https://storage.example.test/{path}"
