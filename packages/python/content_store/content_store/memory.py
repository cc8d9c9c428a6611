"""Dict-backed store client for tests and local development."""

from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from loguru import logger

from .errors import DocumentConflictError, DocumentNotFoundError
from .query import Query
from .typing import StoreDocument

_MISSING = object()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _lookup(document: Mapping[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _compare(left: Any, right: Any) -> int:
    # Missing/None values sort first, mixed types fall back to their string form.
    if left is _MISSING or left is None:
        return 0 if right is _MISSING or right is None else -1
    if right is _MISSING or right is None:
        return 1
    try:
        return (left > right) - (left < right)
    except TypeError:
        return (str(left) > str(right)) - (str(left) < str(right))


class InMemoryStoreClient:
    """Keeps documents in a dict keyed by ``_id``, with the remote store's error semantics."""

    def __init__(self, documents: Optional[Sequence[Mapping[str, Any]]] = None) -> None:
        self._documents: Dict[str, StoreDocument] = {}
        self._lock = threading.Lock()
        for document in documents or ():
            self.create_or_replace(document)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._documents

    def _stamp(self, document: Mapping[str, Any], created_at: Optional[str] = None) -> StoreDocument:
        stored = copy.deepcopy(dict(document))
        now = _now()
        stored["_id"] = stored.get("_id") or uuid4().hex
        stored["_createdAt"] = created_at or now
        stored["_updatedAt"] = now
        stored["_rev"] = uuid4().hex
        return stored

    def create(self, document: Mapping[str, Any]) -> StoreDocument:
        with self._lock:
            doc_id = document.get("_id")
            if doc_id and doc_id in self._documents:
                raise DocumentConflictError(f"Document {doc_id} already exists")
            stored = self._stamp(document)
            self._documents[stored["_id"]] = stored
        logger.debug("In-memory store created {doc_id}", doc_id=stored["_id"])
        return copy.deepcopy(stored)

    def create_or_replace(self, document: Mapping[str, Any]) -> StoreDocument:
        doc_id = document.get("_id")
        if not doc_id:
            raise ValueError("createOrReplace requires an _id")
        with self._lock:
            existing = self._documents.get(doc_id)
            stored = self._stamp(document, existing["_createdAt"] if existing else None)
            self._documents[doc_id] = stored
        logger.debug("In-memory store replaced {doc_id}", doc_id=doc_id)
        return copy.deepcopy(stored)

    def create_if_not_exists(self, document: Mapping[str, Any]) -> StoreDocument:
        doc_id = document.get("_id")
        if not doc_id:
            raise ValueError("createIfNotExists requires an _id")
        with self._lock:
            existing = self._documents.get(doc_id)
            if existing is None:
                existing = self._stamp(document)
                self._documents[doc_id] = existing
            return copy.deepcopy(existing)

    def patch(
        self,
        doc_id: str,
        set: Optional[Mapping[str, Any]] = None,
        unset: Sequence[str] = (),
    ) -> StoreDocument:
        with self._lock:
            existing = self._documents.get(doc_id)
            if existing is None:
                raise DocumentNotFoundError(f"Document {doc_id} not found")
            updated = copy.deepcopy(existing)
            for key in unset:
                updated.pop(key, None)
            updated.update(copy.deepcopy(dict(set or {})))
            updated["_id"] = doc_id
            stored = self._stamp(updated, existing["_createdAt"])
            self._documents[doc_id] = stored
        return copy.deepcopy(stored)

    def delete(self, doc_id: str) -> None:
        with self._lock:
            if self._documents.pop(doc_id, None) is None:
                raise DocumentNotFoundError(f"Document {doc_id} not found")
        logger.debug("In-memory store deleted {doc_id}", doc_id=doc_id)

    def get_document(self, doc_id: str) -> Optional[StoreDocument]:
        with self._lock:
            document = self._documents.get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def query(self, query: Query) -> List[StoreDocument]:
        if query.filter:
            raise ValueError("raw filter expressions need a remote content store")

        with self._lock:
            matches = [
                copy.deepcopy(document)
                for document in self._documents.values()
                if self._matches(document, query)
            ]

        for field, descending in reversed(query.order_keys()):
            matches.sort(
                key=cmp_to_key(lambda a, b, f=field: _compare(_lookup(a, f), _lookup(b, f))),
                reverse=descending,
            )

        start, end = query.window()
        if end is not None:
            return matches[start:end]
        return matches

    @staticmethod
    def _matches(document: Mapping[str, Any], query: Query) -> bool:
        if query.document_type is not None and document.get("_type") != query.document_type:
            return False
        for field, value in query.equals.items():
            found = _lookup(document, field)
            # A missing field compares equal to null, as in the remote store.
            if found is _MISSING:
                found = None
            if found != value:
                return False
        return True
