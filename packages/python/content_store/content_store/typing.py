"""Structural typing for the store collaborator used by document classes."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .query import Query

StoreDocument = Dict[str, Any]


@runtime_checkable
class StoreClient(Protocol):
    """Primitives every content store backend provides, keyed by ``_id``."""

    def create(self, document: Mapping[str, Any]) -> StoreDocument:  # pragma: no cover - structural typing only
        ...

    def create_or_replace(self, document: Mapping[str, Any]) -> StoreDocument:  # pragma: no cover
        ...

    def create_if_not_exists(self, document: Mapping[str, Any]) -> StoreDocument:  # pragma: no cover
        ...

    def patch(
        self,
        doc_id: str,
        set: Optional[Mapping[str, Any]] = None,
        unset: Sequence[str] = (),
    ) -> StoreDocument:  # pragma: no cover
        ...

    def delete(self, doc_id: str) -> None:  # pragma: no cover
        ...

    def get_document(self, doc_id: str) -> Optional[StoreDocument]:  # pragma: no cover
        ...

    def query(self, query: Query) -> List[StoreDocument]:  # pragma: no cover
        ...
