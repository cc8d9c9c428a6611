"""Lazy query results bound to a document class."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Iterator, List, Optional, Type, TypeVar

from content_store import Query

if TYPE_CHECKING:
    from .document import Document

D = TypeVar("D", bound="Document")


class QueryResult(Generic[D]):
    """
    Documents matching a query, fetched only when iterated.

    Each iteration sends a fresh query to the store, so a result can be
    walked any number of times. ``order``, ``limit`` and ``offset`` return new
    results and leave this one untouched.
    """

    def __init__(self, document_class: Type[D], query: Query) -> None:
        self._document_class = document_class
        self._query = query

    @property
    def query(self) -> Query:
        return self._query

    def _with(self, **changes: Any) -> "QueryResult[D]":
        return QueryResult(self._document_class, self._query.replace(**changes))

    def order(self, *fields: str) -> "QueryResult[D]":
        return self._with(order=list(fields))

    def limit(self, count: int) -> "QueryResult[D]":
        return self._with(limit=count)

    def offset(self, count: int) -> "QueryResult[D]":
        return self._with(offset=count)

    def __iter__(self) -> Iterator[D]:
        client = self._document_class.store_client()
        for stored in client.query(self._query):
            yield self._document_class.from_store(stored)

    def all(self) -> List[D]:
        return list(self)

    def first(self) -> Optional[D]:
        return next(iter(self.limit(1)), None)

    def __repr__(self) -> str:
        return f"<QueryResult {self._document_class.__name__} {self._query!r}>"
