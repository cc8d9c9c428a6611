"""Structured document queries and their GROQ rendering."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

_FIELD_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_DIRECTIONS = {"asc", "desc"}


def _split_order(entry: str) -> Tuple[str, str]:
    parts = entry.split()
    if len(parts) == 1:
        return parts[0], "asc"
    if len(parts) == 2 and parts[1].lower() in _DIRECTIONS:
        return parts[0], parts[1].lower()
    raise ValueError(f"invalid order entry {entry!r}")


class Query(BaseModel):
    """
    A document query against one document type.

    - equals: field path -> value, combined with ``&&``
    - filter: raw expression passed to the store untouched
    - order: entries like ``"title"`` or ``"_createdAt desc"``
    - offset/limit: result window; an offset needs a limit
    """

    document_type: Optional[str] = None
    filter: Optional[str] = None
    equals: Dict[str, Any] = Field(default_factory=dict)
    order: List[str] = Field(default_factory=list)
    offset: int = Field(default=0, ge=0)
    limit: Optional[int] = Field(default=None, ge=0)

    @field_validator("equals")
    @classmethod
    def _check_field_paths(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        for name in value:
            if not _FIELD_PATH.match(name):
                raise ValueError(f"invalid field path {name!r}")
        return value

    @field_validator("order")
    @classmethod
    def _check_order(cls, value: List[str]) -> List[str]:
        for entry in value:
            field, _ = _split_order(entry)
            if not _FIELD_PATH.match(field):
                raise ValueError(f"invalid field path {field!r}")
        return value

    def replace(self, **changes: Any) -> "Query":
        """Return a validated copy with ``changes`` applied."""

        payload = self.model_dump()
        payload.update(changes)
        return Query.model_validate(payload)

    def window(self) -> Tuple[int, Optional[int]]:
        """``(start, end)`` of the requested result slice; ``end`` is ``None`` for no limit."""

        if self.limit is None:
            if self.offset:
                raise ValueError("offset requires a limit")
            return 0, None
        return self.offset, self.offset + self.limit

    def order_keys(self) -> List[Tuple[str, bool]]:
        """``(field, descending)`` pairs in priority order."""

        return [(field, direction == "desc") for field, direction in map(_split_order, self.order)]

    def to_groq(self) -> Tuple[str, Dict[str, Any]]:
        """Render the query string and its ``$param`` values."""

        clauses: List[str] = []
        params: Dict[str, Any] = {}

        if self.document_type is not None:
            clauses.append("_type == $type")
            params["type"] = self.document_type

        for index, (field, value) in enumerate(self.equals.items()):
            name = f"p{index}"
            clauses.append(f"{field} == ${name}")
            params[name] = value

        if self.filter:
            clauses.append(f"({self.filter})")

        groq = f"*[{' && '.join(clauses)}]" if clauses else "*"

        if self.order:
            rendered = ", ".join(f"{field} {direction}" for field, direction in map(_split_order, self.order))
            groq += f" | order({rendered})"

        start, end = self.window()
        if end is not None:
            groq += f" [{start}...{end}]"

        return groq, params
