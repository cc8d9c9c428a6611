"""Default ``_type`` names for document classes."""

from __future__ import annotations

from typing import Optional


def default_type(klass: type) -> Optional[str]:
    """
    Return the ``_type`` a class maps to in the content store.

    - ``Document`` itself has no type and returns ``None``.
    - A document class with its own ``document_type`` uses that tag.
    - Anything else uses the class name.

    Only the first character is lowercased: ``BlogPost`` -> ``blogPost``,
    ``HTTPServer`` -> ``hTTPServer``.

    Raises:
        ValueError: if the tag or class name to derive from is empty.
    """

    from .document import Document, DocumentMeta  # noqa: PLC0415 - document imports this module

    if klass is Document:
        return None

    raw: Optional[str] = None
    if isinstance(klass, DocumentMeta):
        raw = klass.document_type or None
    if raw is None:
        raw = klass.__name__
    if not raw:
        raise ValueError(f"cannot derive a document type for {klass!r}: empty name")

    return raw[0].lower() + raw[1:]
