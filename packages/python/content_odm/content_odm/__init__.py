"""Object-document mapping on top of ``content_store`` clients."""

from .document import Document, DocumentMeta
from .query import QueryResult
from .type_helper import default_type

__all__ = [
    "Document",
    "DocumentMeta",
    "QueryResult",
    "default_type",
]
