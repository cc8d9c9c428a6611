"""Clients for a remote content store keyed by ``_id`` and classified by ``_type``.

Example usage:

    from content_store import Query, get_store_client

    client = get_store_client()
    posts = client.query(Query(document_type="post", equals={"slug": "hello"}))
"""

from .client import ContentStoreClient, get_store_client
from .errors import (
    ContentStoreError,
    DocumentConflictError,
    DocumentNotFoundError,
    StoreTransportError,
)
from .memory import InMemoryStoreClient
from .query import Query
from .settings import ContentStoreSettings, configure, get_settings
from .typing import StoreClient, StoreDocument

__all__ = [
    "ContentStoreSettings",
    "configure",
    "get_settings",
    "ContentStoreClient",
    "get_store_client",
    "InMemoryStoreClient",
    "Query",
    "StoreClient",
    "StoreDocument",
    "ContentStoreError",
    "DocumentConflictError",
    "DocumentNotFoundError",
    "StoreTransportError",
]
