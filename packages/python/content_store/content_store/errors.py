"""Errors raised by content store clients."""

from __future__ import annotations

from typing import Optional


class ContentStoreError(Exception):
    """Base error for everything the content store layer raises."""


class DocumentConflictError(ContentStoreError):
    """Raised when a document with the same ``_id`` already exists."""


class DocumentNotFoundError(ContentStoreError):
    """Raised when a document that must exist cannot be located."""


class StoreTransportError(ContentStoreError):
    """Raised for network failures and unexpected responses from the store."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
