"""HTTP client for the remote content store (mutate / doc / query endpoints)."""

from __future__ import annotations

import json
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from .errors import (
    DocumentConflictError,
    DocumentNotFoundError,
    StoreTransportError,
)
from .query import Query
from .settings import ContentStoreSettings, get_settings
from .typing import StoreDocument

# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MutationResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    operation: Optional[str] = None
    document: Optional[Dict[str, Any]] = None


class MutationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    results: List[MutationResult] = Field(default_factory=list)


class DocumentsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    documents: List[Dict[str, Any]] = Field(default_factory=list)


class QueryResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: Any = None


def _error_description(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return str(error.get("description") or error.get("message") or error)
    if error:
        return str(error)
    return response.text


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ContentStoreClient:
    """
    Blocking client for one project/dataset of the content store.

    Every mutation is sent on its own with ``returnDocuments=true`` so callers
    get the stored document back, including server-assigned ``_id`` and
    system fields.
    """

    def __init__(
        self,
        settings: Optional[ContentStoreSettings] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        headers = {"Accept": "application/json"}
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"
        self._http = httpx.Client(
            timeout=httpx.Timeout(self._settings.timeout_seconds),
            headers=headers,
            transport=transport,
        )

    @property
    def settings(self) -> ContentStoreSettings:
        return self._settings

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ContentStoreClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- URLs ---------------------------------------------------------------

    def _mutate_url(self) -> str:
        return f"{self._settings.api_url()}/data/mutate/{self._settings.dataset}"

    def _doc_url(self, doc_id: str) -> str:
        base = self._settings.api_url(cdn=self._settings.use_cdn)
        return f"{base}/data/doc/{self._settings.dataset}/{doc_id}"

    def _query_url(self) -> str:
        base = self._settings.api_url(cdn=self._settings.use_cdn)
        return f"{base}/data/query/{self._settings.dataset}"

    # -- transport ----------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        *,
        label: str,
        params: Optional[Mapping[str, Any]] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        start = time.perf_counter()
        try:
            response = self._http.request(method, url, params=params, json=payload)
        except httpx.RequestError as exc:
            duration = (time.perf_counter() - start) * 1000
            logger.warning(
                "Content store {label} request failed after {duration:.2f} ms: {error}",
                label=label,
                duration=duration,
                error=exc,
            )
            raise StoreTransportError(f"{label} request failed: {exc}") from exc

        duration = (time.perf_counter() - start) * 1000
        logger.debug(
            "Content store {label} responded with {status} in {duration:.2f} ms",
            label=label,
            status=response.status_code,
            duration=duration,
        )

        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise StoreTransportError(
                    f"{label} returned a non-JSON body",
                    status_code=response.status_code,
                ) from exc

        description = _error_description(response)
        logger.warning(
            "Content store {label} failed with {status}: {description}",
            label=label,
            status=response.status_code,
            description=description,
        )
        if response.status_code == 404:
            raise DocumentNotFoundError(description)
        if response.status_code == 409:
            # The store reports patches against missing documents as conflicts.
            if "not found" in description.lower():
                raise DocumentNotFoundError(description)
            raise DocumentConflictError(description)
        raise StoreTransportError(
            f"{label} failed with status {response.status_code}: {description}",
            status_code=response.status_code,
        )

    def _mutate(self, operation: str, body: Mapping[str, Any]) -> MutationResponse:
        data = self._request(
            "POST",
            self._mutate_url(),
            label=operation,
            params={"returnIds": "true", "returnDocuments": "true", "visibility": "sync"},
            payload={"mutations": [{operation: dict(body)}]},
        )
        return MutationResponse.model_validate(data)

    def _returned_document(
        self,
        response: MutationResponse,
        operation: str,
        doc_id: Optional[str] = None,
    ) -> StoreDocument:
        if response.results:
            result = response.results[0]
            if result.document is not None:
                return result.document
            doc_id = result.id
        elif doc_id is None:
            raise StoreTransportError(f"{operation} returned no mutation results")
        # Mutations that change nothing come back without a document body.
        existing = self.get_document(doc_id)
        if existing is None:
            raise DocumentNotFoundError(f"Document {doc_id} not found")
        return existing

    # -- mutations ----------------------------------------------------------

    def create(self, document: Mapping[str, Any]) -> StoreDocument:
        return self._returned_document(self._mutate("create", document), "create")

    def create_or_replace(self, document: Mapping[str, Any]) -> StoreDocument:
        if not document.get("_id"):
            raise ValueError("createOrReplace requires an _id")
        return self._returned_document(self._mutate("createOrReplace", document), "createOrReplace")

    def create_if_not_exists(self, document: Mapping[str, Any]) -> StoreDocument:
        if not document.get("_id"):
            raise ValueError("createIfNotExists requires an _id")
        response = self._mutate("createIfNotExists", document)
        return self._returned_document(response, "createIfNotExists", document["_id"])

    def patch(
        self,
        doc_id: str,
        set: Optional[Mapping[str, Any]] = None,
        unset: Sequence[str] = (),
    ) -> StoreDocument:
        body: Dict[str, Any] = {"id": doc_id}
        if set:
            body["set"] = dict(set)
        if unset:
            body["unset"] = list(unset)
        response = self._mutate("patch", body)
        if not response.results or response.results[0].document is None:
            raise DocumentNotFoundError(f"Document {doc_id} not found")
        return response.results[0].document

    def delete(self, doc_id: str) -> None:
        response = self._mutate("delete", {"id": doc_id})
        if not response.results:
            raise DocumentNotFoundError(f"Document {doc_id} not found")

    # -- reads --------------------------------------------------------------

    def get_document(self, doc_id: str) -> Optional[StoreDocument]:
        data = self._request("GET", self._doc_url(doc_id), label="doc")
        documents = DocumentsResponse.model_validate(data).documents
        return documents[0] if documents else None

    def query(self, query: Query) -> List[StoreDocument]:
        groq, values = query.to_groq()
        params: Dict[str, str] = {"query": groq}
        for name, value in values.items():
            params[f"${name}"] = json.dumps(value)
        data = self._request("GET", self._query_url(), label="query", params=params)
        result = QueryResponse.model_validate(data).result
        if result is None:
            return []
        if not isinstance(result, list):
            raise StoreTransportError("query result is not a list of documents")
        return result


# Shared client so documents reuse one connection pool; rebuilt when the
# active settings are replaced through ``configure``.
_client: Optional[ContentStoreClient] = None


def get_store_client() -> ContentStoreClient:
    """Return the shared client for the active ``content_store`` settings."""

    global _client
    active = get_settings()
    if _client is None or _client.settings is not active:
        if _client is not None:
            logger.debug("Content store settings changed, building a new client")
        _client = ContentStoreClient(active)
    return _client
