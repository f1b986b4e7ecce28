"""httpx client for the CartSense document API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from cartsense.errors import RemoteDocumentNotFound, RemoteReadFailed, RemoteWriteFailed

logger = logging.getLogger(__name__)


def client_options(timeout: Optional[float]) -> Dict[str, Any]:
    """Keyword arguments for httpx calls; an unset timeout keeps the httpx default."""

    if timeout is None:
        return {}
    return {"timeout": timeout}


class HttpDocumentStore:
    """``RemoteDocumentStore`` implementation speaking to ``cartsense.server``."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if not base_url:
            raise RuntimeError("CartSense remote base URL is not configured.")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = client
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _url(self, collection_path: str, document_id: Optional[str] = None) -> str:
        url = f"{self._base_url}/documents/{collection_path.strip('/')}"
        if document_id is not None:
            url = f"{url}/{document_id}"
        return url

    async def _send(self, method: str, url: str, payload: Any = None) -> httpx.Response:
        kwargs: Dict[str, Any] = {"headers": self._headers()}
        if payload is not None:
            kwargs["json"] = payload
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(**client_options(self._timeout)) as client:
            return await client.request(method, url, **kwargs)

    async def _write(self, method: str, url: str, payload: Any = None) -> httpx.Response:
        try:
            return await self._send(method, url, payload)
        except httpx.HTTPError as exc:
            raise RemoteWriteFailed(f"{method} {url} failed: {exc}") from exc

    async def create(self, collection_path: str, document: Mapping[str, Any]) -> str:
        url = self._url(collection_path)
        response = await self._write("POST", url, dict(document))
        if response.status_code != httpx.codes.CREATED:
            raise RemoteWriteFailed(f"POST {url} returned {response.status_code}")
        return str(response.json()["id"])

    async def update(
        self, collection_path: str, document_id: str, partial: Mapping[str, Any]
    ) -> None:
        url = self._url(collection_path, document_id)
        response = await self._write("PATCH", url, dict(partial))
        if response.status_code == httpx.codes.NOT_FOUND:
            raise RemoteDocumentNotFound(f"Document {document_id} not found in {collection_path}")
        if response.is_error:
            raise RemoteWriteFailed(f"PATCH {url} returned {response.status_code}")

    async def delete(self, collection_path: str, document_id: str) -> None:
        url = self._url(collection_path, document_id)
        response = await self._write("DELETE", url)
        if response.status_code == httpx.codes.NOT_FOUND:
            logger.debug("Document %s already absent from %s", document_id, collection_path)
            return
        if response.is_error:
            raise RemoteWriteFailed(f"DELETE {url} returned {response.status_code}")

    async def query_ordered_descending_by_creation(
        self, collection_path: str
    ) -> list[dict[str, Any]]:
        url = self._url(collection_path)
        try:
            response = await self._send("GET", url)
        except httpx.HTTPError as exc:
            raise RemoteReadFailed(f"GET {url} failed: {exc}") from exc
        if response.is_error:
            raise RemoteReadFailed(f"GET {url} returned {response.status_code}")
        return list(response.json())


__all__ = ["HttpDocumentStore", "client_options"]
