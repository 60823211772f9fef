"""HTTP client for the pxd record service.

Every call has a bounded wait. Transport failures surface as
PxdNetworkError (PxdTimeoutError for timeouts) and are never retried
here; callers decide whether to fall back to the local cache.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from pxd.api.auth import AUTH_HEADER
from pxd.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class PxdClientError(Exception):
    """Error returned by, or while reaching, the pxd service."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class BadRequestError(PxdClientError):
    """The service rejected the request body (400)."""


class UnauthorizedError(PxdClientError):
    """No valid credential was presented (401)."""


class ForbiddenError(PxdClientError):
    """The credential's role is too low for the operation (403)."""


class NotFoundError(PxdClientError):
    """The tag does not exist (404)."""


class ServerError(PxdClientError):
    """The service failed, e.g. id space exhausted (5xx)."""


class PxdNetworkError(PxdClientError):
    """The service could not be reached."""


class PxdTimeoutError(PxdNetworkError):
    """The service did not answer within the timeout."""


_STATUS_ERRORS: dict[int, type[PxdClientError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}


def _error_for(response: httpx.Response) -> PxdClientError:
    try:
        message = response.json().get("error") or response.reason_phrase
    except (ValueError, AttributeError):
        message = response.reason_phrase or f"HTTP {response.status_code}"

    error_class = _STATUS_ERRORS.get(response.status_code)
    if error_class is None:
        error_class = ServerError if response.status_code >= 500 else PxdClientError
    return error_class(message, status_code=response.status_code)


class PxdClient:
    """Synchronous client for the pxd JSON API."""

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        http: httpx.Client | None = None,
    ):
        """Initialize the client.

        Args:
            api_url: Base URL of the service.
            api_key: Credential sent in the X-PXD-Key header.
            timeout: Seconds to wait before treating a call as failed.
            http: Pre-built HTTP client (tests, custom transports).
        """
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._owns_client = http is None
        self._client = http or httpx.Client(base_url=self._api_url, timeout=timeout)

    @property
    def api_url(self) -> str:
        return self._api_url

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers[AUTH_HEADER] = self._api_key
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.debug("request_timeout", method=method, path=path)
            raise PxdTimeoutError(f"Timed out after {self._timeout:g}s: {method} {path}") from e
        except httpx.TransportError as e:
            logger.debug("request_failed", method=method, path=path, error=str(e))
            raise PxdNetworkError(f"Could not reach {self._api_url}: {e}") from e

        if not response.is_success:
            raise _error_for(response)
        if not response.content:
            return {}
        return response.json()

    # -- Operations --

    def health(self) -> dict[str, Any]:
        """GET /health."""
        return self._request("GET", "/health")

    def create(self, name: str, meta: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST /id -> {id, name, meta, created_at}."""
        body: dict[str, Any] = {"name": name}
        if meta is not None:
            body["meta"] = meta
        return self._request("POST", "/id", json=body)

    def get(self, tag_id: str) -> dict[str, Any]:
        """GET /id/{id} -> tag with links."""
        return self._request("GET", f"/id/{quote(tag_id, safe='')}")

    def update(
        self,
        tag_id: str,
        name: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        """PUT /id/{id} (admin)."""
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if meta is not None:
            body["meta"] = meta
        self._request("PUT", f"/id/{quote(tag_id, safe='')}", json=body)

    def delete(self, tag_id: str) -> None:
        """DELETE /id/{id} (admin)."""
        self._request("DELETE", f"/id/{quote(tag_id, safe='')}")

    def add_link(self, tag_id: str, link_type: str, url: str) -> None:
        """POST /id/{id}/link."""
        self._request(
            "POST",
            f"/id/{quote(tag_id, safe='')}/link",
            json={"type": link_type, "url": url},
        )

    def remove_link(self, tag_id: str, link_type: str) -> None:
        """DELETE /id/{id}/link/{type} (admin)."""
        self._request(
            "DELETE",
            f"/id/{quote(tag_id, safe='')}/link/{quote(link_type, safe='')}",
        )

    def search(self, query: str) -> list[dict[str, Any]]:
        """GET /search?q= -> up to 50 tags (no links)."""
        return self._request("GET", "/search", params={"q": query})

    def list_tags(self) -> list[dict[str, Any]]:
        """GET /list -> up to 100 summaries."""
        return self._request("GET", "/list")

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> PxdClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
