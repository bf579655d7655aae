"""HTTP client for the upload REST API.

Provides base URL handling, timeouts, and typed error mapping. Requests are
issued exactly once; retry policy belongs to callers.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from uploadctl.core.defaults import DEFAULT_HTTP_TIMEOUT_SECONDS
from uploadctl.core.exceptions import (
    NetworkError,
    RequestFailedError,
    ServerUnreachableError,
    TimeoutError,
)
from uploadctl.core.validation import validate_server_url

# =============================================================================
# Constants
# =============================================================================

API_PREFIX = "/api/v1"
HEALTH_PATH = f"{API_PREFIX}/health"


def extract_error_detail(resp: httpx.Response) -> str:
    """Pull a human-readable message out of an error response.

    The API reports failures as ``{"detail": "..."}``; anything else falls back
    to the (truncated) body text.
    """
    try:
        data = resp.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and data.get("detail"):
        detail = data["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return resp.text[:200].strip()


# =============================================================================
# UploadClient
# =============================================================================


@dataclass
class UploadClient:
    """HTTP client for the upload REST API."""

    base_url: str
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    verify_ssl: bool = True
    transport: httpx.BaseTransport | None = field(default=None, repr=False)
    _client: httpx.Client | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate and normalize URL."""
        self.base_url = validate_server_url(self.base_url)

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=True,
                transport=self.transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> UploadClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        files: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Execute a single HTTP request.

        Args:
            method: HTTP method.
            path: API path.
            params: Query parameters.
            json: JSON body.
            data: Form fields.
            files: Multipart file parts.
            headers: Additional headers.
            timeout: Request timeout override.

        Returns:
            Successful HTTP response.

        Raises:
            ServerUnreachableError: If the connection cannot be established.
            TimeoutError: If the request times out.
            NetworkError: On any other transport failure.
            RequestFailedError: If the server answers with 4xx/5xx.
        """
        client = self._get_client()
        request_timeout = timeout or self.timeout

        try:
            resp = client.request(
                method,
                path,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=request_timeout,
            )
        except httpx.ConnectError as e:
            raise ServerUnreachableError(self.base_url) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"{self.base_url}{path}", request_timeout) from e
        except httpx.TransportError as e:
            raise NetworkError(self.base_url, str(e) or type(e).__name__) from e

        if resp.status_code >= 400:
            raise RequestFailedError(
                f"{self.base_url}{path}",
                resp.status_code,
                extract_error_detail(resp),
            )
        return resp

    def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """GET request."""
        return self._request("GET", path, params=params, headers=headers, timeout=timeout)

    def post(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
        files: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """POST request."""
        return self._request(
            "POST",
            path,
            params=params,
            json=json,
            data=data,
            files=files,
            headers=headers,
            timeout=timeout,
        )

    def delete(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """DELETE request."""
        return self._request("DELETE", path, params=params, headers=headers, timeout=timeout)

    # =========================================================================
    # Convenience Methods
    # =========================================================================

    def ping(self) -> dict[str, Any]:
        """Check server connectivity.

        Returns:
            Dict with server status and latency.
        """
        start = time.time()
        resp = self.get(HEALTH_PATH)
        latency = int((time.time() - start) * 1000)

        try:
            status = resp.json().get("status", "ok")
        except (ValueError, AttributeError):
            status = resp.text.strip() or "ok"

        return {
            "url": self.base_url,
            "status": status,
            "latency_ms": latency,
        }
