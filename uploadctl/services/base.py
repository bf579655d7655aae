"""Base service with common methods for uploadctl services."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING
from urllib.parse import quote

if TYPE_CHECKING:
    from uploadctl.core.client import UploadClient


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, client: "UploadClient") -> None:
        """Initialize service with an upload API client.

        Args:
            client: UploadClient instance
        """
        self.client = client

    def _get(self, path: str, **kwargs: Any) -> Any:
        """Execute GET request and return JSON data.

        Args:
            path: API endpoint path
            **kwargs: Additional request parameters

        Returns:
            Parsed JSON response data
        """
        resp = self.client.get(path, **kwargs)
        return resp.json()

    def _post(self, path: str, **kwargs: Any) -> Any:
        """Execute POST request and return parsed JSON.

        Args:
            path: API endpoint path
            **kwargs: Additional request parameters

        Returns:
            Parsed JSON response data
        """
        resp = self.client.post(path, **kwargs)
        return resp.json()

    def _delete(self, path: str, **kwargs: Any) -> bool:
        """Execute DELETE request.

        Returns:
            True if successful
        """
        self.client.delete(path, **kwargs)
        return True

    def _build_path(self, template: str, **parts: str) -> str:
        """Fill a path template, escaping each substituted segment.

        Args:
            template: Path with ``{name}`` placeholders
            **parts: Segment values

        Returns:
            API path
        """
        return template.format(**{k: quote(str(v), safe="") for k, v in parts.items()})
