"""Notion API client with pacing and a read cache for template schemas."""

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests
from requests_cache import CachedSession

from year_builder.utils.notion_objects import normalize_id, title_value
from year_builder.utils.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"
PAGE_SIZE = 100


class NotionAPIError(Exception):
    """Raised when a Notion API request fails.

    Attributes:
        status: HTTP status code, if a response was received
        code: Notion error code (e.g. "object_not_found", "rate_limited")
    """

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.code = code


class NotionClient:
    """Notion API client.

    Every request first takes a token from the rate limiter, so callers never
    sleep themselves. GET requests for template databases may be served from
    the HTTP cache; all other reads (existence probes) bypass it.

    Attributes:
        session: Cached requests session
        token: Notion integration token
        rate_limiter: Pacing policy with an ``acquire()`` method
    """

    def __init__(
        self,
        token: Optional[str] = None,
        cache_dir: str = ".year-builder/cache",
        cache_expire_after: int = 3600,
        rate_limiter: Optional[Any] = None,
    ):
        """Initialize Notion client.

        Args:
            token: Notion integration token. If None, reads from NOTION_TOKEN env var.
            cache_dir: Directory for cache storage
            cache_expire_after: Cache expiration time in seconds (default: 1 hour)
            rate_limiter: Object with ``acquire()``; defaults to 3 requests/second

        Raises:
            NotionAPIError: If no token is available
        """
        self.token = token or os.getenv("NOTION_TOKEN")
        if not self.token:
            raise NotionAPIError(
                "Notion token required. Set the NOTION_TOKEN environment variable "
                "to an integration token with access to the target page."
            )

        self.rate_limiter = rate_limiter or TokenBucket()

        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        cache_path = self.cache_dir / "notion_api_cache"
        self.session = CachedSession(
            str(cache_path),
            expire_after=cache_expire_after,
            allowable_methods=["GET"],
            stale_if_error=True,
        )
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            }
        )

        self.base_url = NOTION_API_URL

    def _send(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]],
        use_cache: bool,
    ) -> requests.Response:
        if use_cache:
            return self.session.request(method, url, json=payload, timeout=30)
        with self.session.cache_disabled():
            return self.session.request(method, url, json=payload, timeout=30)

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Dict[str, Any]] = None,
        retry: Optional[int] = None,
        use_cache: bool = False,
    ) -> Dict[str, Any]:
        """Make a Notion API request.

        Connection errors are retried with exponential backoff for reads only;
        writes are attempted once so a lost response can never create a
        duplicate. HTTP errors (including rate limiting) are not retried.

        Args:
            method: HTTP method
            endpoint: API endpoint (e.g., "/databases/<id>")
            payload: JSON body
            retry: Number of attempts (default: 3 for GET, 1 otherwise)
            use_cache: Allow the HTTP cache to answer GET requests

        Returns:
            Decoded JSON response

        Raises:
            NotionAPIError: If the request fails
        """
        url = f"{self.base_url}{endpoint}"
        attempts = retry if retry is not None else (3 if method == "GET" else 1)

        for attempt in range(attempts):
            self.rate_limiter.acquire()
            try:
                response = self._send(method, url, payload, use_cache)
            except requests.exceptions.RequestException as e:
                if attempt == attempts - 1:
                    raise NotionAPIError(f"Notion API request failed: {e}") from e
                logger.debug(f"{method} {endpoint} failed ({e}), retrying")
                time.sleep(2**attempt)
                continue

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After", "?")
                raise NotionAPIError(
                    f"Rate limited by Notion API (retry after {retry_after}s)",
                    status=429,
                    code="rate_limited",
                )

            if response.status_code >= 400:
                try:
                    body = response.json()
                except ValueError:
                    body = {}
                code = body.get("code") if isinstance(body, dict) else None
                message = body.get("message") if isinstance(body, dict) else None
                raise NotionAPIError(
                    f"{method} {endpoint} failed ({response.status_code}"
                    f"{', ' + code if code else ''}): {message or response.text}",
                    status=response.status_code,
                    code=code,
                )

            data: Any = response.json()
            if not isinstance(data, dict):
                raise NotionAPIError(f"Unexpected response for {method} {endpoint}")
            return data

        raise NotionAPIError(f"Failed to {method} {url} after {attempts} attempts")

    def _paginate(self, endpoint: str, body: Dict[str, Any]) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        cursor: Optional[str] = None

        while True:
            payload = dict(body, page_size=PAGE_SIZE)
            if cursor:
                payload["start_cursor"] = cursor

            data = self._request("POST", endpoint, payload, retry=3)
            results.extend(data.get("results", []))

            if not data.get("has_more") or not data.get("next_cursor"):
                break
            cursor = data["next_cursor"]

        return results

    def search(
        self, kind: str, query: Optional[str] = None, parent_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Search objects of one kind shared with the integration.

        Notion's search is fuzzy, so results are filtered here: only objects
        of the requested kind and, if given, directly under ``parent_id``.

        Args:
            kind: "database" or "page"
            query: Optional search text
            parent_id: Only keep objects whose parent is this page

        Returns:
            List of matching objects

        Raises:
            NotionAPIError: If the search fails
        """
        body: Dict[str, Any] = {"filter": {"property": "object", "value": kind}}
        if query:
            body["query"] = query

        results = [r for r in self._paginate("/search", body) if r.get("object") == kind]

        if parent_id is not None:
            wanted = normalize_id(parent_id)
            results = [
                r
                for r in results
                if (r.get("parent") or {}).get("type") == "page_id"
                and normalize_id(r["parent"].get("page_id")) == wanted
            ]

        return results

    def get_page(self, page_id: str) -> Dict[str, Any]:
        """Retrieve a page object."""
        return self._request("GET", f"/pages/{page_id}")

    def create_page(self, parent_id: str, title: str, icon: Optional[str] = None) -> str:
        """Create a plain subpage under a page.

        Returns:
            ID of the created page
        """
        payload: Dict[str, Any] = {
            "parent": {"type": "page_id", "page_id": parent_id},
            "properties": {"title": title_value(title)},
        }
        if icon:
            payload["icon"] = {"type": "emoji", "emoji": icon}
        return str(self._request("POST", "/pages", payload)["id"])

    def get_table_schema(self, table_id: str, use_cache: bool = False) -> Dict[str, Dict[str, Any]]:
        """Retrieve a database's properties (name → property schema).

        Args:
            table_id: Database ID
            use_cache: Allow a cached response (template databases only)
        """
        data = self._request("GET", f"/databases/{table_id}", use_cache=use_cache)
        properties: Dict[str, Dict[str, Any]] = data.get("properties", {})
        return properties

    def create_table(
        self,
        parent_id: str,
        name: str,
        icon: Optional[str],
        properties: Dict[str, Dict[str, Any]],
    ) -> str:
        """Create a database under a page.

        Returns:
            ID of the created database
        """
        payload: Dict[str, Any] = {
            "parent": {"type": "page_id", "page_id": parent_id},
            "title": [{"type": "text", "text": {"content": name}}],
            "properties": properties,
        }
        if icon:
            payload["icon"] = {"type": "emoji", "emoji": icon}
        return str(self._request("POST", "/databases", payload)["id"])

    def update_table_schema(self, table_id: str, properties: Dict[str, Dict[str, Any]]) -> None:
        """Add or change database properties (computed columns, relations)."""
        self._request("PATCH", f"/databases/{table_id}", {"properties": properties})

    def query_rows(
        self, table_id: str, filter: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Query all rows of a database, following pagination."""
        body: Dict[str, Any] = {}
        if filter:
            body["filter"] = filter
        return self._paginate(f"/databases/{table_id}/query", body)

    def get_row(self, row_id: str) -> Dict[str, Any]:
        """Retrieve a database row (page)."""
        return self._request("GET", f"/pages/{row_id}")

    def create_row(
        self,
        table_id: str,
        properties: Dict[str, Dict[str, Any]],
        icon: Optional[str] = None,
    ) -> str:
        """Create a row in a database.

        Returns:
            ID of the created row
        """
        payload: Dict[str, Any] = {
            "parent": {"type": "database_id", "database_id": table_id},
            "properties": properties,
        }
        if icon:
            payload["icon"] = {"type": "emoji", "emoji": icon}
        return str(self._request("POST", "/pages", payload)["id"])

    def update_row(
        self,
        row_id: str,
        properties: Optional[Dict[str, Dict[str, Any]]] = None,
        icon: Optional[str] = None,
    ) -> None:
        """Update a row's properties and/or icon."""
        payload: Dict[str, Any] = {}
        if properties:
            payload["properties"] = properties
        if icon:
            payload["icon"] = {"type": "emoji", "emoji": icon}
        self._request("PATCH", f"/pages/{row_id}", payload)

    def clear_cache(self) -> None:
        """Clear all cached API responses."""
        if hasattr(self.session.cache, "clear"):
            self.session.cache.clear()
