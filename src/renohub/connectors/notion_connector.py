"""
Notion Connector — database queries against the Notion API.

Pulls every page of a database via ``POST /databases/{id}/query``, following
``next_cursor`` until ``has_more`` is false.

Notion API docs:
  https://developers.notion.com/reference/post-database-query
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from renohub.config import NotionConfig
from renohub.connectors.base import BaseRecordStore
from renohub.errors import UpstreamError

logger = logging.getLogger("renohub.connectors.notion")

_ERROR_TEXT_LIMIT = 300


class NotionRecordStore(BaseRecordStore):
    """Read database pages from Notion.

    Usage::

        store = NotionRecordStore(NotionConfig(api_key="secret_..."))
        pages = await store.fetch_all(database_id)
        await store.close()
    """

    name = "notion"
    description = "Query Notion databases"

    def __init__(
        self,
        config: NotionConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create a reusable httpx client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Notion-Version": self.config.version,
                    "Content-Type": "application/json",
                },
            )
        return self._http

    async def close(self) -> None:
        if self._http and not self._http.is_closed:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # API helpers
    # ------------------------------------------------------------------

    async def _query(self, database_id: str, body: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.post(f"/databases/{database_id}/query", json=body)
        except httpx.HTTPError as e:
            raise UpstreamError("notion", f"request failed: {e}") from e

        if resp.status_code >= 400:
            text = resp.text[:_ERROR_TEXT_LIMIT]
            logger.error("Notion error for DB %s: %s %s", database_id, resp.status_code, text)
            raise UpstreamError("notion", f"HTTP {resp.status_code}: {text}", upstream_status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("notion", "response was not JSON", upstream_status=resp.status_code) from e
        return data if isinstance(data, dict) else {}

    async def fetch_all(
        self,
        collection_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> list[Any]:
        """Fetch all pages of a database, following the cursor."""
        body: dict[str, Any] = {"page_size": self.config.page_size}
        if filter:
            body["filter"] = filter
        if sorts:
            body["sorts"] = sorts

        results: list[Any] = []
        while True:
            data = await self._query(collection_id, body)
            page = data.get("results") or []
            # Malformed entries pass through; the normalizer degrades them
            if isinstance(page, list):
                results.extend(page)

            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
            body["start_cursor"] = cursor

        logger.info("Fetched %d records from Notion DB %s", len(results), collection_id)
        return results
