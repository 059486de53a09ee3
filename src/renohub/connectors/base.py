"""
Base record store — abstract interface for the collections RenoHub reads.

A record store returns every record of a collection as raw JSON objects, with
pagination handled inside the connector. Normalization happens downstream,
so connectors never interpret record properties.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseRecordStore(ABC):
    """Abstract base class for record store connectors.

    To add a new store, subclass this and implement:
    - `name`: Unique connector identifier.
    - `fetch_all()`: Async method returning every raw record of a collection.

    Example::

        class SheetStore(BaseRecordStore):
            name = "sheets"

            async def fetch_all(self, collection_id, filter=None, sorts=None):
                ...
    """

    name: str = "base"
    description: str = "Base record store"

    @abstractmethod
    async def fetch_all(
        self,
        collection_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> list[Any]:
        """Return every record of ``collection_id``.

        Args:
            collection_id: Store-specific collection identifier.
            filter: Optional store-native filter object.
            sorts: Optional list of ``{"property": ..., "direction": ...}``.

        Raises:
            UpstreamError: On a non-success response or network failure.
        """
        ...

    async def close(self) -> None:
        """Release any held connections."""
        return None
