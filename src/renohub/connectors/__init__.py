"""Connectors package — record store integrations."""
from renohub.connectors.base import BaseRecordStore
from renohub.connectors.notion_connector import NotionRecordStore

__all__ = [
    "BaseRecordStore",
    "NotionRecordStore",
]
