"""
RenoHub — main orchestrator.

The RenovationHub class is the top-level entry point: it fetches the project
collections in parallel, hands them to the pure snapshot builder, and proxies
summary requests to the text-generation agent.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from renohub.agents.summarizer import SummaryAgent
from renohub.analyzers.vendors import TradeCache, VendorDirectory, enrich_trades
from renohub.config import HubConfig
from renohub.connectors.base import BaseRecordStore
from renohub.connectors.notion_connector import NotionRecordStore
from renohub.models.entities import Snapshot
from renohub.prompts import build_prompt
from renohub.snapshot import RawCollections, build_snapshot

logger = logging.getLogger("renohub")

_CURRENCY_LABELS = {"MYR": "RM"}

MILESTONE_SORTS = [{"property": "StartDate", "direction": "ascending"}]


@dataclass
class RenovationHub:
    """Top-level orchestrator for RenoHub.

    Usage::

        from renohub import RenovationHub

        hub = RenovationHub.from_config("renohub.yaml")
        snapshot = await hub.aggregate()
        text = await hub.summarize("summary", snapshot.to_dict())

    A single failed fetch fails the whole aggregation; no partial snapshot is
    ever returned.
    """

    config: HubConfig
    store: BaseRecordStore | None = None
    agent: SummaryAgent | None = None
    trade_cache: TradeCache | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.trade_cache is None:
            self.trade_cache = TradeCache(
                ttl=self.config.report.trade_cache_ttl,
                max_size=self.config.report.trade_cache_size,
            )

    @classmethod
    def from_config(cls, config_path: str | None = None, **overrides: Any) -> RenovationHub:
        """Create a hub from a config file or keyword arguments."""
        return cls(config=HubConfig.load(config_path, **overrides))

    def _get_store(self) -> BaseRecordStore:
        if self.store is None:
            self.store = NotionRecordStore(self.config.notion)
        return self.store

    def _get_agent(self) -> SummaryAgent:
        if self.agent is None:
            self.agent = SummaryAgent(self.config.llm)
        return self.agent

    async def close(self) -> None:
        if self.store is not None:
            await self.store.close()

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    async def fetch_raw(self) -> RawCollections:
        """Fetch every collection concurrently; the first failure cancels the rest."""
        notion = self.config.notion
        store = self._get_store()

        try:
            async with asyncio.TaskGroup() as tg:
                milestones = tg.create_task(store.fetch_all(notion.milestones_db_id, sorts=MILESTONE_SORTS))
                deliverables = tg.create_task(store.fetch_all(notion.deliverables_db_id))
                payments = tg.create_task(store.fetch_all(notion.payments_db_id))
                config = tg.create_task(store.fetch_all(notion.config_db_id))
                budget = tg.create_task(store.fetch_all(notion.budget_db_id)) if notion.budget_db_id else None
        except ExceptionGroup as eg:
            first: BaseException = eg
            while isinstance(first, BaseExceptionGroup):
                first = first.exceptions[0]
            logger.error("Aggregation fetch failed: %s", first)
            raise first from None

        return RawCollections(
            milestones=milestones.result(),
            deliverables=deliverables.result(),
            payments=payments.result(),
            config=config.result(),
            budget=budget.result() if budget is not None else None,
        )

    async def aggregate(self, now: datetime | None = None) -> Snapshot:
        """Run one full aggregation.

        Args:
            now: Reference time; defaults to the current UTC time.

        Raises:
            ConfigurationError: A required identifier or credential is missing.
            UpstreamError: A record store call failed.
        """
        self.config.require_aggregation_settings()
        now = now or datetime.now(UTC)

        logger.info("Starting aggregation")
        raw = await self.fetch_raw()
        snapshot = build_snapshot(raw, now, self.config.report)

        registry_id = self.config.notion.vendor_registry_db_id
        if registry_id and snapshot.top_vendors:
            directory = VendorDirectory(self._get_store(), registry_id, self.trade_cache)
            vendors = await enrich_trades(snapshot.top_vendors, directory)
            snapshot = snapshot.model_copy(update={"top_vendors": vendors})

        logger.info(
            "Aggregation complete: paid %.0f of %.0f budget, %d/%d deliverables approved",
            snapshot.kpis.paid_myr,
            snapshot.kpis.budget_myr,
            snapshot.kpis.deliverables_approved,
            snapshot.kpis.deliverables_total,
        )
        return snapshot

    def aggregate_sync(self, now: datetime | None = None) -> Snapshot:
        """Synchronous wrapper around :meth:`aggregate`."""
        return asyncio.run(self._aggregate_and_close(now))

    async def _aggregate_and_close(self, now: datetime | None) -> Snapshot:
        try:
            return await self.aggregate(now)
        finally:
            await self.close()

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def summarize(self, kind: str, data: dict[str, Any]) -> str:
        """Build the ``kind`` prompt from ``data`` and return the generated text.

        Raises:
            InvalidRequestError: Unknown ``kind``.
            ConfigurationError: No text-generation credential.
            UpstreamError: The provider call failed.
        """
        currency = _CURRENCY_LABELS.get(self.config.report.currency, self.config.report.currency)
        prompt = build_prompt(kind, data, currency=currency)
        return await self._get_agent().generate(prompt)
