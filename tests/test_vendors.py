"""Tests for the vendor rollup, the trade cache and registry lookups."""

from __future__ import annotations

from typing import Any

import pytest
from factories import page_with, select, title

from renohub.analyzers.vendors import (
    TRADE_PLACEHOLDER,
    TradeCache,
    VendorDirectory,
    enrich_trades,
    top_vendors,
)
from renohub.connectors.base import BaseRecordStore
from renohub.errors import UpstreamError
from renohub.models.entities import Payment, VendorExposure


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class RegistryStore(BaseRecordStore):
    """In-memory vendor registry that records every lookup."""

    name = "registry"

    def __init__(self, trades: dict[str, str], fail_for: set[str] | None = None) -> None:
        self.trades = trades
        self.fail_for = fail_for or set()
        self.calls: list[dict[str, Any] | None] = []

    async def fetch_all(
        self,
        collection_id: str,
        filter: dict[str, Any] | None = None,
        sorts: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        self.calls.append(filter)
        vendor = filter["title"]["equals"] if filter else ""
        if vendor in self.fail_for:
            raise UpstreamError("notion", "HTTP 500: boom", upstream_status=500)
        if vendor not in self.trades:
            return []
        return [
            page_with(
                f"v-{vendor}",
                {"Company_Name": title(vendor), "Trade Specialization": select(self.trades[vendor])},
            )
        ]


# ── Rollup ──────────────────────────────────────────────────────────


class TestTopVendors:
    def test_outstanding_ranking(self) -> None:
        payments = [
            Payment(vendor="Tile Co", amount=3000),
            Payment(vendor="Sparky", amount=1200),
            Payment(vendor="Tile Co", amount=500),
            Payment(vendor="Sparky", amount=9999, status="Paid"),
            Payment(vendor="Plumb", amount=1200),
        ]
        ranked = top_vendors(payments)
        assert [(v.vendor, v.amount) for v in ranked] == [("Tile Co", 3500), ("Plumb", 1200), ("Sparky", 1200)]

    def test_paid_basis(self) -> None:
        payments = [Payment(vendor="A", amount=10, status="Paid"), Payment(vendor="B", amount=99)]
        assert [v.vendor for v in top_vendors(payments, basis="paid")] == ["A"]

    def test_limit(self) -> None:
        payments = [Payment(vendor=f"V{i}", amount=i + 1) for i in range(8)]
        ranked = top_vendors(payments, limit=5)
        assert len(ranked) == 5
        assert ranked[0].vendor == "V7"

    def test_blank_vendor_grouped_as_unknown(self) -> None:
        ranked = top_vendors([Payment(vendor="  ", amount=5), Payment(amount=6)])
        assert ranked == [VendorExposure(vendor="Unknown", amount=11)]

    def test_no_trade_without_lookup(self) -> None:
        assert top_vendors([Payment(vendor="A", amount=1)])[0].trade is None


# ── Cache ───────────────────────────────────────────────────────────


class TestTradeCache:
    def test_hit_and_expiry(self) -> None:
        clock = FakeClock()
        cache = TradeCache(ttl=60, max_size=10, clock=clock)
        cache.put("Tile Co", "Tiling")
        clock.now = 59
        assert cache.get("Tile Co") == "Tiling"
        clock.now = 61
        assert cache.get("Tile Co") is None
        assert len(cache) == 0

    def test_lru_eviction(self) -> None:
        cache = TradeCache(ttl=60, max_size=2, clock=FakeClock())
        cache.put("A", "a")
        cache.put("B", "b")
        assert cache.get("A") == "a"
        cache.put("C", "c")
        assert cache.get("B") is None
        assert cache.get("A") == "a"
        assert cache.get("C") == "c"
        assert len(cache) == 2

    def test_clear(self) -> None:
        cache = TradeCache()
        cache.put("A", "a")
        cache.clear()
        assert cache.get("A") is None


# ── Registry lookups ────────────────────────────────────────────────


class TestVendorDirectory:
    @pytest.mark.asyncio
    async def test_lookup_and_cache(self) -> None:
        store = RegistryStore({"Tile Co": "Tiling"})
        directory = VendorDirectory(store, "registry-db")
        assert await directory.trade_for("Tile Co") == "Tiling"
        assert await directory.trade_for("Tile Co") == "Tiling"
        assert len(store.calls) == 1
        assert store.calls[0] == {"property": "Company_Name", "title": {"equals": "Tile Co"}}

    @pytest.mark.asyncio
    async def test_unknown_vendor_placeholder(self) -> None:
        directory = VendorDirectory(RegistryStore({}), "registry-db")
        assert await directory.trade_for("Nobody") == TRADE_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_failure_yields_placeholder(self) -> None:
        store = RegistryStore({"Sparky": "Electrical"}, fail_for={"Sparky"})
        directory = VendorDirectory(store, "registry-db")
        assert await directory.trade_for("Sparky") == TRADE_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_enrich_keeps_order(self) -> None:
        store = RegistryStore({"A": "Carpentry", "C": "Plumbing"}, fail_for={"B"})
        directory = VendorDirectory(store, "registry-db")
        exposures = [VendorExposure(vendor=v, amount=1) for v in ("A", "B", "C")]
        enriched = await enrich_trades(exposures, directory)
        assert [(e.vendor, e.trade) for e in enriched] == [("A", "Carpentry"), ("B", TRADE_PLACEHOLDER), ("C", "Plumbing")]
        assert all(e.trade is None for e in exposures)

    @pytest.mark.asyncio
    async def test_shared_cache_across_directories(self) -> None:
        cache = TradeCache()
        store = RegistryStore({"A": "Carpentry"})
        await VendorDirectory(store, "registry-db", cache).trade_for("A")
        await VendorDirectory(store, "registry-db", cache).trade_for("A")
        assert len(store.calls) == 1
