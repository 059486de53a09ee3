"""
Vendor Rollup — exposure by vendor and best-effort trade lookup.

Sums payment amounts per vendor, ranks the largest, and optionally decorates
each with its trade from a vendor registry. Lookups go through an explicit
:class:`TradeCache` owned by the caller; a failed lookup yields a placeholder
and never fails the rollup.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Literal

from renohub.models.entities import Payment, VendorExposure
from renohub.models.records import RawRecord
from renohub.normalize.aliases import VENDOR_REGISTRY_FIELDS
from renohub.normalize.extractor import first_value

if TYPE_CHECKING:
    from renohub.connectors.base import BaseRecordStore

logger = logging.getLogger("renohub.analyzers.vendors")

UNKNOWN_VENDOR = "Unknown"
TRADE_PLACEHOLDER = "—"


def top_vendors(
    payments: Sequence[Payment],
    limit: int = 5,
    *,
    basis: Literal["outstanding", "paid"] = "outstanding",
) -> list[VendorExposure]:
    """Largest vendors by summed amount.

    Args:
        payments: Normalized payments.
        limit: Maximum number of vendors returned.
        basis: ``outstanding`` sums unpaid payments, ``paid`` sums paid-to-date.
    """
    totals: dict[str, float] = {}
    for p in payments:
        if p.is_paid != (basis == "paid"):
            continue
        vendor = p.vendor.strip() or UNKNOWN_VENDOR
        totals[vendor] = totals.get(vendor, 0.0) + p.amount

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [VendorExposure(vendor=v, amount=round(a, 2)) for v, a in ranked[:limit]]


class TradeCache:
    """Size- and TTL-bounded vendor -> trade cache.

    Entries expire ``ttl`` seconds after they are stored; once ``max_size``
    is reached the least recently used entry is evicted.
    """

    def __init__(
        self,
        ttl: float = 3600.0,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, str]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, vendor: str) -> str | None:
        entry = self._entries.get(vendor)
        if entry is None:
            return None
        stored_at, trade = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[vendor]
            return None
        self._entries.move_to_end(vendor)
        return trade

    def put(self, vendor: str, trade: str) -> None:
        self._entries[vendor] = (self._clock(), trade)
        self._entries.move_to_end(vendor)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


class VendorDirectory:
    """Trade lookups against a vendor registry collection."""

    def __init__(
        self,
        store: BaseRecordStore,
        collection_id: str,
        cache: TradeCache | None = None,
    ) -> None:
        self.store = store
        self.collection_id = collection_id
        self.cache = cache if cache is not None else TradeCache()

    async def trade_for(self, vendor: str) -> str:
        cached = self.cache.get(vendor)
        if cached is not None:
            return cached

        trade = TRADE_PLACEHOLDER
        try:
            rows = await self.store.fetch_all(
                self.collection_id,
                filter={"property": VENDOR_REGISTRY_FIELDS["name"][0], "title": {"equals": vendor}},
            )
        except Exception as e:
            logger.warning("Vendor trade lookup failed for %s: %s", vendor, e)
        else:
            if rows:
                value = first_value(RawRecord.from_api(rows[0]), VENDOR_REGISTRY_FIELDS["trade"])
                if isinstance(value, list):
                    value = ", ".join(str(v) for v in value)
                if isinstance(value, str) and value.strip():
                    trade = value.strip()

        self.cache.put(vendor, trade)
        return trade


async def enrich_trades(exposures: Sequence[VendorExposure], directory: VendorDirectory) -> list[VendorExposure]:
    """Attach trades to ``exposures``; lookups run concurrently."""
    trades = await asyncio.gather(*(directory.trade_for(e.vendor) for e in exposures))
    return [e.model_copy(update={"trade": t}) for e, t in zip(exposures, trades)]
