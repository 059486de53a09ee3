"""Analyzers package — metrics, gates and vendor rollups derived from entities."""
from renohub.analyzers.gates import GateEngine
from renohub.analyzers.metrics import (
    build_alerts,
    cashflow_by_month,
    compute_kpis,
    days_to_launch,
    next_30_days,
    payment_forecast,
)
from renohub.analyzers.vendors import TradeCache, VendorDirectory, enrich_trades, top_vendors

__all__ = [
    "GateEngine",
    "TradeCache",
    "VendorDirectory",
    "build_alerts",
    "cashflow_by_month",
    "compute_kpis",
    "days_to_launch",
    "enrich_trades",
    "next_30_days",
    "payment_forecast",
    "top_vendors",
]
