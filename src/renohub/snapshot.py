"""
Snapshot builder — raw collections in, derived dashboard document out.

This is the pure core of an aggregation: no I/O, no clock reads. Given the
same raw records and the same ``now`` it returns an identical snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from renohub.analyzers.gates import GateEngine
from renohub.analyzers.metrics import build_alerts, cashflow_by_month, compute_kpis
from renohub.analyzers.vendors import top_vendors
from renohub.config import ReportConfig
from renohub.models.entities import Snapshot
from renohub.normalize.normalizer import config_map, normalize

logger = logging.getLogger("renohub.snapshot")


@dataclass
class RawCollections:
    """Raw records for one aggregation, one list per source collection."""

    milestones: list[Any] = field(default_factory=list)
    deliverables: list[Any] = field(default_factory=list)
    payments: list[Any] = field(default_factory=list)
    config: list[Any] = field(default_factory=list)
    budget: list[Any] | None = None


def build_snapshot(raw: RawCollections, now: datetime, report: ReportConfig | None = None) -> Snapshot:
    """Normalize ``raw`` and derive every aggregate.

    Args:
        raw: Records from the four required (and optional budget) collections.
        now: Reference time for due-date windows and the launch countdown.
        report: Window, forecast and ranking settings.

    Returns:
        Snapshot with every top-level key populated.
    """
    report = report or ReportConfig()

    milestones = normalize("milestones", raw.milestones)
    deliverables = normalize("deliverables", raw.deliverables, owner_aliases=report.owner_aliases)
    payments = normalize("payments", raw.payments)
    config = config_map(normalize("config", raw.config))
    budget_lines = normalize("budget", raw.budget) if raw.budget is not None else None

    engine = GateEngine.from_config(config)
    payments = engine.annotate_payments(payments, deliverables)
    gates = engine.evaluate_gates(deliverables, milestones)

    kpis = compute_kpis(
        milestones,
        deliverables,
        payments,
        config,
        now,
        budget_lines=budget_lines,
        window_days=report.window_days,
        forecast_months=report.forecast_months,
    )

    snapshot = Snapshot(
        milestones=milestones,
        deliverables=deliverables,
        payments=payments,
        config=config,
        kpis=kpis,
        gates=gates,
        top_vendors=top_vendors(payments, report.top_vendor_limit, basis=report.vendor_basis),
        cashflow=cashflow_by_month(payments),
        alerts=build_alerts(milestones, deliverables, payments, now, window_days=report.window_days),
    )
    logger.info(
        "Snapshot built: %d milestones, %d deliverables, %d payments, %d gates",
        len(milestones), len(deliverables), len(payments), len(gates),
    )
    return snapshot
