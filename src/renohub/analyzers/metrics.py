"""
Metric Calculator — headline KPIs and time-bucketed payment aggregates.

Produces:
1. **KPIs** — paid vs budget, deliverable approval ratio, risk counts,
   days to launch.
2. **Cashflow** — scheduled vs actually-paid amounts per calendar month.
3. **Payment forecast** — amounts falling due in each of the next N months.
4. **Upcoming window** — unpaid payments due in the next 30 days.
5. **Alerts** — overdue and upcoming payments, deliverable issues, at-risk
   milestones.

Every ratio is bounded to [0, 1] and a zero denominator yields 0. A payment
without a due date is never upcoming, overdue or forecast.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime, timedelta

from renohub.models.entities import (
    Alerts,
    BudgetLine,
    CashflowBucket,
    Deliverable,
    ForecastMonth,
    Kpis,
    Milestone,
    Payment,
    PaymentWindow,
)

logger = logging.getLogger("renohub.analyzers.metrics")

LAUNCH_DATE_KEY = "Project Launch Date"

# Reported once the launch date has passed.
LAUNCHED_DAYS_TO_LAUNCH = 0

WINDOW_ITEM_CAP = 50

_LAUNCH_DATE_FORMATS = ("%d %B %Y", "%B %d, %Y", "%d %b %Y", "%b %d, %Y", "%d/%m/%Y")


def _utc(now: datetime) -> datetime:
    return now.replace(tzinfo=UTC) if now.tzinfo is None else now.astimezone(UTC)


def _at_midnight(d: date) -> datetime:
    return datetime(d.year, d.month, d.day, tzinfo=UTC)


def _ym(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def _as_int(total: float) -> int:
    """Rounded total; a sum that overflowed to inf or NaN reports 0."""
    return round(total) if math.isfinite(total) else 0


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator/denominator clamped to [0, 1]; 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    ratio = numerator / denominator
    if math.isnan(ratio):
        return 0.0
    return max(0.0, min(1.0, ratio))


# ---------------------------------------------------------------------------
# Launch countdown
# ---------------------------------------------------------------------------


def parse_launch_date(raw: str | None) -> datetime | None:
    """Parse a launch date; date-only and naive values are taken as UTC."""
    if not raw or not raw.strip():
        return None
    text = raw.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = None
        for fmt in _LAUNCH_DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    return _utc(parsed)


def launch_date_value(config: Mapping[str, str]) -> str | None:
    if LAUNCH_DATE_KEY in config:
        return config[LAUNCH_DATE_KEY]
    wanted = LAUNCH_DATE_KEY.lower()
    for key, value in config.items():
        if key.strip().lower() == wanted:
            return value
    return None


def days_to_launch(config: Mapping[str, str], now: datetime) -> int:
    """Whole days until launch, rounded up; 0 when unknown or already launched."""
    raw = launch_date_value(config)
    launch = parse_launch_date(raw)
    if launch is None:
        if raw:
            logger.warning("Unparseable %s: %r", LAUNCH_DATE_KEY, raw)
        return 0
    days = math.ceil((launch - _utc(now)).total_seconds() / 86400)
    return days if days > 0 else LAUNCHED_DAYS_TO_LAUNCH


# ---------------------------------------------------------------------------
# Payment windows
# ---------------------------------------------------------------------------


def _by_due_date(payments: list[Payment]) -> list[Payment]:
    return sorted(payments, key=lambda p: p.due_date or date.max)


def upcoming_payments(payments: Sequence[Payment], now: datetime, days: int = 30) -> list[Payment]:
    """Unpaid payments due in ``[now, now + days]``, earliest first."""
    start = _utc(now)
    end = start + timedelta(days=days)
    hits = [
        p for p in payments
        if not p.is_paid and p.due_date is not None and start <= _at_midnight(p.due_date) <= end
    ]
    return _by_due_date(hits)


def overdue_payments(payments: Sequence[Payment], now: datetime) -> list[Payment]:
    """Unpaid payments whose due date is before ``now``, earliest first."""
    start = _utc(now)
    hits = [
        p for p in payments
        if not p.is_paid and p.due_date is not None and _at_midnight(p.due_date) < start
    ]
    return _by_due_date(hits)


def next_30_days(payments: Sequence[Payment], now: datetime, days: int = 30) -> PaymentWindow:
    items = upcoming_payments(payments, now, days)
    return PaymentWindow(
        amount=round(sum(p.amount for p in items), 2),
        count=len(items),
        items=items[:WINDOW_ITEM_CAP],
    )


# ---------------------------------------------------------------------------
# Time buckets
# ---------------------------------------------------------------------------


def cashflow_by_month(payments: Sequence[Payment]) -> list[CashflowBucket]:
    """Scheduled (by due month) and paid (by paid month) totals, oldest first.

    A payment lands in two buckets when its due and paid months differ, and in
    one when either date is missing.
    """
    scheduled: dict[str, float] = {}
    paid: dict[str, float] = {}
    for p in payments:
        if p.due_date is not None:
            key = _ym(p.due_date)
            scheduled[key] = scheduled.get(key, 0.0) + p.amount
        if p.paid_date is not None:
            key = _ym(p.paid_date)
            paid[key] = paid.get(key, 0.0) + p.amount

    return [
        CashflowBucket(
            ym=key,
            scheduled=round(scheduled.get(key, 0.0), 2),
            paid=round(paid.get(key, 0.0), 2),
        )
        for key in sorted(set(scheduled) | set(paid))
    ]


def payment_forecast(payments: Sequence[Payment], now: datetime, months: int = 4) -> list[ForecastMonth]:
    """Amount and count of payments due in each month, starting with the current one."""
    current = _utc(now)
    year, month = current.year, current.month
    forecast: list[ForecastMonth] = []
    for _ in range(months):
        due = [p for p in payments if p.due_date is not None and (p.due_date.year, p.due_date.month) == (year, month)]
        forecast.append(
            ForecastMonth(
                month=f"{year}-{month:02d}",
                label=date(year, month, 1).strftime("%b %Y"),
                total_amount=round(sum(p.amount for p in due), 2),
                payment_count=len(due),
            )
        )
        month += 1
        if month > 12:
            month = 1
            year += 1
    return forecast


# ---------------------------------------------------------------------------
# Alerts and KPIs
# ---------------------------------------------------------------------------


def build_alerts(
    milestones: Sequence[Milestone],
    deliverables: Sequence[Deliverable],
    payments: Sequence[Payment],
    now: datetime,
    *,
    window_days: int = 30,
) -> Alerts:
    return Alerts(
        payments_overdue=overdue_payments(payments, now),
        payments_upcoming=upcoming_payments(payments, now, window_days),
        deliverables_issues=[d for d in deliverables if d.has_issue],
        milestones_risk=[m for m in milestones if m.at_risk],
    )


def total_budget(milestones: Sequence[Milestone], budget_lines: Sequence[BudgetLine] | None = None) -> float:
    """Budget line subtotals when a budget source returned rows, else milestone allocations."""
    if budget_lines:
        return sum(b.subtotal for b in budget_lines)
    return sum(m.budget_allocated for m in milestones)


def compute_kpis(
    milestones: Sequence[Milestone],
    deliverables: Sequence[Deliverable],
    payments: Sequence[Payment],
    config: Mapping[str, str],
    now: datetime,
    *,
    budget_lines: Sequence[BudgetLine] | None = None,
    window_days: int = 30,
    forecast_months: int = 4,
) -> Kpis:
    """Compute the headline KPI block."""
    budget = total_budget(milestones, budget_lines)
    paid = sum(p.amount for p in payments if p.is_paid)
    approved = sum(1 for d in deliverables if d.is_approved)

    return Kpis(
        budget_myr=_as_int(budget),
        paid_myr=_as_int(paid),
        remaining_myr=_as_int(budget - paid),
        paid_vs_budget=safe_ratio(paid, budget),
        deliverables_progress=safe_ratio(approved, len(deliverables)),
        deliverables_approved=approved,
        deliverables_total=len(deliverables),
        milestones_at_risk=sum(1 for m in milestones if m.at_risk),
        over_budget_count=sum(1 for m in milestones if m.over_budget),
        days_to_launch=days_to_launch(config, now),
        next30=next_30_days(payments, now, window_days),
        forecast=payment_forecast(payments, now, forecast_months),
    )
