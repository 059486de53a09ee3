"""
Domain models — normalized entities and the derived snapshot.

Every field has a default so a record missing any attribute still produces a
complete entity. Models serialize with the camelCase keys the dashboard reads.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

UNCATEGORIZED = "Uncategorized"


class DeliverableStatus(str, Enum):
    """Approval states a deliverable moves through."""

    APPROVED = "Approved"
    SUBMITTED = "Submitted"
    REJECTED = "Rejected"
    MISSING = "Missing"


class PaymentStatus(str, Enum):
    """Payment lifecycle states."""

    PAID = "Paid"
    OUTSTANDING = "Outstanding"
    OVERDUE = "Overdue"


AT_RISK = "At Risk"


class _Entity(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Milestone(_Entity):
    """A scheduled project checkpoint."""

    id: str = ""
    url: str = ""
    title: str = "Untitled"
    phase: str = UNCATEGORIZED
    status: str = ""
    risk_status: str = "OK"
    progress: float = 0.0  # always a 0..1 fraction
    budget_allocated: float = 0.0
    actual_spend: float = 0.0
    indicator: str = ""
    over_budget: bool = False
    start_date: date | None = None
    end_date: date | None = None

    @property
    def at_risk(self) -> bool:
        return self.risk_status == AT_RISK

    @computed_field  # type: ignore[prop-decorator]
    @property
    def risk(self) -> str:
        return "High" if self.at_risk else "Low"

    @property
    def is_complete(self) -> bool:
        return self.progress >= 1 or "complete" in self.indicator.lower()


class Deliverable(_Entity):
    """A work product tracked with an approval status."""

    id: str = ""
    url: str = ""
    title: str = "Untitled"
    gate: str = UNCATEGORIZED
    status: str = DeliverableStatus.MISSING.value
    owner: str = ""
    assignees: list[str] = Field(default_factory=list)
    submitted_date: date | None = None
    approved_date: date | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == DeliverableStatus.APPROVED.value

    @property
    def has_issue(self) -> bool:
        return self.status in (DeliverableStatus.MISSING.value, DeliverableStatus.REJECTED.value)


class Payment(_Entity):
    """A scheduled or completed payment to a vendor."""

    id: str = ""
    url: str = ""
    title: str = "Untitled"
    vendor: str = "Unknown"
    amount: float = Field(default=0.0, ge=0)
    status: str = PaymentStatus.OUTSTANDING.value
    due_date: date | None = None
    paid_date: date | None = None

    # Filled in by the gate engine
    gate: str = UNCATEGORIZED
    payable: bool = True
    blocked_reasons: list[str] = Field(default_factory=list)

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID.value


class ConfigEntry(_Entity):
    """One key/value row from the configuration store."""

    key: str = ""
    value: str = ""


class BudgetLine(_Entity):
    """A budget line item carrying a computed subtotal."""

    id: str = ""
    title: str = "Untitled"
    subtotal: float = Field(default=0.0, ge=0)


# ---------------------------------------------------------------------------
# Derived aggregates
# ---------------------------------------------------------------------------


class Gate(_Entity):
    """Per-gate tallies plus the strict contractual completion flag."""

    id: str
    required: int = 0
    approved: int = 0
    blocked: int = 0
    milestones_complete: int = 0
    gate_approval_rate: float = 0.0
    complete_strict: bool = False
    requirements_total: int = 0
    requirements_approved: int = 0


class PaymentWindow(_Entity):
    """Unpaid payments falling due inside a rolling window."""

    amount: float = 0.0
    count: int = 0
    items: list[Payment] = Field(default_factory=list)


class ForecastMonth(_Entity):
    month: str
    label: str
    total_amount: float = 0.0
    payment_count: int = 0


class CashflowBucket(_Entity):
    ym: str
    scheduled: float = 0.0
    paid: float = 0.0


class VendorExposure(_Entity):
    vendor: str
    amount: float = 0.0
    trade: str | None = None


class Kpis(_Entity):
    """Headline metrics for the dashboard cards."""

    budget_myr: int = Field(default=0, alias="budgetMYR")
    paid_myr: int = Field(default=0, alias="paidMYR")
    remaining_myr: int = Field(default=0, alias="remainingMYR")
    paid_vs_budget: float = 0.0
    deliverables_progress: float = 0.0
    deliverables_approved: int = 0
    deliverables_total: int = 0
    milestones_at_risk: int = 0
    over_budget_count: int = 0
    days_to_launch: int = 0
    next30: PaymentWindow = Field(default_factory=PaymentWindow, alias="next30")
    forecast: list[ForecastMonth] = Field(default_factory=list)


class Alerts(_Entity):
    payments_overdue: list[Payment] = Field(default_factory=list)
    payments_upcoming: list[Payment] = Field(default_factory=list)
    deliverables_issues: list[Deliverable] = Field(default_factory=list)
    milestones_risk: list[Milestone] = Field(default_factory=list)


class Snapshot(_Entity):
    """The full derived document returned by one aggregation run."""

    milestones: list[Milestone] = Field(default_factory=list)
    deliverables: list[Deliverable] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)
    config: dict[str, str] = Field(default_factory=dict)
    kpis: Kpis = Field(default_factory=Kpis)
    gates: list[Gate] = Field(default_factory=list)
    top_vendors: list[VendorExposure] = Field(default_factory=list)
    cashflow: list[CashflowBucket] = Field(default_factory=list)
    alerts: Alerts = Field(default_factory=Alerts)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
