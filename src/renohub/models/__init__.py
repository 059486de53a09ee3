"""Models package — raw record shapes and normalized domain entities."""
from renohub.models.entities import (
    Alerts,
    BudgetLine,
    CashflowBucket,
    ConfigEntry,
    Deliverable,
    DeliverableStatus,
    ForecastMonth,
    Gate,
    Kpis,
    Milestone,
    Payment,
    PaymentStatus,
    PaymentWindow,
    Snapshot,
    VendorExposure,
)
from renohub.models.records import RawRecord, parse_property

__all__ = [
    "Alerts",
    "BudgetLine",
    "CashflowBucket",
    "ConfigEntry",
    "Deliverable",
    "DeliverableStatus",
    "ForecastMonth",
    "Gate",
    "Kpis",
    "Milestone",
    "Payment",
    "PaymentStatus",
    "PaymentWindow",
    "RawRecord",
    "Snapshot",
    "VendorExposure",
    "parse_property",
]
