"""
Field-name aliases per logical attribute.

Upstream databases have been renamed over time; old and new column names both
show up in the wild. Each tuple is tried in order and the first column with a
non-empty value wins. Add new names here, not at the call sites.
"""

from __future__ import annotations

MILESTONE_FIELDS: dict[str, tuple[str, ...]] = {
    "title": ("MilestoneTitle", "Title", "Name"),
    "phase": ("Phase", "Gate"),
    "status": ("Status",),
    "risk_status": ("Risk", "Risk_Status", "Risk Status"),
    "progress": ("Progress", "Progress (%)"),
    "budget_allocated": ("Budget (RM)", "Budget_Allocated", "Budget Allocated", "Budget"),
    "actual_spend": ("Actual_Spend", "Actual Spend", "Actual Spend (RM)"),
    "indicator": ("Indicator", "Indicator [PROD]"),
    "over_budget": ("Over Budget?", "Over Budget"),
    "start_date": ("StartDate", "Start Date"),
    "end_date": ("EndDate", "End Date"),
}

DELIVERABLE_FIELDS: dict[str, tuple[str, ...]] = {
    "title": ("Deliverable Name", "Title", "Name"),
    "gate": ("Gate",),
    "status": ("Status",),
    "owner": ("Owner", "Owner Name"),
    "assignees": ("Owner", "Assignees", "Assignee"),
    "submitted_date": ("Submitted_Date", "Submitted Date"),
    "approved_date": ("Approved_Date", "Approved Date"),
}

PAYMENT_FIELDS: dict[str, tuple[str, ...]] = {
    "title": ("Payment For", "Invoice #", "Title", "Name"),
    "vendor": ("Vendor", "Recipient", "Company_Name"),
    # Unit-specific columns from the payment schedule and the actuals ledger
    "amount": ("Amount (RM)", "Paid (MYR)", "Invoice Amount (Doc)", "Invoice Amount", "Amount"),
    "status": ("Status",),
    "due_date": ("DueDate", "Due_Date", "Due Date"),
    "paid_date": ("PaidDate", "Paid Date", "Paid_Date"),
}

CONFIG_FIELDS: dict[str, tuple[str, ...]] = {
    "key": ("Key", "Name"),
    "value": ("Value",),
}

BUDGET_FIELDS: dict[str, tuple[str, ...]] = {
    "title": ("Item", "Title", "Name"),
    "subtotal": ("Subtotal (Formula)", "Subtotal", "Subtotal (RM)"),
}

VENDOR_REGISTRY_FIELDS: dict[str, tuple[str, ...]] = {
    "name": ("Company_Name", "Company Name", "Name"),
    "trade": ("Trade Specialization", "Trade"),
}
