"""
Entity normalizer — raw records to fixed-shape domain entities.

One entity per raw record, always. A record that cannot be read degrades to
an all-default entity instead of being dropped, so counts taken downstream
(``deliverablesTotal`` and friends) match the source collections.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import Any

from pydantic import BaseModel, ValidationError

from renohub.models.entities import (
    BudgetLine,
    ConfigEntry,
    Deliverable,
    DeliverableStatus,
    Milestone,
    Payment,
    PaymentStatus,
)
from renohub.models.records import RawRecord
from renohub.normalize.aliases import (
    BUDGET_FIELDS,
    CONFIG_FIELDS,
    DELIVERABLE_FIELDS,
    MILESTONE_FIELDS,
    PAYMENT_FIELDS,
)
from renohub.normalize.extractor import first_value

logger = logging.getLogger("renohub.normalize")

DEFAULT_OWNER_ALIASES: dict[str, str] = {
    "solomon": "Solomon",
    "harminder": "Harminder",
}

_FALSE_STRINGS = {"", "false", "no", "0", "n"}

_DELIVERABLE_STATUSES = {s.value.lower(): s.value for s in DeliverableStatus}
_PAYMENT_STATUSES = {s.value.lower(): s.value for s in PaymentStatus}


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def as_text(value: Any, default: str = "") -> str:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if value == value and abs(value) != float("inf") else None
    if isinstance(value, str):
        try:
            number = float(value.replace(",", "").strip())
        except ValueError:
            return None
        return number if number == number and abs(number) != float("inf") else None
    return None


def as_amount(value: Any) -> float:
    """Non-negative, finite amount; anything else is 0."""
    number = as_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def as_date(value: Any) -> date | None:
    """Calendar date of an ISO date/datetime string, or None."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return False


def as_progress(value: Any) -> float:
    """Fraction complete in [0, 1].

    A raw value above 1 is a percentage and is divided by 100; anything in
    [0, 1] is already a fraction.
    """
    number = as_number(value)
    if number is None or number <= 0:
        return 0.0
    if number > 1:
        number = number / 100
    return min(number, 1.0)


def canonical_status(value: Any, known: Mapping[str, str], default: str) -> str:
    text = as_text(value)
    if not text:
        return default
    return known.get(text.lower(), text)


def resolve_owner(raw_owner: Any, aliases: Mapping[str, str] | None = None) -> str:
    table = DEFAULT_OWNER_ALIASES if aliases is None else aliases
    token = as_text(raw_owner)
    if not token:
        return ""
    return table.get(token.lower(), token)


# ---------------------------------------------------------------------------
# Entity builders
# ---------------------------------------------------------------------------


def _fields(record: RawRecord, table: Mapping[str, tuple[str, ...]]) -> dict[str, Any]:
    return {attr: first_value(record, names) for attr, names in table.items()}


def build_milestone(record: RawRecord) -> Milestone:
    f = _fields(record, MILESTONE_FIELDS)
    return Milestone(
        id=record.id,
        url=record.url,
        title=as_text(f["title"], "Untitled"),
        phase=as_text(f["phase"], "Uncategorized"),
        status=as_text(f["status"]),
        risk_status=as_text(f["risk_status"], "OK"),
        progress=as_progress(f["progress"]),
        budget_allocated=as_amount(f["budget_allocated"]),
        actual_spend=as_amount(f["actual_spend"]),
        indicator=as_text(f["indicator"]),
        over_budget=as_flag(f["over_budget"]),
        start_date=as_date(f["start_date"]),
        end_date=as_date(f["end_date"]),
    )


def build_deliverable(record: RawRecord, owner_aliases: Mapping[str, str] | None = None) -> Deliverable:
    f = _fields(record, DELIVERABLE_FIELDS)
    assignees = f["assignees"]
    if isinstance(assignees, str):
        assignees = [assignees]
    elif not isinstance(assignees, list):
        assignees = []
    return Deliverable(
        id=record.id,
        url=record.url,
        title=as_text(f["title"], "Untitled"),
        gate=as_text(f["gate"], "Uncategorized"),
        status=canonical_status(f["status"], _DELIVERABLE_STATUSES, DeliverableStatus.MISSING.value),
        owner=resolve_owner(f["owner"], owner_aliases),
        assignees=[resolve_owner(a, owner_aliases) for a in assignees if as_text(a)],
        submitted_date=as_date(f["submitted_date"]),
        approved_date=as_date(f["approved_date"]),
    )


def build_payment(record: RawRecord) -> Payment:
    f = _fields(record, PAYMENT_FIELDS)
    return Payment(
        id=record.id,
        url=record.url,
        title=as_text(f["title"], "Untitled"),
        vendor=as_text(f["vendor"], "Unknown"),
        amount=as_amount(f["amount"]),
        status=canonical_status(f["status"], _PAYMENT_STATUSES, PaymentStatus.OUTSTANDING.value),
        due_date=as_date(f["due_date"]),
        paid_date=as_date(f["paid_date"]),
    )


def build_config_entry(record: RawRecord) -> ConfigEntry:
    f = _fields(record, CONFIG_FIELDS)
    return ConfigEntry(key=as_text(f["key"]), value=as_text(f["value"]))


def build_budget_line(record: RawRecord) -> BudgetLine:
    f = _fields(record, BUDGET_FIELDS)
    return BudgetLine(
        id=record.id,
        title=as_text(f["title"], "Untitled"),
        subtotal=as_amount(f["subtotal"]),
    )


_BUILDERS: dict[str, tuple[Callable[..., BaseModel], type[BaseModel]]] = {
    "milestones": (build_milestone, Milestone),
    "deliverables": (build_deliverable, Deliverable),
    "payments": (build_payment, Payment),
    "config": (build_config_entry, ConfigEntry),
    "budget": (build_budget_line, BudgetLine),
}

SOURCE_KINDS = tuple(_BUILDERS)


def normalize(
    source_kind: str,
    raw_records: Iterable[Any],
    *,
    owner_aliases: Mapping[str, str] | None = None,
) -> list[Any]:
    """Map every raw record of one source to its entity type.

    Args:
        source_kind: One of ``milestones``, ``deliverables``, ``payments``,
            ``config`` or ``budget``.
        raw_records: Store JSON objects or already parsed :class:`RawRecord`.
        owner_aliases: Owner token table for deliverables.

    Returns:
        Entities in input order, one per raw record.
    """
    try:
        builder, default_model = _BUILDERS[source_kind]
    except KeyError:
        raise ValueError(f"Unknown source kind: {source_kind!r}") from None

    entities: list[Any] = []
    for raw in raw_records:
        record = raw if isinstance(raw, RawRecord) else RawRecord.from_api(raw)
        try:
            if source_kind == "deliverables":
                entity = builder(record, owner_aliases)
            else:
                entity = builder(record)
        except (ValidationError, ValueError, TypeError) as e:
            logger.debug("Degrading %s record %s to defaults: %s", source_kind, record.id or "?", e)
            entity = default_model(id=record.id) if "id" in default_model.model_fields else default_model()
        entities.append(entity)

    logger.debug("Normalized %d %s records", len(entities), source_kind)
    return entities


def config_map(entries: Iterable[ConfigEntry]) -> dict[str, str]:
    """Key/value map of config entries; blank keys are skipped, later rows win."""
    return {e.key: e.value for e in entries if e.key}
