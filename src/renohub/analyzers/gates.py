"""
Gate Engine — phase checkpoints and payment unlock rules.

A gate is a named project-phase checkpoint with a configured list of
deliverable titles that must all be approved before it counts as complete.
The engine answers two questions:

1. Is a gate complete? Only when its requirement list is non-empty and every
   listed title (case-insensitive) belongs to an approved deliverable.
2. Is a payment payable? A payment is blocked while the site-wide
   pre-construction set is not fully approved, or while the gate inferred
   from its title is configured and not complete.

Requirements come from the ``REQUIRED_BY_GATE`` config entry, a JSON object
of ``gate -> [title, ...]``. Its reserved ``PRE_CONSTRUCTION`` entry holds the
pre-construction set and is not reported as a gate. A missing or malformed
entry means no requirements, never an error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from renohub.models.entities import UNCATEGORIZED, Deliverable, Gate, Milestone, Payment

logger = logging.getLogger("renohub.analyzers.gates")

REQUIREMENTS_KEY = "REQUIRED_BY_GATE"
KEYWORDS_KEY = "PAYMENT_GATE_KEYWORDS"
PRE_CONSTRUCTION_KEY = "PRE_CONSTRUCTION"

# Checked in order; the first keyword found in a payment title picks its gate.
DEFAULT_PAYMENT_GATE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("permit", "G3"),
    ("authority", "G3"),
    ("submission", "G3"),
    ("tranche", "G4"),
    ("construction", "G4"),
    ("design", "G2"),
    ("layout", "G2"),
    ("deposit", "G1"),
    ("retainer", "G1"),
    ("handover", "G5"),
    ("retention", "G5"),
)


def _fold(title: str) -> str:
    return title.strip().casefold()


def _load_json_object(raw: str | None, key: str) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Ignoring malformed %s config: %s", key, e)
        return {}
    if not isinstance(decoded, dict):
        logger.warning("Ignoring %s config: expected a JSON object, got %s", key, type(decoded).__name__)
        return {}
    return decoded


def parse_requirement_map(raw: str | None) -> dict[str, list[str]]:
    """Decode ``gate -> [required title]``; bad entries are dropped."""
    requirements: dict[str, list[str]] = {}
    for gate, titles in _load_json_object(raw, REQUIREMENTS_KEY).items():
        if not isinstance(titles, list):
            logger.warning("Ignoring requirements for gate %r: not a list", gate)
            continue
        requirements[str(gate)] = [t.strip() for t in titles if isinstance(t, str) and t.strip()]
    return requirements


def parse_payment_keywords(raw: str | None) -> tuple[tuple[str, str], ...] | None:
    """Decode ``keyword -> gate`` overrides, or None when not configured."""
    decoded = _load_json_object(raw, KEYWORDS_KEY)
    pairs = tuple(
        (k.strip().lower(), v.strip())
        for k, v in decoded.items()
        if isinstance(v, str) and k.strip() and v.strip()
    )
    return pairs or None


class GateEngine:
    """Evaluate gate completion and payment payability.

    Usage::

        engine = GateEngine.from_config(config)
        gates = engine.evaluate_gates(deliverables, milestones)
        payments = engine.annotate_payments(payments, deliverables)
    """

    def __init__(
        self,
        requirements: Mapping[str, Sequence[str]] | None = None,
        payment_keywords: Iterable[tuple[str, str]] | None = None,
    ) -> None:
        reqs = {gate: list(titles) for gate, titles in (requirements or {}).items()}
        self.pre_construction: list[str] = reqs.pop(PRE_CONSTRUCTION_KEY, [])
        self.requirements: dict[str, list[str]] = reqs
        pairs = DEFAULT_PAYMENT_GATE_KEYWORDS if payment_keywords is None else payment_keywords
        self.payment_keywords: tuple[tuple[str, str], ...] = tuple((k.lower(), g) for k, g in pairs)

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> GateEngine:
        return cls(
            requirements=parse_requirement_map(config.get(REQUIREMENTS_KEY)),
            payment_keywords=parse_payment_keywords(config.get(KEYWORDS_KEY)),
        )

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    @staticmethod
    def approved_titles(deliverables: Iterable[Deliverable]) -> set[str]:
        return {_fold(d.title) for d in deliverables if d.is_approved}

    @staticmethod
    def missing_titles(required: Sequence[str], approved: set[str]) -> list[str]:
        return [t for t in required if _fold(t) not in approved]

    def is_complete(self, gate: str, approved: set[str]) -> bool:
        """True only for a configured, non-empty, fully approved gate."""
        required = self.requirements.get(gate, [])
        return bool(required) and not self.missing_titles(required, approved)

    def pre_construction_missing(self, approved: set[str]) -> list[str]:
        return self.missing_titles(self.pre_construction, approved)

    def evaluate_gates(self, deliverables: Sequence[Deliverable], milestones: Sequence[Milestone]) -> list[Gate]:
        """Per-gate raw tallies alongside the strict completion flag.

        ``required``/``approved``/``blocked`` count deliverables tagged with
        the gate; ``completeStrict`` reflects the configured requirement list.
        """
        tallies: dict[str, dict[str, int]] = {}

        def tally(gate: str) -> dict[str, int]:
            return tallies.setdefault(gate, {"required": 0, "approved": 0, "blocked": 0, "milestones_complete": 0})

        for d in deliverables:
            t = tally(d.gate or UNCATEGORIZED)
            t["required"] += 1
            if d.is_approved:
                t["approved"] += 1
            if d.has_issue:
                t["blocked"] += 1

        for m in milestones:
            if not m.phase:
                continue
            t = tally(m.phase)
            if m.is_complete:
                t["milestones_complete"] += 1

        for gate in self.requirements:
            tally(gate)

        approved = self.approved_titles(deliverables)
        gates: list[Gate] = []
        for gate, t in tallies.items():
            required = self.requirements.get(gate, [])
            gates.append(
                Gate(
                    id=gate,
                    required=t["required"],
                    approved=t["approved"],
                    blocked=t["blocked"],
                    milestones_complete=t["milestones_complete"],
                    gate_approval_rate=t["approved"] / t["required"] if t["required"] > 0 else 0.0,
                    complete_strict=self.is_complete(gate, approved),
                    requirements_total=len(required),
                    requirements_approved=len(required) - len(self.missing_titles(required, approved)),
                )
            )
        return gates

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def infer_payment_gate(self, title: str) -> str:
        lowered = title.lower()
        for keyword, gate in self.payment_keywords:
            if keyword in lowered:
                return gate
        return UNCATEGORIZED

    def blocked_reasons(self, gate: str, approved: set[str]) -> list[str]:
        reasons: list[str] = []
        pre_missing = self.pre_construction_missing(approved)
        if pre_missing:
            reasons.append(f"Pre-construction deliverables not approved: {', '.join(pre_missing)}")

        if gate != UNCATEGORIZED and gate in self.requirements and not self.is_complete(gate, approved):
            missing = self.missing_titles(self.requirements[gate], approved)
            if missing:
                reasons.append(f"Gate {gate} not complete: awaiting approval of {', '.join(missing)}")
            else:
                reasons.append(f"Gate {gate} not complete: no required deliverables configured")
        return reasons

    def annotate_payments(self, payments: Sequence[Payment], deliverables: Sequence[Deliverable]) -> list[Payment]:
        """Copies of ``payments`` carrying ``gate``, ``payable`` and ``blockedReasons``."""
        approved = self.approved_titles(deliverables)
        annotated: list[Payment] = []
        for p in payments:
            gate = self.infer_payment_gate(p.title)
            reasons = self.blocked_reasons(gate, approved)
            annotated.append(p.model_copy(update={"gate": gate, "payable": not reasons, "blocked_reasons": reasons}))

        blocked = sum(1 for p in annotated if not p.payable)
        if blocked:
            logger.info("%d of %d payments blocked by gate rules", blocked, len(annotated))
        return annotated
