"""
Prompt templates for the text-generation collaborator.

Pure string filling from a snapshot fragment: the caller posts what the
dashboard already holds and gets back the prompt to send verbatim.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from renohub.errors import InvalidRequestError

PromptKind = Literal["summary", "suggestion"]

MAX_SUMMARY_MILESTONES = 10

SUMMARY_TEMPLATE = (
    "Act as a renovation PM. Based on the live data, write a concise weekly update "
    "with Wins, Risks, and Next Actions.\n\n"
    "Key Metrics: {kpis}\n\n"
    "Key Milestones:\n{milestones}"
)

SUGGESTION_TEMPLATE = (
    'Act as a senior construction PM. A milestone is "At Risk". Provide 3 concise actions.\n\n'
    'Milestone: "{title}"\n'
    "Financial: {indicator}\n"
    'Issue: "{issue}"'
)


def _num(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: Any, default: str = "") -> str:
    return value.strip() if isinstance(value, str) and value.strip() else default


def kpi_line(kpis: Mapping[str, Any], currency: str = "RM") -> str:
    next30 = _mapping(kpis.get("next30"))
    return (
        f"Paid vs Budget: {_num(kpis.get('paidVsBudget')) * 100:.1f}%, "
        f"Deliverables: {_num(kpis.get('deliverablesProgress')) * 100:.0f}% approved, "
        f"Milestones At Risk: {int(_num(kpis.get('milestonesAtRisk')))}, "
        f"Next 30d Due: {currency} {_num(next30.get('amount')):,.2f} "
        f"({int(_num(next30.get('count')))} items)."
    )


def milestone_lines(milestones: Any) -> str:
    if not isinstance(milestones, list):
        return "- none"
    lines = []
    for m in milestones[:MAX_SUMMARY_MILESTONES]:
        m = _mapping(m)
        lines.append(
            f"- {_text(m.get('title'), 'Untitled')} "
            f"(Risk: {_text(m.get('riskStatus'), 'OK')}, Financials: {_text(m.get('indicator'), 'n/a')})"
        )
    return "\n".join(lines) or "- none"


def build_prompt(kind: str, data: Mapping[str, Any], *, currency: str = "RM") -> str:
    """Render the prompt for ``kind``.

    Args:
        kind: ``summary`` (KPIs plus the first ten milestones of a snapshot)
            or ``suggestion`` (a single at-risk milestone).
        data: Snapshot fragment as JSON-ready camelCase mappings.
        currency: Label printed before amounts.

    Raises:
        InvalidRequestError: For any other ``kind``.
    """
    data = _mapping(data)
    if kind == "summary":
        return SUMMARY_TEMPLATE.format(
            kpis=kpi_line(_mapping(data.get("kpis")), currency),
            milestones=milestone_lines(data.get("milestones")),
        )
    if kind == "suggestion":
        return SUGGESTION_TEMPLATE.format(
            title=_text(data.get("title"), "Untitled"),
            indicator=_text(data.get("indicator"), "n/a"),
            issue=_text(data.get("gateIssue"), "unspecified"),
        )
    raise InvalidRequestError(f"Invalid request type: {kind!r}")
