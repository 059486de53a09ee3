"""
RenoHub — reporting aggregator for a renovation project dashboard.

Pull. Normalize. Derive.
Milestones, deliverables and payments in; KPIs, gates and cashflow out.
"""

__version__ = "0.6.0"
__all__ = ["RenovationHub", "build_snapshot"]

from renohub.hub import RenovationHub  # noqa: E402
from renohub.snapshot import build_snapshot  # noqa: E402
