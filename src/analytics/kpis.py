"""
src/analytics/kpis.py
─────────────────────
Fleet KPI derivation.

Every value is recomputed from the current inputs; nothing is maintained
incrementally.
"""
from __future__ import annotations

from collections.abc import Sequence

from config.alerts import ACTIVE_SEVERITIES
from src.data.models import Alert, Connectivity, FleetKpis, TerminalSnapshot, Ticket


def compute_kpis(
    snapshots: Sequence[TerminalSnapshot],
    alerts: Sequence[Alert],
    tickets: Sequence[Ticket] | None,
) -> FleetKpis:
    """
    Aggregate fleet KPIs.

    Args:
        snapshots: Current terminal snapshot set
        alerts: Alerts classified from that snapshot set
        tickets: Current ticket list, or None when tickets are unavailable

    Returns:
        FleetKpis (pending_tickets is 0 when tickets are unavailable)
    """
    return FleetKpis(
        total_transactions=sum(s.transactions for s in snapshots),
        total_errors=sum(s.errors for s in snapshots),
        online_terminals=sum(1 for s in snapshots if s.connectivity == Connectivity.ONLINE),
        terminal_count=len(snapshots),
        active_alerts=sum(1 for a in alerts if a.severity in ACTIVE_SEVERITIES),
        pending_tickets=sum(1 for t in tickets or () if t.is_pending),
    )
