"""
tests/test_kpis.py
───────────────────
Tests for fleet KPI aggregation.
"""
from src.analytics.anomaly import classify
from src.analytics.kpis import compute_kpis
from src.data.models import Thresholds, Ticket, TicketStatus


def _ticket(now, id: str, status: TicketStatus) -> Ticket:
    return Ticket(
        id=id, terminal_id="T1000", merchant_name="Merchant A1",
        message="Help", status=status, created_at=now,
    )


class TestComputeKpis:
    def test_totals(self, fleet):
        kpis = compute_kpis(fleet, [], [])
        assert kpis.total_transactions == 200 + 0 + 350 + 15
        assert kpis.total_errors == 2 + 0 + 100 + 0
        assert kpis.terminal_count == 4
        assert kpis.online_terminals == 3

    def test_info_alerts_not_active(self, fleet):
        alerts = classify(fleet, Thresholds())
        kpis = compute_kpis(fleet, alerts, [])
        # Critical + Warning only
        assert kpis.active_alerts == 2

    def test_pending_tickets(self, fleet, now):
        tickets = [
            _ticket(now, "a", TicketStatus.PENDING),
            _ticket(now, "b", TicketStatus.RESOLVED),
            _ticket(now, "c", TicketStatus.PENDING),
        ]
        assert compute_kpis(fleet, [], tickets).pending_tickets == 2

    def test_tickets_unavailable(self, fleet):
        assert compute_kpis(fleet, [], None).pending_tickets == 0

    def test_empty_fleet(self):
        kpis = compute_kpis([], [], None)
        assert kpis.total_transactions == 0
        assert kpis.terminal_count == 0
