"""
tests/test_anomaly.py
──────────────────────
Tests for rule-based anomaly classification.
"""
import pytest

from config.alerts import AlertKind, AlertSeverity
from src.analytics.anomaly import classify, classify_terminal, format_number, label_snapshots
from src.data.models import Connectivity, Thresholds


@pytest.fixture
def defaults() -> Thresholds:
    return Thresholds()


class TestOutage:
    @pytest.mark.parametrize(
        "thresholds",
        [
            Thresholds(),
            Thresholds(error_rate_limit=0, low_volume_limit=0),
            Thresholds(error_rate_limit=1000, low_volume_limit=1000),
        ],
    )
    def test_outage_always_critical(self, make_snapshot, thresholds):
        snap = make_snapshot(transactions=0, errors=0, connectivity=Connectivity.OFFLINE)
        alert = classify_terminal(snap, thresholds)
        assert alert.severity == AlertSeverity.CRITICAL
        assert alert.kind == AlertKind.OUTAGE
        assert "Complete service outage" in alert.message

    def test_outage_wins_over_error_rate(self, make_snapshot, defaults):
        # error_rate is 100 here, but only one alert per terminal
        snap = make_snapshot(transactions=0, errors=5, connectivity=Connectivity.OFFLINE)
        alerts = classify([snap], defaults)
        assert len(alerts) == 1
        assert alerts[0].severity == AlertSeverity.CRITICAL

    def test_zero_transactions_online_is_not_outage(self, make_snapshot, defaults):
        snap = make_snapshot(transactions=0, errors=0, connectivity=Connectivity.ONLINE)
        assert classify_terminal(snap, defaults) is None


class TestHighErrorRate:
    def test_warning_message_quotes_rate_and_limit(self, make_snapshot, defaults):
        snap = make_snapshot(id="T1004", transactions=350, errors=100)
        alert = classify_terminal(snap, defaults)
        assert alert.severity == AlertSeverity.WARNING
        assert alert.kind == AlertKind.HIGH_ERROR_RATE
        assert "28.57%" in alert.message
        assert "15%" in alert.message

    def test_rate_equal_to_limit_is_not_alerted(self, make_snapshot):
        snap = make_snapshot(transactions=100, errors=15)
        assert classify_terminal(snap, Thresholds(error_rate_limit=15)) is None

    def test_errors_without_transactions_online(self, make_snapshot, defaults):
        snap = make_snapshot(transactions=0, errors=3, connectivity=Connectivity.ONLINE)
        alert = classify_terminal(snap, defaults)
        assert alert.severity == AlertSeverity.WARNING
        assert "100%" in alert.message

    def test_raising_limit_clears_warning(self, make_snapshot):
        snap = make_snapshot(transactions=350, errors=100)
        assert classify_terminal(snap, Thresholds(error_rate_limit=30)) is None

    def test_large_rate_keeps_two_decimals(self, make_snapshot, defaults):
        snap = make_snapshot(transactions=3, errors=371)
        alert = classify_terminal(snap, defaults)
        assert "12366.67%" in alert.message
        assert "e+" not in alert.message

    def test_large_limit_not_in_exponent_notation(self, make_snapshot):
        snap = make_snapshot(transactions=1, errors=20000000)
        alert = classify_terminal(snap, Thresholds(error_rate_limit=1234567.5))
        assert "Exceeds limit of 1234567.5%." in alert.message
        assert "e+" not in alert.message


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [(0, "0"), (0.0, "0"), (15.0, "15"), (28.57, "28.57"), (12.5, "12.5"),
         (12366.666, "12366.67"), (1234567.5, "1234567.5"), (0.004, "0")],
    )
    def test_format(self, value, expected):
        assert format_number(value) == expected


class TestLowVolume:
    def test_info_message_quotes_volume_and_limit(self, make_snapshot, defaults):
        snap = make_snapshot(id="T1007", transactions=15, errors=0)
        alert = classify_terminal(snap, defaults)
        assert alert.severity == AlertSeverity.INFO
        assert alert.kind == AlertKind.LOW_VOLUME
        assert "(15 sales)" in alert.message
        assert "threshold of 20" in alert.message

    def test_volume_equal_to_limit_is_not_alerted(self, make_snapshot, defaults):
        assert classify_terminal(make_snapshot(transactions=20, errors=0), defaults) is None

    def test_lagging_terminal_not_low_volume(self, make_snapshot, defaults):
        snap = make_snapshot(transactions=10, errors=0, connectivity=Connectivity.LAGGING)
        assert classify_terminal(snap, defaults) is None

    def test_high_errors_take_precedence(self, make_snapshot, defaults):
        snap = make_snapshot(transactions=10, errors=5)
        assert classify_terminal(snap, defaults).severity == AlertSeverity.WARNING


class TestClassify:
    def test_fleet(self, fleet, defaults):
        alerts = classify(fleet, defaults)
        assert [(a.terminal_id, a.severity) for a in alerts] == [
            ("T1001", AlertSeverity.CRITICAL),
            ("T1004", AlertSeverity.WARNING),
            ("T1007", AlertSeverity.INFO),
        ]

    def test_alert_carries_source_snapshot(self, fleet, defaults):
        alert = classify(fleet, defaults)[1]
        assert alert.source == fleet[2]
        assert alert.merchant_name == fleet[2].merchant_name

    def test_deterministic(self, fleet, defaults):
        assert classify(fleet, defaults) == classify(fleet, defaults)

    def test_at_most_one_alert_per_terminal(self, fleet, defaults):
        ids = [a.terminal_id for a in classify(fleet, defaults)]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("snapshots", [None, []])
    def test_empty_snapshots(self, snapshots, defaults):
        assert classify(snapshots, defaults) == []

    def test_missing_thresholds(self, fleet):
        assert classify(fleet, None) == []


class TestLabelSnapshots:
    def test_labels_follow_alert_kind(self, make_snapshot, defaults):
        snapshots = [
            make_snapshot("T1", transactions=350, errors=100),
            make_snapshot("T2", transactions=15, errors=0),
            make_snapshot("T3", transactions=0, errors=0, connectivity=Connectivity.OFFLINE),
            make_snapshot("T4", transactions=200, errors=2),
        ]
        labelled, _ = label_snapshots(snapshots, defaults)
        assert [s.status for s in labelled] == [
            "Warning: High Errors", "Warning: Low Volume", "Critical: Outage", "Operational",
        ]

    def test_raising_limit_relabels_operational(self, make_snapshot):
        snap = make_snapshot(transactions=350, errors=100, status="Warning: High Errors")
        labelled, alerts = label_snapshots([snap], Thresholds(error_rate_limit=30))
        assert labelled[0].status == "Operational"
        assert alerts == []

    def test_source_label_overridden(self, make_snapshot, defaults):
        snap = make_snapshot(transactions=0, errors=0, connectivity=Connectivity.OFFLINE,
                             status="Operational")
        labelled, alerts = label_snapshots([snap], defaults)
        assert labelled[0].status == "Critical: Outage"
        assert alerts[0].severity == AlertSeverity.CRITICAL

    def test_alerts_point_at_labelled_snapshots(self, fleet, defaults):
        labelled, alerts = label_snapshots(fleet, defaults)
        by_id = {s.id: s for s in labelled}
        for alert in alerts:
            assert alert.source is by_id[alert.terminal_id]
        assert alerts == classify(labelled, defaults)

    def test_keeps_order_and_length(self, fleet, defaults):
        labelled, _ = label_snapshots(fleet, defaults)
        assert [s.id for s in labelled] == [s.id for s in fleet]
