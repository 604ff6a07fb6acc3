"""
tests/test_simulator.py
────────────────────────
Tests for the synthetic terminal metric source.
"""
import numpy as np

from src.analytics.anomaly import classify
from src.data.models import Connectivity, Thresholds
from src.data.simulator import (
    HIGH_ERROR_INDEX,
    LOW_VOLUME_INDEX,
    OUTAGE_INDEX,
    SimulatedMetricSource,
    generate_snapshot,
    terminal_id,
    to_dataframe,
)


def _metrics(snapshots):
    return [(s.id, s.transactions, s.errors, s.connectivity) for s in snapshots]


class TestGenerateSnapshot:
    def test_count_and_ids(self, rng):
        snaps = generate_snapshot(10, rng)
        assert len(snaps) == 10
        assert [s.id for s in snaps] == [f"T{1000 + i}" for i in range(10)]
        assert snaps[0].merchant_name == "Merchant A1"

    def test_terminal_id_format(self):
        assert terminal_id(0) == "T1000"
        assert terminal_id(12) == "T1012"

    def test_single_timestamp(self, rng):
        snaps = generate_snapshot(10, rng)
        assert len({s.last_update for s in snaps}) == 1

    def test_injected_outage(self, rng):
        snap = generate_snapshot(10, rng)[OUTAGE_INDEX]
        assert snap.transactions == 0
        assert snap.connectivity == Connectivity.OFFLINE
        assert snap.is_critical

    def test_injected_high_errors(self, rng):
        snap = generate_snapshot(10, rng)[HIGH_ERROR_INDEX]
        assert (snap.transactions, snap.errors) == (350, 100)
        assert snap.error_rate == 28.57

    def test_injected_low_volume(self, rng):
        for _ in range(20):
            snap = generate_snapshot(10, rng)[LOW_VOLUME_INDEX]
            assert 1 <= snap.transactions <= 20
            assert snap.errors <= snap.transactions

    def test_values_in_range(self, rng):
        for snap in generate_snapshot(50, rng):
            assert snap.transactions >= 0
            assert snap.errors >= 0

    def test_every_rule_can_fire(self, rng):
        kinds = {a.kind.value for a in classify(generate_snapshot(10, rng), Thresholds())}
        assert {"outage", "high_error_rate"} <= kinds

    def test_small_fleet_has_no_injected_anomalies(self, rng):
        snaps = generate_snapshot(1, rng)
        assert len(snaps) == 1
        assert snaps[0].transactions >= 50

    def test_reproducibility(self):
        s1 = generate_snapshot(10, np.random.default_rng(99))
        s2 = generate_snapshot(10, np.random.default_rng(99))
        assert _metrics(s1) == _metrics(s2)


class TestSimulatedMetricSource:
    def test_fetch(self):
        source = SimulatedMetricSource(latency_s=0, seed=7)
        assert len(source.fetch(10)) == 10

    def test_from_settings(self, settings):
        source = SimulatedMetricSource.from_settings(settings)
        assert source.latency_s == 0
        other = SimulatedMetricSource.from_settings(settings)
        assert _metrics(source.fetch(10)) == _metrics(other.fetch(10))

    def test_successive_fetches_advance(self):
        source = SimulatedMetricSource(latency_s=0, seed=7)
        assert _metrics(source.fetch(10)) != _metrics(source.fetch(10))


class TestToDataFrame:
    def test_columns(self, fleet):
        df = to_dataframe(fleet)
        assert len(df) == 4
        for col in ("id", "merchant_name", "transactions", "errors", "error_rate", "connectivity"):
            assert col in df.columns
        assert df.loc[2, "error_rate"] == 28.57
        assert df.loc[1, "connectivity"] == "Offline"

    def test_empty(self):
        assert to_dataframe([]).empty
