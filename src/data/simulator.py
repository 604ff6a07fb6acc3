"""
src/data/simulator.py
─────────────────────
Synthetic metric source for a fleet of payment terminals.

Generates one snapshot per call with a few deliberate anomalies so that every
alert rule fires in a demo:
  - index 1 : complete outage (0 transactions, Offline)
  - index 4 : high error rate (350 transactions, 100 errors)
  - index 7 : low volume (1–20 transactions)
  - others  : ~5% chance of connectivity Offline, ~5% chance of Lagging

Design:
  - Reproducible with SIMULATION_SEED for consistent demos
  - fetch() sleeps FETCH_LATENCY_S to mimic a slow telemetry feed
"""
from __future__ import annotations

import threading
import time
from datetime import UTC, datetime

import numpy as np
import pandas as pd

from config.settings import Settings
from src.data.models import Connectivity, TerminalSnapshot

OUTAGE_INDEX = 1
HIGH_ERROR_INDEX = 4
LOW_VOLUME_INDEX = 7


def terminal_id(index: int) -> str:
    return f"T{1000 + index:04d}"


def _generate_terminal(index: int, ts: datetime, rng: np.random.Generator) -> TerminalSnapshot:
    transactions = int(rng.integers(50, 550))
    errors = int(rng.random() * transactions * 0.05)
    status = "Operational"
    connectivity = Connectivity.ONLINE if rng.random() < 0.95 else Connectivity.OFFLINE

    if index == OUTAGE_INDEX:
        transactions, errors = 0, 0
        status = "Critical: Outage"
        connectivity = Connectivity.OFFLINE
    elif index == HIGH_ERROR_INDEX:
        transactions, errors = 350, 100
        status = "Warning: High Errors"
    elif index == LOW_VOLUME_INDEX:
        transactions = int(rng.integers(1, 21))
        errors = min(errors, transactions)
        status = "Warning: Low Volume"
    elif rng.random() < 0.05:
        connectivity = Connectivity.LAGGING
        errors += 5

    return TerminalSnapshot(
        id=terminal_id(index),
        merchant_name=f"Merchant A{index + 1}",
        transactions=transactions,
        errors=errors,
        connectivity=connectivity,
        status=status,
        last_update=ts,
    )


# ── Public API ────────────────────────────────────────────────────────────────

def generate_snapshot(count: int, rng: np.random.Generator) -> list[TerminalSnapshot]:
    """Generate one full snapshot of `count` terminals, all stamped with the same time."""
    ts = datetime.now(tz=UTC).replace(microsecond=0)
    return [_generate_terminal(i, ts, rng) for i in range(count)]


class SimulatedMetricSource:
    """
    MetricSource backed by the generator above.

    Args:
        latency_s: Artificial delay applied to every fetch
        seed: RNG seed; None draws fresh entropy
    """

    def __init__(self, latency_s: float = 1.0, seed: int | None = None) -> None:
        self.latency_s = latency_s
        self._rng = np.random.default_rng(seed)
        self._rng_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> SimulatedMetricSource:
        return cls(latency_s=settings.FETCH_LATENCY_S, seed=settings.SIMULATION_SEED)

    def fetch(self, count: int) -> list[TerminalSnapshot]:
        if self.latency_s > 0:
            time.sleep(self.latency_s)
        with self._rng_lock:
            return generate_snapshot(count, self._rng)


def to_dataframe(snapshots: list[TerminalSnapshot] | tuple[TerminalSnapshot, ...]) -> pd.DataFrame:
    """Convert snapshots to a pandas DataFrame (error_rate included)."""
    return pd.DataFrame([s.model_dump(mode="json") for s in snapshots])
