"""
tests/conftest.py
─────────────────
Shared pytest fixtures for the Terminal Monitor test suite.
"""
import os
import threading
import time
from datetime import datetime, timezone

import numpy as np
import pytest

# Use in-memory SQLite and no artificial latency for tests
os.environ.setdefault("DATABASE_URL", ":memory:")
os.environ.setdefault("FETCH_LATENCY_S", "0")
os.environ.setdefault("SIMULATION_SEED", "42")


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(42)


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    from config.settings import Settings
    return Settings(
        DATABASE_URL=":memory:",
        STORE_POLL_INTERVAL_S=0,
        APP_ID="test-app",
        USER_ID="test-user",
        REFRESH_INTERVAL_S=3600,
        FETCH_LATENCY_S=0,
        TERMINAL_COUNT=10,
        SIMULATION_SEED=42,
        SEED_GRACE_S=3600,
        GEMINI_API_KEY="test-key",
        GEMINI_MODEL="test-model",
        GEMINI_API_URL="https://gemini.test/v1beta",
        DRAFT_MAX_ATTEMPTS=3,
        DRAFT_BACKOFF_S=1.0,
    )


@pytest.fixture
def documents():
    from src.data.documents import DocumentStore
    store = DocumentStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def threshold_store(documents, settings):
    from src.data.store import ThresholdStore
    return ThresholdStore.from_settings(documents, settings)


@pytest.fixture
def ticket_store(documents, settings):
    from src.data.store import TicketStore
    return TicketStore.from_settings(documents, settings)


@pytest.fixture
def make_snapshot(now):
    """Factory for TerminalSnapshot with sensible healthy defaults."""
    from src.data.models import Connectivity, TerminalSnapshot

    def _make(
        id: str = "T1000",
        transactions: int = 200,
        errors: int = 2,
        connectivity: Connectivity = Connectivity.ONLINE,
        status: str = "",
        merchant_name: str | None = None,
    ) -> TerminalSnapshot:
        return TerminalSnapshot(
            id=id,
            merchant_name=merchant_name or f"Merchant {id}",
            transactions=transactions,
            errors=errors,
            connectivity=connectivity,
            status=status,
            last_update=now,
        )

    return _make


@pytest.fixture
def fleet(make_snapshot):
    """Four terminals: healthy, outage, high error rate, low volume."""
    from src.data.models import Connectivity
    return [
        make_snapshot("T1000", transactions=200, errors=2),
        make_snapshot("T1001", transactions=0, errors=0, connectivity=Connectivity.OFFLINE),
        make_snapshot("T1004", transactions=350, errors=100, status="Warning: High Errors"),
        make_snapshot("T1007", transactions=15, errors=0, status="Warning: Low Volume"),
    ]


class FakeSource:
    """MetricSource returning a fixed payload, optionally blocking until released."""

    def __init__(self, payload=None, gate: threading.Event | None = None) -> None:
        self.payload = payload
        self.gate = gate
        self.calls = 0
        self.error: Exception | None = None

    def fetch(self, count: int):
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def fake_source(fleet) -> FakeSource:
    return FakeSource(payload=list(fleet))


def wait_for(predicate, timeout: float = 3.0, interval: float = 0.01) -> bool:
    """Poll `predicate` until it returns truthy or `timeout` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())
