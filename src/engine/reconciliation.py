"""
src/engine/reconciliation.py
────────────────────────────
Reconciliation engine: owns the latest snapshots, thresholds and tickets and
republishes alerts + KPIs whenever any of them changes.

Threads:
  - metric-refresh : fetches on start and every REFRESH_INTERVAL_S
  - manual-refresh : one-shot worker started by refresh()
  - store writers / poller deliver threshold and ticket changes
  - seed timer     : one-shot, SEED_GRACE_S after the ticket subscription

All state sits behind one RLock. Each recomputation reads the
(snapshots, thresholds, tickets) triple once and publishes a frozen
EngineView, so readers never see alerts computed against thresholds other
than the ones in the same view.
"""
from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

import numpy as np
import pydantic
from loguru import logger

from config.settings import Settings
from src.analytics.anomaly import label_snapshots
from src.analytics.kpis import compute_kpis
from src.data.models import (
    Alert,
    EnginePhase,
    EngineView,
    InputState,
    TerminalSnapshot,
    Thresholds,
    Ticket,
)
from src.data.store import ThresholdStore, TicketStore
from src.engine.seeding import choose_seed_terminal, mock_complaint
from src.errors import MalformedSnapshotError, NotFoundError, StoreUnavailableError


class MetricSource(Protocol):
    def fetch(self, count: int) -> Sequence[TerminalSnapshot] | None: ...


def _coerce_one(item: Any) -> TerminalSnapshot:
    if isinstance(item, TerminalSnapshot):
        return item
    try:
        return TerminalSnapshot.model_validate(item)
    except pydantic.ValidationError as exc:
        raise MalformedSnapshotError(str(exc)) from exc


def coerce_snapshots(raw: Any) -> list[TerminalSnapshot]:
    """
    Normalise whatever a metric source returned into a snapshot list.

    None or a non-sequence payload becomes an empty snapshot; individual
    malformed entries are dropped.
    """
    if raw is None:
        logger.warning("Metric source returned no data; using an empty snapshot")
        return []
    if not isinstance(raw, (list, tuple)):
        logger.warning("Metric source returned {}; using an empty snapshot", type(raw).__name__)
        return []
    snapshots: list[TerminalSnapshot] = []
    for item in raw:
        try:
            snapshots.append(_coerce_one(item))
        except MalformedSnapshotError as exc:
            logger.warning("Dropping malformed terminal snapshot: {}", exc)
    return snapshots


class ReconciliationEngine:
    """
    Orchestrates metric refresh, threshold and ticket subscriptions, and the
    derived alert/KPI view.

    Usage:
        with ReconciliationEngine(source, thresholds, tickets, settings) as engine:
            view = engine.view
    """

    def __init__(
        self,
        source: MetricSource,
        threshold_store: ThresholdStore,
        ticket_store: TicketStore,
        settings: Settings,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._source = source
        self._threshold_store = threshold_store
        self._ticket_store = ticket_store
        self._settings = settings
        self._rng = rng if rng is not None else np.random.default_rng(settings.SIMULATION_SEED)

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._ready_event = threading.Event()
        self._seed_lock = threading.Lock()

        self._snapshots: list[TerminalSnapshot] | None = None
        self._thresholds: Thresholds | None = None
        self._tickets: list[Ticket] | None = None
        self._metrics_state = InputState.LOADING
        self._config_state = InputState.LOADING
        self._tickets_state = InputState.LOADING
        self._last_updated: datetime | None = None

        self._busy = False
        self._started = False
        self._stopped = False
        self._seeded = False
        self._unsubscribers: list[Callable[[], None]] = []
        self._timer_thread: threading.Thread | None = None
        self._seed_timer: threading.Timer | None = None

        self._view = EngineView()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Subscribe to thresholds and tickets, then start the refresh timer."""
        with self._lock:
            if self._started or self._stopped:
                return
            self._started = True

        self._subscribe_thresholds()
        self._subscribe_tickets()

        self._timer_thread = threading.Thread(target=self._run_timer, name="metric-refresh", daemon=True)
        self._timer_thread.start()
        logger.info(
            "Reconciliation engine started ({} terminals, refresh every {}s)",
            self._settings.TERMINAL_COUNT,
            self._settings.REFRESH_INTERVAL_S,
        )

    def stop(self) -> None:
        """Cancel timers and drop both subscriptions. No callback runs after this returns."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            unsubscribers, self._unsubscribers = self._unsubscribers, []
            seed_timer, self._seed_timer = self._seed_timer, None

        self._stop_event.set()
        if seed_timer is not None:
            seed_timer.cancel()
        for unsubscribe in unsubscribers:
            unsubscribe()
        if self._timer_thread is not None and self._timer_thread is not threading.current_thread():
            self._timer_thread.join(timeout=5)
        logger.info("Reconciliation engine stopped")

    def __enter__(self) -> ReconciliationEngine:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        return self._ready_event.wait(timeout)

    @property
    def view(self) -> EngineView:
        return self._view

    @property
    def phase(self) -> EnginePhase:
        return self._view.phase

    # ── Subscriptions ─────────────────────────────────────────────────────────

    def _subscribe_thresholds(self) -> None:
        try:
            unsubscribe = self._threshold_store.subscribe(self._on_thresholds)
        except StoreUnavailableError:
            logger.warning("Threshold subscription failed; classifying with default thresholds")
            self._on_thresholds(Thresholds())
            return
        self._keep_subscription(unsubscribe)

    def _subscribe_tickets(self) -> None:
        try:
            unsubscribe = self._ticket_store.subscribe(self._on_tickets)
        except StoreUnavailableError:
            logger.warning("Ticket store unavailable; tickets will not be shown")
            with self._lock:
                self._tickets_state = InputState.UNAVAILABLE
                self._recompute()
            return
        if self._keep_subscription(unsubscribe):
            self._schedule_seeding()

    def _keep_subscription(self, unsubscribe: Callable[[], None]) -> bool:
        with self._lock:
            if not self._stopped:
                self._unsubscribers.append(unsubscribe)
                return True
        unsubscribe()
        return False

    def _on_thresholds(self, thresholds: Thresholds) -> None:
        with self._lock:
            if self._stopped:
                return
            self._thresholds = thresholds
            self._config_state = InputState.READY
            self._recompute()

    def _on_tickets(self, tickets: list[Ticket]) -> None:
        with self._lock:
            if self._stopped:
                return
            self._tickets = list(tickets)
            self._tickets_state = InputState.READY
            self._recompute()

    # ── Metric refresh ────────────────────────────────────────────────────────

    def _run_timer(self) -> None:
        while not self._stop_event.is_set():
            if self._begin_fetch():
                self._fetch()
            if self._stop_event.wait(self._settings.REFRESH_INTERVAL_S):
                break

    def _begin_fetch(self) -> bool:
        with self._lock:
            if self._busy or self._stopped:
                return False
            self._busy = True
            self._recompute()
            return True

    def _fetch(self) -> None:
        snapshots: list[TerminalSnapshot] | None = None
        try:
            snapshots = coerce_snapshots(self._source.fetch(self._settings.TERMINAL_COUNT))
        except Exception:
            logger.exception("Metric fetch failed; keeping the previous snapshot")
        finally:
            with self._lock:
                self._busy = False
                if not self._stopped:
                    if snapshots is not None:
                        self._snapshots = snapshots
                        self._metrics_state = InputState.READY
                        self._last_updated = datetime.now(tz=UTC)
                    self._recompute()

    def refresh(self, blocking: bool = False) -> bool:
        """
        Request an immediate metric fetch.

        Returns False (and does nothing) while another fetch is in flight.
        With blocking=True the fetch runs on the calling thread.
        """
        if not self._begin_fetch():
            logger.debug("Refresh ignored: a fetch is already in progress")
            return False
        if blocking:
            self._fetch()
        else:
            threading.Thread(target=self._fetch, name="manual-refresh", daemon=True).start()
        return True

    # ── Recomputation ─────────────────────────────────────────────────────────

    def _recompute(self) -> None:
        """Rebuild and publish the view. Caller must hold self._lock."""
        snapshots = tuple(self._snapshots or ())
        thresholds = self._thresholds
        tickets = self._tickets

        # No alerts or relabelling until real thresholds are loaded
        alerts: tuple[Alert, ...] = ()
        if thresholds is not None:
            labelled, found = label_snapshots(snapshots, thresholds)
            snapshots, alerts = tuple(labelled), tuple(found)
        kpis = compute_kpis(snapshots, alerts, tickets)

        ready = self._metrics_state == InputState.READY and self._config_state == InputState.READY
        self._view = EngineView(
            phase=EnginePhase.READY if ready else EnginePhase.INITIALIZING,
            metrics_state=self._metrics_state,
            config_state=self._config_state,
            tickets_state=self._tickets_state,
            snapshots=snapshots,
            thresholds=thresholds,
            alerts=alerts,
            kpis=kpis,
            tickets=tuple(tickets or ()),
            is_refreshing=self._busy,
            last_updated=self._last_updated,
        )
        if ready:
            self._ready_event.set()

    # ── Seeding ───────────────────────────────────────────────────────────────

    def _schedule_seeding(self) -> None:
        timer = threading.Timer(self._settings.SEED_GRACE_S, self.seed_if_empty)
        timer.daemon = True
        with self._lock:
            if self._stopped:
                return
            self._seed_timer = timer
        timer.start()

    def seed_if_empty(self) -> Ticket | None:
        """
        Open one placeholder ticket if the store holds none.

        Runs at most once per engine. Emptiness is checked against the store
        itself at fire time, not against the cached ticket list.
        """
        with self._seed_lock:
            if self._seeded or self._stop_event.is_set():
                return None
            self._seeded = True
            try:
                if self._ticket_store.list():
                    return None
                return self.generate_mock_ticket()
            except StoreUnavailableError:
                logger.warning("Skipping ticket seeding: ticket store unavailable")
                return None

    # ── Commands ──────────────────────────────────────────────────────────────

    def generate_mock_ticket(self) -> Ticket | None:
        """Open a templated complaint ticket for a random non-critical terminal."""
        with self._lock:
            snapshots = list(self._snapshots or ())
            terminal = choose_seed_terminal(snapshots, self._rng)
            message = mock_complaint(terminal, self._rng) if terminal is not None else None
        if terminal is None or message is None:
            logger.info("No eligible terminal for a mock ticket")
            return None
        return self.create_ticket(terminal.id, terminal.merchant_name, message)

    def create_ticket(self, terminal_id: str, merchant_name: str, message: str) -> Ticket:
        try:
            return self._ticket_store.create(terminal_id, merchant_name, message)
        except StoreUnavailableError:
            logger.exception("Creating ticket for {} failed", terminal_id)
            raise

    def resolve_ticket(self, ticket_id: str) -> None:
        try:
            self._ticket_store.resolve(ticket_id)
        except (StoreUnavailableError, NotFoundError):
            logger.exception("Resolving ticket {} failed", ticket_id)
            raise

    def save_thresholds(self, thresholds: Thresholds | dict[str, Any]) -> Thresholds:
        return self._threshold_store.set(thresholds)
