"""
src/data/models.py
──────────────────
Pydantic v2 data models for terminal snapshots, thresholds, alerts, tickets,
fleet KPIs, and the engine's published view.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from config.alerts import OPERATIONAL_STATUS, OUTAGE_STATUS, AlertKind, AlertSeverity


class Connectivity(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"
    LAGGING = "Lagging"


class TicketStatus(str, Enum):
    PENDING = "Pending"
    RESOLVED = "Resolved"


class InputState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"


class EnginePhase(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"


def compute_error_rate(transactions: int, errors: int) -> float:
    """Error percentage, 100 for errors without any transactions."""
    if transactions > 0:
        return round(errors / transactions * 100, 2)
    return 100.0 if errors > 0 else 0.0


class TerminalSnapshot(BaseModel):
    """
    One terminal in one ingestion cycle.

    `status` is a display label. Without one from the source, only the
    threshold-independent outage label can be derived here; the engine
    relabels every snapshot from its alert once thresholds are loaded
    (see analytics.anomaly.label_snapshots).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    merchant_name: str
    transactions: int = Field(ge=0)
    errors: int = Field(ge=0)
    connectivity: Connectivity
    status: str = OPERATIONAL_STATUS
    last_update: datetime

    @model_validator(mode="before")
    @classmethod
    def _derive_status(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("status"):
            data = dict(data)
            offline = data.get("connectivity") in (Connectivity.OFFLINE, Connectivity.OFFLINE.value)
            data["status"] = OUTAGE_STATUS if data.get("transactions") == 0 and offline else OPERATIONAL_STATUS
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def error_rate(self) -> float:
        return compute_error_rate(self.transactions, self.errors)

    @property
    def is_outage(self) -> bool:
        return self.transactions == 0 and self.connectivity == Connectivity.OFFLINE

    @property
    def is_critical(self) -> bool:
        return self.status.startswith("Critical")


class Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    error_rate_limit: float = Field(default=15.0, ge=0.0)
    low_volume_limit: int = Field(default=20, ge=0)


DEFAULT_THRESHOLDS = Thresholds()


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: AlertSeverity
    kind: AlertKind
    terminal_id: str
    merchant_name: str
    message: str
    source: TerminalSnapshot


class Ticket(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    terminal_id: str
    merchant_name: str
    message: str
    status: TicketStatus = TicketStatus.PENDING
    created_at: datetime
    resolved_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == TicketStatus.PENDING


class FleetKpis(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_transactions: int = 0
    total_errors: int = 0
    online_terminals: int = 0
    terminal_count: int = 0
    active_alerts: int = 0
    pending_tickets: int = 0


class EngineView(BaseModel):
    """Immutable, internally consistent state handed to presentation."""

    model_config = ConfigDict(frozen=True)

    phase: EnginePhase = EnginePhase.INITIALIZING
    metrics_state: InputState = InputState.LOADING
    config_state: InputState = InputState.LOADING
    tickets_state: InputState = InputState.LOADING
    snapshots: tuple[TerminalSnapshot, ...] = ()
    thresholds: Thresholds | None = None
    alerts: tuple[Alert, ...] = ()
    kpis: FleetKpis = FleetKpis()
    tickets: tuple[Ticket, ...] = ()
    is_refreshing: bool = False
    last_updated: datetime | None = None
