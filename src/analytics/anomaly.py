"""
src/analytics/anomaly.py
────────────────────────
Rule-based anomaly classification for terminal snapshots.

Rules are evaluated in order and the first match wins, so each terminal
contributes at most one alert:
  1. Critical  0 transactions and Offline            → outage
  2. Warning   error_rate > error_rate_limit          → high error rate
  3. Info      0 < transactions < low_volume_limit,
               and Online                             → low volume

The result preserves the input order and is always a full replacement set.

label_snapshots() classifies and also rewrites each snapshot's status label so
the label shown for a terminal never disagrees with the active thresholds.
"""
from __future__ import annotations

from collections.abc import Iterable

from config.alerts import OPERATIONAL_STATUS, STATUS_LABELS, AlertKind, AlertSeverity
from src.data.models import Alert, Connectivity, TerminalSnapshot, Thresholds


def format_number(value: float) -> str:
    """Up to two decimals, no trailing zeros and never exponent notation."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def classify_terminal(snapshot: TerminalSnapshot, thresholds: Thresholds) -> Alert | None:
    """Return the first matching alert for one terminal, or None."""
    if snapshot.is_outage:
        return Alert(
            severity=AlertSeverity.CRITICAL,
            kind=AlertKind.OUTAGE,
            terminal_id=snapshot.id,
            merchant_name=snapshot.merchant_name,
            message=(
                "Complete service outage detected (0 transactions, Offline). "
                "Immediate proactive action required."
            ),
            source=snapshot,
        )
    if snapshot.error_rate > thresholds.error_rate_limit:
        return Alert(
            severity=AlertSeverity.WARNING,
            kind=AlertKind.HIGH_ERROR_RATE,
            terminal_id=snapshot.id,
            merchant_name=snapshot.merchant_name,
            message=(
                f"Abnormally high error rate ({format_number(snapshot.error_rate)}%) detected. "
                f"Exceeds limit of {format_number(thresholds.error_rate_limit)}%."
            ),
            source=snapshot,
        )
    if (
        0 < snapshot.transactions < thresholds.low_volume_limit
        and snapshot.connectivity == Connectivity.ONLINE
    ):
        return Alert(
            severity=AlertSeverity.INFO,
            kind=AlertKind.LOW_VOLUME,
            terminal_id=snapshot.id,
            merchant_name=snapshot.merchant_name,
            message=(
                f"Unusually low transaction volume ({snapshot.transactions} sales). "
                f"Below threshold of {thresholds.low_volume_limit}."
            ),
            source=snapshot,
        )
    return None


def classify(
    snapshots: Iterable[TerminalSnapshot] | None,
    thresholds: Thresholds | None,
) -> list[Alert]:
    """
    Classify a snapshot set against thresholds.

    Pure and total: missing inputs yield an empty list.
    """
    if not snapshots or thresholds is None:
        return []
    alerts: list[Alert] = []
    for snapshot in snapshots:
        alert = classify_terminal(snapshot, thresholds)
        if alert is not None:
            alerts.append(alert)
    return alerts


def label_snapshots(
    snapshots: Iterable[TerminalSnapshot],
    thresholds: Thresholds,
) -> tuple[list[TerminalSnapshot], list[Alert]]:
    """
    Classify and set each snapshot's status from its alert.

    Terminals without an alert are labelled "Operational". Returned alerts
    point at the relabelled snapshots; both lists keep the input order.
    """
    labelled: list[TerminalSnapshot] = []
    alerts: list[Alert] = []
    for snapshot in snapshots:
        alert = classify_terminal(snapshot, thresholds)
        status = STATUS_LABELS[alert.kind] if alert is not None else OPERATIONAL_STATUS
        if snapshot.status != status:
            snapshot = snapshot.model_copy(update={"status": status})
            if alert is not None:
                alert = alert.model_copy(update={"source": snapshot})
        labelled.append(snapshot)
        if alert is not None:
            alerts.append(alert)
    return labelled, alerts
