"""
config/alerts.py
────────────────
Alert severity levels, kinds, and display configuration.
"""

from enum import Enum


class AlertSeverity(str, Enum):
    CRITICAL = "Critical"
    WARNING = "Warning"
    INFO = "Info"


class AlertKind(str, Enum):
    OUTAGE = "outage"
    HIGH_ERROR_RATE = "high_error_rate"
    LOW_VOLUME = "low_volume"


SEVERITY_COLORS: dict[str, str] = {
    AlertSeverity.CRITICAL: "#da3633",
    AlertSeverity.WARNING: "#e8a020",
    AlertSeverity.INFO: "#58a6ff",
}

SEVERITY_BG: dict[str, str] = {
    AlertSeverity.CRITICAL: "rgba(218,54,51,0.12)",
    AlertSeverity.WARNING: "rgba(232,160,32,0.12)",
    AlertSeverity.INFO: "rgba(88,166,255,0.12)",
}

# Presentation-side lookup; the core never references icons
SEVERITY_ICONS: dict[str, str] = {
    AlertSeverity.CRITICAL: "⚡",
    AlertSeverity.WARNING: "📉",
    AlertSeverity.INFO: "📊",
}

# Severities counted as "active" alerts in the KPI banner
ACTIVE_SEVERITIES = frozenset({AlertSeverity.CRITICAL, AlertSeverity.WARNING})

OUTAGE_STATUS = "Critical: Outage"
OPERATIONAL_STATUS = "Operational"

# Terminal status label shown for each alert kind
STATUS_LABELS: dict[str, str] = {
    AlertKind.OUTAGE: OUTAGE_STATUS,
    AlertKind.HIGH_ERROR_RATE: "Warning: High Errors",
    AlertKind.LOW_VOLUME: "Warning: Low Volume",
}
