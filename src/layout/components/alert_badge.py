"""
src/layout/components/alert_badge.py
──────────────────────────────────────
Alert severity badge component.
"""

from dash import html

from config.alerts import SEVERITY_COLORS, SEVERITY_ICONS, AlertSeverity


def alert_badge(severity: AlertSeverity | str) -> html.Span:
    """Inline severity badge with icon and color-coded border."""
    severity = AlertSeverity(severity)
    color = SEVERITY_COLORS.get(severity, "#8b949e")
    icon = SEVERITY_ICONS.get(severity, "")

    return html.Span(
        f"{icon} {severity.value}".strip(),
        style={
            "fontSize": ".65rem",
            "fontWeight": "700",
            "color": color,
            "border": f"1px solid {color}",
            "borderRadius": "4px",
            "padding": "1px 7px",
            "whiteSpace": "nowrap",
        },
    )
