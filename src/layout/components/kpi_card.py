"""
src/layout/components/kpi_card.py
──────────────────────────────────
Reusable KPI indicator card component.
"""
from dash import html

from src.data.models import FleetKpis

CARD_BG = "#161b22"
MUTED = "#8b949e"


def kpi_card(
    label: str,
    value: str,
    color: str = "#c9d1d9",
    icon: str = "",
    sub_label: str = "",
    border_color: str = "#30363d",
) -> html.Div:
    """
    Compact KPI metric card.

    Args:
        label: Metric name (shown above value)
        value: Formatted value string
        color: Value text color (reflects status)
        icon: Optional single-char/emoji icon
        sub_label: Small secondary label below value
        border_color: Card border color (can reflect severity)
    """
    children = []
    if icon:
        children.append(html.Div(icon, style={"fontSize": "1.4rem", "marginBottom": "4px"}))
    children.append(
        html.Div(label, style={"fontSize": ".68rem", "color": MUTED, "textTransform": "uppercase", "letterSpacing": ".06em"})
    )
    children.append(
        html.Div(value, style={"fontSize": "1.4rem", "fontWeight": "700", "color": color, "lineHeight": "1.2", "marginTop": "2px"})
    )
    if sub_label:
        children.append(
            html.Div(sub_label, style={"fontSize": ".68rem", "color": MUTED, "marginTop": "2px"})
        )

    return html.Div(
        children,
        style={
            "backgroundColor": CARD_BG,
            "border": f"1px solid {border_color}",
            "borderRadius": "8px",
            "padding": "14px 16px",
            "minWidth": "120px",
        },
    )


def fleet_kpi_cards(kpis: FleetKpis, tickets_available: bool = True) -> list[html.Div]:
    """The four dashboard KPI cards, in display order."""
    pending = str(kpis.pending_tickets) if tickets_available else "n/a"
    return [
        kpi_card(
            "Pending Merchant Tickets",
            pending,
            "#f0883e" if kpis.pending_tickets else "#2ea44f",
            icon="💬",
            sub_label="" if tickets_available else "ticket store unavailable",
        ),
        kpi_card("Total Errors Detected", f"{kpis.total_errors:,}", "#da3633" if kpis.total_errors else "#2ea44f", icon="📉"),
        kpi_card("Active Proactive Alerts", str(kpis.active_alerts), "#e8a020" if kpis.active_alerts else "#2ea44f", icon="⚡"),
        kpi_card(
            "Online Terminals",
            f"{kpis.online_terminals}/{kpis.terminal_count}",
            "#2ea44f" if kpis.online_terminals == kpis.terminal_count else "#e8a020",
            icon="✅",
            sub_label=f"{kpis.total_transactions:,} transactions",
        ),
    ]
