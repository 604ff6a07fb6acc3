"""
src/callbacks/overview.py
──────────────────────────
Overview page callbacks: KPI banner, alert panel, error-rate chart and
terminal status table.
"""
from __future__ import annotations

import dash_bootstrap_components as dbc
import pandas as pd
from dash import Input, Output, html

from config.alerts import ACTIVE_SEVERITIES, SEVERITY_BG, SEVERITY_COLORS
from src.data.models import Alert, EngineView, InputState
from src.data.simulator import to_dataframe
from src.engine.reconciliation import ReconciliationEngine
from src.layout.components.alert_badge import alert_badge
from src.layout.components.error_rate_chart import error_rate_chart
from src.layout.components.kpi_card import fleet_kpi_cards

BORDER = "#30363d"
MUTED = "#8b949e"

_CONNECTIVITY_COLORS = {"Online": "#2ea44f", "Offline": "#da3633", "Lagging": "#e8a020"}

_ACTION_BTN = {
    "fontSize": ".68rem",
    "fontWeight": "600",
    "background": "transparent",
    "borderRadius": "4px",
    "padding": "2px 8px",
    "cursor": "pointer",
}


def _alert_card(alert: Alert) -> html.Div:
    color = SEVERITY_COLORS[alert.severity]
    return html.Div(
        [
            html.Div(
                [
                    alert_badge(alert.severity),
                    html.Span(alert.terminal_id, style={"color": "#58a6ff", "fontWeight": "600", "marginLeft": "8px"}),
                    html.Span(f" · {alert.merchant_name}", style={"color": MUTED, "fontSize": ".78rem"}),
                ],
            ),
            html.Div(alert.message, style={"fontSize": ".78rem", "margin": "6px 0"}),
            html.Div(
                [
                    html.Button(
                        "Root Cause Analysis Suggestion",
                        id={"type": "rca-btn", "index": alert.terminal_id},
                        n_clicks=0,
                        style={**_ACTION_BTN, "color": "#58a6ff", "border": "1px solid #58a6ff"},
                    ),
                    html.Button(
                        "Draft Proactive Email",
                        id={"type": "email-btn", "index": alert.terminal_id},
                        n_clicks=0,
                        style={**_ACTION_BTN, "color": "#2ea44f", "border": "1px solid #2ea44f"},
                    ),
                ],
                style={"display": "flex", "gap": "6px"},
            ),
        ],
        style={
            "backgroundColor": SEVERITY_BG[alert.severity],
            "borderLeft": f"4px solid {color}",
            "borderRadius": "6px",
            "padding": "10px 12px",
            "marginBottom": "8px",
        },
    )


def _alerts_panel(view: EngineView) -> html.Div:
    if view.config_state == InputState.LOADING:
        return html.Div("Loading thresholds...", style={"color": MUTED, "padding": "12px"})
    active = [a for a in view.alerts if a.severity in ACTIVE_SEVERITIES]
    if not active:
        return html.Div(
            "All systems operational. No critical anomalies detected.",
            style={"color": "#2ea44f", "padding": "12px"},
        )
    return html.Div([_alert_card(a) for a in active])


def _terminal_table(df: pd.DataFrame) -> html.Div:
    if df.empty:
        return html.Div("Waiting for terminal data...", style={"color": MUTED, "padding": "20px", "textAlign": "center"})

    rows = []
    for _, row in df.iterrows():
        status_color = "#da3633" if row["status"].startswith("Critical") else "#e8a020" if row["status"].startswith("Warning") else "#2ea44f"
        rows.append(
            html.Tr(
                [
                    html.Td(html.Span(row["id"], style={"color": "#58a6ff", "fontWeight": "600"})),
                    html.Td(row["merchant_name"]),
                    html.Td(f"{row['transactions']:,}"),
                    html.Td(str(row["errors"])),
                    html.Td(f"{row['error_rate']:.2f}%"),
                    html.Td(row["connectivity"], style={"color": _CONNECTIVITY_COLORS.get(row["connectivity"], MUTED)}),
                    html.Td(row["status"], style={"color": status_color}),
                    html.Td(pd.to_datetime(row["last_update"]).strftime("%H:%M:%S"), style={"color": MUTED}),
                ],
                style={"borderBottom": f"1px solid {BORDER}", "fontSize": ".8rem"},
            )
        )

    headers = ["Terminal", "Merchant", "Transactions", "Errors", "Error Rate", "Connectivity", "Status", "Last Update"]
    return html.Div(
        html.Table(
            [
                html.Thead(
                    html.Tr(
                        [html.Th(h) for h in headers],
                        style={"color": MUTED, "fontSize": ".68rem", "textTransform": "uppercase"},
                    )
                ),
                html.Tbody(rows),
            ],
            style={"width": "100%", "borderCollapse": "collapse"},
        ),
        style={"overflowX": "auto"},
    )


def register(app, engine: ReconciliationEngine) -> None:

    @app.callback(
        [
            Output("overview-kpi-banner", "children"),
            Output("overview-alerts", "children"),
            Output("overview-error-chart", "children"),
            Output("overview-terminal-table", "children"),
        ],
        [
            Input("interval-live", "n_intervals"),
            Input("url", "pathname"),
        ],
    )
    def update_overview(n_intervals: int, pathname: str):
        view = engine.view
        df = to_dataframe(view.snapshots)
        limit = view.thresholds.error_rate_limit if view.thresholds else None

        kpi_banner = dbc.Row(
            [
                dbc.Col(card, xs=6, md=3)
                for card in fleet_kpi_cards(view.kpis, view.tickets_state != InputState.UNAVAILABLE)
            ],
            className="g-3",
        )
        return kpi_banner, _alerts_panel(view), error_rate_chart(df, limit), _terminal_table(df)
