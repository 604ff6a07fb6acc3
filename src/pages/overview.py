"""
src/pages/overview.py
──────────────────────
Fleet overview page.

Static structure; KPI, alert and terminal data injected via callbacks.
"""

import dash_bootstrap_components as dbc
from dash import html


def layout() -> html.Div:
    return html.Div(
        [
            # ── Page header ───────────────────────────────────────────────────
            html.Div(
                [
                    html.H2("Proactive Resolution Dashboard", className="page-title"),
                    html.P(
                        "Payment terminal fleet health, anomaly alerts and merchant follow-up",
                        className="page-subtitle",
                    ),
                ],
                className="page-header",
            ),
            # ── Fleet KPI banner (dynamic) ────────────────────────────────────
            html.Div(id="overview-kpi-banner", className="mb-4"),
            # ── Alerts + error-rate chart ─────────────────────────────────────
            dbc.Row(
                [
                    dbc.Col(
                        html.Div(
                            [
                                html.Div("Anomaly Alerts", className="chart-title"),
                                html.Div(id="overview-alerts"),
                            ],
                            className="chart-card",
                        ),
                        md=5,
                    ),
                    dbc.Col(
                        html.Div(
                            [
                                html.Div("Error Rate by Terminal", className="chart-title"),
                                html.Div(id="overview-error-chart"),
                            ],
                            className="chart-card",
                        ),
                        md=7,
                    ),
                ],
                className="g-3 mb-3",
            ),
            # ── Terminal status table ─────────────────────────────────────────
            html.Div(
                [
                    html.Div("Terminal Status", className="chart-title"),
                    html.Div(id="overview-terminal-table"),
                ],
                className="chart-card",
            ),
        ],
        style={"padding": "1.5rem"},
    )
