"""
src/layout/main.py
───────────────────
Main application layout composition.

Contains:
  - dcc.Location for routing
  - dcc.Interval polling the engine view
  - Navbar + page content container
  - Shared modal for drafted RCA / email text
"""
import dash_bootstrap_components as dbc
from dash import dcc, html

from src.layout.navbar import create_navbar


def create_layout(update_interval_ms: int = 2_000) -> html.Div:
    """Assemble the root application layout."""
    return html.Div(
        [
            # ── Routing ───────────────────────────────────────────────────────
            dcc.Location(id="url", refresh=False),

            # ── Live update interval ──────────────────────────────────────────
            dcc.Interval(
                id="interval-live",
                interval=update_interval_ms,
                n_intervals=0,
            ),

            # ── Navigation bar ────────────────────────────────────────────────
            create_navbar(),

            # ── Page content ──────────────────────────────────────────────────
            html.Div(
                id="page-content",
                style={"minHeight": "calc(100vh - 60px)"},
            ),

            # ── Drafted text modal ────────────────────────────────────────────
            dbc.Modal(
                [
                    dbc.ModalHeader(dbc.ModalTitle(id="draft-modal-title")),
                    dbc.ModalBody(
                        dcc.Loading(html.Div(id="draft-modal-body", style={"whiteSpace": "pre-wrap"})),
                    ),
                ],
                id="draft-modal",
                is_open=False,
                size="lg",
                scrollable=True,
            ),

            # ── Footer ────────────────────────────────────────────────────────
            html.Footer(
                [
                    html.Span("Terminal Fleet Monitor"),
                    html.Span(" · "),
                    html.Span("Simulated telemetry"),
                ],
                style={
                    "textAlign": "center",
                    "padding": ".7rem",
                    "fontSize": ".72rem",
                    "color": "#8b949e",
                    "borderTop": "1px solid #30363d",
                    "marginTop": "2rem",
                },
            ),
        ],
        style={"backgroundColor": "#0d1117", "minHeight": "100vh", "color": "#c9d1d9"},
    )
