"""
src/pages/tickets.py
─────────────────────
Merchant ticket inbox.
"""

from dash import html

MUTED = "#8b949e"


def layout() -> html.Div:
    return html.Div(
        [
            html.Div(
                [
                    html.H2("Merchant Tickets", className="page-title"),
                    html.P(
                        "Open issues first, newest on top",
                        className="page-subtitle",
                    ),
                ],
                className="page-header",
            ),
            html.Div(
                [
                    html.Button(
                        "+ Generate Mock Ticket",
                        id="mock-ticket-btn",
                        n_clicks=0,
                        style={
                            "fontSize": ".75rem",
                            "fontWeight": "600",
                            "color": "#58a6ff",
                            "background": "transparent",
                            "border": "1px solid #58a6ff",
                            "borderRadius": "4px",
                            "padding": "4px 10px",
                        },
                    ),
                    html.Span(id="ticket-action-message", style={"fontSize": ".75rem", "color": MUTED, "marginLeft": "12px"}),
                ],
                className="mb-3",
            ),
            html.Div(html.Div(id="tickets-list"), className="chart-card"),
        ],
        style={"padding": "1.5rem"},
    )
