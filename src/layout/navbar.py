"""
src/layout/navbar.py
─────────────────────
Navigation bar with page links and the manual refresh control.
"""

import dash_bootstrap_components as dbc
from dash import html

NAV_BG = "#0d1117"
BORDER = "#30363d"
ACCENT = "#58a6ff"
MUTED = "#8b949e"


def create_navbar() -> dbc.Navbar:
    return dbc.Navbar(
        dbc.Container(
            [
                # Brand
                dbc.NavbarBrand(
                    [
                        html.Span("💳", style={"marginRight": "8px", "fontSize": "1.1rem"}),
                        html.Span(
                            "Terminal Monitor", style={"fontWeight": "700", "letterSpacing": ".04em"}
                        ),
                    ],
                    href="/",
                    style={"color": ACCENT, "textDecoration": "none"},
                ),
                dbc.NavbarToggler(id="navbar-toggler", n_clicks=0),
                dbc.Collapse(
                    dbc.Nav(
                        [
                            dbc.NavItem(
                                dbc.NavLink("Overview", href="/", id="nav-overview", active="exact")
                            ),
                            dbc.NavItem(
                                dbc.NavLink("Tickets", href="/tickets", id="nav-tickets", active="exact")
                            ),
                            dbc.NavItem(
                                dbc.NavLink("Settings", href="/settings", id="nav-settings", active="exact")
                            ),
                            # Refresh control
                            dbc.NavItem(
                                html.Div(
                                    [
                                        html.Span(id="last-updated", style={"fontSize": ".72rem", "color": MUTED}),
                                        html.Button(
                                            "Refresh",
                                            id="refresh-btn",
                                            n_clicks=0,
                                            style=_refresh_btn_style(),
                                        ),
                                    ],
                                    style={
                                        "display": "flex",
                                        "gap": "8px",
                                        "alignItems": "center",
                                        "marginLeft": "12px",
                                    },
                                )
                            ),
                        ],
                        className="ms-auto",
                        navbar=True,
                    ),
                    id="navbar-collapse",
                    navbar=True,
                    is_open=False,
                ),
            ],
            fluid=True,
        ),
        color=NAV_BG,
        dark=True,
        sticky="top",
        style={"borderBottom": f"1px solid {BORDER}", "padding": ".5rem 1rem"},
    )


def _refresh_btn_style() -> dict:
    return {
        "background": "rgba(88,166,255,0.15)",
        "border": f"1px solid {BORDER}",
        "color": ACCENT,
        "borderRadius": "4px",
        "fontSize": ".72rem",
        "fontWeight": "700",
        "padding": "2px 10px",
        "cursor": "pointer",
    }
