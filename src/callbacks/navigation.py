"""
src/callbacks/navigation.py — Page routing, navbar, and manual refresh callbacks.
"""
from __future__ import annotations

from dash import Input, Output, State, ctx

from src.engine.reconciliation import ReconciliationEngine


def register(app, engine: ReconciliationEngine) -> None:
    """Register routing + refresh callbacks."""

    # ── Page routing ──────────────────────────────────────────────────────────
    from src.pages import overview, settings, tickets

    @app.callback(
        Output("page-content", "children"),
        Input("url", "pathname"),
    )
    def display_page(pathname: str):
        view = engine.view
        routes = {
            "/": overview.layout,
            "/tickets": tickets.layout,
            "/settings": lambda: settings.layout(view.thresholds, view.config_state),
        }
        return routes.get(pathname, overview.layout)()

    # ── Navbar collapse ───────────────────────────────────────────────────────
    @app.callback(
        Output("navbar-collapse", "is_open"),
        Input("navbar-toggler", "n_clicks"),
        State("navbar-collapse", "is_open"),
        prevent_initial_call=True,
    )
    def toggle_navbar(n_clicks: int, is_open: bool) -> bool:
        return not is_open

    # ── Manual refresh + status ───────────────────────────────────────────────
    @app.callback(
        [
            Output("last-updated", "children"),
            Output("refresh-btn", "children"),
            Output("refresh-btn", "disabled"),
        ],
        [
            Input("interval-live", "n_intervals"),
            Input("refresh-btn", "n_clicks"),
        ],
    )
    def update_refresh_status(n_intervals: int, n_clicks: int):
        if ctx.triggered_id == "refresh-btn":
            engine.refresh()

        view = engine.view
        updated = (
            f"Updated {view.last_updated.astimezone().strftime('%H:%M:%S')}"
            if view.last_updated
            else "Waiting for data"
        )
        label = "Refreshing..." if view.is_refreshing else "Refresh"
        return updated, label, view.is_refreshing
