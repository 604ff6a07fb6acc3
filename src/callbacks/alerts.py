"""
src/callbacks/alerts.py
────────────────────────
Per-alert drafting callbacks (RCA suggestion, proactive merchant email).
"""
from __future__ import annotations

from dash import ALL, Input, Output, ctx
from dash.exceptions import PreventUpdate

from src.drafting.client import DraftingClient
from src.drafting.prompts import draft_merchant_email, draft_rca
from src.engine.reconciliation import ReconciliationEngine


def register(app, engine: ReconciliationEngine, drafting: DraftingClient) -> None:

    @app.callback(
        [
            Output("draft-modal", "is_open"),
            Output("draft-modal-title", "children"),
            Output("draft-modal-body", "children"),
        ],
        [
            Input({"type": "rca-btn", "index": ALL}, "n_clicks"),
            Input({"type": "email-btn", "index": ALL}, "n_clicks"),
        ],
        prevent_initial_call=True,
    )
    def open_draft(rca_clicks: list, email_clicks: list):
        # Re-rendered buttons arrive with n_clicks=0; only real clicks count
        if not ctx.triggered_id or not ctx.triggered[0]["value"]:
            raise PreventUpdate

        terminal_id = ctx.triggered_id["index"]
        alert = next((a for a in engine.view.alerts if a.terminal_id == terminal_id), None)
        if alert is None:
            return True, terminal_id, f"The alert for {terminal_id} is no longer active."

        if ctx.triggered_id["type"] == "rca-btn":
            result = draft_rca(drafting, alert)
        else:
            result = draft_merchant_email(drafting, alert)
        return True, result.title, result.content
