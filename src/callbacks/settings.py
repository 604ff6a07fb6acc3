"""
src/callbacks/settings.py
──────────────────────────
Threshold configuration save callback.
"""
from __future__ import annotations

from dash import Input, Output, State, html

from src.analytics.anomaly import format_number
from src.engine.reconciliation import ReconciliationEngine
from src.errors import StoreUnavailableError, ValidationError


def register(app, engine: ReconciliationEngine) -> None:

    @app.callback(
        Output("threshold-save-message", "children"),
        Input("threshold-save-btn", "n_clicks"),
        [
            State("threshold-error-rate", "value"),
            State("threshold-low-volume", "value"),
        ],
        prevent_initial_call=True,
    )
    def save_thresholds(n_clicks: int, error_rate, low_volume):
        try:
            saved = engine.save_thresholds(
                {"error_rate_limit": error_rate, "low_volume_limit": low_volume}
            )
        except ValidationError as exc:
            return html.Span(f"Error: Failed to save. {exc}", style={"color": "#da3633"})
        except StoreUnavailableError:
            return html.Span(
                "Error: Database connection failed. Cannot save configuration.",
                style={"color": "#da3633"},
            )
        return html.Span(
            f"Configuration saved successfully! Dashboard alerts will update "
            f"(error rate > {format_number(saved.error_rate_limit)}%, volume < {saved.low_volume_limit}).",
            style={"color": "#2ea44f"},
        )
