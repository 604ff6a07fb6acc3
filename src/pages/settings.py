"""
src/pages/settings.py
──────────────────────
Anomaly threshold configuration form.
"""

import dash_bootstrap_components as dbc
from dash import dcc, html

from src.data.models import InputState, Thresholds

MUTED = "#8b949e"

_LABEL_STYLE = {"fontSize": ".72rem", "color": MUTED, "textTransform": "uppercase"}


def layout(thresholds: Thresholds | None, config_state: InputState) -> html.Div:
    header = html.Div(
        [
            html.H2("Anomaly Detection Configuration", className="page-title"),
            html.P("Changes apply to every open dashboard immediately", className="page-subtitle"),
        ],
        className="page-header",
    )
    if thresholds is None or config_state == InputState.LOADING:
        return html.Div(
            [header, html.Div("Loading configuration...", style={"color": MUTED})],
            style={"padding": "1.5rem"},
        )

    return html.Div(
        [
            header,
            html.Div(
                [
                    dbc.Row(
                        [
                            dbc.Col(
                                [
                                    html.Label("High Error Rate Limit (%)", htmlFor="threshold-error-rate", style=_LABEL_STYLE),
                                    dcc.Input(
                                        id="threshold-error-rate",
                                        type="number",
                                        min=0,
                                        step="any",
                                        value=thresholds.error_rate_limit,
                                        className="form-control",
                                    ),
                                ],
                                md=4,
                            ),
                            dbc.Col(
                                [
                                    html.Label("Low Transaction Volume Limit (Sales)", htmlFor="threshold-low-volume", style=_LABEL_STYLE),
                                    dcc.Input(
                                        id="threshold-low-volume",
                                        type="number",
                                        min=0,
                                        step=1,
                                        value=thresholds.low_volume_limit,
                                        className="form-control",
                                    ),
                                ],
                                md=4,
                            ),
                        ],
                        className="g-3 mb-3",
                    ),
                    html.Button(
                        "Save Configuration",
                        id="threshold-save-btn",
                        n_clicks=0,
                        className="btn btn-primary btn-sm",
                    ),
                    html.Div(id="threshold-save-message", className="mt-3", style={"fontSize": ".82rem"}),
                ],
                className="chart-card",
            ),
        ],
        style={"padding": "1.5rem"},
    )
