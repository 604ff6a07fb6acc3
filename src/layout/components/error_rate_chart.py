"""
src/layout/components/error_rate_chart.py
──────────────────────────────────────────
Per-terminal error-rate bar chart with the configured limit overlaid.
"""
from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go
from dash import dcc

from src.analytics.anomaly import format_number

CARD_BG = "#161b22"


def _bar_color(rate: float, limit: float | None) -> str:
    if limit is not None and rate > limit:
        return "#e8a020"
    return "#2ea44f"


def error_rate_chart(
    df: pd.DataFrame,
    error_rate_limit: float | None,
    height: int = 260,
) -> dcc.Graph:
    """
    Bar chart of error_rate by terminal id.

    Args:
        df: Snapshot DataFrame (see simulator.to_dataframe)
        error_rate_limit: Dashed limit line; omitted when None
        height: Figure height in px
    """
    fig = go.Figure()
    if not df.empty:
        fig.add_trace(go.Bar(
            x=df["id"],
            y=df["error_rate"],
            marker_color=[_bar_color(r, error_rate_limit) for r in df["error_rate"]],
            hovertext=df["merchant_name"],
            hovertemplate="%{x} · %{hovertext}<br>%{y:.2f}%<extra></extra>",
        ))
    if error_rate_limit is not None:
        fig.add_hline(
            y=error_rate_limit,
            line={"color": "#da3633", "width": 1.5, "dash": "dash"},
            annotation_text=f"limit {format_number(error_rate_limit)}%",
            annotation_font={"color": "#da3633", "size": 10},
        )

    fig.update_layout(
        paper_bgcolor=CARD_BG,
        plot_bgcolor=CARD_BG,
        margin=dict(l=40, r=20, t=20, b=40),
        height=height,
        font=dict(color="#c9d1d9"),
        yaxis=dict(title="Error rate (%)", gridcolor="#30363d", rangemode="tozero"),
        xaxis=dict(gridcolor="#30363d"),
        showlegend=False,
    )

    return dcc.Graph(
        figure=fig,
        config={"displayModeBar": False},
        style={"height": f"{height}px"},
    )
