"""
src/callbacks/tickets.py
─────────────────────────
Ticket inbox callbacks: list rendering, resolve, and mock ticket creation.
"""
from __future__ import annotations

from dash import ALL, Input, Output, ctx, html
from dash.exceptions import PreventUpdate

from src.data.models import EngineView, InputState, Ticket
from src.engine.reconciliation import ReconciliationEngine
from src.errors import NotFoundError, StoreUnavailableError

BORDER = "#30363d"
MUTED = "#8b949e"


def _ticket_row(ticket: Ticket) -> html.Div:
    pending = ticket.is_pending
    accent = "#f0883e" if pending else "#2ea44f"
    action = (
        html.Button(
            "✓ Resolve",
            id={"type": "resolve-btn", "index": ticket.id},
            n_clicks=0,
            title="Mark as Resolved",
            style={
                "fontSize": ".68rem",
                "fontWeight": "600",
                "color": "#2ea44f",
                "background": "transparent",
                "border": "1px solid #2ea44f",
                "borderRadius": "4px",
                "padding": "2px 8px",
            },
        )
        if pending
        else html.Span(
            f"Resolved {ticket.resolved_at.astimezone().strftime('%d/%m %H:%M')}" if ticket.resolved_at else "Resolved",
            style={"fontSize": ".68rem", "color": MUTED},
        )
    )
    return html.Div(
        [
            html.Div(
                [
                    html.Span(f"[{ticket.terminal_id}] {ticket.merchant_name}", style={"fontWeight": "600", "color": "#c9d1d9"}),
                    html.Span(ticket.status.value, style={"fontSize": ".68rem", "color": accent, "marginLeft": "8px"}),
                    html.Span(
                        ticket.created_at.astimezone().strftime("%d/%m %H:%M"),
                        style={"fontSize": ".68rem", "color": MUTED, "marginLeft": "8px"},
                    ),
                ]
            ),
            html.Div(ticket.message, style={"fontSize": ".8rem", "margin": "6px 0"}),
            action,
        ],
        style={
            "borderLeft": f"4px solid {accent}",
            "borderBottom": f"1px solid {BORDER}",
            "padding": "10px 12px",
            "opacity": "1" if pending else "0.75",
        },
    )


def _tickets_list(view: EngineView) -> html.Div:
    if view.tickets_state == InputState.UNAVAILABLE:
        return html.Div(
            "Ticket store unavailable. Check DATABASE_URL.",
            style={"color": "#da3633", "padding": "20px", "textAlign": "center"},
        )
    if view.tickets_state == InputState.LOADING:
        return html.Div("Loading Tickets...", style={"color": MUTED, "padding": "20px", "textAlign": "center"})
    if not view.tickets:
        return html.Div("No merchant tickets.", style={"color": MUTED, "padding": "20px", "textAlign": "center"})
    return html.Div([_ticket_row(t) for t in view.tickets])


def register(app, engine: ReconciliationEngine) -> None:

    @app.callback(
        Output("tickets-list", "children"),
        [
            Input("interval-live", "n_intervals"),
            Input("url", "pathname"),
            Input("ticket-action-message", "children"),
        ],
    )
    def update_tickets(n_intervals: int, pathname: str, message: str):
        return _tickets_list(engine.view)

    @app.callback(
        Output("ticket-action-message", "children"),
        [
            Input({"type": "resolve-btn", "index": ALL}, "n_clicks"),
            Input("mock-ticket-btn", "n_clicks"),
        ],
        prevent_initial_call=True,
    )
    def ticket_action(resolve_clicks: list, mock_clicks: int) -> str:
        if not ctx.triggered_id or not ctx.triggered[0]["value"]:
            raise PreventUpdate

        try:
            if ctx.triggered_id == "mock-ticket-btn":
                ticket = engine.generate_mock_ticket()
                if ticket is None:
                    return "No eligible terminal for a mock ticket yet."
                return f"Mock ticket created for {ticket.terminal_id}."
            ticket_id = ctx.triggered_id["index"]
            engine.resolve_ticket(ticket_id)
            return "Ticket resolved."
        except NotFoundError:
            return "Error: ticket no longer exists."
        except StoreUnavailableError as exc:
            return f"Error: {exc}"
