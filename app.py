"""
app.py
──────
Terminal Fleet Monitor — Application Entry Point.

Startup sequence:
  1. Configure logging and open the document store (degrades to in-memory
     thresholds and no tickets if it cannot be opened)
  2. Build the stores, metric source, drafting client and reconciliation engine
  3. Create Dash app with DARKLY bootstrap theme and register all callbacks
  4. Start the engine and run the dev server (or expose `server` for gunicorn)
"""
import atexit
import sys

import dash
import dash_bootstrap_components as dbc
from loguru import logger

from config.settings import settings
from src.data.documents import DocumentStore
from src.data.simulator import SimulatedMetricSource
from src.data.store import ThresholdStore, TicketStore
from src.drafting.client import DraftingClient
from src.engine.reconciliation import ReconciliationEngine
from src.errors import StoreUnavailableError
from src.layout.main import create_layout

# ── 1. Logging + document store ───────────────────────────────────────────────
logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL)

try:
    documents = DocumentStore.open(settings.DATABASE_URL)
except StoreUnavailableError:
    logger.exception("Document store unavailable; continuing without persistence")
    documents = None

if documents is not None:
    documents.start_polling(settings.STORE_POLL_INTERVAL_S)

# ── 2. Core ───────────────────────────────────────────────────────────────────
engine = ReconciliationEngine(
    source=SimulatedMetricSource.from_settings(settings),
    threshold_store=ThresholdStore.from_settings(documents, settings),
    ticket_store=TicketStore.from_settings(documents, settings),
    settings=settings,
)
drafting = DraftingClient(settings)

# ── 3. Dash app ───────────────────────────────────────────────────────────────
app = dash.Dash(
    __name__,
    external_stylesheets=[dbc.themes.DARKLY],
    suppress_callback_exceptions=True,
    meta_tags=[{"name": "viewport", "content": "width=device-width, initial-scale=1"}],
    title="Terminal Monitor",
)

server = app.server  # gunicorn entry point
app.layout = create_layout(settings.UPDATE_INTERVAL_MS)

from src.callbacks import alerts, navigation, overview, tickets
from src.callbacks import settings as settings_callbacks

navigation.register(app, engine)
overview.register(app, engine)
alerts.register(app, engine, drafting)
tickets.register(app, engine)
settings_callbacks.register(app, engine)

# ── 4. Run ────────────────────────────────────────────────────────────────────
engine.start()


@atexit.register
def _shutdown() -> None:
    engine.stop()
    drafting.close()
    if documents is not None:
        documents.close()


if __name__ == "__main__":
    app.run(
        debug=settings.DEBUG,
        host=settings.HOST,
        port=settings.PORT,
        use_reloader=False,
    )
