"""
config/settings.py
──────────────────
Application configuration loaded from environment variables.

A single Settings instance is built at startup and passed explicitly into the
reconciliation engine, the stores and the drafting client.
"""
import os
from dataclasses import dataclass


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "")
    return int(raw) if raw else None


@dataclass
class Settings:
    # Server
    DEBUG: bool = os.getenv("DEBUG", "true").lower() == "true"
    PORT: int = int(os.getenv("PORT", "8050"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Document store (SQLite path; empty string disables persistence)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "terminal_monitor.db")
    # Seconds between cross-process change checks (0 disables polling)
    STORE_POLL_INTERVAL_S: float = float(os.getenv("STORE_POLL_INTERVAL_S", "2.0"))

    # Tenant / user scope for stored documents
    APP_ID: str = os.getenv("APP_ID", "default-app-id")
    USER_ID: str = os.getenv("USER_ID", "local-operator")

    # Metric refresh
    REFRESH_INTERVAL_S: float = float(os.getenv("REFRESH_INTERVAL_S", "15"))
    FETCH_LATENCY_S: float = float(os.getenv("FETCH_LATENCY_S", "1.0"))
    TERMINAL_COUNT: int = int(os.getenv("TERMINAL_COUNT", "10"))
    SIMULATION_SEED: int | None = _optional_int("SIMULATION_SEED")

    # Ticket seeding grace period
    SEED_GRACE_S: float = float(os.getenv("SEED_GRACE_S", "2.0"))

    # Dashboard polling interval in milliseconds
    UPDATE_INTERVAL_MS: int = int(os.getenv("UPDATE_INTERVAL_MS", "2000"))

    # Text drafting (Gemini generateContent)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-preview-05-20")
    GEMINI_API_URL: str = os.getenv(
        "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    DRAFT_MAX_ATTEMPTS: int = int(os.getenv("DRAFT_MAX_ATTEMPTS", "3"))
    DRAFT_BACKOFF_S: float = float(os.getenv("DRAFT_BACKOFF_S", "1.0"))
    DRAFT_TIMEOUT_S: float = float(os.getenv("DRAFT_TIMEOUT_S", "30"))


settings = Settings()
