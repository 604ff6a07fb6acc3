"""
src/engine/seeding.py
─────────────────────
Placeholder-ticket synthesis for an empty inbox.

The engine calls into this module once, a grace period after the ticket
subscription starts, and on every manual "generate mock ticket" command.
"""
from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from src.data.models import TerminalSnapshot

COMPLAINT_TEMPLATES: tuple[str, ...] = (
    "My payment machine {terminal_id} keeps freezing during transactions. "
    "We've had 5 failures in the last hour.",
    "The card reader at Merchant {merchant_name} is slow. "
    "Customers are complaining about the delay in processing.",
    "I rebooted Terminal {terminal_id} but it's still showing connection issues. Please help ASAP.",
    "I received an email about high error rates on my terminal. I need a technician to call me.",
)


def seed_candidates(snapshots: Sequence[TerminalSnapshot]) -> list[TerminalSnapshot]:
    """Terminals eligible for a synthetic complaint: no outage, whatever the source labelled it."""
    return [s for s in snapshots if not (s.is_critical or s.is_outage)]


def choose_seed_terminal(
    snapshots: Sequence[TerminalSnapshot],
    rng: np.random.Generator,
) -> TerminalSnapshot | None:
    candidates = seed_candidates(snapshots)
    if not candidates:
        return None
    return candidates[int(rng.integers(0, len(candidates)))]


def mock_complaint(terminal: TerminalSnapshot, rng: np.random.Generator) -> str:
    template = COMPLAINT_TEMPLATES[int(rng.integers(0, len(COMPLAINT_TEMPLATES)))]
    return template.format(terminal_id=terminal.id, merchant_name=terminal.merchant_name)
