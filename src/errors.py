"""
src/errors.py
─────────────
Exception taxonomy shared by the stores, the engine and the drafting client.
"""


class MonitorError(Exception):
    """Base class for every error raised by the monitor core."""


class ValidationError(MonitorError, ValueError):
    """Rejected threshold input. Nothing was written."""


class NotFoundError(MonitorError, LookupError):
    """Unknown ticket id."""


class StoreUnavailableError(MonitorError):
    """The backing document store is missing or unreachable."""


class DraftingFailure(MonitorError):
    """The text-drafting service failed after all permitted attempts."""


class MalformedSnapshotError(MonitorError):
    """A metric source returned data that cannot be read as snapshots."""
