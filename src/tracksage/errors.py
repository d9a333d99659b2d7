"""Error types raised by the tracking core."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for tracker failures."""

    kind = "tracker_error"


class ValidationError(TrackerError, ValueError):
    """Input rejected before any store mutation."""

    kind = "validation_error"


class NotFoundError(TrackerError, LookupError):
    """Requested task or occurrence does not exist."""

    kind = "not_found"


class StoreUnavailable(TrackerError, RuntimeError):
    """The persistence layer could not be reached."""

    kind = "store_unavailable"


__all__ = ["NotFoundError", "StoreUnavailable", "TrackerError", "ValidationError"]
