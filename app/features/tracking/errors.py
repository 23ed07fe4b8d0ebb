"""Error types raised by the live tracking feature."""

from __future__ import annotations


class TrackingError(RuntimeError):
    """Base error for live tracking failures."""


class PersistenceError(TrackingError):
    """Raised when a record, share session or contact cannot be saved, loaded or deleted."""


class DispatchError(TrackingError):
    """Raised by an alert dispatcher when a message could not be delivered."""


class SosUnavailableError(TrackingError):
    """Raised when an emergency SOS cannot be sent at all."""


class NoKnownPositionError(SosUnavailableError):
    """Raised when there is no position to include in an SOS."""


class NoEmergencyContactsError(SosUnavailableError):
    """Raised when no emergency contact is configured."""


__all__ = [
    "TrackingError",
    "PersistenceError",
    "DispatchError",
    "SosUnavailableError",
    "NoKnownPositionError",
    "NoEmergencyContactsError",
]
