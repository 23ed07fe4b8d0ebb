"""
Unified constants for live tracking.

This module provides a single source of truth for state and
classification names across the entire application.
"""

from enum import Enum


class TrackingState(str, Enum):
    """
    Lifecycle of a live session.

    idle -> tracking <-> paused -> stopped. Stopped is terminal;
    a new session object is needed to track again.
    """
    IDLE = "idle"
    TRACKING = "tracking"
    PAUSED = "paused"
    STOPPED = "stopped"


class AuthorizationStatus(str, Enum):
    """Location permission as reported by the device."""
    NOT_DETERMINED = "not_determined"
    AUTHORIZED_ALWAYS = "authorized_always"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    DENIED = "denied"
    RESTRICTED = "restricted"

    @property
    def is_authorized(self) -> bool:
        return self in (
            AuthorizationStatus.AUTHORIZED_ALWAYS,
            AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
        )

    @property
    def is_refused(self) -> bool:
        return self in (AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED)


class AnomalyType(str, Enum):
    """Kinds of abnormal conditions the detector can flag."""
    NO_MOVEMENT = "no_movement"
    LOCATION_STUCK = "location_stuck"
    NO_LOCATION_UPDATE = "no_location_update"
    BATTERY_LOW = "battery_low"  # reserved, reported by the device


class Severity(str, Enum):
    """Anomaly severity, ordered from least to most urgent."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def label(self) -> str:
        return self.value.capitalize()
