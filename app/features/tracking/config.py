"""
Live tracking configuration constants.

Contains the detector thresholds and the loop timings used by the
live sessions.
"""

from dataclasses import dataclass

from app.config import Settings, settings


class AnomalyConfig:
    """Thresholds for anomaly detection."""

    # ==========================================================================
    # Staleness of the location feed
    # ==========================================================================
    # No fresh sample for 10 minutes: GPS may be lost (high).
    # Past 30 minutes the same condition is critical.
    NO_UPDATE_SECONDS = 10 * 60

    # ==========================================================================
    # Dwell at one spot
    # ==========================================================================
    # Moving less than this counts as "not moving" (GPS jitter and rest stops
    # stay inside it).
    STUCK_DISTANCE_M = 50.0

    # Soft check: position unchanged for 5 minutes (medium).
    LOCATION_STUCK_SECONDS = 5 * 60

    # Hard check: no movement for 15 minutes (high).
    NO_MOVEMENT_SECONDS = 15 * 60

    # Escalation point shared by both the staleness and dwell checks.
    CRITICAL_SECONDS = 30 * 60


@dataclass(frozen=True)
class SessionTimings:
    """Loop intervals (seconds) and sharing policy for live sessions."""

    sampling_interval: float = 5.0
    refresh_interval: float = 1.0
    broadcast_interval: float = 30.0
    anomaly_interval: float = 60.0
    share_expiry_hours: float = 24.0
    share_expiry_mode: str = "lazy"
    fail_fast_without_permission: bool = False
    alert_repeat_interval: float = 600.0

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SessionTimings":
        return cls(
            sampling_interval=config.hike_sampling_interval_seconds,
            refresh_interval=config.hike_refresh_interval_seconds,
            broadcast_interval=config.share_broadcast_interval_seconds,
            anomaly_interval=config.share_anomaly_interval_seconds,
            share_expiry_hours=config.share_expiry_hours,
            share_expiry_mode=config.share_expiry_mode,
            fail_fast_without_permission=config.fail_fast_without_permission,
            alert_repeat_interval=config.alert_repeat_interval_seconds,
        )
