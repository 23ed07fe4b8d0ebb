"""
Shared utilities (NOT business logic).

Usage:
    from app.shared import haversine_m, calculate_elevation_changes
    from app.shared.formatters import format_duration
"""
from .geo import (
    haversine_m,
    EARTH_RADIUS_KM,
    EARTH_RADIUS_M,
)
from .elevation import (
    calculate_elevation_changes,
    elevation_range,
)
from .formatters import (
    MPS_TO_KMH,
    format_duration,
    format_distance,
    format_elevation,
    speed_to_kmh,
)
from .constants import (
    TrackingState,
    AuthorizationStatus,
    AnomalyType,
    Severity,
)
from .repository import BaseRepository
from .timeutils import utcnow, to_naive_utc, seconds_between

__all__ = [
    # geo
    "haversine_m",
    "EARTH_RADIUS_KM",
    "EARTH_RADIUS_M",
    # elevation
    "calculate_elevation_changes",
    "elevation_range",
    # formatters
    "MPS_TO_KMH",
    "format_duration",
    "format_distance",
    "format_elevation",
    "speed_to_kmh",
    # constants
    "TrackingState",
    "AuthorizationStatus",
    "AnomalyType",
    "Severity",
    # repository
    "BaseRepository",
    # time
    "utcnow",
    "to_naive_utc",
    "seconds_between",
]
