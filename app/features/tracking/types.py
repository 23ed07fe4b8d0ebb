"""
Data types for live tracking (dataclasses, no DB dependency).

TrackPoint, HikeStatistics, Anomaly and the session snapshots are frozen:
a new value replaces the old one instead of being edited in place.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from app.shared.constants import AnomalyType, Severity, TrackingState
from app.shared.formatters import format_duration, speed_to_kmh
from app.shared.timeutils import seconds_between, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Coordinate:
    """A latitude/longitude pair in degrees."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class TrackPoint:
    """One GPS sample as delivered by the location provider."""

    latitude: float
    longitude: float
    altitude: float  # meters
    speed: float  # m/s, raw GPS reports negative when unknown
    timestamp: datetime
    horizontal_accuracy: float = 0.0
    vertical_accuracy: float = 0.0

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @property
    def speed_kmh(self) -> float:
        return speed_to_kmh(self.speed)


@dataclass(frozen=True)
class HikeStatistics:
    """Aggregates derived from a track. A cache, never a source of truth."""

    total_distance: float = 0.0  # meters
    total_duration: float = 0.0  # seconds
    average_speed: float = 0.0  # m/s
    max_speed: float = 0.0  # m/s
    elevation_gain: float = 0.0
    elevation_loss: float = 0.0
    min_altitude: float = 0.0
    max_altitude: float = 0.0


@dataclass
class HikeRecord:
    """Summary of a recorded hike: track points plus cached statistics."""

    account_id: str
    start_time: datetime
    id: str = field(default_factory=_new_id)
    trail_id: str | None = None
    trail_name: str | None = None
    end_time: datetime | None = None
    is_completed: bool = False
    notes: str | None = None
    track_points: list[TrackPoint] = field(default_factory=list)
    statistics: HikeStatistics = field(default_factory=HikeStatistics)

    def duration(self, now: datetime | None = None) -> float:
        """Seconds from start to end, or to now while the hike is running."""
        end = self.end_time or now or utcnow()
        return seconds_between(self.start_time, end)

    @property
    def distance_km(self) -> float:
        return self.statistics.total_distance / 1000.0

    @property
    def average_speed_kmh(self) -> float:
        return speed_to_kmh(self.statistics.average_speed)

    @property
    def max_speed_kmh(self) -> float:
        return speed_to_kmh(self.statistics.max_speed)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration())

    def copy(self) -> HikeRecord:
        """Detached copy; the point list is copied, points themselves are frozen."""
        return replace(self, track_points=list(self.track_points))


@dataclass(frozen=True)
class Anomaly:
    """An anomaly detected during a session (type, severity and message)."""

    type: AnomalyType
    severity: Severity
    message: str
    detected_at: datetime


@dataclass
class ShareSession:
    """State of one "broadcast my location" session."""

    account_id: str
    id: str = field(default_factory=_new_id)
    is_active: bool = False
    started_at: datetime | None = None
    expires_at: datetime | None = None
    last_location_update: datetime | None = None
    last_latitude: float | None = None
    last_longitude: float | None = None
    share_link: str | None = None

    @property
    def last_location(self) -> Coordinate | None:
        if self.last_latitude is None or self.last_longitude is None:
            return None
        return Coordinate(self.last_latitude, self.last_longitude)

    def activate(self, now: datetime, expiry_hours: float) -> None:
        self.is_active = True
        self.started_at = now
        self.expires_at = now + timedelta(hours=expiry_hours)

    def update_location(self, point: TrackPoint, now: datetime) -> None:
        self.last_latitude = point.latitude
        self.last_longitude = point.longitude
        self.last_location_update = now

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) >= self.expires_at


@dataclass
class EmergencyContact:
    """Someone to notify when the hiker needs help."""

    name: str
    phone_number: str
    account_id: str = ""
    email: str | None = None
    is_primary: bool = False
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def has_phone(self) -> bool:
        return bool(self.phone_number and self.phone_number.strip())

    @property
    def has_email(self) -> bool:
        return bool(self.email and self.email.strip())


def contact_sort_key(contact: EmergencyContact) -> tuple[bool, str]:
    """Primary contacts first, then alphabetical."""
    return (not contact.is_primary, contact.name)


@dataclass
class DispatchReport:
    """Outcome of fanning a message out to emergency contacts."""

    sms_sent: int = 0
    emails_sent: int = 0
    failures: list[str] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return self.sms_sent + self.emails_sent


# =============================================================================
# Observable snapshots
# =============================================================================

@dataclass(frozen=True)
class HikeSessionSnapshot:
    """Read-only view of a hike session for the UI."""

    state: TrackingState
    record: HikeRecord | None
    point_count: int
    current_speed: float
    current_altitude: float
    total_distance: float
    elapsed_time: float
    permission_granted: bool
    last_error: str | None


@dataclass(frozen=True)
class SharingSnapshot:
    """Read-only view of a sharing session for the UI."""

    state: TrackingState
    is_sharing: bool
    share_session: ShareSession | None
    current_position: TrackPoint | None
    last_anomaly: Anomaly | None
    is_sending_sos: bool
    permission_granted: bool
    last_error: str | None
