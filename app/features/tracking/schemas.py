"""
Tracking schemas.

Pydantic models for API request/response.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.shared.constants import AnomalyType, AuthorizationStatus, Severity, TrackingState
from app.shared.formatters import format_distance, format_duration, format_elevation, speed_to_kmh
from app.shared.timeutils import to_naive_utc

from .types import (
    Anomaly,
    EmergencyContact,
    HikeRecord,
    HikeSessionSnapshot,
    HikeStatistics,
    ShareSession,
    SharingSnapshot,
    TrackPoint,
)


# =============================================================================
# Location
# =============================================================================

class LocationSample(BaseModel):
    """One raw GPS sample pushed by the device."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: float = 0.0
    speed: float = Field(-1.0, description="m/s, negative when unknown")
    timestamp: datetime
    horizontal_accuracy: float = 0.0
    vertical_accuracy: float = 0.0

    def to_point(self) -> TrackPoint:
        return TrackPoint(
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            speed=self.speed,
            timestamp=to_naive_utc(self.timestamp),
            horizontal_accuracy=self.horizontal_accuracy,
            vertical_accuracy=self.vertical_accuracy,
        )

    @classmethod
    def from_point(cls, point: TrackPoint) -> "LocationSample":
        return cls(
            latitude=point.latitude,
            longitude=point.longitude,
            altitude=point.altitude,
            speed=point.speed,
            timestamp=point.timestamp,
            horizontal_accuracy=point.horizontal_accuracy,
            vertical_accuracy=point.vertical_accuracy,
        )


class AuthorizationUpdate(BaseModel):
    status: AuthorizationStatus


class ProviderStatus(BaseModel):
    """What the device needs to know about its location feed."""
    authorization: AuthorizationStatus
    permission_requested: bool
    updates_requested: bool


# =============================================================================
# Hikes
# =============================================================================

class StartHikeRequest(BaseModel):
    trail_id: Optional[str] = None
    trail_name: Optional[str] = None


class HikeStatisticsOut(BaseModel):
    total_distance: float = Field(..., description="Meters")
    total_duration: float = Field(..., description="Seconds")
    average_speed: float = Field(..., description="m/s")
    max_speed: float = Field(..., description="m/s")
    elevation_gain: float
    elevation_loss: float
    min_altitude: float
    max_altitude: float

    @classmethod
    def from_statistics(cls, stats: HikeStatistics) -> "HikeStatisticsOut":
        return cls(
            total_distance=stats.total_distance,
            total_duration=stats.total_duration,
            average_speed=stats.average_speed,
            max_speed=stats.max_speed,
            elevation_gain=stats.elevation_gain,
            elevation_loss=stats.elevation_loss,
            min_altitude=stats.min_altitude,
            max_altitude=stats.max_altitude,
        )


class HikeRecordSummary(BaseModel):
    """Hike record without its track."""
    id: str
    trail_id: Optional[str] = None
    trail_name: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    is_completed: bool
    notes: Optional[str] = None
    point_count: int
    distance_km: float
    average_speed_kmh: float
    max_speed_kmh: float
    formatted_duration: str
    formatted_elevation_gain: str
    statistics: HikeStatisticsOut

    @classmethod
    def from_record(cls, record: HikeRecord) -> "HikeRecordSummary":
        return cls(**_summary_fields(record))


class HikeRecordDetail(HikeRecordSummary):
    """Hike record with its full track."""
    track_points: List[LocationSample] = []

    @classmethod
    def from_record(cls, record: HikeRecord) -> "HikeRecordDetail":
        return cls(
            **_summary_fields(record),
            track_points=[LocationSample.from_point(p) for p in record.track_points],
        )


def _summary_fields(record: HikeRecord) -> dict:
    return dict(
        id=record.id,
        trail_id=record.trail_id,
        trail_name=record.trail_name,
        start_time=record.start_time,
        end_time=record.end_time,
        is_completed=record.is_completed,
        notes=record.notes,
        point_count=len(record.track_points),
        distance_km=record.distance_km,
        average_speed_kmh=record.average_speed_kmh,
        max_speed_kmh=record.max_speed_kmh,
        formatted_duration=record.formatted_duration,
        formatted_elevation_gain=format_elevation(record.statistics.elevation_gain),
        statistics=HikeStatisticsOut.from_statistics(record.statistics),
    )


class HikeLiveStatus(BaseModel):
    """Live tracking screen."""
    state: TrackingState
    record: Optional[HikeRecordSummary] = None
    point_count: int
    current_speed_kmh: float
    current_altitude: float
    total_distance: float = Field(..., description="Meters")
    formatted_distance: str
    elapsed_time: float = Field(..., description="Seconds")
    formatted_elapsed: str
    permission_granted: bool
    last_error: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: HikeSessionSnapshot) -> "HikeLiveStatus":
        return cls(
            state=snapshot.state,
            record=HikeRecordSummary.from_record(snapshot.record) if snapshot.record else None,
            point_count=snapshot.point_count,
            current_speed_kmh=speed_to_kmh(snapshot.current_speed),
            current_altitude=snapshot.current_altitude,
            total_distance=snapshot.total_distance,
            formatted_distance=format_distance(snapshot.total_distance),
            elapsed_time=snapshot.elapsed_time,
            formatted_elapsed=format_duration(snapshot.elapsed_time),
            permission_granted=snapshot.permission_granted,
            last_error=snapshot.last_error,
        )


class TransitionResult(BaseModel):
    """Outcome of a start/pause/resume/stop call; `changed` is False for a no-op."""
    changed: bool
    state: TrackingState
    last_error: Optional[str] = None


# =============================================================================
# Sharing
# =============================================================================

class AnomalyOut(BaseModel):
    type: AnomalyType
    severity: Severity
    severity_label: str
    message: str
    detected_at: datetime

    @classmethod
    def from_anomaly(cls, anomaly: Anomaly) -> "AnomalyOut":
        return cls(
            type=anomaly.type,
            severity=anomaly.severity,
            severity_label=anomaly.severity.label,
            message=anomaly.message,
            detected_at=anomaly.detected_at,
        )


class ShareSessionOut(BaseModel):
    id: str
    is_active: bool
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    last_location_update: Optional[datetime] = None
    last_latitude: Optional[float] = None
    last_longitude: Optional[float] = None
    share_link: Optional[str] = None

    @classmethod
    def from_session(cls, session: ShareSession) -> "ShareSessionOut":
        return cls(
            id=session.id,
            is_active=session.is_active,
            started_at=session.started_at,
            expires_at=session.expires_at,
            last_location_update=session.last_location_update,
            last_latitude=session.last_latitude,
            last_longitude=session.last_longitude,
            share_link=session.share_link,
        )


class SharingStatus(BaseModel):
    state: TrackingState
    is_sharing: bool
    share_session: Optional[ShareSessionOut] = None
    current_position: Optional[LocationSample] = None
    last_anomaly: Optional[AnomalyOut] = None
    is_sending_sos: bool
    permission_granted: bool
    last_error: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: SharingSnapshot) -> "SharingStatus":
        return cls(
            state=snapshot.state,
            is_sharing=snapshot.is_sharing,
            share_session=(
                ShareSessionOut.from_session(snapshot.share_session)
                if snapshot.share_session else None
            ),
            current_position=(
                LocationSample.from_point(snapshot.current_position)
                if snapshot.current_position else None
            ),
            last_anomaly=(
                AnomalyOut.from_anomaly(snapshot.last_anomaly)
                if snapshot.last_anomaly else None
            ),
            is_sending_sos=snapshot.is_sending_sos,
            permission_granted=snapshot.permission_granted,
            last_error=snapshot.last_error,
        )


class ShareLinkResponse(BaseModel):
    share_link: str


class SosRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=500)


class SosResponse(BaseModel):
    sms_sent: int
    emails_sent: int
    delivered: int
    failures: List[str] = []


# =============================================================================
# Emergency contacts
# =============================================================================

class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field("", max_length=32)
    email: Optional[str] = Field(None, max_length=254)
    is_primary: bool = False

    def to_contact(self, account_id: str) -> EmergencyContact:
        return EmergencyContact(
            account_id=account_id,
            name=self.name.strip(),
            phone_number=self.phone_number.strip(),
            email=self.email.strip() if self.email else None,
            is_primary=self.is_primary,
        )


class ContactOut(BaseModel):
    id: str
    name: str
    phone_number: str
    email: Optional[str] = None
    is_primary: bool
    created_at: datetime

    @classmethod
    def from_contact(cls, contact: EmergencyContact) -> "ContactOut":
        return cls(
            id=contact.id,
            name=contact.name,
            phone_number=contact.phone_number,
            email=contact.email,
            is_primary=contact.is_primary,
            created_at=contact.created_at,
        )
