"""
Live tracking database models.

Models:
- HikeRecordModel: A finished or in-progress hike
- TrackPointModel: GPS samples of a hike, in recording order
- ShareSessionModel: Location sharing session state
- EmergencyContactModel: Contacts notified on SOS / critical anomalies
"""

import uuid

from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship

from app.models.base import Base
from app.shared.timeutils import utcnow


class HikeRecordModel(Base):
    """
    Stored hike.

    Aggregate columns are a convenience for listings; they are recomputed
    from the track points whenever a record is loaded.
    """

    __tablename__ = "hike_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), nullable=False, index=True)

    # Trail reference
    trail_id = Column(String(36), nullable=True, index=True)
    trail_name = Column(String(255), nullable=True)

    # Lifecycle
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    is_completed = Column(Boolean, default=False)

    # Cached aggregates
    total_distance = Column(Float, default=0.0)  # meters
    total_duration = Column(Float, default=0.0)  # seconds
    average_speed = Column(Float, default=0.0)  # m/s
    max_speed = Column(Float, default=0.0)  # m/s
    elevation_gain = Column(Float, default=0.0)
    elevation_loss = Column(Float, default=0.0)
    min_altitude = Column(Float, default=0.0)
    max_altitude = Column(Float, default=0.0)

    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    track_points = relationship(
        "TrackPointModel",
        back_populates="record",
        order_by="TrackPointModel.sequence",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<HikeRecordModel {self.id} account={self.account_id} completed={self.is_completed}>"


class TrackPointModel(Base):
    """One GPS sample of a hike."""

    __tablename__ = "hike_track_points"

    id = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(
        String(36),
        ForeignKey("hike_records.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = Column(Integer, nullable=False)  # arrival order

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    altitude = Column(Float, nullable=False)
    speed = Column(Float, nullable=False)
    timestamp = Column(DateTime, nullable=False)
    horizontal_accuracy = Column(Float, default=0.0)
    vertical_accuracy = Column(Float, default=0.0)

    record = relationship("HikeRecordModel", back_populates="track_points")

    def __repr__(self):
        return f"<TrackPointModel {self.record_id}#{self.sequence}>"


class ShareSessionModel(Base):
    """Location sharing session."""

    __tablename__ = "share_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), nullable=False, index=True)

    is_active = Column(Boolean, default=False, index=True)
    started_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    # Rolling last known location
    last_location_update = Column(DateTime, nullable=True)
    last_latitude = Column(Float, nullable=True)
    last_longitude = Column(Float, nullable=True)
    share_link = Column(String(500), nullable=True)

    def __repr__(self):
        return f"<ShareSessionModel {self.id} active={self.is_active}>"


class EmergencyContactModel(Base):
    """Emergency contact of an account."""

    __tablename__ = "emergency_contacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    phone_number = Column(String(40), nullable=False, default="")
    email = Column(String(255), nullable=True)
    is_primary = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<EmergencyContactModel {self.id} ({self.name})>"
