"""
Session stores.

Durable save/load/delete for hike records, share sessions and emergency
contacts. Each call runs in its own transaction: either the previous or
the new version of a record is stored, never a mix.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import PersistenceError
from .models import (
    EmergencyContactModel,
    HikeRecordModel,
    ShareSessionModel,
    TrackPointModel,
)
from .repository import (
    EmergencyContactRepository,
    HikeRecordRepository,
    ShareSessionRepository,
)
from .statistics import compute_statistics
from .types import EmergencyContact, HikeRecord, ShareSession, TrackPoint, contact_sort_key

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


class HikeRecordStore(Protocol):
    """Persistence for hike records. All methods raise PersistenceError."""

    async def save(self, record: HikeRecord) -> None: ...

    async def load_all(self, account_id: str) -> list[HikeRecord]: ...

    async def load(self, record_id: str) -> Optional[HikeRecord]: ...

    async def load_for_trail(self, account_id: str, trail_id: str) -> list[HikeRecord]: ...

    async def delete(self, record: HikeRecord) -> None: ...


class ShareStore(Protocol):
    """Persistence for share sessions and contacts. All methods raise PersistenceError."""

    async def save_session(self, session: ShareSession) -> None: ...

    async def load_active_session(self, account_id: str) -> Optional[ShareSession]: ...

    async def load_active_sessions(self) -> list[ShareSession]: ...

    async def load_contacts(self, account_id: str) -> list[EmergencyContact]: ...

    async def save_contact(self, contact: EmergencyContact) -> None: ...

    async def delete_contact(self, contact: EmergencyContact) -> None: ...


class _SqlStore:
    def __init__(self, session_factory: SessionFactory):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, action: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as db:
                yield db
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}") from e


# =============================================================================
# Hike records
# =============================================================================

class SqlHikeRecordStore(_SqlStore):
    """HikeRecordStore backed by SQLAlchemy."""

    async def save(self, record: HikeRecord) -> None:
        async with self._transaction("save hike record") as db:
            repo = HikeRecordRepository(db)
            row = await repo.get_by_id(record.id)
            if row is None:
                row = HikeRecordModel(id=record.id, account_id=record.account_id)
                db.add(row)
            _apply_record(row, record)
            await db.flush()
        logger.debug(f"Saved hike record {record.id} ({len(record.track_points)} points)")

    async def load_all(self, account_id: str) -> list[HikeRecord]:
        async with self._transaction("load hike records") as db:
            rows = await HikeRecordRepository(db).list_for_account(account_id)
            return [_record_from_row(row) for row in rows]

    async def load(self, record_id: str) -> Optional[HikeRecord]:
        async with self._transaction("load hike record") as db:
            row = await HikeRecordRepository(db).get_by_id(record_id)
            return _record_from_row(row) if row else None

    async def load_for_trail(self, account_id: str, trail_id: str) -> list[HikeRecord]:
        async with self._transaction("load trail hike records") as db:
            rows = await HikeRecordRepository(db).list_for_account(account_id, trail_id=trail_id)
            return [_record_from_row(row) for row in rows]

    async def delete(self, record: HikeRecord) -> None:
        async with self._transaction("delete hike record") as db:
            repo = HikeRecordRepository(db)
            row = await repo.get_by_id(record.id)
            if row is not None:
                await repo.delete(row)
        logger.info(f"Deleted hike record {record.id}")


def _apply_record(row: HikeRecordModel, record: HikeRecord) -> None:
    stats = record.statistics
    row.account_id = record.account_id
    row.trail_id = record.trail_id
    row.trail_name = record.trail_name
    row.start_time = record.start_time
    row.end_time = record.end_time
    row.is_completed = record.is_completed
    row.notes = record.notes
    row.total_distance = stats.total_distance
    row.total_duration = stats.total_duration
    row.average_speed = stats.average_speed
    row.max_speed = stats.max_speed
    row.elevation_gain = stats.elevation_gain
    row.elevation_loss = stats.elevation_loss
    row.min_altitude = stats.min_altitude
    row.max_altitude = stats.max_altitude
    row.track_points = [
        TrackPointModel(
            sequence=i,
            latitude=p.latitude,
            longitude=p.longitude,
            altitude=p.altitude,
            speed=p.speed,
            timestamp=p.timestamp,
            horizontal_accuracy=p.horizontal_accuracy,
            vertical_accuracy=p.vertical_accuracy,
        )
        for i, p in enumerate(record.track_points)
    ]


def _record_from_row(row: HikeRecordModel) -> HikeRecord:
    points = [
        TrackPoint(
            latitude=p.latitude,
            longitude=p.longitude,
            altitude=p.altitude,
            speed=p.speed,
            timestamp=p.timestamp,
            horizontal_accuracy=p.horizontal_accuracy or 0.0,
            vertical_accuracy=p.vertical_accuracy or 0.0,
        )
        for p in row.track_points
    ]
    record = HikeRecord(
        id=row.id,
        account_id=row.account_id,
        trail_id=row.trail_id,
        trail_name=row.trail_name,
        start_time=row.start_time,
        end_time=row.end_time,
        is_completed=bool(row.is_completed),
        notes=row.notes,
        track_points=points,
    )
    # Aggregates are re-derived from the points, never read back.
    duration = record.duration() if record.end_time else (row.total_duration or 0.0)
    record.statistics = compute_statistics(points, duration)
    return record


# =============================================================================
# Sharing
# =============================================================================

class SqlShareStore(_SqlStore):
    """ShareStore backed by SQLAlchemy."""

    async def save_session(self, session: ShareSession) -> None:
        async with self._transaction("save share session") as db:
            await ShareSessionRepository(db).upsert(ShareSessionModel(
                id=session.id,
                account_id=session.account_id,
                is_active=session.is_active,
                started_at=session.started_at,
                expires_at=session.expires_at,
                last_location_update=session.last_location_update,
                last_latitude=session.last_latitude,
                last_longitude=session.last_longitude,
                share_link=session.share_link,
            ))

    async def load_active_session(self, account_id: str) -> Optional[ShareSession]:
        async with self._transaction("load share session") as db:
            row = await ShareSessionRepository(db).latest_active(account_id)
            return _share_from_row(row) if row else None

    async def load_active_sessions(self) -> list[ShareSession]:
        async with self._transaction("load share sessions") as db:
            rows = await ShareSessionRepository(db).all_active()
            return [_share_from_row(row) for row in rows]

    async def load_contacts(self, account_id: str) -> list[EmergencyContact]:
        async with self._transaction("load emergency contacts") as db:
            rows = await EmergencyContactRepository(db).list_for_account(account_id)
            contacts = [
                EmergencyContact(
                    id=row.id,
                    account_id=row.account_id,
                    name=row.name,
                    phone_number=row.phone_number or "",
                    email=row.email,
                    is_primary=bool(row.is_primary),
                    created_at=row.created_at,
                )
                for row in rows
            ]
        return sorted(contacts, key=contact_sort_key)

    async def save_contact(self, contact: EmergencyContact) -> None:
        async with self._transaction("save emergency contact") as db:
            await EmergencyContactRepository(db).upsert(EmergencyContactModel(
                id=contact.id,
                account_id=contact.account_id,
                name=contact.name,
                phone_number=contact.phone_number,
                email=contact.email,
                is_primary=contact.is_primary,
                created_at=contact.created_at,
            ))

    async def delete_contact(self, contact: EmergencyContact) -> None:
        async with self._transaction("delete emergency contact") as db:
            repo = EmergencyContactRepository(db)
            row = await repo.get_by_id(contact.id)
            if row is not None:
                await repo.delete(row)


def _share_from_row(row: ShareSessionModel) -> ShareSession:
    return ShareSession(
        id=row.id,
        account_id=row.account_id,
        is_active=bool(row.is_active),
        started_at=row.started_at,
        expires_at=row.expires_at,
        last_location_update=row.last_location_update,
        last_latitude=row.last_latitude,
        last_longitude=row.last_longitude,
        share_link=row.share_link,
    )
