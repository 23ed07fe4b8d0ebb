"""
Test doubles for the live tracking feature.

Shared by the session, registry and API tests.
"""

import asyncio
import math
from collections import deque
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from app.features.tracking.errors import DispatchError, PersistenceError
from app.features.tracking.types import (
    EmergencyContact,
    HikeRecord,
    ShareSession,
    TrackPoint,
    contact_sort_key,
)
from app.shared.constants import AuthorizationStatus
from app.shared.geo import EARTH_RADIUS_M

ACCOUNT_ID = "acc-1"
BASE_TIME = datetime(2026, 5, 1, 8, 0, 0)
BASE_LAT = 22.3364
BASE_LON = 114.1463


def offset_north(lat: float, meters: float) -> float:
    """Latitude reached by moving `meters` due north (negative = south)."""
    return lat + math.degrees(meters / EARTH_RADIUS_M)


def make_point(
    meters_north: float = 0.0,
    altitude: float = 100.0,
    speed: float = 1.0,
    timestamp: Optional[datetime] = None,
) -> TrackPoint:
    """Track point `meters_north` meters north of the base position."""
    return TrackPoint(
        latitude=offset_north(BASE_LAT, meters_north),
        longitude=BASE_LON,
        altitude=altitude,
        speed=speed,
        timestamp=timestamp or BASE_TIME,
    )


async def wait_for(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until `condition()` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


class FakeClock:
    """Settable clock; call it to read the time."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeLocationProvider:
    """
    Provider with a queue of one-shot samples and a sticky position.

    Queued points are handed out once each; afterwards `position` is returned.
    """

    def __init__(
        self,
        status: AuthorizationStatus = AuthorizationStatus.AUTHORIZED_WHEN_IN_USE,
        position: Optional[TrackPoint] = None,
    ):
        self.status = status
        self.position = position
        self.queue: deque[TrackPoint] = deque()
        self.permission_requests = 0
        self.started = 0
        self.stopped = 0
        self.fail_next = False

    def feed(self, points: Iterable[TrackPoint]) -> None:
        self.queue.extend(points)

    def authorization_status(self) -> AuthorizationStatus:
        return self.status

    def request_permission(self) -> None:
        self.permission_requests += 1

    def start_updates(self) -> None:
        self.started += 1

    def stop_updates(self) -> None:
        self.stopped += 1

    def current_position(self) -> Optional[TrackPoint]:
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("GPS hardware error")
        if self.queue:
            return self.queue.popleft()
        return self.position


class InMemoryRecordStore:
    """HikeRecordStore keeping copies in a dict."""

    def __init__(self):
        self.records: dict[str, HikeRecord] = {}
        self.save_count = 0
        self.fail = False

    async def save(self, record: HikeRecord) -> None:
        if self.fail:
            raise PersistenceError("database is locked")
        self.records[record.id] = record.copy()
        self.save_count += 1

    async def load_all(self, account_id: str) -> list[HikeRecord]:
        records = [r.copy() for r in self.records.values() if r.account_id == account_id]
        return sorted(records, key=lambda r: r.start_time, reverse=True)

    async def load(self, record_id: str) -> Optional[HikeRecord]:
        record = self.records.get(record_id)
        return record.copy() if record else None

    async def load_for_trail(self, account_id: str, trail_id: str) -> list[HikeRecord]:
        return [r for r in await self.load_all(account_id) if r.trail_id == trail_id]

    async def delete(self, record: HikeRecord) -> None:
        if self.fail:
            raise PersistenceError("database is locked")
        self.records.pop(record.id, None)


class InMemoryShareStore:
    """ShareStore keeping sessions and contacts in memory."""

    def __init__(self, contacts: Iterable[EmergencyContact] = ()):
        self.sessions: dict[str, ShareSession] = {}
        self.contacts: list[EmergencyContact] = list(contacts)
        self.fail_contacts = False

    async def save_session(self, session: ShareSession) -> None:
        self.sessions[session.id] = replace(session)

    async def load_active_session(self, account_id: str) -> Optional[ShareSession]:
        active = [
            s for s in self.sessions.values()
            if s.account_id == account_id and s.is_active
        ]
        return max(active, key=lambda s: s.started_at) if active else None

    async def load_active_sessions(self) -> list[ShareSession]:
        return [s for s in self.sessions.values() if s.is_active]

    async def load_contacts(self, account_id: str) -> list[EmergencyContact]:
        if self.fail_contacts:
            raise PersistenceError("contacts table unavailable")
        own = [c for c in self.contacts if c.account_id == account_id]
        return sorted(own, key=contact_sort_key)

    async def save_contact(self, contact: EmergencyContact) -> None:
        self.contacts = [c for c in self.contacts if c.id != contact.id] + [contact]

    async def delete_contact(self, contact: EmergencyContact) -> None:
        self.contacts = [c for c in self.contacts if c.id != contact.id]


class RecordingDispatcher:
    """AlertDispatcher that records calls; names in `failing` raise DispatchError."""

    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.sms: list[tuple[str, str]] = []
        self.emails: list[tuple[str, str, str]] = []

    @property
    def call_count(self) -> int:
        return len(self.sms) + len(self.emails)

    async def send_sms(self, contacts, coordinate, message) -> None:
        for contact in contacts:
            if contact.name in self.failing:
                raise DispatchError(f"SMS gateway rejected {contact.phone_number}")
            self.sms.append((contact.name, message))

    async def send_email(self, contacts, coordinate, subject, message) -> None:
        for contact in contacts:
            if contact.name in self.failing:
                raise DispatchError(f"Mail gateway rejected {contact.email}")
            self.emails.append((contact.name, subject, message))


class SlowDispatcher(RecordingDispatcher):
    """RecordingDispatcher whose SMS deliveries take `delay` seconds each."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay
        self.in_flight = False

    async def send_sms(self, contacts, coordinate, message) -> None:
        self.in_flight = True
        await asyncio.sleep(self.delay)
        await super().send_sms(contacts, coordinate, message)
