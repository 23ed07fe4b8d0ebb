"""
Shared fixtures.
"""

import pytest

from app.features.tracking.config import SessionTimings
from app.features.tracking.types import EmergencyContact

from tests.fakes import (
    ACCOUNT_ID,
    FakeClock,
    FakeLocationProvider,
    InMemoryRecordStore,
    InMemoryShareStore,
    RecordingDispatcher,
)


@pytest.fixture
def timings():
    """Millisecond loop intervals so sessions can be driven in tests."""
    return SessionTimings(
        sampling_interval=0.001,
        refresh_interval=0.001,
        broadcast_interval=0.001,
        anomaly_interval=0.001,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return FakeLocationProvider()


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def contacts():
    return [
        EmergencyContact(
            name="Bob",
            phone_number="+85290000002",
            account_id=ACCOUNT_ID,
        ),
        EmergencyContact(
            name="Alice",
            phone_number="+85290000001",
            email="alice@example.com",
            account_id=ACCOUNT_ID,
            is_primary=True,
        ),
    ]


@pytest.fixture
def share_store(contacts):
    return InMemoryShareStore(contacts)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()
