"""
Tests for the hike tracking session.

Loops run with millisecond intervals; each test drives its own event
loop with asyncio.run.
"""

import asyncio
from dataclasses import replace

import pytest

from app.features.tracking.hike import HikeSession
from app.shared.constants import AuthorizationStatus, TrackingState

from tests.fakes import ACCOUNT_ID, make_point, wait_for


@pytest.fixture
def session(provider, record_store, timings):
    return HikeSession(provider, record_store, timings)


def three_point_climb():
    """Three samples 100 m apart, climbing 10 m each step."""
    return [
        make_point(meters_north=0.0, altitude=100.0, speed=1.0),
        make_point(meters_north=100.0, altitude=110.0, speed=1.2),
        make_point(meters_north=200.0, altitude=120.0, speed=1.4),
    ]


# =============================================================================
# Test Transitions
# =============================================================================

class TestTransitions:
    """Invalid transitions are silent no-ops."""

    def test_pause_from_idle(self, session):
        assert asyncio.run(session.pause()) is False
        assert session.state == TrackingState.IDLE

    def test_stop_from_idle(self, session, record_store):
        assert asyncio.run(session.stop()) is False
        assert session.state == TrackingState.IDLE
        assert record_store.save_count == 0

    def test_resume_from_tracking(self, session):
        async def scenario():
            await session.start(ACCOUNT_ID)
            resumed = await session.resume()
            state = session.state
            await session.stop()
            return resumed, state

        resumed, state = asyncio.run(scenario())
        assert resumed is False
        assert state == TrackingState.TRACKING

    def test_start_twice(self, session):
        async def scenario():
            first = await session.start(ACCOUNT_ID)
            record_id = session.record.id
            second = await session.start(ACCOUNT_ID)
            same_record = session.record.id == record_id
            await session.stop()
            return first, second, same_record

        assert asyncio.run(scenario()) == (True, False, True)

    def test_stopped_is_terminal(self, session):
        async def scenario():
            await session.start(ACCOUNT_ID)
            await session.stop()
            return await session.start(ACCOUNT_ID), await session.resume()

        assert asyncio.run(scenario()) == (False, False)
        assert session.state == TrackingState.STOPPED

    def test_pause_halts_loops_and_updates(self, session, provider):
        async def scenario():
            await session.start(ACCOUNT_ID)
            running = session.active_loop_count
            await session.pause()
            paused = session.active_loop_count
            await session.resume()
            resumed = session.active_loop_count
            await session.stop()
            return running, paused, resumed

        assert asyncio.run(scenario()) == (2, 0, 2)
        assert provider.started == 2
        assert provider.stopped == 2
        assert session.active_loop_count == 0

    def test_stop_from_paused(self, session, record_store):
        async def scenario():
            await session.start(ACCOUNT_ID)
            await session.pause()
            return await session.stop()

        assert asyncio.run(scenario()) is True
        assert session.record.is_completed
        assert record_store.save_count == 1


# =============================================================================
# Test Recording
# =============================================================================

class TestRecording:
    """End-to-end recording through the sampling loop."""

    def test_three_point_climb(self, session, provider, record_store):
        provider.feed(three_point_climb())

        async def scenario():
            await session.start(ACCOUNT_ID, trail_id="trail-7", trail_name="Dragon's Back")
            await wait_for(lambda: session.point_count == 3)
            await session.stop()

        asyncio.run(scenario())

        record = session.record
        assert record.is_completed
        assert record.end_time is not None
        assert record.trail_name == "Dragon's Back"
        assert record.statistics.elevation_gain == 20.0
        assert record.statistics.elevation_loss == 0.0
        assert record.statistics.total_distance == pytest.approx(200.0, rel=1e-6)
        assert record.statistics.min_altitude == 100.0
        assert record.statistics.max_altitude == 120.0

        stored = record_store.records[record.id]
        assert len(stored.track_points) == 3
        assert stored.is_completed

    def test_running_distance_matches_statistics(self, session, provider):
        provider.feed(three_point_climb())

        async def scenario():
            await session.start(ACCOUNT_ID)
            await wait_for(lambda: session.point_count == 3)
            await session.stop()

        asyncio.run(scenario())
        assert session.total_distance == session.record.statistics.total_distance
        assert session.current_altitude == 120.0
        assert session.current_speed == pytest.approx(1.4)

    def test_negative_speed_shown_as_zero(self, session, provider):
        provider.feed([make_point(speed=-1.0)])

        async def scenario():
            await session.start(ACCOUNT_ID)
            await wait_for(lambda: session.point_count == 1)
            await session.stop()

        asyncio.run(scenario())
        assert session.current_speed == 0.0

    def test_no_position_records_nothing(self, session):
        async def scenario():
            await session.start(ACCOUNT_ID)
            await asyncio.sleep(0.02)
            await session.stop()

        asyncio.run(scenario())
        assert session.point_count == 0
        assert session.record.statistics.total_distance == 0.0

    def test_failing_tick_does_not_kill_the_loop(self, session, provider):
        provider.fail_next = True
        provider.feed([make_point()])

        async def scenario():
            await session.start(ACCOUNT_ID)
            await wait_for(lambda: session.point_count == 1)
            await session.stop()

        asyncio.run(scenario())
        assert session.point_count == 1

    def test_elapsed_time_refreshes(self, provider, record_store, timings, clock):
        session = HikeSession(provider, record_store, timings, clock=clock)

        async def scenario():
            await session.start(ACCOUNT_ID)
            clock.advance(minutes=5)
            await wait_for(lambda: session.elapsed_time == 300.0)
            await session.stop()

        asyncio.run(scenario())
        assert session.record.statistics.total_duration == 300.0


# =============================================================================
# Test Stop / Persistence
# =============================================================================

class TestPersistence:

    def test_stop_twice_keeps_first_result(self, provider, record_store, timings, clock):
        session = HikeSession(provider, record_store, timings, clock=clock)

        async def scenario():
            await session.start(ACCOUNT_ID)
            clock.advance(minutes=30)
            first = await session.stop()
            end_time = session.record.end_time
            clock.advance(minutes=30)
            second = await session.stop()
            return first, second, end_time

        first, second, end_time = asyncio.run(scenario())
        assert (first, second) == (True, False)
        assert session.record.end_time == end_time
        assert record_store.save_count == 1

    def test_save_failure_is_reported(self, session, provider, record_store):
        record_store.fail = True
        provider.feed(three_point_climb())

        async def scenario():
            await session.start(ACCOUNT_ID)
            await wait_for(lambda: session.point_count == 3)
            return await session.stop()

        assert asyncio.run(scenario()) is True
        assert session.state == TrackingState.STOPPED
        assert "database is locked" in session.last_error
        assert session.point_count == 3
        assert record_store.records == {}

    def test_checkpoint_retries_failed_save(self, session, record_store):
        record_store.fail = True

        async def scenario():
            await session.start(ACCOUNT_ID)
            await session.stop()
            record_store.fail = False
            return await session.save_current_record()

        assert asyncio.run(scenario()) is True
        assert session.last_error is None
        assert record_store.records[session.record.id].is_completed

    def test_checkpoint_while_tracking(self, session, provider, record_store):
        provider.feed(three_point_climb()[:2])

        async def scenario():
            await session.start(ACCOUNT_ID)
            await wait_for(lambda: session.point_count == 2)
            saved = await session.save_current_record()
            state = session.state
            await session.stop()
            return saved, state

        saved, state = asyncio.run(scenario())
        assert saved is True
        assert state == TrackingState.TRACKING
        assert record_store.save_count == 2

    def test_delete_record(self, session, record_store):
        async def scenario():
            await session.start(ACCOUNT_ID)
            await session.stop()
            return await session.delete_record(session.record)

        assert asyncio.run(scenario()) is True
        assert record_store.records == {}

    def test_delete_failure_sets_last_error(self, session, record_store):
        async def scenario():
            await session.start(ACCOUNT_ID)
            await session.stop()
            record_store.fail = True
            return await session.delete_record(session.record)

        assert asyncio.run(scenario()) is False
        assert session.last_error.startswith("Failed to delete hike record")


# =============================================================================
# Test Permission
# =============================================================================

class TestPermission:

    def test_undetermined_requests_permission(self, session, provider):
        provider.status = AuthorizationStatus.NOT_DETERMINED

        async def scenario():
            started = await session.start(ACCOUNT_ID)
            await session.stop()
            return started

        assert asyncio.run(scenario()) is True
        assert provider.permission_requests == 1

    def test_denied_still_starts_by_default(self, session, provider):
        provider.status = AuthorizationStatus.DENIED

        async def scenario():
            started = await session.start(ACCOUNT_ID)
            granted = session.snapshot().permission_granted
            await session.stop()
            return started, granted

        assert asyncio.run(scenario()) == (True, False)

    def test_denied_fails_fast_when_configured(self, provider, record_store, timings):
        provider.status = AuthorizationStatus.RESTRICTED
        session = HikeSession(
            provider, record_store, replace(timings, fail_fast_without_permission=True)
        )

        assert asyncio.run(session.start(ACCOUNT_ID)) is False
        assert session.state == TrackingState.IDLE
        assert "Location access" in session.last_error
        assert provider.started == 0


# =============================================================================
# Test Snapshot
# =============================================================================

class TestSnapshot:

    def test_snapshot_is_detached(self, session, provider):
        provider.feed([make_point()])

        async def scenario():
            await session.start(ACCOUNT_ID)
            await wait_for(lambda: session.point_count == 1)
            snapshot = session.snapshot()
            await session.stop()
            return snapshot

        snapshot = asyncio.run(scenario())
        snapshot.record.track_points.clear()
        assert session.point_count == 1
        assert snapshot.state == TrackingState.TRACKING
