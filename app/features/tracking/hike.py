"""
Hike tracking session.

Records a hike: samples the position every few seconds into a growing
track, keeps running statistics fresh, and stores the record when the
hike ends.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from app.shared.constants import TrackingState
from app.shared.timeutils import seconds_between, utcnow

from .config import SessionTimings
from .provider import LocationProvider
from .session import LiveSession, LoopSpec
from .statistics import compute_statistics, distance_between
from .store import HikeRecordStore
from .types import HikeRecord, HikeSessionSnapshot, TrackPoint

logger = logging.getLogger(__name__)


class HikeSession(LiveSession[HikeRecord]):
    """
    Live hike tracking.

    Two loops run while tracking:
    - sampling: reads the provider's latest position and appends it
    - refresh: recomputes elapsed time and the record's statistics
    """

    def __init__(
        self,
        provider: LocationProvider,
        store: HikeRecordStore,
        timings: Optional[SessionTimings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(provider, timings)
        self.store = store
        self._clock = clock
        self._last_point: Optional[TrackPoint] = None
        self.current_speed = 0.0
        self.current_altitude = 0.0
        self.total_distance = 0.0
        self.elapsed_time = 0.0

    @property
    def record(self) -> Optional[HikeRecord]:
        return self._payload

    @property
    def point_count(self) -> int:
        return len(self._payload.track_points) if self._payload else 0

    def _loops(self) -> list[LoopSpec]:
        return [
            LoopSpec("sampling", self.timings.sampling_interval, self._sample),
            LoopSpec("statistics", self.timings.refresh_interval, self._refresh),
        ]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(
        self,
        account_id: str,
        trail_id: Optional[str] = None,
        trail_name: Optional[str] = None,
    ) -> bool:
        """
        Start tracking a new hike.

        Args:
            account_id: Owner of the record
            trail_id: Optional trail the hike follows
            trail_name: Optional display name of that trail

        Returns:
            True if tracking started
        """
        if self._state != TrackingState.IDLE:
            logger.debug(f"Hike start ignored in state {self._state.value}")
            return False
        if not self._check_permission():
            return False

        self._payload = HikeRecord(
            account_id=account_id,
            trail_id=trail_id,
            trail_name=trail_name,
            start_time=self._clock(),
            is_completed=False,
        )
        self._last_point = None
        self.current_speed = 0.0
        self.current_altitude = 0.0
        self.total_distance = 0.0
        self.elapsed_time = 0.0
        self.last_error = None

        self._state = TrackingState.TRACKING
        self._launch()
        logger.info(f"Hike {self._payload.id} started for account {account_id}")
        return True

    async def _on_stopped(self) -> None:
        record = self._payload
        if record is None:
            return

        record.end_time = self._clock()
        record.is_completed = True
        self._refresh_statistics(record.end_time)

        logger.info(
            f"Hike {record.id} finished: {len(record.track_points)} points, "
            f"{record.statistics.total_distance:.0f} m"
        )
        await self._persist("save hike record", lambda: self.store.save(record.copy()))

    # =========================================================================
    # Loops
    # =========================================================================

    async def _sample(self) -> None:
        point = self.provider.current_position()
        if point is not None:
            self._record_position(point)

    async def _refresh(self) -> None:
        self._refresh_statistics(self._clock())

    def _record_position(self, point: TrackPoint) -> None:
        """The only way points enter the track."""
        record = self._payload
        if record is None:
            return

        record.track_points.append(point)
        self.current_speed = max(point.speed, 0.0)
        self.current_altitude = point.altitude

        if self._last_point is not None:
            self.total_distance += distance_between(self._last_point, point)
        self._last_point = point

    def _refresh_statistics(self, now: datetime) -> None:
        record = self._payload
        if record is None:
            return
        self.elapsed_time = seconds_between(record.start_time, now)
        # New snapshot, assigned in one step
        record.statistics = compute_statistics(record.track_points, self.elapsed_time)

    # =========================================================================
    # Persistence
    # =========================================================================

    async def save_current_record(self) -> bool:
        """
        Store the record as it is now, without changing the session state.

        Also the retry path after a failed save on stop.
        """
        record = self._payload
        if record is None:
            return False
        if not record.is_completed:
            self._refresh_statistics(self._clock())
        saved = record.copy()
        ok = await self._persist("save hike record", lambda: self.store.save(saved))
        if ok:
            self.last_error = None
            logger.info(f"Hike {record.id} checkpoint saved ({len(saved.track_points)} points)")
        return ok

    async def delete_record(self, record: HikeRecord) -> bool:
        """Delete a stored record. Failures are reported through last_error."""
        try:
            await self.store.delete(record)
        except Exception as e:
            self.last_error = f"Failed to delete hike record: {e}"
            logger.error(self.last_error)
            return False
        return True

    # =========================================================================
    # Observation
    # =========================================================================

    def snapshot(self) -> HikeSessionSnapshot:
        record = self._payload
        return HikeSessionSnapshot(
            state=self._state,
            record=record.copy() if record else None,
            point_count=self.point_count,
            current_speed=self.current_speed,
            current_altitude=self.current_altitude,
            total_distance=self.total_distance,
            elapsed_time=self.elapsed_time,
            permission_granted=self.permission_granted,
            last_error=self.last_error,
        )
