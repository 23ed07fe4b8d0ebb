"""
Anomaly detection for live sessions.

Rule-based and side-effect free: given the latest position, the
position the hiker was last seen moving from, and the freshness of the
location feed, decide whether something looks wrong.
"""

from datetime import datetime
from typing import Optional

from app.shared.constants import AnomalyType, Severity
from app.shared.timeutils import seconds_between, utcnow

from .config import AnomalyConfig
from .statistics import distance_between
from .types import Anomaly, TrackPoint


class AnomalyDetector:
    """
    Checks run in strict priority order; the first match wins:

    1. no fresh location for too long (a stale feed makes the movement
       checks meaningless)
    2. no movement for a long dwell
    3. location stuck for a shorter dwell

    Thresholds default to AnomalyConfig and can be overridden per instance.
    """

    def __init__(
        self,
        no_update_seconds: float = AnomalyConfig.NO_UPDATE_SECONDS,
        stuck_distance_m: float = AnomalyConfig.STUCK_DISTANCE_M,
        location_stuck_seconds: float = AnomalyConfig.LOCATION_STUCK_SECONDS,
        no_movement_seconds: float = AnomalyConfig.NO_MOVEMENT_SECONDS,
        critical_seconds: float = AnomalyConfig.CRITICAL_SECONDS,
    ):
        self.no_update_seconds = no_update_seconds
        self.stuck_distance_m = stuck_distance_m
        self.location_stuck_seconds = location_stuck_seconds
        self.no_movement_seconds = no_movement_seconds
        self.critical_seconds = critical_seconds

    def check(
        self,
        current: Optional[TrackPoint],
        last: Optional[TrackPoint],
        last_update_time: Optional[datetime],
        session_start_time: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> Optional[Anomaly]:
        """
        Inspect the session and return at most one anomaly.

        Args:
            current: Latest known position
            last: Position the hiker was last seen at; its timestamp starts
                the dwell clock
            last_update_time: When the location feed last delivered a sample
            session_start_time: Dwell never counts from before this
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Detected Anomaly, or None when everything looks normal
        """
        now = now or utcnow()

        if last_update_time is not None:
            since_update = seconds_between(last_update_time, now)
            if since_update > self.no_update_seconds:
                return Anomaly(
                    type=AnomalyType.NO_LOCATION_UPDATE,
                    severity=self._escalate(since_update, Severity.HIGH),
                    message=(
                        f"No location update received for {int(since_update // 60)} "
                        f"minutes. GPS signal may be lost."
                    ),
                    detected_at=now,
                )

        if current is None or last is None:
            return None

        moved = distance_between(last, current)
        if moved >= self.stuck_distance_m:
            return None

        dwell = self._dwell_seconds(last, session_start_time, now)

        if dwell > self.no_movement_seconds:
            return Anomaly(
                type=AnomalyType.NO_MOVEMENT,
                severity=self._escalate(dwell, Severity.HIGH),
                message=(
                    f"No movement detected for {int(dwell // 60)} minutes. "
                    f"May need assistance."
                ),
                detected_at=now,
            )

        if dwell > self.location_stuck_seconds:
            return Anomaly(
                type=AnomalyType.LOCATION_STUCK,
                severity=Severity.MEDIUM,
                message="Location appears unchanged. Please confirm if everything is normal.",
                detected_at=now,
            )

        return None

    def _escalate(self, elapsed: float, base: Severity) -> Severity:
        return Severity.CRITICAL if elapsed > self.critical_seconds else base

    @staticmethod
    def _dwell_seconds(
        last: TrackPoint,
        session_start_time: Optional[datetime],
        now: datetime,
    ) -> float:
        since = last.timestamp
        if session_start_time is not None and session_start_time > since:
            since = session_start_time
        return seconds_between(since, now)
