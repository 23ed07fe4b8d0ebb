"""
Location sharing session.

Broadcasts the hiker's position to emergency contacts, watches for
anomalies and alerts contacts automatically when one turns critical.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from app.shared.constants import AnomalyType, Severity, TrackingState
from app.shared.timeutils import seconds_between, utcnow

from .alerts import (
    ALERT_SUBJECT,
    SOS_SUBJECT,
    AlertDispatcher,
    dispatch_to_contacts,
    format_anomaly_alert,
    format_sos_message,
    generate_share_link,
)
from .anomaly import AnomalyDetector
from .config import SessionTimings
from .errors import NoEmergencyContactsError, NoKnownPositionError, PersistenceError
from .provider import LocationProvider
from .session import LiveSession, LoopSpec
from .statistics import distance_between
from .store import ShareStore
from .types import (
    Anomaly,
    DispatchReport,
    EmergencyContact,
    ShareSession,
    SharingSnapshot,
    TrackPoint,
)

logger = logging.getLogger(__name__)

DEFAULT_SOS_MESSAGE = "I need emergency assistance!"


class SharingSession(LiveSession[ShareSession]):
    """
    Live location sharing for one account.

    Two loops run while sharing:
    - broadcast: stores the latest position as the rolling last location
    - anomaly: runs the detector and sends an automatic alert on critical

    There is no pause; sharing is either on or stopped.
    """

    supports_pause = False

    def __init__(
        self,
        account_id: str,
        provider: LocationProvider,
        store: ShareStore,
        dispatcher: AlertDispatcher,
        timings: Optional[SessionTimings] = None,
        detector: Optional[AnomalyDetector] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        super().__init__(provider, timings)
        self.account_id = account_id
        self.store = store
        self.dispatcher = dispatcher
        self.detector = detector or AnomalyDetector()
        self._clock = clock

        self.current_position: Optional[TrackPoint] = None
        self.last_anomaly: Optional[Anomaly] = None
        self.is_sending_sos = False
        # Where the hiker was last seen moving from; starts the dwell clock
        self._anchor: Optional[TrackPoint] = None
        self._last_update_time: Optional[datetime] = None
        # When monitoring began in this process; GPS silence and dwell count from here
        self._watching_since: Optional[datetime] = None
        self._last_alert_at: dict[AnomalyType, datetime] = {}

    @property
    def share_session(self) -> Optional[ShareSession]:
        return self._payload

    @property
    def is_sharing(self) -> bool:
        return self._state == TrackingState.TRACKING

    def _loops(self) -> list[LoopSpec]:
        return [
            LoopSpec("broadcast", self.timings.broadcast_interval, self._broadcast),
            LoopSpec("anomaly", self.timings.anomaly_interval, self._check_anomalies),
        ]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, existing: Optional[ShareSession] = None) -> bool:
        """
        Start sharing.

        Args:
            existing: Stored session of this account to reuse, if any

        Returns:
            True if sharing started
        """
        if self._state != TrackingState.IDLE:
            logger.debug(f"Sharing start ignored in state {self._state.value}")
            return False
        if not self._check_permission():
            return False

        now = self._clock()
        session = existing or self._payload or ShareSession(account_id=self.account_id)
        session.activate(now, self.timings.share_expiry_hours)
        self._payload = session
        self._watching_since = now
        self.last_error = None

        self._state = TrackingState.TRACKING
        self._launch()
        logger.info(f"Location sharing {session.id} started for account {self.account_id}")

        await self._save_session()
        return True

    async def restore(self, session: ShareSession) -> bool:
        """
        Resume a session that was active when the service last stopped.

        An expired session is closed instead of resumed.
        """
        if self._state != TrackingState.IDLE:
            return False

        now = self._clock()
        if session.is_expired(now):
            session.is_active = False
            self._payload = session
            logger.info(f"Share session {session.id} expired at {session.expires_at}, closing")
            await self._save_session()
            return False
        if not self._check_permission():
            return False

        self._payload = session
        self._watching_since = now
        self._state = TrackingState.TRACKING
        self._launch()
        logger.info(f"Location sharing {session.id} restored for account {self.account_id}")
        return True

    async def _on_stopped(self) -> None:
        session = self._payload
        if session is None:
            return
        session.is_active = False
        await self._save_session()

    # =========================================================================
    # Loops
    # =========================================================================

    async def _broadcast(self) -> None:
        session = self._payload
        if session is None:
            return

        now = self._clock()
        if self.timings.share_expiry_mode == "enforced" and session.is_expired(now):
            logger.info(f"Share session {session.id} expired, stopping")
            await self.stop()
            return

        point = self.provider.current_position()
        if point is None:
            return

        self._observe(point)
        session.update_location(point, now)
        session.share_link = generate_share_link(point.coordinate)
        await self._save_session()

    def _observe(self, point: TrackPoint) -> None:
        self.current_position = point
        self._last_update_time = point.timestamp
        if (
            self._anchor is None
            or distance_between(self._anchor, point) >= self.detector.stuck_distance_m
        ):
            self._anchor = point

    async def _check_anomalies(self) -> None:
        session = self._payload
        if session is None:
            return

        point = self.provider.current_position()
        if point is not None:
            self._observe(point)

        now = self._clock()
        watching_since = self._watching_since or session.started_at
        # GPS silence never counts from before monitoring began
        last_update = watching_since
        if self._last_update_time is not None and self._last_update_time > watching_since:
            last_update = self._last_update_time

        anomaly = self.detector.check(
            current=self.current_position,
            last=self._anchor,
            last_update_time=last_update,
            session_start_time=watching_since,
            now=now,
        )
        if anomaly is None:
            return

        self.last_anomaly = anomaly
        logger.warning(
            f"Anomaly for account {self.account_id}: {anomaly.type.value} "
            f"({anomaly.severity.value}) - {anomaly.message}"
        )

        if anomaly.severity == Severity.CRITICAL and self._alert_due(anomaly, now):
            await self._send_automatic_alert(anomaly, now)

    def _alert_due(self, anomaly: Anomaly, now: datetime) -> bool:
        last = self._last_alert_at.get(anomaly.type)
        if last is None:
            return True
        return seconds_between(last, now) >= self.timings.alert_repeat_interval

    async def _send_automatic_alert(self, anomaly: Anomaly, now: datetime) -> None:
        position = self.current_position
        if position is None:
            logger.warning("Automatic alert skipped: no known position")
            return

        try:
            contacts = await self.store.load_contacts(self.account_id)
        except PersistenceError as e:
            self.last_error = f"Failed to load emergency contacts: {e}"
            logger.error(self.last_error)
            return
        if not contacts:
            logger.warning(f"Automatic alert skipped: account {self.account_id} has no contacts")
            return

        await dispatch_to_contacts(
            self.dispatcher,
            contacts,
            position.coordinate,
            format_anomaly_alert(anomaly.message),
            ALERT_SUBJECT,
        )
        self._last_alert_at[anomaly.type] = now

    # =========================================================================
    # On-demand actions
    # =========================================================================

    async def send_emergency_sos(self, message: str = DEFAULT_SOS_MESSAGE) -> DispatchReport:
        """
        Send an SOS with the current position to every emergency contact.

        Works whether or not sharing is on.

        Raises:
            NoKnownPositionError: No position is known yet
            NoEmergencyContactsError: The account has no contacts
            PersistenceError: Contacts could not be loaded
        """
        position = self.current_position or self.provider.current_position()
        if position is None:
            self.last_error = "Unable to determine current location"
            raise NoKnownPositionError(self.last_error)

        try:
            contacts: list[EmergencyContact] = await self.store.load_contacts(self.account_id)
        except PersistenceError as e:
            self.last_error = f"Failed to load emergency contacts: {e}"
            raise

        if not contacts:
            self.last_error = "Please add an emergency contact first"
            raise NoEmergencyContactsError(self.last_error)

        self.is_sending_sos = True
        self.last_error = None
        try:
            report = await dispatch_to_contacts(
                self.dispatcher,
                contacts,
                position.coordinate,
                format_sos_message(position.coordinate, message),
                SOS_SUBJECT,
            )
        finally:
            self.is_sending_sos = False

        if report.failures:
            self.last_error = f"Failed to reach: {', '.join(report.failures)}"
        logger.warning(f"SOS sent for account {self.account_id}: {report.delivered} deliveries")
        return report

    def generate_share_link(self) -> Optional[str]:
        position = self.current_position or self.provider.current_position()
        if position is None:
            return None
        return generate_share_link(position.coordinate)

    # =========================================================================
    # Persistence / observation
    # =========================================================================

    async def _save_session(self) -> bool:
        session = self._payload
        if session is None:
            return False
        saved = replace(session)
        return await self._persist("save share session", lambda: self.store.save_session(saved))

    def snapshot(self) -> SharingSnapshot:
        session = self._payload
        return SharingSnapshot(
            state=self._state,
            is_sharing=self.is_sharing,
            share_session=replace(session) if session else None,
            current_position=self.current_position,
            last_anomaly=self.last_anomaly,
            is_sending_sos=self.is_sending_sos,
            permission_granted=self.permission_granted,
            last_error=self.last_error,
        )
