"""
Location provider.

The phone owns the GPS hardware and the permission prompt. It pushes its
authorization state and raw samples to the service; sessions read the
latest value without blocking.
"""

import logging
from typing import Optional, Protocol

from app.shared.constants import AuthorizationStatus

from .types import TrackPoint

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    """What a live session needs from the location source."""

    def authorization_status(self) -> AuthorizationStatus: ...

    def request_permission(self) -> None: ...

    def start_updates(self) -> None: ...

    def stop_updates(self) -> None: ...

    def current_position(self) -> Optional[TrackPoint]: ...


class PushLocationProvider:
    """
    Latest-value location cell fed by client pushes.

    Several sessions of one account (hike + sharing) can share a provider;
    updates are reference counted so stopping one session does not stop
    the other.
    """

    def __init__(self, account_id: str):
        self.account_id = account_id
        self._status = AuthorizationStatus.NOT_DETERMINED
        self._position: Optional[TrackPoint] = None
        self._subscribers = 0
        self.permission_requested = False

    # === LocationProvider ===

    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    def request_permission(self) -> None:
        # The client polls this flag and shows the OS prompt.
        self.permission_requested = True
        logger.info(f"Location permission requested for account {self.account_id}")

    def start_updates(self) -> None:
        self._subscribers += 1
        logger.debug(f"Location updates on for {self.account_id} ({self._subscribers} sessions)")

    def stop_updates(self) -> None:
        self._subscribers = max(self._subscribers - 1, 0)
        logger.debug(f"Location updates off for {self.account_id} ({self._subscribers} sessions)")

    def current_position(self) -> Optional[TrackPoint]:
        if not self._status.is_authorized:
            return None
        return self._position

    # === Client side ===

    @property
    def is_updating(self) -> bool:
        return self._subscribers > 0

    def set_authorization(self, status: AuthorizationStatus) -> None:
        if status != self._status:
            logger.info(f"Location authorization for {self.account_id}: {status.value}")
        self._status = status
        if status.is_authorized:
            self.permission_requested = False

    def push(self, point: TrackPoint) -> None:
        """Record the newest sample from the device."""
        self._position = point
