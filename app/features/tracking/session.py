"""
Live session runner.

Shared lifecycle for the hike and location-sharing sessions: the
idle -> tracking <-> paused -> stopped state machine and the periodic
background loops that run while a session is tracking.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from app.shared.constants import AuthorizationStatus, TrackingState

from .config import SessionTimings
from .provider import LocationProvider

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT")


@dataclass(frozen=True)
class LoopSpec:
    """One periodic background task: run `tick`, then sleep `interval` seconds."""

    name: str
    interval: float
    tick: Callable[[], Awaitable[None]]


class LiveSession(Generic[PayloadT]):
    """
    Base class for a monitored session.

    Subclasses provide the payload (a growing hike record or a rolling share
    session) and the list of loops. Invalid transitions are silent no-ops so
    duplicate calls from the client are harmless; each operation returns
    whether it changed the state.

    Usage:
        session = HikeSession(provider, store)
        await session.start(account_id)
        # ... later ...
        await session.pause()
        await session.resume()
        await session.stop()
    """

    supports_pause = True

    def __init__(self, provider: LocationProvider, timings: Optional[SessionTimings] = None):
        self.provider = provider
        self.timings = timings or SessionTimings.from_settings()
        self.last_error: Optional[str] = None
        self._state = TrackingState.IDLE
        self._payload: Optional[PayloadT] = None
        self._updating = False
        # Keep strong references to loop tasks to prevent GC
        self._tasks: set[asyncio.Task] = set()
        # Saves of one record never overlap
        self._save_lock = asyncio.Lock()
        # Set by _halt; cuts the wait between iterations short
        self._halt_event = asyncio.Event()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == TrackingState.TRACKING

    @property
    def permission_granted(self) -> bool:
        return self.provider.authorization_status().is_authorized

    @property
    def active_loop_count(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def _loops(self) -> list[LoopSpec]:
        raise NotImplementedError

    # =========================================================================
    # Transitions shared by all sessions
    # =========================================================================

    async def pause(self) -> bool:
        """Stop the loops but keep everything collected so far."""
        if not self.supports_pause or self._state != TrackingState.TRACKING:
            logger.debug(f"{self._label} pause ignored in state {self._state.value}")
            return False

        self._state = TrackingState.PAUSED
        await self._halt()
        logger.info(f"{self._label} paused")
        return True

    async def resume(self) -> bool:
        """Restart the loops of a paused session."""
        if (
            not self.supports_pause
            or self._state != TrackingState.PAUSED
            or self._payload is None
        ):
            logger.debug(f"{self._label} resume ignored in state {self._state.value}")
            return False

        self._state = TrackingState.TRACKING
        self._launch()
        logger.info(f"{self._label} resumed")
        return True

    async def stop(self) -> bool:
        """Stop for good. The session cannot be started again."""
        if self._state not in (TrackingState.TRACKING, TrackingState.PAUSED):
            logger.debug(f"{self._label} stop ignored in state {self._state.value}")
            return False

        self._state = TrackingState.STOPPED
        await self._halt()
        await self._on_stopped()
        logger.info(f"{self._label} stopped")
        return True

    async def suspend(self) -> bool:
        """
        Halt the loops for process shutdown without finalizing the payload.

        A pausable session ends up paused; a sharing session ends up
        stopped in memory while its stored copy stays active.
        """
        if self._state not in (TrackingState.TRACKING, TrackingState.PAUSED):
            return False

        self._state = TrackingState.PAUSED if self.supports_pause else TrackingState.STOPPED
        await self._halt()
        logger.info(f"{self._label} suspended")
        return True

    async def _on_stopped(self) -> None:
        """Finalize the payload after the loops are gone."""

    # =========================================================================
    # Loop management
    # =========================================================================

    def _check_permission(self) -> bool:
        """
        Ask for location access if undecided.

        Returns False only when access is refused and the session is
        configured to fail fast; otherwise the session starts and its
        sampling stays a no-op until access is granted.
        """
        status = self.provider.authorization_status()
        if status == AuthorizationStatus.NOT_DETERMINED:
            self.provider.request_permission()
        elif status.is_refused:
            if self.timings.fail_fast_without_permission:
                self.last_error = "Location access is not allowed. Enable it in Settings to continue."
                logger.warning(f"{self._label} not started: location {status.value}")
                return False
            logger.warning(f"{self._label} starting without location access ({status.value})")
        return True

    def _launch(self) -> None:
        """Start location updates and one task per loop. Does not block."""
        if not self._updating:
            self.provider.start_updates()
            self._updating = True

        self._halt_event = asyncio.Event()
        for spec in self._loops():
            task = asyncio.create_task(self._run_loop(spec), name=f"{self._label}:{spec.name}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _halt(self) -> None:
        """
        Stop every loop and location updates.

        An iteration already running finishes and is awaited; a loop waiting
        for its next iteration wakes up and exits. When called from inside a
        loop tick, that loop is left to exit on its own.
        """
        self._halt_event.set()
        current = asyncio.current_task()
        tasks = [task for task in self._tasks if task is not current]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self._updating:
            self.provider.stop_updates()
            self._updating = False

    async def _run_loop(self, spec: LoopSpec) -> None:
        """Main loop of one periodic task."""
        halted = self._halt_event
        while self._state == TrackingState.TRACKING:
            try:
                await spec.tick()
            except Exception as e:
                logger.error(f"{self._label} {spec.name} error: {e}")

            if self._state != TrackingState.TRACKING or halted.is_set():
                break
            # Wait before next iteration
            try:
                await asyncio.wait_for(halted.wait(), timeout=spec.interval)
            except asyncio.TimeoutError:
                continue
            break

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _persist(self, action: str, save: Callable[[], Awaitable[None]]) -> bool:
        """
        Run a save under the session's lock.

        Failures are logged and kept in `last_error`; in-memory state stays
        as it is.
        """
        async with self._save_lock:
            try:
                await save()
            except Exception as e:
                self.last_error = f"Failed to {action}: {e}"
                logger.error(f"{self._label} failed to {action}: {e}")
                return False
        return True

    @property
    def _label(self) -> str:
        return type(self).__name__
