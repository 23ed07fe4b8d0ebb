"""
Session registry.

Keeps the live sessions of every account in one place so API handlers
and the application lifespan share them.
"""

import logging
from typing import Optional

from app.shared.constants import TrackingState

from .alerts import AlertDispatcher
from .config import SessionTimings
from .hike import HikeSession
from .provider import PushLocationProvider
from .sharing import SharingSession
from .store import HikeRecordStore, ShareStore
from .types import EmergencyContact

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    One location provider, hike session and sharing session per account.

    A stopped session is terminal, so the next start gets a fresh session
    object; the stopped one stays readable until then.
    """

    def __init__(
        self,
        record_store: HikeRecordStore,
        share_store: ShareStore,
        dispatcher: AlertDispatcher,
        timings: Optional[SessionTimings] = None,
    ):
        self.record_store = record_store
        self.share_store = share_store
        self.dispatcher = dispatcher
        self.timings = timings or SessionTimings.from_settings()
        self._providers: dict[str, PushLocationProvider] = {}
        self._hikes: dict[str, HikeSession] = {}
        self._shares: dict[str, SharingSession] = {}

    # =========================================================================
    # Lookup
    # =========================================================================

    def provider(self, account_id: str) -> PushLocationProvider:
        if account_id not in self._providers:
            self._providers[account_id] = PushLocationProvider(account_id)
        return self._providers[account_id]

    def hike(self, account_id: str) -> HikeSession:
        """Current hike session of an account (created idle if missing)."""
        session = self._hikes.get(account_id)
        if session is None:
            session = HikeSession(self.provider(account_id), self.record_store, self.timings)
            self._hikes[account_id] = session
        return session

    def sharing(self, account_id: str) -> SharingSession:
        """Current sharing session of an account (created idle if missing)."""
        session = self._shares.get(account_id)
        if session is None:
            session = SharingSession(
                account_id,
                self.provider(account_id),
                self.share_store,
                self.dispatcher,
                self.timings,
            )
            self._shares[account_id] = session
        return session

    # =========================================================================
    # Starting fresh sessions
    # =========================================================================

    async def start_hike(
        self,
        account_id: str,
        trail_id: Optional[str] = None,
        trail_name: Optional[str] = None,
    ) -> tuple[HikeSession, bool]:
        """Start a hike, replacing a stopped session. Returns the session and whether it started."""
        session = self.hike(account_id)
        if session.state == TrackingState.STOPPED:
            self._hikes.pop(account_id, None)
            session = self.hike(account_id)
        started = await session.start(account_id, trail_id=trail_id, trail_name=trail_name)
        return session, started

    async def start_sharing(self, account_id: str) -> tuple[SharingSession, bool]:
        """Start sharing, reusing the stored active share session if there is one."""
        session = self.sharing(account_id)
        if session.state == TrackingState.STOPPED:
            # Keep the stored share session row, like reopening a share
            previous = session.share_session
            self._shares.pop(account_id, None)
            session = self.sharing(account_id)
            started = await session.start(existing=previous)
            return session, started

        existing = None
        if session.share_session is None:
            existing = await self.share_store.load_active_session(account_id)
        started = await session.start(existing=existing)
        return session, started

    async def restore_active_sharing(self) -> int:
        """Resume every stored active share session. Returns how many resumed."""
        restored = 0
        for stored in await self.share_store.load_active_sessions():
            if await self.sharing(stored.account_id).restore(stored):
                restored += 1
        logger.info(f"Restored {restored} active location shares")
        return restored

    # =========================================================================
    # Emergency contacts
    # =========================================================================

    async def list_contacts(self, account_id: str) -> list[EmergencyContact]:
        return await self.share_store.load_contacts(account_id)

    async def add_contact(self, contact: EmergencyContact) -> EmergencyContact:
        await self.share_store.save_contact(contact)
        logger.info(f"Added emergency contact {contact.id} for account {contact.account_id}")
        return contact

    async def remove_contact(self, account_id: str, contact_id: str) -> bool:
        contacts = await self.share_store.load_contacts(account_id)
        match = next((c for c in contacts if c.id == contact_id), None)
        if match is None:
            return False
        await self.share_store.delete_contact(match)
        logger.info(f"Removed emergency contact {contact_id} for account {account_id}")
        return True

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self) -> None:
        """
        Halt every loop without finalizing anything.

        Running hikes are checkpointed, not completed. Active shares stay
        marked active in the store so they are restored on the next start.
        """
        for session in list(self._hikes.values()):
            if await session.suspend():
                await session.save_current_record()
        for session in list(self._shares.values()):
            await session.suspend()
        logger.info("Session registry shut down")
