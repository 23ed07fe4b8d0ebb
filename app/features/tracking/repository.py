"""
Live tracking repositories.

Data access layer for hike records, share sessions and contacts.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.repository import BaseRepository
from .models import HikeRecordModel, ShareSessionModel, EmergencyContactModel


class HikeRecordRepository(BaseRepository[HikeRecordModel]):
    """Repository for hike record operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, HikeRecordModel)

    async def list_for_account(
        self,
        account_id: str,
        trail_id: str | None = None
    ) -> list[HikeRecordModel]:
        """
        Records of an account, newest first.

        Args:
            account_id: Owner account
            trail_id: Restrict to one trail if given

        Returns:
            Matching records sorted by start time descending
        """
        filters = {"account_id": account_id}
        if trail_id is not None:
            filters["trail_id"] = trail_id
        return await self.get_all(
            order_by=[HikeRecordModel.start_time.desc()],
            **filters
        )


class ShareSessionRepository(BaseRepository[ShareSessionModel]):
    """Repository for location share sessions."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ShareSessionModel)

    async def latest_active(self, account_id: str) -> ShareSessionModel | None:
        """Most recently started active session of an account."""
        sessions = await self.get_all(
            order_by=[ShareSessionModel.started_at.desc()],
            account_id=account_id,
            is_active=True,
        )
        return sessions[0] if sessions else None

    async def all_active(self) -> list[ShareSessionModel]:
        """Active sessions across all accounts."""
        return await self.get_all(is_active=True)


class EmergencyContactRepository(BaseRepository[EmergencyContactModel]):
    """Repository for emergency contacts."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, EmergencyContactModel)

    async def list_for_account(self, account_id: str) -> list[EmergencyContactModel]:
        return await self.get_all(account_id=account_id)
