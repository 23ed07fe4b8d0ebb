"""
Base repository with common CRUD operations.

Provides generic database operations for all feature repositories.
Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class ContactRepository(BaseRepository[EmergencyContactModel]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, EmergencyContactModel)

        async def for_account(self, account_id: str) -> list[EmergencyContactModel]:
            return await self.get_all(account_id=account_id)
"""

from typing import Any, Generic, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for database operations.

    Provides common CRUD methods that can be inherited by feature repositories.
    All methods are async for use with AsyncSession. Committing is left to
    the caller so several repository calls can share one transaction.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def _filtered(self, options: Sequence[Any] = (), **kwargs):
        query = select(self.model)
        for key, value in kwargs.items():
            query = query.where(getattr(self.model, key) == value)
        if options:
            query = query.options(*options)
        return query

    async def get_by_id(self, id: str | int, options: Sequence[Any] = ()) -> T | None:
        """
        Get entity by primary key ID.

        Args:
            id: Primary key value (string UUID or integer)
            options: Loader options (e.g. selectinload) to apply

        Returns:
            Entity if found, None otherwise
        """
        result = await self.db.execute(
            self._filtered(options).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_all(
        self,
        order_by: Sequence[Any] = (),
        options: Sequence[Any] = (),
        **kwargs
    ) -> list[T]:
        """
        Get all entities matching criteria.

        Args:
            order_by: Columns/expressions to sort by
            options: Loader options to apply
            **kwargs: Field name-value pairs to filter by

        Returns:
            List of matching entities
        """
        query = self._filtered(options, **kwargs)
        if order_by:
            query = query.order_by(*order_by)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def upsert(self, entity: T) -> T:
        """
        Insert entity or update the row with the same primary key.

        Args:
            entity: Detached entity carrying the desired state

        Returns:
            Persistent entity bound to this session
        """
        merged = await self.db.merge(entity)
        await self.db.flush()
        return merged

    async def delete(self, entity: T) -> None:
        """
        Delete entity.

        Args:
            entity: Entity to delete
        """
        await self.db.delete(entity)
        await self.db.flush()
