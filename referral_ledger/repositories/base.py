"""
Base repository.

Shared reads and inserts. Repositories flush but never commit; the
calling service owns the transaction.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository bound to one model and one session.

    Ledger rows are append-only, so there is no generic update or delete:
    state changes go through the conditional UPDATE statements of the
    concrete repositories.

    Example:
        class AccountRepository(BaseRepository[Account]):
            def __init__(self, session: AsyncSession):
                super().__init__(Account, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Row by primary key, from the identity map when loaded."""
        return await self.session.get(self.model, id)

    async def get_fresh(self, id: int) -> ModelType | None:
        """
        Row by primary key, reloaded from the database.

        Use after a Core UPDATE on the same row; otherwise the identity
        map still holds the pre-update values.
        """
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(self, id: int) -> ModelType | None:
        """
        Row by primary key, locked until the transaction ends.

        Emits SELECT ... FOR UPDATE; dialects without row locks ignore it.
        """
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        The single row matching column equality filters.

        Raises:
            MultipleResultsFound: More than one row matches
        """
        result = await self.session.execute(
            select(self.model).filter_by(**filters)
        )
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Insert a row and return it with server defaults loaded.

        Args:
            **data: Column values

        Returns:
            Flushed entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def count(self, **filters: Any) -> int:
        """Number of rows matching column equality filters."""
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """Whether any row matches column equality filters."""
        return await self.count(**filters) > 0
