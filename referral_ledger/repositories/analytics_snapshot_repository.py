"""
Analytics snapshot repository.

Data access layer for AnalyticsSnapshot model.
"""

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from referral_ledger.models.analytics_snapshot import AnalyticsSnapshot
from referral_ledger.repositories.base import BaseRepository


# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class AnalyticsSnapshotRepository(BaseRepository[AnalyticsSnapshot]):
    """Analytics snapshot repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize analytics snapshot repository."""
        super().__init__(AnalyticsSnapshot, session)

    async def get_by_period(
        self, period_date: date, period_type: str
    ) -> AnalyticsSnapshot | None:
        """Get the snapshot stored for a period key."""
        return await self.get_by(period_date=period_date, period_type=period_type)

    async def upsert(
        self, period_date: date, period_type: str, **values: Any
    ) -> AnalyticsSnapshot:
        """
        Overwrite the snapshot for a period key, creating it if missing.

        A single INSERT ... ON CONFLICT statement, so concurrent recomputes
        of one key never collide on the unique constraint; the last writer
        wins.

        Args:
            period_date: Period date
            period_type: Period type
            **values: Snapshot columns

        Returns:
            Stored snapshot
        """
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Snapshot upsert not supported on {dialect}")

        stmt = insert(AnalyticsSnapshot).values(
            period_date=period_date, period_type=period_type, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["period_date", "period_type"],
            set_={key: stmt.excluded[key] for key in values},
        )
        await self.session.execute(stmt)

        result = await self.session.execute(
            select(AnalyticsSnapshot)
            .where(
                AnalyticsSnapshot.period_date == period_date,
                AnalyticsSnapshot.period_type == period_type,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
