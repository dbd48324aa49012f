"""
Statistics Service.

Read-only aggregation views over one owner's ledger. Each call takes a fresh
snapshot from the store and aggregates it in memory.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from giftbook.app.core.config import settings
from giftbook.app.domain.ledger import aggregation
from giftbook.app.schemas.statistics import (
    CounterpartyStatistics,
    EventTypeStatistics,
    MonthlyStatistics,
    OverallStatistics,
    RelationStatistics,
    YearlyStatistics,
)
from giftbook.app.services.ledger_store import LedgerStore


class StatisticsService:

    @staticmethod
    async def get_overall(db: AsyncSession, owner_id: int) -> OverallStatistics:
        """Totals, counts and averages across all entries."""
        rows = await LedgerStore(db).statistics_rows(owner_id)
        return aggregation.overall_statistics(rows, settings.average_decimal_places)

    @staticmethod
    async def get_yearly(db: AsyncSession, owner_id: int) -> List[YearlyStatistics]:
        """Per calendar year, newest first."""
        rows = await LedgerStore(db).statistics_rows(owner_id)
        return aggregation.yearly_statistics(rows)

    @staticmethod
    async def get_monthly(
        db: AsyncSession,
        owner_id: int,
        months: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[MonthlyStatistics]:
        """
        Per (year, month) over the last N months.

        A missing or non-positive window falls back to
        settings.statistics_default_months.
        """
        if months is None or months <= 0:
            months = settings.statistics_default_months

        since = aggregation.months_ago(today or date.today(), months)
        rows = await LedgerStore(db).statistics_rows(owner_id, since=since)
        return aggregation.monthly_statistics(rows, since)

    @staticmethod
    async def get_by_counterparty(db: AsyncSession, owner_id: int) -> List[CounterpartyStatistics]:
        rows = await LedgerStore(db).statistics_rows(owner_id)
        return aggregation.counterparty_statistics(rows)

    @staticmethod
    async def get_by_event_type(db: AsyncSession, owner_id: int) -> List[EventTypeStatistics]:
        rows = await LedgerStore(db).statistics_rows(owner_id)
        return aggregation.event_type_statistics(rows, settings.average_decimal_places)

    @staticmethod
    async def get_by_relation(db: AsyncSession, owner_id: int) -> List[RelationStatistics]:
        rows = await LedgerStore(db).statistics_rows(owner_id)
        return aggregation.relation_statistics(rows, settings.average_decimal_places)
