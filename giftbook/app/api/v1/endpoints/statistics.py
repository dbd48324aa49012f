"""
Statistics API Endpoints.

Read-only aggregation views over the authenticated owner's ledger.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from giftbook.app.core.config import settings
from giftbook.app.core.dependencies import get_current_owner_id
from giftbook.app.db.session import get_db
from giftbook.app.services.statistics import StatisticsService
from giftbook.app.schemas.statistics import (
    OverallStatistics, YearlyStatistics, MonthlyStatistics,
    CounterpartyStatistics, EventTypeStatistics, RelationStatistics
)

router = APIRouter(prefix="/statistics", tags=["Statistics"])


@router.get("/overall", response_model=OverallStatistics)
async def get_overall_statistics(
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Received/sent totals, counts and averages."""
    return await StatisticsService.get_overall(db, owner_id)


@router.get("/yearly", response_model=List[YearlyStatistics])
async def get_yearly_statistics(
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Per-year totals, newest year first."""
    return await StatisticsService.get_yearly(db, owner_id)


@router.get("/monthly", response_model=List[MonthlyStatistics])
async def get_monthly_statistics(
    months: Optional[int] = Query(
        None, le=settings.statistics_max_months, description="Window in months; defaults to 12"
    ),
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Per-month totals over the recent window, newest month first."""
    return await StatisticsService.get_monthly(db, owner_id, months)


@router.get("/counterparty", response_model=List[CounterpartyStatistics])
async def get_counterparty_statistics(
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Balance with each counterparty, largest balance first."""
    return await StatisticsService.get_by_counterparty(db, owner_id)


@router.get("/event-type", response_model=List[EventTypeStatistics])
async def get_event_type_statistics(
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Totals and averages per event type."""
    return await StatisticsService.get_by_event_type(db, owner_id)


@router.get("/relation", response_model=List[RelationStatistics])
async def get_relation_statistics(
    owner_id: int = Depends(get_current_owner_id),
    db: AsyncSession = Depends(get_db)
):
    """Totals and averages per relation."""
    return await StatisticsService.get_by_relation(db, owner_id)
