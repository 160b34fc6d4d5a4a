"""Account API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.api.schemas import StatisticsResponse
from bookshelf.core.database import get_db
from bookshelf.core.security import get_current_user_id
from bookshelf.services.statistics import StatisticsError, StatisticsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/account", tags=["account"])


def get_statistics_service(db: AsyncSession = Depends(get_db)) -> StatisticsService:
    """Dependency that provides the statistics service."""
    return StatisticsService(db)


@router.get("/stats", response_model=StatisticsResponse)
async def get_stats(
    user_id: int = Depends(get_current_user_id),
    statistics: StatisticsService = Depends(get_statistics_service),
) -> StatisticsResponse:
    """Statistics about the caller's library for the account page."""
    try:
        stats = await statistics.get_statistics(user_id)
    except StatisticsError as exc:
        logger.exception(f"Failed to compute statistics for user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="خطا در دریافت آمار",
        ) from exc

    return StatisticsResponse.model_validate(stats)
