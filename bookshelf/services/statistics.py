"""Library statistics for the account page."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from opentelemetry import trace
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.models.book import Book, BookFormat, BookStatus
from bookshelf.models.wishlist import WishlistItem

logger = logging.getLogger(__name__)

tracer = trace.get_tracer(__name__)

TOP_N = 10

STATUS_LABELS = {
    BookStatus.FINISHED: "تمام شده",
    BookStatus.READING: "در حال خواندن",
    BookStatus.UNREAD: "خوانده نشده",
}

FORMAT_LABELS = {
    BookFormat.PHYSICAL: "فیزیکی",
    BookFormat.ELECTRONIC: "الکترونیکی",
}


def round_half_away_from_zero(value: Any, digits: int = 0) -> int | float:
    """Round like a person would: 2.5 -> 3, -2.5 -> -3.

    Python's ``round`` rounds halves to even, which is not what the charts show.
    None is treated as 0.
    """
    if value is None:
        return 0 if digits == 0 else 0.0
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def twelve_months_before(moment: datetime) -> datetime:
    """The same instant one year earlier (Feb 29 maps to Feb 28)."""
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        return moment.replace(year=moment.year - 1, day=28)


@dataclass
class Breakdown:
    """One bar or slice of a chart."""

    name: str
    count: int


@dataclass
class Overview:
    total_books: int = 0
    total_pages: int = 0
    total_pages_read: int = 0
    finished_books: int = 0
    reading_books: int = 0
    unread_books: int = 0
    total_wishlist: int = 0
    avg_rating: float = 0.0
    avg_progress: int = 0


@dataclass
class Breakdowns:
    by_publisher: list[Breakdown] = field(default_factory=list)
    by_author: list[Breakdown] = field(default_factory=list)
    by_country: list[Breakdown] = field(default_factory=list)
    by_genre: list[Breakdown] = field(default_factory=list)
    by_status: list[Breakdown] = field(default_factory=list)
    by_format: list[Breakdown] = field(default_factory=list)
    by_rating: list[Breakdown] = field(default_factory=list)


@dataclass
class Trends:
    monthly: list[Breakdown] = field(default_factory=list)


@dataclass
class LibraryStatistics:
    """Everything shown on the statistics page."""

    overview: Overview
    breakdowns: Breakdowns
    trends: Trends


class StatisticsError(Exception):
    """Raised when any statistics query fails."""


class StatisticsService:
    """Computes statistics for a single user's library.

    Every query is an independent read scoped to the user. They are awaited one
    after another because an AsyncSession cannot run statements concurrently.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_statistics(self, user_id: int, now: datetime | None = None) -> LibraryStatistics:
        """Compute all statistics for a user.

        Args:
            user_id: Owner of the library.
            now: Reference time for the monthly trend. Defaults to the current UTC time.

        Raises:
            StatisticsError: If any query fails. No partial result is returned.
        """
        now = now or datetime.now(tz=timezone.utc)

        with tracer.start_as_current_span("statistics.compute") as span:
            span.set_attribute("user.id", user_id)
            try:
                overview = await self.overview(user_id)
                breakdowns = await self.breakdowns(user_id)
                trends = Trends(monthly=await self.monthly_trend(user_id, now))
            except SQLAlchemyError as exc:
                raise StatisticsError("Failed to compute statistics") from exc

        return LibraryStatistics(overview=overview, breakdowns=breakdowns, trends=trends)

    async def overview(self, user_id: int) -> Overview:
        """Counters, averages and page totals."""
        counts_query = select(
            func.count(Book.id),
            func.sum(Book.page_count),
            func.count(case((Book.status == BookStatus.FINISHED, 1))),
            func.count(case((Book.status == BookStatus.READING, 1))),
            func.count(case((Book.status == BookStatus.UNREAD, 1))),
        ).where(Book.user_id == user_id)
        total_books, total_pages, finished, reading, unread = (
            await self.db.execute(counts_query)
        ).one()

        wishlist_query = select(func.count(WishlistItem.id)).where(WishlistItem.user_id == user_id)
        total_wishlist = (await self.db.execute(wishlist_query)).scalar()

        rating_query = select(func.avg(Book.rating)).where(
            Book.user_id == user_id,
            Book.rating.is_not(None),
        )
        avg_rating = (await self.db.execute(rating_query)).scalar()

        # progress is a percentage, so pages read = progress * page_count / 100
        progress_query = select(
            func.sum(Book.progress * Book.page_count),
            func.avg(Book.progress),
        ).where(
            Book.user_id == user_id,
            Book.progress.is_not(None),
            Book.progress > 0,
        )
        progress_pages, avg_progress = (await self.db.execute(progress_query)).one()

        return Overview(
            total_books=total_books or 0,
            total_pages=int(total_pages or 0),
            total_pages_read=round_half_away_from_zero(
                Decimal(str(progress_pages or 0)) / Decimal(100)
            ),
            finished_books=finished or 0,
            reading_books=reading or 0,
            unread_books=unread or 0,
            total_wishlist=total_wishlist or 0,
            avg_rating=round_half_away_from_zero(avg_rating, 1),
            avg_progress=round_half_away_from_zero(avg_progress),
        )

    async def breakdowns(self, user_id: int) -> Breakdowns:
        """Grouped counts for every chart."""
        publishers = await self._group_counts(user_id, Book.publisher, exclude_null=True)
        authors = await self._group_counts(user_id, Book.author)
        countries = await self._group_counts(user_id, Book.country, exclude_null=True)
        genres = await self._group_counts(user_id, Book.genre)
        statuses = await self._group_counts(user_id, Book.status, limit=None)
        formats = await self._group_counts(user_id, Book.format, limit=None)
        ratings = await self._group_counts(
            user_id, Book.rating, exclude_null=True, limit=None, order_by_value=True
        )

        status_order = list(BookStatus)
        format_order = list(BookFormat)

        return Breakdowns(
            by_publisher=[Breakdown(name=name, count=count) for name, count in publishers],
            by_author=[Breakdown(name=name, count=count) for name, count in authors],
            by_country=[Breakdown(name=name, count=count) for name, count in countries],
            by_genre=[Breakdown(name=name, count=count) for name, count in genres],
            by_status=[
                Breakdown(name=STATUS_LABELS[value], count=count)
                for value, count in sorted(statuses, key=lambda row: status_order.index(row[0]))
            ],
            by_format=[
                Breakdown(name=FORMAT_LABELS[value], count=count)
                for value, count in sorted(formats, key=lambda row: format_order.index(row[0]))
            ],
            by_rating=[Breakdown(name=f"{value} ستاره", count=count) for value, count in ratings],
        )

    async def monthly_trend(self, user_id: int, now: datetime) -> list[Breakdown]:
        """Books added per calendar month over the trailing twelve months, oldest first."""
        query = select(Book.created_at).where(
            Book.user_id == user_id,
            Book.created_at >= twelve_months_before(now),
        )
        result = await self.db.execute(query)
        months = Counter(created_at.strftime("%Y-%m") for created_at in result.scalars())
        return [Breakdown(name=month, count=months[month]) for month in sorted(months)]

    async def _group_counts(
        self,
        user_id: int,
        column,
        *,
        exclude_null: bool = False,
        limit: int | None = TOP_N,
        order_by_value: bool = False,
    ) -> list[tuple[Any, int]]:
        """Count the user's books per distinct value of ``column``.

        Ordered by count (largest first) unless ``order_by_value`` is set.
        """
        count = func.count(Book.id)
        query = select(column, count).where(Book.user_id == user_id).group_by(column)
        if exclude_null:
            query = query.where(column.is_not(None))
        if order_by_value:
            query = query.order_by(column.asc())
        else:
            query = query.order_by(count.desc(), column.asc())
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [(value, total) for value, total in result.all()]
