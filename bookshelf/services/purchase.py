"""Buying a wishlist item: moving it into the library as an owned book."""

import logging

from opentelemetry import trace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.core.database import run_in_transaction
from bookshelf.models.book import Book, BookFormat, BookStatus
from bookshelf.models.wishlist import WishlistItem

logger = logging.getLogger(__name__)

tracer = trace.get_tracer(__name__)

UNSPECIFIED_GENRE = "نامشخص"
PLACEHOLDER_COVER_IMAGE = "/placeholder-book.jpg"


class PurchaseError(Exception):
    """Base error for wishlist purchases."""


class WishlistItemNotFoundError(PurchaseError):
    """The wishlist item does not exist or belongs to someone else."""


class PurchaseFailedError(PurchaseError):
    """The new book could not be recorded."""


def book_from_wishlist_item(item: WishlistItem, user_id: int) -> Book:
    """Build the owned book that replaces a wishlist item.

    Format and cover are always the defaults; the wishlist does not carry them.
    """
    return Book(
        user_id=user_id,
        title=item.title,
        author=item.author,
        translator=item.translator,
        publisher=item.publisher,
        genre=item.genre or UNSPECIFIED_GENRE,
        country=None,
        description=item.note or None,
        page_count=None,
        format=BookFormat.PHYSICAL,
        cover_image=PLACEHOLDER_COVER_IMAGE,
        status=BookStatus.UNREAD,
        progress=0,
        rating=None,
        review=None,
    )


async def _load_item(db: AsyncSession, item_id: int, user_id: int) -> WishlistItem | None:
    query = select(WishlistItem).where(
        WishlistItem.id == item_id,
        WishlistItem.user_id == user_id,
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def _insert_book(db: AsyncSession, book: Book) -> Book:
    db.add(book)
    await db.flush()
    if book.id is None:
        raise PurchaseFailedError("Inserted book has no id")
    await db.refresh(book)
    return book


async def _remove_item(db: AsyncSession, item: WishlistItem) -> None:
    await db.delete(item)
    await db.flush()


async def buy_wishlist_item(db: AsyncSession, item_id: int, user_id: int) -> Book:
    """Atomically turn a wishlist item into an owned book.

    Reading the item, inserting the book and deleting the item run as one unit
    of work: either all of it is applied or none of it is.

    Args:
        db: The request's database session.
        item_id: Id of the wishlist item being bought.
        user_id: The caller; the item must belong to them.

    Returns:
        The newly created book.

    Raises:
        WishlistItemNotFoundError: No such item for this user.
        PurchaseFailedError: The book insert did not produce a row.
    """
    with tracer.start_as_current_span("wishlist.buy") as span:
        span.set_attribute("wishlist.item_id", item_id)
        span.set_attribute("user.id", user_id)

        async def work(session: AsyncSession) -> Book:
            item = await _load_item(session, item_id, user_id)
            if item is None:
                raise WishlistItemNotFoundError(f"Wishlist item {item_id} not found")

            book = await _insert_book(session, book_from_wishlist_item(item, user_id))
            await _remove_item(session, item)
            return book

        book = await run_in_transaction(db, work)
        span.set_attribute("book.id", book.id)

    logger.info(f"User {user_id} bought wishlist item {item_id} as book {book.id}")
    return book
