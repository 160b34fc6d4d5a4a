"""Wishlist API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import case, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.api.books import ResourceId
from bookshelf.api.schemas import (
    BookResponse,
    PurchaseResponse,
    WishlistCreateResponse,
    WishlistDeleteResponse,
    WishlistItemCreate,
    WishlistItemResponse,
    WishlistItemUpdate,
    WishlistListResponse,
    WishlistUpdateResponse,
)
from bookshelf.core.database import get_db
from bookshelf.core.security import get_current_user_id
from bookshelf.models.wishlist import WishlistItem, WishlistPriority
from bookshelf.services.purchase import (
    PurchaseFailedError,
    WishlistItemNotFoundError,
    buy_wishlist_item,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])

ITEM_NOT_FOUND_DETAIL = "آیتم پیدا نشد یا متعلق به شما نیست"

DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"

# Priority sorts by rank, not alphabetically
SORT_COLUMNS = {
    "title": WishlistItem.title,
    "author": WishlistItem.author,
    "publisher": WishlistItem.publisher,
    "genre": WishlistItem.genre,
    "priority": case(
        *[(WishlistItem.priority == priority, priority.rank) for priority in WishlistPriority]
    ),
    "createdAt": WishlistItem.created_at,
}


def resolve_sort(sort_by: str | None, sort_order: str | None) -> tuple[str, str]:
    """Return the effective (sortBy, sortOrder), falling back to newest first."""
    if sort_by not in SORT_COLUMNS:
        return DEFAULT_SORT_BY, DEFAULT_SORT_ORDER
    order = (sort_order or "").lower()
    if order not in ("asc", "desc"):
        order = DEFAULT_SORT_ORDER
    return sort_by, order


async def get_owned_item_or_404(db: AsyncSession, item_id: int, user_id: int) -> WishlistItem:
    """Load one of the caller's wishlist items or raise 404."""
    query = select(WishlistItem).where(
        WishlistItem.id == item_id,
        WishlistItem.user_id == user_id,
    )
    result = await db.execute(query)
    item = result.scalar_one_or_none()

    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ITEM_NOT_FOUND_DETAIL,
        )
    return item


@router.get("", response_model=WishlistListResponse)
async def list_wishlist(
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_order: str | None = Query(None, alias="sortOrder"),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> WishlistListResponse:
    """List the caller's wishlist."""
    sort_by, sort_order = resolve_sort(sort_by, sort_order)
    column = SORT_COLUMNS[sort_by]

    if sort_order == "asc":
        ordering = (column.asc(), WishlistItem.id.asc())
    else:
        ordering = (column.desc(), WishlistItem.id.desc())

    query = select(WishlistItem).where(WishlistItem.user_id == user_id).order_by(*ordering)
    result = await db.execute(query)
    items = result.scalars().all()

    return WishlistListResponse(
        wishlist=[WishlistItemResponse.model_validate(item) for item in items],
        total=len(items),
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("", response_model=WishlistCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_wishlist_item(
    item_data: WishlistItemCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> WishlistCreateResponse:
    """Add a book to the caller's wishlist."""
    item = WishlistItem(user_id=user_id, **item_data.model_dump())
    db.add(item)
    await db.flush()
    await db.refresh(item)

    return WishlistCreateResponse(
        wishlist=WishlistItemResponse.model_validate(item),
        message="آیتم به لیست علاقه‌مندی‌ها اضافه شد",
    )


@router.put("/{item_id}", response_model=WishlistUpdateResponse)
async def update_wishlist_item(
    item_id: ResourceId,
    item_data: WishlistItemUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> WishlistUpdateResponse:
    """Update the fields sent in the request."""
    update_data = item_data.changes()
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="هیچ داده‌ای برای ویرایش ارسال نشده",
        )

    item = await get_owned_item_or_404(db, item_id, user_id)
    for field, value in update_data.items():
        setattr(item, field, value)

    await db.flush()
    await db.refresh(item)

    return WishlistUpdateResponse(
        item=WishlistItemResponse.model_validate(item),
        message="آیتم ویرایش شد",
    )


@router.delete("/{item_id}", response_model=WishlistDeleteResponse)
async def delete_wishlist_item(
    item_id: ResourceId,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> WishlistDeleteResponse:
    """Remove an item from the caller's wishlist."""
    item = await get_owned_item_or_404(db, item_id, user_id)
    deleted = WishlistItemResponse.model_validate(item)

    await db.delete(item)
    await db.flush()

    return WishlistDeleteResponse(message="آیتم حذف شد", item=deleted)


@router.post("/{item_id}/buy", response_model=PurchaseResponse)
async def buy_item(
    item_id: ResourceId,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> PurchaseResponse:
    """Mark a wishlist item as bought, moving it into the library."""
    try:
        book = await buy_wishlist_item(db, item_id, user_id)
    except WishlistItemNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="آیتم مورد نظر یافت نشد",
        )
    except (PurchaseFailedError, SQLAlchemyError) as exc:
        logger.exception(f"Failed to buy wishlist item {item_id} for user {user_id}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ثبت خرید کتاب ممکن نشد",
        ) from exc

    return PurchaseResponse(
        book_id=book.id,
        book=BookResponse.model_validate(book),
        message="کتاب با موفقیت به کتابخانه اضافه شد",
    )
