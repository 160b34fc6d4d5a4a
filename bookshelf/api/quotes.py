"""Quote API routes.

Quotes have no owner column; a quote belongs to whoever owns its book, so every
write looks the book up first.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.api.books import ResourceId, ensure_owner, get_book_or_404
from bookshelf.api.schemas import (
    MessageResponse,
    QuoteCreate,
    QuoteEnvelope,
    QuoteMutationResponse,
    QuoteResponse,
    QuoteUpdate,
)
from bookshelf.core.database import get_db
from bookshelf.core.security import get_current_user_id
from bookshelf.models.book import Book, Quote

router = APIRouter(prefix="/api/quotes", tags=["quotes"])


async def get_quote_with_owner_or_404(db: AsyncSession, quote_id: int) -> tuple[Quote, int]:
    """Load a quote together with the id of its book's owner."""
    query = (
        select(Quote, Book.user_id)
        .join(Book, Quote.book_id == Book.id)
        .where(Quote.id == quote_id)
    )
    result = await db.execute(query)
    row = result.one_or_none()

    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="نقل قول پیدا نشد",
        )
    quote, owner_id = row
    return quote, owner_id


@router.post("", response_model=QuoteMutationResponse)
async def create_quote(
    quote_data: QuoteCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> QuoteMutationResponse:
    """Add a quote to one of the caller's books."""
    book = await get_book_or_404(db, quote_data.book_id)
    ensure_owner(book.user_id, user_id)

    quote = Quote(
        book_id=book.id,
        content=quote_data.content,
        page=quote_data.page,
    )
    db.add(quote)
    await db.flush()
    await db.refresh(quote)

    return QuoteMutationResponse(
        quote=QuoteResponse.model_validate(quote),
        message="نقل قول با موفقیت اضافه شد",
    )


@router.get("/{quote_id}", response_model=QuoteEnvelope)
async def get_quote(
    quote_id: ResourceId,
    db: AsyncSession = Depends(get_db),
) -> QuoteEnvelope:
    """Get a specific quote by ID."""
    quote, _ = await get_quote_with_owner_or_404(db, quote_id)
    return QuoteEnvelope(quote=QuoteResponse.model_validate(quote))


@router.put("/{quote_id}", response_model=QuoteMutationResponse)
async def update_quote(
    quote_id: ResourceId,
    quote_data: QuoteUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> QuoteMutationResponse:
    """Update a quote on one of the caller's books."""
    quote, owner_id = await get_quote_with_owner_or_404(db, quote_id)
    ensure_owner(owner_id, user_id)

    update_data = quote_data.changes()
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="هیچ مقداری برای بروزرسانی ارسال نشده",
        )

    for field, value in update_data.items():
        setattr(quote, field, value)

    await db.flush()
    await db.refresh(quote)

    return QuoteMutationResponse(
        quote=QuoteResponse.model_validate(quote),
        message="نقل قول با موفقیت بروزرسانی شد",
    )


@router.delete("/{quote_id}", response_model=MessageResponse)
async def delete_quote(
    quote_id: ResourceId,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a quote from one of the caller's books."""
    quote, owner_id = await get_quote_with_owner_or_404(db, quote_id)
    ensure_owner(owner_id, user_id)

    await db.delete(quote)
    await db.flush()

    return MessageResponse(message="نقل قول با موفقیت حذف شد")
