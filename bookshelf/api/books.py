"""Book API routes."""

import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from bookshelf.api.schemas import (
    MAX_ID,
    BookCreate,
    BookDetailResponse,
    BookEnvelope,
    BookListResponse,
    BookMutationResponse,
    BookResponse,
    BookSearchResponse,
    BookUpdate,
    MessageResponse,
    QuoteResponse,
)
from bookshelf.core.database import get_db
from bookshelf.core.security import get_current_user_id
from bookshelf.models.book import Book, Quote

router = APIRouter(prefix="/api/books", tags=["books"])

# Clients may reuse a book list for a minute
LIST_CACHE_CONTROL = "private, max-age=60"

# Path ids must fit a 64-bit INTEGER column
ResourceId = Annotated[int, Path(ge=1, le=MAX_ID)]

MAX_SEARCH_LIMIT = 100
MAX_SEARCH_PAGE = MAX_ID // MAX_SEARCH_LIMIT


async def get_book_or_404(db: AsyncSession, book_id: int) -> Book:
    """Load a book by id or raise 404."""
    result = await db.execute(select(Book).where(Book.id == book_id))
    book = result.scalar_one_or_none()

    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="کتاب پیدا نشد",
        )
    return book


def ensure_owner(owner_id: int, user_id: int) -> None:
    """Raise 403 unless the caller owns the resource."""
    if owner_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="دسترسی غیرمجاز",
        )


@router.get("", response_model=BookListResponse)
async def list_books(
    response: Response,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookListResponse:
    """List the caller's books, most recently added first."""
    query = (
        select(Book)
        .where(Book.user_id == user_id)
        .order_by(Book.created_at.desc(), Book.id.desc())
    )
    result = await db.execute(query)
    books = result.scalars().all()

    response.headers["Cache-Control"] = LIST_CACHE_CONTROL

    return BookListResponse(books=[BookResponse.model_validate(book) for book in books])


@router.get("/search", response_model=BookSearchResponse)
async def search_books(
    q: str = "",
    page: int = Query(1, ge=1, le=MAX_SEARCH_PAGE),
    limit: int = Query(10, ge=1, le=MAX_SEARCH_LIMIT),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookSearchResponse:
    """Search the caller's books by title, author or genre."""
    term = q.strip()
    if not term:
        return BookSearchResponse(books=[], total=0, page=page, limit=limit, total_pages=0)

    conditions = (
        Book.user_id == user_id,
        or_(
            Book.title.icontains(term, autoescape=True),
            Book.author.icontains(term, autoescape=True),
            Book.genre.icontains(term, autoescape=True),
        ),
    )

    total_result = await db.execute(select(func.count(Book.id)).where(*conditions))
    total = total_result.scalar() or 0

    query = (
        select(Book)
        .where(*conditions)
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)
    books = result.scalars().all()

    return BookSearchResponse(
        books=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit),
    )


@router.post("", response_model=BookMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    book_data: BookCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookMutationResponse:
    """Add a book to the caller's library."""
    book = Book(user_id=user_id, **book_data.model_dump())
    db.add(book)
    await db.flush()
    await db.refresh(book)

    return BookMutationResponse(book=BookResponse.model_validate(book), message="کتاب ایجاد شد")


@router.get("/{book_id}", response_model=BookEnvelope)
async def get_book(
    book_id: ResourceId,
    db: AsyncSession = Depends(get_db),
) -> BookEnvelope:
    """Get a book and its quotes. Book pages are shareable, so no login is needed."""
    book = await get_book_or_404(db, book_id)

    quotes_query = select(Quote).where(Quote.book_id == book_id).order_by(Quote.id)
    quotes_result = await db.execute(quotes_query)
    quotes = quotes_result.scalars().all()

    return BookEnvelope(
        book=BookDetailResponse(
            **BookResponse.model_validate(book).model_dump(),
            quotes=[QuoteResponse.model_validate(quote) for quote in quotes],
        )
    )


@router.put("/{book_id}", response_model=BookMutationResponse)
async def update_book(
    book_id: ResourceId,
    book_data: BookUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> BookMutationResponse:
    """Update the fields sent in the request."""
    book = await get_book_or_404(db, book_id)
    ensure_owner(book.user_id, user_id)

    update_data = book_data.changes()
    if not update_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="هیچ مقداری برای بروزرسانی ارسال نشده",
        )

    for field, value in update_data.items():
        setattr(book, field, value)

    await db.flush()
    await db.refresh(book)

    return BookMutationResponse(
        book=BookResponse.model_validate(book), message="کتاب بروزرسانی شد"
    )


@router.delete("/{book_id}", response_model=MessageResponse)
async def delete_book(
    book_id: ResourceId,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a book and all its quotes."""
    book = await get_book_or_404(db, book_id)
    ensure_owner(book.user_id, user_id)

    await db.delete(book)
    await db.flush()

    return MessageResponse(message="کتاب با موفقیت حذف شد")
