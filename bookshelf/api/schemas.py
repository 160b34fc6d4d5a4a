"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from bookshelf.models.book import BookFormat, BookStatus
from bookshelf.models.wishlist import WishlistPriority

NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Largest value an INTEGER column holds in SQLite and BIGINT in PostgreSQL
MAX_ID = 2**63 - 1


def _reject_null(value):
    if value is None:
        raise ValueError("Field may not be null")
    return value


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _zero_page_to_none(value):
    # A page of 0 means "no page"
    if value == 0 and not isinstance(value, bool):
        return None
    return value


class CamelModel(BaseModel):
    """Base schema exposing camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RequestModel(CamelModel):
    """Base schema for request bodies; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        """Fields explicitly present in the request, by attribute name."""
        return self.model_dump(exclude_unset=True)


class MessageResponse(CamelModel):
    """Schema for a bare confirmation message."""

    message: str


# Auth schemas
class RegisterRequest(RequestModel):
    """Schema for registering a new user."""

    email: Annotated[
        str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=3, max_length=255)
    ]
    password: str = Field(..., min_length=1)
    name: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)] | None = None


class LoginRequest(RequestModel):
    """Schema for logging in."""

    email: Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1)]
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    """Public view of a user."""

    id: int
    email: str
    name: str | None


class RegisterResponse(CamelModel):
    message: str
    user: UserResponse


class CurrentUserResponse(CamelModel):
    user: UserResponse


# Quote schemas
class QuoteCreate(RequestModel):
    """Schema for creating a quote."""

    content: NonEmptyText
    book_id: int = Field(..., ge=1, le=MAX_ID)
    page: int | None = Field(None, ge=1, le=MAX_ID)

    @field_validator("page", mode="before")
    @classmethod
    def zero_page_to_none(cls, value):
        return _zero_page_to_none(value)


class QuoteUpdate(RequestModel):
    """Schema for updating a quote."""

    content: NonEmptyText | None = None
    page: int | None = Field(None, ge=1, le=MAX_ID)

    @field_validator("page", mode="before")
    @classmethod
    def zero_page_to_none(cls, value):
        return _zero_page_to_none(value)

    @field_validator("content")
    @classmethod
    def content_not_null(cls, value):
        return _reject_null(value)


class QuoteResponse(CamelModel):
    """Schema for quote response."""

    id: int
    book_id: int
    content: str
    page: int | None


class QuoteEnvelope(CamelModel):
    quote: QuoteResponse


class QuoteMutationResponse(CamelModel):
    quote: QuoteResponse
    message: str


# Book schemas
class BookCreate(RequestModel):
    """Schema for creating a new book."""

    title: NonEmptyText
    cover_image: NonEmptyText
    author: NonEmptyText
    genre: NonEmptyText
    format: BookFormat
    translator: str | None = None
    description: str | None = None
    country: str | None = None
    publisher: str | None = None
    page_count: int | None = Field(None, ge=1, le=MAX_ID)
    status: BookStatus = BookStatus.UNREAD
    progress: int | None = Field(None, ge=0, le=100)
    rating: int | None = Field(None, ge=0, le=10)
    review: str | None = None


class BookUpdate(RequestModel):
    """Schema for updating a book. Only the fields sent are changed."""

    title: NonEmptyText | None = None
    cover_image: NonEmptyText | None = None
    author: NonEmptyText | None = None
    genre: NonEmptyText | None = None
    format: BookFormat | None = None
    translator: str | None = None
    description: str | None = None
    country: str | None = None
    publisher: str | None = None
    page_count: int | None = Field(None, ge=1, le=MAX_ID)
    status: BookStatus | None = None
    progress: int | None = Field(None, ge=0, le=100)
    rating: int | None = Field(None, ge=0, le=10)
    review: str | None = None

    @field_validator("title", "cover_image", "author", "genre", "format", "status")
    @classmethod
    def required_not_null(cls, value):
        # These columns are NOT NULL
        return _reject_null(value)


class BookResponse(CamelModel):
    """Schema for book response."""

    id: int
    user_id: int
    title: str
    cover_image: str
    author: str
    translator: str | None
    description: str | None
    country: str | None
    genre: str
    page_count: int | None
    format: BookFormat
    publisher: str | None
    status: BookStatus
    progress: int | None
    rating: int | None
    review: str | None
    created_at: datetime


class BookDetailResponse(BookResponse):
    """Schema for book response with its quotes."""

    quotes: list[QuoteResponse] = []


class BookListResponse(CamelModel):
    """Schema for list of books response."""

    books: list[BookResponse] = Field(alias="Book")


class BookEnvelope(CamelModel):
    book: BookDetailResponse


class BookMutationResponse(CamelModel):
    book: BookResponse
    message: str


class BookSearchResponse(CamelModel):
    """Schema for a page of library search results."""

    books: list[BookResponse]
    total: int
    page: int
    limit: int
    total_pages: int


# Wishlist schemas
WishlistTitle = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]
WishlistText255 = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255)]
WishlistGenre = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]
WishlistNote = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]


class WishlistItemCreate(RequestModel):
    """Schema for adding a book to the wishlist."""

    title: WishlistTitle
    author: WishlistTitle
    priority: WishlistPriority
    publisher: WishlistText255 | None = None
    genre: WishlistGenre | None = None
    translator: WishlistText255 | None = None
    note: WishlistNote | None = None

    @field_validator("publisher", "genre", "translator", "note", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)


class WishlistItemUpdate(RequestModel):
    """Schema for updating a wishlist item. Only the fields sent are changed."""

    title: WishlistTitle | None = None
    author: WishlistTitle | None = None
    priority: WishlistPriority | None = None
    publisher: WishlistText255 | None = None
    genre: WishlistGenre | None = None
    translator: WishlistText255 | None = None
    note: WishlistNote | None = None

    @field_validator("publisher", "genre", "translator", "note", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        return _blank_to_none(value)

    @field_validator("title", "author", "priority")
    @classmethod
    def required_not_null(cls, value):
        return _reject_null(value)


class WishlistItemResponse(CamelModel):
    """Schema for wishlist item response."""

    id: int
    user_id: int
    title: str
    author: str
    publisher: str | None
    genre: str | None
    translator: str | None
    note: str | None
    priority: WishlistPriority
    created_at: datetime


class WishlistListResponse(CamelModel):
    wishlist: list[WishlistItemResponse]
    total: int
    sort_by: str
    sort_order: str


class WishlistCreateResponse(CamelModel):
    wishlist: WishlistItemResponse
    message: str


class WishlistUpdateResponse(CamelModel):
    item: WishlistItemResponse
    message: str


class WishlistDeleteResponse(CamelModel):
    message: str
    item: WishlistItemResponse


class PurchaseResponse(CamelModel):
    """Schema for the result of buying a wishlist item."""

    book_id: int
    book: BookResponse
    message: str


# Statistics schemas
class BreakdownEntry(CamelModel):
    name: str
    count: int


class StatisticsOverview(CamelModel):
    total_books: int = 0
    total_pages: int = 0
    total_pages_read: int = 0
    finished_books: int = 0
    reading_books: int = 0
    unread_books: int = 0
    total_wishlist: int = 0
    avg_rating: float = 0
    avg_progress: int = 0


class StatisticsBreakdowns(CamelModel):
    by_publisher: list[BreakdownEntry] = []
    by_author: list[BreakdownEntry] = []
    by_country: list[BreakdownEntry] = []
    by_genre: list[BreakdownEntry] = []
    by_status: list[BreakdownEntry] = []
    by_format: list[BreakdownEntry] = []
    by_rating: list[BreakdownEntry] = []


class StatisticsTrends(CamelModel):
    monthly: list[BreakdownEntry] = []


class StatisticsResponse(CamelModel):
    """Schema for the account statistics page."""

    overview: StatisticsOverview
    breakdowns: StatisticsBreakdowns
    trends: StatisticsTrends
