"""Book and quote models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Text, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookshelf.core.database import Base

if TYPE_CHECKING:
    from bookshelf.models.user import User


class BookFormat(str, Enum):
    """Physical form of an owned book."""

    PHYSICAL = "PHYSICAL"
    ELECTRONIC = "ELECTRONIC"


class BookStatus(str, Enum):
    """Reading status of an owned book."""

    UNREAD = "UNREAD"
    READING = "READING"
    FINISHED = "FINISHED"


class Book(Base):
    """A book in a user's library."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    cover_image: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    translator: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(Text, nullable=True)
    genre: Mapped[str] = mapped_column(Text, nullable=False)
    page_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    format: Mapped[BookFormat] = mapped_column(SQLEnum(BookFormat), nullable=False)
    publisher: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[BookStatus] = mapped_column(
        SQLEnum(BookStatus),
        default=BookStatus.UNREAD,
        server_default=BookStatus.UNREAD.value,
        nullable=False,
    )
    progress: Mapped[int | None] = mapped_column(Integer, nullable=True)  # percent, 0-100
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    user: Mapped[User] = relationship("User", back_populates="books")
    quotes: Mapped[list[Quote]] = relationship(
        "Quote",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Quote.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', author='{self.author}')>"


class Quote(Base):
    """A passage quoted from a book."""

    __tablename__ = "quotes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    book_id: Mapped[int] = mapped_column(
        ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    page: Mapped[int | None] = mapped_column(Integer, nullable=True)

    book: Mapped[Book] = relationship("Book", back_populates="quotes")

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, book_id={self.book_id}, content='{self.content[:50]}...')>"
