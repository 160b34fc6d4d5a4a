"""Wishlist model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookshelf.core.database import Base

if TYPE_CHECKING:
    from bookshelf.models.user import User


class WishlistPriority(str, Enum):
    """How badly the user wants a book, from most to least."""

    MUST_HAVE = "MUST_HAVE"
    WANT_IT = "WANT_IT"
    NICE_TO_HAVE = "NICE_TO_HAVE"
    IF_EXTRA_MONEY = "IF_EXTRA_MONEY"
    NOT_IMPORTANT = "NOT_IMPORTANT"

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for MUST_HAVE."""
        return list(WishlistPriority).index(self)


class WishlistItem(Base):
    """A book the user intends to buy."""

    __tablename__ = "wishlist_items"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    publisher: Mapped[str | None] = mapped_column(String(255), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(100), nullable=True)
    translator: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[WishlistPriority] = mapped_column(SQLEnum(WishlistPriority), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    user: Mapped[User] = relationship("User", back_populates="wishlist_items")

    def __repr__(self) -> str:
        return (
            f"<WishlistItem(id={self.id}, title='{self.title}', priority={self.priority.value})>"
        )
