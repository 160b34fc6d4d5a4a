"""Database models."""

from bookshelf.models.book import Book, BookFormat, BookStatus, Quote
from bookshelf.models.user import Account, AuthSession, User
from bookshelf.models.wishlist import WishlistItem, WishlistPriority

__all__ = [
    "Account",
    "AuthSession",
    "Book",
    "BookFormat",
    "BookStatus",
    "Quote",
    "User",
    "WishlistItem",
    "WishlistPriority",
]
