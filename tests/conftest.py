"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookshelf.core.database import Base, create_engine_from_url, get_db
from bookshelf.core.security import create_access_token, hash_password
from bookshelf.main import app
from bookshelf.models.book import Book, BookFormat, BookStatus, Quote
from bookshelf.models.user import User
from bookshelf.models.wishlist import WishlistItem, WishlistPriority

# Use an in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "correct horse battery staple"


@pytest.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_engine_from_url(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest.fixture
async def override_get_db(test_session: AsyncSession):
    """Override the get_db dependency for testing."""

    async def _override_get_db():
        yield test_session

    return _override_get_db


@pytest.fixture
async def client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client."""
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(session: AsyncSession, email: str, name: str) -> User:
    user = User(email=email, name=name, password_hash=hash_password(TEST_PASSWORD))
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


@pytest.fixture
def user_password() -> str:
    """Plain-text password of every fixture user."""
    return TEST_PASSWORD


@pytest.fixture
async def user(test_session: AsyncSession) -> User:
    """The user most tests act as."""
    return await _create_user(test_session, "reader@example.com", "Reader")


@pytest.fixture
async def other_user(test_session: AsyncSession) -> User:
    """A second user who owns nothing of the first user's."""
    return await _create_user(test_session, "other@example.com", "Other Reader")


@pytest.fixture
def auth_headers(user: User) -> dict[str, str]:
    """Authorization header for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def other_auth_headers(other_user: User) -> dict[str, str]:
    """Authorization header for ``other_user``."""
    return {"Authorization": f"Bearer {create_access_token(other_user.id)}"}


@pytest.fixture
async def sample_book(test_session: AsyncSession, user: User) -> Book:
    """Create a sample book owned by ``user``."""
    book = Book(
        user_id=user.id,
        title="The Blind Owl",
        author="Sadegh Hedayat",
        genre="Fiction",
        format=BookFormat.PHYSICAL,
        cover_image="https://example.com/blind-owl.jpg",
        publisher="Amirkabir",
        country="Iran",
        page_count=200,
    )
    test_session.add(book)
    await test_session.flush()
    await test_session.refresh(book)
    return book


@pytest.fixture
async def sample_quote(test_session: AsyncSession, sample_book: Book) -> Quote:
    """Create a sample quote on ``sample_book``."""
    quote = Quote(
        book_id=sample_book.id,
        content="There are certain wounds in life that, like a canker, gnaw at the soul.",
        page=1,
    )
    test_session.add(quote)
    await test_session.flush()
    await test_session.refresh(quote)
    return quote


@pytest.fixture
async def sample_wishlist_item(test_session: AsyncSession, user: User) -> WishlistItem:
    """Create a sample wishlist item for ``user``."""
    item = WishlistItem(
        user_id=user.id,
        title="Savushun",
        author="Simin Daneshvar",
        publisher="Kharazmi",
        translator=None,
        note="Birthday present?",
        priority=WishlistPriority.MUST_HAVE,
    )
    test_session.add(item)
    await test_session.flush()
    await test_session.refresh(item)
    return item


@pytest.fixture
def make_book(test_session: AsyncSession):
    """Factory for books with sensible defaults."""

    async def _make_book(user_id: int, **overrides) -> Book:
        fields = {
            "title": "Untitled",
            "author": "Anonymous",
            "genre": "Fiction",
            "format": BookFormat.PHYSICAL,
            "cover_image": "/covers/default.jpg",
            "status": BookStatus.UNREAD,
        }
        fields.update(overrides)
        book = Book(user_id=user_id, **fields)
        test_session.add(book)
        await test_session.flush()
        await test_session.refresh(book)
        return book

    return _make_book
