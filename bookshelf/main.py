"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bookshelf.api.account import router as account_router
from bookshelf.api.auth import router as auth_router
from bookshelf.api.books import router as books_router
from bookshelf.api.quotes import router as quotes_router
from bookshelf.api.wishlist import router as wishlist_router
from bookshelf.core.config import DEV_JWT_SECRET, get_settings
from bookshelf.core.database import close_db, init_db
from bookshelf.core.errors import register_exception_handlers
from bookshelf.core.tracing import setup_tracing, shutdown_tracing

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    if settings.is_production and settings.jwt_secret == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production")
    await init_db()
    logger.info(f"Bookshelf started ({settings.environment})")
    yield
    # Shutdown
    await close_db()
    shutdown_tracing()


app = FastAPI(
    title="Bookshelf",
    description=(
        "Personal library manager: owned books, quotes, a purchase wishlist "
        "and reading statistics"
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# Setup OpenTelemetry tracing (must be done before adding routes)
setup_tracing(app)

register_exception_handlers(app)

# Include routers
app.include_router(auth_router)
app.include_router(books_router)
app.include_router(wishlist_router)
app.include_router(quotes_router)
app.include_router(account_router)


@app.get("/health", tags=["health"])
async def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookshelf.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
