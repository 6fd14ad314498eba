"""
TASKCHAT - Main Application

Natural-language task list service: chat turns become validated
mutations of the user's task lists.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from taskchat.config import settings
from taskchat.database import database
from taskchat.chat.router import router as chat_router
from taskchat.lists.router import router as lists_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect to MongoDB on startup and disconnect on shutdown."""
    await database.connect()
    await database.ensure_indexes()
    yield
    await database.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Natural-language command engine for task lists",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Liveness plus whether the store connection is up."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "connected" if database.db is not None else "disconnected",
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


app.include_router(chat_router)
app.include_router(lists_router)
