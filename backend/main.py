"""FastAPI application entry point and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from backend.api.deck_router import router as deck_router
from backend.api.pricing_router import router as pricing_router
from backend.api.study_router import router as study_router
from backend.config import settings
from backend.database import async_session, engine
from backend.models import Base
from backend.study.store import study_sessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize database on startup and cleanup on shutdown."""
    if settings.debug:
        logging.basicConfig(level=logging.DEBUG)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    study_sessions.clear()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Flashcard decks with AI generation and study sessions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(deck_router)
app.include_router(study_router)
app.include_router(pricing_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Check database connectivity and return status."""
    async with async_session() as session:
        await session.execute(text("SELECT 1"))
    return {"status": "ok"}
