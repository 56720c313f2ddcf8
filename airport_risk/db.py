"""
Database connection and session management for the prediction history.
"""
from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from .config import settings

class Base(DeclarativeBase):
    """Base class for all prediction history models."""
    pass

def engine_options(url: str, echo: bool = False) -> Dict[str, Any]:
    """
    Keyword arguments for create_async_engine.

    SQLite files and in-memory databases have no server connection to go
    stale, so the pre-ping is only enabled for networked backends.
    """
    options: Dict[str, Any] = {"echo": echo}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return options

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_options(settings.DATABASE_URL, echo=settings.DEBUG),
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

async def get_session():
    """Yield a session for one request's prediction reads and writes."""
    async with async_session() as session:
        yield session
