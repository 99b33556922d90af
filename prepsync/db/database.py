"""
Engine and store construction.

The engine is created lazily from settings; `build_store` is the single
place that turns `store_backend` into a RecordStore.
"""
from __future__ import annotations

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from config import Settings, get_settings
from prepsync.db.models import Base
from prepsync.db.store import MemoryStore, RecordStore

_engine: Engine | None = None


def get_engine(settings: Settings | None = None) -> Engine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        settings = settings or get_settings()
        _engine = create_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
            pool_pre_ping=True,
        )
    return _engine


def init_db(engine: Engine | None = None) -> None:
    """Initialize database tables."""
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database tables initialized")


def build_store(settings: Settings | None = None) -> RecordStore:
    """Create the record store selected by `store_backend`."""
    settings = settings or get_settings()

    if settings.store_backend == "memory":
        return MemoryStore()

    if settings.store_backend == "postgrest":
        if not settings.has_postgrest_configured():
            raise ValueError("postgrest backend needs POSTGREST_URL and POSTGREST_API_KEY")
        from prepsync.db.postgrest_store import PostgrestStore

        return PostgrestStore(
            settings.postgrest_url,
            settings.postgrest_api_key,
            schema=settings.postgrest_schema,
            timeout_seconds=settings.request_timeout_seconds,
        )

    from prepsync.db.sql_store import SqlAlchemyStore

    return SqlAlchemyStore(get_engine(settings))
