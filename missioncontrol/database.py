"""Async SQLAlchemy database engine and session management."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from missioncontrol.config import settings

# Detect database backend and configure accordingly
_is_postgres = "postgresql" in settings.database_url
_is_supabase_pooler = "pooler.supabase.com" in settings.database_url and "asyncpg" in settings.database_url

_engine_kwargs: dict = {"echo": False}
if _is_postgres:
    _engine_kwargs.update({
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    })

if _is_supabase_pooler:
    # PgBouncer in transaction mode: no client-side pool, unique statement names.
    for key in ("pool_size", "max_overflow", "pool_pre_ping", "pool_recycle"):
        _engine_kwargs.pop(key, None)
    _engine_kwargs["poolclass"] = NullPool
    _engine_kwargs["connect_args"] = {
        "prepared_statement_name_func": lambda: f"__asyncpg_{uuid.uuid4()}__",
        "statement_cache_size": 0,
    }

engine = create_async_engine(settings.database_url, **_engine_kwargs)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
logger = logging.getLogger("missioncontrol.database")


class Base(DeclarativeBase):
    pass


async def init_db() -> None:
    """Create the collection tables when AUTO_CREATE_SCHEMA is enabled."""
    if not settings.auto_create_schema:
        logger.info("Skipping Base.metadata.create_all (AUTO_CREATE_SCHEMA=false)")
        return

    # Ensure model modules are imported so SQLAlchemy metadata is populated.
    from missioncontrol.models import risk, team, github, email  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
