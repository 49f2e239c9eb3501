"""Select the record store from settings."""

from __future__ import annotations

import logging

from missioncontrol.config import settings
from missioncontrol.store.base import RecordStore
from missioncontrol.store.demo_data import seed_demo_data
from missioncontrol.store.sql import SQLStore
from missioncontrol.store.supabase import SupabaseStore

logger = logging.getLogger("missioncontrol.store")


def build_store() -> RecordStore:
    """Supabase when URL and key are configured, the SQL database otherwise."""
    if settings.uses_supabase:
        logger.info(f"✓ Supabase store enabled ({settings.supabase_url})")
        return SupabaseStore()

    from missioncontrol.database import async_session

    logger.info("○ Supabase not configured; reading collections from DATABASE_URL")
    return SQLStore(async_session)


async def prepare_store(store: RecordStore) -> None:
    """Create local tables and seed demo rows when the SQL store is empty."""
    if not isinstance(store, SQLStore):
        return

    from missioncontrol.database import init_db

    await init_db()
    if settings.enable_demo_data and await store.is_empty():
        await seed_demo_data(store.session_factory)
    elif not settings.enable_demo_data:
        logger.info("○ Demo data disabled (ENABLE_DEMO_DATA=false)")
