# store — backends for visitor rows and photos
from __future__ import annotations

import logging

from ..config import Settings
from .base import RemoteStore

log = logging.getLogger(__name__)


def get_store(settings: Settings) -> RemoteStore:
    """Build the backend named by settings.store_backend."""
    if settings.store_backend == "supabase":
        from .supabase_store import SupabaseStore
        log.info("Using Supabase backend at %s", settings.supabase_url)
        return SupabaseStore(settings.supabase_url, settings.supabase_key)

    from ..db import assert_db_connects, make_engine
    from .sql_store import SqlStore
    engine = make_engine(settings.database_url)
    assert_db_connects(engine)
    log.info("Using SQL backend (%s)", engine.url.get_backend_name())
    return SqlStore(
        engine,
        table_name=settings.visitors_table,
        media_root=settings.media_root,
        media_base_url=settings.media_base_url,
    )


__all__ = ["RemoteStore", "get_store"]
