# db.py — SQLAlchemy Engine + visitors table for the self-hosted backend
# Works with psycopg2 or psycopg (v3). Chooses the installed driver automatically.
from __future__ import annotations

import importlib.util
import logging
import os
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    MetaData,
    Table,
    Text,
    create_engine,
    func,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url

from .exceptions import ConfigError

log = logging.getLogger(__name__)

_MANAGED_HOSTS = ["neon.tech", "supabase.co", "render.com", "rds", "aws", "azure", "gcp"]


# ---------------------------
# Build DATABASE_URL safely
# ---------------------------
def build_database_url(url: Optional[str]) -> str:
    """
    Take DATABASE_URL (or compose one from PGHOST/PGUSER/PGPASSWORD/PGDATABASE[/PGPORT]).

    Then, for Postgres:
      - normalize postgres:// → postgresql://
      - pick an installed DBAPI (psycopg2 or psycopg)
      - add `sslmode=require` for common managed hosts if not set
      - add connect_timeout=10 if not set
    Other dialects (sqlite for local runs and tests) pass through untouched.
    """
    if not url:
        host = os.getenv("PGHOST")
        user = os.getenv("PGUSER")
        pwd = os.getenv("PGPASSWORD")
        db = os.getenv("PGDATABASE")
        port = int(os.getenv("PGPORT", "5432"))
        if not all([host, user, pwd, db]):
            raise ConfigError(
                "DATABASE_URL is missing. Set DATABASE_URL (or PGHOST/PGUSER/PGPASSWORD/PGDATABASE[/PGPORT]) "
                "in Streamlit secrets, environment, or .env.local.",
                ["DATABASE_URL"],
            )
        url = str(URL.create(
            drivername="postgresql",
            username=user,
            password=pwd,
            host=host,
            port=port,
            database=db,
        ))

    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    parsed = make_url(url)
    if parsed.get_backend_name() != "postgresql":
        return parsed.render_as_string(hide_password=False)

    # If no explicit driver given, apply the installed one
    if parsed.drivername == "postgresql":
        driver = "postgresql+psycopg2" if importlib.util.find_spec("psycopg2") else "postgresql+psycopg"
        parsed = parsed.set(drivername=driver)

    # Enforce SSL on common managed hosts (unless explicitly set)
    q = dict(parsed.query)
    host = (parsed.host or "").lower()
    if any(x in host for x in _MANAGED_HOSTS) and "sslmode" not in {k.lower() for k in q}:
        q["sslmode"] = "require"

    # Faster failures on bad networks
    q.setdefault("connect_timeout", "10")

    return parsed.set(query=q).render_as_string(hide_password=False)


def make_engine(url: Optional[str]) -> Engine:
    return create_engine(
        build_database_url(url),
        pool_pre_ping=True,   # drop dead connections automatically
        pool_recycle=300,     # recycle every 5 minutes (helps on serverless)
        future=True,
    )


# ---------------------------
# Schema
# ---------------------------
metadata = MetaData()


def visitors_table(name: str = "newVisitors") -> Table:
    """The visitors table; every business column is free text, as the form sends it."""
    if name in metadata.tables:
        return metadata.tables[name]
    return Table(
        name,
        metadata,
        Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        Column("image", Text),
        Column("full_name", Text),
        Column("primary_phone_num", Text),
        Column("secondary_phone_num", Text),
        Column("address", Text),
        Column("gender", Text),
        Column("age", Text),
        Column("born_again_date", Text),
        Column("iow_name", Text),
        Column("iow_phone_num", Text),
        Column("follow_up_leader", Text),
        Column("foundation_class_status", Text),
        Column("foundation_class_teacher", Text),
        Column("ministers_training_status", Text),
        Column("ministers_training_teacher", Text),
        Column("ministry_joined", Text),
        Column("cell_group_status", Text),
        Column("assigned_cell_group", Text),
        Column("registered_at", DateTime(timezone=True), server_default=func.now()),
    )


def ensure_schema(engine: Engine, table_name: str = "newVisitors") -> None:
    """Create the visitors table if missing (idempotent)."""
    try:
        metadata.create_all(engine, tables=[visitors_table(table_name)])
    except Exception:
        # Non-fatal if the DB user cannot run DDL; assume the table was created by hand.
        log.warning("Could not ensure schema for %s", table_name, exc_info=True)


# ---------------------------
# Utilities
# ---------------------------
def assert_db_connects(engine: Engine) -> bool:
    """Ping database; raise on failure."""
    try:
        with engine.connect() as c:
            c.execute(text("SELECT 1")).scalar_one()
        return True
    except Exception:
        log.exception("DB connectivity check failed")
        raise


def dsn_caption(engine: Engine) -> str:
    try:
        u = engine.url
        return f"DB → host={u.host or '<none>'} db={u.database or '<none>'} user={u.username or '<none>'}"
    except Exception as e:
        return f"DB → (unavailable: {type(e).__name__})"
