# config.py — settings from Streamlit secrets, env, or .env.local
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError

_dotenv_loaded = False


def _load_dotenv_once() -> None:
    global _dotenv_loaded
    if _dotenv_loaded:
        return
    _dotenv_loaded = True
    if os.path.exists(".env.local"):
        load_dotenv(".env.local")
    else:
        load_dotenv()


def _from_secrets(name: str) -> Any:
    try:
        import streamlit as st
        return st.secrets.get(name)
    except Exception:
        # no secrets.toml, or not running under streamlit
        return None


def get_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Resolve a setting from:
      1) Streamlit secrets
      2) environment (after loading .env.local / .env)
    Blank strings count as unset.
    """
    val = _from_secrets(name)
    if val in (None, ""):
        _load_dotenv_once()
        val = os.getenv(name)
    if val in (None, ""):
        return default
    return str(val)


@dataclass(frozen=True)
class Settings:
    store_backend: str
    visitors_table: str = "newVisitors"
    images_bucket: str = "images"
    upload_folder: str = "newVisitors"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    database_url: Optional[str] = None
    admin_password: Optional[str] = None
    access_password: Optional[str] = None
    media_root: str = "static"
    media_base_url: str = "app/static"


def load_settings() -> Settings:
    supabase_url = get_setting("SUPABASE_URL")
    supabase_key = get_setting("SUPABASE_KEY")
    database_url = get_setting("DATABASE_URL") or get_setting("PG_URL")

    backend = (get_setting("VISITOR_STORE") or ("supabase" if supabase_url else "sql")).strip().lower()
    if backend not in ("supabase", "sql"):
        raise ConfigError(f"VISITOR_STORE must be 'supabase' or 'sql', got {backend!r}.", ["VISITOR_STORE"])

    if backend == "supabase":
        missing = [k for k, v in (("SUPABASE_URL", supabase_url), ("SUPABASE_KEY", supabase_key)) if not v]
        if missing:
            raise ConfigError(
                "Supabase is not configured. Add " + " and ".join(missing)
                + " to .streamlit/secrets.toml or .env.local.",
                missing,
            )

    return Settings(
        store_backend=backend,
        visitors_table=get_setting("VISITORS_TABLE", "newVisitors"),
        images_bucket=get_setting("IMAGES_BUCKET", "images"),
        upload_folder=get_setting("UPLOAD_FOLDER", "newVisitors"),
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        database_url=database_url,
        admin_password=get_setting("ADMIN_PASSWORD"),
        access_password=get_setting("ACCESS_PASSWORD"),
        media_root=get_setting("MEDIA_ROOT", "static"),
        media_base_url=get_setting("MEDIA_BASE_URL", "app/static"),
    )


def check_password(submitted: Optional[str], expected: Optional[str]) -> bool:
    """Static shared-secret comparison. An unset password never matches."""
    return bool(expected) and submitted == expected
