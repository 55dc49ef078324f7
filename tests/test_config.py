import pytest

from glc_visitors import config
from glc_visitors.config import check_password, load_settings
from glc_visitors.db import build_database_url
from glc_visitors.exceptions import ConfigError

KEYS = ["SUPABASE_URL", "SUPABASE_KEY", "DATABASE_URL", "PG_URL", "VISITOR_STORE",
        "VISITORS_TABLE", "ADMIN_PASSWORD", "ACCESS_PASSWORD"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.setattr(config, "_dotenv_loaded", True)
    monkeypatch.setattr(config, "_from_secrets", lambda name: None)
    for k in KEYS:
        monkeypatch.delenv(k, raising=False)


def test_defaults_to_sql_without_supabase(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///x.db")
    s = load_settings()
    assert s.store_backend == "sql"
    assert s.visitors_table == "newVisitors"
    assert s.images_bucket == "images"


def test_supabase_needs_key(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
    with pytest.raises(ConfigError) as exc:
        load_settings()
    assert exc.value.keys == ["SUPABASE_KEY"]


def test_bad_backend_name(monkeypatch):
    monkeypatch.setenv("VISITOR_STORE", "mongo")
    with pytest.raises(ConfigError):
        load_settings()


def test_check_password():
    assert check_password("a", "a")
    assert not check_password("a", "b")
    assert not check_password("", "")
    assert not check_password(None, None)


def test_database_url_normalisation():
    url = build_database_url("postgres://u:p@db.abc.supabase.co:5432/postgres")
    assert url.startswith("postgresql+")
    assert "sslmode=require" in url
    assert "connect_timeout=10" in url
    assert build_database_url("sqlite:///tmp/x.db") == "sqlite:///tmp/x.db"


def test_database_url_missing(monkeypatch):
    for k in ("PGHOST", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(k, raising=False)
    with pytest.raises(ConfigError):
        build_database_url(None)
